from datetime import datetime
from pathlib import Path

from inkwell.html_utils import absolutize_html_urls, escape_html, join_root_url
from inkwell.utils import (
    ensure_clean_dir,
    extract_date_from_name,
    extract_number_from_name,
    first_paragraph,
    is_html,
    is_internal_path,
    is_markdown,
    is_template,
    parse_bool,
    slugify,
    source_stem,
    strip_number_prefix,
    titleize,
)


def test_slugify_and_titleize():
    assert slugify("2019-03-10-logging-in-.net-core") == "logging-in-net-core"
    assert slugify("Hello World!") == "hello-world"
    assert slugify("---") == "index"
    assert titleize("2024-01-15-hello-world.md") == "Hello World"
    assert titleize("about_us.md") == "About Us"
    assert titleize("---.md") == "Untitled"


def test_extract_date_from_name():
    assert extract_date_from_name("2024-01-15-post") == datetime(2024, 1, 15)
    assert extract_date_from_name("2024-13-45-post") is None
    assert extract_date_from_name("post") is None


def test_parse_bool():
    assert parse_bool(True) is True
    assert parse_bool(0) is False
    assert parse_bool(1) is True
    assert parse_bool(2) is None
    assert parse_bool(" Yes ") is True
    assert parse_bool("off") is False
    assert parse_bool("maybe") is None
    assert parse_bool(None) is None


def test_first_paragraph_strips_markup():
    text = "# Heading with <b>bold</b>\n\nSecond"
    assert first_paragraph(text) == "Heading with bold"
    assert first_paragraph("See [the docs](http://x) and `code`") == "See the docs and code"
    assert first_paragraph("{% if x %}Hi{% endif %}") == "Hi"
    assert first_paragraph("") == ""
    assert len(first_paragraph("word " * 100, limit=20)) == 20


def test_file_classification():
    assert is_markdown(Path("post.MD"))
    assert is_template(Path("index.html.jinja"))
    assert is_template(Path("feed.jinja"))
    assert is_html(Path("page.html"))
    assert not is_html(Path("page.html.jinja"))
    assert is_internal_path(Path("_layouts/default.html.jinja"))
    assert not is_internal_path(Path("posts/a.md"))


def test_number_prefixes():
    assert extract_number_from_name("01-intro") == 1
    assert extract_number_from_name("2024-01-15-02-part-two") == 2
    assert extract_number_from_name("2024-01-15-part") is None
    assert extract_number_from_name("intro") is None
    assert strip_number_prefix("2024-01-15-02-part-two") == "part-two"
    assert strip_number_prefix("03-setup") == "setup"
    assert strip_number_prefix("plain") == "plain"


def test_source_stem_keeps_inner_dots():
    assert source_stem(Path("contact.html.jinja")) == "contact"
    assert source_stem(Path("feed.jinja")) == "feed"
    assert source_stem(Path("page.html")) == "page"
    assert source_stem(Path("2019-03-10-logging-in-.net-core.md")) == (
        "2019-03-10-logging-in-.net-core"
    )
    assert source_stem(Path("notes.txt")) == "notes"


def test_ensure_clean_dir(tmp_path):
    target = tmp_path / "out"
    target.mkdir()
    (target / "stale.html").write_text("old", encoding="utf-8")
    ensure_clean_dir(target)
    assert target.exists()
    assert list(target.iterdir()) == []


def test_html_helpers():
    assert escape_html('<a href="x">&</a>') == "&lt;a href=&#34;x&#34;&gt;&amp;&lt;/a&gt;"
    assert escape_html("Jerry's") == "Jerry&#39;s"
    assert join_root_url("https://example.com/", "/about/") == "https://example.com/about/"
    assert join_root_url("https://example.com", "about/") == "https://example.com/about/"
    assert join_root_url("", "/about/") == "/about/"


def test_absolutize_html_urls_only_touches_root_relative():
    html = (
        '<a href="/posts/a/">a</a><img src="img.png">'
        '<a href="https://other.org/">x</a><a href="#top">t</a>'
        '<a href="//cdn.example.com/x.js">c</a>'
    )
    result = absolutize_html_urls(html, "https://example.com/")
    assert 'href="https://example.com/posts/a/"' in result
    assert 'src="img.png"' in result
    assert 'href="https://other.org/"' in result
    assert 'href="#top"' in result
    assert 'href="//cdn.example.com/x.js"' in result
    assert absolutize_html_urls(html, "") == html

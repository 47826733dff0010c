from pathlib import Path

import pytest
from jinja2 import TemplateNotFound

from inkwell.content import Heading
from inkwell.taxonomy import TagIndex
from inkwell.templates import TemplateEngine, render_toc


def create_layouts(tmp_path: Path) -> Path:
    site = tmp_path / "site"
    (site / "_layouts").mkdir(parents=True)
    (site / "_partials").mkdir()
    (site / "_partials" / "nav.html.jinja").write_text(
        "<nav>{{ site.title }}</nav>", encoding="utf-8"
    )
    (site / "_layouts" / "default.html.jinja").write_text(
        "{% include 'nav.html.jinja' %}<main>{{ page_content }}</main>", encoding="utf-8"
    )
    (site / "_layouts" / "post.html.jinja").write_text(
        "<h1>{{ current_page.title }}</h1>{{ page_content }}"
        "{% for tag in page_tags %}<a href=\"{{ tag.url }}\">{{ tag.name }}</a>{% endfor %}"
        "{% if current_page.comments %}<div id=\"comments\"></div>{% endif %}",
        encoding="utf-8",
    )
    return site


def test_render_page_wraps_body_in_layout(tmp_path, make_page):
    site = create_layouts(tmp_path)
    engine = TemplateEngine(site, {"title": "My Blog"})
    page = make_page("a.md", layout="default", content="<p>Hello</p>")
    html = engine.render_page(page)
    assert html == "<nav>My Blog</nav><main><p>Hello</p></main>"


def test_post_layout_gets_tags_and_comments(tmp_path, make_page):
    site = create_layouts(tmp_path)
    engine = TemplateEngine(site, {})
    page = make_page("a.md", layout="post", title="A & B", tags=["C#"], comments=True)
    engine.update_collections([page], TagIndex.build([page]))
    html = engine.render_page(page)
    assert "<h1>A &amp; B</h1>" in html
    assert '<a href="/tags/c-sharp/">C#</a>' in html
    assert '<div id="comments"></div>' in html

    quiet = make_page("b.md", layout="post", comments=False)
    assert "comments" not in engine.render_page(quiet)


@pytest.mark.parametrize("filename", ["plain.jinja", "plain"])
def test_layouts_escape_regardless_of_suffix(tmp_path, make_page, filename):
    site = create_layouts(tmp_path)
    (site / "_layouts" / filename).write_text(
        "<h1>{{ current_page.title }}</h1>{{ page_content }}", encoding="utf-8"
    )
    engine = TemplateEngine(site, {})
    page = make_page("a.md", layout="plain", title="<b>bold</b>", content="<p>ok</p>")
    assert engine.render_page(page) == "<h1>&lt;b&gt;bold&lt;/b&gt;</h1><p>ok</p>"


def test_page_without_layout_renders_body_only(tmp_path, make_page):
    site = create_layouts(tmp_path)
    engine = TemplateEngine(site, {})
    page = make_page("a.html", layout=None, content="<p>raw</p>", source_type="html")
    assert engine.render_page(page) == "<p>raw</p>"


def test_missing_layout_template_raises(tmp_path, make_page):
    site = create_layouts(tmp_path)
    engine = TemplateEngine(site, {})
    with pytest.raises(TemplateNotFound):
        engine.render_page(make_page("a.md", layout="missing"))


def test_jinja_pages_see_only_published_pages(tmp_path, make_page):
    site = create_layouts(tmp_path)
    engine = TemplateEngine(site, {"title": "Blog"})
    listing = make_page(
        "index.html.jinja",
        group="",
        layout=None,
        source_type="jinja",
        content="{% for p in pages.group('posts') %}[{{ p.title }}]{% endfor %}",
    )
    shown = make_page("shown.md", title="Dependency Injection")
    hidden = make_page("hidden.md", title="Logging in a .Net Core Library", published=False)
    engine.update_collections([listing, shown, hidden], TagIndex.build([shown, hidden]))
    assert engine.render_page(listing) == "[Dependency Injection]"
    assert len(engine.pages) == 2


def test_url_for_and_render_string(tmp_path):
    site = create_layouts(tmp_path)
    engine = TemplateEngine(site, {}, root_url="https://example.com/blog/")
    assert engine.url_for("/about/") == "https://example.com/blog/about/"
    assert engine.url_for("about/") == "https://example.com/blog/about/"
    assert engine.url_for("https://other.org/") == "https://other.org/"
    assert TemplateEngine(site, {}).url_for("about/") == "/about/"
    assert engine.render_string("{{ x }}!", {"x": "hi"}) == "hi!"


def test_site_global_merges_config_and_data(tmp_path):
    site = create_layouts(tmp_path)
    engine = TemplateEngine(site, {"title": "Data Title"}, {"title": "Config", "port": 4000})
    assert engine.render_string("{{ site.title }} {{ site.port }}", {}) == "Data Title 4000"
    assert ".highlight" in engine.pygments_css()


def test_tag_pages_fall_back_to_default_layout(tmp_path, make_page):
    site = create_layouts(tmp_path)
    engine = TemplateEngine(site, {"title": "Blog"})
    page = make_page("a.md", tags=["python"], title="Async")
    tags = TagIndex.build([page])
    engine.update_collections([page], tags)

    tag_html = engine.render_tag_page(tags["python"])
    assert tag_html.startswith("<nav>Blog</nav><main><ul class=\"tag-listing\">")
    assert 'href="/posts/a/"' in tag_html

    (site / "_layouts" / "tags.html.jinja").write_text(
        "{% for tag in tags.values() %}{{ tag.name }}={{ tag|length }};{% endfor %}",
        encoding="utf-8",
    )
    assert engine.render_tag_index() == "python=1;"


def test_tag_page_without_any_layout_is_bare_listing(tmp_path, make_page):
    site = tmp_path / "site"
    (site / "_layouts").mkdir(parents=True)
    engine = TemplateEngine(site, {})
    page = make_page("a.md", tags=["python"])
    tags = TagIndex.build([page])
    engine.update_collections([page], tags)
    assert engine.render_tag_page(tags["python"]).startswith('<ul class="tag-listing">')


def test_render_toc(make_page):
    page = make_page("a.md")
    assert render_toc(page) == ""
    page.toc = [
        Heading(id="intro", text="Intro", level=1),
        Heading(id="setup", text="Setup <1>", level=2),
        Heading(id="usage", text="Usage", level=1),
    ]
    toc = render_toc(page)
    assert toc == (
        '<ul><li><a href="#intro">Intro</a><ul><li><a href="#setup">Setup &lt;1&gt;</a>'
        '</li></ul></li><li><a href="#usage">Usage</a></li></ul>'
    )

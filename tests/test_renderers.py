from pathlib import Path

from inkwell.renderers import (
    HTMLRenderer,
    JinjaContentRenderer,
    MarkdownRenderer,
    RendererRegistry,
    generate_heading_id,
    rewrite_image_path,
)


def test_generate_heading_id():
    assert generate_heading_id("Hello, World!") == "hello-world"
    assert generate_heading_id("<code>ILogger</code> setup") == "ilogger-setup"
    assert generate_heading_id("!!!") == "section"


def test_rewrite_image_path():
    assert rewrite_image_path("a.png", "posts") == "/assets/images/posts/a.png"
    assert rewrite_image_path("a.png", "") == "/assets/images/a.png"
    for src in ("/img/a.png", "https://x/a.png", "//cdn/a.png", "data:image/png;base64,x"):
        assert rewrite_image_path(src, "posts") == src
    assert rewrite_image_path("{{ img }}", "posts") == "{{ img }}"


def test_markdown_headings_and_toc():
    html, toc = MarkdownRenderer().render("# Intro\n\n## Setup\n\n## Setup\n", "posts")
    assert '<h1 id="intro">Intro</h1>' in html
    assert '<h2 id="setup">Setup</h2>' in html
    assert '<h2 id="setup-1">Setup</h2>' in html
    assert [(h.id, h.level) for h in toc] == [("intro", 1), ("setup", 2), ("setup-1", 2)]


def test_markdown_images_and_code():
    source = "![Diagram](di.png)\n\n```python\nprint('hi')\n```\n\n```nolang\n<x>\n```\n"
    html, _ = MarkdownRenderer().render(source, "posts")
    assert 'src="/assets/images/posts/di.png"' in html
    assert 'class="highlight"' in html
    assert '<pre><code class="language-nolang">&lt;x&gt;' in html


def test_markdown_plugins_and_raw_html():
    html, _ = MarkdownRenderer().render(
        "~~gone~~\n\n| a | b |\n|---|---|\n| 1 | 2 |\n\n<div class=\"note\">kept</div>\n", ""
    )
    assert "<del>gone</del>" in html
    assert "<table>" in html
    assert '<div class="note">kept</div>' in html


def test_html_and_jinja_renderers_pass_through():
    assert HTMLRenderer().render("<p>x</p>", "") == ("<p>x</p>", [])
    assert JinjaContentRenderer().render("{{ site.title }}", "") == ("{{ site.title }}", [])


def test_registry_picks_renderer():
    registry = RendererRegistry()
    assert registry.get_renderer(Path("a.md")).source_type == "markdown"
    assert registry.get_renderer(Path("a.html.jinja")).source_type == "jinja"
    assert registry.get_renderer(Path("a.html")).source_type == "html"
    assert registry.get_renderer(Path("a.txt")) is None

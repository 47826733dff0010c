from datetime import datetime

from inkwell.feeds import (
    FeedRegistry,
    RSSGenerator,
    SitemapGenerator,
    create_default_feed_registry,
)

SITE = {"title": "Tom & Jerry's Blog", "url": "https://example.com/", "description": "Notes"}


def sample_pages(make_page):
    return [
        make_page("2019-04-01-di.md", date=datetime(2019, 4, 1), title="Dependency Injection",
                  tags=["dotnet", "dotnet"], description="DI <intro>"),
        make_page("2019-03-10-logging.md", date=datetime(2019, 3, 10),
                  title="Logging in a .Net Core Library", published=False),
        make_page("about.md", group="", date=datetime(2018, 1, 1), title="About", url="/about/"),
    ]


def test_feeds_skipped_without_site_url(make_page):
    pages = sample_pages(make_page)
    assert SitemapGenerator().generate(pages, {}) is None
    assert RSSGenerator().generate(pages, {"title": "x"}) is None


def test_sitemap_lists_published_pages_by_url(make_page):
    xml = SitemapGenerator().generate(sample_pages(make_page), SITE)
    assert xml.index("https://example.com/about/") < xml.index("https://example.com/posts/di/")
    assert "<lastmod>2019-04-01</lastmod>" in xml
    assert "logging" not in xml


def test_rss_feed_contents(make_page):
    xml = RSSGenerator().generate(sample_pages(make_page), SITE)
    assert "<title>Tom &amp; Jerry&#39;s Blog</title>" in xml
    assert "<lastBuildDate>Mon, 01 Apr 2019 00:00:00 +0000</lastBuildDate>" in xml
    assert "Logging in a .Net Core Library" not in xml
    assert xml.count("<category>dotnet</category>") == 1
    assert "<description>DI &lt;intro&gt;</description>" in xml
    assert xml.index("Dependency Injection") < xml.index("<title>About</title>")
    assert '<guid isPermaLink="true">https://example.com/posts/di/</guid>' in xml


def test_rss_limit_and_group(make_page):
    pages = sample_pages(make_page)
    limited = RSSGenerator(limit=1).generate(pages, SITE)
    assert limited.count("<item>") == 1
    posts_only = RSSGenerator(group="posts").generate(pages, SITE)
    assert "<title>About</title>" not in posts_only
    assert "Dependency Injection" in posts_only


def test_feeds_are_stable(make_page):
    pages = sample_pages(make_page)
    assert RSSGenerator().generate(pages, SITE) == RSSGenerator().generate(pages, SITE)


def test_registry_writes_files(tmp_path, make_page):
    registry = create_default_feed_registry({"feed_limit": 5, "feed_group": "posts"})
    written = registry.generate_all(tmp_path, sample_pages(make_page), SITE)
    assert written == ["sitemap.xml", "rss.xml"]
    assert (tmp_path / "rss.xml").exists()
    assert "<title>About</title>" not in (tmp_path / "rss.xml").read_text(encoding="utf-8")

    empty = FeedRegistry()
    assert empty.generate_all(tmp_path, [], SITE) == []
    assert create_default_feed_registry().generate_all(tmp_path / "missing", [], {}) == []

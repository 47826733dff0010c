from datetime import datetime

from inkwell.taxonomy import TagIndex, tag_index_html, tag_listing_html, tag_slug


def test_tag_slug():
    assert tag_slug("C#") == "c-sharp"
    assert tag_slug("C++") == "c-plus-plus"
    assert tag_slug(".Net Core") == "net-core"
    assert tag_slug("Dependency Injection") == "dependency-injection"
    assert tag_slug("!!!") == "tag"


def test_index_ignores_unpublished_pages(make_page):
    published = make_page("2019-04-01-di.md", tags=["dotnet"], title="Dependency Injection")
    hidden = make_page(
        "2019-03-10-logging.md",
        tags=["dotnet", "logging"],
        published=False,
        title="Logging in a .Net Core Library",
    )
    index = TagIndex.build([published, hidden])
    assert list(index) == ["dotnet"]
    assert "logging" not in index
    assert [p.title for p in index["dotnet"].pages] == ["Dependency Injection"]


def test_index_lists_each_page_once_per_tag(make_page):
    page = make_page("a.md", tags=["C#", "c#", "C#"])
    index = TagIndex.build([page])
    assert len(index) == 1
    tag = index["c-sharp"]
    assert tag.name == "C#"
    assert len(tag) == 1
    assert tag.url == "/tags/c-sharp/"
    assert index["C#"] is tag
    assert "C#" in index
    assert 42 not in index
    assert index.for_page(page) == [tag]


def test_index_order_urls_and_page_order(make_page):
    older = make_page("old.md", date=datetime(2020, 1, 1), tags=["python", "Zig"])
    newer = make_page("new.md", date=datetime(2021, 1, 1), tags=["python", "asyncio"])
    index = TagIndex.build([older, newer], tag_dir="/topics/")
    assert [tag.name for tag in index.values()] == ["asyncio", "python", "Zig"]
    assert index.url == "/topics/"
    assert index["python"].url == "/topics/python/"
    assert [p.slug for p in index["python"].pages] == ["new", "old"]

    flat = TagIndex.build([older], tag_dir="")
    assert flat.url == "/"
    assert flat["python"].url == "/python/"


def test_listing_html_is_escaped(make_page):
    page = make_page("x.md", title="<script>alert(1)</script>", tags=["a&b"])
    listing = tag_listing_html([page])
    assert "<script>" not in listing
    assert "&lt;script&gt;" in listing
    assert 'href="/posts/x/"' in listing

    index_html = tag_index_html(TagIndex.build([page]))
    assert "a&amp;b" in index_html
    assert "(1)" in index_html

from datetime import datetime

from inkwell.collections import PageCollection


def test_filters_and_slicing(make_page):
    pages = PageCollection(
        [
            make_page("a.md", tags=["dotnet"]),
            make_page("b.md", group="notes", tags=["python"]),
            make_page("c.md", published=False, tags=["dotnet"]),
        ]
    )
    assert [p.filename for p in pages.group("posts")] == ["a.md", "c.md"]
    assert [p.filename for p in pages.with_tag("dotnet")] == ["a.md", "c.md"]
    assert [p.filename for p in pages.published()] == ["a.md", "b.md"]
    assert [p.filename for p in pages.unpublished()] == ["c.md"]
    assert isinstance(pages[:2], PageCollection)
    assert len(pages[:2]) == 2
    assert pages[0].filename == "a.md"


def test_sorted_by_date_newest_first(make_page):
    pages = PageCollection(
        [
            make_page("2024-01-01-old.md", date=datetime(2024, 1, 1)),
            make_page("2024-03-01-new.md", date=datetime(2024, 3, 1)),
            make_page("2024-02-01-mid.md", date=datetime(2024, 2, 1)),
        ]
    )
    assert [p.slug for p in pages.sorted()] == ["new", "mid", "old"]
    assert [p.slug for p in pages.sorted(reverse=False)] == ["old", "mid", "new"]
    assert [p.slug for p in pages.latest(2)] == ["new", "mid"]


def test_sorted_same_day_uses_number_prefix(make_page):
    day = datetime(2024, 1, 1)
    pages = PageCollection(
        [
            make_page("2024-01-01-01-intro.md", date=day),
            make_page("2024-01-01-02-setup.md", date=day),
            make_page("2024-01-01-aside.md", date=day),
        ]
    )
    assert [p.filename for p in pages.sorted(reverse=False)] == [
        "2024-01-01-aside.md",
        "2024-01-01-01-intro.md",
        "2024-01-01-02-setup.md",
    ]
    assert [p.filename for p in pages.sorted()] == [
        "2024-01-01-aside.md",
        "2024-01-01-02-setup.md",
        "2024-01-01-01-intro.md",
    ]

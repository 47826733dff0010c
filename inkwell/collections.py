from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence

from .content import Page
from .utils import extract_number_from_name, source_stem, strip_number_prefix


class PageCollection(Sequence[Page]):
    """Lightweight helper for working with lists of Pages in templates and code."""

    def __init__(self, pages: Iterable[Page]):
        self._pages = list(pages)

    def __iter__(self) -> Iterator[Page]:
        return iter(self._pages)

    def __len__(self) -> int:
        return len(self._pages)

    def __getitem__(self, item):
        if isinstance(item, slice):
            return PageCollection(self._pages[item])
        return self._pages[item]

    def group(self, name: str) -> PageCollection:
        return PageCollection(p for p in self._pages if p.group == name)

    def with_tag(self, tag: str) -> PageCollection:
        return PageCollection(p for p in self._pages if tag in p.tags)

    def published(self) -> PageCollection:
        return PageCollection(p for p in self._pages if p.published)

    def unpublished(self) -> PageCollection:
        return PageCollection(p for p in self._pages if not p.published)

    def sorted(self, reverse: bool = True) -> PageCollection:
        """Sort pages by date, then by number prefix, then by filename.

        With reverse=True (the default) the newest page comes first. Pages
        dated the same day fall back to a number prefix (``01-intro.md``)
        and then to the filename without its date and number prefixes.
        """

        def sort_key(p: Page):
            stem = source_stem(p.path)
            number = extract_number_from_name(stem)
            # Unnumbered pages come before numbered ones in either direction.
            if number is None:
                number = float("inf") if reverse else 0
            return (p.date, number, strip_number_prefix(stem).lower())

        return PageCollection(sorted(self._pages, key=sort_key, reverse=reverse))

    def latest(self, count: int = 5) -> PageCollection:
        return self.sorted()[:count]

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PageCollection({len(self._pages)} pages)"

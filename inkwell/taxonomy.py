"""Tag taxonomy for Inkwell.

Tags come from each document's front matter. The index only ever holds
published pages, lists each page at most once per tag and keys tags by a
URL slug so that tag pages can be written to ``/<tag_dir>/<slug>/``.

Key objects:
- tag_slug: Stable URL slug for a tag name.
- Tag: A tag with its display name, slug, URL and pages.
- TagIndex: Mapping of tag slug to Tag.
- tag_listing_html: Fallback listing markup for tag pages without a layout.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field

from .collections import PageCollection
from .content import Page
from .html_utils import escape_html

_SLUG_SYMBOLS = (("#", "-sharp"), ("+", "-plus"))


def tag_slug(tag: str) -> str:
    """Convert a tag name to a URL slug.

    ``#`` and ``+`` are spelled out so that language tags stay distinct.

    Examples:
        >>> tag_slug("C#")
        'c-sharp'
        >>> tag_slug("C++")
        'c-plus-plus'
        >>> tag_slug(".Net Core")
        'net-core'
    """
    slug = tag.strip().lower()
    for symbol, word in _SLUG_SYMBOLS:
        slug = slug.replace(symbol, word)
    slug = re.sub(r"[\W_]+", "-", slug).strip("-")
    return slug or "tag"


@dataclass
class Tag:
    """A tag and the published pages carrying it.

    Attributes:
        name: Display name, as first written by an author.
        slug: URL slug.
        url: URL path of the tag page.
        pages: Pages with this tag, newest first.
    """

    name: str
    slug: str
    url: str
    pages: PageCollection = field(default_factory=lambda: PageCollection([]))

    def __len__(self) -> int:
        return len(self.pages)


class TagIndex(Mapping[str, Tag]):
    """Mapping of tag slug to Tag, sorted by display name.

    Lookups also accept a tag name, so templates can write ``tags["C#"]``.
    """

    def __init__(self, tags: Iterable[Tag], tag_dir: str = "tags"):
        ordered = sorted(tags, key=lambda t: (t.name.lower(), t.slug))
        self._tags = {tag.slug: tag for tag in ordered}
        self.tag_dir = tag_dir.strip("/")

    @classmethod
    def build(cls, pages: Iterable[Page], tag_dir: str = "tags") -> TagIndex:
        """Build the index from pages, ignoring unpublished ones.

        Args:
            pages: Candidate pages.
            tag_dir: URL directory holding the tag pages.

        Returns:
            TagIndex over the published pages.
        """
        base = tag_dir.strip("/")
        names: dict[str, str] = {}
        members: dict[str, list[Page]] = {}
        for page in pages:
            if not page.published:
                continue
            seen: set[str] = set()
            for name in page.tags:
                slug = tag_slug(name)
                if slug in seen:
                    continue
                seen.add(slug)
                names.setdefault(slug, name)
                members.setdefault(slug, []).append(page)

        tags = [
            Tag(
                name=names[slug],
                slug=slug,
                url=f"/{base}/{slug}/" if base else f"/{slug}/",
                pages=PageCollection(tagged).sorted(),
            )
            for slug, tagged in members.items()
        ]
        return cls(tags, tag_dir=base)

    @property
    def url(self) -> str:
        """URL path of the page listing every tag."""
        return f"/{self.tag_dir}/" if self.tag_dir else "/"

    def __getitem__(self, key: str) -> Tag:
        if key in self._tags:
            return self._tags[key]
        return self._tags[tag_slug(key)]

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        return key in self._tags or tag_slug(key) in self._tags

    def __iter__(self) -> Iterator[str]:
        return iter(self._tags)

    def __len__(self) -> int:
        return len(self._tags)

    def for_page(self, page: Page) -> list[Tag]:
        """Return the Tag objects for a page's tags, in authored order."""
        found: dict[str, Tag] = {}
        for name in page.tags:
            slug = tag_slug(name)
            if slug in self._tags:
                found.setdefault(slug, self._tags[slug])
        return list(found.values())

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"TagIndex({len(self._tags)} tags)"


def tag_listing_html(pages: Iterable[Page]) -> str:
    """Render a plain list of links, used when no ``tag`` layout exists."""
    items = []
    for page in pages:
        items.append(
            f'<li><a href="{escape_html(page.url)}">{escape_html(page.title)}</a> '
            f'<time datetime="{page.date:%Y-%m-%d}">{page.date:%Y-%m-%d}</time></li>'
        )
    return '<ul class="tag-listing">\n' + "\n".join(items) + "\n</ul>"


def tag_index_html(index: TagIndex) -> str:
    """Render a plain list of every tag, used when no ``tags`` layout exists."""
    items = [
        f'<li><a href="{escape_html(tag.url)}">{escape_html(tag.name)}</a> ({len(tag)})</li>'
        for tag in index.values()
    ]
    return '<ul class="tag-index">\n' + "\n".join(items) + "\n</ul>"

"""Feed generation for Inkwell.

Generates ``sitemap.xml`` and an RSS 2.0 feed from the published pages.
Both need the site's absolute ``url``, read from the same merged config
and ``data/site.yaml`` mapping layouts see as ``site``, and are skipped
without it.

Classes:
    FeedGenerator: Base class for feed generators.
    SitemapGenerator: Generates sitemap.xml.
    RSSGenerator: Generates rss.xml.
    FeedRegistry: Runs every registered generator.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .html_utils import escape_html

if TYPE_CHECKING:
    from .content import Page

RFC822_FORMAT = "%a, %d %b %Y %H:%M:%S +0000"


def _published_by_date(pages: Iterable[Page]) -> list[Page]:
    return sorted(
        (p for p in pages if p.published),
        key=lambda p: (p.date, p.url),
        reverse=True,
    )


class FeedGenerator(ABC):
    """Base class for feed generators."""

    @property
    @abstractmethod
    def filename(self) -> str:
        """Output filename, e.g. 'sitemap.xml'."""
        ...

    @abstractmethod
    def generate(self, pages: Iterable[Page], data: dict[str, Any]) -> str | None:
        """Generate feed content, or None when the feed cannot be built."""
        ...

    def write(self, output_dir: Path, pages: Iterable[Page], data: dict[str, Any]) -> bool:
        """Generate and write the feed; returns False when skipped."""
        content = self.generate(pages, data)
        if content is None:
            return False
        (output_dir / self.filename).write_text(content, encoding="utf-8")
        return True


class SitemapGenerator(FeedGenerator):
    """Generates sitemap.xml following the sitemaps.org protocol."""

    @property
    def filename(self) -> str:
        return "sitemap.xml"

    def generate(self, pages: Iterable[Page], data: dict[str, Any]) -> str | None:
        base_url = str(data.get("url", "")).rstrip("/")
        if not base_url:
            return None

        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
        ]
        for page in sorted((p for p in pages if p.published), key=lambda p: p.url):
            loc = escape_html(f"{base_url}{page.url}")
            lastmod = page.date.strftime("%Y-%m-%d")
            lines.append(f"  <url><loc>{loc}</loc><lastmod>{lastmod}</lastmod></url>")
        lines.append("</urlset>")
        return "\n".join(lines) + "\n"


class RSSGenerator(FeedGenerator):
    """Generates an RSS 2.0 feed, newest page first.

    ``lastBuildDate`` is the newest page date, so an unchanged site always
    produces the same feed.

    Attributes:
        limit: Maximum number of items, or None for all.
        group: Only include pages from this group (e.g. 'posts'), if set.
    """

    def __init__(self, limit: int | None = 20, group: str | None = None):
        self.limit = limit
        self.group = group

    @property
    def filename(self) -> str:
        return "rss.xml"

    def generate(self, pages: Iterable[Page], data: dict[str, Any]) -> str | None:
        base_url = str(data.get("url", "")).rstrip("/")
        if not base_url:
            return None
        title = str(data.get("title", "Inkwell Feed"))
        description = str(data.get("description", title))

        entries = _published_by_date(pages)
        if self.group:
            entries = [p for p in entries if p.group == self.group]
        if self.limit is not None:
            entries = entries[: self.limit]

        rss = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0"><channel>',
            f"<title>{escape_html(title)}</title>",
            f"<link>{escape_html(base_url)}/</link>",
            f"<description>{escape_html(description)}</description>",
        ]
        if entries:
            rss.append(f"<lastBuildDate>{entries[0].date.strftime(RFC822_FORMAT)}</lastBuildDate>")
        for page in entries:
            link = escape_html(f"{base_url}{page.url}")
            categories = "".join(
                f"<category>{escape_html(tag)}</category>" for tag in dict.fromkeys(page.tags)
            )
            rss.append(
                f"<item><title>{escape_html(page.title)}</title><link>{link}</link>"
                f'<guid isPermaLink="true">{link}</guid>'
                f"<description>{escape_html(page.description or page.title)}</description>"
                f"{categories}"
                f"<pubDate>{page.date.strftime(RFC822_FORMAT)}</pubDate></item>"
            )
        rss.append("</channel></rss>")
        return "\n".join(rss) + "\n"


class FeedRegistry:
    """Runs every registered feed generator during a build."""

    def __init__(self) -> None:
        self._generators: list[FeedGenerator] = []

    def register(self, generator: FeedGenerator) -> None:
        self._generators.append(generator)

    def generate_all(
        self, output_dir: Path, pages: Iterable[Page], data: dict[str, Any]
    ) -> list[str]:
        """Generate all registered feeds.

        Returns:
            Filenames that were written.
        """
        pages_list = list(pages)
        generated = []
        for generator in self._generators:
            if generator.write(output_dir, pages_list, data):
                generated.append(generator.filename)
        return generated


def create_default_feed_registry(config: dict[str, Any] | None = None) -> FeedRegistry:
    """Create a registry with the sitemap and RSS generators.

    ``feed_limit`` and ``feed_group`` in config tune the RSS feed.
    """
    config = config or {}
    registry = FeedRegistry()
    registry.register(SitemapGenerator())
    registry.register(
        RSSGenerator(limit=config.get("feed_limit", 20), group=config.get("feed_group"))
    )
    return registry

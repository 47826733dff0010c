"""Content processing for Inkwell.

This module turns the files under ``site/`` into Page objects: it discovers
content files, splits and validates their front matter, renders the body,
resolves the layout and derives the output URL.

Key classes:
- Document: A content file as authored (path, front matter, body).
- Page: The rendered view of a Document with all resolved metadata.
- FileContentLoader: Discovers content files.
- LayoutResolver: Picks and validates the layout template.
- PermalinkResolver: Derives URLs from permalinks, patterns or paths.
- DefaultPageBuilder: Builds a Page from a source file.
- ContentProcessor: Loads every page of a site.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .extractors import FrontMatterError, default_metadata_extractor
from .renderers import RendererRegistry, default_renderer_registry, rewrite_image_path
from .utils import is_html, is_internal_path, is_markdown, is_template, slugify, source_stem

if TYPE_CHECKING:
    from .protocols import ContentLoader, MetadataExtractor, PageBuilder

IMAGE_SRC_RE = re.compile(r'<img\s+[^>]*src="([^"]+)"', re.IGNORECASE)
LAYOUT_SUFFIXES = (".html.jinja", ".jinja", ".html", "")
PERMALINK_PLACEHOLDER_RE = re.compile(r":(year|month|day|title|slug|group)\b")


class LayoutNotFoundError(LookupError):
    """Raised when a document names a layout that has no template.

    Attributes:
        layout: The requested layout name.
        path: Source file that requested it.
    """

    def __init__(self, layout: str, path: Path):
        self.layout = layout
        self.path = path
        self.message = f"layout '{layout}' not found in _layouts"
        super().__init__(f"{path}: {self.message}")


@dataclass
class Heading:
    """A heading collected while rendering Markdown, used for the TOC."""

    id: str
    text: str
    level: int


@dataclass(frozen=True)
class Document:
    """A content document as authored.

    Attributes:
        path: POSIX path relative to the site directory; unique per document.
        front_matter: Raw front-matter mapping.
        body: Text after the front-matter block.
    """

    path: str
    front_matter: dict[str, Any]
    body: str


@dataclass
class Page:
    """Represents a rendered site page.

    Attributes:
        document: The source document.
        title: Front-matter title, first heading, or titleized filename.
        content: Rendered HTML body (raw Jinja for jinja pages).
        description: Short plain-text description.
        excerpt: First paragraph of a Markdown body.
        url: URL path for the page.
        slug: URL-friendly slug derived from the filename.
        date: Publication date.
        tags: Tags in authored order.
        published: False keeps the page out of every listing.
        comments: Whether the comment widget is shown.
        layout: Layout template name, or None to render the body alone.
        group: First folder segment (e.g. 'posts').
        path: Absolute path to the source file.
        folder: Folder path relative to the site directory.
        filename: Name of the source file.
        source_type: "markdown", "html" or "jinja".
        toc: Headings for the table of contents.
    """

    document: Document
    title: str
    content: str
    description: str
    excerpt: str
    url: str
    slug: str
    date: datetime
    tags: list[str]
    published: bool
    comments: bool
    layout: str | None
    group: str
    path: Path
    folder: str
    filename: str
    source_type: str
    toc: list[Heading] = field(default_factory=list)

    @property
    def body(self) -> str:
        return self.document.body

    @property
    def front_matter(self) -> dict[str, Any]:
        return self.document.front_matter

    @property
    def output_path(self) -> str:
        """Path of the written file, relative to the output directory."""
        return output_path_for(self.url)


def output_path_for(url: str) -> str:
    """Map a URL path to the file that serves it.

    Examples:
        >>> output_path_for("/posts/hello/")
        'posts/hello/index.html'
        >>> output_path_for("/feed.html")
        'feed.html'
    """
    if url.endswith("/"):
        trimmed = url.strip("/")
        return f"{trimmed}/index.html" if trimmed else "index.html"
    return url.lstrip("/")


class FileContentLoader:
    """Discovers content files in a site directory.

    Files inside directories starting with ``_`` (layouts, partials) are
    never content. Files whose own name starts with ``_`` are drafts and
    are only returned when requested.
    """

    def __init__(self, site_dir: Path):
        self.site_dir = site_dir

    def iter_files(self, include_drafts: bool = False) -> list[Path]:
        """Return content files sorted by their path relative to the site."""
        files: list[Path] = []
        for path in self.site_dir.rglob("*"):
            if path.is_dir():
                continue
            rel = path.relative_to(self.site_dir)
            if is_internal_path(rel.parent):
                continue
            if rel.name.startswith("_") and not include_drafts:
                continue
            if is_markdown(path) or is_template(path) or is_html(path):
                files.append(path)
        return sorted(files, key=lambda p: p.relative_to(self.site_dir).as_posix())


class LayoutResolver:
    """Resolves layout templates for pages.

    Attributes:
        site_dir: Directory containing site content and layouts.
        layout_dir: The ``_layouts`` directory.
    """

    def __init__(self, site_dir: Path):
        self.site_dir = site_dir
        self.layout_dir = site_dir / "_layouts"

    def exists(self, name: str) -> bool:
        """Check whether a template exists for a layout name."""
        return any(
            (self.layout_dir / f"{name}{suffix}").is_file() for suffix in LAYOUT_SUFFIXES
        )

    def resolve(
        self,
        path: Path,
        folder: str,
        requested: str | None = None,
        disabled: bool = False,
    ) -> str | None:
        """Resolve the layout for a page.

        An explicitly requested layout must exist. Otherwise the search order
        is ``{folder}/{name}``, then the group, then ``default`` (for root
        pages: the file stem, then ``default``).

        Returns:
            Layout name, or None when the page renders without a layout.

        Raises:
            LayoutNotFoundError: If the requested layout has no template.
        """
        if disabled:
            return None
        if requested is not None:
            if not self.exists(requested):
                raise LayoutNotFoundError(requested, path)
            return requested

        name = source_stem(path)
        if folder:
            candidates = [f"{folder}/{name}", group_from_folder(folder), "default"]
        else:
            candidates = [name, "default"]
        for candidate in candidates:
            if self.exists(candidate):
                return candidate
        return None


def group_from_folder(folder: str) -> str:
    """Return the first component of a folder path, or an empty string."""
    if not folder:
        return ""
    return Path(folder).parts[0]


class PermalinkResolver:
    """Derives URL paths for pages.

    Attributes:
        patterns: Mapping of group name to permalink pattern, from config.
    """

    def __init__(self, patterns: dict[str, str] | None = None):
        self.patterns = dict(patterns or {})

    def derive(
        self,
        rel: Path,
        slug: str,
        date: datetime,
        group: str = "",
        permalink: str | None = None,
    ) -> str:
        """Derive the URL for a page.

        Args:
            rel: Source path relative to the site directory.
            slug: URL-friendly slug.
            date: Page date, used by the date placeholders.
            group: Content group, used to look up a configured pattern.
            permalink: Explicit permalink from front matter.

        Returns:
            URL path starting with ``/``.

        Raises:
            ValueError: If the permalink escapes the output directory.
        """
        pattern = permalink or self.patterns.get(group)
        if pattern:
            return self._expand(pattern, slug, date, group)

        if source_stem(rel) == "index" and rel.parent == Path("."):
            return "/"
        segments = [p for p in rel.parent.parts if p and p != "."]
        url_parts = segments if slug == "index" else segments + [slug]
        path = "/".join(url_parts)
        return f"/{path}/" if path else "/"

    def _expand(self, pattern: str, slug: str, date: datetime, group: str) -> str:
        values = {
            "year": f"{date:%Y}",
            "month": f"{date:%m}",
            "day": f"{date:%d}",
            "title": slug,
            "slug": slug,
            "group": group,
        }
        expanded = PERMALINK_PLACEHOLDER_RE.sub(lambda m: values[m.group(1)], pattern)
        segments = [s for s in expanded.split("/") if s]
        if any(s in (".", "..") for s in segments):
            raise ValueError(f"permalink may not contain '.' or '..': {pattern!r}")
        url = "/" + "/".join(segments)
        if not segments:
            return "/"
        # A last segment without a suffix is a directory served by index.html.
        if expanded.endswith("/") or "." not in segments[-1]:
            url += "/"
        return url


class DefaultPageBuilder:
    """Builds Page objects from source files.

    Attributes:
        site_dir: Directory containing site content.
        renderer_registry: Registry of content renderers.
        metadata_extractor: Composite metadata extractor.
        layout_resolver: Layout resolver instance.
        permalink_resolver: Permalink resolver instance.
        comments_default: Comment setting for documents that do not set one.
    """

    def __init__(
        self,
        site_dir: Path,
        config: dict[str, Any] | None = None,
        renderer_registry: RendererRegistry | None = None,
        metadata_extractor: MetadataExtractor | None = None,
    ):
        config = config or {}
        self.site_dir = site_dir
        self.renderer_registry = renderer_registry or default_renderer_registry
        self.metadata_extractor = metadata_extractor or default_metadata_extractor
        self.layout_resolver = LayoutResolver(site_dir)
        self.permalink_resolver = PermalinkResolver(config.get("permalinks"))
        self.comments_default = bool(config.get("comments", False))

    def build(self, path: Path) -> Page:
        """Build a Page object from a source file.

        Raises:
            FrontMatterError: If the file is not UTF-8 or its front matter is
                malformed.
            LayoutNotFoundError: If the requested layout does not exist.
        """
        rel = path.relative_to(self.site_dir)
        folder = rel.parent.as_posix() if rel.parent != Path(".") else ""
        try:
            raw = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise FrontMatterError(f"not valid UTF-8: {exc.reason}", path) from exc

        metadata = self.metadata_extractor.extract(raw, path)
        front_matter = metadata["front_matter"]
        body = metadata["body"]
        document = Document(path=rel.as_posix(), front_matter=front_matter.data, body=body)

        renderer = self.renderer_registry.get_renderer(path)
        if renderer:
            source_type = renderer.source_type
            content, toc = renderer.render(body, folder)
        else:
            source_type = "unknown"
            content, toc = body, []
        if source_type != "markdown":
            content = self._rewrite_inline_images(content, folder)

        layout = self.layout_resolver.resolve(
            path, folder, front_matter.layout, front_matter.layout_disabled
        )
        slug = slugify(source_stem(path))
        group = group_from_folder(folder)
        date = metadata["date"]
        try:
            url = self.permalink_resolver.derive(
                rel, slug, date, group, front_matter.permalink
            )
        except ValueError as exc:
            raise FrontMatterError(str(exc), path) from exc

        comments = front_matter.comments
        return Page(
            document=document,
            title=metadata["title"],
            content=content,
            description=metadata.get("description", ""),
            excerpt=metadata.get("excerpt", ""),
            url=url,
            slug=slug,
            date=date,
            tags=front_matter.tags,
            published=front_matter.published and not path.name.startswith("_"),
            comments=self.comments_default if comments is None else comments,
            layout=layout,
            group=group,
            path=path,
            folder=folder,
            filename=path.name,
            source_type=source_type,
            toc=toc,
        )

    def _rewrite_inline_images(self, html: str, folder: str) -> str:
        def repl(match: re.Match) -> str:
            src = match.group(1)
            return match.group(0).replace(src, rewrite_image_path(src, folder))

        return IMAGE_SRC_RE.sub(repl, html)


class ContentProcessor:
    """Loads every page of a site.

    Attributes:
        site_dir: Directory containing site content.
    """

    def __init__(
        self,
        site_dir: Path,
        config: dict[str, Any] | None = None,
        content_loader: ContentLoader | None = None,
        page_builder: PageBuilder | None = None,
    ):
        self.site_dir = site_dir
        self.content_loader = content_loader or FileContentLoader(site_dir)
        self.page_builder = page_builder or DefaultPageBuilder(site_dir, config)

    def load(self, include_unpublished: bool = False) -> list[Page]:
        """Build a Page for every content file.

        Args:
            include_unpublished: Also build drafts and ``published: false``
                documents, for previewing.

        Returns:
            Pages in source path order.
        """
        pages: list[Page] = []
        for path in self.content_loader.iter_files(include_drafts=include_unpublished):
            page = self.page_builder.build(path)
            if page.published or include_unpublished:
                pages.append(page)
        return pages

"""Protocol definitions for Inkwell.

The seams between content discovery, metadata extraction, body rendering
and templating. Custom implementations can be passed to ContentProcessor
and DefaultPageBuilder.
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .content import Heading, Page


@runtime_checkable
class ContentRenderer(Protocol):
    """Renders one kind of document body to HTML."""

    @abstractmethod
    def can_render(self, path: Path) -> bool:
        ...

    @abstractmethod
    def render(self, content: str, folder: str) -> tuple[str, list[Heading]]:
        """Render a body.

        Args:
            content: Body text, front matter already removed.
            folder: Folder containing the page, for relative paths.

        Returns:
            Tuple of (rendered HTML, headings for the TOC).
        """
        ...

    @property
    @abstractmethod
    def source_type(self) -> str:
        """Source type identifier ('markdown', 'html', 'jinja')."""
        ...


@runtime_checkable
class MetadataExtractor(Protocol):
    """Derives metadata (title, date, ...) from a body and its path."""

    @abstractmethod
    def extract(self, content: str, path: Path) -> dict[str, Any]:
        ...


@runtime_checkable
class ContentLoader(Protocol):
    """Discovers content files."""

    @abstractmethod
    def iter_files(self, include_drafts: bool = False) -> list[Path]:
        ...


@runtime_checkable
class PageBuilder(Protocol):
    """Builds a Page from a content file."""

    @abstractmethod
    def build(self, path: Path) -> Page:
        ...


@runtime_checkable
class TemplateRenderer(Protocol):
    """Wraps pages in their layouts."""

    @abstractmethod
    def render_page(self, page: Page) -> str:
        ...

    @abstractmethod
    def render_string(self, template: str, context: dict[str, Any]) -> str:
        ...

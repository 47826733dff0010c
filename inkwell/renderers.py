"""Content renderers for Inkwell.

Each renderer turns one kind of document body into HTML.

Key classes:
- MarkdownRenderer: Markdown to HTML with Pygments highlighting and a TOC.
- HTMLRenderer: Passes plain HTML through.
- JinjaContentRenderer: Marks Jinja bodies for rendering by the TemplateEngine.
- RendererRegistry: Picks the renderer for a path.
"""

from __future__ import annotations

import re
from pathlib import Path

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .html_utils import escape_html
from .utils import is_html, is_markdown, is_template

MARKDOWN_PLUGINS = ["strikethrough", "footnotes", "table", "url"]


def generate_heading_id(text: str) -> str:
    """Generate a URL-friendly anchor ID from heading text."""
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-") or "section"


def rewrite_image_path(src: str, folder: str) -> str:
    """Point a relative image source at the assets/images tree.

    Absolute URLs, root-relative paths and Jinja expressions are kept as-is.
    """
    if src.startswith(("http://", "https://", "//", "/", "data:")) or "{{" in src:
        return src
    prefix = Path(folder) if folder else Path()
    normalized = (prefix / src).as_posix()
    return f"/assets/images/{normalized}"


class _BlogHTMLRenderer(mistune.HTMLRenderer):
    """mistune renderer that records headings and highlights code blocks."""

    def __init__(self, folder: str):
        super().__init__(escape=False)
        self.folder = folder
        self.headings: list = []
        self._heading_id_counts: dict[str, int] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        from .content import Heading

        base_id = generate_heading_id(text)
        count = self._heading_id_counts.get(base_id)
        if count is None:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id
        else:
            self._heading_id_counts[base_id] = count + 1
            heading_id = f"{base_id}-{count + 1}"

        plain = re.sub(r"<[^>]+>", "", text)
        self.headings.append(Heading(id=heading_id, text=plain, level=level))
        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def image(self, text: str, url: str, title: str | None = None) -> str:
        return super().image(text, rewrite_image_path(url or "", self.folder), title)

    def block_code(self, code: str, info: str | None = None) -> str:
        lang = info.split()[0] if info else ""
        if lang:
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                return highlight(code, lexer, HtmlFormatter(cssclass="highlight"))
        lang_class = f' class="language-{escape_html(lang)}"' if lang else ""
        return f"<pre><code{lang_class}>{escape_html(code)}</code></pre>\n"


class MarkdownRenderer:
    """Renders Markdown bodies to HTML and collects headings for the TOC."""

    @property
    def source_type(self) -> str:
        return "markdown"

    def can_render(self, path: Path) -> bool:
        return is_markdown(path)

    def render(self, content: str, folder: str) -> tuple[str, list]:
        """Render Markdown content to HTML.

        Args:
            content: Markdown source (front matter already removed).
            folder: Folder containing the page, for image rewriting.

        Returns:
            Tuple of (rendered HTML, list of Heading objects).
        """
        renderer = _BlogHTMLRenderer(folder)
        markdown = mistune.create_markdown(renderer=renderer, plugins=MARKDOWN_PLUGINS)
        return markdown(content), renderer.headings


class HTMLRenderer:
    """Passes plain HTML bodies through unchanged."""

    @property
    def source_type(self) -> str:
        return "html"

    def can_render(self, path: Path) -> bool:
        return is_html(path)

    def render(self, content: str, folder: str) -> tuple[str, list]:
        return content, []


class JinjaContentRenderer:
    """Handles Jinja bodies.

    The body is returned untouched here; TemplateEngine renders it once the
    page collections are known.
    """

    @property
    def source_type(self) -> str:
        return "jinja"

    def can_render(self, path: Path) -> bool:
        return is_template(path)

    def render(self, content: str, folder: str) -> tuple[str, list]:
        return content, []


class RendererRegistry:
    """Ordered list of renderers; the first one that accepts a path wins."""

    def __init__(self):
        self._renderers: list = []
        self.register(MarkdownRenderer())
        self.register(JinjaContentRenderer())
        self.register(HTMLRenderer())

    def register(self, renderer) -> None:
        self._renderers.append(renderer)

    def get_renderer(self, path: Path):
        for renderer in self._renderers:
            if renderer.can_render(path):
                return renderer
        return None


default_renderer_registry = RendererRegistry()

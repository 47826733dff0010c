"""Template rendering engine for Inkwell.

This module uses Jinja2 to wrap rendered page bodies in their layouts and to
render tag pages.

Key class:
- TemplateEngine: Loads layouts and partials and renders pages with the site context.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, Template, TemplateNotFound, select_autoescape
from markupsafe import Markup, escape
from pygments.formatters import HtmlFormatter

from .collections import PageCollection
from .content import LAYOUT_SUFFIXES, Heading, Page
from .html_utils import join_root_url
from .taxonomy import Tag, TagIndex, tag_index_html, tag_listing_html

__all__ = ["TemplateEngine", "render_toc"]


def render_toc(page: Page) -> Markup:
    """Render a page's headings as nested ``<ul>`` lists."""
    if not page.toc:
        return Markup("")
    return _render_toc_from_headings(page.toc)


def _render_toc_from_headings(headings: list[Heading]) -> Markup:
    html_parts: list[str] = []
    level_stack: list[int] = []

    for heading in headings:
        level = heading.level
        while level_stack and level_stack[-1] > level:
            level_stack.pop()
            html_parts.append("</li></ul>")

        if level_stack and level_stack[-1] == level:
            html_parts.append("</li>")
        else:
            html_parts.append("<ul>")
            level_stack.append(level)

        html_parts.append(f'<li><a href="#{escape(heading.id)}">{escape(heading.text)}</a>')

    while level_stack:
        level_stack.pop()
        html_parts.append("</li></ul>")
    return Markup("".join(html_parts))


class TemplateEngine:
    """Jinja2 rendering for pages and tag pages.

    Attributes:
        site_dir: Directory containing ``_layouts`` and ``_partials``.
        data: Global site data (``data/*.yaml``).
        config: Site configuration.
        site: Config merged with site data, exposed to templates as ``site``.
        env: Jinja2 environment.
        pages: Published pages, as given to templates.
        tags: Tag index over the published pages.
    """

    def __init__(
        self,
        site_dir: Path,
        data: dict[str, Any],
        config: dict[str, Any] | None = None,
        root_url: str | None = None,
    ):
        self.site_dir = site_dir
        self.data = data
        self.config = config or {}
        self.root_url = root_url or self.config.get("root_url") or ""
        self.env = Environment(
            loader=FileSystemLoader(
                [site_dir / "_layouts", site_dir / "_partials", site_dir]
            ),
            autoescape=select_autoescape(["html", "xml", "jinja"], default=True),
        )
        self.pages = PageCollection([])
        self.tags = TagIndex([], tag_dir=self.config.get("tag_dir", "tags"))
        self._install_globals()

    def _install_globals(self) -> None:
        self.site = {**self.config, **self.data}
        self.env.globals["site"] = self.site
        self.env.globals["data"] = self.data
        self.env.globals["pages"] = self.pages
        self.env.globals["tags"] = self.tags
        self.env.globals["url_for"] = self.url_for
        self.env.globals["render_toc"] = render_toc
        self.env.globals["pygments_css"] = self.pygments_css

    @staticmethod
    def pygments_css() -> str:
        """Return the Pygments stylesheet for highlighted code blocks."""
        return HtmlFormatter().get_style_defs(".highlight")

    def update_collections(self, pages: Iterable[Page], tags: TagIndex) -> None:
        """Set the listings visible to templates.

        Only published pages are ever exposed, whatever the caller passes.
        """
        self.pages = PageCollection(pages).published().sorted()
        self.tags = tags
        self.env.globals["pages"] = self.pages
        self.env.globals["tags"] = self.tags

    def url_for(self, path: str) -> str:
        """Generate a URL for a path, applying root_url if configured."""
        if path.startswith(("http://", "https://", "//")):
            return path
        path = path if path.startswith("/") else f"/{path}"
        return join_root_url(self.root_url, path) if self.root_url else path

    def render_page(self, page: Page) -> str:
        """Render a page body and wrap it in its layout.

        Raises:
            TemplateNotFound: If the page's layout has no template.
        """
        context = {
            "current_page": page,
            "front_matter": page.front_matter,
            "page_tags": self.tags.for_page(page),
        }
        body_html = self._render_body(page, context)
        if page.layout is None:
            return body_html
        layout = self._get_layout(page.layout)
        return layout.render(page_content=Markup(body_html), **context)

    def render_tag_page(self, tag: Tag) -> str:
        """Render the page listing every post carrying a tag.

        Uses the ``tag`` layout when present; otherwise a generated list is
        wrapped in the ``default`` layout (or returned bare).
        """
        listing = tag_listing_html(tag.pages)
        context = {
            "current_page": {"title": tag.name, "url": tag.url, "comments": False},
            "tag": tag,
        }
        return self._render_generated("tag", listing, context)

    def render_tag_index(self) -> str:
        """Render the page listing every tag."""
        listing = tag_index_html(self.tags)
        context = {
            "current_page": {"title": "Tags", "url": self.tags.url, "comments": False},
        }
        return self._render_generated("tags", listing, context)

    def render_string(self, template: str, context: dict[str, Any]) -> str:
        return self.env.from_string(template).render(**context)

    def _render_generated(self, layout: str, listing: str, context: dict[str, Any]) -> str:
        for name in (layout, "default"):
            try:
                template = self._get_layout(name)
            except TemplateNotFound:
                continue
            return template.render(page_content=Markup(listing), **context)
        return listing

    def _render_body(self, page: Page, context: dict[str, Any]) -> str:
        if page.source_type == "jinja":
            return self.env.from_string(page.content).render(**context)
        return page.content

    def _get_layout(self, layout: str) -> Template:
        # Layouts resolve under site/_layouts only.
        names = [f"_layouts/{layout}{suffix}" for suffix in LAYOUT_SUFFIXES]
        return self.env.select_template(names)

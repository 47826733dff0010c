"""Escaping and link helpers shared by renderers, feeds and the build.

Text escaping goes through MarkupSafe, the same escaper Jinja uses for
layouts, so hand-built HTML and XML fragments escape exactly like
template output.

Functions:
    escape_html: Escape text for HTML or XML.
    join_root_url: Prefix a site path with the root URL.
    absolutize_html_urls: Point root-relative links at the root URL.
"""

from __future__ import annotations

import re

from markupsafe import escape

_LINK_ATTR_RE = re.compile(r'\b(href|src|action)=(["\'])(/[^"\']*)\2')


def escape_html(text: str) -> str:
    """Escape text for HTML or XML.

    >>> escape_html("Tom & Jerry's <Blog>")
    'Tom &amp; Jerry&#39;s &lt;Blog&gt;'
    """
    return str(escape(text))


def join_root_url(root_url: str, path: str) -> str:
    """Prefix ``path`` with ``root_url``; an empty root URL leaves it alone."""
    if not root_url:
        return path
    return "{}/{}".format(root_url.rstrip("/"), path.lstrip("/"))


def absolutize_html_urls(html: str, root_url: str) -> str:
    """Rewrite href/src/action values that start with a single ``/``.

    Relative paths, fragments, protocol-relative (``//host``) and
    scheme-qualified links are kept as written.
    """
    if not root_url:
        return html

    def rewrite(match: re.Match) -> str:
        attr, quote, url = match.groups()
        if url.startswith("//"):
            return match.group(0)
        return f"{attr}={quote}{join_root_url(root_url, url)}{quote}"

    return _LINK_ATTR_RE.sub(rewrite, html)

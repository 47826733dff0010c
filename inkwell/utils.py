"""Utility functions for Inkwell.

String, path and date helpers shared by the content, taxonomy and build modules.

Key functions:
    slugify: Convert filenames to URL slugs.
    titleize: Convert filenames to human-readable titles.
    extract_date_from_name: Extract date from filename prefix.
    parse_bool: Coerce a front-matter value to a boolean.
    is_markdown, is_template, is_html: Classify content files.
    ensure_clean_dir: Ensure a directory exists and is empty.
"""

from __future__ import annotations

import re
import shutil
from datetime import datetime
from pathlib import Path

_TRUE_WORDS = frozenset({"true", "yes", "on", "1"})
_FALSE_WORDS = frozenset({"false", "no", "off", "0"})
_MD_LINK_RE = re.compile(r"!?\[([^\]]*)\]\([^)]*\)")


def _strip_date_prefix(name: str) -> str:
    parts = name.split("-")
    if len(parts) >= 4 and all(p.isdigit() for p in parts[:3]):
        return "-".join(parts[3:])
    return name


def slugify(name: str) -> str:
    """Convert filename (without extension) to slug, dropping date prefix.

    Args:
        name: Filename stem.

    Returns:
        URL-friendly slug.
    """
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", _strip_date_prefix(name))
    cleaned = cleaned.strip("-").lower()
    return cleaned or "index"


def titleize(filename: str) -> str:
    """Convert a filename to a human-readable title.

    Examples:
        >>> titleize("2024-01-15-hello-world.md")
        'Hello World'
    """
    base = _strip_date_prefix(Path(filename).stem)
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def extract_date_from_name(name: str) -> datetime | None:
    """Extract a date from a filename with YYYY-MM-DD prefix.

    Args:
        name: Filename stem (without extension).

    Returns:
        datetime if a valid date prefix is found, None otherwise.
    """
    parts = name.split("-")
    if len(parts) >= 3 and all(p.isdigit() for p in parts[:3]):
        try:
            return datetime(int(parts[0]), int(parts[1]), int(parts[2]))
        except ValueError:
            return None
    return None


def parse_bool(value: object) -> bool | None:
    """Coerce a YAML scalar to a boolean.

    Returns None when the value is not recognizably boolean, leaving the
    caller to decide whether that is an error.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return {0: False, 1: True}.get(value)
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    return None


def first_paragraph(text: str, limit: int = 160) -> str:
    """Extract and clean the first paragraph from text.

    Strips leading # (headers), HTML tags, and Jinja syntax.
    Collapses whitespace and truncates to the specified limit.
    """
    paragraphs = [p.strip() for p in text.split("\n\n") if p.strip()]
    if not paragraphs:
        return ""
    para = paragraphs[0].lstrip("# ").strip()
    para = re.sub(r"<[^>]+>", "", para)
    para = re.sub(r"\{[%#{].*?[%#}]\}", "", para)
    para = _MD_LINK_RE.sub(r"\1", para).replace("`", "")
    collapsed = " ".join(para.split())
    return collapsed[:limit]


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty."""
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)


def is_internal_path(path: Path) -> bool:
    """Check if any path component starts with an underscore.

    Internal paths hold layouts, partials and includes.
    """
    return any(part.startswith("_") for part in path.parts)


def is_markdown(path: Path) -> bool:
    return path.suffix.lower() == ".md"


def is_template(path: Path) -> bool:
    """Check for a Jinja template (.jinja or .html.jinja)."""
    return path.suffixes[-2:] == [".html", ".jinja"] or path.suffix == ".jinja"


def is_html(path: Path) -> bool:
    """Check for a plain HTML file (not a Jinja template)."""
    return path.suffix.lower() == ".html" and not is_template(path)


def extract_number_from_name(name: str) -> int | None:
    """Extract a leading number from a filename for sorting.

    Handles filenames like "01-intro" and "2024-01-15-02-part-two"; a number
    that follows a date prefix is used in the latter case.
    """
    parts = name.split("-")
    if len(parts) >= 4 and all(p.isdigit() for p in parts[:3]):
        return int(parts[3]) if parts[3].isdigit() else None
    if parts and parts[0].isdigit():
        return int(parts[0])
    return None


def strip_number_prefix(name: str) -> str:
    """Strip date and number prefixes from a filename for sorting comparison."""
    parts = name.split("-")
    if len(parts) >= 4 and all(p.isdigit() for p in parts[:3]):
        parts = parts[3:]
        if parts and parts[0].isdigit():
            parts = parts[1:]
    elif parts and parts[0].isdigit():
        parts = parts[1:]
    return "-".join(parts) if parts else name


def source_stem(path: Path) -> str:
    """Return the filename without its content suffix.

    Examples:
        >>> source_stem(Path("contact.html.jinja"))
        'contact'
        >>> source_stem(Path("2019-03-10-logging-in-.net-core.md"))
        '2019-03-10-logging-in-.net-core'
    """
    name = path.name
    for suffix in (".html.jinja", ".jinja", ".html", ".md"):
        if name.lower().endswith(suffix):
            return name[: -len(suffix)]
    return path.stem

"""Front matter parsing and metadata extraction for Inkwell.

A content document may start with a YAML front-matter block delimited by
``---`` lines. This module splits that block from the body, normalizes the
keys the renderer understands, and derives the remaining metadata (title,
date, description) from the body and filename.

Key classes:
- FrontMatter: Normalized view of the recognized front-matter keys.
- TitleExtractor, DateExtractor, DescriptionExtractor: Body/filename metadata.
- CompositeMetadataExtractor: Runs all extractors, front matter taking precedence.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

import yaml

from .utils import extract_date_from_name, first_paragraph, parse_bool, titleize

FRONT_MATTER_DELIMITER = "---"
_CLOSING_DELIMITERS = ("---", "...")
_NO_LAYOUT_WORDS = frozenset({"none", "null", "false"})
_TAG_SPLIT_RE = re.compile(r"[\s,]+")


class FrontMatterError(ValueError):
    """Raised when a document's front matter cannot be used.

    Attributes:
        path: Source file the front matter came from, when known.
        message: Human-readable description of the problem.
    """

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}" if path else message)


def split_front_matter(
    text: str, path: Path | None = None
) -> tuple[dict[str, Any], str]:
    """Split a YAML front-matter block from the document body.

    Args:
        text: Raw file content.
        path: Source path, used for error messages.

    Returns:
        Tuple of (front matter mapping, body). Documents that do not open
        with a ``---`` line have empty front matter and the whole text as body.

    Raises:
        FrontMatterError: If the block is unterminated, not valid YAML, or
            not a mapping.
    """
    lines = text.lstrip("\ufeff").splitlines(keepends=True)
    if not lines or lines[0].rstrip() != FRONT_MATTER_DELIMITER:
        return {}, text

    for index, line in enumerate(lines[1:], start=1):
        if line.rstrip() in _CLOSING_DELIMITERS:
            break
    else:
        raise FrontMatterError("front matter block is never closed", path)

    block = "".join(lines[1:index])
    body = "".join(lines[index + 1 :])
    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        problem = getattr(exc, "problem", None) or str(exc)
        mark = getattr(exc, "problem_mark", None)
        # Line numbers are reported relative to the file, not the block.
        where = f" on line {mark.line + 2}" if mark is not None else ""
        raise FrontMatterError(f"invalid YAML{where}: {problem}", path) from exc
    if data is None:
        return {}, body
    if not isinstance(data, dict):
        raise FrontMatterError(
            f"front matter must be a mapping, got {type(data).__name__}", path
        )
    return {str(key): value for key, value in data.items()}, body


def _coerce_datetime(value: Any, path: Path | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            try:
                parsed = datetime.strptime(text, "%Y-%m-%d %H:%M:%S %z")
            except ValueError:
                raise FrontMatterError(f"invalid date: {value!r}", path) from None
    else:
        raise FrontMatterError(f"invalid date: {value!r}", path)
    # Pages are compared with each other, so every date is naive UTC.
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _coerce_flag(key: str, value: Any, path: Path | None) -> bool:
    flag = parse_bool(value)
    if flag is None:
        raise FrontMatterError(f"'{key}' must be true or false, got {value!r}", path)
    return flag


def _coerce_tags(value: Any, path: Path | None) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [tag for tag in _TAG_SPLIT_RE.split(value) if tag]
    if isinstance(value, (list, tuple)):
        tags = []
        for item in value:
            if isinstance(item, (dict, list)):
                raise FrontMatterError(f"tags must be strings, got {item!r}", path)
            text = str(item).strip()
            if text:
                tags.append(text)
        return tags
    raise FrontMatterError(f"tags must be a list or a string, got {value!r}", path)


def _coerce_text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value).strip()


@dataclass
class FrontMatter:
    """Normalized front matter.

    ``None`` means a key was not set, so site defaults and body-derived
    values still apply.

    Attributes:
        data: The raw mapping, exposed to templates unchanged.
        layout: Explicitly requested layout name.
        layout_disabled: True when the document asked for no layout at all.
        published: False keeps the document out of every listing.
        comments: Whether the comment widget is enabled.
        tags: Tags in authored order, duplicates kept.
    """

    data: dict[str, Any] = field(default_factory=dict)
    layout: str | None = None
    layout_disabled: bool = False
    title: str | None = None
    permalink: str | None = None
    published: bool = True
    comments: bool | None = None
    tags: list[str] = field(default_factory=list)
    date: datetime | None = None
    description: str | None = None

    @classmethod
    def from_mapping(
        cls, data: dict[str, Any], path: Path | None = None
    ) -> FrontMatter:
        """Validate and normalize a raw front-matter mapping.

        Raises:
            FrontMatterError: If a recognized key holds an unusable value.
        """
        matter = cls(data=dict(data))

        if "layout" in data:
            layout = data["layout"]
            if layout is None or layout is False:
                matter.layout_disabled = True
            elif isinstance(layout, str) and layout.strip().lower() in _NO_LAYOUT_WORDS:
                matter.layout_disabled = True
            elif isinstance(layout, str) and layout.strip():
                matter.layout = layout.strip()
            else:
                raise FrontMatterError(f"invalid layout: {layout!r}", path)

        if "published" in data:
            matter.published = _coerce_flag("published", data["published"], path)

        # 'comments' wins when an author wrote both spellings.
        for key in ("comments", "comment"):
            if key in data:
                matter.comments = _coerce_flag(key, data[key], path)
                break

        matter.title = _coerce_text(data.get("title")) or None
        matter.permalink = _coerce_text(data.get("permalink")) or None
        matter.description = _coerce_text(data.get("description")) or None
        matter.tags = _coerce_tags(data.get("tags"), path)
        matter.date = _coerce_datetime(data.get("date"), path)
        return matter

    def overrides(self) -> dict[str, Any]:
        """Return the metadata values that replace body-derived ones."""
        values = {
            "title": self.title,
            "date": self.date,
            "description": self.description,
        }
        return {key: value for key, value in values.items() if value is not None}


class TitleExtractor:
    """Takes the first level-1 heading, falling back to the filename."""

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        for line in content.splitlines():
            stripped = line.strip()
            if stripped.startswith("# "):
                return {"title": stripped[2:].strip()}
        return {"title": titleize(path.name)}


class DateExtractor:
    """Reads a YYYY-MM-DD filename prefix, falling back to the file mtime."""

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        found = extract_date_from_name(path.stem)
        if found is None:
            found = datetime.fromtimestamp(path.stat().st_mtime)
        return {"date": found}


class DescriptionExtractor:
    """Extracts description and excerpt from content.

    The excerpt is the first real paragraph of a Markdown body (headings,
    images, code fences and rules are skipped). The description is that
    paragraph reduced to plain text and truncated to 160 characters.
    """

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        if path.suffix.lower() == ".md":
            excerpt = self._extract_excerpt(content)
            return {"description": first_paragraph(excerpt), "excerpt": excerpt}
        return {"description": first_paragraph(content), "excerpt": ""}

    def _extract_excerpt(self, text: str) -> str:
        paragraphs = [p.strip() for p in text.split("\n\n") if p.strip()]
        for para in paragraphs:
            if para.startswith(("#", "![", "```", "~~~", "---")):
                continue
            return " ".join(para.split())
        return ""


class CompositeMetadataExtractor:
    """Combines front matter with the body and filename extractors.

    The front matter is split off first; the remaining extractors see only
    the body. Values set in front matter win over extracted ones.
    """

    def __init__(self, extractors: list | None = None):
        if extractors is None:
            self._extractors = [
                TitleExtractor(),
                DateExtractor(),
                DescriptionExtractor(),
            ]
        else:
            self._extractors = list(extractors)

    def add_extractor(self, extractor) -> None:
        self._extractors.append(extractor)

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        """Extract all metadata from a raw document.

        Returns:
            Dictionary with 'front_matter' (FrontMatter), 'body' and every
            key produced by the registered extractors.

        Raises:
            FrontMatterError: If the front matter is malformed.
        """
        raw, body = split_front_matter(content, path)
        front_matter = FrontMatter.from_mapping(raw, path)
        result: dict[str, Any] = {"body": body}
        for extractor in self._extractors:
            result.update(extractor.extract(body, path))
        result.update(front_matter.overrides())
        result["front_matter"] = front_matter
        return result


default_metadata_extractor = CompositeMetadataExtractor()

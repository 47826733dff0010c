"""Site building for Inkwell.

Loads configuration and data, turns content documents into pages, renders
them through their layouts, writes tag pages, copies assets and generates
feeds.

Key functions:
- build_site: Build the whole site.
- check_site: Report authoring defects without writing anything.
- load_config: Load inkwell.yaml merged over the defaults.
- load_data: Load data/*.yaml.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from jinja2 import Environment, FileSystemLoader, TemplateSyntaxError

from .assets import AssetPipeline
from .content import ContentProcessor, LayoutNotFoundError, Page, output_path_for
from .extractors import FrontMatterError
from .feeds import create_default_feed_registry
from .html_utils import absolutize_html_urls
from .taxonomy import TagIndex, tag_slug
from .templates import TemplateEngine
from .utils import ensure_clean_dir, parse_bool

CONFIG_FILENAME = "inkwell.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "output_dir": "output",
    "port": 4000,
    "root_url": "",
    "comments": False,
    "tag_pages": True,
    "tag_dir": "tags",
    "permalinks": {},
    "feed_limit": 20,
    "feed_group": None,
}


class ConfigError(ValueError):
    """Raised when inkwell.yaml or a data file cannot be used."""


class BuildError(Exception):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


@dataclass
class Problem:
    """An authoring defect found by check_site."""

    path: Path
    message: str


@dataclass
class BuildResult:
    """Result of a site build.

    Attributes:
        pages: Every page that was rendered.
        output_dir: Directory the site was built into.
        data: Global site data.
        tags: Tag index over the published pages.
        warnings: Non-fatal problems worth showing to the author.
    """

    pages: list[Page]
    output_dir: Path
    data: dict[str, Any]
    tags: TagIndex
    warnings: list[str] = field(default_factory=list)


def _read_yaml(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path}: invalid YAML: {exc}") from exc


def load_config(project_root: Path) -> dict[str, Any]:
    """Load inkwell.yaml merged over DEFAULT_CONFIG.

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    config = DEFAULT_CONFIG.copy()
    config["permalinks"] = {}
    config_path = project_root / CONFIG_FILENAME
    if not config_path.exists():
        return config
    loaded = _read_yaml(config_path)
    if loaded is None:
        return config
    if not isinstance(loaded, dict):
        raise ConfigError(f"{config_path}: expected a mapping at the top level")
    if not isinstance(loaded.get("permalinks") or {}, dict):
        raise ConfigError(f"{config_path}: 'permalinks' must map groups to patterns")
    config.update(loaded)
    config["permalinks"] = dict(config.get("permalinks") or {})
    for key in ("comments", "tag_pages"):
        flag = parse_bool(config[key])
        if flag is None:
            raise ConfigError(f"{config_path}: '{key}' must be true or false")
        config[key] = flag
    return config


def load_data(project_root: Path) -> dict[str, Any]:
    """Load site data from YAML files in the data directory.

    ``site.yaml`` is merged at the top level; every other file is stored
    under its stem.
    """
    data_dir = project_root / "data"
    data: dict[str, Any] = {}
    if not data_dir.exists():
        return data
    for path in sorted(data_dir.glob("*.yaml")):
        payload = _read_yaml(path)
        if payload is None:
            continue
        if path.name == "site.yaml":
            if not isinstance(payload, dict):
                raise ConfigError(f"{path}: expected a mapping at the top level")
            data.update(payload)
        else:
            data[path.stem] = payload
    return data


def _load_pages(processor: ContentProcessor, include_unpublished: bool) -> list[Page]:
    try:
        return processor.load(include_unpublished=include_unpublished)
    except (FrontMatterError, LayoutNotFoundError) as exc:
        raise BuildError(exc.path or processor.site_dir, exc.message, exc) from exc


def _duplicate_urls(pages: list[Page], reserved: dict[str, str]) -> list[tuple[Page, str]]:
    """Return (page, other source) pairs for every output path claimed twice."""
    claimed = {output_path_for(url): label for url, label in reserved.items()}
    duplicates: list[tuple[Page, str]] = []
    for page in pages:
        target = page.output_path
        if target in claimed:
            duplicates.append((page, claimed[target]))
        else:
            claimed[target] = page.document.path
    return duplicates


def _tag_urls(tags: TagIndex, config: dict[str, Any]) -> dict[str, str]:
    if not config.get("tag_pages", True) or not tags:
        return {}
    urls = {tag.url: f"tag page '{tag.name}'" for tag in tags.values()}
    urls[tags.url] = "tag index"
    return urls


def _tag_name_warnings(pages: list[Page]) -> list[str]:
    spellings: dict[str, set[str]] = {}
    for page in pages:
        if page.published:
            for name in page.tags:
                spellings.setdefault(tag_slug(name), set()).add(name)
    return [
        f"Tags {', '.join(repr(n) for n in sorted(names))} share the slug '{slug}'"
        for slug, names in sorted(spellings.items())
        if len(names) > 1
    ]


def build_site(
    project_root: Path,
    include_unpublished: bool = False,
    root_url: str | None = None,
    clean_output: bool = True,
    output_dir_override: Path | None = None,
) -> BuildResult:
    """Build the entire static site.

    Every document is loaded and validated before the output directory is
    touched, so a failed build leaves the previous output in place.

    Args:
        project_root: Root directory of the project.
        include_unpublished: Also render drafts and ``published: false``
            documents. They still never appear in listings, tags or feeds.
        root_url: Optional base URL to absolutize links with.
        clean_output: Whether to wipe the output directory before writing.
        output_dir_override: Write here instead of the configured output_dir.

    Returns:
        BuildResult describing the build.

    Raises:
        BuildError: If a document, layout or template is broken, or two
            documents claim the same URL.
        ConfigError: If the configuration or data files are invalid.
    """
    config = load_config(project_root)
    if root_url is not None:
        config["root_url"] = root_url
    resolved_root = str(config.get("root_url") or "")
    output_dir = output_dir_override or (project_root / config.get("output_dir", "output"))
    site_dir = project_root / "site"
    if not site_dir.exists():
        raise FileNotFoundError(f"Expected site directory at {site_dir}")

    data = load_data(project_root)
    pages = _load_pages(ContentProcessor(site_dir, config), include_unpublished)
    tags = TagIndex.build(pages, tag_dir=str(config.get("tag_dir", "tags")))
    tag_urls = _tag_urls(tags, config)
    duplicates = _duplicate_urls(pages, tag_urls)
    if duplicates:
        page, other = duplicates[0]
        raise BuildError(page.path, f"URL {page.url} is also produced by {other}")

    warnings = _tag_name_warnings(pages)
    for page in pages:
        if page.layout is None and "layout" not in page.front_matter:
            warnings.append(f"{page.document.path}: no layout found; rendering body only")

    if clean_output:
        ensure_clean_dir(output_dir)
    else:
        output_dir.mkdir(parents=True, exist_ok=True)

    engine = TemplateEngine(site_dir, data, config, root_url=resolved_root)
    engine.update_collections(pages, tags)
    for page in pages:
        rendered = _render(page.path, lambda page=page: engine.render_page(page))
        _write_output(output_dir, page.output_path, rendered, resolved_root)

    if tag_urls:
        layouts_dir = site_dir / "_layouts"
        for tag in tags.values():
            rendered = _render(layouts_dir, lambda tag=tag: engine.render_tag_page(tag))
            _write_output(output_dir, output_path_for(tag.url), rendered, resolved_root)
        rendered = _render(layouts_dir, engine.render_tag_index)
        _write_output(output_dir, output_path_for(tags.url), rendered, resolved_root)

    AssetPipeline(project_root, output_dir).run()
    create_default_feed_registry(config).generate_all(output_dir, pages, engine.site)
    return BuildResult(
        pages=pages, output_dir=output_dir, data=data, tags=tags, warnings=warnings
    )


def _render(source_path: Path, render) -> str:
    try:
        return render()
    except TemplateSyntaxError as exc:
        raise BuildError(
            Path(exc.filename) if exc.filename else source_path,
            f"Template syntax error on line {exc.lineno}: {exc.message}",
            exc,
        ) from exc
    except Exception as exc:
        raise BuildError(source_path, _format_error_message(exc), exc) from exc


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message."""
    error_type = type(exc).__name__
    error_msg = str(exc)
    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type in ("TemplateNotFound", "TemplatesNotFound"):
        return f"Template not found: {error_msg}"
    if error_type == "TypeError":
        return f"Type error: {error_msg}"
    if error_type == "AttributeError":
        return f"Attribute error: {error_msg}"
    return f"{error_type}: {error_msg}"


def _write_output(output_dir: Path, rel_path: str, rendered: str, root_url: str) -> None:
    if root_url:
        rendered = absolutize_html_urls(rendered, root_url)
    target = output_dir / rel_path
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(rendered, encoding="utf-8")


def check_site(project_root: Path) -> list[Problem]:
    """Find authoring defects without writing any output.

    Reports invalid configuration, malformed front matter, missing layouts,
    layouts with template syntax errors and URLs claimed by more than one
    published document. Drafts are checked too.
    """
    try:
        config = load_config(project_root)
        load_data(project_root)
    except ConfigError as exc:
        return [Problem(project_root / CONFIG_FILENAME, str(exc))]

    site_dir = project_root / "site"
    if not site_dir.exists():
        return [Problem(site_dir, "site directory is missing")]

    problems: list[Problem] = []
    processor = ContentProcessor(site_dir, config)
    pages: list[Page] = []
    for path in processor.content_loader.iter_files(include_drafts=True):
        try:
            page = processor.page_builder.build(path)
        except (FrontMatterError, LayoutNotFoundError) as exc:
            problems.append(Problem(path, exc.message))
            continue
        if page.published:
            pages.append(page)

    tags = TagIndex.build(pages, tag_dir=str(config.get("tag_dir", "tags")))
    for page, other in _duplicate_urls(pages, _tag_urls(tags, config)):
        problems.append(Problem(page.path, f"URL {page.url} is also produced by {other}"))

    layouts_dir = site_dir / "_layouts"
    if layouts_dir.exists():
        env = Environment(loader=FileSystemLoader([layouts_dir, site_dir / "_partials"]))
        for layout in sorted(p for p in layouts_dir.rglob("*") if p.is_file()):
            try:
                env.parse(layout.read_text(encoding="utf-8"))
            except TemplateSyntaxError as exc:
                problems.append(
                    Problem(layout, f"Template syntax error on line {exc.lineno}: {exc.message}")
                )
    return problems

"""Command-line interface for Inkwell.

Commands:
- new: Scaffold a new Inkwell blog.
- build: Build the site into the output directory.
- check: Report authoring defects without building.
- serve: Run development server with live reload.
- post: Create a new post interactively.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from datetime import datetime
from pathlib import Path

import click
import questionary
import yaml

from . import __version__
from .utils import is_markdown, slugify, source_stem

_SCAFFOLD_FILES: dict[str, str] = {
    "inkwell.yaml": """\
output_dir: output
port: 4000
root_url: ""
comments: true
tag_pages: true
tag_dir: tags
permalinks:
  posts: /:year/:month/:day/:slug/
feed_group: posts
""",
    "data/site.yaml": """\
title: My Inkwell Blog
description: Notes and tutorials.
url: https://example.com
author: Your Name
""",
    "site/_layouts/default.html.jinja": """\
<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>{{ current_page.title }} | {{ site.title }}</title>
  <link rel="stylesheet" href="{{ url_for('/assets/css/site.css') }}">
</head>
<body>
  {% include "header.html.jinja" %}
  <main>
    {% block content %}{{ page_content }}{% endblock %}
  </main>
</body>
</html>
""",
    "site/_layouts/post.html.jinja": """\
{% extends "_layouts/default.html.jinja" %}
{% block content %}
<article>
  <h1>{{ current_page.title }}</h1>
  <time datetime="{{ current_page.date.strftime('%Y-%m-%d') }}">{{ current_page.date.strftime('%B %d, %Y') }}</time>
  {{ page_content }}
  {% if page_tags %}
  <ul class="tags">
    {% for tag in page_tags %}<li><a href="{{ url_for(tag.url) }}">{{ tag.name }}</a></li>{% endfor %}
  </ul>
  {% endif %}
</article>
{% if current_page.comments %}
<section id="comments"></section>
{% endif %}
{% endblock %}
""",
    "site/_layouts/tag.html.jinja": """\
<!doctype html>
<html lang="en">
<head><meta charset="utf-8"><title>Posts tagged {{ tag.name }} | {{ site.title }}</title></head>
<body>
  {% include "header.html.jinja" %}
  <main>
    <h1>Posts tagged {{ tag.name }}</h1>
    {{ page_content }}
  </main>
</body>
</html>
""",
    "site/_layouts/tags.html.jinja": """\
<!doctype html>
<html lang="en">
<head><meta charset="utf-8"><title>Tags | {{ site.title }}</title></head>
<body>
  {% include "header.html.jinja" %}
  <main>
    <h1>Tags</h1>
    {{ page_content }}
  </main>
</body>
</html>
""",
    "site/_partials/header.html.jinja": """\
<header>
  <a href="{{ url_for('/') }}">{{ site.title }}</a>
  <nav>
    <a href="{{ url_for('/about/') }}">About</a>
    <a href="{{ url_for(tags.url) }}">Tags</a>
  </nav>
</header>
""",
    "site/index.html.jinja": """\
---
title: Home
layout: default
---
<h1>{{ site.title }}</h1>
<ul class="posts">
{% for post in pages.group("posts") %}
  <li>
    <time datetime="{{ post.date.strftime('%Y-%m-%d') }}">{{ post.date.strftime('%b %d, %Y') }}</time>
    <a href="{{ url_for(post.url) }}">{{ post.title }}</a>
  </li>
{% endfor %}
</ul>
""",
    "site/about.md": """\
---
layout: default
title: About
permalink: /about/
comments: false
---
# About

Write a few words about yourself here.
""",
    "site/posts/{date}-hello-world.md": """\
---
layout: post
title: Hello World
tags: [general]
published: true
---
Welcome to your new blog. Edit or delete this post, then run `inkwell serve`.
""",
    "assets/css/site.css": """\
body { font-family: system-ui, sans-serif; max-width: 42rem; margin: 2rem auto; }
header nav a { margin-left: 1rem; }
""",
}


@click.group()
@click.version_option(version=__version__, prog_name="inkwell")
def cli():
    """Inkwell static blog generator."""


@cli.command()
@click.argument("name")
def new(name: str):
    """Scaffold a new Inkwell blog."""
    target = Path(name).resolve()
    if target.exists() and any(target.iterdir()):
        raise click.ClickException(
            f"Refusing to initialize into non-empty directory: {target}"
        )
    _scaffold(target)
    click.echo(f"New Inkwell site created at {target}")


@cli.command()
@click.option("--drafts", is_flag=True, help="Also render drafts and unpublished posts")
def build(drafts: bool):
    """Build the site into the output directory."""
    project_root = Path.cwd()
    from .build import BuildError, ConfigError, build_site

    try:
        result = build_site(project_root, include_unpublished=drafts)
    except BuildError as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  File: {_relative(exc.source_path, project_root)}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None
    except (ConfigError, FileNotFoundError) as exc:
        raise click.ClickException(str(exc)) from exc
    for warning in result.warnings:
        click.echo(click.style(f"Warning: {warning}", fg="yellow"), err=True)
    click.echo(f"Built {len(result.pages)} pages into {result.output_dir}")


@cli.command()
def check():
    """Report authoring defects without building."""
    project_root = Path.cwd()
    from .build import check_site

    problems = check_site(project_root)
    if not problems:
        click.echo("No problems found.")
        return
    for problem in problems:
        click.echo(
            f"{click.style(str(_relative(problem.path, project_root)), fg='yellow')}: "
            f"{problem.message}",
            err=True,
        )
    click.echo(click.style(f"{len(problems)} problem(s) found.", fg="red", bold=True), err=True)
    raise SystemExit(1)


@cli.command()
@click.option("--drafts", is_flag=True, help="Also render drafts and unpublished posts")
@click.option(
    "--port",
    type=int,
    required=False,
    help="Port to run the dev server (overrides inkwell.yaml)",
)
@click.option(
    "--ws-port",
    type=int,
    required=False,
    help="Port for the live reload websocket server (overrides inkwell.yaml ws_port)",
)
def serve(drafts: bool, port: int | None, ws_port: int | None):
    """Run dev server with live reload."""
    project_root = Path.cwd()
    from .build import BuildError, ConfigError
    from .server import DevServer

    try:
        server = DevServer(project_root, http_port=port, ws_port=ws_port)
        server.start(include_unpublished=drafts)
    except (BuildError, ConfigError, FileNotFoundError) as exc:
        raise click.ClickException(str(exc)) from exc


@cli.command()
def post():
    """Create a new post interactively.

    The post starts unpublished; set ``published: true`` when it is ready.
    """
    project_root = Path.cwd()
    site_dir = project_root / "site"
    if not site_dir.exists():
        raise click.ClickException(
            "No site/ directory found. Run this command from an Inkwell project root."
        )

    folder = questionary.select(
        "Select folder:",
        choices=_get_content_folders(site_dir),
        style=_questionary_style(),
    ).ask()
    if folder is None:
        raise click.Abort()

    title = questionary.text(
        "Title:",
        validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
        style=_questionary_style(),
    ).ask()
    if title is None:
        raise click.Abort()
    title = title.strip()

    raw_tags = questionary.text(
        "Tags (comma separated, optional):",
        style=_questionary_style(),
    ).ask()
    if raw_tags is None:
        raise click.Abort()

    add_date = questionary.confirm(
        "Prefix with today's date? (YYYY-MM-DD-)",
        default=True,
        style=_questionary_style(),
    ).ask()
    if add_date is None:
        raise click.Abort()

    slug = slugify(title)
    filename = f"{datetime.now().strftime('%Y-%m-%d-') if add_date else ''}{slug}.md"
    target_dir = site_dir if folder == ". (root)" else site_dir / folder
    target_path = target_dir / filename

    if target_path.exists():
        raise click.ClickException(
            f"File already exists: {target_path.relative_to(project_root)}"
        )
    existing = _get_existing_slugs(target_dir)
    if slug in existing:
        raise click.ClickException(
            f"A file with slug '{slug}' already exists: {existing[slug]}"
        )

    target_dir.mkdir(parents=True, exist_ok=True)
    target_path.write_text(_post_source(title, _split_tags(raw_tags)), encoding="utf-8")
    click.echo(f"Created {target_path.relative_to(project_root)}")


def _post_source(title: str, tags: list[str]) -> str:
    front_matter = {"layout": "post", "title": title, "tags": tags, "published": False}
    dumped = yaml.safe_dump(front_matter, sort_keys=False, allow_unicode=True)
    return f"---\n{dumped}---\n\n"


def _split_tags(raw: str) -> list[str]:
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def _get_content_folders(site_dir: Path) -> list[str]:
    """List content folders in site/, skipping ``_layouts``, ``_partials`` etc."""
    folders = sorted(
        path.name
        for path in site_dir.iterdir()
        if path.is_dir() and not path.name.startswith(("_", "."))
    )
    folders.insert(0, ". (root)")
    return folders


def _get_existing_slugs(folder: Path) -> dict[str, str]:
    """Map slug to filename for the markdown files in a folder."""
    slugs: dict[str, str] = {}
    if folder.exists():
        for f in sorted(folder.iterdir()):
            if f.is_file() and is_markdown(f):
                slugs.setdefault(slugify(source_stem(f)), f.name)
    return slugs


def _relative(path: Path, root: Path) -> Path:
    try:
        return path.relative_to(root)
    except ValueError:
        return path


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()


def _scaffold(root: Path) -> None:
    """Write the starter files for a new project.

    Args:
        root: Root directory for the new project.
    """
    today = datetime.now().strftime("%Y-%m-%d")
    for rel_path, content in _SCAFFOLD_FILES.items():
        dest_path = root / rel_path.format(date=today)
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        dest_path.write_text(content, encoding="utf-8")
    _try_git_init(root)


def _try_git_init(root: Path) -> None:
    """Initialize a git repository if git is available."""
    if os.environ.get("INKWELL_SKIP_GIT_INIT") == "1":
        return
    git_bin = shutil.which("git")
    if not git_bin:
        return
    try:
        subprocess.run(
            [git_bin, "init"],
            cwd=root,
            check=True,
            capture_output=True,
        )
    except (subprocess.CalledProcessError, OSError) as exc:
        click.echo(f"Skipped git init: {exc}", err=True)

from datetime import datetime
from pathlib import Path

import pytest

from inkwell.content import Document, Page
from inkwell.utils import slugify, source_stem


def _make_page(
    name: str = "post.md",
    *,
    group: str = "posts",
    date: datetime = datetime(2024, 1, 1),
    tags=(),
    published: bool = True,
    title: str | None = None,
    url: str | None = None,
    layout: str | None = "default",
    content: str = "<p>Body</p>",
    source_type: str = "markdown",
    description: str = "",
    comments: bool = False,
    front_matter: dict | None = None,
) -> Page:
    path = Path("/site") / group / name if group else Path("/site") / name
    slug = slugify(source_stem(path))
    rel = f"{group}/{name}" if group else name
    if url is None:
        url = f"/{group}/{slug}/" if group else f"/{slug}/"
    return Page(
        document=Document(path=rel, front_matter=front_matter or {}, body=content),
        title=title or slug.replace("-", " ").title(),
        content=content,
        description=description,
        excerpt="",
        url=url,
        slug=slug,
        date=date,
        tags=list(tags),
        published=published,
        comments=comments,
        layout=layout,
        group=group,
        path=path,
        folder=group,
        filename=name,
        source_type=source_type,
    )


@pytest.fixture
def make_page():
    return _make_page

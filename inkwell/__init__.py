"""Inkwell static blog generator.

Inkwell turns a tree of Markdown, HTML and Jinja documents with YAML front
matter into a static blog: pages wrapped in layouts, a tag taxonomy, RSS and
sitemap feeds. Documents marked ``published: false`` (or drafts whose
filename starts with ``_``) never appear in listings, tags or feeds.

The main entry point is the CLI module, which provides commands for
scaffolding, building, checking and serving a site.

Content flows through small, replaceable pieces:
- Loaders discover files, extractors read front matter and metadata.
- Renderers turn bodies into HTML, the template engine applies layouts.
- The build validates every document before anything is written.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"

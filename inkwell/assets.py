"""Static asset handling for Inkwell.

Files under ``assets/`` are copied to ``<output>/assets/``. JavaScript is
minified with rjsmin on the way; everything else is copied unchanged.

Key classes:
- JSProcessor: Minifies JavaScript files.
- StaticAssetProcessor: Copies any file unchanged.
- AssetPipeline: Walks the assets tree and dispatches to the processors.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from rjsmin import jsmin


class JSProcessor:
    """Minifies ``.js`` files with rjsmin."""

    def can_process(self, path: Path) -> bool:
        return path.suffix.lower() == ".js" and not path.name.endswith(".min.js")

    def process(self, source: Path, dest: Path) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)
        minified = jsmin(source.read_text(encoding="utf-8"))
        dest.write_text(minified, encoding="utf-8")


class StaticAssetProcessor:
    """Fallback processor: copies files unchanged."""

    def can_process(self, path: Path) -> bool:
        return True

    def process(self, source: Path, dest: Path) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, dest)


class AssetPipeline:
    """Copies and processes the project's static assets.

    Attributes:
        assets_dir: Directory containing source assets.
        output_dir: Directory the site is built into.
        processors: Processors tried in order; the first match wins.
    """

    def __init__(self, project_root: Path, output_dir: Path, processors: list | None = None):
        self.assets_dir = project_root / "assets"
        self.output_dir = output_dir
        self.processors = processors or [JSProcessor(), StaticAssetProcessor()]

    def run(self) -> list[Path]:
        """Process every asset.

        Returns:
            Paths of the written files, relative to the output directory.
        """
        if not self.assets_dir.exists():
            return []
        target = self.output_dir / "assets"
        written: list[Path] = []
        for item in sorted(self.assets_dir.rglob("*")):
            if item.is_dir() or item.name.startswith("."):
                continue
            dest = target / item.relative_to(self.assets_dir)
            for processor in self.processors:
                if processor.can_process(item):
                    processor.process(item, dest)
                    written.append(dest.relative_to(self.output_dir))
                    break
        return written

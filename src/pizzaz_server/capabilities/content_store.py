"""Widget content store.

Widget markup is produced by an external frontend build and dropped into an
assets directory. It is read exactly once, when the capability registry is
built.

Lookup order for a component named ``pizzaz-list``:
- ``assets/pizzaz-list.html``
- the lexicographically last ``assets/pizzaz-list-*.html`` (hashed build output)
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..errors import StartupError

logger = logging.getLogger(__name__)

BUILD_HINT = 'Run "pnpm run build" to generate the assets.'


class ContentStore:
    """Read-only view over a directory of built widget HTML files."""

    def __init__(self, assets_dir: Path) -> None:
        self.assets_dir = Path(assets_dir).resolve()

    def ensure_available(self) -> None:
        """Fail fast if the assets directory itself is missing."""
        if not self.assets_dir.is_dir():
            raise StartupError(
                f"Widget assets not found. Expected directory {self.assets_dir}. {BUILD_HINT}",
                location=str(self.assets_dir),
            )

    def locate(self, component: str) -> Path | None:
        """Find the HTML file for a component, or None."""
        direct = self.assets_dir / f"{component}.html"
        if direct.is_file():
            return direct

        candidates = sorted(
            p for p in self.assets_dir.glob(f"{component}-*.html") if p.is_file()
        )
        return candidates[-1] if candidates else None

    def read_widget_html(self, component: str, capability: str | None = None) -> str:
        """Read a component's markup.

        Raises:
            StartupError: If the directory or the component's file is missing
        """
        self.ensure_available()

        path = self.locate(component)
        if path is None:
            raise StartupError(
                f'Widget HTML for "{component}" not found in {self.assets_dir}. {BUILD_HINT}',
                capability=capability or component,
                location=str(self.assets_dir / f"{component}.html"),
            )

        html = path.read_text(encoding="utf-8")
        if not html:
            raise StartupError(
                f'Widget HTML for "{component}" at {path} is empty. {BUILD_HINT}',
                capability=capability or component,
                location=str(path),
            )

        logger.debug(f"Loaded widget {component} from {path.name} ({len(html)} chars)")
        return html

"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from pizzaz_server.capabilities import PIZZAZ_WIDGETS, CapabilityRegistry, build_registry
from pizzaz_server.config import ReplyMode, ServerConfig


@pytest.fixture(scope="module")
def anyio_backend():
    """Configure anyio to use asyncio backend."""
    return "asyncio"


def write_widget_assets(assets_dir: Path) -> Path:
    """Write one HTML file per declared widget component."""
    assets_dir.mkdir(parents=True, exist_ok=True)
    for spec in PIZZAZ_WIDGETS:
        (assets_dir / f"{spec.component}.html").write_text(
            f'<div id="{spec.component}-root"></div>', encoding="utf-8"
        )
    return assets_dir


@pytest.fixture
def assets_dir(tmp_path: Path) -> Path:
    """Assets directory containing markup for every widget."""
    return write_widget_assets(tmp_path / "assets")


@pytest.fixture
def registry(assets_dir: Path) -> CapabilityRegistry:
    """Capability registry built from the test assets."""
    return build_registry(assets_dir)


@pytest.fixture
def config(assets_dir: Path) -> ServerConfig:
    """Server config with a short heartbeat for tests."""
    return ServerConfig(assets_dir=assets_dir, heartbeat_interval=0.05)


@pytest.fixture
def inline_config(assets_dir: Path) -> ServerConfig:
    """Server config that returns responses in the POST body."""
    return ServerConfig(assets_dir=assets_dir, heartbeat_interval=0.05, reply_mode=ReplyMode.INLINE)

"""Server configuration.

Values come from environment variables (``from_env``) and may be overridden
by CLI options. The MCP_PORT variable name matches the combined front-door
deployment that proxies to this server.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any


class WidgetEmbedding(str, Enum):
    """How tool results point at their widget markup."""

    REFERENCE = "reference"  # template URI only
    INLINE = "inline"  # template URI plus the markup itself


class ReplyMode(str, Enum):
    """Where the response to a pull request is delivered."""

    STREAM = "stream"  # 202 on the POST, envelope on the push channel
    INLINE = "inline"  # envelope in the POST response body


DEFAULT_HEARTBEAT_INTERVAL = 15.0
DEFAULT_MAX_BODY_BYTES = 4 * 1024 * 1024


@dataclass
class ServerConfig:
    """Configuration for the MCP server."""

    host: str = "0.0.0.0"
    port: int = 18000
    assets_dir: Path = field(default_factory=lambda: Path.cwd() / "assets")

    # Endpoints
    sse_path: str = "/mcp"
    post_path: str = "/mcp/messages"

    # Push channel
    heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL

    # Pull channel
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES

    # Behavior forks
    widget_embedding: WidgetEmbedding = WidgetEmbedding.REFERENCE
    reply_mode: ReplyMode = ReplyMode.STREAM

    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.assets_dir = Path(self.assets_dir)
        self.widget_embedding = WidgetEmbedding(self.widget_embedding)
        self.reply_mode = ReplyMode(self.reply_mode)
        if self.heartbeat_interval <= 0:
            raise ValueError(f"heartbeat_interval must be positive, got {self.heartbeat_interval}")
        if self.max_body_bytes <= 0:
            raise ValueError(f"max_body_bytes must be positive, got {self.max_body_bytes}")

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> ServerConfig:
        """Build a config from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        kwargs: dict[str, Any] = {}

        if "PIZZAZ_HOST" in env:
            kwargs["host"] = env["PIZZAZ_HOST"]
        if "MCP_PORT" in env:
            kwargs["port"] = int(env["MCP_PORT"])
        if "PIZZAZ_ASSETS_DIR" in env:
            kwargs["assets_dir"] = Path(env["PIZZAZ_ASSETS_DIR"])
        if "PIZZAZ_SSE_PATH" in env:
            kwargs["sse_path"] = env["PIZZAZ_SSE_PATH"]
        if "PIZZAZ_POST_PATH" in env:
            kwargs["post_path"] = env["PIZZAZ_POST_PATH"]
        if "PIZZAZ_HEARTBEAT_INTERVAL" in env:
            kwargs["heartbeat_interval"] = float(env["PIZZAZ_HEARTBEAT_INTERVAL"])
        if "PIZZAZ_MAX_BODY_BYTES" in env:
            kwargs["max_body_bytes"] = int(env["PIZZAZ_MAX_BODY_BYTES"])
        if "PIZZAZ_WIDGET_EMBEDDING" in env:
            kwargs["widget_embedding"] = env["PIZZAZ_WIDGET_EMBEDDING"].lower()
        if "PIZZAZ_REPLY_MODE" in env:
            kwargs["reply_mode"] = env["PIZZAZ_REPLY_MODE"].lower()
        if "PIZZAZ_LOG_LEVEL" in env:
            kwargs["log_level"] = env["PIZZAZ_LOG_LEVEL"].upper()

        return cls(**kwargs)

    def with_overrides(self, **overrides: Any) -> ServerConfig:
        """Return a copy with non-None overrides applied (for CLI options)."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)

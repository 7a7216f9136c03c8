"""Pizzaz MCP Server Application.

Creates the Starlette ASGI application with all routes.

Route organization:
- /health - Health check
- /mcp - SSE push channel (GET)
- /mcp/messages - JSON-RPC pull channel (POST, ?sessionId=...)

The capability registry is built before the application object exists, so
a missing widget asset fails startup instead of surfacing per request.
TLS, CORS and static assets belong to the front door in front of this app.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import AsyncIterator

from starlette.applications import Starlette
from starlette.routing import Route

from .capabilities import CapabilityRegistry, build_registry
from .config import ServerConfig
from .routes import health_routes, mcp_routes
from .session import SessionRegistry

logger = logging.getLogger(__name__)


def create_app(
    config: ServerConfig | None = None,
    registry: CapabilityRegistry | None = None,
) -> Starlette:
    """Create the MCP server application.

    Args:
        config: Server configuration (defaults to ``ServerConfig.from_env()``)
        registry: Pre-built capability registry (built from ``config.assets_dir`` if omitted)

    Returns:
        Configured Starlette application

    Raises:
        StartupError: If widget content is missing from the assets directory
    """
    config = config or ServerConfig.from_env()
    if registry is None:
        registry = build_registry(config.assets_dir, embedding=config.widget_embedding)

    sessions = SessionRegistry(registry)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        logger.info(f"MCP server ready: SSE {config.sse_path}, messages {config.post_path}")
        try:
            yield
        finally:
            closed = sessions.close_all()
            if closed:
                logger.info(f"Closed {closed} session(s) on shutdown")

    routes: list[Route] = []
    routes.extend(health_routes)
    routes.extend(mcp_routes(config))

    app = Starlette(routes=routes, lifespan=lifespan)
    app.state.config = config
    app.state.sessions = sessions
    return app

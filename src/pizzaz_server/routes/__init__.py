"""HTTP routes."""

from .health import health_routes
from .mcp import mcp_routes

__all__ = ["health_routes", "mcp_routes"]

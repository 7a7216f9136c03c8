"""Pizzaz MCP server - widget tools and resources over HTTP+SSE."""

__version__ = "0.1.0"

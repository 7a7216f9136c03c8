"""Pizzaz MCP server entry point.

Usage:
    python -m pizzaz_server serve
"""

from .cli import main

if __name__ == "__main__":
    main()

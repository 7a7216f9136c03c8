"""Capabilities exposed to MCP clients.

- Tools: named actions with a validated input schema
- Resources: widget markup served by URI
"""

from .content_store import ContentStore
from .registry import CapabilityRegistry, build_registry
from .types import WIDGET_MIME_TYPE, Resource, Tool, ToolAnnotations, ToolResult
from .widgets import PIZZAZ_WIDGETS, PizzaToolInput, WidgetSpec

__all__ = [
    "CapabilityRegistry",
    "ContentStore",
    "PIZZAZ_WIDGETS",
    "PizzaToolInput",
    "Resource",
    "Tool",
    "ToolAnnotations",
    "ToolResult",
    "WIDGET_MIME_TYPE",
    "WidgetSpec",
    "build_registry",
]

"""Capability definitions.

Tools and Resources are immutable once the registry is built and are shared
read-only by every session.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel

WIDGET_MIME_TYPE = "text/html+skybridge"


class ToolResult(BaseModel):
    """What a tool handler produces, before metadata is attached."""

    content: list[dict[str, Any]]
    structured_content: dict[str, Any] | None = None


# Handlers receive the validated input model. They may be sync or async and
# may have side effects.
ToolHandler = Callable[[BaseModel], ToolResult | Awaitable[ToolResult]]


def _freeze(meta: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(meta))


@dataclass(frozen=True)
class ToolAnnotations:
    """Behavior hints advertised with a tool."""

    read_only: bool = True
    destructive: bool = False
    open_world: bool = False

    def to_dict(self) -> dict[str, bool]:
        return {
            "destructiveHint": self.destructive,
            "openWorldHint": self.open_world,
            "readOnlyHint": self.read_only,
        }


@dataclass(frozen=True)
class Tool:
    """A named action a client can invoke."""

    name: str
    title: str
    input_model: type[BaseModel]
    handler: ToolHandler
    meta: Mapping[str, Any] = field(default_factory=dict)
    widget: Mapping[str, Any] = field(default_factory=dict)
    annotations: ToolAnnotations = field(default_factory=ToolAnnotations)
    description: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "meta", _freeze(self.meta))
        object.__setattr__(self, "widget", _freeze(self.widget))

    @property
    def input_schema(self) -> dict[str, Any]:
        """JSON Schema for the tool's arguments."""
        return self.input_model.model_json_schema()

    def response_meta(self) -> dict[str, Any]:
        """Metadata attached to every successful call result."""
        return {**self.meta, "openai/widget": dict(self.widget)}

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "description": self.description or self.title,
            "inputSchema": self.input_schema,
            "annotations": self.annotations.to_dict(),
            "_meta": dict(self.meta),
        }


@dataclass(frozen=True)
class Resource:
    """Named content a client can read."""

    uri: str
    title: str
    text: str
    mime_type: str = WIDGET_MIME_TYPE
    meta: Mapping[str, Any] = field(default_factory=dict)
    description: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "meta", _freeze(self.meta))

    def _listing(self) -> dict[str, Any]:
        return {
            "name": self.title,
            "title": self.title,
            "description": self.description or f"{self.title} widget markup",
            "mimeType": self.mime_type,
            "_meta": dict(self.meta),
        }

    def to_dict(self) -> dict[str, Any]:
        return {"uri": self.uri, **self._listing()}

    def to_template_dict(self) -> dict[str, Any]:
        return {"uriTemplate": self.uri, **self._listing()}

    def contents(self) -> dict[str, Any]:
        """Payload for a read of this resource."""
        return {
            "uri": self.uri,
            "mimeType": self.mime_type,
            "text": self.text,
            "_meta": dict(self.meta),
        }

"""Capability Registry.

Built once, synchronously, before the server accepts any session. Either
every declared widget's markup is loaded or construction fails with a
StartupError naming the missing widget and where it was expected.

After construction the registry is never mutated, so sessions read it
concurrently without locking.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from types import MappingProxyType

from ..config import WidgetEmbedding
from ..errors import NotFoundError, StartupError
from .content_store import ContentStore
from .types import Resource, Tool
from .widgets import PIZZAZ_WIDGETS, PizzaToolInput, WidgetSpec, pizza_handler

logger = logging.getLogger(__name__)


class CapabilityRegistry:
    """Immutable name/URI index over Tools and Resources."""

    def __init__(
        self,
        tools: Iterable[Tool],
        resources: Iterable[Resource],
        embedding: WidgetEmbedding = WidgetEmbedding.REFERENCE,
    ) -> None:
        tools_by_name: dict[str, Tool] = {}
        for tool in tools:
            if tool.name in tools_by_name:
                raise StartupError(f"Duplicate tool name: {tool.name}", capability=tool.name)
            tools_by_name[tool.name] = tool

        resources_by_uri: dict[str, Resource] = {}
        for resource in resources:
            if resource.uri in resources_by_uri:
                raise StartupError(
                    f"Duplicate resource URI: {resource.uri}", capability=resource.uri
                )
            resources_by_uri[resource.uri] = resource

        self._tools: Mapping[str, Tool] = MappingProxyType(tools_by_name)
        self._resources: Mapping[str, Resource] = MappingProxyType(resources_by_uri)
        self.embedding = WidgetEmbedding(embedding)

    @property
    def tools(self) -> tuple[Tool, ...]:
        return tuple(self._tools.values())

    @property
    def resources(self) -> tuple[Resource, ...]:
        return tuple(self._resources.values())

    def get_tool(self, name: str) -> Tool:
        """Look up a tool by name.

        Raises:
            NotFoundError: If no tool has that name
        """
        tool = self._tools.get(name)
        if tool is None:
            raise NotFoundError(f"Unknown tool: {name}", {"name": name})
        return tool

    def get_resource(self, uri: str) -> Resource:
        """Look up a resource by URI.

        Raises:
            NotFoundError: If no resource has that URI
        """
        resource = self._resources.get(uri)
        if resource is None:
            raise NotFoundError(f"Unknown resource: {uri}", {"uri": uri})
        return resource

    def summary(self) -> dict[str, int]:
        return {"tools": len(self._tools), "resources": len(self._resources)}


def _widget_reference(spec: WidgetSpec, html: str, embedding: WidgetEmbedding) -> dict[str, str]:
    widget = {"type": "html", "uri": spec.template_uri}
    if embedding is WidgetEmbedding.INLINE:
        widget["html"] = html
    return widget


def build_registry(
    assets_dir: Path,
    embedding: WidgetEmbedding = WidgetEmbedding.REFERENCE,
    widgets: Iterable[WidgetSpec] = PIZZAZ_WIDGETS,
) -> CapabilityRegistry:
    """Load every widget's markup and build the registry.

    Args:
        assets_dir: Directory holding the built widget HTML
        embedding: Whether tool results reference or inline widget markup
        widgets: Widget declarations to expose

    Raises:
        StartupError: If the assets directory or any widget's markup is missing
    """
    store = ContentStore(assets_dir)
    store.ensure_available()
    embedding = WidgetEmbedding(embedding)

    tools: list[Tool] = []
    resources: list[Resource] = []

    for spec in widgets:
        html = store.read_widget_html(spec.component, capability=spec.id)
        meta = spec.meta()

        tools.append(
            Tool(
                name=spec.id,
                title=spec.title,
                input_model=PizzaToolInput,
                handler=pizza_handler(spec),
                meta=meta,
                widget=_widget_reference(spec, html, embedding),
            )
        )
        resources.append(
            Resource(
                uri=spec.template_uri,
                title=spec.title,
                text=html,
                meta=meta,
            )
        )

    registry = CapabilityRegistry(tools, resources, embedding=embedding)
    logger.info(
        f"Capability registry ready: {len(tools)} tools, {len(resources)} resources "
        f"(widget embedding: {embedding.value})"
    )
    return registry

"""Pizzaz widget declarations.

Each widget becomes one Tool (named by ``id``) and one Resource (keyed by
``template_uri``). The tool echoes the requested topping back as structured
content; the host renders it with the widget's template.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .types import ToolHandler, ToolResult


@dataclass(frozen=True)
class WidgetSpec:
    """Static declaration of a widget, before its markup is loaded."""

    id: str
    title: str
    template_uri: str
    invoking: str
    invoked: str
    component: str  # file stem in the content store
    response_text: str

    def meta(self) -> dict[str, Any]:
        """Metadata shared by the widget's tool, resource and call results."""
        return {
            "openai/outputTemplate": self.template_uri,
            "openai/toolInvocation/invoking": self.invoking,
            "openai/toolInvocation/invoked": self.invoked,
            "openai/widgetAccessible": True,
            "openai/resultCanProduceWidget": True,
        }


class PizzaToolInput(BaseModel):
    """Arguments accepted by every pizza widget tool."""

    model_config = ConfigDict(extra="forbid", strict=True)

    pizzaTopping: str = Field(description="Topping to mention when rendering the widget.")


PIZZAZ_WIDGETS: tuple[WidgetSpec, ...] = (
    WidgetSpec(
        id="pizza-map",
        title="Show Pizza Map",
        template_uri="ui://widget/pizza-map.html",
        invoking="Hand-tossing a map",
        invoked="Served a fresh map",
        component="pizzaz",
        response_text="Rendered a pizza map!",
    ),
    WidgetSpec(
        id="pizza-carousel",
        title="Show Pizza Carousel",
        template_uri="ui://widget/pizza-carousel.html",
        invoking="Carousel some spots",
        invoked="Served a fresh carousel",
        component="pizzaz-carousel",
        response_text="Rendered a pizza carousel!",
    ),
    WidgetSpec(
        id="pizza-albums",
        title="Show Pizza Album",
        template_uri="ui://widget/pizza-albums.html",
        invoking="Hand-tossing an album",
        invoked="Served a fresh album",
        component="pizzaz-albums",
        response_text="Rendered a pizza album!",
    ),
    WidgetSpec(
        id="pizza-list",
        title="Show Pizza List",
        template_uri="ui://widget/pizza-list.html",
        invoking="Hand-tossing a list",
        invoked="Served a fresh list",
        component="pizzaz-list",
        response_text="Rendered a pizza list!",
    ),
)


def pizza_handler(spec: WidgetSpec) -> ToolHandler:
    """Build the echo handler for a widget tool."""

    def handle(args: PizzaToolInput) -> ToolResult:
        return ToolResult(
            content=[{"type": "text", "text": spec.response_text}],
            structured_content={"pizzaTopping": args.pizzaTopping},
        )

    return handle

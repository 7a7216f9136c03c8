"""Unit tests for the capability registry and content store."""

from __future__ import annotations

from pathlib import Path

import pytest

from pizzaz_server.capabilities import (
    PIZZAZ_WIDGETS,
    WIDGET_MIME_TYPE,
    CapabilityRegistry,
    ContentStore,
    PizzaToolInput,
    Resource,
    Tool,
    ToolResult,
    build_registry,
)
from pizzaz_server.config import WidgetEmbedding
from pizzaz_server.errors import NotFoundError, StartupError

# =============================================================================
# Content Store Tests
# =============================================================================


class TestContentStore:
    """Tests for widget markup lookup."""

    def test_direct_file_preferred(self, tmp_path: Path) -> None:
        """<component>.html wins over hashed variants."""
        (tmp_path / "pizzaz.html").write_text("direct")
        (tmp_path / "pizzaz-abc1.html").write_text("hashed")

        store = ContentStore(tmp_path)

        assert store.read_widget_html("pizzaz") == "direct"

    def test_latest_hashed_file_used_as_fallback(self, tmp_path: Path) -> None:
        """Without a direct file, the lexicographically last hashed file is used."""
        (tmp_path / "pizzaz-list-0001.html").write_text("old")
        (tmp_path / "pizzaz-list-0002.html").write_text("new")

        store = ContentStore(tmp_path)

        assert store.read_widget_html("pizzaz-list") == "new"

    def test_missing_directory_is_startup_error(self, tmp_path: Path) -> None:
        """A missing assets directory fails with the expected location."""
        missing = tmp_path / "nope"
        store = ContentStore(missing)

        with pytest.raises(StartupError) as exc_info:
            store.read_widget_html("pizzaz")

        assert str(missing.resolve()) in str(exc_info.value)
        assert exc_info.value.location == str(missing.resolve())

    def test_missing_component_is_startup_error(self, tmp_path: Path) -> None:
        """A missing component names the widget and where it was expected."""
        store = ContentStore(tmp_path)

        with pytest.raises(StartupError) as exc_info:
            store.read_widget_html("pizzaz-albums", capability="pizza-albums")

        assert '"pizzaz-albums"' in str(exc_info.value)
        assert exc_info.value.capability == "pizza-albums"
        assert exc_info.value.location.endswith("pizzaz-albums.html")

    def test_empty_component_is_startup_error(self, tmp_path: Path) -> None:
        """An empty markup file counts as missing content."""
        (tmp_path / "pizzaz.html").write_text("")

        with pytest.raises(StartupError):
            ContentStore(tmp_path).read_widget_html("pizzaz")


# =============================================================================
# Registry Construction Tests
# =============================================================================


class TestBuildRegistry:
    """Tests for build_registry."""

    def test_registers_every_widget(self, registry: CapabilityRegistry) -> None:
        """One tool and one resource per declared widget."""
        assert [t.name for t in registry.tools] == [w.id for w in PIZZAZ_WIDGETS]
        assert [r.uri for r in registry.resources] == [w.template_uri for w in PIZZAZ_WIDGETS]

    def test_resource_content_comes_from_store(self, registry: CapabilityRegistry) -> None:
        """Resource text is the component markup."""
        resource = registry.get_resource("ui://widget/pizza-map.html")
        assert resource.text == '<div id="pizzaz-root"></div>'
        assert resource.mime_type == WIDGET_MIME_TYPE

    def test_missing_widget_fails_whole_registry(self, assets_dir: Path) -> None:
        """One missing widget aborts construction and names it."""
        (assets_dir / "pizzaz-carousel.html").unlink()

        with pytest.raises(StartupError) as exc_info:
            build_registry(assets_dir)

        assert exc_info.value.capability == "pizza-carousel"
        assert "pizzaz-carousel" in str(exc_info.value)

    def test_reference_embedding(self, assets_dir: Path) -> None:
        """Reference mode points at the template URI only."""
        registry = build_registry(assets_dir, embedding=WidgetEmbedding.REFERENCE)
        widget = registry.get_tool("pizza-list").response_meta()["openai/widget"]
        assert widget == {"type": "html", "uri": "ui://widget/pizza-list.html"}

    def test_inline_embedding(self, assets_dir: Path) -> None:
        """Inline mode also carries the markup."""
        registry = build_registry(assets_dir, embedding=WidgetEmbedding.INLINE)
        widget = registry.get_tool("pizza-list").response_meta()["openai/widget"]
        assert widget["uri"] == "ui://widget/pizza-list.html"
        assert widget["html"] == '<div id="pizzaz-list-root"></div>'

    def test_widget_handler_echoes_topping(self, registry: CapabilityRegistry) -> None:
        """Widget handlers take the validated input model directly."""
        result = registry.get_tool("pizza-albums").handler(PizzaToolInput(pizzaTopping="ham"))

        assert isinstance(result, ToolResult)
        assert result.structured_content == {"pizzaTopping": "ham"}
        assert result.content == [{"type": "text", "text": "Rendered a pizza album!"}]

    def test_tool_metadata_template(self, registry: CapabilityRegistry) -> None:
        """Tool metadata carries the widget template and status text."""
        meta = registry.get_tool("pizza-map").to_dict()["_meta"]
        assert meta["openai/outputTemplate"] == "ui://widget/pizza-map.html"
        assert meta["openai/toolInvocation/invoking"] == "Hand-tossing a map"
        assert meta["openai/toolInvocation/invoked"] == "Served a fresh map"
        assert meta["openai/widgetAccessible"] is True


# =============================================================================
# Registry Lookup Tests
# =============================================================================


def _echo(args: PizzaToolInput) -> ToolResult:
    return ToolResult(content=[])


class TestCapabilityRegistry:
    """Tests for lookups and uniqueness."""

    def test_unknown_tool(self, registry: CapabilityRegistry) -> None:
        """Unknown tool names raise NotFoundError."""
        with pytest.raises(NotFoundError) as exc_info:
            registry.get_tool("pizza-oven")
        assert exc_info.value.data == {"name": "pizza-oven"}

    def test_unknown_resource(self, registry: CapabilityRegistry) -> None:
        """Unknown URIs raise NotFoundError."""
        with pytest.raises(NotFoundError):
            registry.get_resource("ui://widget/nope.html")

    def test_duplicate_tool_names_rejected(self) -> None:
        """Tool names must be unique."""
        tool = Tool(name="dup", title="Dup", input_model=PizzaToolInput, handler=_echo)

        with pytest.raises(StartupError, match="Duplicate tool"):
            CapabilityRegistry([tool, tool], [])

    def test_duplicate_resource_uris_rejected(self) -> None:
        """Resource URIs must be unique."""
        resource = Resource(uri="ui://widget/x.html", title="X", text="<p/>")

        with pytest.raises(StartupError, match="Duplicate resource"):
            CapabilityRegistry([], [resource, resource])

    def test_metadata_is_read_only(self, registry: CapabilityRegistry) -> None:
        """Capability metadata cannot be mutated after construction."""
        tool = registry.get_tool("pizza-map")
        with pytest.raises(TypeError):
            tool.meta["openai/outputTemplate"] = "ui://widget/other.html"  # type: ignore[index]

    def test_input_schema_rejects_extra_properties(self, registry: CapabilityRegistry) -> None:
        """The advertised schema requires pizzaTopping and forbids extras."""
        schema = registry.get_tool("pizza-map").input_schema
        assert schema["required"] == ["pizzaTopping"]
        assert schema["properties"]["pizzaTopping"]["type"] == "string"
        assert schema["additionalProperties"] is False

    def test_summary(self, registry: CapabilityRegistry) -> None:
        """summary reports counts."""
        assert registry.summary() == {"tools": 4, "resources": 4}

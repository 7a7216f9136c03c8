"""Protocol Dispatcher - per-session MCP server.

Every decoded request produces exactly one JSON-RPC response. Capability
failures (bad arguments, unknown names, handler crashes) become error
envelopes here and never propagate to the transport, so they cannot close
the session.
"""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING, Any, assert_never

from pydantic import ValidationError as PydanticValidationError

from .. import __version__
from ..capabilities.types import ToolResult
from ..errors import HandlerError, ProtocolError, ValidationError
from .requests import (
    CallTool,
    Initialize,
    ListResources,
    ListResourceTemplates,
    ListTools,
    McpRequest,
    Ping,
    ReadResource,
    decode_request,
)
from .types import (
    LATEST_PROTOCOL_VERSION,
    SERVER_NAME,
    SUPPORTED_PROTOCOL_VERSIONS,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
)

if TYPE_CHECKING:
    from ..capabilities import CapabilityRegistry

logger = logging.getLogger(__name__)


class McpServer:
    """Protocol server embedded in one session.

    Holds a reference to the shared, read-only capability registry and the
    handshake data the client sent in ``initialize``. Nothing else.
    """

    def __init__(self, registry: CapabilityRegistry) -> None:
        self._registry: CapabilityRegistry | None = registry
        self.client_info: dict[str, Any] = {}
        self.protocol_version: str | None = None
        self.initialized = False

    @property
    def registry(self) -> CapabilityRegistry:
        if self._registry is None:
            raise RuntimeError("MCP server has been released")
        return self._registry

    @property
    def released(self) -> bool:
        return self._registry is None

    def release(self) -> None:
        """Drop the registry reference; called once the push channel closes."""
        self._registry = None

    async def handle_message(
        self, message: JsonRpcRequest | JsonRpcNotification
    ) -> JsonRpcResponse | None:
        """Handle one JSON-RPC message.

        Returns:
            The response for a request, None for a notification
        """
        if isinstance(message, JsonRpcNotification):
            self._handle_notification(message)
            return None

        logger.debug(f"Handling {message.method} (id={message.id})")

        try:
            request = decode_request(message)
            result = await self.dispatch(request)
            return JsonRpcResponse.success(message.id, result)
        except ProtocolError as e:
            logger.info(f"{message.method} (id={message.id}) failed: {e.message}")
            return JsonRpcResponse.failure(message.id, e)
        except Exception as e:
            logger.exception(f"Unexpected error handling {message.method} (id={message.id}): {e}")
            return JsonRpcResponse.failure(message.id, HandlerError(f"Internal error: {e}"))

    def _handle_notification(self, notification: JsonRpcNotification) -> None:
        if notification.method == "notifications/initialized":
            self.initialized = True
            logger.debug("Client completed initialization")
        else:
            logger.debug(f"Ignoring notification {notification.method}")

    async def dispatch(self, request: McpRequest) -> dict[str, Any]:
        """Execute a decoded request and return the JSON-RPC result."""
        match request:
            case Initialize():
                return self._initialize(request)
            case Ping():
                return {}
            case ListTools():
                return {"tools": [tool.to_dict() for tool in self.registry.tools]}
            case ListResources():
                return {"resources": [r.to_dict() for r in self.registry.resources]}
            case ListResourceTemplates():
                return {
                    "resourceTemplates": [r.to_template_dict() for r in self.registry.resources]
                }
            case ReadResource():
                return self._read_resource(request)
            case CallTool():
                return await self._call_tool(request)
            case _:
                assert_never(request)

    def _initialize(self, request: Initialize) -> dict[str, Any]:
        if request.protocol_version in SUPPORTED_PROTOCOL_VERSIONS:
            self.protocol_version = request.protocol_version
        else:
            self.protocol_version = LATEST_PROTOCOL_VERSION
        self.client_info = dict(request.client_info)

        logger.info(
            f"Initialized for client {self.client_info.get('name', 'unknown')} "
            f"(protocol {self.protocol_version})"
        )
        return {
            "protocolVersion": self.protocol_version,
            "capabilities": {"resources": {}, "tools": {}},
            "serverInfo": {"name": SERVER_NAME, "version": __version__},
        }

    def _read_resource(self, request: ReadResource) -> dict[str, Any]:
        resource = self.registry.get_resource(request.uri)
        try:
            contents = resource.contents()
        except Exception as e:
            logger.exception(f"Reading resource {request.uri} failed: {e}")
            raise HandlerError(f"Failed to read resource {request.uri}: {e}") from e
        return {"contents": [contents]}

    async def _call_tool(self, request: CallTool) -> dict[str, Any]:
        tool = self.registry.get_tool(request.name)

        if not isinstance(request.arguments, dict):
            raise ValidationError(
                f"Arguments for tool {tool.name} must be an object",
                {"tool": tool.name},
            )

        try:
            args = tool.input_model.model_validate(request.arguments)
        except PydanticValidationError as e:
            raise ValidationError(
                f"Invalid arguments for tool {tool.name}",
                {
                    "tool": tool.name,
                    "errors": e.errors(include_url=False, include_context=False),
                },
            ) from e

        try:
            outcome = tool.handler(args)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except ProtocolError:
            raise
        except Exception as e:
            logger.exception(f"Tool {tool.name} raised: {e}")
            raise HandlerError(f"Tool {tool.name} failed: {e}", {"tool": tool.name}) from e

        if not isinstance(outcome, ToolResult):
            raise HandlerError(
                f"Tool {tool.name} returned {type(outcome).__name__}, expected ToolResult",
                {"tool": tool.name},
            )

        result: dict[str, Any] = {"content": outcome.content}
        if outcome.structured_content is not None:
            result["structuredContent"] = outcome.structured_content
        result["_meta"] = tool.response_meta()
        return result

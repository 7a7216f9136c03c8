"""Request decoding.

Turns a raw POST body into a JSON-RPC message, and a JSON-RPC request into
one case of the ``McpRequest`` union. This is the only place where method
strings are interpreted; everything downstream matches on the variant type.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from ..errors import InvalidRequestError, MethodNotFoundError, ParseError, ValidationError
from .types import JsonRpcNotification, JsonRpcRequest


class Method:
    """MCP method names handled by the dispatcher."""

    INITIALIZE = "initialize"
    PING = "ping"
    TOOLS_LIST = "tools/list"
    TOOLS_CALL = "tools/call"
    RESOURCES_LIST = "resources/list"
    RESOURCES_TEMPLATES_LIST = "resources/templates/list"
    RESOURCES_READ = "resources/read"


# =============================================================================
# Request variants
# =============================================================================


@dataclass(frozen=True)
class Initialize:
    protocol_version: str
    client_info: dict[str, Any] = field(default_factory=dict)
    capabilities: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Ping:
    pass


@dataclass(frozen=True)
class ListTools:
    cursor: str | None = None


@dataclass(frozen=True)
class ListResources:
    cursor: str | None = None


@dataclass(frozen=True)
class ListResourceTemplates:
    cursor: str | None = None


@dataclass(frozen=True)
class ReadResource:
    uri: str


@dataclass(frozen=True)
class CallTool:
    name: str
    # Shape is checked against the tool after the name resolves
    arguments: Any = field(default_factory=dict)


McpRequest = (
    Initialize | Ping | ListTools | ListResources | ListResourceTemplates | ReadResource | CallTool
)


# =============================================================================
# Params models
# =============================================================================


class _Params(BaseModel):
    model_config = ConfigDict(extra="allow")


class InitializeParams(_Params):
    protocolVersion: str
    capabilities: dict[str, Any] = {}
    clientInfo: dict[str, Any] = {}


class PaginatedParams(_Params):
    cursor: str | None = None


class ReadResourceParams(_Params):
    uri: str


class CallToolParams(_Params):
    name: str
    arguments: Any = None


def _params(model: type[BaseModel], request: JsonRpcRequest) -> Any:
    try:
        return model.model_validate(request.params or {})
    except PydanticValidationError as e:
        raise ValidationError(
            f"Invalid params for {request.method}",
            {"errors": e.errors(include_url=False, include_context=False)},
        ) from e


# =============================================================================
# Decoding
# =============================================================================


def parse_message(body: bytes | str) -> JsonRpcRequest | JsonRpcNotification:
    """Decode a POST body into a single JSON-RPC request or notification.

    Raises:
        ParseError: If the body is not JSON
        InvalidRequestError: If the JSON is not a single JSON-RPC request/notification
    """
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ParseError(f"Parse error: {e}") from e

    if not isinstance(data, dict):
        raise InvalidRequestError("Expected a single JSON-RPC message object")
    if "method" not in data:
        raise InvalidRequestError("Missing 'method' field")

    try:
        if "id" in data and data["id"] is not None:
            return JsonRpcRequest.model_validate(data)
        return JsonRpcNotification.model_validate(data)
    except PydanticValidationError as e:
        raise InvalidRequestError(
            "Invalid JSON-RPC message",
            {"errors": e.errors(include_url=False, include_context=False)},
        ) from e


def decode_request(request: JsonRpcRequest) -> McpRequest:
    """Map a JSON-RPC request onto its request variant.

    Raises:
        MethodNotFoundError: If the method is not supported
        ValidationError: If the params do not fit the method
    """
    match request.method:
        case Method.INITIALIZE:
            p = _params(InitializeParams, request)
            return Initialize(
                protocol_version=p.protocolVersion,
                client_info=p.clientInfo,
                capabilities=p.capabilities,
            )
        case Method.PING:
            return Ping()
        case Method.TOOLS_LIST:
            return ListTools(cursor=_params(PaginatedParams, request).cursor)
        case Method.RESOURCES_LIST:
            return ListResources(cursor=_params(PaginatedParams, request).cursor)
        case Method.RESOURCES_TEMPLATES_LIST:
            return ListResourceTemplates(cursor=_params(PaginatedParams, request).cursor)
        case Method.RESOURCES_READ:
            return ReadResource(uri=_params(ReadResourceParams, request).uri)
        case Method.TOOLS_CALL:
            p = _params(CallToolParams, request)
            return CallTool(name=p.name, arguments={} if p.arguments is None else p.arguments)
        case _:
            raise MethodNotFoundError(
                f"Method not found: {request.method}", {"method": request.method}
            )

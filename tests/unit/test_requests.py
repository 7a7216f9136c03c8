"""Unit tests for JSON-RPC parsing and request decoding."""

from __future__ import annotations

import json

import pytest

from pizzaz_server.errors import (
    InvalidRequestError,
    JsonRpcErrorCode,
    MethodNotFoundError,
    ParseError,
    ValidationError,
)
from pizzaz_server.protocol import (
    CallTool,
    Initialize,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    ListResources,
    ListResourceTemplates,
    ListTools,
    Ping,
    ReadResource,
    decode_request,
    parse_message,
)


def _request(method: str, params: dict | None = None, request_id: int = 1) -> JsonRpcRequest:
    return JsonRpcRequest(id=request_id, method=method, params=params)


# =============================================================================
# parse_message Tests
# =============================================================================


class TestParseMessage:
    """Tests for decoding POST bodies."""

    def test_request(self) -> None:
        """A message with an id is a request."""
        msg = parse_message(b'{"jsonrpc": "2.0", "id": 7, "method": "ping"}')
        assert isinstance(msg, JsonRpcRequest)
        assert msg.id == 7

    def test_notification(self) -> None:
        """A message without an id is a notification."""
        msg = parse_message('{"jsonrpc": "2.0", "method": "notifications/initialized"}')
        assert isinstance(msg, JsonRpcNotification)

    def test_invalid_json(self) -> None:
        """Garbage is a parse error."""
        with pytest.raises(ParseError) as exc_info:
            parse_message(b"{not json")
        assert exc_info.value.code == JsonRpcErrorCode.PARSE_ERROR

    def test_batch_rejected(self) -> None:
        """Batches are not accepted."""
        with pytest.raises(InvalidRequestError):
            parse_message(b'[{"jsonrpc": "2.0", "id": 1, "method": "ping"}]')

    def test_missing_method(self) -> None:
        """A message without a method is invalid."""
        with pytest.raises(InvalidRequestError, match="method"):
            parse_message(b'{"jsonrpc": "2.0", "id": 1}')

    def test_wrong_version(self) -> None:
        """Only JSON-RPC 2.0 is accepted."""
        with pytest.raises(InvalidRequestError) as exc_info:
            parse_message(b'{"jsonrpc": "1.0", "id": 1, "method": "ping"}')
        assert exc_info.value.code == JsonRpcErrorCode.INVALID_REQUEST


# =============================================================================
# decode_request Tests
# =============================================================================


class TestDecodeRequest:
    """Tests for mapping methods onto request variants."""

    @pytest.mark.parametrize(
        ("method", "expected"),
        [
            ("ping", Ping()),
            ("tools/list", ListTools()),
            ("resources/list", ListResources()),
            ("resources/templates/list", ListResourceTemplates()),
        ],
    )
    def test_parameterless_methods(self, method: str, expected: object) -> None:
        """Listing methods decode without params."""
        assert decode_request(_request(method)) == expected

    def test_read_resource(self) -> None:
        """resources/read carries the URI."""
        req = decode_request(_request("resources/read", {"uri": "ui://widget/pizza-map.html"}))
        assert req == ReadResource(uri="ui://widget/pizza-map.html")

    def test_read_resource_requires_uri(self) -> None:
        """resources/read without a uri is a validation error."""
        with pytest.raises(ValidationError) as exc_info:
            decode_request(_request("resources/read", {}))
        assert exc_info.value.code == JsonRpcErrorCode.INVALID_PARAMS

    def test_call_tool(self) -> None:
        """tools/call carries name and arguments."""
        req = decode_request(
            _request("tools/call", {"name": "pizza-map", "arguments": {"pizzaTopping": "ham"}})
        )
        assert req == CallTool(name="pizza-map", arguments={"pizzaTopping": "ham"})

    def test_call_tool_defaults_arguments(self) -> None:
        """Missing arguments decode as an empty dict."""
        req = decode_request(_request("tools/call", {"name": "pizza-map"}))
        assert isinstance(req, CallTool)
        assert req.arguments == {}

    def test_call_tool_keeps_non_object_arguments(self) -> None:
        """Argument shape is left to the dispatcher, after the tool is found."""
        req = decode_request(_request("tools/call", {"name": "pizza-oven", "arguments": "x"}))
        assert req == CallTool(name="pizza-oven", arguments="x")

    def test_initialize(self) -> None:
        """initialize carries version and client info."""
        req = decode_request(
            _request(
                "initialize",
                {"protocolVersion": "2025-03-26", "clientInfo": {"name": "test", "version": "1"}},
            )
        )
        assert isinstance(req, Initialize)
        assert req.protocol_version == "2025-03-26"
        assert req.client_info["name"] == "test"

    def test_unknown_method(self) -> None:
        """Unknown methods are reported as method-not-found."""
        with pytest.raises(MethodNotFoundError) as exc_info:
            decode_request(_request("prompts/list"))
        assert exc_info.value.code == JsonRpcErrorCode.METHOD_NOT_FOUND


# =============================================================================
# JsonRpcResponse Tests
# =============================================================================


class TestJsonRpcResponse:
    """Tests for response envelopes."""

    def test_success_wire_format(self) -> None:
        """Success envelopes carry result and no error."""
        wire = JsonRpcResponse.success(3, {"tools": []}).to_wire()
        assert wire == {"jsonrpc": "2.0", "id": 3, "result": {"tools": []}}

    def test_failure_wire_format(self) -> None:
        """Error envelopes carry a structured error with its kind."""
        wire = JsonRpcResponse.failure(3, ValidationError("bad", {"tool": "x"})).to_wire()
        assert "result" not in wire
        assert wire["error"]["code"] == JsonRpcErrorCode.INVALID_PARAMS
        assert wire["error"]["data"] == {"kind": "validation", "tool": "x"}
        json.dumps(wire)

"""Error taxonomy for the Pizzaz MCP server.

Handler-level errors (validation, unknown capability, handler crashes) are
converted into JSON-RPC error envelopes at the dispatcher boundary and never
close a session. Transport-level errors tear down exactly one session.
Startup errors are fatal.
"""

from __future__ import annotations

from typing import Any


class JsonRpcErrorCode:
    """JSON-RPC 2.0 error codes used on the wire."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    # MCP uses -32002 for unknown resources; tools share it here
    NOT_FOUND = -32002


class PizzazError(Exception):
    """Base class for all server errors."""


class ProtocolError(PizzazError):
    """An error that is reported to the caller as a JSON-RPC error object."""

    code: int = JsonRpcErrorCode.INTERNAL_ERROR
    kind: str = "internal"

    def __init__(self, message: str, data: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.data = data or {}

    def to_error(self) -> dict[str, Any]:
        """Render as a JSON-RPC error object."""
        return {
            "code": self.code,
            "message": self.message,
            "data": {"kind": self.kind, **self.data},
        }


class ValidationError(ProtocolError):
    """Arguments do not match a capability's declared schema."""

    code = JsonRpcErrorCode.INVALID_PARAMS
    kind = "validation"


class NotFoundError(ProtocolError):
    """Unknown tool name or resource URI."""

    code = JsonRpcErrorCode.NOT_FOUND
    kind = "not_found"


class MethodNotFoundError(ProtocolError):
    """The JSON-RPC method is not one the dispatcher understands."""

    code = JsonRpcErrorCode.METHOD_NOT_FOUND
    kind = "method_not_found"


class InvalidRequestError(ProtocolError):
    """The request body is not a decodable JSON-RPC message."""

    code = JsonRpcErrorCode.INVALID_REQUEST
    kind = "invalid_request"


class ParseError(InvalidRequestError):
    """The request body is not valid JSON."""

    code = JsonRpcErrorCode.PARSE_ERROR
    kind = "parse_error"


class HandlerError(ProtocolError):
    """A capability handler raised while serving a request."""

    code = JsonRpcErrorCode.INTERNAL_ERROR
    kind = "internal"


class SessionNotFoundError(PizzazError):
    """No live session is registered under the given id."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Unknown session: {session_id}")
        self.session_id = session_id


class BodyTooLargeError(PizzazError):
    """A pull-channel request body exceeded the configured size limit."""

    def __init__(self, max_body_bytes: int) -> None:
        super().__init__(f"Request body exceeds max_body_bytes={max_body_bytes}")
        self.max_body_bytes = max_body_bytes


class TransportError(PizzazError):
    """Writing to a push channel failed; the owning session is torn down."""


class StartupError(PizzazError):
    """Required content is missing; the server must not accept sessions."""

    def __init__(self, message: str, capability: str | None = None, location: str | None = None):
        super().__init__(message)
        self.capability = capability
        self.location = location

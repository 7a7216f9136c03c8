"""JSON-RPC 2.0 message types.

Field names follow the wire format (camelCase where MCP uses it).
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

from ..errors import ProtocolError

# Newest protocol revision this server speaks; older client versions are echoed
LATEST_PROTOCOL_VERSION = "2025-06-18"
SUPPORTED_PROTOCOL_VERSIONS = ("2024-11-05", "2025-03-26", "2025-06-18")

SERVER_NAME = "pizzaz-python"


class JsonRpcRequest(BaseModel):
    """JSON-RPC 2.0 request."""

    model_config = ConfigDict(extra="allow")

    jsonrpc: Literal["2.0"] = "2.0"
    id: str | int
    method: str
    params: dict[str, Any] | None = None


class JsonRpcNotification(BaseModel):
    """JSON-RPC 2.0 notification (no response expected)."""

    model_config = ConfigDict(extra="allow")

    jsonrpc: Literal["2.0"] = "2.0"
    method: str
    params: dict[str, Any] | None = None


class JsonRpcError(BaseModel):
    """JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any | None = None


class JsonRpcResponse(BaseModel):
    """JSON-RPC 2.0 response."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: str | int | None
    result: dict[str, Any] | None = None
    error: JsonRpcError | None = None

    @classmethod
    def success(cls, request_id: str | int | None, result: dict[str, Any]) -> JsonRpcResponse:
        return cls(id=request_id, result=result)

    @classmethod
    def failure(cls, request_id: str | int | None, error: ProtocolError) -> JsonRpcResponse:
        return cls(id=request_id, error=JsonRpcError(**error.to_error()))

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_wire(self) -> dict[str, Any]:
        """Serialize with exactly one of result/error present."""
        if self.error is not None:
            return {
                "jsonrpc": self.jsonrpc,
                "id": self.id,
                "error": self.error.model_dump(exclude_none=True),
            }
        return {"jsonrpc": self.jsonrpc, "id": self.id, "result": self.result or {}}

"""MCP protocol layer.

Key concepts:
- Messages: JSON-RPC 2.0 requests/notifications arriving on the pull channel
- Requests: a closed set of variants, one per supported MCP method
- McpServer: per-session dispatcher producing exactly one response per request
"""

from .dispatcher import McpServer
from .requests import (
    CallTool,
    Initialize,
    ListResources,
    ListResourceTemplates,
    ListTools,
    McpRequest,
    Method,
    Ping,
    ReadResource,
    decode_request,
    parse_message,
)
from .types import JsonRpcError, JsonRpcNotification, JsonRpcRequest, JsonRpcResponse

__all__ = [
    "CallTool",
    "Initialize",
    "JsonRpcError",
    "JsonRpcNotification",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "ListResourceTemplates",
    "ListResources",
    "ListTools",
    "McpRequest",
    "McpServer",
    "Method",
    "Ping",
    "ReadResource",
    "decode_request",
    "parse_message",
]

"""MCP endpoints (HTTP+SSE transport).

- GET  {sse_path}              - open the push channel, creating a session
- POST {post_path}?sessionId=  - submit one JSON-RPC message to a session

The session registry and config live on ``app.state``; handlers never reach
for process-wide globals.
"""

from __future__ import annotations

import logging

from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route

from ..config import ReplyMode, ServerConfig
from ..errors import (
    BodyTooLargeError,
    InvalidRequestError,
    JsonRpcErrorCode,
    SessionNotFoundError,
    TransportError,
)
from ..protocol import JsonRpcResponse, parse_message
from ..session import SessionRegistry
from ..transport import EventStreamResponse, PushChannel

logger = logging.getLogger(__name__)


def _state(request: Request) -> tuple[ServerConfig, SessionRegistry]:
    return request.app.state.config, request.app.state.sessions


def _session_id_param(request: Request) -> str | None:
    # session_id is the spelling used by the Python MCP SDK clients
    return request.query_params.get("sessionId") or request.query_params.get("session_id")


async def read_body(request: Request, max_body_bytes: int) -> bytes:
    """Read a request body, never buffering more than ``max_body_bytes``.

    Raises:
        BodyTooLargeError: As soon as the declared or received size exceeds the limit
    """
    content_length = request.headers.get("content-length")
    if content_length is not None and content_length.isdigit():
        if int(content_length) > max_body_bytes:
            raise BodyTooLargeError(max_body_bytes)

    body = bytearray()
    async for chunk in request.stream():
        if len(body) + len(chunk) > max_body_bytes:
            raise BodyTooLargeError(max_body_bytes)
        body.extend(chunk)
    return bytes(body)


async def open_stream(request: Request) -> Response:
    """Open a push channel.

    Creates a session, starts its heartbeat and streams the flush frame,
    the endpoint frame, then responses and heartbeats until disconnect.
    """
    config, sessions = _state(request)

    channel = PushChannel(heartbeat_interval=config.heartbeat_interval)
    session = sessions.create(channel)

    root_path = request.scope.get("root_path", "")
    channel.open(f"{root_path}{config.post_path}?sessionId={session.session_id}")

    logger.info(f"[MCP] {request.method} {request.url.path} -> session {session.session_id}")
    return EventStreamResponse(channel)


async def post_message(request: Request) -> Response:
    """Handle one JSON-RPC message for an existing session.

    Responses:
        400 - sessionId missing, or body is not a JSON-RPC message
        404 - no live session with that id
        413 - body larger than ``max_body_bytes``
        500 - unexpected failure while processing
        202 - accepted; the response is delivered on the push channel
        200 - the JSON-RPC response itself (inline reply mode)
    """
    config, sessions = _state(request)

    session_id = _session_id_param(request)
    if not session_id:
        return PlainTextResponse("Missing sessionId", status_code=400)

    session = sessions.get(session_id)
    if session is None:
        return PlainTextResponse("Unknown session", status_code=404)

    try:
        body = await read_body(request, config.max_body_bytes)
    except BodyTooLargeError as e:
        logger.warning(f"Rejected message for session {session_id}: {e}")
        return PlainTextResponse("Payload too large", status_code=413)

    try:
        message = parse_message(body)
    except InvalidRequestError as e:
        logger.info(f"Rejected message for session {session_id}: {e.message}")
        return JSONResponse(JsonRpcResponse.failure(None, e).to_wire(), status_code=400)

    try:
        response = await session.handle(message)
    except SessionNotFoundError:
        return PlainTextResponse("Unknown session", status_code=404)
    except Exception as e:
        logger.exception(f"Failed to process message for session {session_id}: {e}")
        return PlainTextResponse("Failed to process message", status_code=500)

    if response is None:
        # Notification: nothing to deliver
        return PlainTextResponse("Accepted", status_code=202)

    if config.reply_mode is ReplyMode.INLINE:
        failed = (
            response.error is not None and response.error.code == JsonRpcErrorCode.INTERNAL_ERROR
        )
        return JSONResponse(response.to_wire(), status_code=500 if failed else 200)

    try:
        session.channel.send_message(response.to_wire())
    except TransportError:
        logger.warning(f"Session {session_id} closed before response {response.id} was delivered")
        return PlainTextResponse("Unknown session", status_code=404)

    return PlainTextResponse("Accepted", status_code=202)


def mcp_routes(config: ServerConfig) -> list[Route]:
    """Build the MCP routes for the configured paths."""
    return [
        Route(config.sse_path, open_stream, methods=["GET"]),
        Route(config.post_path, post_message, methods=["POST"]),
    ]

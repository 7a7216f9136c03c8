"""Transport bindings.

- Push channel: one SSE stream per session (server → client)
- Pull channel: discrete POSTs naming the session id (client → server),
  handled in ``pizzaz_server.routes.mcp``
"""

from .sse import (
    FLUSH_FRAME,
    SSE_HEADERS,
    EventStreamResponse,
    Heartbeat,
    PushChannel,
    comment_frame,
    event_frame,
    heartbeat_frame,
)

__all__ = [
    "EventStreamResponse",
    "FLUSH_FRAME",
    "Heartbeat",
    "PushChannel",
    "SSE_HEADERS",
    "comment_frame",
    "event_frame",
    "heartbeat_frame",
]

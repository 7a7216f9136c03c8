"""Server-Sent Events push channel.

Frame order on every channel:
1. ``: connected`` comment, flushed before anything else so buffering
   intermediaries start forwarding the stream
2. ``event: endpoint`` naming the pull URL (with the session id)
3. heartbeat comments and ``event: message`` frames, interleaved as produced

A channel is single-use. Once closed (client disconnect, write failure or
server shutdown) its heartbeat is stopped and its close callbacks run; it
never reopens.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import AsyncIterator, Callable
from typing import Any

from starlette.requests import ClientDisconnect
from starlette.responses import StreamingResponse
from starlette.types import Receive, Scope, Send

from ..config import DEFAULT_HEARTBEAT_INTERVAL
from ..errors import TransportError

logger = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}
SSE_MEDIA_TYPE = "text/event-stream; charset=utf-8"


# =============================================================================
# Frame encoding
# =============================================================================


def comment_frame(text: str) -> str:
    """Encode an SSE comment (ignored by clients, keeps the pipe warm)."""
    return "".join(f": {line}\n" for line in text.splitlines() or [""]) + "\n"


def event_frame(data: str, event: str | None = None) -> str:
    """Encode an SSE event. Multi-line data is split across data fields."""
    lines = [f"event: {event}"] if event else []
    lines.extend(f"data: {line}" for line in data.split("\n"))
    return "\n".join(lines) + "\n\n"


def heartbeat_frame() -> str:
    return comment_frame(f"ping {int(time.time() * 1000)}")


FLUSH_FRAME = comment_frame("connected")


# =============================================================================
# Heartbeat
# =============================================================================


class Heartbeat:
    """Periodic keep-alive bound to a single push channel's lifetime."""

    def __init__(self, interval: float, beat: Callable[[], None]) -> None:
        self.interval = interval
        self._beat = beat
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start beating. Must be called from a running event loop."""
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run())

    def stop(self) -> None:
        """Cancel the heartbeat. Safe to call more than once."""
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self._beat()


# =============================================================================
# Push channel
# =============================================================================


class PushChannel:
    """Outbound half of a session: an SSE stream fed by a frame queue."""

    def __init__(self, heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL) -> None:
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        self._heartbeat = Heartbeat(heartbeat_interval, self._enqueue_heartbeat)
        self._on_close: list[Callable[[], None]] = []
        self._closed = False
        self._opened = False
        self.endpoint: str | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def heartbeat(self) -> Heartbeat:
        return self._heartbeat

    def on_close(self, callback: Callable[[], None]) -> None:
        """Register a callback run exactly once when the channel closes."""
        self._on_close.append(callback)

    def open(self, endpoint: str) -> None:
        """Bind the pull endpoint and start the heartbeat."""
        if self._closed:
            raise TransportError("Cannot open a closed push channel")
        if self._opened:
            raise TransportError("Push channel is already open")
        self._opened = True
        self.endpoint = endpoint
        self._heartbeat.start()

    def send(self, frame: str) -> None:
        """Queue a pre-encoded frame for delivery.

        Raises:
            TransportError: If the channel is closed
        """
        if self._closed:
            raise TransportError("Push channel is closed")
        self._queue.put_nowait(frame)

    def send_message(self, message: dict[str, Any]) -> None:
        """Queue a JSON-RPC message as an ``event: message`` frame."""
        self.send(event_frame(json.dumps(message, separators=(",", ":")), event="message"))

    def _enqueue_heartbeat(self) -> None:
        if not self._closed:
            self._queue.put_nowait(heartbeat_frame())

    async def frames(self) -> AsyncIterator[str]:
        """Yield encoded frames until the channel closes."""
        if not self._opened:
            raise TransportError("Push channel must be opened before streaming")

        try:
            yield FLUSH_FRAME
            yield event_frame(self.endpoint or "", event="endpoint")

            while True:
                frame = await self._queue.get()
                if frame is None:
                    break
                yield frame
        finally:
            self.close()

    def close(self) -> None:
        """Stop the heartbeat, end the stream and run close callbacks.

        Idempotent. Runs synchronously so it is safe from finally blocks of
        cancelled tasks.
        """
        if self._closed:
            return
        self._closed = True
        self._heartbeat.stop()
        self._queue.put_nowait(None)

        callbacks, self._on_close = self._on_close, []
        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.exception(f"Push channel close callback failed: {e}")


class EventStreamResponse(StreamingResponse):
    """Streaming response that always closes its push channel.

    Covers every way the response can end: the client disconnecting, a
    failed write to the socket, or the server shutting down.
    """

    def __init__(self, channel: PushChannel) -> None:
        super().__init__(channel.frames(), media_type=SSE_MEDIA_TYPE, headers=SSE_HEADERS)
        self.channel = channel

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        except (OSError, ClientDisconnect) as e:
            # The socket is gone; only this session is affected
            logger.warning(f"Push channel write failed: {e!r}")
        finally:
            self.channel.close()

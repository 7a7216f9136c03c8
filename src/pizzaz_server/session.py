"""Session Registry.

A session is the correlation of one push channel and every pull request that
names its id. Sessions are created when a push channel opens and destroyed
when it closes; nothing else keeps them alive. There is no idle reclamation:
heartbeats exist to keep intermediaries from timing the channel out.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING

from .errors import SessionNotFoundError
from .protocol import JsonRpcNotification, JsonRpcRequest, JsonRpcResponse, McpServer

if TYPE_CHECKING:
    from .capabilities import CapabilityRegistry
    from .transport import PushChannel

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Session lifecycle states. CLOSED is terminal."""

    OPEN = "open"
    CLOSED = "closed"


@dataclass
class SessionMetadata:
    """Timestamps and counters for a session."""

    session_id: str
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_activity_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    request_count: int = 0


class Session:
    """One client connection: a push channel plus its protocol server."""

    def __init__(self, session_id: str, channel: PushChannel, server: McpServer) -> None:
        self.session_id = session_id
        self.channel = channel
        self.metadata = SessionMetadata(session_id=session_id)
        self.state = SessionState.OPEN
        self._server: McpServer | None = server

    @property
    def is_open(self) -> bool:
        return self.state is SessionState.OPEN

    @property
    def server(self) -> McpServer | None:
        return self._server

    def touch(self) -> None:
        self.metadata.last_activity_at = datetime.now(UTC)

    async def handle(
        self, message: JsonRpcRequest | JsonRpcNotification
    ) -> JsonRpcResponse | None:
        """Dispatch a pull-channel message to this session's protocol server.

        Raises:
            SessionNotFoundError: If the session closed before dispatch
        """
        server = self._server
        if not self.is_open or server is None:
            raise SessionNotFoundError(self.session_id)

        self.touch()
        self.metadata.request_count += 1
        return await server.handle_message(message)

    def close(self) -> None:
        """Transition to CLOSED, end the push stream and release the server."""
        if self.state is SessionState.CLOSED:
            return
        self.state = SessionState.CLOSED
        self.channel.close()
        if self._server is not None:
            self._server.release()
            self._server = None


class SessionRegistry:
    """Concurrency-safe table of live sessions.

    The table is the only shared mutable state between sessions. Every
    operation holds the lock just long enough for one dict access, and all
    operations are synchronous so teardown can run from finally blocks of
    cancelled stream tasks.
    """

    def __init__(
        self,
        capabilities: CapabilityRegistry,
        table: MutableMapping[str, Session] | None = None,
    ) -> None:
        """Initialize the registry.

        Args:
            capabilities: Shared capability registry handed to each session's server
            table: Optional backing map (defaults to a fresh dict)
        """
        self._capabilities = capabilities
        self._sessions: MutableMapping[str, Session] = {} if table is None else table
        self._lock = threading.Lock()

    @property
    def capabilities(self) -> CapabilityRegistry:
        return self._capabilities

    def create(self, channel: PushChannel) -> Session:
        """Register a new session for a freshly opened push channel.

        The channel's close triggers removal, so the session never outlives it.
        """
        server = McpServer(self._capabilities)

        with self._lock:
            session_id = uuid.uuid4().hex
            while session_id in self._sessions:
                session_id = uuid.uuid4().hex
            session = Session(session_id, channel, server)
            self._sessions[session_id] = session

        channel.on_close(lambda: self.remove(session_id))
        logger.info(f"Created session {session_id}")
        return session

    def get(self, session_id: str) -> Session | None:
        """Get a live session by id, or None."""
        with self._lock:
            return self._sessions.get(session_id)

    def lookup(self, session_id: str) -> Session:
        """Get a live session by id.

        Raises:
            SessionNotFoundError: If no live session has that id
        """
        session = self.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def remove(self, session_id: str) -> None:
        """Remove and close a session. Removing an absent id is a no-op."""
        with self._lock:
            session = self._sessions.pop(session_id, None)

        if session is not None:
            session.close()
            logger.info(f"Closed session {session_id}")

    def ids(self) -> list[str]:
        with self._lock:
            return list(self._sessions)

    def close_all(self) -> int:
        """Close every live session (server shutdown).

        Returns:
            Number of sessions closed
        """
        ids = self.ids()
        for session_id in ids:
            self.remove(session_id)
        return len(ids)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

"""Connection adapters the router emits events through."""

import asyncio
import json
import logging
import uuid
from typing import Any, AsyncIterator, Dict, Optional, Protocol, Tuple

from fastapi import WebSocket

from presence_router.models.messages import encode_frame
from presence_router.core.config import DEFAULT_OUTBOUND_BUFFER

logger = logging.getLogger(__name__)


class Connection(Protocol):
    """Addressable sink for outbound events, identified by ``id``."""

    id: str

    def send(self, event: str, payload: Any) -> None:
        """Deliver an event without blocking the caller."""
        ...


def new_connection_id() -> str:
    return uuid.uuid4().hex


class QueuedConnection:
    """
    Connection that buffers outbound events on an asyncio queue.

    ``send`` never blocks and never raises; whoever owns the connection
    drains the queue with ``next_event`` or ``events``.
    """

    def __init__(self, connection_id: Optional[str] = None, max_pending: int = DEFAULT_OUTBOUND_BUFFER):
        self.id = connection_id or new_connection_id()
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_pending)
        self.closed = False

    def send(self, event: str, payload: Any) -> None:
        if self.closed:
            return
        try:
            self._queue.put_nowait((event, payload))
        except asyncio.QueueFull:
            logger.error(f"Dropping {event} for {self.id}: outbound buffer full")

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def max_pending(self) -> int:
        return self._queue.maxsize

    async def next_event(self) -> Tuple[str, Any]:
        return await self._queue.get()

    async def events(self) -> AsyncIterator[Tuple[str, Any]]:
        while not self.closed:
            yield await self._queue.get()

    def close(self) -> None:
        self.closed = True

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, pending={self.pending!r})"


class WebSocketConnection(QueuedConnection):
    """Queued connection whose events are written to a WebSocket by ``pump``."""

    def __init__(self, websocket: WebSocket, connection_id: Optional[str] = None, max_pending: int = DEFAULT_OUTBOUND_BUFFER):
        super().__init__(connection_id, max_pending)
        self.websocket = websocket

    async def pump(self) -> None:
        """Write queued events to the socket until the connection closes."""
        async for event, payload in self.events():
            try:
                await self.websocket.send_text(encode_frame(event, payload))
            except Exception as e:
                logger.error(f"Failed to send {event} to {self.id}: {str(e)}")
                self.close()


class SseConnection(QueuedConnection):
    """Receive-only watcher fed through server-sent events."""

    async def stream(self) -> AsyncIterator[Dict[str, str]]:
        """Yield queued events in the shape EventSourceResponse expects."""
        async for event, payload in self.events():
            yield {"event": event, "data": json.dumps(payload)}

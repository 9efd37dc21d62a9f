"""Presence and message router wiring connection events to the registry."""

import logging
import time
from typing import Any, Callable, Dict, List, Optional

from presence_router.models.session import ConnectionContext, ConnectionState
from presence_router.models.messages import (
    ANONYMOUS, BaseEvent, BroadcastMessage, DirectMessage, EventType, OnlineRoster, RouterErrorEvent, decode_frame
)
from presence_router.core.connection import Connection
from presence_router.core.registry import IdentityRegistry
from presence_router.core.exceptions import (
    ConnectionStateError, JoinRejectedError, NotJoinedError, RecipientOfflineError, RoutingError
)

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class PresenceRouter:
    """
    Routes presence and chat events between connections.

    Every method runs to completion without awaiting, so on a single event
    loop each event is applied atomically with respect to every other.
    """

    def __init__(self, registry: IdentityRegistry, clock: Callable[[], int] = now_ms):
        self.registry = registry
        self.clock = clock
        self.connections: Dict[str, Connection] = {}
        self.contexts: Dict[str, ConnectionContext] = {}

    def connect(self, connection: Connection) -> ConnectionContext:
        """
        Start tracking a newly accepted connection.

        Args:
            connection: Transport handle to emit events through

        Raises:
            ConnectionStateError: If the connection id is already tracked
        """
        if connection.id in self.connections:
            raise ConnectionStateError(f"Connection {connection.id} is already connected")
        context = ConnectionContext(connection.id)
        self.connections[connection.id] = connection
        self.contexts[connection.id] = context
        logger.info(f"Connection {connection.id} connected")
        return context

    def disconnect(self, connection_id: str) -> None:
        """
        Close a connection and clear its session if it is still the current one.

        A connection superseded by a later join for the same identity does
        not touch the registry, so no roster is broadcast.
        """
        context = self.contexts.pop(connection_id, None)
        self.connections.pop(connection_id, None)
        if context is None or context.state == ConnectionState.CLOSED:
            return
        context.close()

        identity = context.identity
        if identity and self.registry.unbind_if_matches(identity, connection_id):
            logger.info(f"Disconnected: {identity} ({connection_id})")
            self.broadcast_roster()
        elif identity:
            logger.debug(f"Stale disconnect for {identity} ({connection_id}) ignored")
        else:
            logger.info(f"Disconnected: {connection_id}")

    def join(self, connection_id: str, identity: Any) -> None:
        """
        Bind the connection to a registered identity and broadcast the roster.

        Raises:
            JoinRejectedError: If the identity is empty or not registered
        """
        context = self._context(connection_id)
        if context is None:
            return
        if not isinstance(identity, str) or not self.registry.exists(identity):
            raise JoinRejectedError("join refused: unknown username (register/login first)")

        previous = context.identity
        if previous is not None and previous != identity:
            self.registry.unbind_if_matches(previous, connection_id)

        self.registry.bind_connection(identity, connection_id)
        context.bind(identity)
        logger.info(f"{identity} joined ({connection_id})")
        self.broadcast_roster()

    def direct_message(self, connection_id: str, payload: Any) -> None:
        """
        Deliver a message to exactly the recipient's current connection.

        Raises:
            NotJoinedError: If the sender has not joined
            RecipientOfflineError: If the recipient has no live connection
        """
        context = self._context(connection_id)
        if context is None:
            return
        if not context.joined:
            raise NotJoinedError("not joined")
        if not isinstance(payload, dict):
            return
        recipient = payload.get('to')
        body = payload.get('body')
        if not isinstance(recipient, str) or not recipient or not isinstance(body, str):
            return

        target_id = self.registry.connection_for(recipient)
        target = self.connections.get(target_id) if target_id is not None else None
        if target is None:
            raise RecipientOfflineError(f"user {recipient} is offline")

        self._emit(target, DirectMessage(context.identity, recipient, body, self.clock()))

    def broadcast_message(self, connection_id: str, payload: Any) -> None:
        """Fan a message out to every tracked connection, the sender included."""
        context = self._context(connection_id)
        if context is None:
            return
        if not isinstance(payload, dict) or not isinstance(payload.get('body'), str):
            return
        sender = context.identity if context.joined else ANONYMOUS
        self._emit_all(BroadcastMessage(sender, payload['body'], self.clock()))

    def broadcast_roster(self) -> List[str]:
        """Send the full online roster to every tracked connection."""
        roster = self.registry.list_online()
        self._emit_all(OnlineRoster(roster))
        return roster

    def online(self) -> List[str]:
        return self.registry.list_online()

    def handle_event(self, connection_id: str, event: str, payload: Any) -> None:
        """
        Dispatch an inbound event, reporting routing errors to the sender.

        Unknown events and malformed payloads are dropped.
        """
        try:
            match event:
                case EventType.JOIN.value:
                    self.join(connection_id, payload)
                case EventType.DIRECT_MESSAGE.value:
                    self.direct_message(connection_id, payload)
                case EventType.BROADCAST_MESSAGE.value:
                    self.broadcast_message(connection_id, payload)
                case _:
                    logger.debug(f"Dropping unknown event {event!r} from {connection_id}")
        except RoutingError as e:
            logger.warning(f"Rejected {event} from {connection_id}: {str(e)}")
            self.send_error(connection_id, str(e))

    def handle_frame(self, connection_id: str, text: str) -> None:
        """Decode a text frame and dispatch it."""
        frame = decode_frame(text)
        if frame is None:
            logger.debug(f"Dropping malformed frame from {connection_id}")
            return
        event, payload = frame
        self.handle_event(connection_id, event, payload)

    def send_error(self, connection_id: str, message: str) -> None:
        connection = self.connections.get(connection_id)
        if connection is not None:
            self._emit(connection, RouterErrorEvent(message))

    def _context(self, connection_id: str) -> Optional[ConnectionContext]:
        context = self.contexts.get(connection_id)
        if context is None or context.state == ConnectionState.CLOSED:
            logger.debug(f"Ignoring event for unknown connection {connection_id}")
            return None
        return context

    def _emit(self, connection: Connection, event: BaseEvent) -> None:
        connection.send(event.type.value, event.payload())

    def _emit_all(self, event: BaseEvent) -> None:
        for connection in list(self.connections.values()):
            self._emit(connection, event)

"""Session and per-connection state models."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ConnectionState(Enum):
    """Lifecycle of a single connection as seen by the router."""
    CONNECTED = "connected"
    JOINED = "joined"
    CLOSED = "closed"


@dataclass
class ConnectionContext:
    """Connection-local state kept by the router for each tracked connection."""

    connection_id: str
    state: ConnectionState = ConnectionState.CONNECTED
    identity: Optional[str] = None

    @property
    def joined(self) -> bool:
        return self.state == ConnectionState.JOINED and self.identity is not None

    def bind(self, identity: str) -> None:
        self.identity = identity
        self.state = ConnectionState.JOINED

    def close(self) -> None:
        self.state = ConnectionState.CLOSED

    def __repr__(self) -> str:
        return f"ConnectionContext(connection_id={self.connection_id!r}, state={self.state.value!r}, identity={self.identity!r})"

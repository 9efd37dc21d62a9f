"""Shared fixtures for router tests."""

from typing import Any, List, Tuple

import pytest

from presence_router.core.registry import IdentityRegistry
from presence_router.core.router import PresenceRouter

FIXED_TS = 1_700_000_000_000


class FakeConnection:
    """In-memory connection recording every event sent to it."""

    def __init__(self, connection_id: str):
        self.id = connection_id
        self.sent: List[Tuple[str, Any]] = []

    def send(self, event: str, payload: Any) -> None:
        self.sent.append((event, payload))

    def of_type(self, event: str) -> List[Any]:
        return [payload for name, payload in self.sent if name == event]

    def last(self, event: str) -> Any:
        matching = self.of_type(event)
        return matching[-1] if matching else None

    def clear(self) -> None:
        self.sent.clear()


@pytest.fixture
def registry():
    """Registry with alice, bob and carol registered, in that order."""
    return IdentityRegistry(["alice", "bob", "carol"])


@pytest.fixture
def router(registry):
    """Router with a fixed clock."""
    return PresenceRouter(registry, clock=lambda: FIXED_TS)


@pytest.fixture
def connect(router):
    """Factory that opens a fake connection on the router."""
    def _connect(connection_id: str) -> FakeConnection:
        connection = FakeConnection(connection_id)
        router.connect(connection)
        return connection
    return _connect

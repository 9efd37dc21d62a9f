"""Identity registry tracking which identities hold a live connection."""

import logging
from typing import Dict, Iterable, List, Optional

from presence_router.core.exceptions import UnknownIdentityError

logger = logging.getLogger(__name__)


class IdentityRegistry:
    """
    Authoritative store of identity -> session state.

    Keeps two maps: identity -> connection id (insertion ordered, so
    enumeration follows registration order) and connection id -> identity,
    so that at most one connection is ever recorded per identity and a
    connection is recorded against at most one identity.
    """

    def __init__(self, identities: Iterable[str] = ()):
        """
        Initialize registry with already registered identities.

        Args:
            identities: Identities known before any connection arrives
        """
        self._sessions: Dict[str, Optional[str]] = {}
        self._owners: Dict[str, str] = {}

        for identity in identities:
            self.add(identity)

    def add(self, identity: str) -> None:
        """Record a newly registered identity with no connection."""
        if not identity:
            raise ValueError("identity must be a non-empty string")
        self._sessions.setdefault(identity, None)

    def exists(self, identity: str) -> bool:
        return bool(identity) and identity in self._sessions

    def bind_connection(self, identity: str, connection_id: str) -> None:
        """
        Set the identity's current connection, overwriting any prior one.

        Args:
            identity: Registered identity
            connection_id: Handle of the live connection

        Raises:
            UnknownIdentityError: If the identity was never registered
        """
        if identity not in self._sessions:
            raise UnknownIdentityError(f"Cannot bind unregistered identity: {identity!r}")

        previous = self._sessions[identity]
        if previous is not None and self._owners.get(previous) == identity:
            del self._owners[previous]

        # A connection moving to another identity leaves its old one unbound.
        other = self._owners.get(connection_id)
        if other is not None and other != identity:
            self._sessions[other] = None

        self._sessions[identity] = connection_id
        self._owners[connection_id] = identity
        if previous is not None and previous != connection_id:
            logger.info(f"Session for {identity} moved from {previous} to {connection_id}")

    def unbind_if_matches(self, identity: str, connection_id: str) -> bool:
        """
        Clear the identity's connection only if it is still ``connection_id``.

        Returns:
            True if the session was cleared, False if it was already bound
            elsewhere (or not bound at all)
        """
        if self._sessions.get(identity) != connection_id or connection_id is None:
            return False
        self._sessions[identity] = None
        self._owners.pop(connection_id, None)
        return True

    def list_online(self) -> List[str]:
        """Identities with a live connection, in registration order."""
        return [identity for identity, connection_id in self._sessions.items() if connection_id is not None]

    def connection_for(self, identity: str) -> Optional[str]:
        return self._sessions.get(identity)

    def __len__(self) -> int:
        return len(self._sessions)

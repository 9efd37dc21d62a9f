"""Unit tests for the IdentityRegistry class."""

import pytest

from presence_router.core.registry import IdentityRegistry
from presence_router.core.exceptions import UnknownIdentityError


def test_registry_initialization(registry):
    """Registered identities exist and start offline."""
    assert registry.exists("alice")
    assert registry.exists("bob")
    assert not registry.exists("mallory")
    assert not registry.exists("")
    assert registry.list_online() == []
    assert len(registry) == 3


def test_add_is_idempotent(registry):
    registry.bind_connection("alice", "c1")
    registry.add("alice")
    assert registry.connection_for("alice") == "c1"


def test_add_rejects_empty_identity():
    with pytest.raises(ValueError):
        IdentityRegistry().add("")


def test_bind_and_lookup(registry):
    registry.bind_connection("bob", "c1")
    assert registry.connection_for("bob") == "c1"
    assert registry.connection_for("alice") is None
    assert registry.connection_for("mallory") is None


def test_bind_unknown_identity_raises(registry):
    with pytest.raises(UnknownIdentityError):
        registry.bind_connection("mallory", "c1")


def test_bind_overwrites_previous_connection(registry):
    """Last write wins: a second bind replaces the first."""
    registry.bind_connection("alice", "c1")
    registry.bind_connection("alice", "c2")
    assert registry.connection_for("alice") == "c2"


def test_unbind_if_matches(registry):
    registry.bind_connection("alice", "c1")
    assert registry.unbind_if_matches("alice", "c1") is True
    assert registry.connection_for("alice") is None
    # Second unbind is a no-op.
    assert registry.unbind_if_matches("alice", "c1") is False


def test_unbind_with_stale_connection_is_noop(registry):
    registry.bind_connection("alice", "c1")
    registry.bind_connection("alice", "c2")
    assert registry.unbind_if_matches("alice", "c1") is False
    assert registry.connection_for("alice") == "c2"


def test_unbind_unknown_identity(registry):
    assert registry.unbind_if_matches("mallory", "c1") is False


def test_list_online_follows_registration_order(registry):
    registry.bind_connection("carol", "c3")
    registry.bind_connection("alice", "c1")
    assert registry.list_online() == ["alice", "carol"]


def test_connection_bound_to_one_identity_at_a_time(registry):
    """Moving a connection to another identity unbinds the first one."""
    registry.bind_connection("alice", "c1")
    registry.bind_connection("bob", "c1")
    assert registry.connection_for("alice") is None
    assert registry.connection_for("bob") == "c1"
    assert registry.list_online() == ["bob"]



def test_superseded_connection_no_longer_owns_identity(registry):
    """Reusing a superseded connection id does not disturb the identity that moved away."""
    registry.bind_connection("alice", "c1")
    registry.bind_connection("alice", "c2")
    registry.bind_connection("bob", "c1")
    assert registry.connection_for("alice") == "c2"
    assert registry.list_online() == ["alice", "bob"]

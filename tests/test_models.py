"""Unit tests for model classes."""

import json

from presence_router.models.account import Account, hash_password, new_salt
from presence_router.models.messages import (
    BroadcastMessage, DirectMessage, EventType, OnlineRoster, RouterErrorEvent, decode_frame, encode_frame
)
from presence_router.models.session import ConnectionContext, ConnectionState


def test_connection_context_lifecycle():
    context = ConnectionContext("c1")
    assert context.state == ConnectionState.CONNECTED
    assert not context.joined

    context.bind("alice")
    assert context.state == ConnectionState.JOINED
    assert context.joined
    assert context.identity == "alice"

    context.close()
    assert context.state == ConnectionState.CLOSED
    assert not context.joined


def test_direct_message_payload():
    """The recipient is not part of the delivered payload."""
    message = DirectMessage("alice", "bob", "hi", 123)
    assert message.type == EventType.DIRECT_MESSAGE
    assert message.recipient == "bob"
    assert message.payload() == {"from": "alice", "body": "hi", "timestamp": 123}


def test_broadcast_message_payload():
    message = BroadcastMessage("anonymous", "yo", 7)
    assert message.type == EventType.BROADCAST_MESSAGE
    assert message.payload() == {"from": "anonymous", "body": "yo", "timestamp": 7}


def test_roster_payload_is_a_copy():
    identities = ["alice", "bob"]
    roster = OnlineRoster(identities)
    identities.append("carol")
    payload = roster.payload()
    payload.append("mallory")
    assert roster.payload() == ["alice", "bob"]


def test_router_error_event():
    error = RouterErrorEvent("not joined")
    assert error.type == EventType.ROUTER_ERROR
    assert error.payload() == "not joined"


def test_frame_codec():
    text = encode_frame("directMessage", {"to": "bob", "body": "hi"})
    assert json.loads(text) == {"event": "directMessage", "data": {"to": "bob", "body": "hi"}}
    assert decode_frame(text) == ("directMessage", {"to": "bob", "body": "hi"})
    assert decode_frame('{"event": "join"}') == ("join", None)


def test_decode_frame_rejects_garbage():
    assert decode_frame("{") is None
    assert decode_frame('"join"') is None
    assert decode_frame('{"event": ""}') is None
    assert decode_frame('{"event": ["join"]}') is None


def test_account_matches_hash():
    salt = new_salt()
    account = Account("alice", hash_password("s3cret", salt), salt)
    assert account.matches(hash_password("s3cret", salt))
    assert not account.matches(hash_password("S3cret", salt))
    assert repr(account) == "Account(username='alice')"


def test_salts_differ():
    assert new_salt() != new_salt()

"""Event models exchanged between the router and connections."""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


ANONYMOUS = "anonymous"


class EventType(Enum):
    """Names of the events carried in a frame."""
    JOIN = "join"
    ONLINE_ROSTER = "onlineRoster"
    DIRECT_MESSAGE = "directMessage"
    BROADCAST_MESSAGE = "broadcastMessage"
    ROUTER_ERROR = "routerError"


@dataclass(eq=False)
class BaseEvent(ABC):
    """Base class for all outbound events."""

    type: EventType

    @abstractmethod
    def payload(self) -> Any:
        """Return the JSON-serializable data carried by the event."""


class DirectMessage(BaseEvent):
    """Message addressed to a single identity."""

    def __init__(self, sender: str, recipient: str, body: str, timestamp: int):
        super().__init__(EventType.DIRECT_MESSAGE)
        self.sender = sender
        self.recipient = recipient
        self.body = body
        self.timestamp = timestamp

    def payload(self) -> Dict[str, Any]:
        # the recipient is implied by the connection it is delivered to
        return {
            'from': self.sender,
            'body': self.body,
            'timestamp': self.timestamp
        }

    def __repr__(self) -> str:
        return f"DirectMessage(sender={self.sender!r}, recipient={self.recipient!r}, body={self.body!r}, timestamp={self.timestamp!r})"


class BroadcastMessage(BaseEvent):
    """Message fanned out to every live connection."""

    def __init__(self, sender: str, body: str, timestamp: int):
        super().__init__(EventType.BROADCAST_MESSAGE)
        self.sender = sender
        self.body = body
        self.timestamp = timestamp

    def payload(self) -> Dict[str, Any]:
        return {
            'from': self.sender,
            'body': self.body,
            'timestamp': self.timestamp
        }

    def __repr__(self) -> str:
        return f"BroadcastMessage(sender={self.sender!r}, body={self.body!r}, timestamp={self.timestamp!r})"


class OnlineRoster(BaseEvent):
    """Full replacement list of online identities."""

    def __init__(self, identities: List[str]):
        super().__init__(EventType.ONLINE_ROSTER)
        self.identities = list(identities)

    def payload(self) -> List[str]:
        return list(self.identities)

    def __repr__(self) -> str:
        return f"OnlineRoster(identities={self.identities!r})"


class RouterErrorEvent(BaseEvent):
    """Error reported to the connection that caused it."""

    def __init__(self, message: str):
        super().__init__(EventType.ROUTER_ERROR)
        self.message = message

    def payload(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"RouterErrorEvent(message={self.message!r})"


def encode_frame(event: str, payload: Any) -> str:
    """Serialize an event name and its payload into a text frame."""
    return json.dumps({'event': event, 'data': payload})


def decode_frame(text: str) -> Optional[Tuple[str, Any]]:
    """
    Parse a text frame into ``(event, data)``.

    Returns None for anything that is not a JSON object with a string
    ``event`` field.
    """
    try:
        frame = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(frame, dict):
        return None
    event = frame.get('event')
    if not isinstance(event, str) or not event:
        return None
    return event, frame.get('data')

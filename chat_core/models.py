"""
Data models for the WebSocket room chat server
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Set, Union

from .constants import (
    ALL_MESSAGES,
    CHAT,
    DATA_FIELD,
    DEFAULT_ROOM,
    JOINED,
    JOINED_NOTICE_TEMPLATE,
    KIND_FIELD,
    NAME_REGISTERED,
    NAME_TAKEN,
    NEW_MESSAGE,
    REGISTER_NAME,
)


class ClientMessageType(str, Enum):
    """Kinds a client may send"""
    REGISTER_NAME = REGISTER_NAME
    CHAT = CHAT


class ServerMessageType(str, Enum):
    """Kinds the server sends"""
    ALL_MESSAGES = ALL_MESSAGES
    NEW_MESSAGE = NEW_MESSAGE
    NAME_TAKEN = NAME_TAKEN
    NAME_REGISTERED = NAME_REGISTERED
    JOINED = JOINED


@dataclass(frozen=True)
class ChatEntry:
    """One immutable line of room history"""
    name: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "message": self.message}


@dataclass(frozen=True)
class RegisterName:
    name: str

    kind = ClientMessageType.REGISTER_NAME


@dataclass(frozen=True)
class Chat:
    """Chat request; the payload is decoded into a ChatEntry by the dispatcher"""
    payload: Any

    kind = ClientMessageType.CHAT


ClientMessage = Union[RegisterName, Chat]


@dataclass(frozen=True)
class Envelope:
    """Outbound message unit queued for delivery to one session"""
    kind: ServerMessageType
    data: Any = ""

    @classmethod
    def all_messages(cls, history: List[ChatEntry]) -> "Envelope":
        return cls(ServerMessageType.ALL_MESSAGES, [entry.to_dict() for entry in history])

    @classmethod
    def new_message(cls, entry: ChatEntry) -> "Envelope":
        return cls(ServerMessageType.NEW_MESSAGE, entry.to_dict())

    @classmethod
    def name_taken(cls) -> "Envelope":
        return cls(ServerMessageType.NAME_TAKEN, "")

    @classmethod
    def name_registered(cls) -> "Envelope":
        return cls(ServerMessageType.NAME_REGISTERED, "")

    @classmethod
    def joined(cls, name: str) -> "Envelope":
        return cls(ServerMessageType.JOINED, JOINED_NOTICE_TEMPLATE.format(name=name))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {KIND_FIELD: self.kind.value, DATA_FIELD: self.data}

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass
class SessionRecord:
    """Registry-owned state of one live connection"""
    session_id: str
    channel: Any  # DeliveryChannel
    peer: str = "unknown"
    name: str = ""
    room: str = DEFAULT_ROOM
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_name(self) -> bool:
        return bool(self.name)


@dataclass
class Room:
    """Room history and membership"""
    room_id: str
    history: List[ChatEntry] = field(default_factory=list)
    members: Set[str] = field(default_factory=set)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization"""
        return {
            "room": self.room_id,
            "member_count": len(self.members),
            "message_count": len(self.history),
            "created_at": self.created_at.isoformat(),
        }

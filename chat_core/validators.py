"""
Decoding and validation of inbound client frames
"""

import json
from typing import Any

from .constants import (
    DATA_FIELD,
    ERROR_MESSAGES,
    KIND_FIELD,
    MAX_FRAME_SIZE_BYTES,
)
from .models import Chat, ChatEntry, ClientMessage, ClientMessageType, RegisterName


class MessageDecodeError(ValueError):
    """Raised when a frame or payload does not match the message schema"""

    def __init__(self, reason: str, detail: str = ""):
        self.reason = reason
        self.detail = detail
        message = ERROR_MESSAGES.get(reason, reason)
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


def decode_client_message(frame: str) -> ClientMessage:
    """
    Decode one text frame into a client message variant

    Args:
        frame: Raw text frame from the connection

    Returns:
        RegisterName or Chat

    Raises:
        MessageDecodeError: if the frame is oversized, not JSON, or not a
            known message kind with a well-formed payload
    """
    size = len(frame.encode("utf-8"))
    if size > MAX_FRAME_SIZE_BYTES:
        raise MessageDecodeError("frame_too_large", f"{size} bytes")

    # ValueError also covers over-long integer literals; RecursionError is deep nesting
    try:
        payload = json.loads(frame)
    except (ValueError, RecursionError) as e:
        raise MessageDecodeError("invalid_json", str(e)) from e

    if not isinstance(payload, dict):
        raise MessageDecodeError("not_an_object", type(payload).__name__)

    if KIND_FIELD not in payload:
        raise MessageDecodeError("missing_kind")

    kind = payload.get(KIND_FIELD)
    data = payload.get(DATA_FIELD)

    if kind == ClientMessageType.REGISTER_NAME.value:
        if not isinstance(data, str):
            raise MessageDecodeError("invalid_name", type(data).__name__)
        return RegisterName(name=data)

    if kind == ClientMessageType.CHAT.value:
        return Chat(payload=data)

    raise MessageDecodeError("unknown_kind", str(kind))


def decode_chat_body(payload: Any) -> ChatEntry:
    """
    Decode a Chat payload into a ChatEntry

    Args:
        payload: The ``data`` member of a Chat frame

    Raises:
        MessageDecodeError: unless payload is an object with string
            ``name`` and ``message`` members
    """
    if not isinstance(payload, dict):
        raise MessageDecodeError("invalid_chat", type(payload).__name__)

    name = payload.get("name")
    message = payload.get("message")

    if not isinstance(name, str) or not isinstance(message, str):
        raise MessageDecodeError("invalid_chat", f"keys={sorted(payload.keys())}")

    return ChatEntry(name=name, message=message)


def is_valid_name(name: str) -> bool:
    """Names must be non-empty strings; matching is case-sensitive"""
    return isinstance(name, str) and len(name) > 0

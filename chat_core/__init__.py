"""
WebSocket Room Chat Core
Session state machine, shared room registry and broadcast fan-out
"""

from .models import (
    ChatEntry,
    Chat,
    ClientMessage,
    ClientMessageType,
    Envelope,
    RegisterName,
    Room,
    ServerMessageType,
    SessionRecord,
)
from .channel import DeliveryChannel
from .validators import MessageDecodeError, decode_client_message, decode_chat_body, is_valid_name
from .registry import Registry, SessionNotFoundError
from .dispatcher import Dispatcher
from .session import Session, SessionState
from .constants import *
from .logger import (
    get_logger,
    log_protocol_event,
    log_connection_event,
    log_session_event,
    log_message_event,
    log_broadcast_event,
    log_system_event,
)

__all__ = [
    'ChatEntry',
    'Chat',
    'ClientMessage',
    'ClientMessageType',
    'Envelope',
    'RegisterName',
    'Room',
    'ServerMessageType',
    'SessionRecord',
    'DeliveryChannel',
    'MessageDecodeError',
    'decode_client_message',
    'decode_chat_body',
    'is_valid_name',
    'Registry',
    'SessionNotFoundError',
    'Dispatcher',
    'Session',
    'SessionState',
    'get_logger',
    'log_protocol_event',
    'log_connection_event',
    'log_session_event',
    'log_message_event',
    'log_broadcast_event',
    'log_system_event',
]

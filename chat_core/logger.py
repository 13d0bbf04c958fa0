"""
Logging configuration for the WebSocket room chat server
"""

import logging
import sys
from typing import Optional

from .constants import LOG_LEVEL


class SanitizingFormatter(logging.Formatter):
    """Formatter that masks credential-looking fragments"""

    def format(self, record):
        message = super().format(record)
        sanitized = message.replace('password=', 'password=***')
        sanitized = sanitized.replace('token=', 'token=***')
        return sanitized


def get_logger(name: str = "room_chat") -> logging.Logger:
    """
    Get a logger instance with the server's formatting

    Args:
        name: Logger name

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(logging.DEBUG)

        formatter = SanitizingFormatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)

        logger.addHandler(handler)
        logger.setLevel(LOG_LEVEL)

        logger.propagate = False

    return logger


def log_protocol_event(event_type: str, details: dict, logger: Optional[logging.Logger] = None):
    """
    Log recoverable protocol problems (malformed frames, rejected names)

    Args:
        event_type: Type of protocol event
        details: Event details
        logger: Logger instance (optional)
    """
    if logger is None:
        logger = get_logger()

    logger.warning(f"PROTOCOL_EVENT: {event_type} | {details}")


def log_connection_event(session_id: str, room: str, action: str, peer: str = "unknown"):
    """
    Log session registration and removal

    Args:
        session_id: Session identifier
        room: Room the session is in
        action: Action (register/remove)
        peer: Client network address
    """
    logger = get_logger()
    logger.info(f"CONNECTION_EVENT: {action} | session={session_id} | room={room} | peer={peer}")


def log_session_event(event_type: str, session_id: str, details: str = ""):
    """
    Log session state machine transitions

    Args:
        event_type: Type of session event
        session_id: Session identifier
        details: Additional details
    """
    logger = get_logger()
    logger.debug(f"SESSION_EVENT: {event_type} | session={session_id} | {details}")


def log_message_event(action: str, session_id: str, room: str, details: str = ""):
    logger = get_logger()
    logger.info(f"MESSAGE_EVENT: {action} | session={session_id} | room={room} | {details}")


def log_broadcast_event(kind: str, room: str, delivered: int, dropped: int):
    """
    Log the outcome of one fan-out

    Args:
        kind: Envelope kind that was fanned out
        room: Target room
        delivered: Number of channels that accepted the envelope
        dropped: Number of channels that were full or closed
    """
    logger = get_logger()
    log_message = f"BROADCAST_EVENT: {kind} | room={room} | delivered={delivered} | dropped={dropped}"

    if dropped:
        logger.warning(log_message)
    else:
        logger.debug(log_message)


def log_system_event(event_type: str, details: str, level: str = "info"):
    """
    Log system-level events

    Args:
        event_type: Type of system event
        details: Event details
        level: Log level (info/warning/error)
    """
    logger = get_logger()
    log_message = f"SYSTEM_EVENT: {event_type} | {details}"

    if level == "warning":
        logger.warning(log_message)
    elif level == "error":
        logger.error(log_message)
    else:
        logger.info(log_message)

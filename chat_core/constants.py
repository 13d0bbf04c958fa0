"""
Constants for the WebSocket room chat server
"""

import os

# Rooms and delivery
DEFAULT_ROOM = "1"
DELIVERY_CHANNEL_CAPACITY = 16

# Frame limits
MAX_FRAME_SIZE_BYTES = 10240

# Wire format field names
KIND_FIELD = "msg_type"
DATA_FIELD = "data"

# Client -> server kinds
REGISTER_NAME = "RegisterName"
CHAT = "Chat"

# Server -> client kinds
ALL_MESSAGES = "AllMessages"
NEW_MESSAGE = "NewMessage"
NAME_TAKEN = "NameTaken"
NAME_REGISTERED = "NameRegistered"
JOINED = "Joined"

JOINED_NOTICE_TEMPLATE = "{name} joined."

# Server settings
SERVER_NAME = "WebSocket Room Chat Server"
HOST = os.getenv("CHAT_HOST", "0.0.0.0")
PORT = int(os.getenv("CHAT_PORT", "8000"))
WS_PING_INTERVAL = 20
WS_PING_TIMEOUT = 10

# Logging levels
LOG_LEVEL = os.getenv("CHAT_LOG_LEVEL", "INFO").upper()

# Protocol error messages (logged, never sent to clients)
ERROR_MESSAGES = {
    "invalid_json": "Frame is not valid JSON",
    "not_an_object": "Frame must be a JSON object",
    "missing_kind": "Frame has no message kind",
    "unknown_kind": "Unknown message kind",
    "frame_too_large": "Frame exceeds maximum size",
    "invalid_name": "Name payload must be a string",
    "invalid_chat": "Chat payload must carry string name and message",
}

"""
Routing of decoded client messages to registry operations
"""

from .channel import DeliveryChannel
from .constants import DEFAULT_ROOM
from .logger import get_logger, log_protocol_event
from .models import Chat, ChatEntry, ClientMessage, Envelope, RegisterName
from .registry import Registry, SessionNotFoundError
from .validators import MessageDecodeError, decode_chat_body, is_valid_name

logger = get_logger()


class Dispatcher:
    """
    Maps each client message to registry calls and at most one direct reply.

    Holds no state of its own. Room-wide notices are produced only by the
    registry's fan-out; the dispatcher itself only answers RegisterName.
    """

    def __init__(self, registry: Registry):
        self.registry = registry

    async def dispatch(self, session_id: str, message: ClientMessage, channel: DeliveryChannel) -> bool:
        """
        Handle one decoded client message

        Args:
            session_id: Sending session
            message: Decoded RegisterName or Chat
            channel: The sender's delivery channel, used for direct replies

        Returns:
            False if a reply could not be queued because the channel is
            closed, True otherwise
        """
        if isinstance(message, RegisterName):
            return await self.handle_register_name(session_id, message.name, channel)

        if isinstance(message, Chat):
            await self.handle_chat(session_id, message)
            return True

        raise TypeError(f"Unhandled client message: {message!r}")

    async def handle_register_name(self, session_id: str, name: str, channel: DeliveryChannel) -> bool:
        if not is_valid_name(name):
            log_protocol_event("empty_name_rejected", {"session": session_id})
            return await channel.send(Envelope.name_taken())

        if not await self.registry.claim_name(session_id, name):
            log_protocol_event("name_taken", {"session": session_id, "name": name})
            return await channel.send(Envelope.name_taken())

        if not await channel.send(Envelope.name_registered()):
            return False

        await self.registry.join_room(session_id, DEFAULT_ROOM)
        return True

    async def handle_chat(self, session_id: str, message: Chat):
        try:
            entry = decode_chat_body(message.payload)
        except MessageDecodeError as e:
            log_protocol_event("malformed_chat", {"session": session_id, "error": str(e)})
            return

        record = await self.registry.get_session(session_id)
        if record is None:
            raise SessionNotFoundError(session_id)

        if not record.has_name:
            log_protocol_event("chat_before_name", {"session": session_id})
            return

        if entry.name != record.name:
            logger.info(f"Chat author {entry.name!r} replaced by registered name {record.name!r} for {session_id}")
            entry = ChatEntry(name=record.name, message=entry.message)

        await self.registry.append_message(record.room, entry)

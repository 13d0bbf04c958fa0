"""
Shared session, room and history registry with room fan-out
"""

import asyncio
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from .channel import DeliveryChannel
from .constants import DEFAULT_ROOM, DELIVERY_CHANNEL_CAPACITY
from .logger import get_logger, log_broadcast_event, log_connection_event, log_message_event
from .models import ChatEntry, Envelope, Room, SessionRecord

logger = get_logger()


class SessionNotFoundError(KeyError):
    """A registry mutation named a session id that is not registered"""


class Registry:
    """
    Single source of truth for sessions, names, room membership and history.

    Every public operation takes the one registry lock exactly once and does no
    I/O while holding it; fan-out only enqueues onto delivery channels. Nothing
    ever waits for a second lock, so operations cannot deadlock, and the lock
    gives all mutations a single total order.
    """

    def __init__(self):
        # session id -> SessionRecord
        self._sessions: Dict[str, SessionRecord] = {}
        # room id -> Room
        self._rooms: Dict[str, Room] = {DEFAULT_ROOM: Room(room_id=DEFAULT_ROOM)}
        self._lock = asyncio.Lock()

    def _room(self, room: str) -> Room:
        """Get or lazily create a room. Caller holds the lock."""
        if room not in self._rooms:
            self._rooms[room] = Room(room_id=room)
        return self._rooms[room]

    def _session(self, session_id: str) -> SessionRecord:
        """Caller holds the lock."""
        record = self._sessions.get(session_id)
        if record is None:
            raise SessionNotFoundError(session_id)
        return record

    def _fan_out(self, room: str, envelope: Envelope, exclude: Optional[str] = None) -> Tuple[int, int]:
        """
        Offer an envelope to every member of a room. Caller holds the lock.

        A full or closed channel loses this envelope only; the remaining
        members are still served.

        Returns:
            Tuple of (delivered, dropped)
        """
        delivered = 0
        dropped = 0

        for member_id in list(self._room(room).members):
            if member_id == exclude:
                continue
            if self._sessions[member_id].channel.offer(envelope):
                delivered += 1
            else:
                dropped += 1

        return delivered, dropped

    async def snapshot_history(self, room: str = DEFAULT_ROOM) -> List[ChatEntry]:
        """
        Copy of a room's history in arrival order

        Args:
            room: Room identifier

        Returns:
            List of ChatEntry objects, oldest first
        """
        async with self._lock:
            if room not in self._rooms:
                return []
            return list(self._rooms[room].history)

    async def register_session(self, session_id: str, channel: DeliveryChannel, peer: str = "unknown") -> bool:
        """
        Add a session with no name to the default room

        Args:
            session_id: Unique connection identifier
            channel: The session's outbound delivery channel
            peer: Client network address, for logging

        Returns:
            True if added, False if the id was already registered
        """
        async with self._lock:
            if session_id in self._sessions:
                added = False
            else:
                self._sessions[session_id] = SessionRecord(
                    session_id=session_id,
                    channel=channel,
                    peer=peer,
                )
                self._room(DEFAULT_ROOM).members.add(session_id)
                added = True

        if added:
            log_connection_event(session_id, DEFAULT_ROOM, "register", peer)
        else:
            logger.warning(f"Session already registered: {session_id}")
        return added

    async def is_name_available(self, room: str, candidate: str) -> bool:
        """
        True iff no session currently in the room holds exactly this name

        The answer may be stale by the time the caller acts on it; use
        ``claim_name`` to check and assign in one step.
        """
        async with self._lock:
            return self._name_available(room, candidate)

    def _name_available(self, room: str, candidate: str) -> bool:
        if room not in self._rooms:
            return True
        return all(
            self._sessions[member_id].name != candidate
            for member_id in self._rooms[room].members
        )

    async def set_name(self, session_id: str, name: str):
        """
        Assign a name without checking availability

        Raises:
            SessionNotFoundError: if the session is not registered
        """
        async with self._lock:
            self._session(session_id).name = name

    async def claim_name(self, session_id: str, name: str) -> bool:
        """
        Assign a name if no other session in the same room holds it

        The check and the assignment happen under one lock acquisition, so
        two sessions racing for the same name cannot both win.

        Raises:
            SessionNotFoundError: if the session is not registered

        Returns:
            True if the name was assigned
        """
        async with self._lock:
            record = self._session(session_id)
            room = record.room
            if not self._name_available(room, name):
                claimed = False
            else:
                record.name = name
                claimed = True

        if claimed:
            log_message_event("name_claimed", session_id, room, f"name={name}")
        return claimed

    async def join_room(self, session_id: str, room: str) -> int:
        """
        Move a session into a room and notify the room's other members

        Args:
            session_id: Session identifier
            room: Target room identifier (created on first use)

        Raises:
            SessionNotFoundError: if the session is not registered

        Returns:
            Number of members the Joined notice was queued for
        """
        async with self._lock:
            record = self._session(session_id)
            if record.room != room:
                self._room(record.room).members.discard(session_id)
            self._room(room).members.add(session_id)
            record.room = room

            envelope = Envelope.joined(record.name)
            delivered, dropped = self._fan_out(room, envelope, exclude=session_id)

        log_message_event("joined", session_id, room, f"name={envelope.data!r}")
        log_broadcast_event(envelope.kind.value, room, delivered, dropped)
        return delivered

    async def append_message(self, room: str, entry: ChatEntry) -> int:
        """
        Append to a room's history and send it to every member, sender included

        Args:
            room: Room identifier
            entry: Chat entry to record

        Returns:
            Number of members the NewMessage was queued for
        """
        async with self._lock:
            self._room(room).history.append(entry)
            position = len(self._rooms[room].history)

            envelope = Envelope.new_message(entry)
            delivered, dropped = self._fan_out(room, envelope)

        log_message_event("appended", "-", room, f"author={entry.name} | position={position}")
        log_broadcast_event(envelope.kind.value, room, delivered, dropped)
        return delivered

    async def remove_session(self, session_id: str) -> bool:
        """
        Delete a session and its room membership; its name becomes free at once

        Returns:
            True if the session was removed, False if it was not registered
        """
        async with self._lock:
            record = self._sessions.pop(session_id, None)
            if record is not None:
                self._room(record.room).members.discard(session_id)

        if record is None:
            return False

        log_connection_event(session_id, record.room, "remove", record.peer)
        return True

    async def get_session(self, session_id: str) -> Optional[SessionRecord]:
        """Copy of a session record, or None if not registered"""
        async with self._lock:
            record = self._sessions.get(session_id)
            return replace(record) if record is not None else None

    async def get_room_info(self) -> List[Dict]:
        async with self._lock:
            return [room.to_dict() for room in self._rooms.values()]

    async def get_stats(self) -> Dict[str, int]:
        """
        Get overall registry statistics

        Returns:
            Dictionary with session, room and message counts
        """
        async with self._lock:
            return {
                "total_sessions": len(self._sessions),
                "named_sessions": sum(1 for record in self._sessions.values() if record.has_name),
                "total_rooms": len(self._rooms),
                "total_messages": sum(len(room.history) for room in self._rooms.values()),
                "delivery_capacity": DELIVERY_CHANNEL_CAPACITY,
            }

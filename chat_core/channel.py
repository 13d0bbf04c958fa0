"""
Bounded per-session outbound delivery channel
"""

import asyncio

from .constants import DELIVERY_CHANNEL_CAPACITY
from .models import Envelope


class DeliveryChannel:
    """
    FIFO queue of envelopes waiting to be written to one connection.

    Room fan-out uses ``offer`` and never waits; direct replies use ``send``
    and wait for room in the queue. Once closed, both refuse new envelopes.
    """

    def __init__(self, capacity: int = DELIVERY_CHANNEL_CAPACITY):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=capacity)
        self._capacity = capacity
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def offer(self, envelope: Envelope) -> bool:
        """Enqueue without waiting. Returns False if full or closed."""
        if self._closed:
            return False
        try:
            self._queue.put_nowait(envelope)
        except asyncio.QueueFull:
            return False
        return True

    async def send(self, envelope: Envelope) -> bool:
        """Enqueue, waiting for space. Returns False if closed."""
        if self._closed:
            return False
        await self._queue.put(envelope)
        return True

    async def receive(self) -> Envelope:
        return await self._queue.get()

    def close(self):
        self._closed = True

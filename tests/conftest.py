"""
Shared fixtures: a fresh registry per test and an in-memory websocket double
"""

import asyncio
import json
from types import SimpleNamespace
from typing import Any, Dict, List

import pytest
from fastapi import WebSocketDisconnect
from fastapi.websockets import WebSocketState

from chat_core import DeliveryChannel, Dispatcher, Registry


class FakeWebSocket:
    """
    Stands in for an accepted Starlette websocket.

    Frames pushed with ``push_text``/``push_bytes``/``push_close`` are returned
    by ``receive`` in order. ``send_text`` records frames, and starts raising
    once ``fail_after`` frames have been written.
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 50000, fail_after: int = -1):
        self.client = SimpleNamespace(host=host, port=port)
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.sent: List[str] = []
        self.fail_after = fail_after
        self.closed = False
        self._incoming: asyncio.Queue = asyncio.Queue()

    def push_text(self, payload: Any):
        text = payload if isinstance(payload, str) else json.dumps(payload)
        self._incoming.put_nowait({"type": "websocket.receive", "text": text})

    def push_bytes(self, data: bytes):
        self._incoming.put_nowait({"type": "websocket.receive", "bytes": data})

    def push_close(self, code: int = 1000):
        self._incoming.put_nowait({"type": "websocket.disconnect", "code": code})

    async def receive(self) -> Dict[str, Any]:
        message = await self._incoming.get()
        if message["type"] == "websocket.disconnect":
            self.client_state = WebSocketState.DISCONNECTED
        return message

    async def send_text(self, data: str):
        if 0 <= self.fail_after <= len(self.sent):
            raise WebSocketDisconnect(code=1006)
        self.sent.append(data)

    async def close(self, code: int = 1000):
        self.closed = True
        self.application_state = WebSocketState.DISCONNECTED

    def sent_json(self) -> List[Dict[str, Any]]:
        return [json.loads(frame) for frame in self.sent]


async def wait_for_sent(websocket: FakeWebSocket, count: int, timeout: float = 2.0):
    """Poll until the websocket has written at least ``count`` frames"""
    async def _wait():
        while len(websocket.sent) < count:
            await asyncio.sleep(0.01)

    await asyncio.wait_for(_wait(), timeout)


def drain(channel: DeliveryChannel) -> List[Dict[str, Any]]:
    """Pop every queued envelope from a channel without waiting"""
    envelopes = []
    while channel.pending:
        envelopes.append(channel._queue.get_nowait().to_dict())
    return envelopes


@pytest.fixture()
def registry() -> Registry:
    return Registry()


@pytest.fixture()
def dispatcher(registry: Registry) -> Dispatcher:
    return Dispatcher(registry)

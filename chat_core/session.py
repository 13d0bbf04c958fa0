"""
Per-connection session: history replay, registration, and the paired
inbound/outbound duties
"""

import asyncio
import uuid
from enum import Enum
from typing import Any, List, Optional

from fastapi import WebSocketDisconnect
from fastapi.websockets import WebSocketState

from .channel import DeliveryChannel
from .constants import DEFAULT_ROOM, DELIVERY_CHANNEL_CAPACITY
from .dispatcher import Dispatcher
from .logger import get_logger, log_protocol_event, log_session_event
from .models import ChatEntry, Envelope
from .registry import Registry
from .validators import MessageDecodeError, decode_client_message

logger = get_logger()

# Errors that mean the connection itself is gone
CONNECTION_ERRORS = (WebSocketDisconnect, RuntimeError, OSError)


class SessionState(str, Enum):
    CONNECTING = "connecting"
    ESTABLISHED = "established"
    TERMINATING = "terminating"
    CLOSED = "closed"


class Session:
    """
    Owns one accepted websocket for its whole life.

    ``run`` drives Connecting -> Established -> Terminating -> Closed. While
    established, an inbound duty (read, decode, dispatch) and an outbound duty
    (drain the delivery channel onto the socket) run as two tasks; whichever
    finishes first causes the other to be cancelled.
    """

    def __init__(
        self,
        websocket: Any,
        registry: Registry,
        dispatcher: Dispatcher,
        session_id: Optional[str] = None,
        capacity: int = DELIVERY_CHANNEL_CAPACITY,
    ):
        self.websocket = websocket
        self.registry = registry
        self.dispatcher = dispatcher
        self.session_id = session_id or f"ws_{uuid.uuid4().hex[:12]}"
        self.peer = f"{websocket.client.host}:{websocket.client.port}" if websocket.client else "unknown"
        self.channel = DeliveryChannel(capacity)
        self.state = SessionState.CONNECTING

    def _transition(self, state: SessionState, details: str = ""):
        log_session_event(f"{self.state.value}->{state.value}", self.session_id, details)
        self.state = state

    async def run(self):
        """Run the session until the connection ends or the task is cancelled"""
        try:
            history = await self.registry.snapshot_history(DEFAULT_ROOM)
            if not await self.probe(history):
                return

            await self._establish(len(history))
            await self._run_duties()
        finally:
            await self._close()

    async def probe(self, history: List[ChatEntry]) -> bool:
        """
        Write the history replay as the first frame; a failed write means the
        peer is gone.

        ASGI exposes no ping frame to the application (uvicorn sends its own
        keepalive pings, see WS_PING_INTERVAL), so the first real write is
        the liveness check.
        """
        try:
            await self.websocket.send_text(Envelope.all_messages(history).to_json())
        except CONNECTION_ERRORS as e:
            logger.info(f"Liveness probe failed for {self.peer}: {e}")
            return False
        return True

    async def _establish(self, history_size: int):
        await self.registry.register_session(self.session_id, self.channel, self.peer)
        self._transition(SessionState.ESTABLISHED, f"history={history_size}")

    async def _run_duties(self):
        outbound = asyncio.create_task(self._outbound_duty(), name=f"{self.session_id}-outbound")
        inbound = asyncio.create_task(self._inbound_duty(), name=f"{self.session_id}-inbound")

        try:
            done, _ = await asyncio.wait({outbound, inbound}, return_when=asyncio.FIRST_COMPLETED)
            winner = "inbound" if inbound in done else "outbound"
        finally:
            # Close before cancelling so neither duty can queue more output
            self.channel.close()
            outbound.cancel()
            inbound.cancel()
            self._transition(SessionState.TERMINATING)
            results = await asyncio.gather(outbound, inbound, return_exceptions=True)

        log_session_event("duties_stopped", self.session_id, f"first={winner}")

        failures = [result for result in results if isinstance(result, Exception)]
        if failures:
            raise failures[0]

    async def _outbound_duty(self):
        """Write queued envelopes in FIFO order until a write fails"""
        while True:
            envelope = await self.channel.receive()
            try:
                await self.websocket.send_text(envelope.to_json())
            except CONNECTION_ERRORS as e:
                logger.info(f"Write to {self.session_id} failed: {e}")
                return

    async def _inbound_duty(self):
        """Read frames in arrival order until close or read error"""
        while True:
            try:
                message = await self.websocket.receive()
            except CONNECTION_ERRORS as e:
                logger.info(f"Read from {self.session_id} failed: {e}")
                return

            if message["type"] == "websocket.disconnect":
                logger.info(f"{self.session_id} sent close with code {message.get('code')}")
                return

            text = message.get("text")
            if text is None:
                data = message.get("bytes") or b""
                log_session_event("binary_ignored", self.session_id, f"{len(data)} bytes")
                continue

            try:
                client_message = decode_client_message(text)
            except MessageDecodeError as e:
                log_protocol_event("malformed_frame", {"session": self.session_id, "error": str(e)})
                continue

            if not await self.dispatcher.dispatch(self.session_id, client_message, self.channel):
                return

    async def _close(self):
        self.channel.close()
        await self.registry.remove_session(self.session_id)

        if (
            self.websocket.application_state == WebSocketState.CONNECTED
            and self.websocket.client_state == WebSocketState.CONNECTED
        ):
            try:
                await self.websocket.close()
            except CONNECTION_ERRORS as e:
                logger.debug(f"Close for {self.session_id} failed: {e}")

        self._transition(SessionState.CLOSED)

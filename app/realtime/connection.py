"""Realtime channel adapters.

The registry and broadcaster only need ``send_text`` and ``close``; these
adapters put a WebSocket or a Server-Sent Events stream behind that
interface. Connections hash by identity, so one object is one subscription.
"""
import asyncio
import uuid
from typing import Optional

from starlette.websockets import WebSocket, WebSocketState

from app.core.logging_config import get_logger

logger = get_logger(__name__)


class RealtimeConnection:
    """One live channel, optionally tied to a participant."""

    transport = "unknown"

    def __init__(self, participant_id: Optional[int] = None, user_id: Optional[int] = None):
        self.id = uuid.uuid4().hex
        self.participant_id = participant_id
        self.user_id = user_id

    async def send_text(self, payload: str) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        """Close the underlying transport. Safe to call more than once."""

    def __repr__(self) -> str:
        return (f"<{type(self).__name__} id={self.id[:8]} "
                f"participant={self.participant_id}>")


class WebSocketConnection(RealtimeConnection):
    transport = "websocket"

    def __init__(self, websocket: WebSocket, participant_id: Optional[int] = None,
                 user_id: Optional[int] = None):
        super().__init__(participant_id=participant_id, user_id=user_id)
        self.websocket = websocket

    async def send_text(self, payload: str) -> None:
        if self.websocket.application_state != WebSocketState.CONNECTED:
            raise ConnectionError("websocket is closed")
        await self.websocket.send_text(payload)

    async def close(self, code: int = 1001) -> None:
        if self.websocket.application_state == WebSocketState.DISCONNECTED:
            return
        try:
            await self.websocket.close(code=code)
        except RuntimeError as e:
            # Peer went away between the state check and the close frame
            logger.debug("websocket_close_failed", connection_id=self.id, error=str(e))


class QueueConnection(RealtimeConnection):
    """
    Buffer for one Server-Sent Events client.

    Broadcasts are pushed onto a bounded queue and drained by the SSE
    response generator. A client that stops reading fills its queue and
    is dropped instead of holding memory for the whole event.
    """

    transport = "sse"

    _CLOSED = None

    def __init__(self, maxsize: int = 256, participant_id: Optional[int] = None,
                 user_id: Optional[int] = None):
        super().__init__(participant_id=participant_id, user_id=user_id)
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.closed = False

    async def send_text(self, payload: str) -> None:
        if self.closed:
            raise ConnectionError("stream is closed")
        try:
            self.queue.put_nowait(payload)
        except asyncio.QueueFull:
            raise ConnectionError("client is not keeping up")

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self.queue.put_nowait(self._CLOSED)
        except asyncio.QueueFull:
            # The reader checks ``closed`` after draining
            pass

    async def receive(self, timeout: float) -> Optional[str]:
        """
        Wait up to ``timeout`` seconds for the next payload.

        Returns None on timeout; raises ``ConnectionAbortedError`` once the
        connection has been closed.
        """
        if self.closed and self.queue.empty():
            raise ConnectionAbortedError("stream is closed")
        try:
            payload = await asyncio.wait_for(self.queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None
        if payload is self._CLOSED:
            raise ConnectionAbortedError("stream is closed")
        return payload

"""
Event broadcaster: fan one message out to every connection of an event.

Design decisions:
- The message is encoded once and the same text goes to every recipient
- Recipients come from a registry snapshot taken when the broadcast starts
- Sends happen one after another under a per-event asyncio lock, so two
  broadcasts for the same event reach each connection in call order
- A failed send never stops the fan-out: the failure is logged, the dead
  connection is unsubscribed and closed, and delivery continues with the rest
- A dropped connection's event is remembered until its transport handler
  leaves, so the departure can still be announced
"""
import asyncio
from typing import Dict, Optional

from app.core.exceptions import DeliveryError
from app.core.logging_config import get_logger
from app.realtime.connection import RealtimeConnection
from app.realtime.registry import ConnectionRegistry
from app.schemas.common import CamelModel
from app.schemas.realtime import encode_message

logger = get_logger(__name__)


class EventBroadcaster:
    """Delivers server messages to the subscribers of one event."""

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry
        self._locks: Dict[int, asyncio.Lock] = {}
        self._dropped: Dict[RealtimeConnection, int] = {}
        self.delivered = 0
        self.failed = 0

    def _lock_for(self, event_id: int) -> asyncio.Lock:
        lock = self._locks.get(event_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[event_id] = lock
        return lock

    def _release_lock(self, event_id: int) -> None:
        lock = self._locks.get(event_id)
        if lock is not None and not lock.locked() and not self.registry.has_event(event_id):
            del self._locks[event_id]

    async def broadcast(
        self,
        event_id: int,
        message: CamelModel,
        exclude: Optional[RealtimeConnection] = None,
    ) -> int:
        """
        Send ``message`` to every connection subscribed to ``event_id``.

        Args:
            event_id: Target event
            message: One of the ``ServerMessage`` models
            exclude: Connection to skip, e.g. the one announcing its own join

        Returns:
            Number of connections the message was delivered to. Zero when the
            event has no subscribers.
        """
        payload = encode_message(message)
        message_type = getattr(message, "type", None)

        async with self._lock_for(event_id):
            recipients = self.registry.subscribers_of(event_id) - {exclude}
            delivered = 0
            for connection in recipients:
                try:
                    await connection.send_text(payload)
                except Exception as e:
                    await self._drop(event_id, connection, e)
                else:
                    delivered += 1

        self._release_lock(event_id)
        self.delivered += delivered

        logger.debug(
            "broadcast_sent",
            event_id=event_id,
            message_type=message_type,
            recipients=len(recipients),
            delivered=delivered,
        )
        return delivered

    async def _drop(self, event_id: int, connection: RealtimeConnection, error: Exception) -> None:
        """Unsubscribe and close a connection whose send failed."""
        failure = DeliveryError(connection.id, str(error) or type(error).__name__)
        self.failed += 1
        logger.warning(
            "broadcast_delivery_failed",
            event_id=event_id,
            connection_id=connection.id,
            transport=connection.transport,
            reason=failure.reason,
        )
        if self.registry.unsubscribe(connection) is not None:
            self._dropped[connection] = event_id

        # Closing ends the client's stream so it reconnects and re-fetches state
        try:
            await connection.close()
        except Exception as e:
            logger.warning(
                "dropped_connection_close_failed",
                event_id=event_id,
                connection_id=connection.id,
                error=str(e),
            )

    def pop_dropped(self, connection: RealtimeConnection) -> Optional[int]:
        """
        Forget a connection dropped after a failed send.

        Returns the event it was dropped from, or None if it never was.
        """
        return self._dropped.pop(connection, None)

    def get_stats(self) -> Dict[str, int]:
        return {
            "delivered": self.delivered,
            "failed": self.failed,
            "dropped_pending_leave": len(self._dropped),
            "locked_events": len(self._locks),
        }

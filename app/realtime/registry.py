"""
Connection registry: which live connections listen to which event.

Design decisions:
- Owned by the application (created in the lifespan, kept on ``app.state``)
  rather than a module global, so tests build isolated instances
- A connection belongs to at most one event; subscribing again moves it
- Empty event sets are deleted on the spot so the map only ever holds events
  with live listeners
- A reentrant threading lock guards both maps. Handlers normally run on the
  event loop, where the lock is uncontended, but sync code on the threadpool
  can use the registry safely too
- ``subscribers_of`` returns an immutable snapshot: the broadcaster iterates
  it while (un)subscribes keep happening
"""
import threading
from typing import Dict, FrozenSet, List, Optional, Set

from app.core.logging_config import get_logger
from app.realtime.connection import RealtimeConnection

logger = get_logger(__name__)


class ConnectionRegistry:
    """Maps event ids to the set of connections subscribed to them."""

    def __init__(self):
        self._events: Dict[int, Set[RealtimeConnection]] = {}
        self._membership: Dict[RealtimeConnection, int] = {}
        self._lock = threading.RLock()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def init(self) -> None:
        """Start accepting subscriptions (application startup)."""
        with self._lock:
            self._events.clear()
            self._membership.clear()
            self._running = True
        logger.info("connection_registry_started")

    def shutdown(self) -> List[RealtimeConnection]:
        """
        Drop every subscription (application shutdown).

        Returns the connections that were registered so the caller can close
        their transports.
        """
        with self._lock:
            connections = list(self._membership)
            self._events.clear()
            self._membership.clear()
            self._running = False
        logger.info("connection_registry_stopped", dropped_connections=len(connections))
        return connections

    def subscribe(self, event_id: int, connection: RealtimeConnection) -> None:
        """Register ``connection`` under ``event_id``, leaving any previous event."""
        with self._lock:
            previous = self._membership.get(connection)
            if previous == event_id:
                return
            if previous is not None:
                self._discard(previous, connection)
            self._events.setdefault(event_id, set()).add(connection)
            self._membership[connection] = event_id

        logger.debug(
            "connection_subscribed",
            event_id=event_id,
            connection_id=connection.id,
            previous_event_id=previous,
        )

    def unsubscribe(self, connection: RealtimeConnection) -> Optional[int]:
        """
        Remove ``connection`` from whatever event it listens to.

        Returns the event id it left, or None when it was not registered
        (unsubscribing twice is a no-op).
        """
        with self._lock:
            event_id = self._membership.pop(connection, None)
            if event_id is not None:
                self._discard(event_id, connection)

        if event_id is not None:
            logger.debug("connection_unsubscribed", event_id=event_id, connection_id=connection.id)
        return event_id

    def _discard(self, event_id: int, connection: RealtimeConnection) -> None:
        members = self._events.get(event_id)
        if members is None:
            return
        members.discard(connection)
        if not members:
            del self._events[event_id]

    def subscribers_of(self, event_id: int) -> FrozenSet[RealtimeConnection]:
        """Snapshot of the connections currently subscribed to ``event_id``."""
        with self._lock:
            return frozenset(self._events.get(event_id, ()))

    def event_of(self, connection: RealtimeConnection) -> Optional[int]:
        with self._lock:
            return self._membership.get(connection)

    def has_event(self, event_id: int) -> bool:
        with self._lock:
            return event_id in self._events

    def count(self, event_id: int) -> int:
        with self._lock:
            return len(self._events.get(event_id, ()))

    def __len__(self) -> int:
        with self._lock:
            return len(self._membership)

    def get_stats(self) -> Dict[str, object]:
        with self._lock:
            return {
                "running": self._running,
                "events": len(self._events),
                "connections": len(self._membership),
                "per_event": {event_id: len(members) for event_id, members in self._events.items()},
            }

"""Realtime fan-out: live connections, the event registry and the broadcaster."""
from app.realtime.broadcaster import EventBroadcaster
from app.realtime.connection import QueueConnection, RealtimeConnection, WebSocketConnection
from app.realtime.registry import ConnectionRegistry

__all__ = [
    "ConnectionRegistry",
    "EventBroadcaster",
    "QueueConnection",
    "RealtimeConnection",
    "WebSocketConnection",
]

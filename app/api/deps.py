"""Shared API dependencies.

The realtime objects live on ``app.state`` (created in the lifespan in
``app.main``). Dependencies take an ``HTTPConnection`` so the same providers
work for HTTP routes and the WebSocket route.
"""
from starlette.requests import HTTPConnection

from app.core.cache import TTLCache
from app.db import get_db
from app.realtime import ConnectionRegistry, EventBroadcaster
from app.services.coordinator import SessionCoordinator


def get_coordinator(connection: HTTPConnection) -> SessionCoordinator:
    return connection.app.state.coordinator


def get_registry(connection: HTTPConnection) -> ConnectionRegistry:
    return connection.app.state.registry


def get_broadcaster(connection: HTTPConnection) -> EventBroadcaster:
    return connection.app.state.broadcaster


def get_cache(connection: HTTPConnection) -> TTLCache:
    return connection.app.state.cache


__all__ = [
    "get_db",
    "get_coordinator",
    "get_registry",
    "get_broadcaster",
    "get_cache",
]

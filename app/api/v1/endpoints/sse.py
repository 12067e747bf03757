"""Server-Sent Events endpoint.

Fallback for clients that cannot hold a WebSocket open. The stream is a
``QueueConnection`` registered in the same registry as WebSockets, so it gets
exactly the same messages in the same order.
"""
import asyncio
import json
import logging
from typing import AsyncIterator, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.api.deps import get_coordinator, get_db
from app.core.config import settings
from app.realtime import QueueConnection
from app.services import events as event_store
from app.services.coordinator import SessionCoordinator

logger = logging.getLogger(__name__)
router = APIRouter()


async def event_generator(
    request: Request,
    connection: QueueConnection,
    coordinator: SessionCoordinator,
    keepalive: float = 15.0,
) -> AsyncIterator[str]:
    """
    Drain a queue connection into SSE frames.

    Args:
        request: FastAPI request object to check for client disconnect
        connection: Subscribed queue connection to read from
        coordinator: Used to leave the event when the stream ends
        keepalive: Seconds of silence before a comment line is sent, so
            proxies do not drop an idle stream
    """
    try:
        while True:
            # Check if client disconnected
            if await request.is_disconnected():
                break

            try:
                payload = await connection.receive(timeout=keepalive)
            except ConnectionAbortedError:
                # Dropped by the broadcaster or closed on shutdown
                yield f"event: error\ndata: {json.dumps({'error': 'Stream closed'})}\n\n"
                break

            if payload is None:
                yield ": keepalive\n\n"
            else:
                yield f"data: {payload}\n\n"

    except asyncio.CancelledError:
        # Client disconnected
        pass
    finally:
        await coordinator.leave(connection)
        await connection.close()


@router.get("/sse/events/{event_id}")
async def sse_event_stream(
    request: Request,
    event_id: int,
    participant_id: Optional[int] = Query(None, alias="participantId"),
    user_id: Optional[int] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    """
    Live updates for one event over Server-Sent Events.

    Every ``data:`` line carries one message in the same
    ``{"type": ..., "data": ...}`` envelope the WebSocket uses. After a
    reconnect the client should re-fetch state over HTTP; messages sent while
    it was away are not replayed.

    Raises:
        HTTPException: 404 if the event does not exist
    """
    event_store.get_event(db, event_id)

    connection = QueueConnection(
        maxsize=settings.SSE_QUEUE_SIZE,
        participant_id=participant_id,
        user_id=user_id,
    )
    await coordinator.join(connection, event_id)
    logger.info("SSE stream opened for event %s (connection %s)", event_id, connection.id)

    return StreamingResponse(
        event_generator(request, connection, coordinator, keepalive=settings.SSE_KEEPALIVE_INTERVAL),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable buffering in nginx
        }
    )

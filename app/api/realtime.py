"""WebSocket endpoint.

Clients open ``/ws``, send ``{"type": "join_event", "eventId": 7}`` and from
then on receive every message broadcast to that event. ``{"type": "ping"}``
is answered with a bare ``pong``. Mutations go over HTTP; this channel only
carries subscriptions.
"""
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from app.api.deps import get_coordinator
from app.core.logging_config import get_logger
from app.realtime import WebSocketConnection
from app.services.coordinator import SessionCoordinator

logger = get_logger(__name__)
router = APIRouter()


@router.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    coordinator: SessionCoordinator = Depends(get_coordinator),
):
    await websocket.accept()
    connection = WebSocketConnection(websocket)
    logger.info("websocket_connected", connection_id=connection.id)

    try:
        # The broadcaster closes the socket when a send to it fails
        while websocket.application_state == WebSocketState.CONNECTED:
            raw = await websocket.receive_text()
            reply = await coordinator.handle_client_message(connection, raw)
            if reply is not None and websocket.application_state == WebSocketState.CONNECTED:
                await websocket.send_text(reply)
    except WebSocketDisconnect as e:
        logger.info("websocket_disconnected", connection_id=connection.id, code=e.code)
    finally:
        await coordinator.leave(connection)

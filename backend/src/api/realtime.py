"""
WebSocket endpoint for live roster updates.

Viewers of an event connect to ``/api/ws/events/{event_guid}`` and receive
every roster change of that event as a JSON message. Connecting subscribes,
disconnecting unsubscribes. There is no replay: after (re)connecting a
client should fetch the roster over HTTP.

Client messages:
    "ping" -> "pong"

Server messages:
    {"type": "subscribed", "event_id": "evt_..."}   once, after connecting
    {"type": "heartbeat"}                            when the socket is idle
    {"type": "attendee:added", "event_id": ..., "attendee": {...}, "stats": {...}}
    ... (see services.roster_notifier.RosterEventType)
"""

import asyncio

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from backend.src.config.settings import get_settings
from backend.src.db.database import get_db
from backend.src.services.event_service import EventService
from backend.src.services.exceptions import NotFoundError
from backend.src.utils.logging_config import get_logger
from backend.src.utils.websocket import ConnectionManager


logger = get_logger("websocket")

router = APIRouter(tags=["Realtime"])

# Application-defined close code (4000-4999 range) for an unknown event
CLOSE_EVENT_NOT_FOUND = 4404


@router.websocket("/ws/events/{event_guid}")
async def event_roster_websocket(
    websocket: WebSocket,
    event_guid: str,
    db: Session = Depends(get_db),
):
    """
    Subscribe to the roster channel of one event.

    Unknown events are accepted and immediately closed with code 4404 so
    browsers see the reason (a rejected handshake only surfaces as 1006).
    """
    manager: ConnectionManager = websocket.app.state.websocket_manager
    heartbeat = get_settings().ws_heartbeat_seconds

    await websocket.accept()

    try:
        channel = EventService(db).get_by_guid(event_guid).guid
    except NotFoundError:
        logger.info(f"WebSocket rejected for unknown event {event_guid}")
        await websocket.close(code=CLOSE_EVENT_NOT_FOUND, reason="Event not found")
        return
    finally:
        # Release the pooled connection; the socket may stay open for hours
        db.close()

    await manager.register_accepted(channel, websocket)
    logger.info(f"WebSocket connected for event {channel}")

    try:
        await websocket.send_json({"type": "subscribed", "event_id": channel})
        while True:
            try:
                data = await asyncio.wait_for(
                    websocket.receive_text(),
                    timeout=heartbeat
                )
                if data == "ping":
                    await websocket.send_text("pong")
            except asyncio.TimeoutError:
                try:
                    await websocket.send_json({"type": "heartbeat"})
                except Exception as e:
                    logger.debug(f"Heartbeat to {channel} failed: {e}")
                    break
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for event {channel}")
    finally:
        manager.disconnect(channel, websocket)

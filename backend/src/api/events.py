"""
Events API endpoints.

Provides endpoints for:
- Listing and creating events
- Reading, updating and deleting an event
- Verifying the shared secret of a protected event
- Finishing and restarting an event (roster lifecycle)

Design:
- Uses dependency injection for services
- All endpoints use GUID format (evt_xxx) for identifiers
- Service exceptions are translated by api.errors
"""

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from backend.src.api.errors import http_error, service_error_to_http
from backend.src.db.database import get_db
from backend.src.schemas.event import (
    EventCreate,
    EventListResponse,
    EventResponse,
    EventUpdate,
    SecretVerifyRequest,
    SecretVerifyResponse,
)
from backend.src.services.event_service import EventService
from backend.src.services.exceptions import ServiceError
from backend.src.utils.logging_config import get_logger
from backend.src.utils.websocket import ConnectionManager


logger = get_logger("api")

router = APIRouter(
    prefix="/events",
    tags=["Events"],
)


# ============================================================================
# Dependencies
# ============================================================================


def get_event_service(db: Session = Depends(get_db)) -> EventService:
    """Create EventService instance with database session."""
    return EventService(db=db)


def get_websocket_manager(request: Request) -> ConnectionManager:
    """Get WebSocket connection manager from application state."""
    return request.app.state.websocket_manager


# ============================================================================
# API Endpoints
# ============================================================================


@router.get(
    "",
    response_model=EventListResponse,
    summary="List events",
    description="List all events with roster statistics, newest first",
)
async def list_events(
    event_service: EventService = Depends(get_event_service),
) -> EventListResponse:
    try:
        events = event_service.list()
        stats = event_service.get_stats_map(events)
        items = [
            EventResponse(**event_service.build_event_response(e, stats[e.id]))
            for e in events
        ]
    except Exception as e:
        logger.error(f"Error listing events: {str(e)}", exc_info=True)
        raise http_error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error",
            f"Failed to list events: {str(e)}",
        )
    return EventListResponse(items=items, total=len(items))


@router.post(
    "",
    response_model=EventResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create event",
)
async def create_event(
    event_data: EventCreate,
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    """
    Create a new event.

    A non-empty ``secret`` makes the event protected; only its hash is stored.

    Raises:
        400 Bad Request: If the name is empty
    """
    try:
        event = event_service.create(**event_data.model_dump())
        return EventResponse(**event_service.build_event_response(event))
    except ServiceError as e:
        raise service_error_to_http(e)


@router.get(
    "/{guid}",
    response_model=EventResponse,
    summary="Get event",
)
async def get_event(
    guid: str,
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    try:
        event = event_service.get_by_guid(guid)
        return EventResponse(**event_service.build_event_response(event))
    except ServiceError as e:
        raise service_error_to_http(e)


@router.put(
    "/{guid}",
    response_model=EventResponse,
    summary="Update event",
)
async def update_event(
    guid: str,
    event_data: EventUpdate,
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    """
    Replace the editable fields of an event.

    Secret handling: ``remove_secret=true`` unprotects the event; a non-empty
    ``secret`` replaces the current one; otherwise it is kept.

    Raises:
        400 Bad Request: If the name is empty
        404 Not Found: If the event does not exist
    """
    try:
        event = event_service.update(guid, **event_data.model_dump())
        logger.info(f"Updated event via API: {guid}")
        return EventResponse(**event_service.build_event_response(event))
    except ServiceError as e:
        raise service_error_to_http(e)


@router.delete(
    "/{guid}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete event",
    description="Delete an event and its whole roster",
)
async def delete_event(
    guid: str,
    event_service: EventService = Depends(get_event_service),
    ws_manager: ConnectionManager = Depends(get_websocket_manager),
) -> Response:
    try:
        event_service.delete(guid)
    except ServiceError as e:
        raise service_error_to_http(e)

    await ws_manager.close_channel(guid, reason="Event deleted")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{guid}/verify-secret",
    response_model=SecretVerifyResponse,
    summary="Verify event secret",
)
async def verify_event_secret(
    guid: str,
    request_data: SecretVerifyRequest,
    event_service: EventService = Depends(get_event_service),
) -> SecretVerifyResponse:
    """
    Check the secret of a protected event. Unprotected events always pass.

    Raises:
        400 Bad Request: If the event is protected and no secret was sent
        401 Unauthorized: If the secret is wrong
        404 Not Found: If the event does not exist
    """
    try:
        return SecretVerifyResponse(
            verified=event_service.verify_secret(guid, request_data.secret)
        )
    except ServiceError as e:
        raise service_error_to_http(e)


@router.post(
    "/{guid}/finish",
    response_model=EventResponse,
    summary="Finish event",
    description="Freeze the roster; mutations are rejected until restart",
)
async def finish_event(
    guid: str,
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    try:
        event = event_service.finish(guid)
        return EventResponse(**event_service.build_event_response(event))
    except ServiceError as e:
        raise service_error_to_http(e)


@router.post(
    "/{guid}/restart",
    response_model=EventResponse,
    summary="Restart event",
    description="Re-open a finished event's roster for changes",
)
async def restart_event(
    guid: str,
    event_service: EventService = Depends(get_event_service),
) -> EventResponse:
    try:
        event = event_service.restart(guid)
        return EventResponse(**event_service.build_event_response(event))
    except ServiceError as e:
        raise service_error_to_http(e)

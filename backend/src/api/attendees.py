"""
Attendees API endpoints for roster management.

Provides endpoints for:
- Listing the roster with search and check-in filters
- Adding attendees manually
- Importing attendees from CSV/XLS/XLSX files
- Importing duplicates the user chose to keep
- Checking attendees in and undoing check-in
- Removing one attendee or clearing the roster
- Exporting the roster as an Excel workbook

Design:
- Uses dependency injection for services and the roster notifier
- All endpoints use GUID format (evt_xxx / att_xxx) for identifiers
- Mutations on finished events return 403 (undo check-in excepted)
- Live updates are pushed to /api/ws/events/{event_guid} subscribers
"""

from dataclasses import asdict
from typing import Optional
from urllib.parse import quote

from fastapi import (
    APIRouter, Depends, File, Query, Request, Response, UploadFile, status
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.src.api.errors import http_error, service_error_to_http
from backend.src.config.settings import AppSettings, get_settings
from backend.src.db.database import get_db
from backend.src.schemas.attendee import (
    AttendeeCreate,
    AttendeeListResponse,
    AttendeeResponse,
    DuplicateConfirmRequest,
    DuplicateConfirmResponse,
    ImportResultResponse,
    RosterStats,
)
from backend.src.services.attendee_service import AttendeeService, serialize_attendee
from backend.src.services.exceptions import ServiceError
from backend.src.services.export_service import ExportService
from backend.src.services.import_service import DuplicateCandidate, ImportService
from backend.src.services.roster_notifier import RosterNotifier
from backend.src.utils.logging_config import get_logger


logger = get_logger("api")

router = APIRouter(
    prefix="/events/{event_guid}/attendees",
    tags=["Attendees"],
)


# ============================================================================
# Dependencies
# ============================================================================


def get_roster_notifier(request: Request) -> RosterNotifier:
    """Get the roster notifier from application state."""
    return request.app.state.roster_notifier


def get_attendee_service(
    db: Session = Depends(get_db),
    notifier: RosterNotifier = Depends(get_roster_notifier),
) -> AttendeeService:
    """Create AttendeeService instance with dependencies."""
    return AttendeeService(db=db, notifier=notifier)


def get_import_service(
    db: Session = Depends(get_db),
    notifier: RosterNotifier = Depends(get_roster_notifier),
) -> ImportService:
    """Create ImportService instance with dependencies."""
    return ImportService(db=db, notifier=notifier)


def get_export_service(db: Session = Depends(get_db)) -> ExportService:
    return ExportService(db=db)


# ============================================================================
# Roster Endpoints
# ============================================================================


@router.get(
    "",
    response_model=AttendeeListResponse,
    summary="List attendees",
)
async def list_attendees(
    event_guid: str,
    search: Optional[str] = Query(None, description="Name or phone substring"),
    checked_in: Optional[bool] = Query(None, description="Filter by check-in state"),
    attendee_service: AttendeeService = Depends(get_attendee_service),
) -> AttendeeListResponse:
    """
    List the roster of an event in creation order.

    Example:
        GET /api/events/evt_01hgw.../attendees?search=jane&checked_in=false
    """
    try:
        attendees = attendee_service.list_attendees(event_guid, search, checked_in)
        stats = attendee_service.get_stats(event_guid)
    except ServiceError as e:
        raise service_error_to_http(e)

    return AttendeeListResponse(
        items=[AttendeeResponse.model_validate(a) for a in attendees],
        total=len(attendees),
        stats=RosterStats(**stats),
    )


@router.post(
    "",
    response_model=AttendeeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add attendee",
)
async def add_attendee(
    event_guid: str,
    attendee_data: AttendeeCreate,
    attendee_service: AttendeeService = Depends(get_attendee_service),
) -> AttendeeResponse:
    """
    Add an attendee manually (source "manual").

    Raises:
        400 Bad Request: If the name is empty
        403 Forbidden: If the event is finished
        404 Not Found: If the event does not exist
    """
    try:
        attendee = attendee_service.add_attendee(
            event_guid,
            name=attendee_data.name,
            phone_number=attendee_data.phone_number,
            affiliation=attendee_data.affiliation,
        )
    except ServiceError as e:
        raise service_error_to_http(e)
    return AttendeeResponse.model_validate(attendee)


@router.delete(
    "",
    summary="Clear roster",
    description="Remove every attendee of the event",
)
async def clear_attendees(
    event_guid: str,
    attendee_service: AttendeeService = Depends(get_attendee_service),
) -> dict:
    try:
        removed = attendee_service.clear_attendees(event_guid)
    except ServiceError as e:
        raise service_error_to_http(e)
    return {"message": f"Removed {removed} attendees", "removed": removed}


@router.get(
    "/export",
    summary="Export roster",
    description="Download the roster as an .xlsx workbook",
    response_class=Response,
)
async def export_attendees(
    event_guid: str,
    lang: str = Query("id", description="Label language: id (default) or en"),
    export_service: ExportService = Depends(get_export_service),
) -> Response:
    try:
        export = export_service.export_roster(event_guid, lang)
    except ServiceError as e:
        raise service_error_to_http(e)

    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={
            "Content-Disposition":
                f"attachment; filename*=UTF-8''{quote(export.filename)}"
        },
    )


# ============================================================================
# Import Endpoints
# ============================================================================


@router.post(
    "/import",
    response_model=ImportResultResponse,
    summary="Import attendees from file",
)
async def import_attendees(
    event_guid: str,
    file: UploadFile = File(..., description="CSV, XLS or XLSX roster file"),
    import_service: ImportService = Depends(get_import_service),
    settings: AppSettings = Depends(get_settings),
) -> ImportResultResponse:
    """
    Import attendees from a spreadsheet.

    Rows matching an existing attendee (by phone, then by name) are not
    written; they are returned in ``duplicates`` for review.

    Raises:
        403 Forbidden: If the event is finished
        404 Not Found: If the event does not exist
        413 Content Too Large: If the file exceeds the upload cap
        422 Unprocessable Entity: If the file has no rows or no name column
        500 Internal Server Error: If writing failed (nothing was imported)
    """
    max_bytes = settings.max_import_size_bytes
    content = await file.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise http_error(
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "file_too_large",
            f"File exceeds the {settings.max_import_size_mb} MB limit",
        )

    try:
        outcome = import_service.import_attendees(event_guid, content, file.filename)
    except ServiceError as e:
        raise service_error_to_http(e)
    except SQLAlchemyError as e:
        raise http_error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "import_failed",
            f"Import failed, no attendees were imported: {str(e)}",
        )

    return ImportResultResponse(
        message=outcome.message,
        imported=outcome.imported,
        skipped=outcome.skipped,
        duplicates=[asdict(d) for d in outcome.duplicates],
    )


@router.post(
    "/import-duplicates",
    response_model=DuplicateConfirmResponse,
    summary="Import confirmed duplicates",
)
async def import_duplicates(
    event_guid: str,
    request_data: DuplicateConfirmRequest,
    import_service: ImportService = Depends(get_import_service),
) -> DuplicateConfirmResponse:
    """
    Import duplicate candidates the user chose to keep.

    The body is the (possibly filtered) ``duplicates`` list from the import
    response. Entries without a name are ignored.
    """
    candidates = [
        DuplicateCandidate(
            name=d.name or "", phone=d.phone, affiliation=d.affiliation
        )
        for d in request_data.duplicates
    ]
    try:
        imported = import_service.confirm_duplicate_import(event_guid, candidates)
    except ServiceError as e:
        raise service_error_to_http(e)
    except SQLAlchemyError as e:
        raise http_error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "import_failed",
            f"Import failed, no attendees were imported: {str(e)}",
        )

    return DuplicateConfirmResponse(
        message=f"Imported {imported} duplicate attendees",
        imported=imported,
    )


# ============================================================================
# Single Attendee Endpoints
# ============================================================================


@router.patch(
    "/{attendee_guid}/checkin",
    response_model=AttendeeResponse,
    summary="Check in attendee",
    responses={409: {"description": "Attendee already checked in"}},
)
async def check_in_attendee(
    event_guid: str,
    attendee_guid: str,
    attendee_service: AttendeeService = Depends(get_attendee_service),
) -> AttendeeResponse:
    """
    Check an attendee in.

    Raises:
        403 Forbidden: If the event is finished
        404 Not Found: If the event or attendee does not exist
        409 Conflict: If the attendee is already checked in; the detail
            carries the unchanged attendee
    """
    try:
        result = attendee_service.check_in(event_guid, attendee_guid)
    except ServiceError as e:
        raise service_error_to_http(e)

    if not result.changed:
        raise http_error(
            status.HTTP_409_CONFLICT, "already_checked_in",
            f"{result.attendee.name} is already checked in",
            attendee=serialize_attendee(result.attendee),
        )
    return AttendeeResponse.model_validate(result.attendee)


@router.patch(
    "/{attendee_guid}/undo-checkin",
    response_model=AttendeeResponse,
    summary="Undo check-in",
    description="Return an attendee to pending. Allowed on finished events.",
)
async def undo_check_in_attendee(
    event_guid: str,
    attendee_guid: str,
    attendee_service: AttendeeService = Depends(get_attendee_service),
) -> AttendeeResponse:
    try:
        attendee = attendee_service.undo_check_in(event_guid, attendee_guid)
    except ServiceError as e:
        raise service_error_to_http(e)
    return AttendeeResponse.model_validate(attendee)


@router.delete(
    "/{attendee_guid}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete attendee",
)
async def delete_attendee(
    event_guid: str,
    attendee_guid: str,
    attendee_service: AttendeeService = Depends(get_attendee_service),
) -> Response:
    try:
        attendee_service.delete_attendee(event_guid, attendee_guid)
    except ServiceError as e:
        raise service_error_to_http(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

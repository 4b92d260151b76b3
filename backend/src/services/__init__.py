"""
Service layer for business logic.

This module exports all service classes for use in API endpoints.
"""

from backend.src.services.event_service import EventService
from backend.src.services.attendee_service import AttendeeService, CheckInResult
from backend.src.services.import_service import (
    DuplicateCandidate,
    ImportOutcome,
    ImportService,
)
from backend.src.services.export_service import ExportService, RosterExport
from backend.src.services.roster_notifier import RosterEventType, RosterNotifier
from backend.src.services.exceptions import (
    ServiceError,
    NotFoundError,
    ValidationError,
    EventFinishedError,
    ImportFileError,
    InvalidSecretError,
)

__all__ = [
    "EventService",
    "AttendeeService",
    "CheckInResult",
    "ImportService",
    "ImportOutcome",
    "DuplicateCandidate",
    "ExportService",
    "RosterExport",
    "RosterNotifier",
    "RosterEventType",
    "ServiceError",
    "NotFoundError",
    "ValidationError",
    "EventFinishedError",
    "ImportFileError",
    "InvalidSecretError",
]

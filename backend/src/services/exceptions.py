"""
Custom exceptions for service layer.

Provides specific exception types for business logic errors
that can be translated to appropriate HTTP responses.
"""

from typing import Any, List, Optional


class ServiceError(Exception):
    """Base exception for service layer errors."""
    pass


class NotFoundError(ServiceError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: Any):
        self.resource = resource
        self.identifier = identifier
        self.message = f"{resource} {identifier} not found"
        super().__init__(self.message)


class ValidationError(ServiceError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


class EventFinishedError(ServiceError):
    """Raised when a roster mutation targets a finished event.

    The roster of a finished event is frozen; the event has to be
    restarted before attendees can be added, imported, checked in or removed.
    """

    def __init__(self, event_guid: str, action: str):
        self.event_guid = event_guid
        self.action = action
        self.message = (
            f"Event {event_guid} is finished; cannot {action}. "
            "Restart the event to make changes."
        )
        super().__init__(self.message)


class ImportFileError(ServiceError):
    """Raised when an uploaded roster file cannot be imported.

    Carries the header labels that were found so the caller can fix the file.
    """

    def __init__(self, message: str, detected_columns: Optional[List[str]] = None):
        self.message = message
        self.detected_columns = list(detected_columns or [])
        super().__init__(message)


class InvalidSecretError(ServiceError):
    """Raised when the secret supplied for a protected event is wrong."""

    def __init__(self, event_guid: str):
        self.event_guid = event_guid
        self.message = "Incorrect event secret"
        super().__init__(self.message)

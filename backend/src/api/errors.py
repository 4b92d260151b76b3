"""
Translation of service-layer exceptions to HTTP errors.

Every error response produced by the routers carries a dict detail:

    {"detail": {"error_code": "event_finished", "message": "...", ...}}

``error_code`` is stable and machine-readable; ``message`` is for humans.
"""

from fastapi import HTTPException, status

from backend.src.services.exceptions import (
    EventFinishedError,
    ImportFileError,
    InvalidSecretError,
    NotFoundError,
    ServiceError,
    ValidationError,
)


def http_error(status_code: int, error_code: str, message: str, **extra) -> HTTPException:
    """Build an HTTPException with the structured detail body."""
    return HTTPException(
        status_code=status_code,
        detail={"error_code": error_code, "message": message, **extra},
    )


def service_error_to_http(error: ServiceError) -> HTTPException:
    """
    Map a service exception to its HTTP status and error code.

    Unknown ServiceError subclasses map to 500 internal_error.
    """
    if isinstance(error, NotFoundError):
        return http_error(status.HTTP_404_NOT_FOUND, "not_found", error.message)
    if isinstance(error, ValidationError):
        return http_error(
            status.HTTP_400_BAD_REQUEST, "validation_error", error.message,
            field=error.field,
        )
    if isinstance(error, EventFinishedError):
        return http_error(status.HTTP_403_FORBIDDEN, "event_finished", error.message)
    if isinstance(error, InvalidSecretError):
        return http_error(status.HTTP_401_UNAUTHORIZED, "invalid_secret", error.message)
    if isinstance(error, ImportFileError):
        return http_error(
            status.HTTP_422_UNPROCESSABLE_ENTITY, "unprocessable_import", error.message,
            detected_columns=error.detected_columns,
        )
    return http_error(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error", str(error)
    )

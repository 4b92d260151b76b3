"""
Pydantic schemas for API request/response validation.

This module exports all schema classes for use in API endpoints.
"""

from backend.src.schemas.attendee import (
    AttendeeCreate,
    AttendeeResponse,
    AttendeeListResponse,
    DuplicateCandidateSchema,
    DuplicateConfirmRequest,
    DuplicateConfirmResponse,
    ImportResultResponse,
    RosterStats,
)
from backend.src.schemas.event import (
    EventCreate,
    EventUpdate,
    EventResponse,
    EventListResponse,
    SecretVerifyRequest,
    SecretVerifyResponse,
)

__all__ = [
    "AttendeeCreate",
    "AttendeeResponse",
    "AttendeeListResponse",
    "DuplicateCandidateSchema",
    "DuplicateConfirmRequest",
    "DuplicateConfirmResponse",
    "ImportResultResponse",
    "RosterStats",
    "EventCreate",
    "EventUpdate",
    "EventResponse",
    "EventListResponse",
    "SecretVerifyRequest",
    "SecretVerifyResponse",
]

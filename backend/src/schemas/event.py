"""
Pydantic schemas for event API request/response validation.

Provides data validation and serialization for:
- Event creation and update requests
- Event API responses (list and detail)
- Secret verification

Design:
- GUIDs are exposed via guid property, never internal IDs
- The secret hash never leaves the service; responses carry is_protected
- Responses embed live roster statistics
"""

import datetime as dt
from typing import Optional, List

from pydantic import BaseModel, Field, field_serializer

from backend.src.schemas.attendee import RosterStats, utc_iso


# ============================================================================
# Request Schemas
# ============================================================================


class EventCreate(BaseModel):
    """
    Schema for creating an event.

    Required:
        name: Event display name (non-empty after trimming)

    Optional:
        description, date, time, location
        secret: Shared secret protecting the event (stored hashed)

    Example:
        >>> EventCreate(name="Youth Camp 2026", secret="kamp2026")
    """

    name: str = Field(..., max_length=255, description="Event display name")
    description: Optional[str] = None
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    location: Optional[str] = Field(default=None, max_length=255)
    secret: Optional[str] = Field(
        default=None,
        max_length=128,
        description="Shared secret required to open the event",
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Youth Camp 2026",
                "description": "Annual youth retreat",
                "date": "2026-12-20",
                "time": "08:00:00",
                "location": "Puncak, Bogor",
                "secret": "kamp2026",
            }
        }
    }


class EventUpdate(EventCreate):
    """
    Schema for updating an event.

    Editable fields are replaced wholesale. For the secret:
    ``remove_secret=true`` unprotects the event, a non-empty ``secret``
    replaces the current one, and omitting both keeps it.
    """

    remove_secret: bool = False


class SecretVerifyRequest(BaseModel):
    """Secret supplied by a client opening a protected event."""

    secret: Optional[str] = None


class SecretVerifyResponse(BaseModel):
    verified: bool


# ============================================================================
# Response Schemas
# ============================================================================


class EventResponse(BaseModel):
    """
    Schema for event API responses.

    Fields:
        guid: External identifier (evt_xxx)
        name / description / date / time / location: Event details
        is_protected: Whether a secret is required to open the event
        is_finished: Lifecycle flag (finished events reject roster changes)
        finished_at: When the event was last finished
        stats: Roster statistics
        created_at / updated_at: Timestamps
    """

    guid: str = Field(..., description="External identifier (evt_xxx)")
    name: str
    description: Optional[str] = None
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    location: Optional[str] = None
    is_protected: bool
    is_finished: bool
    finished_at: Optional[dt.datetime] = None
    stats: RosterStats
    created_at: dt.datetime
    updated_at: dt.datetime

    @field_serializer("finished_at", "created_at", "updated_at")
    def serialize_datetime_utc(self, v: Optional[dt.datetime]) -> Optional[str]:
        """Serialize datetime as ISO 8601 with explicit UTC timezone (Z suffix)."""
        return utc_iso(v)

    model_config = {"from_attributes": True}


class EventListResponse(BaseModel):
    """
    Schema for list of events response.

    Fields:
        items: Events, newest first
        total: Total count
    """

    items: List[EventResponse]
    total: int

"""
Pydantic schemas for attendee API request/response validation.

Provides data validation and serialization for:
- Manual attendee creation
- Attendee API responses and roster statistics
- Import outcomes and the duplicate-confirmation round trip

Design:
- GUIDs are exposed via guid property, never internal IDs
- Name emptiness is checked in the service layer (HTTP 400, not 422)
- Duplicate candidates are plain value objects; the client holds them
  between the import call and the confirm call
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_serializer


def utc_iso(v: Optional[datetime]) -> Optional[str]:
    """ISO 8601 in UTC with a Z suffix. Naive values are taken as UTC."""
    if v is None:
        return None
    if v.tzinfo is not None:
        v = v.astimezone(timezone.utc).replace(tzinfo=None)
    return v.isoformat() + "Z"


# ============================================================================
# Request Schemas
# ============================================================================


class AttendeeCreate(BaseModel):
    """
    Schema for adding an attendee manually.

    Required:
        name: Display name (must be non-empty after trimming)

    Optional:
        phone_number: Free-form phone string
        affiliation: Secondary identifier such as home church or email

    Example:
        >>> create = AttendeeCreate(name="Jane Doe", phone_number="0811111111")
    """

    name: str = Field(..., max_length=255, description="Attendee display name")
    phone_number: Optional[str] = Field(default=None, max_length=50)
    affiliation: Optional[str] = Field(default=None, max_length=255)

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Jane Doe",
                "phone_number": "0811-1111-111",
                "affiliation": "GKI Kebayoran",
            }
        }
    }


class DuplicateCandidateSchema(BaseModel):
    """
    A withheld import row, as returned by the import call and resubmitted
    (possibly filtered) to the confirm call.

    Only ``name`` is required on resubmission; the diagnostic fields are
    accepted and ignored.
    """

    name: Optional[str] = None
    phone: Optional[str] = None
    affiliation: Optional[str] = None
    row_index: Optional[int] = Field(
        default=None, description="1-based row number in the uploaded file"
    )
    matched_by: Optional[Literal["phone", "name"]] = None
    existing_name: Optional[str] = None
    existing_phone: Optional[str] = None

    model_config = {"extra": "ignore"}


class DuplicateConfirmRequest(BaseModel):
    """
    Schema for importing duplicates the user chose to keep anyway.

    Example:
        >>> DuplicateConfirmRequest(duplicates=[{"name": "John Doe"}])
    """

    duplicates: List[DuplicateCandidateSchema] = Field(default_factory=list)


# ============================================================================
# Response Schemas
# ============================================================================


class AttendeeResponse(BaseModel):
    """
    Schema for attendee API responses.

    Fields:
        guid: External identifier (att_xxx)
        event_guid: Owning event (evt_xxx)
        name: Display name
        phone_number: Phone as entered
        affiliation: Secondary identifier
        checked_in: Check-in flag
        checked_in_at: Check-in timestamp (null unless checked in)
        source: "manual" or "import"
        created_at / updated_at: Timestamps
    """

    guid: str = Field(..., description="External identifier (att_xxx)")
    event_guid: str
    name: str
    phone_number: Optional[str]
    affiliation: Optional[str]
    checked_in: bool
    checked_in_at: Optional[datetime]
    source: str
    created_at: datetime
    updated_at: datetime

    @field_serializer("checked_in_at", "created_at", "updated_at")
    def serialize_datetime_utc(self, v: Optional[datetime]) -> Optional[str]:
        """Serialize datetime as ISO 8601 with explicit UTC timezone (Z suffix)."""
        return utc_iso(v)

    model_config = {
        "from_attributes": True,
        "json_schema_extra": {
            "example": {
                "guid": "att_01hgw2bbg0000000000000001",
                "event_guid": "evt_01hgw2bbg0000000000000001",
                "name": "Jane Doe",
                "phone_number": "0811-1111-111",
                "affiliation": "GKI Kebayoran",
                "checked_in": True,
                "checked_in_at": "2026-10-16T09:12:00Z",
                "source": "import",
                "created_at": "2026-10-10T10:00:00Z",
                "updated_at": "2026-10-16T09:12:00Z",
            }
        },
    }


class RosterStats(BaseModel):
    """Attendee totals for one event, recomputed on every read."""

    total: int = Field(..., ge=0)
    checked_in: int = Field(..., ge=0)


class AttendeeListResponse(BaseModel):
    """
    Schema for roster listing.

    Fields:
        items: Attendees matching the filters, in creation order
        total: Number of items returned
        stats: Whole-roster statistics (unfiltered)
    """

    items: List[AttendeeResponse]
    total: int
    stats: RosterStats


class ImportResultResponse(BaseModel):
    """
    Outcome of a roster file import.

    Duplicates are not written; they are returned so the user can decide
    which ones to import anyway.
    """

    message: str
    imported: int = Field(..., ge=0)
    skipped: int = Field(..., ge=0)
    duplicates: List[DuplicateCandidateSchema] = Field(default_factory=list)

    model_config = {
        "json_schema_extra": {
            "example": {
                "message": "Imported 1 attendee, 0 skipped, 1 duplicate found",
                "imported": 1,
                "skipped": 0,
                "duplicates": [
                    {
                        "name": "john.doe",
                        "phone": "0812-345-678",
                        "affiliation": "GKI",
                        "row_index": 3,
                        "matched_by": "phone",
                        "existing_name": "John Doe",
                        "existing_phone": "0812345678",
                    }
                ],
            }
        }
    }


class DuplicateConfirmResponse(BaseModel):
    """Outcome of importing confirmed duplicates."""

    message: str
    imported: int = Field(..., ge=0)

"""
Duplicate detection against an event roster.

A candidate matches an existing attendee of the same event when their
normalized phones are equal, or failing that, their normalized names are.
The stored side is normalized by the database with ``regexp_replace`` so
matching works without loading the roster into memory.

Queries go through the caller's session, so rows flushed earlier in the
same transaction are visible to later lookups.
"""

from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from backend.src.models import Attendee
from backend.src.utils.normalize import (
    NAME_STRIP_PATTERN,
    PHONE_STRIP_PATTERN,
    normalize_name,
    normalize_phone,
)


MATCHED_BY_PHONE = "phone"
MATCHED_BY_NAME = "name"


@dataclass(frozen=True)
class DuplicateMatch:
    """The existing attendee a candidate collided with, and on which key."""
    matched_by: str
    existing_name: str
    existing_phone: Optional[str]


class DuplicateMatcher:
    """
    Looks up existing attendees of one event by normalized phone or name.

    Usage:
        >>> matcher = DuplicateMatcher(db, event.id)
        >>> match = matcher.find_match("john.doe", "0812-345-678")
        >>> match.matched_by if match else None
        'phone'
    """

    def __init__(self, db: Session, event_id: int):
        self.db = db
        self.event_id = event_id

    def _first(self, column_expr, key: str) -> Optional[Attendee]:
        # Lowest id wins when several rows share the key
        return (
            self.db.query(Attendee)
            .filter(Attendee.event_id == self.event_id, column_expr == key)
            .order_by(Attendee.id.asc())
            .first()
        )

    def find_by_phone(self, phone: Optional[str]) -> Optional[Attendee]:
        key = normalize_phone(phone)
        if not key:
            return None
        return self._first(
            func.regexp_replace(Attendee.phone_number, PHONE_STRIP_PATTERN, "", "g"),
            key,
        )

    def find_by_name(self, name: Optional[str]) -> Optional[Attendee]:
        # Unlike phone, an empty name key still matches: names made only of
        # punctuation or non-Latin letters all collide on ""
        return self._first(
            func.regexp_replace(
                func.lower(Attendee.name), NAME_STRIP_PATTERN, "", "g"
            ),
            normalize_name(name),
        )

    def find_match(self, name: str, phone: Optional[str] = None) -> Optional[DuplicateMatch]:
        """
        Check a candidate row against the roster.

        Phone is tried first when the candidate has one; name is the fallback.

        Returns:
            DuplicateMatch, or None when the candidate is new
        """
        existing = self.find_by_phone(phone)
        matched_by = MATCHED_BY_PHONE
        if existing is None:
            existing = self.find_by_name(name)
            matched_by = MATCHED_BY_NAME
        if existing is None:
            return None
        return DuplicateMatch(
            matched_by=matched_by,
            existing_name=existing.name,
            existing_phone=existing.phone_number,
        )

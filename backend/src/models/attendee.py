"""
Attendee model.

An Attendee is one roster entry of an Event. Each attendee is either
pending or checked in; checked_in_at is set exactly when checked_in
becomes True and cleared exactly when it becomes False.
"""

import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, ForeignKey, Index, func
)
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin


class AttendeeSource(str, enum.Enum):
    """How the attendee entered the roster. Set once at creation."""
    MANUAL = "manual"
    IMPORT = "import"


class CheckInState(enum.Enum):
    """Check-in state machine states."""
    PENDING = "pending"
    CHECKED_IN = "checked_in"


class Attendee(Base, GuidMixin):
    """
    Roster entry model.

    Attributes:
        id: Primary key (internal, never exposed)
        uuid / guid: Public identifier (att_xxx)
        event_id: FK to the owning Event
        name: Display name (never empty)
        phone_number: Free-form phone string
        affiliation: Secondary identifier (home church, email, ...)
        checked_in: Check-in flag
        checked_in_at: Check-in timestamp (NULL unless checked_in)
        source: Provenance, "manual" or "import"
        created_at / updated_at: Timestamps

    Indexes:
        - event_id (roster queries)
        - lower(name) (name search and duplicate matching)
        - phone_number (phone search and duplicate matching)
    """

    __tablename__ = "attendees"

    GUID_PREFIX = "att"

    id = Column(Integer, primary_key=True, autoincrement=True)

    event_id = Column(
        Integer,
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name = Column(String(255), nullable=False)
    phone_number = Column(String(50), nullable=True, index=True)
    affiliation = Column(String(255), nullable=True)

    checked_in = Column(Boolean, default=False, nullable=False)
    checked_in_at = Column(DateTime, nullable=True)

    source = Column(String(10), default=AttendeeSource.MANUAL.value, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    event = relationship("Event", back_populates="attendees")

    __table_args__ = (
        Index("idx_attendees_name_lower", func.lower(name)),
    )

    @property
    def event_guid(self) -> Optional[str]:
        return self.event.guid if self.event is not None else None

    @property
    def state(self) -> CheckInState:
        return CheckInState.CHECKED_IN if self.checked_in else CheckInState.PENDING

    def check_in(self, now: Optional[datetime] = None) -> bool:
        """
        Move from pending to checked in.

        Returns:
            True if the state changed, False if the attendee was already
            checked in (record left untouched)
        """
        if self.checked_in:
            return False
        self.checked_in = True
        self.checked_in_at = now or datetime.utcnow()
        return True

    def undo_check_in(self) -> None:
        """Return to pending. A no-op for an attendee that is already pending."""
        self.checked_in = False
        self.checked_in_at = None

    def __repr__(self) -> str:
        return (
            f"<Attendee("
            f"id={self.id}, "
            f"name='{self.name}', "
            f"checked_in={self.checked_in}"
            f")>"
        )

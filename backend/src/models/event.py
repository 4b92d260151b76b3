"""
Event model.

An Event owns a roster of attendees. Events may be protected by a shared
secret (stored only as a bcrypt hash) and move between two lifecycle
states: active (the default) and finished. Finished events reject roster
mutations until they are restarted.

Design Rationale:
- is_finished is a plain boolean so the lifecycle check is a column read
- secret_hash presence is what makes an event "protected"
- Deleting an event deletes its attendees (FK ON DELETE CASCADE plus
  ORM delete-orphan cascade)
"""

import enum
from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Date, Time, Text
)
from sqlalchemy.orm import relationship

from backend.src.models import Base
from backend.src.models.mixins import GuidMixin


class EventLifecycle(enum.Enum):
    """Lifecycle state of an event."""
    ACTIVE = "active"
    FINISHED = "finished"


class Event(Base, GuidMixin):
    """
    Event model.

    Attributes:
        id: Primary key (internal, never exposed)
        uuid: UUIDv7 for external identification (inherited from GuidMixin)
        guid: GUID string property (evt_xxx, inherited from GuidMixin)
        name: Display name
        description: Optional free text
        date: Optional event date
        time: Optional start time
        location: Optional venue
        secret_hash: bcrypt hash of the shared event secret (NULL = unprotected)
        is_finished: Lifecycle flag (True = roster is frozen)
        finished_at: When the event was last finished
        created_at: Creation timestamp
        updated_at: Last update timestamp

    Relationships:
        attendees: Roster entries (one-to-many, CASCADE on delete)
    """

    __tablename__ = "events"

    GUID_PREFIX = "evt"

    id = Column(Integer, primary_key=True, autoincrement=True)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=True)
    time = Column(Time, nullable=True)
    location = Column(String(255), nullable=True)

    secret_hash = Column(String(255), nullable=True)

    is_finished = Column(Boolean, default=False, nullable=False)
    finished_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False
    )

    attendees = relationship(
        "Attendee",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Attendee.id",
    )

    @property
    def is_protected(self) -> bool:
        """True when a secret must be supplied to access the event."""
        return self.secret_hash is not None

    @property
    def lifecycle(self) -> EventLifecycle:
        return EventLifecycle.FINISHED if self.is_finished else EventLifecycle.ACTIVE

    def finish(self) -> None:
        """Freeze the roster."""
        if not self.is_finished:
            self.is_finished = True
            self.finished_at = datetime.utcnow()

    def restart(self) -> None:
        """Re-open the roster for changes."""
        self.is_finished = False

    def __repr__(self) -> str:
        return (
            f"<Event("
            f"id={self.id}, "
            f"name='{self.name}', "
            f"finished={self.is_finished}"
            f")>"
        )

    def __str__(self) -> str:
        return self.name

"""
Attendee service for roster operations.

Provides business logic for listing, adding, checking in and removing
attendees of an event. Every committed change is followed by a broadcast
on the event's channel carrying the affected record and fresh roster
statistics.

Design:
- Mutations (except undo check-in) go through the lifecycle gate first
- Check-in is idempotent-reporting: a second check-in changes nothing
  and tells the caller the attendee was already checked in
- Validation, not-found and gate failures are raised before any write
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import or_, func
from sqlalchemy.orm import Session

from backend.src.models import Attendee, AttendeeSource, Event
from backend.src.schemas.attendee import AttendeeResponse
from backend.src.services.event_service import EventService
from backend.src.services.exceptions import NotFoundError, ValidationError
from backend.src.services.guid import GuidService
from backend.src.services.lifecycle_gate import assert_mutable
from backend.src.services.roster_notifier import RosterEventType, RosterNotifier
from backend.src.services.roster_stats import compute_roster_stats
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")


def serialize_attendee(attendee: Attendee) -> dict:
    """JSON-ready attendee payload (same shape as the API response)."""
    return AttendeeResponse.model_validate(attendee).model_dump(mode="json")


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass
class CheckInResult:
    """Outcome of a check-in attempt."""
    attendee: Attendee
    changed: bool
    stats: Dict[str, int]


class AttendeeService:
    """
    Service for roster operations on one event at a time.

    Usage:
        >>> service = AttendeeService(db_session, notifier)
        >>> attendee = service.add_attendee(event_guid, "Jane Doe", "0811111111")
        >>> service.check_in(event_guid, attendee.guid).changed
        True
    """

    def __init__(self, db: Session, notifier: Optional[RosterNotifier] = None):
        """
        Initialize attendee service.

        Args:
            db: SQLAlchemy database session
            notifier: Fan-out for committed changes (None disables broadcasts)
        """
        self.db = db
        self.notifier = notifier
        self.events = EventService(db)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_event(self, event_guid: str) -> Event:
        return self.events.get_by_guid(event_guid)

    def get_attendee(self, event: Event, attendee_guid: str) -> Attendee:
        """
        Get an attendee of a specific event.

        Raises:
            NotFoundError: If the GUID is malformed or the attendee does not
                belong to the event
        """
        try:
            uuid_value = GuidService.parse_guid(attendee_guid, "att")
        except ValueError:
            raise NotFoundError("Attendee", attendee_guid)

        attendee = (
            self.db.query(Attendee)
            .filter(Attendee.uuid == uuid_value, Attendee.event_id == event.id)
            .first()
        )
        if not attendee:
            raise NotFoundError("Attendee", attendee_guid)
        return attendee

    def list_attendees(
        self,
        event_guid: str,
        search: Optional[str] = None,
        checked_in: Optional[bool] = None,
    ) -> List[Attendee]:
        """
        List the roster of an event in creation order.

        Args:
            event_guid: Event GUID
            search: Case-insensitive substring of name or phone
            checked_in: Filter by check-in state

        Raises:
            NotFoundError: If the event does not exist
        """
        event = self.get_event(event_guid)
        query = self.db.query(Attendee).filter(Attendee.event_id == event.id)

        term = (search or "").strip()
        if term:
            pattern = f"%{term.lower()}%"
            query = query.filter(
                or_(
                    func.lower(Attendee.name).like(pattern),
                    func.lower(Attendee.phone_number).like(pattern),
                )
            )

        if checked_in is not None:
            query = query.filter(Attendee.checked_in.is_(checked_in))

        return query.order_by(Attendee.id.asc()).all()

    def get_stats(self, event_guid: str) -> Dict[str, int]:
        """Roster statistics: {"total": int, "checked_in": int}."""
        return compute_roster_stats(self.db, self.get_event(event_guid).id)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_attendee(
        self,
        event_guid: str,
        name: str,
        phone_number: Optional[str] = None,
        affiliation: Optional[str] = None,
    ) -> Attendee:
        """
        Add an attendee by hand.

        Raises:
            NotFoundError: If the event does not exist
            EventFinishedError: If the event is finished
            ValidationError: If the name is empty after trimming
        """
        event = self.get_event(event_guid)
        assert_mutable(event, "add attendees")

        name = (name or "").strip()
        if not name:
            raise ValidationError("Attendee name is required", field="name")

        attendee = Attendee(
            event_id=event.id,
            name=name,
            phone_number=_clean(phone_number),
            affiliation=_clean(affiliation),
            source=AttendeeSource.MANUAL.value,
        )
        self.db.add(attendee)
        self.db.commit()
        self.db.refresh(attendee)

        logger.info(
            f"Added attendee {attendee.guid} to event {event.guid}",
            extra={"event_guid": event.guid, "attendee_guid": attendee.guid},
        )
        self._publish(event, RosterEventType.ATTENDEE_ADDED, {
            "attendee": serialize_attendee(attendee),
        })
        return attendee

    def check_in(self, event_guid: str, attendee_guid: str) -> CheckInResult:
        """
        Check an attendee in.

        A second check-in leaves the record (and its original timestamp)
        untouched, returns ``changed=False`` and broadcasts nothing.

        Raises:
            NotFoundError: If the event or attendee does not exist
            EventFinishedError: If the event is finished
        """
        event = self.get_event(event_guid)
        assert_mutable(event, "check in attendees")
        attendee = self.get_attendee(event, attendee_guid)

        if not attendee.check_in(datetime.utcnow()):
            logger.info(
                f"Attendee {attendee.guid} already checked in",
                extra={"event_guid": event.guid, "attendee_guid": attendee.guid},
            )
            return CheckInResult(
                attendee=attendee,
                changed=False,
                stats=compute_roster_stats(self.db, event.id),
            )

        self.db.commit()
        self.db.refresh(attendee)

        logger.info(
            f"Checked in attendee {attendee.guid}",
            extra={"event_guid": event.guid, "attendee_guid": attendee.guid},
        )
        stats = self._publish(event, RosterEventType.ATTENDEE_CHECKED_IN, {
            "attendee": serialize_attendee(attendee),
        })
        return CheckInResult(attendee=attendee, changed=True, stats=stats)

    def undo_check_in(self, event_guid: str, attendee_guid: str) -> Attendee:
        """
        Return an attendee to pending.

        Allowed on finished events. Undoing a pending attendee changes no
        data but still broadcasts.

        Raises:
            NotFoundError: If the event or attendee does not exist
        """
        event = self.get_event(event_guid)
        attendee = self.get_attendee(event, attendee_guid)

        attendee.undo_check_in()
        self.db.commit()
        self.db.refresh(attendee)

        logger.info(
            f"Undid check-in of attendee {attendee.guid}",
            extra={"event_guid": event.guid, "attendee_guid": attendee.guid},
        )
        self._publish(event, RosterEventType.ATTENDEE_UNCHECKED, {
            "attendee": serialize_attendee(attendee),
        })
        return attendee

    def delete_attendee(self, event_guid: str, attendee_guid: str) -> None:
        """
        Remove one attendee from the roster.

        Raises:
            NotFoundError: If the event or attendee does not exist
            EventFinishedError: If the event is finished
        """
        event = self.get_event(event_guid)
        assert_mutable(event, "delete attendees")
        attendee = self.get_attendee(event, attendee_guid)
        guid = attendee.guid

        self.db.delete(attendee)
        self.db.commit()

        logger.info(
            f"Deleted attendee {guid}",
            extra={"event_guid": event.guid, "attendee_guid": guid},
        )
        self._publish(event, RosterEventType.ATTENDEE_DELETED, {"attendee_id": guid})

    def clear_attendees(self, event_guid: str) -> int:
        """
        Remove the whole roster of an event.

        Returns:
            Number of attendees removed

        Raises:
            NotFoundError: If the event does not exist
            EventFinishedError: If the event is finished
        """
        event = self.get_event(event_guid)
        assert_mutable(event, "clear the attendee list")

        removed = (
            self.db.query(Attendee)
            .filter(Attendee.event_id == event.id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        self.db.expire_all()

        logger.info(
            f"Cleared {removed} attendees from event {event.guid}",
            extra={"event_guid": event.guid, "removed": removed},
        )
        self._publish(event, RosterEventType.ATTENDEES_CLEARED, {})
        return removed

    def _publish(self, event: Event, event_type: RosterEventType, payload: dict) -> Dict[str, int]:
        """Recompute statistics and fan them out with the payload."""
        stats = compute_roster_stats(self.db, event.id)
        if self.notifier is not None:
            self.notifier.notify(event.guid, event_type, {**payload, "stats": stats})
        return stats

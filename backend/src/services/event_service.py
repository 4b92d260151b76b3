"""
Event service for managing events and their lifecycle.

Provides business logic for creating, reading, updating and deleting
events, verifying the shared event secret, and moving events between
the active and finished states.

Design:
- Secrets are stored only as bcrypt hashes; an event with a hash is "protected"
- Deleting an event removes its roster (database cascade)
- finish/restart are idempotent at the data level
"""

from datetime import date, time
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from backend.src.models import Event
from backend.src.services.exceptions import (
    InvalidSecretError,
    NotFoundError,
    ValidationError,
)
from backend.src.services.guid import GuidService
from backend.src.services.roster_stats import (
    compute_roster_stats,
    compute_roster_stats_by_event,
)
from backend.src.utils.crypto import hash_secret, verify_secret
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")


def _clean(value: Optional[str]) -> Optional[str]:
    """Trim a free-text field; blank becomes None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


class EventService:
    """
    Service for managing events.

    Usage:
        >>> service = EventService(db_session)
        >>> event = service.create(name="Youth Camp 2026", secret="kamp2026")
        >>> service.verify_secret(event.guid, "kamp2026")
        True
    """

    def __init__(self, db: Session):
        """
        Initialize event service.

        Args:
            db: SQLAlchemy database session
        """
        self.db = db

    def get_by_guid(self, guid: str) -> Event:
        """
        Get an event by GUID.

        Args:
            guid: Event GUID (evt_xxx format)

        Returns:
            Event instance

        Raises:
            NotFoundError: If the GUID is malformed or no event has it
        """
        try:
            uuid_value = GuidService.parse_guid(guid, "evt")
        except ValueError:
            raise NotFoundError("Event", guid)

        event = self.db.query(Event).filter(Event.uuid == uuid_value).first()
        if not event:
            raise NotFoundError("Event", guid)
        return event

    def list(self) -> List[Event]:
        """List all events, newest first."""
        return (
            self.db.query(Event)
            .order_by(Event.created_at.desc(), Event.id.desc())
            .all()
        )

    def get_stats(self, event: Event) -> Dict[str, int]:
        return compute_roster_stats(self.db, event.id)

    def get_stats_map(self, events: List[Event]) -> Dict[int, Dict[str, int]]:
        return compute_roster_stats_by_event(self.db, (e.id for e in events))

    def create(
        self,
        name: str,
        description: Optional[str] = None,
        date: Optional[date] = None,
        time: Optional[time] = None,
        location: Optional[str] = None,
        secret: Optional[str] = None,
    ) -> Event:
        """
        Create a new event.

        Args:
            name: Display name (required, trimmed)
            description / date / time / location: Optional details
            secret: Optional shared secret; stored as a hash only

        Returns:
            Created Event instance

        Raises:
            ValidationError: If the name is empty
        """
        name = self._require_name(name)
        event = Event(
            name=name,
            description=_clean(description),
            date=date,
            time=time,
            location=_clean(location),
            secret_hash=hash_secret(secret) if secret else None,
        )
        self.db.add(event)
        self.db.commit()
        self.db.refresh(event)

        logger.info(
            f"Created event: {event.name} ({event.guid})",
            extra={"event_guid": event.guid, "protected": event.is_protected},
        )
        return event

    def update(
        self,
        guid: str,
        name: str,
        description: Optional[str] = None,
        date: Optional[date] = None,
        time: Optional[time] = None,
        location: Optional[str] = None,
        secret: Optional[str] = None,
        remove_secret: bool = False,
    ) -> Event:
        """
        Replace the editable fields of an event.

        Secret handling: ``remove_secret`` clears the hash; otherwise a
        non-empty ``secret`` replaces it; otherwise the hash is kept.

        Raises:
            NotFoundError: If the event does not exist
            ValidationError: If the name is empty
        """
        event = self.get_by_guid(guid)
        event.name = self._require_name(name)
        event.description = _clean(description)
        event.date = date
        event.time = time
        event.location = _clean(location)

        if remove_secret:
            event.secret_hash = None
        elif secret:
            event.secret_hash = hash_secret(secret)

        self.db.commit()
        self.db.refresh(event)

        logger.info(f"Updated event: {event.name} ({event.guid})")
        return event

    def delete(self, guid: str) -> None:
        """
        Delete an event together with its roster.

        Raises:
            NotFoundError: If the event does not exist
        """
        event = self.get_by_guid(guid)
        name = event.name
        self.db.delete(event)
        self.db.commit()
        logger.info(f"Deleted event: {name} ({guid})")

    def verify_secret(self, guid: str, secret: Optional[str]) -> bool:
        """
        Check the secret supplied for an event.

        Unprotected events always pass.

        Returns:
            True when access is granted

        Raises:
            NotFoundError: If the event does not exist
            ValidationError: If the event is protected and no secret was given
            InvalidSecretError: If the secret does not match
        """
        event = self.get_by_guid(guid)
        if not event.is_protected:
            return True
        if not secret:
            raise ValidationError("Secret is required for this event", field="secret")
        if not verify_secret(secret, event.secret_hash):
            logger.warning(
                f"Rejected secret for event {event.guid}",
                extra={"event_guid": event.guid},
            )
            raise InvalidSecretError(event.guid)
        return True

    def finish(self, guid: str) -> Event:
        """Mark an event finished; its roster becomes read-only."""
        event = self.get_by_guid(guid)
        event.finish()
        self.db.commit()
        self.db.refresh(event)
        logger.info(f"Finished event: {event.name} ({event.guid})")
        return event

    def restart(self, guid: str) -> Event:
        """Return a finished event to the active state."""
        event = self.get_by_guid(guid)
        event.restart()
        self.db.commit()
        self.db.refresh(event)
        logger.info(f"Restarted event: {event.name} ({event.guid})")
        return event

    def build_event_response(
        self, event: Event, stats: Optional[Dict[str, int]] = None
    ) -> dict:
        """
        Build a response dictionary for an event.

        Args:
            event: Event instance
            stats: Pre-computed roster statistics (queried when omitted)

        Returns:
            Dictionary suitable for EventResponse schema
        """
        return {
            "guid": event.guid,
            "name": event.name,
            "description": event.description,
            "date": event.date,
            "time": event.time,
            "location": event.location,
            "is_protected": event.is_protected,
            "is_finished": event.is_finished,
            "finished_at": event.finished_at,
            "stats": stats if stats is not None else self.get_stats(event),
            "created_at": event.created_at,
            "updated_at": event.updated_at,
        }

    @staticmethod
    def _require_name(name: Optional[str]) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Event name is required", field="name")
        return name

"""
Attendee import service.

Bulk import runs in two phases:

1. ``import_attendees`` parses an uploaded file, resolves the name, phone
   and affiliation columns, and inserts every row that does not match an
   existing attendee. Matching rows are withheld and returned as
   duplicate candidates.
2. ``confirm_duplicate_import`` inserts the candidates the user decided
   to keep. Candidates are not stored server-side between the two calls;
   the client sends back the subset it wants.

Both phases write in a single transaction: either every new attendee of
the call is committed or none is.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from backend.src.models import Attendee, AttendeeSource, Event
from backend.src.services.column_resolver import resolve_columns
from backend.src.services.duplicate_matcher import DuplicateMatcher
from backend.src.services.event_service import EventService
from backend.src.services.exceptions import ImportFileError
from backend.src.services.import_parser import parse_tabular_file
from backend.src.services.lifecycle_gate import assert_mutable
from backend.src.services.roster_notifier import RosterEventType, RosterNotifier
from backend.src.services.roster_stats import compute_roster_stats
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")

# Data rows start on line 2 of the file (line 1 is the header)
FIRST_DATA_ROW = 2


@dataclass
class DuplicateCandidate:
    """
    An import row withheld because it matched an existing attendee.

    On the confirm call only ``name``, ``phone`` and ``affiliation`` are used.
    """
    name: str
    phone: Optional[str] = None
    affiliation: Optional[str] = None
    row_index: Optional[int] = None
    matched_by: Optional[str] = None
    existing_name: Optional[str] = None
    existing_phone: Optional[str] = None


@dataclass
class ImportOutcome:
    imported: int = 0
    skipped: int = 0
    duplicates: List[DuplicateCandidate] = field(default_factory=list)

    @property
    def message(self) -> str:
        parts = [
            f"Imported {self.imported} attendee{'s' if self.imported != 1 else ''}",
            f"{self.skipped} skipped",
        ]
        if self.duplicates:
            count = len(self.duplicates)
            parts.append(f"{count} duplicate{'s' if count != 1 else ''} found")
        return ", ".join(parts)


def _cell(row: dict, header: Optional[str]) -> Optional[str]:
    if header is None:
        return None
    value = (row.get(header) or "").strip()
    return value or None


class ImportService:
    """
    Service for bulk roster imports.

    Usage:
        >>> service = ImportService(db_session, notifier)
        >>> outcome = service.import_attendees(event_guid, content, "peserta.xlsx")
        >>> outcome.imported, outcome.skipped, len(outcome.duplicates)
        (12, 1, 2)
    """

    def __init__(self, db: Session, notifier: Optional[RosterNotifier] = None):
        """
        Initialize import service.

        Args:
            db: SQLAlchemy database session
            notifier: Fan-out for committed imports (None disables broadcasts)
        """
        self.db = db
        self.notifier = notifier
        self.events = EventService(db)

    def import_attendees(
        self, event_guid: str, content: bytes, filename: Optional[str] = None
    ) -> ImportOutcome:
        """
        Import attendees from an uploaded CSV/XLS/XLSX file.

        Rows are processed in file order. A row with an empty name is
        skipped. A row matching an attendee already in the roster, or one
        inserted earlier from the same file, becomes a duplicate candidate.
        Everything else is inserted with source "import".

        Args:
            event_guid: Target event GUID
            content: Raw file bytes
            filename: Original filename (format detection)

        Returns:
            ImportOutcome with counts and duplicate candidates

        Raises:
            NotFoundError: If the event does not exist
            EventFinishedError: If the event is finished
            ImportFileError: If the file is unreadable, has no data rows or
                no name column
            SQLAlchemyError: If writing fails (nothing is committed)
        """
        event = self.events.get_by_guid(event_guid)
        assert_mutable(event, "import attendees")

        table = parse_tabular_file(content, filename)
        if not table.rows:
            raise ImportFileError(
                "The file contains no attendee rows",
                detected_columns=table.headers,
            )
        columns = resolve_columns(table.headers)

        outcome = ImportOutcome()
        matcher = DuplicateMatcher(self.db, event.id)

        try:
            for index, row in enumerate(table.rows):
                name = _cell(row, columns.name)
                if not name:
                    outcome.skipped += 1
                    continue

                phone = _cell(row, columns.phone)
                affiliation = _cell(row, columns.affiliation)

                match = matcher.find_match(name, phone)
                if match is not None:
                    outcome.duplicates.append(DuplicateCandidate(
                        name=name,
                        phone=phone,
                        affiliation=affiliation,
                        row_index=index + FIRST_DATA_ROW,
                        matched_by=match.matched_by,
                        existing_name=match.existing_name,
                        existing_phone=match.existing_phone,
                    ))
                    continue

                self._insert(event, name, phone, affiliation)
                outcome.imported += 1

            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.error(
                f"Import into event {event_guid} failed; rolled back",
                extra={"event_guid": event_guid, "upload_filename": filename},
                exc_info=True,
            )
            raise

        logger.info(
            f"Imported attendees into event {event.guid}: "
            f"{outcome.imported} imported, {outcome.skipped} skipped, "
            f"{len(outcome.duplicates)} duplicates",
            extra={
                "event_guid": event.guid,
                "imported": outcome.imported,
                "skipped": outcome.skipped,
                "duplicates": len(outcome.duplicates),
            },
        )
        self._publish(event, outcome.imported, outcome.skipped)
        return outcome

    def confirm_duplicate_import(
        self, event_guid: str, candidates: Iterable[DuplicateCandidate]
    ) -> int:
        """
        Insert duplicate candidates the user chose to keep.

        The candidates are trusted as sent; entries with an empty name are
        ignored.

        Returns:
            Number of attendees inserted

        Raises:
            NotFoundError: If the event does not exist
            EventFinishedError: If the event is finished
            SQLAlchemyError: If writing fails (nothing is committed)
        """
        event = self.events.get_by_guid(event_guid)
        assert_mutable(event, "import attendees")

        imported = 0
        try:
            for candidate in candidates:
                name = (candidate.name or "").strip()
                if not name:
                    continue
                self._insert(
                    event,
                    name,
                    (candidate.phone or "").strip() or None,
                    (candidate.affiliation or "").strip() or None,
                )
                imported += 1
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.error(
                f"Duplicate import into event {event_guid} failed; rolled back",
                extra={"event_guid": event_guid},
                exc_info=True,
            )
            raise

        logger.info(
            f"Imported {imported} confirmed duplicates into event {event.guid}",
            extra={"event_guid": event.guid, "imported": imported},
        )
        self._publish(event, imported, 0)
        return imported

    def _insert(
        self, event: Event, name: str, phone: Optional[str], affiliation: Optional[str]
    ) -> Attendee:
        attendee = Attendee(
            event_id=event.id,
            name=name,
            phone_number=phone,
            affiliation=affiliation,
            source=AttendeeSource.IMPORT.value,
        )
        self.db.add(attendee)
        # Flush so later rows of the same file are matched against this one
        self.db.flush()
        return attendee

    def _publish(self, event: Event, imported: int, skipped: int) -> None:
        stats = compute_roster_stats(self.db, event.id)
        if self.notifier is not None:
            self.notifier.notify(event.guid, RosterEventType.ATTENDEES_IMPORTED, {
                "imported": imported,
                "skipped": skipped,
                "stats": stats,
            })

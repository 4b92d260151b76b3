"""
Unit tests for ImportService.

Tests the two-phase bulk import:
- Column resolution and row handling (skips, duplicates, inserts)
- Duplicates within the same file
- All-or-nothing writes
- Lifecycle gate and unprocessable files
- Broadcast of the committed result
"""

import pytest
from sqlalchemy.exc import OperationalError

from backend.src.models import Attendee, AttendeeSource
from backend.src.services.exceptions import (
    EventFinishedError,
    ImportFileError,
    NotFoundError,
)
from backend.src.services.import_service import DuplicateCandidate, ImportService
from backend.src.services.roster_notifier import RosterEventType
from backend.src.services.roster_stats import compute_roster_stats


def _count(db, event):
    return db.query(Attendee).filter(Attendee.event_id == event.id).count()


class TestImportAttendees:

    def test_single_row_into_empty_roster(
        self, test_db_session, sample_event, recording_notifier, xlsx_file
    ):
        event = sample_event()
        service = ImportService(test_db_session, recording_notifier)
        content = xlsx_file([["Nama", "No. HP", "Gereja"], ["Jane", "0811111111", "GKI"]])

        outcome = service.import_attendees(event.guid, content, "peserta.xlsx")

        assert (outcome.imported, outcome.skipped, outcome.duplicates) == (1, 0, [])
        attendee = test_db_session.query(Attendee).one()
        assert attendee.name == "Jane"
        assert attendee.phone_number == "0811111111"
        assert attendee.affiliation == "GKI"
        assert attendee.source == AttendeeSource.IMPORT.value
        assert attendee.checked_in is False

        recording_notifier.notify.assert_called_once()
        channel, event_type, payload = recording_notifier.notify.call_args.args
        assert channel == event.guid
        assert event_type == RosterEventType.ATTENDEES_IMPORTED
        assert payload == {
            "imported": 1,
            "skipped": 0,
            "stats": {"total": 1, "checked_in": 0},
        }

    def test_blank_names_are_skipped(self, test_db_session, sample_event, csv_file):
        event = sample_event()
        content = csv_file([
            ["Name", "Phone"],
            ["Jane", "0811"],
            ["", "0822"],
            ["   ", "0833"],
            ["John", ""],
        ])

        outcome = ImportService(test_db_session).import_attendees(event.guid, content, "a.csv")

        assert outcome.imported == 2
        assert outcome.skipped == 2
        john = test_db_session.query(Attendee).filter(Attendee.name == "John").one()
        assert john.phone_number is None

    def test_existing_attendee_becomes_duplicate_candidate(
        self, test_db_session, sample_event, sample_attendee, csv_file
    ):
        event = sample_event()
        sample_attendee(event, name="John Doe", phone_number="0812345678")
        content = csv_file([
            ["Name", "Phone", "Church"],
            ["Jane", "0811111111", "GKI"],
            ["J. Doe", "0812-345-678", "GBI"],
        ])

        outcome = ImportService(test_db_session).import_attendees(event.guid, content, "a.csv")

        assert outcome.imported == 1
        assert outcome.duplicates == [
            DuplicateCandidate(
                name="J. Doe",
                phone="0812-345-678",
                affiliation="GBI",
                row_index=3,
                matched_by="phone",
                existing_name="John Doe",
                existing_phone="0812345678",
            )
        ]
        assert _count(test_db_session, event) == 2

    def test_repeated_row_within_file(self, test_db_session, sample_event, csv_file):
        """Row A is imported, identical row B is matched against A."""
        event = sample_event()
        content = csv_file([
            ["Nama", "No HP"],
            ["Budi Santoso", ""],
            ["budi  santoso", ""],
        ])

        outcome = ImportService(test_db_session).import_attendees(event.guid, content, "a.csv")

        assert outcome.imported == 1
        assert len(outcome.duplicates) == 1
        duplicate = outcome.duplicates[0]
        assert duplicate.matched_by == "name"
        assert duplicate.existing_name == "Budi Santoso"
        assert duplicate.row_index == 3
        assert _count(test_db_session, event) == 1

    def test_non_latin_names_collide_on_empty_key(
        self, test_db_session, sample_event, sample_attendee, csv_file
    ):
        event = sample_event()
        sample_attendee(event, name="李雷")
        content = csv_file([["Nama", "No HP"], ["王芳", ""]])

        outcome = ImportService(test_db_session).import_attendees(event.guid, content, "a.csv")

        assert (outcome.imported, outcome.skipped) == (0, 0)
        assert [(d.name, d.matched_by, d.existing_name) for d in outcome.duplicates] == [
            ("王芳", "name", "李雷")
        ]
        assert _count(test_db_session, event) == 1

    def test_message_summarises_outcome(self, test_db_session, sample_event, csv_file):
        event = sample_event()
        content = csv_file([["Name", "Phone"], ["Jane", "1"], ["jane", "2"], ["", "3"]])

        outcome = ImportService(test_db_session).import_attendees(event.guid, content, "a.csv")

        assert outcome.message == "Imported 1 attendee, 1 skipped, 1 duplicate found"

    def test_write_failure_rolls_back_everything(
        self, test_db_session, sample_event, sample_attendee, recording_notifier,
        csv_file, mocker
    ):
        event = sample_event()
        sample_attendee(event, name="Existing")
        before = compute_roster_stats(test_db_session, event.id)
        content = csv_file([["Name"], ["First"], ["Second"], ["Third"]])

        original_insert = ImportService._insert
        calls = []

        def failing_insert(self, *args):
            calls.append(args[1])
            if len(calls) == 2:
                raise OperationalError("INSERT INTO attendees", {}, Exception("disk I/O error"))
            return original_insert(self, *args)

        mocker.patch.object(ImportService, "_insert", failing_insert)
        service = ImportService(test_db_session, recording_notifier)

        with pytest.raises(OperationalError):
            service.import_attendees(event.guid, content, "a.csv")

        assert calls == ["First", "Second"]
        assert compute_roster_stats(test_db_session, event.id) == before
        assert test_db_session.query(Attendee).filter(Attendee.name == "First").count() == 0
        recording_notifier.notify.assert_not_called()

    def test_finished_event_is_rejected(self, test_db_session, sample_event, csv_file):
        event = sample_event(is_finished=True)
        content = csv_file([["Name"], ["Jane"]])

        with pytest.raises(EventFinishedError):
            ImportService(test_db_session).import_attendees(event.guid, content, "a.csv")

        assert _count(test_db_session, event) == 0

    def test_unknown_event(self, test_db_session, csv_file):
        with pytest.raises(NotFoundError):
            ImportService(test_db_session).import_attendees(
                "evt_01hgw2bbg0000000000000000", csv_file([["Name"], ["Jane"]])
            )

    def test_file_without_rows(self, test_db_session, sample_event, csv_file):
        event = sample_event()

        with pytest.raises(ImportFileError) as exc_info:
            ImportService(test_db_session).import_attendees(
                event.guid, csv_file([["Name", "Phone"]]), "a.csv"
            )

        assert exc_info.value.detected_columns == ["Name", "Phone"]

    def test_file_without_name_column(self, test_db_session, sample_event, csv_file):
        event = sample_event()
        content = csv_file([["Telepon", "Alamat"], ["0811", "Jakarta"]])

        with pytest.raises(ImportFileError) as exc_info:
            ImportService(test_db_session).import_attendees(event.guid, content, "a.csv")

        assert exc_info.value.detected_columns == ["Telepon", "Alamat"]
        assert _count(test_db_session, event) == 0


class TestConfirmDuplicateImport:

    def test_inserts_candidates_verbatim(
        self, test_db_session, sample_event, sample_attendee, recording_notifier
    ):
        event = sample_event()
        sample_attendee(event, name="John Doe", phone_number="0812345678")
        candidates = [
            DuplicateCandidate(name="John Doe", phone="0812345678", affiliation="GBI"),
            DuplicateCandidate(name="  ", phone="0899"),
        ]

        imported = ImportService(test_db_session, recording_notifier).confirm_duplicate_import(
            event.guid, candidates
        )

        assert imported == 1
        assert _count(test_db_session, event) == 2
        added = (
            test_db_session.query(Attendee)
            .filter(Attendee.affiliation == "GBI")
            .one()
        )
        assert added.source == AttendeeSource.IMPORT.value

        channel, event_type, payload = recording_notifier.notify.call_args.args
        assert event_type == RosterEventType.ATTENDEES_IMPORTED
        assert payload == {
            "imported": 1,
            "skipped": 0,
            "stats": {"total": 2, "checked_in": 0},
        }

    def test_finished_event_is_rejected(self, test_db_session, sample_event):
        event = sample_event(is_finished=True)

        with pytest.raises(EventFinishedError):
            ImportService(test_db_session).confirm_duplicate_import(
                event.guid, [DuplicateCandidate(name="Jane")]
            )

        assert _count(test_db_session, event) == 0

    def test_empty_selection(self, test_db_session, sample_event):
        event = sample_event()

        assert ImportService(test_db_session).confirm_duplicate_import(event.guid, []) == 0

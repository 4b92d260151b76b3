"""
Unit tests for roster export to .xlsx.
"""

import io
from datetime import date

import pytest
from openpyxl import load_workbook

from backend.src.models import AttendeeSource
from backend.src.services.exceptions import NotFoundError
from backend.src.services.export_service import XLSX_MEDIA_TYPE, ExportService


def _open(export):
    return load_workbook(io.BytesIO(export.content))


class TestExportRoster:

    @pytest.fixture
    def event(self, sample_event, sample_attendee):
        event = sample_event(name="Youth Camp 2026", date=date(2026, 12, 20), location="Puncak")
        sample_attendee(event, name="Jane", phone_number="0811", affiliation="GKI", checked_in=True)
        sample_attendee(event, name="John", source=AttendeeSource.IMPORT.value)
        return event

    def test_indonesian_default(self, test_db_session, event):
        export = ExportService(test_db_session).export_roster(event.guid)

        assert export.media_type == XLSX_MEDIA_TYPE
        assert export.filename == "youth-camp-2026-attendees.xlsx"

        wb = _open(export)
        assert wb.sheetnames == ["Peserta", "Info Export"]
        rows = list(wb["Peserta"].iter_rows(values_only=True))
        assert rows[0] == (
            "No", "Nama", "No. Telepon", "Gereja Asal", "Status", "Waktu Check-in", "Sumber Data"
        )
        assert rows[1][:5] == (1, "Jane", "0811", "GKI", "Sudah Check-in")
        assert rows[1][5].endswith("Z")
        assert rows[1][6] == "Manual"
        assert rows[2][1] == "John"
        assert rows[2][4] == "Belum Check-in"
        assert rows[2][6] == "Import File"

        info = dict(wb["Info Export"].iter_rows(values_only=True))
        assert info["Acara"] == "Youth Camp 2026"
        assert info["Tanggal Acara"] == "2026-12-20"
        assert info["Lokasi"] == "Puncak"
        assert info["Total Peserta"] == 2
        assert info["Sudah Check-in"] == 1

    def test_english_labels(self, test_db_session, event):
        wb = _open(ExportService(test_db_session).export_roster(event.guid, lang="en"))

        assert wb.sheetnames == ["Attendees", "Export Info"]
        header = next(wb["Attendees"].iter_rows(values_only=True))
        assert header[1] == "Name"
        assert header[3] == "Home Church"

    def test_unknown_language_falls_back(self, test_db_session, event):
        wb = _open(ExportService(test_db_session).export_roster(event.guid, lang="fr"))

        assert wb.sheetnames[0] == "Peserta"

    def test_allowed_on_finished_event(self, test_db_session, sample_event):
        event = sample_event(name="Done", is_finished=True)

        export = ExportService(test_db_session).export_roster(event.guid)

        rows = list(_open(export).active.iter_rows(values_only=True))
        assert len(rows) == 1

    def test_formula_like_names_stay_text(self, test_db_session, sample_event, sample_attendee):
        event = sample_event()
        sample_attendee(event, name="=HYPERLINK(\"http://x\")")

        wb = _open(ExportService(test_db_session).export_roster(event.guid))

        cell = wb.active["B2"]
        assert cell.data_type == "s"
        assert cell.value == "=HYPERLINK(\"http://x\")"

    def test_non_ascii_name_slug(self, test_db_session, sample_event):
        event = sample_event(name="Ibadah Natal · GKI")

        export = ExportService(test_db_session).export_roster(event.guid)

        assert export.filename == "ibadah-natal-gki-attendees.xlsx"

    def test_unknown_event(self, test_db_session):
        with pytest.raises(NotFoundError):
            ExportService(test_db_session).export_roster("evt_01hgw2bbg0000000000000000")

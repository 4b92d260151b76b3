"""
Integration tests for Attendees API endpoints.

Tests end-to-end roster flows:
- Manual add, list, search
- File import and the duplicate confirmation round trip
- Check-in conflicts and undo
- Finished-event gate across every mutating endpoint
- Upload size cap and unprocessable files
- Export download
"""

import pytest

from backend.src.config.settings import AppSettings, get_settings
from backend.src.models import Attendee
from backend.src.services.import_service import ImportService


XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@pytest.fixture
def event_guid(test_client):
    return test_client.post("/api/events", json={"name": "Youth Camp 2026"}).json()["guid"]


def _base(event_guid):
    return f"/api/events/{event_guid}/attendees"


def _add(client, event_guid, name, **fields):
    response = client.post(_base(event_guid), json={"name": name, **fields})
    assert response.status_code == 201
    return response.json()


def _stats(client, event_guid):
    return client.get(_base(event_guid)).json()["stats"]


class TestManualRoster:

    def test_add_and_list(self, test_client, event_guid):
        jane = _add(test_client, event_guid, "Jane Doe", phone_number="0811")
        _add(test_client, event_guid, "John Smith")

        assert jane["guid"].startswith("att_")
        assert jane["event_guid"] == event_guid
        assert jane["source"] == "manual"
        assert jane["checked_in"] is False
        assert jane["checked_in_at"] is None

        data = test_client.get(_base(event_guid)).json()
        assert [a["name"] for a in data["items"]] == ["Jane Doe", "John Smith"]
        assert data["total"] == 2
        assert data["stats"] == {"total": 2, "checked_in": 0}

    def test_search_and_filter(self, test_client, event_guid):
        jane = _add(test_client, event_guid, "Jane Doe", phone_number="0811")
        _add(test_client, event_guid, "John Smith", phone_number="0822")
        test_client.patch(f"{_base(event_guid)}/{jane['guid']}/checkin")

        by_phone = test_client.get(_base(event_guid), params={"search": "082"}).json()
        pending = test_client.get(_base(event_guid), params={"checked_in": "false"}).json()

        assert [a["name"] for a in by_phone["items"]] == ["John Smith"]
        assert [a["name"] for a in pending["items"]] == ["John Smith"]
        # stats always describe the whole roster
        assert pending["stats"] == {"total": 2, "checked_in": 1}

    def test_empty_name(self, test_client, event_guid):
        response = test_client.post(_base(event_guid), json={"name": "   "})

        assert response.status_code == 400
        assert response.json()["detail"]["error_code"] == "validation_error"

    def test_unknown_event(self, test_client):
        response = test_client.get(_base("evt_01hgw2bbg0000000000000000"))

        assert response.status_code == 404

    def test_delete_and_clear(self, test_client, event_guid):
        jane = _add(test_client, event_guid, "Jane")
        _add(test_client, event_guid, "John")
        _add(test_client, event_guid, "Maria")

        assert test_client.delete(f"{_base(event_guid)}/{jane['guid']}").status_code == 204
        assert _stats(test_client, event_guid)["total"] == 2

        response = test_client.delete(_base(event_guid))
        assert response.status_code == 200
        assert response.json()["removed"] == 2
        assert _stats(test_client, event_guid) == {"total": 0, "checked_in": 0}


class TestCheckInAPI:

    def test_double_check_in_conflicts(self, test_client, event_guid):
        jane = _add(test_client, event_guid, "Jane")
        url = f"{_base(event_guid)}/{jane['guid']}/checkin"

        first = test_client.patch(url)
        assert first.status_code == 200
        checked_in_at = first.json()["checked_in_at"]
        assert checked_in_at is not None
        stats_after_first = _stats(test_client, event_guid)

        second = test_client.patch(url)
        assert second.status_code == 409
        detail = second.json()["detail"]
        assert detail["error_code"] == "already_checked_in"
        assert detail["attendee"]["guid"] == jane["guid"]
        assert detail["attendee"]["checked_in_at"] == checked_in_at
        assert _stats(test_client, event_guid) == stats_after_first

    def test_undo(self, test_client, event_guid):
        jane = _add(test_client, event_guid, "Jane")
        test_client.patch(f"{_base(event_guid)}/{jane['guid']}/checkin")

        response = test_client.patch(f"{_base(event_guid)}/{jane['guid']}/undo-checkin")

        assert response.status_code == 200
        assert response.json()["checked_in"] is False
        assert response.json()["checked_in_at"] is None

    def test_unknown_attendee(self, test_client, event_guid):
        response = test_client.patch(
            f"{_base(event_guid)}/att_01hgw2bbg0000000000000000/checkin"
        )

        assert response.status_code == 404


class TestImportAPI:

    def test_import_single_row(self, test_client, event_guid, xlsx_file):
        content = xlsx_file([["Nama", "No. HP", "Gereja"], ["Jane", "0811111111", "GKI"]])

        response = test_client.post(
            f"{_base(event_guid)}/import",
            files={"file": ("peserta.xlsx", content, XLSX)},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["imported"] == 1
        assert data["skipped"] == 0
        assert data["duplicates"] == []
        assert _stats(test_client, event_guid) == {"total": 1, "checked_in": 0}

    def test_duplicate_round_trip(self, test_client, event_guid, csv_file):
        _add(test_client, event_guid, "John Doe", phone_number="0812345678")
        content = csv_file([
            ["Name", "Phone", "Church"],
            ["Jane", "0811111111", "GKI"],
            ["john.doe", "+62 812-345-678", "GBI"],
            ["", "0899", ""],
        ])

        response = test_client.post(
            f"{_base(event_guid)}/import",
            files={"file": ("peserta.csv", content, "text/csv")},
        )

        assert response.status_code == 200
        data = response.json()
        assert (data["imported"], data["skipped"]) == (1, 1)
        assert data["duplicates"] == [{
            "name": "john.doe",
            "phone": "+62 812-345-678",
            "affiliation": "GBI",
            "row_index": 3,
            "matched_by": "name",
            "existing_name": "John Doe",
            "existing_phone": "0812345678",
        }]
        assert _stats(test_client, event_guid)["total"] == 2

        confirm = test_client.post(
            f"{_base(event_guid)}/import-duplicates",
            json={"duplicates": data["duplicates"]},
        )

        assert confirm.status_code == 200
        assert confirm.json()["imported"] == 1
        names = [a["name"] for a in test_client.get(_base(event_guid)).json()["items"]]
        assert names == ["John Doe", "Jane", "john.doe"]

    def test_no_name_column(self, test_client, event_guid, csv_file):
        content = csv_file([["Telepon", "Alamat"], ["0811", "Jakarta"]])

        response = test_client.post(
            f"{_base(event_guid)}/import",
            files={"file": ("peserta.csv", content, "text/csv")},
        )

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["error_code"] == "unprocessable_import"
        assert detail["detected_columns"] == ["Telepon", "Alamat"]

    def test_empty_file(self, test_client, event_guid):
        response = test_client.post(
            f"{_base(event_guid)}/import",
            files={"file": ("peserta.csv", b"", "text/csv")},
        )

        assert response.status_code == 422

    def test_file_too_large(self, test_client, event_guid):
        from backend.src.main import app

        app.dependency_overrides[get_settings] = lambda: AppSettings(
            EKKLESIA_MAX_IMPORT_SIZE_MB=1
        )
        content = b"Name\n" + b"x" * (1024 * 1024)

        response = test_client.post(
            f"{_base(event_guid)}/import",
            files={"file": ("big.csv", content, "text/csv")},
        )

        assert response.status_code == 413
        assert response.json()["detail"]["error_code"] == "file_too_large"

    def test_write_failure_imports_nothing(
        self, test_client, event_guid, csv_file, mocker
    ):
        from sqlalchemy.exc import OperationalError

        original_insert = ImportService._insert
        calls = []

        def failing_insert(self, *args):
            calls.append(args)
            if len(calls) == 2:
                raise OperationalError("INSERT INTO attendees", {}, Exception("disk I/O error"))
            return original_insert(self, *args)

        mocker.patch.object(ImportService, "_insert", failing_insert)
        content = csv_file([["Name"], ["First"], ["Second"], ["Third"]])

        response = test_client.post(
            f"{_base(event_guid)}/import",
            files={"file": ("peserta.csv", content, "text/csv")},
        )

        assert response.status_code == 500
        assert response.json()["detail"]["error_code"] == "import_failed"
        assert _stats(test_client, event_guid)["total"] == 0


class TestFinishedEventGate:

    @pytest.fixture
    def finished(self, test_client, event_guid):
        jane = _add(test_client, event_guid, "Jane")
        checked = _add(test_client, event_guid, "John")
        test_client.patch(f"{_base(event_guid)}/{checked['guid']}/checkin")
        test_client.post(f"/api/events/{event_guid}/finish")
        return jane, checked

    def test_mutations_are_forbidden(self, test_client, event_guid, finished, csv_file):
        jane, _ = finished
        before = _stats(test_client, event_guid)
        base = _base(event_guid)

        responses = [
            test_client.post(base, json={"name": "Late Comer"}),
            test_client.post(
                f"{base}/import",
                files={"file": ("p.csv", csv_file([["Name"], ["X"]]), "text/csv")},
            ),
            test_client.post(f"{base}/import-duplicates", json={"duplicates": [{"name": "X"}]}),
            test_client.patch(f"{base}/{jane['guid']}/checkin"),
            test_client.delete(f"{base}/{jane['guid']}"),
            test_client.delete(base),
        ]

        for response in responses:
            assert response.status_code == 403
            assert response.json()["detail"]["error_code"] == "event_finished"
            assert "Restart the event" in response.json()["detail"]["message"]
        assert _stats(test_client, event_guid) == before

    def test_undo_is_still_allowed(self, test_client, event_guid, finished):
        _, checked = finished

        response = test_client.patch(f"{_base(event_guid)}/{checked['guid']}/undo-checkin")

        assert response.status_code == 200
        assert _stats(test_client, event_guid)["checked_in"] == 0

    def test_reads_and_export_are_allowed(self, test_client, event_guid, finished):
        assert test_client.get(_base(event_guid)).status_code == 200
        assert test_client.get(f"{_base(event_guid)}/export").status_code == 200

    def test_restart_reopens_roster(self, test_client, event_guid, finished):
        test_client.post(f"/api/events/{event_guid}/restart")

        _add(test_client, event_guid, "Late Comer")

        assert _stats(test_client, event_guid)["total"] == 3


class TestExportAPI:

    def test_download(self, test_client, event_guid):
        _add(test_client, event_guid, "Jane")

        response = test_client.get(f"{_base(event_guid)}/export", params={"lang": "en"})

        assert response.status_code == 200
        assert response.headers["content-type"] == XLSX
        assert "youth-camp-2026-attendees.xlsx" in response.headers["content-disposition"]
        assert response.content.startswith(b"PK")

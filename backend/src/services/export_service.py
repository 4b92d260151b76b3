"""
Roster export to Excel.

Builds an .xlsx workbook with two sheets: the attendee list and a short
export summary. Labels are available in Indonesian (default) and English.
"""

import io
from dataclasses import dataclass
from datetime import datetime
from typing import Dict

from openpyxl import Workbook
from sqlalchemy.orm import Session

from backend.src.models import Attendee, AttendeeSource
from backend.src.services.event_service import EventService
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

EXPORT_LABELS: Dict[str, Dict[str, str]] = {
    "id": {
        "col_no": "No",
        "col_name": "Nama",
        "col_phone": "No. Telepon",
        "col_affiliation": "Gereja Asal",
        "col_status": "Status",
        "col_checkin_time": "Waktu Check-in",
        "col_source": "Sumber Data",
        "status_checked": "Sudah Check-in",
        "status_pending": "Belum Check-in",
        "source_import": "Import File",
        "source_manual": "Manual",
        "info_event": "Acara",
        "info_date": "Tanggal Acara",
        "info_location": "Lokasi",
        "info_total": "Total Peserta",
        "info_checked": "Sudah Check-in",
        "info_exported": "Diekspor pada",
        "sheet_attendees": "Peserta",
        "sheet_info": "Info Export",
    },
    "en": {
        "col_no": "No",
        "col_name": "Name",
        "col_phone": "Phone Number",
        "col_affiliation": "Home Church",
        "col_status": "Status",
        "col_checkin_time": "Check-in Time",
        "col_source": "Source",
        "status_checked": "Checked In",
        "status_pending": "Pending",
        "source_import": "Imported",
        "source_manual": "Manual",
        "info_event": "Event",
        "info_date": "Event Date",
        "info_location": "Location",
        "info_total": "Total Attendees",
        "info_checked": "Checked In",
        "info_exported": "Exported at",
        "sheet_attendees": "Attendees",
        "sheet_info": "Export Info",
    },
}

DEFAULT_LANG = "id"

ATTENDEE_COLUMN_WIDTHS = {"A": 5, "B": 30, "C": 18, "D": 30, "E": 18, "F": 22, "G": 14}
INFO_COLUMN_WIDTHS = {"A": 20, "B": 40}


@dataclass
class RosterExport:
    filename: str
    content: bytes
    media_type: str = XLSX_MEDIA_TYPE


def _iso_utc(value: datetime) -> str:
    return value.replace(microsecond=0).isoformat() + "Z"


class ExportService:
    """
    Service producing roster workbooks.

    Usage:
        >>> export = ExportService(db_session).export_roster(event_guid, lang="en")
        >>> export.filename
        'youth-camp-2026-attendees.xlsx'
    """

    def __init__(self, db: Session):
        self.db = db
        self.events = EventService(db)

    def export_roster(self, event_guid: str, lang: str = DEFAULT_LANG) -> RosterExport:
        """
        Export the roster of an event as an .xlsx workbook.

        Unknown languages fall back to Indonesian. Read-only, so allowed on
        finished events.

        Raises:
            NotFoundError: If the event does not exist
        """
        labels = EXPORT_LABELS.get(lang, EXPORT_LABELS[DEFAULT_LANG])
        event = self.events.get_by_guid(event_guid)
        attendees = (
            self.db.query(Attendee)
            .filter(Attendee.event_id == event.id)
            .order_by(Attendee.id.asc())
            .all()
        )

        wb = Workbook()
        ws = wb.active
        ws.title = labels["sheet_attendees"]
        ws.append([
            labels["col_no"],
            labels["col_name"],
            labels["col_phone"],
            labels["col_affiliation"],
            labels["col_status"],
            labels["col_checkin_time"],
            labels["col_source"],
        ])
        for number, attendee in enumerate(attendees, start=1):
            ws.append([
                number,
                attendee.name,
                attendee.phone_number or "",
                attendee.affiliation or "",
                labels["status_checked"] if attendee.checked_in else labels["status_pending"],
                _iso_utc(attendee.checked_in_at) if attendee.checked_in_at else "",
                labels["source_import"]
                if attendee.source == AttendeeSource.IMPORT.value
                else labels["source_manual"],
            ])
            # Imported names like "=HYPERLINK(...)" must stay plain text
            for cell in ws[ws.max_row]:
                if cell.data_type == "f":
                    cell.data_type = "s"
        for column, width in ATTENDEE_COLUMN_WIDTHS.items():
            ws.column_dimensions[column].width = width

        info = wb.create_sheet(labels["sheet_info"])
        for row in (
            (labels["info_event"], event.name),
            (labels["info_date"], event.date.isoformat() if event.date else "-"),
            (labels["info_location"], event.location or "-"),
            (labels["info_total"], len(attendees)),
            (labels["info_checked"], sum(1 for a in attendees if a.checked_in)),
            (labels["info_exported"], _iso_utc(datetime.utcnow())),
        ):
            info.append(list(row))
        for column, width in INFO_COLUMN_WIDTHS.items():
            info.column_dimensions[column].width = width

        stream = io.BytesIO()
        wb.save(stream)

        logger.info(
            f"Exported {len(attendees)} attendees of event {event.guid}",
            extra={"event_guid": event.guid, "lang": lang},
        )
        return RosterExport(
            filename=f"{self._slug(event.name)}-attendees.xlsx",
            content=stream.getvalue(),
        )

    @staticmethod
    def _slug(name: str) -> str:
        slug = "".join(ch if ch.isascii() and ch.isalnum() else "-" for ch in name.lower())
        slug = "-".join(part for part in slug.split("-") if part)
        return slug or "event"

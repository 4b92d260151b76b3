"""
Tabular file decoding for attendee imports.

Turns the raw bytes of an uploaded CSV, legacy Excel (.xls) or modern
Excel (.xlsx) file into a header list and a list of row dictionaries
keyed by header label. Every cell comes back as text; missing cells are
empty strings.

Only the first worksheet of a workbook is read. The first row is the
header row.
"""

import csv
import io
import zipfile
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from pathlib import PurePath
from typing import Any, Dict, Iterable, List, Optional, Sequence

import openpyxl
import xlrd
from openpyxl.utils.exceptions import InvalidFileException
from xlrd.compdoc import CompDocError

from backend.src.services.exceptions import ImportFileError
from backend.src.utils.logging_config import get_logger


logger = get_logger("services")

XLSX_SIGNATURE = b"PK\x03\x04"
XLS_SIGNATURE = b"\xd0\xcf\x11\xe0"

CSV_DELIMITERS = ",;\t"


class FileFormat(str, Enum):
    CSV = "csv"
    XLS = "xls"
    XLSX = "xlsx"


_EXTENSION_FORMATS = {
    ".csv": FileFormat.CSV,
    ".txt": FileFormat.CSV,
    ".tsv": FileFormat.CSV,
    ".xls": FileFormat.XLS,
    ".xlsx": FileFormat.XLSX,
    ".xlsm": FileFormat.XLSX,
}


@dataclass
class ParsedTable:
    """Header labels plus data rows (blank rows already removed)."""
    headers: List[str] = field(default_factory=list)
    rows: List[Dict[str, str]] = field(default_factory=list)


def detect_format(content: bytes, filename: Optional[str] = None) -> FileFormat:
    """
    Pick the decoder for an upload.

    The file extension wins when it is a known one; otherwise the leading
    bytes are inspected. Anything that is not a zip or OLE2 container is
    treated as CSV.
    """
    if filename:
        fmt = _EXTENSION_FORMATS.get(PurePath(filename).suffix.lower())
        if fmt is not None:
            return fmt
    if content.startswith(XLSX_SIGNATURE):
        return FileFormat.XLSX
    if content.startswith(XLS_SIGNATURE):
        return FileFormat.XLS
    return FileFormat.CSV


def cell_to_text(value: Any) -> str:
    """Coerce a spreadsheet cell to the text stored on an attendee."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        # Phone numbers typed into Excel come back as 8.12345678E9
        return str(int(value))
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    return str(value)


def build_table(raw_rows: Iterable[Sequence[Any]]) -> ParsedTable:
    """
    Build a ParsedTable from rows of raw cell values.

    Blank header cells drop their column. Repeated header labels are
    suffixed ``_1``, ``_2`` ... so no column is shadowed.
    """
    iterator = iter(raw_rows)
    header_row = next(iterator, None)
    if header_row is None:
        return ParsedTable()

    columns = []  # (cell index, label)
    seen: Dict[str, int] = {}
    for index, cell in enumerate(header_row):
        label = cell_to_text(cell).strip()
        if not label:
            continue
        if label in seen:
            seen[label] += 1
            label = f"{label}_{seen[label]}"
        else:
            seen[label] = 0
        columns.append((index, label))

    table = ParsedTable(headers=[label for _, label in columns])
    for raw in iterator:
        row = {
            label: cell_to_text(raw[index]) if index < len(raw) else ""
            for index, label in columns
        }
        if any(value.strip() for value in row.values()):
            table.rows.append(row)
    return table


def _decode_text(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return content.decode("latin-1")


def _read_csv(content: bytes) -> List[List[str]]:
    text = _decode_text(content)
    sample = text[:8192]
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=CSV_DELIMITERS)
    except csv.Error:
        dialect = csv.excel
    try:
        return list(csv.reader(io.StringIO(text), dialect))
    except csv.Error as e:
        raise ImportFileError(f"Could not read CSV file: {e}")


def _read_xlsx(content: bytes) -> List[List[Any]]:
    try:
        workbook = openpyxl.load_workbook(
            io.BytesIO(content), read_only=True, data_only=True
        )
    except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError, OSError) as e:
        raise ImportFileError(f"Could not read Excel file: {e}")
    try:
        if not workbook.worksheets:
            return []
        sheet = workbook.worksheets[0]
        return [list(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def _read_xls(content: bytes) -> List[List[Any]]:
    try:
        book = xlrd.open_workbook(file_contents=content)
    except (xlrd.XLRDError, CompDocError, ValueError, OSError, EOFError) as e:
        raise ImportFileError(f"Could not read Excel 97-2003 file: {e}")
    if book.nsheets == 0:
        return []
    sheet = book.sheet_by_index(0)
    rows = []
    for r in range(sheet.nrows):
        values = []
        for cell in sheet.row(r):
            if cell.ctype == xlrd.XL_CELL_DATE:
                values.append(xlrd.xldate_as_datetime(cell.value, book.datemode))
            elif cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
                values.append(None)
            else:
                values.append(cell.value)
        rows.append(values)
    return rows


_READERS = {
    FileFormat.CSV: _read_csv,
    FileFormat.XLS: _read_xls,
    FileFormat.XLSX: _read_xlsx,
}


def parse_tabular_file(content: bytes, filename: Optional[str] = None) -> ParsedTable:
    """
    Decode an uploaded roster file.

    Args:
        content: Raw file bytes
        filename: Original filename, used for format detection when present

    Returns:
        ParsedTable with headers and non-blank data rows

    Raises:
        ImportFileError: If the file cannot be decoded in the detected format
    """
    fmt = detect_format(content, filename)
    table = build_table(_READERS[fmt](content))
    logger.debug(
        f"Parsed {fmt.value} upload: {len(table.headers)} columns, {len(table.rows)} rows",
        extra={"upload_filename": filename, "file_format": fmt.value},
    )
    return table

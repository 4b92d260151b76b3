"""
Header-to-field resolution for roster imports.

Spreadsheets exported from different form tools label their columns
differently (and in different languages). ``COLUMN_KEYWORDS`` lists, per
attendee field, the labels we recognise in priority order. For each
keyword a header matches when its lowercased, trimmed form equals the
keyword or contains it. The first keyword that matches any header wins.

Substring containment is permissive; a header such as
"Emergency phone of parent" will resolve as the phone column.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from backend.src.services.exceptions import ImportFileError


COLUMN_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "name": (
        "name",
        "full name",
        "fullname",
        "nama",
        "nama lengkap",
        "your name",
        "participant name",
    ),
    "phone": (
        "phone",
        "phone number",
        "phonenumber",
        "mobile",
        "hp",
        "no hp",
        "no. hp",
        "nomor hp",
        "whatsapp",
        "no telepon",
        "handphone",
    ),
    "affiliation": (
        "email",
        "email address",
        "emailaddress",
        "e-mail",
        "gereja asal",
        "gereja",
        "asal gereja",
        "home church",
        "church",
    ),
}


@dataclass(frozen=True)
class ResolvedColumns:
    """Header label supplying each attendee field (None = not present)."""
    name: str
    phone: Optional[str] = None
    affiliation: Optional[str] = None


def find_header(headers: Sequence[str], keywords: Sequence[str]) -> Optional[str]:
    """Return the first header matching the keyword list, or None."""
    normalized = [(header, header.strip().lower()) for header in headers]
    for keyword in keywords:
        for header, label in normalized:
            if label == keyword or keyword in label:
                return header
    return None


def resolve_columns(headers: Sequence[str]) -> ResolvedColumns:
    """
    Resolve the name, phone and affiliation columns of an upload.

    Raises:
        ImportFileError: If no header resolves to the name field. The
            error lists the accepted labels and the headers found.
    """
    name_header = find_header(headers, COLUMN_KEYWORDS["name"])
    if name_header is None:
        accepted = ", ".join(f'"{k}"' for k in COLUMN_KEYWORDS["name"])
        found = ", ".join(headers) if headers else "(none)"
        raise ImportFileError(
            f"No name column found. Use one of {accepted} as a header. "
            f"Detected columns: {found}",
            detected_columns=list(headers),
        )
    return ResolvedColumns(
        name=name_header,
        phone=find_header(headers, COLUMN_KEYWORDS["phone"]),
        affiliation=find_header(headers, COLUMN_KEYWORDS["affiliation"]),
    )

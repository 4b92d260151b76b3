"""
Comparison keys for attendee matching.

Both functions are pure and idempotent. They are used on the Python side
(for the candidate row) while the stored side is normalized in SQL with
the same patterns, see ``PHONE_STRIP_PATTERN`` and ``NAME_STRIP_PATTERN``.

Known limitation: no locale-aware phone handling. "0812..." and
"+62 812..." produce different keys and will not match.
"""

import re
from typing import Optional

# POSIX-regex patterns shared with the database-side regexp_replace()
PHONE_STRIP_PATTERN = r"[^0-9]"
NAME_STRIP_PATTERN = r"[^a-z0-9]"

_PHONE_STRIP = re.compile(PHONE_STRIP_PATTERN)
_NAME_STRIP = re.compile(NAME_STRIP_PATTERN)


def normalize_phone(raw: Optional[str]) -> str:
    """
    Reduce a phone string to its digits.

    >>> normalize_phone("+62 812-345-678")
    '62812345678'
    >>> normalize_phone(None)
    ''
    """
    if not raw:
        return ""
    return _PHONE_STRIP.sub("", str(raw))


def normalize_name(raw: Optional[str]) -> str:
    """
    Reduce a display name to lowercase ASCII letters and digits.

    >>> normalize_name("  John  O'Doe ")
    'johnodoe'
    """
    if not raw:
        return ""
    return _NAME_STRIP.sub("", str(raw).strip().lower())

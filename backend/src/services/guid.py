"""
GUID service for entity identification.

Resolves the public identifiers used in URLs and API responses back to
the UUIDs stored in the database.

GUID Format: {prefix}_{base32_uuid}
- prefix: 3-character entity type identifier (evt, att)
- base32_uuid: 26-character Crockford Base32 encoded UUIDv7
"""

import re
import uuid
from typing import Optional

import base32_crockford

# Prefix mappings for entity types
#   evt - Event
#   att - Attendee
ENTITY_PREFIXES = {
    "evt": "Event",
    "att": "Attendee",
}

# Format: {3-char prefix}_{26-char Crockford Base32}
GUID_PATTERN = re.compile(
    r"^(evt|att)_[0-9A-HJKMNP-TV-Za-hjkmnp-tv-z]{26}$",
    re.IGNORECASE
)


class GuidService:
    """
    Static helpers for validating and decoding GUIDs.
    """

    @staticmethod
    def validate_guid(guid: str, expected_prefix: Optional[str] = None) -> bool:
        """
        Validate a GUID format.

        Args:
            guid: GUID string to validate
            expected_prefix: Optional expected prefix for type checking

        Returns:
            True if valid, False otherwise
        """
        if not guid or not GUID_PATTERN.match(guid):
            return False
        if expected_prefix:
            return guid[:3].lower() == expected_prefix.lower()
        return True

    @staticmethod
    def parse_guid(guid: str, expected_prefix: str) -> uuid.UUID:
        """
        Parse a GUID string to UUID, validating the prefix.

        Args:
            guid: GUID string (e.g., "evt_01hgw2bbg...")
            expected_prefix: Expected entity prefix

        Returns:
            UUID object

        Raises:
            ValueError: If format invalid, prefix doesn't match, or the
                encoded value does not fit in 128 bits
        """
        if not GuidService.validate_guid(guid, expected_prefix):
            raise ValueError(
                f"Invalid {ENTITY_PREFIXES.get(expected_prefix, 'entity')} "
                f"identifier: {guid!r}"
            )

        try:
            uuid_int = base32_crockford.decode(guid[4:].upper())
            return uuid.UUID(bytes=uuid_int.to_bytes(16, "big"))
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Invalid GUID encoding: {e}")

"""
GUID mixin for SQLAlchemy models.

Events and attendees are addressed publicly by a GUID built from a UUIDv7
(time-ordered) encoded with Crockford's Base32, so internal integer keys
never leave the database.

GUID Format: {prefix}_{base32_uuid}
Examples:
    - evt_01hgw2bbg0000000000000000 (Event)
    - att_01hgw2bbg0000000000000001 (Attendee)
"""

import uuid as uuid_module
from typing import ClassVar, Optional

import base32_crockford
from sqlalchemy import Column, TypeDecorator, LargeBinary
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from uuid_extensions import uuid7


class UUIDType(TypeDecorator):
    """
    UUID column type usable on both PostgreSQL and SQLite.

    PostgreSQL stores a native UUID; SQLite stores the 16 raw bytes.
    Values are always returned as ``uuid.UUID``.
    """

    impl = LargeBinary
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(PG_UUID(as_uuid=True))
        return dialect.type_descriptor(LargeBinary(16))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if not isinstance(value, uuid_module.UUID):
            value = (
                uuid_module.UUID(bytes=value) if isinstance(value, bytes)
                else uuid_module.UUID(str(value))
            )
        return value if dialect.name == 'postgresql' else value.bytes

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid_module.UUID):
            return value
        if isinstance(value, bytes):
            return uuid_module.UUID(bytes=value)
        return uuid_module.UUID(str(value))


def encode_guid(prefix: str, value: uuid_module.UUID) -> str:
    """Render a UUID as ``{prefix}_{26 lowercase base32 chars}``."""
    encoded = base32_crockford.encode(int.from_bytes(value.bytes, "big"))
    return f"{prefix}_{encoded.zfill(26).lower()}"


class GuidMixin:
    """
    Mixin adding a UUIDv7 column and a prefixed ``guid`` property.

    Usage:
        class Attendee(Base, GuidMixin):
            GUID_PREFIX = "att"

        attendee.guid  # att_01hgw2bbg...
    """

    GUID_PREFIX: ClassVar[str]

    uuid = Column(
        UUIDType(),
        nullable=False,
        unique=True,
        index=True,
        default=uuid7,
    )

    @property
    def guid(self) -> Optional[str]:
        """Public identifier, or None before the row has been flushed."""
        if self.uuid is None:
            return None
        return encode_guid(self.GUID_PREFIX, self.uuid)

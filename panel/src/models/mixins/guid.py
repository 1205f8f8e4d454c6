"""
GUID mixin for SQLAlchemy models.

Every panel entity is addressed by a prefixed identifier rather than its
primary key. The identifier is a UUIDv7 (time-ordered) rendered in
Crockford's Base32.

GUID Format: {prefix}_{base32_uuid}
Examples:
    - usr_01hgw2bbg0000000000000000 (User)
    - crs_01hgw2bbg0000000000000001 (Course)
    - lnk_01hgw2bbg0000000000000002 (CourseLink)
"""

import uuid as uuid_module
from typing import ClassVar

from sqlalchemy import Column, TypeDecorator, LargeBinary
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from uuid_extensions import uuid7

from panel.src.services.guid import GuidService


class UUIDType(TypeDecorator):
    """
    Platform-independent UUID type.

    Native UUID on PostgreSQL, 16-byte LargeBinary elsewhere (SQLite tests).
    Always presents as a Python UUID object.
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
        if dialect.name == 'postgresql':
            return value if isinstance(value, uuid_module.UUID) else uuid_module.UUID(bytes=value)
        if isinstance(value, uuid_module.UUID):
            return value.bytes
        if isinstance(value, bytes):
            return value
        return uuid_module.UUID(str(value)).bytes

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if isinstance(value, uuid_module.UUID):
            return value
        if isinstance(value, bytes):
            return uuid_module.UUID(bytes=value)
        return uuid_module.UUID(str(value))


class GuidMixin:
    """
    Mixin providing GUID support for entities.

    Adds:
    - uuid: UUIDv7 column, generated on insert
    - guid: Property returning the prefixed Base32 string
    - parse_guid: Class method decoding a GUID of this entity type

    Usage:
        class Post(Base, GuidMixin):
            GUID_PREFIX = "pst"
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
    def guid(self) -> str:
        """GUID in format {prefix}_{base32_uuid}, or None before the first flush."""
        if self.uuid is None:
            return None
        return GuidService.encode_uuid(self.uuid, self.GUID_PREFIX)

    @classmethod
    def parse_guid(cls, guid: str) -> uuid_module.UUID:
        """
        Parse a GUID of this entity type to a UUID.

        Raises:
            ValueError: If the GUID format is invalid or prefix doesn't match
        """
        return GuidService.parse_guid(guid, cls.GUID_PREFIX)

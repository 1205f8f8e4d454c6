"""
GUID service for entity identification.

Provides utilities for generating, encoding, decoding, and validating
the prefixed identifiers the panel exposes instead of primary keys.

GUID Format: {prefix}_{base32_uuid}
- prefix: 3-character entity type identifier (usr, pst, crs, ...)
- base32_uuid: 26-character Crockford Base32 encoded UUIDv7
"""

import re
import uuid

import base32_crockford
from uuid_extensions import uuid7

# Database entities (persisted):
#   usr - User
#   pst - Post
#   prj - Project
#   crs - Course
#   lnk - CourseLink
#   fsh - Fish
#   cmt - Comment
# In-memory entities (transient):
#   frm - Form session
#   ctx - Inline creation context
ENTITY_PREFIXES = {
    "usr": "User",
    "pst": "Post",
    "prj": "Project",
    "crs": "Course",
    "lnk": "CourseLink",
    "fsh": "Fish",
    "cmt": "Comment",
    "frm": "FormSession",
    "ctx": "CreationContext",
}

GUID_PATTERN = re.compile(
    r"^(" + "|".join(ENTITY_PREFIXES) + r")_[0-9A-HJKMNP-TV-Za-hjkmnp-tv-z]{26}$",
    re.IGNORECASE
)


class GuidService:
    """
    Static helpers for GUID operations.

    - Generating new UUIDv7 values
    - Encoding UUIDs to GUID strings
    - Decoding GUID strings to UUIDs
    - Validating GUID format
    """

    @staticmethod
    def generate_uuid() -> uuid.UUID:
        """Generate a new time-ordered UUIDv7 value."""
        return uuid7()

    @staticmethod
    def encode_uuid(uuid_value: uuid.UUID, prefix: str) -> str:
        """
        Encode a UUID to a GUID string.

        Args:
            uuid_value: UUID (or its 16 raw bytes) to encode
            prefix: Entity type prefix

        Returns:
            GUID string (e.g., "pst_01hgw2bbg...")

        Raises:
            ValueError: If prefix is invalid
        """
        if prefix not in ENTITY_PREFIXES:
            raise ValueError(
                f"Invalid prefix '{prefix}'. "
                f"Valid prefixes: {', '.join(ENTITY_PREFIXES.keys())}"
            )

        if isinstance(uuid_value, bytes):
            uuid_int = int.from_bytes(uuid_value, "big")
        else:
            uuid_int = int.from_bytes(uuid_value.bytes, "big")

        encoded = base32_crockford.encode(uuid_int).zfill(26)
        return f"{prefix}_{encoded.lower()}"

    @staticmethod
    def generate_guid(prefix: str) -> str:
        """
        Generate a new GUID with the specified prefix.

        Example:
            >>> session_id = GuidService.generate_guid("frm")
        """
        return GuidService.encode_uuid(GuidService.generate_uuid(), prefix)

    @staticmethod
    def decode_guid(guid: str) -> tuple[str, uuid.UUID]:
        """
        Decode a GUID string to its (prefix, UUID) components.

        Raises:
            ValueError: If the GUID format is invalid
        """
        if not guid:
            raise ValueError("GUID cannot be empty")

        if not GUID_PATTERN.match(guid):
            raise ValueError(
                f"Invalid GUID format: {guid}. "
                f"Expected format: {{prefix}}_{{26-char base32}}"
            )

        prefix = guid[:3].lower()
        encoded_part = guid[4:]

        try:
            uuid_int = base32_crockford.decode(encoded_part.upper())
            return prefix, uuid.UUID(bytes=uuid_int.to_bytes(16, "big"))
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Invalid GUID encoding: {e}")

    @staticmethod
    def validate_guid(guid: str, expected_prefix: str = None) -> bool:
        """
        Validate a GUID format, optionally checking its prefix.

        Returns:
            True if valid, False otherwise
        """
        if not guid or not isinstance(guid, str):
            return False

        if not GUID_PATTERN.match(guid):
            return False

        if expected_prefix:
            return guid[:3].lower() == expected_prefix.lower()

        return True

    @staticmethod
    def parse_guid(guid: str, expected_prefix: str) -> uuid.UUID:
        """
        Parse a GUID string to UUID, validating the prefix.

        Raises:
            ValueError: If format invalid or prefix doesn't match
        """
        prefix, uuid_value = GuidService.decode_guid(guid)
        if prefix != expected_prefix.lower():
            raise ValueError(
                f"GUID prefix mismatch. "
                f"Expected '{expected_prefix}', got '{prefix}'"
            )
        return uuid_value

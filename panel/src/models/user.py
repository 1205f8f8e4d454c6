"""
User model.

Users own fish and write comments. They can be created from the users
resource or inline from any belongs-to field that targets users.

Design Rationale:
- Email is globally unique (enforced by a unique index, violations surface
  as validation errors on the email field)
- Passwords are never stored; only a salted PBKDF2 digest is kept
- The display label is the full name, the same value shown in selects
"""

import hashlib
import hmac
import secrets
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from panel.src.models import Base
from panel.src.models.mixins import GuidMixin


PASSWORD_HASH_ALGORITHM = "pbkdf2_sha256"
PASSWORD_HASH_ITERATIONS = 260_000


def hash_password(password: str, salt: Optional[str] = None) -> str:
    """
    Hash a password for storage.

    Returns:
        "{algorithm}${iterations}${salt}${hex_digest}"
    """
    salt = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt.encode("utf-8"), PASSWORD_HASH_ITERATIONS
    )
    return f"{PASSWORD_HASH_ALGORITHM}${PASSWORD_HASH_ITERATIONS}${salt}${digest.hex()}"


class User(Base, GuidMixin):
    """
    User model.

    Attributes:
        id: Primary key (internal, never exposed)
        uuid: UUIDv7 for external identification (inherited from GuidMixin)
        guid: GUID string property (usr_xxx, inherited from GuidMixin)
        email: Unique email address
        first_name: Given name
        last_name: Family name
        password_digest: Salted PBKDF2 digest of the password
        created_at: Creation timestamp

    Relationships:
        fish: Fish owned by this user (one-to-many)
        comments: Comments written by this user (one-to-many)
    """

    __tablename__ = "users"

    GUID_PREFIX = "usr"

    id = Column(Integer, primary_key=True, autoincrement=True)

    email = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    password_digest = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    fish = relationship("Fish", back_populates="user", lazy="dynamic")
    comments = relationship("Comment", back_populates="user", lazy="dynamic")

    @property
    def name(self) -> str:
        """Full name, used as the display label."""
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    @property
    def password(self):
        raise AttributeError("password is write-only")

    @password.setter
    def password(self, value: str) -> None:
        self.password_digest = hash_password(value)

    def check_password(self, password: str) -> bool:
        """Check a plain-text password against the stored digest."""
        if not self.password_digest:
            return False
        _algorithm, _iterations, salt, _digest = self.password_digest.split("$")
        return hmac.compare_digest(hash_password(password, salt), self.password_digest)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"

    def __str__(self) -> str:
        return self.name

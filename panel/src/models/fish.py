"""
Fish model.

Each fish optionally belongs to a user.
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from panel.src.models import Base
from panel.src.models.mixins import GuidMixin


class Fish(Base, GuidMixin):
    """
    Fish model.

    Attributes:
        id: Primary key (internal, never exposed)
        guid: GUID string property (fsh_xxx)
        name: Fish name, used as the display label
        user_id: Owner (FK, nullable, SET NULL on delete)
        created_at: Creation timestamp
    """

    __tablename__ = "fish"

    GUID_PREFIX = "fsh"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="fish", lazy="joined")

    def __repr__(self) -> str:
        return f"<Fish(id={self.id}, name='{self.name}', user_id={self.user_id})>"

    def __str__(self) -> str:
        return self.name

"""
Post model.

Posts are one of the record types a comment can be attached to.
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, DateTime

from panel.src.models import Base
from panel.src.models.mixins import GuidMixin


class Post(Base, GuidMixin):
    """
    Post model.

    Attributes:
        id: Primary key (internal, never exposed)
        guid: GUID string property (pst_xxx)
        name: Post title, used as the display label
        body: Optional post content
        created_at: Creation timestamp
    """

    __tablename__ = "posts"

    GUID_PREFIX = "pst"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    body = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Post(id={self.id}, name='{self.name}')>"

    def __str__(self) -> str:
        return self.name

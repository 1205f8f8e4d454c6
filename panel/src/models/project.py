"""
Project model.

Projects are the other record type a comment can be attached to.
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, DateTime

from panel.src.models import Base
from panel.src.models.mixins import GuidMixin


class Project(Base, GuidMixin):
    """
    Project model.

    Attributes:
        id: Primary key (internal, never exposed)
        guid: GUID string property (prj_xxx)
        name: Project name, used as the display label
        description: Optional free text
        created_at: Creation timestamp
    """

    __tablename__ = "projects"

    GUID_PREFIX = "prj"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, name='{self.name}')>"

    def __str__(self) -> str:
        return self.name

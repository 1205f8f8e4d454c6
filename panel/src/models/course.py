"""
Course and CourseLink models.

A course has many links; each link belongs to one course. Both are
addressed by prefixed ids (crs_xxx, lnk_xxx) in every URL and payload.
"""

from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from panel.src.models import Base
from panel.src.models.mixins import GuidMixin


class Course(Base, GuidMixin):
    """
    Course model.

    Attributes:
        id: Primary key (internal, never exposed)
        guid: GUID string property (crs_xxx)
        name: Course name, used as the display label
        created_at: Creation timestamp

    Relationships:
        links: Links attached to this course (one-to-many)
    """

    __tablename__ = "courses"

    GUID_PREFIX = "crs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    links = relationship("CourseLink", back_populates="course", lazy="dynamic")

    def __repr__(self) -> str:
        return f"<Course(id={self.id}, name='{self.name}')>"

    def __str__(self) -> str:
        return self.name


class CourseLink(Base, GuidMixin):
    """
    Link attached to a course.

    Attributes:
        id: Primary key (internal, never exposed)
        guid: GUID string property (lnk_xxx)
        link: URL or free-form link text, used as the display label
        course_id: Owning course (FK, nullable, SET NULL on delete)
        created_at: Creation timestamp
    """

    __tablename__ = "course_links"

    GUID_PREFIX = "lnk"

    id = Column(Integer, primary_key=True, autoincrement=True)
    link = Column(String(500), nullable=False)
    course_id = Column(
        Integer,
        ForeignKey("courses.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    course = relationship("Course", back_populates="links", lazy="joined")

    def __repr__(self) -> str:
        return f"<CourseLink(id={self.id}, course_id={self.course_id})>"

    def __str__(self) -> str:
        return self.link

"""
SQLAlchemy models for the panel backend.

This module provides the declarative base class and imports all models
to ensure they are registered with SQLAlchemy's metadata.
"""

from sqlalchemy.orm import declarative_base

Base = declarative_base()


# Import all models here so they are registered with Base.metadata
# (required for Alembic autogenerate)
from panel.src.models.user import User
from panel.src.models.post import Post
from panel.src.models.project import Project
from panel.src.models.course import Course, CourseLink
from panel.src.models.fish import Fish
from panel.src.models.comment import Comment

__all__ = [
    "Base",
    "User",
    "Post",
    "Project",
    "Course",
    "CourseLink",
    "Fish",
    "Comment",
]

"""
Pydantic schemas for API request/response validation.
"""

from panel.src.schemas.association import (
    SelectOption,
    CandidateResponse,
    CandidateListResponse,
    BelongsToFieldView,
)
from panel.src.schemas.records import (
    UserCreate,
    PostCreate,
    ProjectCreate,
    CourseCreate,
    CourseLinkCreate,
    FishCreate,
    CommentCreate,
)

__all__ = [
    "SelectOption",
    "CandidateResponse",
    "CandidateListResponse",
    "BelongsToFieldView",
    "UserCreate",
    "PostCreate",
    "ProjectCreate",
    "CourseCreate",
    "CourseLinkCreate",
    "FishCreate",
    "CommentCreate",
]

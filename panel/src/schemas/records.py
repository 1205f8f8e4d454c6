"""
Pydantic schemas validating new records.

Each resource validates the fields of a new record (created through its
own form or inline from a belongs-to field) with one of these schemas.
Field names match the form input names, so validation errors map
directly onto inputs.
"""

import re
from typing import Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _not_blank(value: str, label: str) -> str:
    if not value.strip():
        raise ValueError(f"{label} cannot be empty or whitespace")
    return value.strip()


class UserCreate(BaseModel):
    """
    Schema for creating a user.

    Required:
        email: Unique email address
        first_name, last_name: Name parts
        password: At least 6 characters
        password_confirmation: Must equal password (never stored)
    """

    email: str = Field(..., max_length=255)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=6, max_length=128)
    password_confirmation: str = Field(..., exclude=True)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip().lower()
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Email is not a valid address")
        return v

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_name_parts(cls, v: str) -> str:
        return _not_blank(v, "Name")

    @field_validator("password_confirmation")
    @classmethod
    def validate_confirmation(cls, v: str, info: ValidationInfo) -> str:
        password = info.data.get("password")
        if password is not None and v != password:
            raise ValueError("Password confirmation doesn't match password")
        return v

    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "jane@example.com",
                "first_name": "Jane",
                "last_name": "Doe",
                "password": "password",
                "password_confirmation": "password",
            }
        }
    }


class PostCreate(BaseModel):
    """Schema for creating a post."""

    name: str = Field(..., min_length=1, max_length=255)
    body: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _not_blank(v, "Name")


class ProjectCreate(BaseModel):
    """Schema for creating a project."""

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _not_blank(v, "Name")


class CourseCreate(BaseModel):
    """Schema for creating a course."""

    name: str = Field(..., min_length=1, max_length=255)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _not_blank(v, "Name")


class CourseLinkCreate(BaseModel):
    """Schema for creating a course link (the course is a relation)."""

    link: str = Field(..., min_length=1, max_length=500)

    @field_validator("link")
    @classmethod
    def validate_link(cls, v: str) -> str:
        return _not_blank(v, "Link")


class FishCreate(BaseModel):
    """Schema for creating a fish (the owner is a relation)."""

    name: str = Field(..., min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _not_blank(v, "Name")


class CommentCreate(BaseModel):
    """Schema for creating a comment (author and commentable are relations)."""

    body: str = Field(..., min_length=1)

    @field_validator("body")
    @classmethod
    def validate_body(cls, v: str) -> str:
        return _not_blank(v, "Body")

"""
Resource type enumeration.

Every record type the panel knows about. Association targets (including
the allowed types of polymorphic relations) are always one of these values,
so target resolution is an explicit lookup, never a runtime type inspection.
"""

import enum


class ResourceType(str, enum.Enum):
    """
    Closed set of panel resource types.

    The value is stored as-is in polymorphic type columns
    (e.g. comments.commentable_type = "post").
    """
    USER = "user"
    POST = "post"
    PROJECT = "project"
    COURSE = "course"
    COURSE_LINK = "course_link"
    FISH = "fish"
    COMMENT = "comment"

    @property
    def human_name(self) -> str:
        """Lowercase human name ("course link")."""
        return self.value.replace("_", " ")

    @property
    def display_name(self) -> str:
        """Capitalized name used in type selects ("Course link")."""
        return self.human_name.capitalize()

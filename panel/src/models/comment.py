"""
Comment model.

A comment belongs to its author and to a polymorphic "commentable"
record, either a Post or a Project.

Design Rationale:
- The polymorphic target is stored as a (type, id) pair without a foreign
  key, with a composite index for lookups of all comments on a record
- commentable_type holds the resource type value ("post", "project")
"""

from datetime import datetime
from typing import Optional, Union

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship, object_session

from panel.src.models import Base
from panel.src.models.mixins import GuidMixin
from panel.src.models.post import Post
from panel.src.models.project import Project


# Must list the same types as the commentable field in resources/registry.py.
COMMENTABLE_MODELS = {
    "post": Post,
    "project": Project,
}


class Comment(Base, GuidMixin):
    """
    Comment model.

    Attributes:
        id: Primary key (internal, never exposed)
        guid: GUID string property (cmt_xxx)
        body: Comment text, used as the display label
        user_id: Author (FK, nullable, SET NULL on delete)
        commentable_type: Target type of the polymorphic association
        commentable_id: Primary key of the target record
        created_at: Creation timestamp
    """

    __tablename__ = "comments"

    GUID_PREFIX = "cmt"

    id = Column(Integer, primary_key=True, autoincrement=True)
    body = Column(Text, nullable=False)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    commentable_type = Column(String(30), nullable=True)
    commentable_id = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="comments", lazy="joined")

    __table_args__ = (
        Index("idx_comments_commentable", "commentable_type", "commentable_id"),
    )

    @property
    def commentable(self) -> Optional[Union[Post, Project]]:
        """Load the record this comment is attached to."""
        if not self.commentable_type or self.commentable_id is None:
            return None
        model = COMMENTABLE_MODELS.get(self.commentable_type)
        session = object_session(self)
        if model is None or session is None:
            return None
        return session.get(model, self.commentable_id)

    @commentable.setter
    def commentable(self, record: Optional[Union[Post, Project]]) -> None:
        if record is None:
            self.commentable_type = None
            self.commentable_id = None
            return
        for type_name, model in COMMENTABLE_MODELS.items():
            if isinstance(record, model):
                self.commentable_type = type_name
                self.commentable_id = record.id
                return
        raise ValueError(f"{type(record).__name__} cannot be commented on")

    def __repr__(self) -> str:
        return (
            f"<Comment(id={self.id}, "
            f"commentable={self.commentable_type}:{self.commentable_id})>"
        )

    def __str__(self) -> str:
        return self.body

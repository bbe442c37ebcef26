"""
Comment schemas for request/response validation.
"""

from typing import Optional, Union
from datetime import datetime

from models import Comment as CommentModel
from schemas.base import CamelModel
from schemas.user import UserRef


class CommentCreate(CamelModel):
    """Request schema for adding a comment to a bug report."""
    bug_report: Optional[Union[int, str]] = None
    text: Optional[str] = None


class CommentSchema(CamelModel):
    """Response schema for a comment, author expanded."""
    id: int
    bug_report: int
    user: UserRef
    text: str
    created_at: datetime

    @classmethod
    def from_model(cls, comment: CommentModel) -> "CommentSchema":
        return cls(
            id=comment.comment_id,
            bug_report=comment.report_id,
            user=UserRef.from_model(comment.user),
            text=comment.text,
            created_at=comment.created_at,
        )

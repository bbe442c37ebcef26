"""
Comment Service - comments on bug reports.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload
from typing import Any, List
from fastapi import Depends
import logging

from models import Comment, Report, User
from schemas.comment import CommentCreate
from database import get_async_db
from exceptions import (
    ValidationError, ReportNotFoundError, CommentNotFoundError,
    AuthorizationError, ServerError, FieldError,
)
from utils.id_utils import parse_id

logger = logging.getLogger(__name__)


class CommentService:
    """Service for comment operations. Comments are immutable; only their author may delete them."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _commit(self, action: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise ServerError() from e

    async def _get_with_author(self, comment_id: int) -> Comment:
        result = await self.db.execute(
            select(Comment)
            .options(selectinload(Comment.user))
            .where(Comment.comment_id == comment_id)
            .execution_options(populate_existing=True)
        )
        comment = result.scalars().first()
        if not comment:
            raise CommentNotFoundError()
        return comment

    async def create(self, author: User, data: CommentCreate) -> Comment:
        """Add a comment by `author`. The report must exist."""
        errors: List[FieldError] = []
        if data.bug_report is None or (isinstance(data.bug_report, str) and not data.bug_report.strip()):
            errors.append({"field": "bugReport", "msg": "Bug report ID is required"})
        if data.text is None or not data.text.strip():
            errors.append({"field": "text", "msg": "Text is required"})
        if errors:
            raise ValidationError(errors=errors)

        report_id = parse_id(data.bug_report)
        if report_id is None:
            raise ReportNotFoundError()
        result = await self.db.execute(select(Report.report_id).where(Report.report_id == report_id))
        if result.scalar() is None:
            logger.info(f"Comment rejected: report {report_id} does not exist")
            raise ReportNotFoundError()

        comment = Comment(report_id=report_id, user_id=author.user_id, text=data.text)
        self.db.add(comment)
        await self._commit(f"add comment to report {report_id}")

        logger.info(f"User {author.user_id} commented on report {report_id} (comment {comment.comment_id})")
        return await self._get_with_author(comment.comment_id)

    async def list_for_report(self, report_id: Any) -> List[Comment]:
        """Comments on a report, newest first. Unknown or malformed ids give an empty list."""
        parsed = parse_id(report_id)
        if parsed is None:
            return []

        result = await self.db.execute(
            select(Comment)
            .options(selectinload(Comment.user))
            .where(Comment.report_id == parsed)
            .order_by(Comment.created_at.desc(), Comment.comment_id.desc())
        )
        return list(result.scalars().all())

    async def delete(self, comment_id: Any, requester: User) -> bool:
        """Delete a comment. Only its author may do so."""
        parsed = parse_id(comment_id)
        if parsed is None:
            raise CommentNotFoundError()

        result = await self.db.execute(select(Comment).where(Comment.comment_id == parsed))
        comment = result.scalars().first()
        if not comment:
            raise CommentNotFoundError()

        if comment.user_id != requester.user_id:
            logger.warning(f"User {requester.user_id} tried to delete comment {parsed} owned by {comment.user_id}")
            raise AuthorizationError()

        await self.db.delete(comment)
        await self._commit(f"delete comment {parsed}")
        logger.info(f"Deleted comment {parsed}")
        return True


async def get_comment_service(db: AsyncSession = Depends(get_async_db)) -> CommentService:
    """Dependency injection provider."""
    return CommentService(db)

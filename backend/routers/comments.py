"""
Comments API endpoints for discussion on bug reports.
"""

from fastapi import APIRouter, Depends
from typing import List
import logging

from models import User
from services import auth_service
from services.comment_service import CommentService, get_comment_service
from schemas.comment import CommentCreate, CommentSchema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/comments", tags=["comments"])


@router.post(
    "",
    response_model=CommentSchema,
    summary="Add a comment to a bug report"
)
async def create_comment(
    data: CommentCreate,
    current_user: User = Depends(auth_service.validate_token),
    comment_service: CommentService = Depends(get_comment_service)
):
    """
    Add a comment as the current user.

    - **bugReport**: id of the report being discussed (404 if it doesn't exist)
    - **text**: the comment body
    """
    comment = await comment_service.create(current_user, data)
    return CommentSchema.from_model(comment)


@router.get(
    "/bug-report/{report_id}",
    response_model=List[CommentSchema],
    summary="Get comments for a bug report"
)
async def list_comments(
    report_id: str,
    current_user: User = Depends(auth_service.validate_token),
    comment_service: CommentService = Depends(get_comment_service)
):
    """Comments on a report, newest first, each with its author expanded."""
    comments = await comment_service.list_for_report(report_id)
    return [CommentSchema.from_model(c) for c in comments]


@router.delete(
    "/{comment_id}",
    summary="Delete one of your comments"
)
async def delete_comment(
    comment_id: str,
    current_user: User = Depends(auth_service.validate_token),
    comment_service: CommentService = Depends(get_comment_service)
):
    """Delete a comment. Returns 401 if the current user didn't write it."""
    await comment_service.delete(comment_id, current_user)
    return {"detail": "Comment removed"}

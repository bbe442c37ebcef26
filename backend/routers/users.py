"""
User listing endpoint, used by the assignment form to pick a team member.
"""

from fastapi import APIRouter, Depends
from typing import List
import logging

from models import User
from schemas.user import UserRef
from services import auth_service
from services.user_service import UserService, get_user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get(
    "",
    response_model=List[UserRef],
    summary="List users"
)
async def list_users(
    current_user: User = Depends(auth_service.validate_token),
    user_service: UserService = Depends(get_user_service)
):
    """List every user as {id, name, email, role}."""
    users = await user_service.list_users()
    return [UserRef.from_model(u) for u in users]

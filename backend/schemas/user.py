"""
User schemas

Core user types. Request schemas (UserCreate, LoginRequest) are in the routers.

Section order:
  1. User Types
  2. Auth Types
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from models import UserRole, User as UserModel
from schemas.base import CamelModel


# ============================================================================
# USER TYPES
# ============================================================================


class UserRef(CamelModel):
    """
    Expanded user reference.

    This is the shape a user foreign key takes when a report's assignedUser
    or a comment's user is populated.
    """
    id: int
    name: str
    email: str
    role: UserRole

    @classmethod
    def from_model(cls, user: UserModel) -> "UserRef":
        return cls(id=user.user_id, name=user.name, email=user.email, role=user.role)


class User(UserRef):
    """Full user profile as returned by the auth endpoints."""
    created_at: Optional[datetime] = Field(None, description="Registration timestamp")

    @classmethod
    def from_model(cls, user: UserModel) -> "User":
        return cls(
            id=user.user_id,
            name=user.name,
            email=user.email,
            role=user.role,
            created_at=user.created_at,
        )


# ============================================================================
# AUTH TYPES
# ============================================================================


class Token(BaseModel):
    """Authentication response with JWT token and the authenticated profile."""
    access_token: str = Field(description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user: User = Field(description="Authenticated user's profile")

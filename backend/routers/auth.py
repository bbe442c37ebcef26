from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel, EmailStr, Field
import logging

from database import get_async_db
from models import User, UserRole
from schemas.user import Token, User as UserSchema

from services import auth_service

logger = logging.getLogger(__name__)

# Re-export validate_token as get_current_user for convenient importing by other routers
# Usage: from routers.auth import get_current_user
get_current_user = auth_service.validate_token


# ============== Request Schemas ==============

class UserCreate(BaseModel):
    """Request schema for user registration."""
    name: str = Field(min_length=1, max_length=255, description="Display name")
    email: EmailStr = Field(description="User's email address")
    password: str = Field(
        min_length=5,
        description="User's password"
    )
    role: UserRole = Field(default=UserRole.DEVELOPER, description="Team role")


class LoginRequest(BaseModel):
    """Request schema for login."""
    email: EmailStr = Field(description="User's email address")
    password: str = Field(min_length=1, description="User's password")


router = APIRouter()


@router.post(
    "/register",
    response_model=Token,
    summary="Register a new user and automatically log them in"
)
async def register(user: UserCreate, db: AsyncSession = Depends(get_async_db)):
    """
    Register a new user and automatically log them in with:
    - **name**: display name
    - **email**: valid email address, must be unused
    - **password**: string
    - **role**: developer | tester | manager | admin (defaults to developer)

    Returns the JWT token and the new user's profile, same as the login endpoint.
    """
    return await auth_service.register_and_login_user(
        db, user.name, user.email, user.password, user.role
    )


@router.post(
    "/login",
    response_model=Token,
    summary="Login to get JWT token",
    responses={
        200: {
            "content": {
                "application/json": {
                    "example": {
                        "access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
                        "token_type": "bearer",
                        "user": {"id": 1, "name": "Jane Doe", "email": "jane@example.com", "role": "developer"}
                    }
                }
            }
        },
        401: {
            "description": "Invalid credentials"
        }
    }
)
async def login(credentials: LoginRequest, db: AsyncSession = Depends(get_async_db)):
    """
    Login with email and password to get a JWT token.

    Returns:
    - **access_token**: JWT token to send as `Authorization: Bearer <token>`
    - **token_type**: "bearer"
    - **user**: the authenticated user's profile
    """
    return await auth_service.login_user(db, credentials.email, credentials.password)


@router.get(
    "/user",
    response_model=UserSchema,
    summary="Get the user the token belongs to"
)
async def get_user(current_user: User = Depends(get_current_user)):
    """Return the authenticated user's profile."""
    return UserSchema.from_model(current_user)

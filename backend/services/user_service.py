"""
User Service - Single source of truth for user records.

This service owns:
- User creation (registration)
- User lookups by id and email
- Credential verification
- Listing users for assignment

Authentication (tokens, password hashing policy) is handled by auth_service.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from typing import Optional, List
from fastapi import Depends
from passlib.context import CryptContext
import logging

from models import User as UserModel, UserRole
from database import get_async_db
from exceptions import ValidationError, ServerError

logger = logging.getLogger(__name__)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class UserService:
    """Service for user management operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_id(self, user_id: int) -> Optional[UserModel]:
        """Get user by ID. Returns None if not found."""
        result = await self.db.execute(
            select(UserModel).where(UserModel.user_id == user_id)
        )
        return result.scalars().first()

    async def get_user_by_email(self, email: str) -> Optional[UserModel]:
        """Get user by email (case-insensitive match on the stored lowercase form)."""
        result = await self.db.execute(
            select(UserModel).where(UserModel.email == email.lower())
        )
        return result.scalars().first()

    async def list_users(self) -> List[UserModel]:
        """List every user, ordered by name, for the assignment picker."""
        result = await self.db.execute(
            select(UserModel).order_by(UserModel.name, UserModel.user_id)
        )
        return list(result.scalars().all())

    async def create_user(
        self,
        name: str,
        email: str,
        password: str,
        role: UserRole = UserRole.DEVELOPER,
    ) -> UserModel:
        """Create a new user. Email must be unused."""
        existing = await self.get_user_by_email(email)
        if existing:
            raise ValidationError(errors=[{"field": "email", "msg": "User already exists"}])

        user = UserModel(
            name=name.strip(),
            email=email.lower(),
            password=pwd_context.hash(password),
            role=role,
        )

        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as e:
            # Lost a race with another registration for the same email
            await self.db.rollback()
            logger.info(f"Duplicate registration for {email}: {e.orig}")
            raise ValidationError(errors=[{"field": "email", "msg": "User already exists"}]) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to create user {email}: {e}")
            raise ServerError() from e
        await self.db.refresh(user)

        logger.info(f"Created user: {user.email} (id={user.user_id}, role={user.role.value})")
        return user

    async def verify_credentials(self, email: str, password: str) -> Optional[UserModel]:
        """Return the user if the password matches, else None."""
        user = await self.get_user_by_email(email)
        if not user:
            return None

        if not pwd_context.verify(password, user.password):
            return None

        return user


# Dependency injection provider for async user service
async def get_user_service(
    db: AsyncSession = Depends(get_async_db)
) -> UserService:
    """Get a UserService instance with async database session."""
    return UserService(db)

"""
Auth Service - Authentication and token management.

This service owns:
- JWT token creation and validation
- Login/registration flows
- Sliding token refresh (X-New-Token)

User records are handled by user_service.
"""

from datetime import datetime, timedelta
from typing import Optional, TypedDict
from jose import JWTError, ExpiredSignatureError, jwt
from fastapi import Depends, Security, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from models import User, UserRole
from schemas.user import Token, User as UserSchema
from services.user_service import UserService
from config.settings import settings
from database import get_async_db
from exceptions import AuthenticationError
import logging
import time

SECRET_KEY = settings.JWT_SECRET_KEY
ALGORITHM = settings.ALGORITHM
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES
# Refresh token when this percentage of lifetime has passed (e.g., 0.8 = 80%)
TOKEN_REFRESH_THRESHOLD = 0.8
logger = logging.getLogger(__name__)

# auto_error=False so a missing header is a 401 like every other auth failure
security = HTTPBearer(auto_error=False)


class TokenPayload(TypedDict, total=False):
    """Strongly-typed JWT token payload."""
    sub: str          # Subject (email)
    user_id: int      # User ID
    role: str         # User role value
    iat: int          # Issued-at timestamp (added automatically)
    exp: datetime     # Expiration (added automatically)


def create_access_token(data: TokenPayload, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Token payload data
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    to_encode: dict = dict(data)

    # time.time() gives a true UTC timestamp for iat
    if "iat" not in to_encode:
        to_encode["iat"] = int(time.time())

    lifetime = expires_delta if expires_delta is not None else timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode["exp"] = int(to_encode["iat"] + lifetime.total_seconds())
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    logger.info(f"Created access token for user_id={data.get('user_id')}")
    return encoded_jwt


def _token_payload_for(user: User) -> TokenPayload:
    return {
        "sub": user.email,
        "user_id": user.user_id,
        "role": user.role.value,
    }


def _create_token_for_user(user: User) -> Token:
    """Create a Token response for an authenticated user."""
    access_token = create_access_token(data=_token_payload_for(user))
    return Token(
        access_token=access_token,
        token_type="bearer",
        user=UserSchema.from_model(user),
    )


async def login_user(db: AsyncSession, email: str, password: str) -> Token:
    """
    Authenticate user and return JWT token.

    Raises:
        AuthenticationError: 401 if credentials are invalid
    """
    logger.info(f"Login attempt for: {email}")

    user_service = UserService(db)
    user = await user_service.verify_credentials(email, password)

    if not user:
        logger.warning(f"Failed login attempt for: {email}")
        raise AuthenticationError("Invalid credentials")

    logger.info(f"Successful login for: {email}")
    return _create_token_for_user(user)


async def register_and_login_user(
    db: AsyncSession,
    name: str,
    email: str,
    password: str,
    role: UserRole = UserRole.DEVELOPER,
) -> Token:
    """
    Register a new user and automatically log them in.

    Raises:
        ValidationError: If email already exists
    """
    logger.info(f"Registering new user: {email}")

    user_service = UserService(db)
    user = await user_service.create_user(name=name, email=email, password=password, role=role)

    logger.info(f"Successfully registered user: {email}")
    return _create_token_for_user(user)


def _needs_refresh(payload: dict, current_time: int) -> bool:
    """True once TOKEN_REFRESH_THRESHOLD of the token's lifetime has elapsed."""
    exp_timestamp = payload.get('exp')
    if not exp_timestamp:
        return False

    iat_timestamp = payload.get('iat')
    if iat_timestamp:
        total_lifetime = exp_timestamp - iat_timestamp
        if total_lifetime <= 0:
            return False
        return (current_time - iat_timestamp) / total_lifetime >= TOKEN_REFRESH_THRESHOLD

    # No iat claim - refresh when less than (1 - threshold) of the default lifetime remains
    threshold_seconds = ACCESS_TOKEN_EXPIRE_MINUTES * 60 * (1 - TOKEN_REFRESH_THRESHOLD)
    return exp_timestamp - current_time < threshold_seconds


async def validate_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    db: AsyncSession = Depends(get_async_db)
) -> User:
    """
    Validate JWT token and return user.

    This is used as a dependency in routers: Depends(auth_service.validate_token)

    If the token is valid but past the refresh threshold (80% of lifetime),
    a new token is generated and stored in request.state.new_token for
    the middleware to return in the X-New-Token response header.

    Raises:
        AuthenticationError: 401 if the token is missing, invalid, expired, or
        names a user that no longer exists
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("No token, authorization denied")

    t_start = time.perf_counter()
    try:
        payload = jwt.decode(credentials.credentials, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        logger.info("Token expired")
        raise AuthenticationError("Token expired")
    except JWTError as e:
        logger.error(f"JWT validation error: {str(e)}")
        raise AuthenticationError("Token is not valid")

    user_id = payload.get("user_id")
    if user_id is None:
        logger.error("Token missing user_id claim")
        raise AuthenticationError("Invalid token payload")

    user_service = UserService(db)
    user = await user_service.get_user_by_id(user_id)
    if user is None:
        logger.error(f"Token user not found: {user_id}")
        raise AuthenticationError("User not found")

    if _needs_refresh(payload, int(time.time())):
        # Re-issue from current DB state
        request.state.new_token = create_access_token(data=_token_payload_for(user))
        logger.debug(f"Generated refresh token for {user.email}")

    logger.debug(f"validate_token - user_id={user_id}, total={time.perf_counter() - t_start:.3f}s")
    return user

"""
API dependencies for FastAPI dependency injection.

Provides common dependencies like database sessions, stores and authentication.
"""
from typing import Optional
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jwt.exceptions import InvalidTokenError
from sqlalchemy.orm import Session

from pgfinder.api.middleware.error_handler import ForbiddenException, UnauthorizedException
from pgfinder.lib.db import get_db as get_db_session
from pgfinder.lib.jwt import verify_token
from pgfinder.models.users import User, UserRole, UserStatus
from pgfinder.services.listing_store import ListingStore
from pgfinder.services.review_store import ReviewStore


# Re-export get_db for convenience
get_db = get_db_session


# HTTP Bearer token security scheme; missing credentials are reported by us
security = HTTPBearer(auto_error=False)


def get_listing_store(db: Session = Depends(get_db)) -> ListingStore:
    return ListingStore(db)


def get_review_store(db: Session = Depends(get_db)) -> ReviewStore:
    return ReviewStore(db)


def _user_from_token(token: str, db: Session) -> User:
    try:
        payload = verify_token(token)
    except InvalidTokenError:
        raise UnauthorizedException("Not authorized, token failed")

    user_id = payload.get("sub")  # JWT standard: user_id in 'sub' claim
    try:
        user = db.get(User, UUID(str(user_id)))
    except ValueError:
        raise UnauthorizedException("Invalid authentication token")

    if user is None:
        raise UnauthorizedException("User not found")
    if user.status != UserStatus.ACTIVE:
        raise ForbiddenException("Account is not active")
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Dependency to get current authenticated user from JWT token.

    Raises:
        UnauthorizedException: 401 if token missing, invalid or user not found
    """
    if credentials is None:
        raise UnauthorizedException("Not authorized, no token")
    return _user_from_token(credentials.credentials, db)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """
    Dependency to get current user if authenticated, None otherwise.

    A presented but invalid token is still an error.
    """
    if credentials is None:
        return None
    return _user_from_token(credentials.credentials, db)


def require_role(*roles: UserRole):
    """Dependency factory restricting a route to the given roles."""

    def role_dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise ForbiddenException(
                f"{' or '.join(role.value.capitalize() for role in roles)} access required"
            )
        return current_user

    return role_dependency

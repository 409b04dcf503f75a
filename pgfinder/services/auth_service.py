"""Authentication service for email/password login.

Handles the authentication flow:
1. Register: create a user with a hashed password
2. Login: check the password and issue a JWT token
"""
from datetime import datetime, timezone
from typing import Optional

from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from pgfinder.api.middleware.error_handler import (
    ConflictException,
    ForbiddenException,
    UnauthorizedException,
)
from pgfinder.lib.jwt import create_access_token
from pgfinder.lib.logging import get_logger
from pgfinder.models.users import User, UserRole, UserStatus

logger = get_logger(__name__)


pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def issue_token(user: User) -> str:
    return create_access_token(user_id=str(user.id), role=user.role.value)


class AuthService:
    """Authentication service for password login.

    Emails are stored lowercased and are unique.
    """

    def __init__(self, session: Session):
        """Initialize auth service with database session.

        Args:
            session: SQLAlchemy session for database operations
        """
        self.session = session

    def find_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == email.strip().lower())
        return self.session.scalars(stmt).first()

    def register(
        self,
        name: str,
        email: str,
        password: str,
        phone: str = "",
        role: UserRole = UserRole.USER,
    ) -> User:
        """Create a new user.

        Raises:
            ConflictException: email already registered
        """
        email = email.strip().lower()
        if self.find_by_email(email) is not None:
            raise ConflictException("User already exists", details={"email": email})

        user = User(
            name=name.strip(),
            email=email,
            password_hash=hash_password(password),
            phone=phone,
            role=role,
            status=UserStatus.ACTIVE,
        )
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError:
            # Lost a race against a concurrent registration
            self.session.rollback()
            raise ConflictException("User already exists", details={"email": email})
        self.session.refresh(user)

        logger.info("User registered", extra={"user_id": str(user.id), "role": user.role.value})
        return user

    def login(self, email: str, password: str) -> User:
        """Check credentials and record the login time.

        Raises:
            UnauthorizedException: unknown email or wrong password
            ForbiddenException: account not active
        """
        user = self.find_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Failed login attempt", extra={"email": email.strip().lower()})
            raise UnauthorizedException("Invalid email or password")
        if user.status != UserStatus.ACTIVE:
            raise ForbiddenException("Account is not active")

        user.last_login_at = datetime.now(timezone.utc)
        self.session.commit()
        self.session.refresh(user)
        return user

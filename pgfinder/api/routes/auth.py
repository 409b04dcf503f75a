"""Authentication routes.

Provides password-based authentication endpoints:
- POST /api/auth/register: Create an account and get a JWT token
- POST /api/auth/login: Check credentials and get a JWT token
- GET /api/auth/profile: Current user
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import Field, field_validator
from sqlalchemy.orm import Session

from pgfinder.api.dependencies import get_current_user, get_db
from pgfinder.api.schemas import CamelModel, DataResponse
from pgfinder.models.users import User, UserRole, UserStatus
from pgfinder.services.auth_service import AuthService, issue_token


router = APIRouter(prefix="/api/auth", tags=["Authentication"])


# Request/Response Models
class RegisterRequest(CamelModel):
    """Register payload; admins are never self-registered."""
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., max_length=255, examples=["user@example.com"])
    password: str = Field(..., min_length=6, max_length=128)
    phone: str = Field("", max_length=20)
    role: UserRole = UserRole.USER

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        value = value.strip().lower()
        local, _, domain = value.partition("@")
        if not local or "." not in domain:
            raise ValueError("Invalid email address")
        return value

    @field_validator("role")
    @classmethod
    def check_role(cls, value: UserRole) -> UserRole:
        if value == UserRole.ADMIN:
            raise ValueError("Cannot register as admin")
        return value


class LoginRequest(CamelModel):
    email: str
    password: str


class UserResponse(CamelModel):
    id: UUID
    name: str
    email: str
    phone: str
    role: UserRole
    status: UserStatus
    last_login_at: Optional[datetime] = None
    created_at: datetime


class TokenResponse(UserResponse):
    """User information plus a JWT access token."""
    token: str


# Dependency to get AuthService
def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    """Get AuthService instance with database session."""
    return AuthService(db)


def _with_token(user: User) -> TokenResponse:
    return TokenResponse(
        **UserResponse.model_validate(user).model_dump(),
        token=issue_token(user),
    )


# Routes
@router.post(
    "/register",
    response_model=DataResponse[TokenResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Register",
)
def register(
    request: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Create an account.

    Raises:
        409: Email already registered
        422: Invalid payload
    """
    user = auth_service.register(
        name=request.name,
        email=request.email,
        password=request.password,
        phone=request.phone,
        role=request.role,
    )
    return DataResponse[TokenResponse](data=_with_token(user), message="User registered successfully")


@router.post("/login", response_model=DataResponse[TokenResponse], summary="Login")
def login(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Check credentials and issue a JWT token.

    Raises:
        401: Invalid email or password
        403: Account not active
    """
    user = auth_service.login(request.email, request.password)
    return DataResponse[TokenResponse](data=_with_token(user), message="Login successful")


@router.get("/profile", response_model=DataResponse[UserResponse], summary="Current user")
def profile(current_user: User = Depends(get_current_user)):
    return DataResponse[UserResponse](data=UserResponse.model_validate(current_user))

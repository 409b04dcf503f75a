"""
Shared fixtures.

Tests run against an in-memory SQLite database; the environment is set
before any pgfinder module reads settings.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STORE_RETRY_ATTEMPTS"] = "1"
os.environ["STORE_RETRY_WAIT_SECONDS"] = "0"
os.environ["JWT_SECRET"] = "test-secret"

from typing import Callable, Dict  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import pgfinder.models  # noqa: E402,F401
from pgfinder.api.app import app  # noqa: E402
from pgfinder.lib.db import SessionLocal, drop_db, init_db  # noqa: E402
from pgfinder.models.listings import Listing  # noqa: E402
from pgfinder.models.users import User, UserRole  # noqa: E402
from pgfinder.services.auth_service import hash_password, issue_token  # noqa: E402
from pgfinder.services.listing_service import ListingCreate, ListingService  # noqa: E402
from pgfinder.services.listing_store import ListingStore  # noqa: E402


@pytest.fixture(autouse=True)
def database():
    """Fresh tables for every test."""
    init_db()
    yield
    drop_db()


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(db_session) -> Callable[..., User]:
    counter = {"n": 0}

    def _make_user(role: UserRole = UserRole.USER, **overrides) -> User:
        counter["n"] += 1
        values = {
            "name": f"{role.value.title()} {counter['n']}",
            "email": f"{role.value}{counter['n']}@example.com",
            "password_hash": hash_password("secret123"),
            "phone": "9876500000",
            "role": role,
        }
        values.update(overrides)
        user = User(**values)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def admin(make_user) -> User:
    return make_user(UserRole.ADMIN)


@pytest.fixture
def owner(make_user) -> User:
    return make_user(UserRole.OWNER)


@pytest.fixture
def renter(make_user) -> User:
    return make_user(UserRole.USER)


def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {issue_token(user)}"}


@pytest.fixture
def headers_for() -> Callable[[User], Dict[str, str]]:
    return auth_headers


@pytest.fixture
def admin_headers(admin) -> Dict[str, str]:
    return auth_headers(admin)


@pytest.fixture
def owner_headers(owner) -> Dict[str, str]:
    return auth_headers(owner)


@pytest.fixture
def renter_headers(renter) -> Dict[str, str]:
    return auth_headers(renter)


@pytest.fixture
def make_listing(db_session, admin) -> Callable[..., Listing]:
    """Create listings through the service; published unless told otherwise."""

    def _make_listing(name: str = "Test PG", price: float = 8000, **overrides) -> Listing:
        overrides.setdefault("published", True)
        payload = ListingCreate(name=name, price=price, **overrides)
        return ListingService(ListingStore(db_session)).create(payload, admin)

    return _make_listing

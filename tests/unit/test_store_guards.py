"""Tests for the store read/write guards."""
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from pgfinder.api.middleware.error_handler import ServiceUnavailableException
from pgfinder.lib.settings import settings
from pgfinder.lib.store import store_read, store_write


def _lost_connection():
    return OperationalError("SELECT 1", {}, Exception("connection refused"))


class FlakyStore:
    """Fails the first `failures` calls with a lost connection."""

    def __init__(self, failures: int):
        self.session = MagicMock()
        self.failures = failures
        self.calls = 0

    @store_read
    def read(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise _lost_connection()
        return "row"

    @store_write
    def write(self):
        self.calls += 1
        raise _lost_connection()

    @store_write
    def write_conflict(self):
        raise IntegrityError("INSERT", {}, Exception("duplicate key"))


@pytest.fixture
def three_attempts(monkeypatch):
    monkeypatch.setattr(settings, "store_retry_attempts", 3)
    monkeypatch.setattr(settings, "store_retry_wait_seconds", 0)


@pytest.mark.unit
def test_read_recovers_after_transient_failures(three_attempts):
    store = FlakyStore(failures=2)

    assert store.read() == "row"
    assert store.calls == 3
    assert store.session.rollback.call_count == 2


@pytest.mark.unit
def test_read_reports_unavailable_after_last_attempt(three_attempts):
    store = FlakyStore(failures=10)

    with pytest.raises(ServiceUnavailableException) as exc_info:
        store.read()

    assert store.calls == 3
    assert exc_info.value.status_code == 503
    assert exc_info.value.details == {"operation": "read"}


@pytest.mark.unit
def test_write_is_not_retried(three_attempts):
    store = FlakyStore(failures=0)

    with pytest.raises(ServiceUnavailableException):
        store.write()

    assert store.calls == 1
    store.session.rollback.assert_called_once()


@pytest.mark.unit
def test_other_database_errors_pass_through():
    with pytest.raises(IntegrityError):
        FlakyStore(failures=0).write_conflict()

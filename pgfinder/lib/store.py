"""
Store call guards.

Reads are retried on transient connectivity errors; both reads and writes
report a lost database as ServiceUnavailableException so callers can tell
"unreachable" apart from "not found".
"""
from functools import wraps

from sqlalchemy.exc import OperationalError
from tenacity import Retrying, stop_after_attempt, wait_exponential, retry_if_exception_type

from pgfinder.api.middleware.error_handler import ServiceUnavailableException
from pgfinder.lib.logging import get_logger
from pgfinder.lib.settings import settings

logger = get_logger(__name__)


def _unavailable(store, func, exc: OperationalError) -> ServiceUnavailableException:
    store.session.rollback()
    logger.error(
        f"{type(store).__name__}.{func.__name__} failed: store unavailable",
        extra={"error": str(exc.orig)},
    )
    return ServiceUnavailableException(details={"operation": func.__name__})


def store_read(func):
    """Retry a read a bounded number of times, then report the store unavailable."""

    @wraps(func)
    def wrapper(self, *args, **kwargs):
        retrying = Retrying(
            stop=stop_after_attempt(settings.store_retry_attempts),
            wait=wait_exponential(multiplier=settings.store_retry_wait_seconds, max=5),
            retry=retry_if_exception_type(OperationalError),
            before_sleep=lambda _state: self.session.rollback(),
            reraise=True,
        )
        try:
            return retrying(func, self, *args, **kwargs)
        except OperationalError as exc:
            raise _unavailable(self, func, exc) from exc

    return wrapper


def store_write(func):
    """Report a lost store on writes; writes are not retried."""

    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except OperationalError as exc:
            raise _unavailable(self, func, exc) from exc

    return wrapper

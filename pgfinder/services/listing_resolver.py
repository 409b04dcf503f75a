"""Listing resolver.

Maps one free-form path parameter to a single listing by trying
progressively looser interpretations, stopping at the first hit:

1. ID        - primary key lookup, only when the input is shaped like an id
2. SLUG      - exact slug match
3. NAME      - anchored, case-insensitive name match; spaces and hyphens
               are interchangeable at word boundaries
4. SUBSTRING - case-insensitive substring of name, address, city or
               locality (or id equality), first listing in creation order
"""
import enum
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple
from uuid import UUID

from pgfinder.api.middleware.error_handler import BadRequestException, NotFoundException
from pgfinder.lib.logging import get_logger
from pgfinder.lib.settings import settings
from pgfinder.models.listings import Listing
from pgfinder.services.listing_store import ListingStore

logger = get_logger(__name__)


# 32 hex digits, canonical hyphens optional
_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-?[0-9a-f]{4}-?[0-9a-f]{4}-?[0-9a-f]{4}-?[0-9a-f]{12}$",
    re.IGNORECASE,
)
_WORD_SEPARATOR = re.compile(r"[\s-]+")
_PLACEHOLDER_INPUTS = {"undefined", "null"}


class ResolutionStrategy(str, enum.Enum):
    ID = "id"
    SLUG = "slug"
    NAME = "name"
    SUBSTRING = "substring"


@dataclass(frozen=True)
class Resolution:
    """A resolved listing and the strategy that found it."""
    listing: Listing
    strategy: ResolutionStrategy


def parse_listing_id(value: str) -> Optional[UUID]:
    """Return the UUID for an id-shaped string, None for anything else."""
    if not _ID_PATTERN.match(value):
        return None
    return UUID(value)


def normalize_name(value: str) -> str:
    """Lowercase a name and collapse space/hyphen runs into single spaces."""
    words = [word for word in _WORD_SEPARATOR.split(value.strip()) if word]
    return " ".join(words).lower()


class ListingResolver:
    """
    Resolve an identifier to exactly one listing.

    ID and SLUG lookups see every listing. NAME and SUBSTRING only see
    published listings unless include_unpublished is set.
    """

    def __init__(self, store: ListingStore, include_unpublished: bool = False):
        self.store = store
        self.published_only = not include_unpublished
        self._strategies: List[Tuple[ResolutionStrategy, Callable[[str], Optional[Listing]]]] = [
            (ResolutionStrategy.ID, self._by_id),
            (ResolutionStrategy.SLUG, self._by_slug),
            (ResolutionStrategy.NAME, self._by_name),
            (ResolutionStrategy.SUBSTRING, self._by_substring),
        ]

    def resolve(self, identifier: Optional[str]) -> Resolution:
        """
        Resolve identifier using the strategies in order.

        Raises:
            BadRequestException: empty or placeholder identifier
            NotFoundException: no strategy matched
            ServiceUnavailableException: listing store unreachable
        """
        value = (identifier or "").strip()
        if not value or value.lower() in _PLACEHOLDER_INPUTS:
            raise BadRequestException(
                "Invalid listing identifier",
                details={"identifier": identifier},
            )

        for strategy, attempt in self._strategies:
            listing = attempt(value)
            if listing is not None:
                logger.debug(
                    "Listing resolved",
                    extra={"identifier": value, "strategy": strategy.value, "listing_id": str(listing.id)},
                )
                return Resolution(listing=listing, strategy=strategy)

        sample = self.store.sample_ids(settings.not_found_sample_size, published_only=self.published_only)
        logger.info("Listing not resolved", extra={"identifier": value})
        raise NotFoundException(
            "Listing",
            value,
            details={"sample_ids": sample},
        )

    def _by_id(self, value: str) -> Optional[Listing]:
        listing_id = parse_listing_id(value)
        if listing_id is None:
            return None
        return self.store.get(listing_id)

    def _by_slug(self, value: str) -> Optional[Listing]:
        return self.store.find_by_slug(value)

    def _by_name(self, value: str) -> Optional[Listing]:
        normalized = normalize_name(value)
        if not normalized:
            return None
        return self.store.find_by_normalized_name(normalized, published_only=self.published_only)

    def _by_substring(self, value: str) -> Optional[Listing]:
        return self.store.find_first_containing(
            value,
            parse_listing_id(value),
            published_only=self.published_only,
        )

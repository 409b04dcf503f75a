"""Rating aggregator.

Recomputes a listing's rating and review count from every review that
references it. This is a full recomputation, not an incremental update:
each call reads the current review set, so racing calls converge on the
next mutation. Cost is one aggregate scan per call.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from uuid import UUID

from pgfinder.lib.logging import get_logger
from pgfinder.services.listing_store import ListingStore
from pgfinder.services.review_store import ReviewStore

logger = get_logger(__name__)

_ONE_DECIMAL = Decimal("0.1")


@dataclass(frozen=True)
class RatingSummary:
    rating: float
    review_count: int


def round_rating(average) -> float:
    """Round half-up to one decimal place (4.25 -> 4.3)."""
    return float(Decimal(str(average)).quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


class RatingAggregator:
    """Keeps listing.rating / listing.review_count in step with reviews."""

    def __init__(self, listings: ListingStore, reviews: ReviewStore):
        self.listings = listings
        self.reviews = reviews

    def recompute(self, listing_id: UUID) -> RatingSummary:
        average, count = self.reviews.rating_stats(listing_id)

        if count > 0:
            summary = RatingSummary(rating=round_rating(average), review_count=count)
        else:
            summary = RatingSummary(rating=0.0, review_count=0)

        self.listings.set_rating(listing_id, summary.rating, summary.review_count)

        logger.info(
            "Listing rating recomputed",
            extra={
                "listing_id": str(listing_id),
                "rating": summary.rating,
                "review_count": summary.review_count,
            },
        )
        return summary

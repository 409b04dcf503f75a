"""Review service.

Every create, update and delete is committed first and then followed by a
rating recomputation for the affected listing. A failed recomputation is
logged and leaves the cached rating stale; it never fails the mutation.
"""
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from pgfinder.api.middleware.error_handler import (
    AppException,
    BadRequestException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
)
from pgfinder.lib.logging import get_logger
from pgfinder.models.listings import Listing
from pgfinder.models.reviews import Review, ReviewReply
from pgfinder.models.users import User, UserRole
from pgfinder.services.listing_query import Pagination
from pgfinder.services.listing_store import ListingStore
from pgfinder.services.rating_aggregator import RatingAggregator, RatingSummary
from pgfinder.services.review_store import ReviewStore

logger = get_logger(__name__)


REVIEW_SORTS = {
    "recent": (Review.created_at.desc(), Review.id.desc()),
    "helpful": (Review.likes.desc(), Review.created_at.desc(), Review.id.desc()),
    "rating": (Review.rating.desc(), Review.created_at.desc(), Review.id.desc()),
}


class ReviewService:
    """Review mutations with rating recomputation."""

    def __init__(self, listings: ListingStore, reviews: ReviewStore):
        self.listings = listings
        self.reviews = reviews
        self.aggregator = RatingAggregator(listings, reviews)

    def get(self, review_id: UUID) -> Review:
        review = self.reviews.get(review_id)
        if review is None:
            raise NotFoundException("Review", str(review_id))
        return review

    def _listing(self, listing_id: UUID) -> Listing:
        listing = self.listings.get(listing_id)
        if listing is None:
            raise NotFoundException("Listing", str(listing_id))
        return listing

    def create(self, user: User, listing_id: UUID, rating: int, title: str, comment: str) -> Review:
        """
        Raises:
            NotFoundException: listing does not exist
            ConflictException: user already reviewed this listing
        """
        self._listing(listing_id)

        if self.reviews.find_by_user_and_listing(user.id, listing_id) is not None:
            raise ConflictException(
                "You have already reviewed this listing",
                details={"listing_id": str(listing_id)},
            )

        review = Review(
            user_id=user.id,
            listing_id=listing_id,
            rating=rating,
            title=title,
            comment=comment,
        )
        try:
            review = self.reviews.add(review)
        except IntegrityError:
            # Unique (user, listing) constraint caught a concurrent duplicate
            self.reviews.session.rollback()
            raise ConflictException(
                "You have already reviewed this listing",
                details={"listing_id": str(listing_id)},
            )

        logger.info(
            "Review created",
            extra={"review_id": str(review.id), "listing_id": str(listing_id), "rating": rating},
        )
        self.refresh_rating(listing_id)
        return review

    def update(
        self,
        review: Review,
        user: User,
        rating: Optional[int] = None,
        title: Optional[str] = None,
        comment: Optional[str] = None,
    ) -> Review:
        if review.user_id != user.id:
            raise ForbiddenException("Not authorized to update this review")

        if rating is not None:
            review.rating = rating
        if title is not None:
            review.title = title
        if comment is not None:
            review.comment = comment
        review = self.reviews.save(review)

        logger.info("Review updated", extra={"review_id": str(review.id)})
        self.refresh_rating(review.listing_id)
        return review

    def delete(self, review: Review, user: User) -> None:
        if review.user_id != user.id and user.role != UserRole.ADMIN:
            raise ForbiddenException("Not authorized to delete this review")

        listing_id = review.listing_id
        review_id = str(review.id)
        self.reviews.delete(review)

        logger.info("Review deleted", extra={"review_id": review_id, "listing_id": str(listing_id)})
        self.refresh_rating(listing_id)

    def like(self, review: Review) -> int:
        return self.reviews.increment_likes(review)

    def reply(self, review: Review, user: User, comment: str) -> Review:
        listing = self.listings.get(review.listing_id)
        is_owner = listing is not None and listing.owner_id == user.id
        if user.role != UserRole.ADMIN and not (user.role == UserRole.OWNER and is_owner):
            raise ForbiddenException("Only the listing owner or an admin can reply")

        review = self.reviews.add_reply(review, ReviewReply(user_id=user.id, comment=comment))
        logger.info("Review reply added", extra={"review_id": str(review.id)})
        return review

    def list_for_listing(
        self,
        listing_id: UUID,
        sort: str = "recent",
        page: int = 1,
        limit: int = 10,
    ) -> tuple[List[Review], Pagination]:
        if sort not in REVIEW_SORTS:
            raise BadRequestException(
                f"Invalid sort. Must be one of: {', '.join(REVIEW_SORTS)}",
                details={"sort": sort},
            )
        self._listing(listing_id)

        offset = (page - 1) * limit
        items = self.reviews.list_for_listing(listing_id, REVIEW_SORTS[sort], offset, limit)
        total = self.reviews.count_for_listing(listing_id)
        return items, Pagination.compute(page, limit, total)

    def list_for_user(self, user: User) -> List[Review]:
        return self.reviews.list_for_user(user.id)

    def refresh_rating(self, listing_id: UUID) -> Optional[RatingSummary]:
        try:
            return self.aggregator.recompute(listing_id)
        except (SQLAlchemyError, AppException) as exc:
            self.reviews.session.rollback()
            logger.error(
                "Rating recomputation failed; cached rating is stale",
                extra={"listing_id": str(listing_id), "error": str(exc)},
            )
            return None

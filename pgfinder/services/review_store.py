"""Review store: reads and writes against the reviews table."""
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from pgfinder.lib.store import store_read, store_write
from pgfinder.models.reviews import Review, ReviewReply


class ReviewStore:
    """Review collection bound to one database session."""

    def __init__(self, session: Session):
        self.session = session

    @store_read
    def get(self, review_id: UUID) -> Optional[Review]:
        return self.session.get(Review, review_id)

    @store_read
    def find_by_user_and_listing(self, user_id: UUID, listing_id: UUID) -> Optional[Review]:
        stmt = select(Review).where(
            Review.user_id == user_id,
            Review.listing_id == listing_id,
        )
        return self.session.scalars(stmt).first()

    @store_read
    def rating_stats(self, listing_id: UUID) -> Tuple[Optional[float], int]:
        """Average rating and review count over every review of a listing."""
        stmt = select(func.avg(Review.rating), func.count(Review.id)).where(
            Review.listing_id == listing_id
        )
        average, count = self.session.execute(stmt).one()
        return average, count

    @store_read
    def count_for_listing(self, listing_id: UUID) -> int:
        stmt = select(func.count()).select_from(Review).where(Review.listing_id == listing_id)
        return self.session.scalar(stmt)

    @store_read
    def list_for_listing(
        self,
        listing_id: UUID,
        order_by: Sequence[ColumnElement],
        offset: int,
        limit: int,
    ) -> List[Review]:
        stmt = (
            select(Review)
            .where(Review.listing_id == listing_id)
            .order_by(*order_by)
            .offset(offset)
            .limit(limit)
        )
        return list(self.session.scalars(stmt))

    @store_read
    def list_for_user(self, user_id: UUID) -> List[Review]:
        stmt = (
            select(Review)
            .where(Review.user_id == user_id)
            .order_by(Review.created_at.desc())
        )
        return list(self.session.scalars(stmt))

    @store_write
    def add(self, review: Review) -> Review:
        self.session.add(review)
        self.session.commit()
        self.session.refresh(review)
        return review

    @store_write
    def save(self, review: Review) -> Review:
        self.session.commit()
        self.session.refresh(review)
        return review

    @store_write
    def delete(self, review: Review) -> None:
        self.session.delete(review)
        self.session.commit()

    @store_write
    def increment_likes(self, review: Review) -> int:
        # SQL-side increment so concurrent likes are not lost
        review.likes = Review.likes + 1
        self.session.commit()
        self.session.refresh(review)
        return review.likes

    @store_write
    def add_reply(self, review: Review, reply: ReviewReply) -> Review:
        review.replies.append(reply)
        self.session.commit()
        self.session.refresh(review)
        return review

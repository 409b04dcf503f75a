"""Listing store: every read and write against the listings table goes through here."""
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select, func, update, delete, or_
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from pgfinder.lib.store import store_read, store_write
from pgfinder.models.bookings import Booking
from pgfinder.models.listings import Listing
from pgfinder.models.reports import Report
from pgfinder.models.reviews import Review, ReviewReply


class ListingStore:
    """Listing collection bound to one database session."""

    def __init__(self, session: Session):
        self.session = session

    @store_read
    def get(self, listing_id: UUID) -> Optional[Listing]:
        return self.session.get(Listing, listing_id)

    @store_read
    def find_by_slug(self, slug: str) -> Optional[Listing]:
        stmt = select(Listing).where(Listing.slug == slug).limit(1)
        return self.session.scalars(stmt).first()

    @store_read
    def find_by_normalized_name(self, normalized_name: str, published_only: bool = False) -> Optional[Listing]:
        """
        Match a lowercased, single-space-separated name against stored names,
        treating each hyphen in the stored name as a space.
        """
        stored = func.lower(func.replace(Listing.name, "-", " "))
        stmt = (
            select(Listing)
            .where(stored == normalized_name)
            .order_by(Listing.created_at, Listing.id)
            .limit(1)
        )
        if published_only:
            stmt = stmt.where(Listing.published.is_(True))
        return self.session.scalars(stmt).first()

    @store_read
    def find_first_containing(
        self,
        term: str,
        listing_id: Optional[UUID] = None,
        published_only: bool = False,
    ) -> Optional[Listing]:
        """First listing whose name, address, city or locality contains term."""
        conditions = [
            Listing.name.icontains(term, autoescape=True),
            Listing.address.icontains(term, autoescape=True),
            Listing.city.icontains(term, autoescape=True),
            Listing.locality.icontains(term, autoescape=True),
        ]
        if listing_id is not None:
            conditions.append(Listing.id == listing_id)
        stmt = (
            select(Listing)
            .where(or_(*conditions))
            .order_by(Listing.created_at, Listing.id)
            .limit(1)
        )
        if published_only:
            stmt = stmt.where(Listing.published.is_(True))
        return self.session.scalars(stmt).first()

    @store_read
    def sample_ids(self, size: int, published_only: bool = False) -> List[str]:
        stmt = select(Listing.id).order_by(Listing.created_at.desc()).limit(size)
        if published_only:
            stmt = stmt.where(Listing.published.is_(True))
        return [str(listing_id) for listing_id in self.session.scalars(stmt)]

    @store_read
    def slug_taken(self, slug: str, exclude_id: Optional[UUID] = None) -> bool:
        stmt = select(func.count()).select_from(Listing).where(Listing.slug == slug)
        if exclude_id is not None:
            stmt = stmt.where(Listing.id != exclude_id)
        return self.session.scalar(stmt) > 0

    @store_read
    def count(self, conditions: Sequence[ColumnElement[bool]] = ()) -> int:
        stmt = select(func.count()).select_from(Listing).where(*conditions)
        return self.session.scalar(stmt)

    @store_read
    def find_page(
        self,
        conditions: Sequence[ColumnElement[bool]],
        order_by: Sequence[ColumnElement],
        offset: int,
        limit: int,
    ) -> List[Listing]:
        stmt = (
            select(Listing)
            .where(*conditions)
            .order_by(*order_by)
            .offset(offset)
            .limit(limit)
        )
        return list(self.session.scalars(stmt))

    @store_write
    def add(self, listing: Listing) -> Listing:
        self.session.add(listing)
        self.session.commit()
        self.session.refresh(listing)
        return listing

    @store_write
    def save(self, listing: Listing) -> Listing:
        self.session.commit()
        self.session.refresh(listing)
        return listing

    @store_write
    def set_rating(self, listing_id: UUID, rating: float, review_count: int) -> None:
        stmt = (
            update(Listing)
            .where(Listing.id == listing_id)
            .values(rating=rating, review_count=review_count)
        )
        self.session.execute(stmt)
        self.session.commit()

    @store_write
    def delete(self, listing: Listing) -> None:
        """Delete a listing together with the rows that reference it."""
        listing_reviews = select(Review.id).where(Review.listing_id == listing.id)
        self.session.execute(delete(ReviewReply).where(ReviewReply.review_id.in_(listing_reviews)))
        for model in (Review, Booking, Report):
            self.session.execute(delete(model).where(model.listing_id == listing.id))
        self.session.delete(listing)
        self.session.commit()

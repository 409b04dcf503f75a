"""
Review model - a renter's rating and comment for one listing.
"""
from datetime import datetime, timezone
from typing import List
from uuid import uuid4, UUID

from sqlalchemy import (
    String,
    Integer,
    DateTime,
    ForeignKey,
    Uuid,
    CheckConstraint,
    UniqueConstraint,
    Index,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pgfinder.lib.db import Base


class Review(Base):
    """
    Review entity - at most one per (user, listing) pair.
    """
    __tablename__ = "reviews"

    # Primary key
    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )

    # Relationships
    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    listing_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("listings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Rating (1-5 scale)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)

    title: Mapped[str] = mapped_column(String(100), nullable=False)
    comment: Mapped[str] = mapped_column(String(1000), nullable=False)
    likes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    replies: Mapped[List["ReviewReply"]] = relationship(
        back_populates="review",
        cascade="all, delete-orphan",
        order_by="ReviewReply.created_at",
        lazy="selectin",
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        CheckConstraint(
            "rating >= 1 AND rating <= 5",
            name="review_rating_range",
        ),
        UniqueConstraint("user_id", "listing_id", name="uq_review_user_listing"),
        Index("ix_reviews_listing_rating_created", "listing_id", "rating", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, listing_id={self.listing_id}, rating={self.rating})>"


class ReviewReply(Base):
    """Owner or admin response appended to a review."""
    __tablename__ = "review_replies"

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )
    review_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("reviews.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    comment: Mapped[str] = mapped_column(String(500), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    review: Mapped[Review] = relationship(back_populates="replies")

    def __repr__(self) -> str:
        return f"<ReviewReply(id={self.id}, review_id={self.review_id})>"

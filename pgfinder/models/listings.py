"""
Listing model - a rentable PG / hostel accommodation.
"""
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4, UUID
import enum

from sqlalchemy import (
    String,
    Text,
    Float,
    Integer,
    Boolean,
    DateTime,
    ForeignKey,
    JSON,
    Uuid,
    Enum as SQLEnum,
    CheckConstraint,
    Index,
)
from sqlalchemy.orm import Mapped, mapped_column

from pgfinder.lib.db import Base


class ListingType(str, enum.Enum):
    """Who the accommodation is meant for."""
    BOYS = "boys"
    GIRLS = "girls"
    CO_ED = "co-ed"
    FAMILY = "family"


class Availability(str, enum.Enum):
    """Occupancy state shown to renters."""
    AVAILABLE = "available"
    SOLD_OUT = "sold-out"
    COMING_SOON = "coming-soon"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Listing(Base):
    """
    Listing entity - the "PG".

    rating and review_count are derived from reviews and only written by
    the rating aggregator.
    """
    __tablename__ = "listings"

    # Primary key
    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)

    # Description
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    city: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    locality: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    address: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    distance: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    map_link: Mapped[str] = mapped_column(String(1000), nullable=False, default="")

    # Commercial
    price: Mapped[float] = mapped_column(Float, nullable=False, index=True)
    type: Mapped[ListingType] = mapped_column(
        SQLEnum(ListingType, name="listing_type", values_callable=_enum_values),
        nullable=False,
        default=ListingType.BOYS,
        index=True,
    )
    room_types: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    availability: Mapped[Availability] = mapped_column(
        SQLEnum(Availability, name="listing_availability", values_callable=_enum_values),
        nullable=False,
        default=Availability.AVAILABLE,
    )

    # Media
    images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    gallery: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    amenities: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    # Point location, default origin
    longitude: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    latitude: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    # Classification flags
    published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Reputation (derived)
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Ownership / contact
    owner_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    owner_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    owner_phone: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    owner_email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    contact_email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    contact_phone: Mapped[str] = mapped_column(String(20), nullable=False, default="")

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="listing_price_non_negative"),
        CheckConstraint("rating >= 0 AND rating <= 5", name="listing_rating_range"),
        CheckConstraint("review_count >= 0", name="listing_review_count_non_negative"),
        Index("ix_listings_published_created_at", "published", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Listing(id={self.id}, slug={self.slug}, published={self.published})>"

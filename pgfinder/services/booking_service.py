"""Booking service.

State machine: pending -> confirmed | cancelled | completed,
confirmed -> completed | cancelled. Cancelled and completed are terminal.
"""
import math
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from pgfinder.api.middleware.error_handler import (
    BadRequestException,
    ForbiddenException,
    NotFoundException,
)
from pgfinder.lib.logging import get_logger
from pgfinder.models.bookings import (
    BOOKING_TRANSITIONS,
    Booking,
    BookingStatus,
    PaymentMethod,
    RoomType,
)
from pgfinder.models.listings import Availability, Listing
from pgfinder.models.users import User, UserRole

logger = get_logger(__name__)


DEPOSIT_RATE = 0.2


def compute_amounts(monthly_price: float, duration: int) -> tuple[float, float]:
    """Total for the stay and the deposit (floor of 20% of the total)."""
    total = monthly_price * duration
    return total, float(math.floor(total * DEPOSIT_RATE))


class BookingService:
    """Booking creation, lookup and status changes."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, booking_id: UUID) -> Booking:
        booking = self.session.get(Booking, booking_id)
        if booking is None:
            raise NotFoundException("Booking", str(booking_id))
        return booking

    def create(
        self,
        user: User,
        listing_id: UUID,
        room_type: RoomType,
        start_date: date,
        duration: int,
        payment_method: PaymentMethod = PaymentMethod.ONLINE,
        special_requests: Optional[str] = None,
        contact_name: Optional[str] = None,
        contact_phone: Optional[str] = None,
        contact_email: Optional[str] = None,
        emergency_contact: Optional[str] = None,
    ) -> Booking:
        """
        Raises:
            NotFoundException: listing missing or unpublished
            BadRequestException: listing not currently available
        """
        listing = self.session.get(Listing, listing_id)
        if listing is None or not listing.published:
            raise NotFoundException("Listing", str(listing_id))
        if listing.availability != Availability.AVAILABLE:
            raise BadRequestException(
                "Listing is not available for booking",
                details={"availability": listing.availability.value},
            )

        total_amount, deposit = compute_amounts(listing.price, duration)
        booking = Booking(
            user_id=user.id,
            listing_id=listing.id,
            room_type=room_type,
            start_date=start_date,
            duration=duration,
            total_amount=total_amount,
            deposit=deposit,
            status=BookingStatus.PENDING,
            payment_method=payment_method,
            special_requests=special_requests,
            contact_name=contact_name or user.name,
            contact_phone=contact_phone or user.phone,
            contact_email=contact_email or user.email,
            emergency_contact=emergency_contact,
        )
        self.session.add(booking)
        self.session.commit()
        self.session.refresh(booking)

        logger.info(
            "Booking created",
            extra={
                "booking_id": str(booking.id),
                "listing_id": str(listing.id),
                "total_amount": total_amount,
            },
        )
        return booking

    def list_for_user(self, user: User) -> List[Booking]:
        stmt = (
            select(Booking)
            .where(Booking.user_id == user.id)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
        )
        return list(self.session.scalars(stmt))

    def list_visible_to(self, user: User) -> List[Booking]:
        """Admins see every booking, owners see bookings on their own listings."""
        stmt = select(Booking).order_by(Booking.created_at.desc(), Booking.id.desc())
        if user.role == UserRole.OWNER:
            owned = select(Listing.id).where(Listing.owner_id == user.id)
            stmt = stmt.where(Booking.listing_id.in_(owned))
        elif user.role != UserRole.ADMIN:
            raise ForbiddenException("Not authorized")
        return list(self.session.scalars(stmt))

    def check_can_view(self, booking: Booking, user: User) -> None:
        if booking.user_id != user.id and user.role != UserRole.ADMIN:
            raise ForbiddenException("Not authorized")

    def cancel(self, booking: Booking, user: User) -> Booking:
        if booking.user_id != user.id:
            raise ForbiddenException("Not authorized")
        return self._move(booking, BookingStatus.CANCELLED)

    def update_status(self, booking: Booking, user: User, status: BookingStatus) -> Booking:
        if user.role == UserRole.OWNER:
            listing = self.session.get(Listing, booking.listing_id)
            if listing is None or listing.owner_id != user.id:
                raise ForbiddenException("Not authorized")
        elif user.role != UserRole.ADMIN:
            raise ForbiddenException("Not authorized")
        return self._move(booking, status)

    def _move(self, booking: Booking, status: BookingStatus) -> Booking:
        current = booking.status
        if status not in BOOKING_TRANSITIONS[current]:
            if current == BookingStatus.CANCELLED:
                message = "Booking is already cancelled"
            elif current == BookingStatus.COMPLETED:
                message = "Completed bookings cannot be changed"
            else:
                message = f"Cannot move booking from {current.value} to {status.value}"
            raise BadRequestException(
                message,
                details={"from": current.value, "to": status.value},
            )

        booking.status = status
        self.session.commit()
        self.session.refresh(booking)
        logger.info(
            "Booking status changed",
            extra={"booking_id": str(booking.id), "from": current.value, "to": status.value},
        )
        return booking

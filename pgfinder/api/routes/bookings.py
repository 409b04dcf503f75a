"""
Booking routes.

Static paths (/mybookings) are declared before /{booking_id}.
"""
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import AliasChoices, Field
from sqlalchemy.orm import Session

from pgfinder.api.dependencies import get_current_user, get_db
from pgfinder.api.schemas import CamelModel, DataResponse, ListingSummary, MessageResponse
from pgfinder.models.bookings import (
    Booking,
    BookingStatus,
    PaymentMethod,
    PaymentStatus,
    RoomType,
)
from pgfinder.models.listings import Listing
from pgfinder.models.users import User
from pgfinder.services.booking_service import BookingService


router = APIRouter(prefix="/api/bookings", tags=["bookings"])


class BookingCreate(CamelModel):
    listing_id: UUID = Field(..., validation_alias=AliasChoices("pgId", "listingId", "listing_id"))
    room_type: RoomType
    start_date: date
    duration: int = Field(..., ge=1, le=12, description="Months")
    payment_method: PaymentMethod = PaymentMethod.ONLINE
    special_requests: Optional[str] = Field(None, max_length=1000)
    contact_name: Optional[str] = Field(None, max_length=255)
    contact_phone: Optional[str] = Field(None, max_length=20)
    contact_email: Optional[str] = Field(None, max_length=255)
    emergency_contact: Optional[str] = Field(None, max_length=255)


class BookingStatusUpdate(CamelModel):
    status: BookingStatus


class BookingResponse(CamelModel):
    id: UUID
    user_id: UUID
    listing_id: UUID
    listing: Optional[ListingSummary] = None
    room_type: RoomType
    start_date: date
    duration: int
    total_amount: float
    deposit: float
    status: BookingStatus
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    transaction_id: Optional[str] = None
    special_requests: Optional[str] = None
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    emergency_contact: Optional[str] = None
    created_at: datetime
    updated_at: datetime


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(db)


def _to_response(booking: Booking, db: Session) -> BookingResponse:
    response = BookingResponse.model_validate(booking)
    listing = db.get(Listing, booking.listing_id)
    if listing is not None:
        response.listing = ListingSummary.model_validate(listing)
    return response


@router.post("", response_model=DataResponse[BookingResponse], status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: BookingCreate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """
    Book a room.

    Total is price x duration; the deposit is 20% of the total, rounded down.
    """
    booking = service.create(
        current_user,
        payload.listing_id,
        room_type=payload.room_type,
        start_date=payload.start_date,
        duration=payload.duration,
        payment_method=payload.payment_method,
        special_requests=payload.special_requests,
        contact_name=payload.contact_name,
        contact_phone=payload.contact_phone,
        contact_email=payload.contact_email,
        emergency_contact=payload.emergency_contact,
    )
    return DataResponse[BookingResponse](
        data=_to_response(booking, service.session),
        message="Booking created successfully",
    )


@router.get("/mybookings", response_model=DataResponse[List[BookingResponse]])
def my_bookings(
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    bookings = service.list_for_user(current_user)
    return DataResponse[List[BookingResponse]](
        data=[_to_response(booking, service.session) for booking in bookings]
    )


@router.get("", response_model=DataResponse[List[BookingResponse]])
def list_bookings(
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Admins see every booking; owners see bookings on their listings."""
    bookings = service.list_visible_to(current_user)
    return DataResponse[List[BookingResponse]](
        data=[_to_response(booking, service.session) for booking in bookings]
    )


@router.get("/{booking_id}", response_model=DataResponse[BookingResponse])
def get_booking(
    booking_id: UUID,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.get(booking_id)
    service.check_can_view(booking, current_user)
    return DataResponse[BookingResponse](data=_to_response(booking, service.session))


@router.put("/{booking_id}/cancel", response_model=MessageResponse)
def cancel_booking(
    booking_id: UUID,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    service.cancel(service.get(booking_id), current_user)
    return MessageResponse(message="Booking cancelled successfully")


@router.put("/{booking_id}/status", response_model=DataResponse[BookingResponse])
def update_booking_status(
    booking_id: UUID,
    payload: BookingStatusUpdate,
    current_user: User = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.update_status(service.get(booking_id), current_user, payload.status)
    return DataResponse[BookingResponse](
        data=_to_response(booking, service.session),
        message="Booking status updated successfully",
    )

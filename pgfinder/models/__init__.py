"""
SQLAlchemy models package.
Import all models here to ensure they're registered with Base.metadata.
"""
from pgfinder.models.users import User
from pgfinder.models.listings import Listing
from pgfinder.models.reviews import Review, ReviewReply
from pgfinder.models.bookings import Booking
from pgfinder.models.reports import Report

__all__ = [
    "User",
    "Listing",
    "Review",
    "ReviewReply",
    "Booking",
    "Report",
]

"""
Pydantic schemas shared by several routers.

JSON uses camelCase; Python attributes stay snake_case.
"""
from datetime import datetime
from typing import Any, Generic, List, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from pgfinder.models.listings import Availability, ListingType
from pgfinder.services.listing_query import Pagination


class CamelModel(BaseModel):
    """Base model with camelCase aliases, accepting either spelling on input."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ListingLocation(BaseModel):
    """GeoJSON-style point: coordinates are [longitude, latitude]."""
    type: str = "Point"
    coordinates: List[float] = Field(default_factory=lambda: [0.0, 0.0])

    @field_validator("coordinates")
    @classmethod
    def check_coordinates(cls, value: List[float]) -> List[float]:
        if len(value) != 2:
            raise ValueError("coordinates must be [longitude, latitude]")
        longitude, latitude = value
        if not -180 <= longitude <= 180 or not -90 <= latitude <= 90:
            raise ValueError("coordinates out of range")
        return value


class ListingResponse(CamelModel):
    """Listing as returned by the API."""
    id: UUID
    slug: str
    name: str
    description: str
    city: str
    locality: str
    address: str
    distance: str
    map_link: str
    price: float
    type: ListingType
    room_types: List[str]
    availability: Availability
    images: List[str]
    gallery: List[str]
    amenities: List[str]
    published: bool
    verified: bool
    featured: bool
    rating: float
    review_count: int
    owner_id: Optional[UUID] = None
    owner_name: str
    owner_phone: str
    owner_email: str
    contact_email: str
    contact_phone: str
    created_at: datetime
    updated_at: datetime
    location: ListingLocation = Field(default_factory=ListingLocation)

    @model_validator(mode="before")
    @classmethod
    def attach_location(cls, data: Any) -> Any:
        # Rows store the point as two columns
        if isinstance(data, dict) or not hasattr(data, "longitude"):
            return data
        values = {name: getattr(data, name) for name in cls.model_fields if name != "location"}
        values["location"] = ListingLocation(coordinates=[data.longitude, data.latitude])
        return values


class ListingSummary(CamelModel):
    """Short listing projection embedded in reviews and bookings."""
    id: UUID
    slug: str
    name: str
    address: str
    city: str
    price: float
    type: ListingType
    images: List[str]


class PaginationResponse(CamelModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def from_pagination(cls, pagination: Pagination) -> "PaginationResponse":
        return cls(
            current_page=pagination.current_page,
            total_pages=pagination.total_pages,
            total_items=pagination.total_items,
            items_per_page=pagination.items_per_page,
            has_next_page=pagination.has_next_page,
            has_prev_page=pagination.has_prev_page,
        )


class MessageResponse(BaseModel):
    success: bool = True
    message: str


T = TypeVar("T")


class DataResponse(CamelModel, Generic[T]):
    """Success envelope around a single payload."""
    success: bool = True
    data: T
    message: Optional[str] = None


class PageResponse(CamelModel, Generic[T]):
    """Success envelope around one page of results."""
    success: bool = True
    data: List[T]
    pagination: PaginationResponse

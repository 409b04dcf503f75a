"""Listing service.

Create, patch, toggle, delete and summarise listings. Slugs are derived from
the name and made unique with a numeric suffix (royal-boys-pg,
royal-boys-pg-2, ...). rating and review_count are never written here.
"""
import re
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from pgfinder.api.middleware.error_handler import BadRequestException, ForbiddenException
from pgfinder.api.schemas import CamelModel, ListingLocation
from pgfinder.lib.logging import get_logger
from pgfinder.lib.settings import settings
from pgfinder.models.listings import Availability, Listing, ListingType
from pgfinder.models.users import User, UserRole
from pgfinder.services.listing_store import ListingStore

logger = get_logger(__name__)


_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]+")
FALLBACK_SLUG = "listing"
TOGGLE_FIELDS = ("published", "featured", "verified")


def slugify(name: str) -> str:
    """Lowercased, hyphenated, alphanumeric-only projection of a name."""
    slug = _NON_ALPHANUMERIC.sub("-", name.lower()).strip("-")
    return slug or FALLBACK_SLUG


def _non_blank(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


class ListingCreate(CamelModel):
    """Payload for creating a listing."""
    name: str = Field(..., max_length=255)
    price: float = Field(..., ge=0)
    city: Optional[str] = Field(None, max_length=100)
    description: str = ""
    locality: str = ""
    address: str = ""
    distance: str = ""
    map_link: str = ""
    type: ListingType = ListingType.BOYS
    room_types: List[str] = Field(default_factory=list)
    availability: Availability = Availability.AVAILABLE
    images: List[str] = Field(default_factory=list)
    gallery: List[str] = Field(default_factory=list)
    amenities: List[str] = Field(default_factory=list)
    location: Optional[ListingLocation] = None
    published: bool = False
    verified: bool = False
    featured: bool = False
    owner_name: Optional[str] = None
    owner_phone: str = ""
    owner_email: Optional[str] = None
    contact_email: str = ""
    contact_phone: str = ""

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        return _non_blank(value)


class ListingPatch(CamelModel):
    """
    Typed partial update: one optional field per mutable attribute.

    Numbers and flags are coerced by pydantic ("9000" -> 9000.0,
    "true" -> True). Fields left out of the payload are untouched.
    """
    name: Optional[str] = Field(None, max_length=255)
    price: Optional[float] = Field(None, ge=0)
    city: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    locality: Optional[str] = None
    address: Optional[str] = None
    distance: Optional[str] = None
    map_link: Optional[str] = None
    type: Optional[ListingType] = None
    room_types: Optional[List[str]] = None
    availability: Optional[Availability] = None
    images: Optional[List[str]] = None
    gallery: Optional[List[str]] = None
    amenities: Optional[List[str]] = None
    location: Optional[ListingLocation] = None
    published: Optional[bool] = None
    verified: Optional[bool] = None
    featured: Optional[bool] = None
    owner_name: Optional[str] = None
    owner_phone: Optional[str] = None
    owner_email: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, value: Optional[str]) -> Optional[str]:
        return _non_blank(value)

    def changes(self) -> Dict[str, object]:
        """
        Fields the client actually sent.

        Raises:
            BadRequestException: a field was explicitly set to null
        """
        sent = self.model_dump(exclude_unset=True)
        nulls = sorted(name for name, value in sent.items() if value is None)
        if nulls:
            raise BadRequestException(
                "Fields cannot be null",
                details={"fields": nulls},
            )
        return sent


class ListingService:
    """Listing mutations and admin summaries."""

    def __init__(self, store: ListingStore):
        self.store = store

    def unique_slug(self, name: str, exclude_id: Optional[UUID] = None) -> str:
        base = slugify(name)
        slug = base
        suffix = 2
        while self.store.slug_taken(slug, exclude_id):
            slug = f"{base}-{suffix}"
            suffix += 1
        return slug

    def create(self, payload: ListingCreate, creator: User) -> Listing:
        is_admin = creator.role == UserRole.ADMIN
        location = payload.location or ListingLocation()

        listing = Listing(
            name=payload.name,
            slug=self.unique_slug(payload.name),
            description=payload.description,
            city=(payload.city or "").strip() or settings.default_city,
            locality=payload.locality,
            address=payload.address,
            distance=payload.distance,
            map_link=payload.map_link,
            price=payload.price,
            type=payload.type,
            room_types=payload.room_types,
            availability=payload.availability,
            images=payload.images,
            gallery=payload.gallery,
            amenities=payload.amenities,
            longitude=location.coordinates[0],
            latitude=location.coordinates[1],
            # Owners submit drafts; only admins publish, verify or feature
            published=payload.published if is_admin else False,
            verified=payload.verified if is_admin else False,
            featured=payload.featured if is_admin else False,
            rating=0.0,
            review_count=0,
            owner_id=creator.id,
            owner_name=payload.owner_name or creator.name,
            owner_phone=payload.owner_phone or creator.phone,
            owner_email=payload.owner_email or creator.email,
            contact_email=payload.contact_email,
            contact_phone=payload.contact_phone,
        )
        listing = self.store.add(listing)
        logger.info("Listing created", extra={"listing_id": str(listing.id), "slug": listing.slug})
        return listing

    def update(self, listing: Listing, patch: ListingPatch, editor: User) -> Listing:
        self._check_can_edit(listing, editor)
        changes = patch.changes()

        if editor.role != UserRole.ADMIN:
            blocked = sorted(set(changes) & set(TOGGLE_FIELDS))
            if blocked:
                raise ForbiddenException(f"Only admins can change: {', '.join(blocked)}")

        location = changes.pop("location", None)
        if location is not None:
            listing.longitude, listing.latitude = location["coordinates"]

        if "city" in changes:
            changes["city"] = changes["city"].strip() or settings.default_city

        name_changed = "name" in changes and changes["name"] != listing.name
        for attribute, value in changes.items():
            setattr(listing, attribute, value)
        if name_changed:
            listing.slug = self.unique_slug(listing.name, exclude_id=listing.id)

        listing.updated_at = datetime.now(timezone.utc)
        listing = self.store.save(listing)
        logger.info(
            "Listing updated",
            extra={"listing_id": str(listing.id), "fields": sorted(changes)},
        )
        return listing

    def toggle(self, listing: Listing, field: Optional[str]) -> Listing:
        if field not in TOGGLE_FIELDS:
            raise BadRequestException(
                f"Invalid field. Must be one of: {', '.join(TOGGLE_FIELDS)}",
                details={"field": field},
            )
        setattr(listing, field, not getattr(listing, field))
        listing.updated_at = datetime.now(timezone.utc)
        listing = self.store.save(listing)
        logger.info(
            f"{field} toggled",
            extra={"listing_id": str(listing.id), "value": getattr(listing, field)},
        )
        return listing

    def delete(self, listing: Listing) -> None:
        listing_id = str(listing.id)
        self.store.delete(listing)
        logger.info("Listing deleted", extra={"listing_id": listing_id})

    def stats(self) -> Dict[str, int]:
        total = self.store.count()
        published = self.store.count([Listing.published.is_(True)])
        return {
            "total": total,
            "published": published,
            "draft": total - published,
            "featured": self.store.count([Listing.featured.is_(True)]),
            "verified": self.store.count([Listing.verified.is_(True)]),
            "boys": self.store.count([Listing.type == ListingType.BOYS]),
            "girls": self.store.count([Listing.type == ListingType.GIRLS]),
            "coed": self.store.count([Listing.type == ListingType.CO_ED]),
            "family": self.store.count([Listing.type == ListingType.FAMILY]),
        }

    def seed_samples(self, admin: User) -> List[Listing]:
        return [self.create(sample, admin) for sample in SAMPLE_LISTINGS]

    @staticmethod
    def _check_can_edit(listing: Listing, editor: User) -> None:
        if editor.role == UserRole.ADMIN:
            return
        if editor.role == UserRole.OWNER and listing.owner_id == editor.id:
            return
        raise ForbiddenException("Not authorized to edit this listing")


SAMPLE_LISTINGS = [
    ListingCreate(
        name="Royal Boys PG",
        description="Luxurious boys PG with modern amenities near Chandigarh University",
        city="Chandigarh",
        address="Gate 2, CU Road",
        price=9000,
        type=ListingType.BOYS,
        images=["https://images.unsplash.com/photo-1545324418-cc1a3fa10c00?w=800"],
        amenities=["WiFi", "AC", "Meals", "Parking", "Gym", "Study Room"],
        published=True,
        verified=True,
        owner_name="Amit Verma",
        owner_phone="9876543212",
    ),
    ListingCreate(
        name="Sunshine Girls PG",
        description="Safe and secure girls PG with 24/7 security and CCTV",
        city="Chandigarh",
        address="Library Road, CU",
        price=9500,
        type=ListingType.GIRLS,
        images=["https://images.unsplash.com/photo-1560185127-6ed189bf02f4?w=800"],
        amenities=["WiFi", "AC", "Meals", "CCTV", "24/7 Security", "Hot Water"],
        published=True,
        verified=True,
        owner_name="Sunita Devi",
        owner_phone="9876543213",
    ),
    ListingCreate(
        name="Student Hub Co-Ed PG",
        description="Co-ed PG with study rooms and high-speed internet",
        city="Chandigarh",
        address="Sports Complex Road",
        price=8000,
        type=ListingType.CO_ED,
        images=["https://images.unsplash.com/photo-1586023492125-27b2c045efd7?w=800"],
        amenities=["WiFi", "Study Room", "Library", "Common Room", "Laundry"],
        published=True,
        verified=True,
        owner_name="Rohit Sharma",
        owner_phone="9876543214",
    ),
]

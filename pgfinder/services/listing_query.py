"""Listing query builder.

Turns the optional filter parameters of the listing collection endpoint into
one composed filter, runs it with sorting and pagination, and computes the
pagination block from a separate count over the same filter.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.sql.elements import ColumnElement

from pgfinder.api.middleware.error_handler import BadRequestException
from pgfinder.lib.logging import get_logger
from pgfinder.lib.settings import settings
from pgfinder.models.listings import Availability, Listing, ListingType
from pgfinder.services.listing_store import ListingStore

logger = get_logger(__name__)


SORT_FIELDS = {
    "createdAt": Listing.created_at,
    "updatedAt": Listing.updated_at,
    "price": Listing.price,
    "rating": Listing.rating,
    "reviewCount": Listing.review_count,
    "name": Listing.name,
}
SORT_ORDERS = ("asc", "desc")

_TRUTHY = {"true", "1", "yes", "on"}
_FALSY = {"false", "0", "no", "off"}

QUICK_SEARCH_LIMIT = 20


def parse_flag(value: Optional[str]) -> bool:
    """Truthy query-string flag; absent or anything unrecognised is false."""
    return value is not None and value.strip().lower() in _TRUTHY


def parse_optional_bool(name: str, value: Optional[str]) -> Optional[bool]:
    if value is None or not value.strip():
        return None
    lowered = value.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise BadRequestException(f"{name} must be true or false", details={name: value})


def parse_price(name: str, value: Optional[str]) -> Optional[float]:
    """Parse a price bound; blank means unbounded."""
    if value is None or not value.strip():
        return None
    try:
        price = float(value)
    except ValueError:
        raise BadRequestException(f"{name} must be a number", details={name: value})
    if not math.isfinite(price):
        raise BadRequestException(f"{name} must be a number", details={name: value})
    return price


def _parse_enum(enum_cls, name: str, value: Optional[str]):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = [member.value for member in enum_cls]
        raise BadRequestException(
            f"Invalid {name}. Must be one of: {', '.join(allowed)}",
            details={name: value},
        )


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass
class ListingQuery:
    """Parsed, validated listing filters."""
    type: Optional[ListingType] = None
    city: Optional[str] = None
    search: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    include_unpublished: bool = False
    published: Optional[bool] = None
    featured: bool = False
    verified: bool = False
    availability: Optional[Availability] = None
    sort_by: str = "createdAt"
    sort_order: str = "desc"
    page: int = 1
    limit: int = field(default_factory=lambda: settings.default_page_size)

    @classmethod
    def from_params(
        cls,
        *,
        type: Optional[str] = None,
        city: Optional[str] = None,
        search: Optional[str] = None,
        min_price: Optional[str] = None,
        max_price: Optional[str] = None,
        admin: bool = False,
        published: Optional[str] = None,
        featured: Optional[str] = None,
        verified: Optional[str] = None,
        availability: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> "ListingQuery":
        """
        Build a query from raw request parameters.

        Raises:
            BadRequestException: any parameter that cannot be interpreted
        """
        listing_type = None
        type_value = _blank_to_none(type)
        if type_value is not None and type_value != "all":
            listing_type = _parse_enum(ListingType, "type", type_value)

        availability_value = _blank_to_none(availability)
        parsed_availability = None
        if availability_value is not None:
            parsed_availability = _parse_enum(Availability, "availability", availability_value)

        sort_by = _blank_to_none(sort_by) or "createdAt"
        if sort_by not in SORT_FIELDS:
            raise BadRequestException(
                f"Invalid sortBy. Must be one of: {', '.join(SORT_FIELDS)}",
                details={"sortBy": sort_by},
            )
        sort_order = (_blank_to_none(sort_order) or "desc").lower()
        if sort_order not in SORT_ORDERS:
            raise BadRequestException("sortOrder must be asc or desc", details={"sortOrder": sort_order})

        if limit is None:
            limit = settings.default_page_size
        if page < 1:
            raise BadRequestException("page must be at least 1", details={"page": page})
        if not 1 <= limit <= settings.max_page_size:
            raise BadRequestException(
                f"limit must be between 1 and {settings.max_page_size}",
                details={"limit": limit},
            )

        query = cls(
            type=listing_type,
            city=_blank_to_none(city),
            search=_blank_to_none(search),
            min_price=parse_price("minPrice", min_price),
            max_price=parse_price("maxPrice", max_price),
            include_unpublished=admin,
            # Only admins may look at a particular publication state
            published=parse_optional_bool("published", published) if admin else None,
            featured=parse_flag(featured),
            verified=parse_flag(verified),
            availability=parsed_availability,
            sort_by=sort_by,
            sort_order=sort_order,
            page=page,
            limit=limit,
        )
        return query

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def conditions(self) -> List[ColumnElement[bool]]:
        """The composed filter, as a list of AND-ed conditions."""
        conditions: List[ColumnElement[bool]] = []

        if not self.include_unpublished:
            conditions.append(Listing.published.is_(True))
        elif self.published is not None:
            conditions.append(Listing.published.is_(self.published))

        if self.type is not None:
            conditions.append(Listing.type == self.type)
        if self.city:
            conditions.append(Listing.city.icontains(self.city, autoescape=True))
        if self.search:
            conditions.append(or_(
                Listing.name.icontains(self.search, autoescape=True),
                Listing.address.icontains(self.search, autoescape=True),
                Listing.city.icontains(self.search, autoescape=True),
                Listing.description.icontains(self.search, autoescape=True),
            ))
        if self.min_price is not None:
            conditions.append(Listing.price >= self.min_price)
        if self.max_price is not None:
            conditions.append(Listing.price <= self.max_price)
        if self.featured:
            conditions.append(Listing.featured.is_(True))
        if self.verified:
            conditions.append(Listing.verified.is_(True))
        if self.availability is not None:
            conditions.append(Listing.availability == self.availability)

        return conditions

    def order_by(self) -> List[ColumnElement]:
        column = SORT_FIELDS[self.sort_by]
        if self.sort_order == "asc":
            return [column.asc(), Listing.id.asc()]
        return [column.desc(), Listing.id.desc()]


@dataclass(frozen=True)
class Pagination:
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_prev_page: bool

    @classmethod
    def compute(cls, page: int, limit: int, total_items: int) -> "Pagination":
        total_pages = math.ceil(total_items / limit) if limit else 0
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_items=total_items,
            items_per_page=limit,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )

    @classmethod
    def empty(cls, page: int = 1, limit: int = 0) -> "Pagination":
        return cls(
            current_page=page,
            total_pages=0,
            total_items=0,
            items_per_page=limit,
            has_next_page=False,
            has_prev_page=False,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
            "totalItems": self.total_items,
            "itemsPerPage": self.items_per_page,
            "hasNextPage": self.has_next_page,
            "hasPrevPage": self.has_prev_page,
        }


@dataclass
class ListingPage:
    items: List[Listing]
    pagination: Pagination


class ListingQueryBuilder:
    """Executes listing queries against the listing store."""

    def __init__(self, store: ListingStore):
        self.store = store

    def execute(self, query: ListingQuery) -> ListingPage:
        conditions = query.conditions()
        items = self.store.find_page(conditions, query.order_by(), query.offset, query.limit)
        total = self.store.count(conditions)

        logger.info(
            "Listing query executed",
            extra={
                "filters": len(conditions),
                "page": query.page,
                "returned": len(items),
                "total": total,
            },
        )
        return ListingPage(items=items, pagination=Pagination.compute(query.page, query.limit, total))

    def quick_search(
        self,
        q: Optional[str] = None,
        location: Optional[str] = None,
        listing_type: Optional[ListingType] = None,
    ) -> List[Listing]:
        """Newest published listings matching the free-text term or the location."""
        conditions: List[ColumnElement[bool]] = [Listing.published.is_(True)]
        matches: List[ColumnElement[bool]] = []
        if q:
            matches += [
                Listing.name.icontains(q, autoescape=True),
                Listing.address.icontains(q, autoescape=True),
                Listing.city.icontains(q, autoescape=True),
                Listing.description.icontains(q, autoescape=True),
            ]
        if location:
            matches += [
                Listing.address.icontains(location, autoescape=True),
                Listing.city.icontains(location, autoescape=True),
            ]
        if matches:
            # q and location widen one another
            conditions.append(or_(*matches))
        if listing_type is not None:
            conditions.append(Listing.type == listing_type)

        order_by = [Listing.created_at.desc(), Listing.id.desc()]
        return self.store.find_page(conditions, order_by, 0, QUICK_SEARCH_LIMIT)

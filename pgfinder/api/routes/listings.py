"""
Listing routes.

Static paths (/search, /stats, /sample-data) are declared before the
/{identifier} route so they are not swallowed by the resolver. Routes that
change a listing address it by id only.
"""
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from pgfinder.api.dependencies import (
    get_listing_store,
    get_optional_user,
    get_review_store,
    require_role,
)
from pgfinder.api.middleware.error_handler import (
    ForbiddenException,
    NotFoundException,
    ServiceUnavailableException,
    UnauthorizedException,
)
from pgfinder.api.schemas import (
    CamelModel,
    DataResponse,
    ListingResponse,
    MessageResponse,
    PageResponse,
    PaginationResponse,
)
from pgfinder.models.listings import Listing, ListingType
from pgfinder.models.users import User, UserRole
from pgfinder.services.listing_query import (
    ListingQuery,
    ListingQueryBuilder,
    Pagination,
    parse_flag,
)
from pgfinder.services.listing_resolver import ListingResolver
from pgfinder.services.listing_service import ListingCreate, ListingPatch, ListingService
from pgfinder.services.listing_store import ListingStore
from pgfinder.services.rating_aggregator import RatingAggregator
from pgfinder.services.review_store import ReviewStore


router = APIRouter(prefix="/api/pg", tags=["listings"])

require_admin = require_role(UserRole.ADMIN)
require_publisher = require_role(UserRole.ADMIN, UserRole.OWNER)


class ToggleStatusRequest(BaseModel):
    field: str = Field(..., description="published, featured or verified")


class ListingStats(BaseModel):
    total: int
    published: int
    draft: int
    featured: int
    verified: int
    boys: int
    girls: int
    coed: int
    family: int


class RatingSummaryResponse(CamelModel):
    rating: float
    review_count: int


def _to_response(listing: Listing) -> ListingResponse:
    return ListingResponse.model_validate(listing)


def _resolve(identifier: str, store: ListingStore, include_unpublished: bool = False) -> Listing:
    return ListingResolver(store, include_unpublished=include_unpublished).resolve(identifier).listing


def _get_by_id(listing_id: UUID, store: ListingStore) -> Listing:
    """Primary key lookup for routes that change a listing."""
    listing = store.get(listing_id)
    if listing is None:
        raise NotFoundException("Listing", str(listing_id))
    return listing


@router.get("", response_model=PageResponse[ListingResponse])
def list_listings(
    type: Optional[str] = Query(None, description="Listing type or 'all'"),
    city: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    min_price: Optional[str] = Query(None, alias="minPrice"),
    max_price: Optional[str] = Query(None, alias="maxPrice"),
    admin: Optional[str] = Query(None, description="Include unpublished listings (admin only)"),
    published: Optional[str] = Query(None),
    featured: Optional[str] = Query(None),
    verified: Optional[str] = Query(None),
    availability: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    page: int = Query(1),
    limit: Optional[int] = Query(None),
    current_user: Optional[User] = Depends(get_optional_user),
    store: ListingStore = Depends(get_listing_store),
):
    """
    List listings with filters, sorting and pagination.

    Non-admin requests only ever see published listings.
    """
    is_admin_request = parse_flag(admin)
    if is_admin_request:
        if current_user is None:
            raise UnauthorizedException("Not authorized, no token")
        if current_user.role != UserRole.ADMIN:
            raise ForbiddenException("Admin access required")

    query = ListingQuery.from_params(
        type=type,
        city=city,
        search=search,
        min_price=min_price,
        max_price=max_price,
        admin=is_admin_request,
        published=published,
        featured=featured,
        verified=verified,
        availability=availability,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )

    try:
        result = ListingQueryBuilder(store).execute(query)
    except ServiceUnavailableException as exc:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "message": exc.message,
                "data": [],
                "pagination": Pagination.empty(query.page, query.limit).to_dict(),
            },
        )

    return PageResponse[ListingResponse](
        data=[_to_response(listing) for listing in result.items],
        pagination=PaginationResponse.from_pagination(result.pagination),
    )


@router.get("/search", response_model=DataResponse[List[ListingResponse]])
def quick_search(
    q: Optional[str] = Query(None, description="Matches name, address, city or description"),
    location: Optional[str] = Query(None, description="Matches address or city"),
    type: Optional[ListingType] = Query(None),
    store: ListingStore = Depends(get_listing_store),
):
    """Newest published listings matching q and location (at most 20)."""
    listings = ListingQueryBuilder(store).quick_search(
        q=(q or "").strip() or None,
        location=(location or "").strip() or None,
        listing_type=type,
    )
    return DataResponse[List[ListingResponse]](data=[_to_response(listing) for listing in listings])


@router.get("/stats", response_model=DataResponse[ListingStats])
def listing_stats(
    _admin: User = Depends(require_admin),
    store: ListingStore = Depends(get_listing_store),
):
    stats: Dict[str, int] = ListingService(store).stats()
    return DataResponse[ListingStats](data=ListingStats(**stats))


@router.post(
    "/sample-data",
    response_model=DataResponse[List[ListingResponse]],
    status_code=status.HTTP_201_CREATED,
)
def add_sample_data(
    admin_user: User = Depends(require_admin),
    store: ListingStore = Depends(get_listing_store),
):
    """Seed the demo listings."""
    listings = ListingService(store).seed_samples(admin_user)
    return DataResponse[List[ListingResponse]](
        data=[_to_response(listing) for listing in listings],
        message=f"{len(listings)} sample listings added",
    )


@router.get("/{identifier}", response_model=DataResponse[ListingResponse])
def get_listing(
    identifier: str,
    current_user: Optional[User] = Depends(get_optional_user),
    store: ListingStore = Depends(get_listing_store),
):
    """
    Resolve a listing by id, slug, name or search term.

    Name and search-term matches only see published listings unless the
    caller is an admin.

    Returns:
        200 with the listing, 400 for a blank or placeholder identifier,
        404 when nothing matches
    """
    is_admin = current_user is not None and current_user.role == UserRole.ADMIN
    listing = _resolve(identifier, store, include_unpublished=is_admin)
    return DataResponse[ListingResponse](data=_to_response(listing))


@router.post("", response_model=DataResponse[ListingResponse], status_code=status.HTTP_201_CREATED)
def create_listing(
    payload: ListingCreate,
    current_user: User = Depends(require_publisher),
    store: ListingStore = Depends(get_listing_store),
):
    listing = ListingService(store).create(payload, current_user)
    return DataResponse[ListingResponse](data=_to_response(listing), message="Listing created successfully")


@router.put("/{listing_id}", response_model=DataResponse[ListingResponse])
def update_listing(
    listing_id: UUID,
    patch: ListingPatch,
    current_user: User = Depends(require_publisher),
    store: ListingStore = Depends(get_listing_store),
):
    listing = _get_by_id(listing_id, store)
    listing = ListingService(store).update(listing, patch, current_user)
    return DataResponse[ListingResponse](data=_to_response(listing), message="Listing updated successfully")


@router.patch("/{listing_id}/toggle-status", response_model=DataResponse[ListingResponse])
def toggle_listing_status(
    listing_id: UUID,
    request: ToggleStatusRequest,
    _admin: User = Depends(require_admin),
    store: ListingStore = Depends(get_listing_store),
):
    listing = _get_by_id(listing_id, store)
    listing = ListingService(store).toggle(listing, request.field)
    state = "enabled" if getattr(listing, request.field) else "disabled"
    return DataResponse[ListingResponse](
        data=_to_response(listing),
        message=f"{request.field} {state}",
    )


@router.post("/{listing_id}/recompute-rating", response_model=DataResponse[RatingSummaryResponse])
def recompute_rating(
    listing_id: UUID,
    _admin: User = Depends(require_admin),
    store: ListingStore = Depends(get_listing_store),
    reviews: ReviewStore = Depends(get_review_store),
):
    """Force a rating recomputation for one listing."""
    listing = _get_by_id(listing_id, store)
    summary = RatingAggregator(store, reviews).recompute(listing.id)
    return DataResponse[RatingSummaryResponse](
        data=RatingSummaryResponse(rating=summary.rating, review_count=summary.review_count)
    )


@router.delete("/{listing_id}", response_model=MessageResponse)
def delete_listing(
    listing_id: UUID,
    _admin: User = Depends(require_admin),
    store: ListingStore = Depends(get_listing_store),
):
    listing = _get_by_id(listing_id, store)
    ListingService(store).delete(listing)
    return MessageResponse(message="Listing deleted successfully")

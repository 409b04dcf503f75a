"""
Review routes.

Creating, editing or deleting a review recomputes the listing's rating.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import AliasChoices, Field

from pgfinder.api.dependencies import (
    get_current_user,
    get_listing_store,
    get_review_store,
)
from pgfinder.api.schemas import (
    CamelModel,
    DataResponse,
    MessageResponse,
    PageResponse,
    PaginationResponse,
)
from pgfinder.models.reviews import Review
from pgfinder.models.users import User
from pgfinder.services.listing_store import ListingStore
from pgfinder.services.review_service import ReviewService
from pgfinder.services.review_store import ReviewStore


router = APIRouter(prefix="/api/reviews", tags=["reviews"])


class ReviewCreate(CamelModel):
    listing_id: UUID = Field(..., validation_alias=AliasChoices("pgId", "listingId", "listing_id"))
    rating: int = Field(..., ge=1, le=5)
    title: str = Field(..., min_length=1, max_length=100)
    comment: str = Field(..., min_length=1, max_length=1000)


class ReviewUpdate(CamelModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    comment: Optional[str] = Field(None, min_length=1, max_length=1000)


class ReplyCreate(CamelModel):
    comment: str = Field(..., min_length=1, max_length=500)


class ReplyResponse(CamelModel):
    id: UUID
    user_id: UUID
    comment: str
    created_at: datetime


class ReviewResponse(CamelModel):
    id: UUID
    user_id: UUID
    listing_id: UUID
    rating: int
    title: str
    comment: str
    likes: int
    replies: List[ReplyResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class LikeResponse(CamelModel):
    likes: int


def get_review_service(
    listings: ListingStore = Depends(get_listing_store),
    reviews: ReviewStore = Depends(get_review_store),
) -> ReviewService:
    return ReviewService(listings, reviews)


def _to_response(review: Review) -> ReviewResponse:
    return ReviewResponse.model_validate(review)


@router.post("", response_model=DataResponse[ReviewResponse], status_code=status.HTTP_201_CREATED)
def create_review(
    payload: ReviewCreate,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    """
    Review a listing.

    Raises:
        404: listing not found
        409: user already reviewed this listing
    """
    review = service.create(
        current_user,
        payload.listing_id,
        rating=payload.rating,
        title=payload.title,
        comment=payload.comment,
    )
    return DataResponse[ReviewResponse](data=_to_response(review), message="Review added successfully")


@router.get("/pg/{listing_id}", response_model=PageResponse[ReviewResponse])
def list_listing_reviews(
    listing_id: UUID,
    sort: str = Query("recent", description="recent, helpful or rating"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: ReviewService = Depends(get_review_service),
):
    reviews, pagination = service.list_for_listing(listing_id, sort=sort, page=page, limit=limit)
    return PageResponse[ReviewResponse](
        data=[_to_response(review) for review in reviews],
        pagination=PaginationResponse.from_pagination(pagination),
    )


@router.get("/my-reviews", response_model=DataResponse[List[ReviewResponse]])
def my_reviews(
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    reviews = service.list_for_user(current_user)
    return DataResponse[List[ReviewResponse]](data=[_to_response(review) for review in reviews])


@router.put("/{review_id}", response_model=DataResponse[ReviewResponse])
def update_review(
    review_id: UUID,
    payload: ReviewUpdate,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    review = service.update(
        service.get(review_id),
        current_user,
        rating=payload.rating,
        title=payload.title,
        comment=payload.comment,
    )
    return DataResponse[ReviewResponse](data=_to_response(review), message="Review updated successfully")


@router.delete("/{review_id}", response_model=MessageResponse)
def delete_review(
    review_id: UUID,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    service.delete(service.get(review_id), current_user)
    return MessageResponse(message="Review deleted successfully")


@router.post("/{review_id}/like", response_model=DataResponse[LikeResponse])
def like_review(
    review_id: UUID,
    _user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    likes = service.like(service.get(review_id))
    return DataResponse[LikeResponse](data=LikeResponse(likes=likes))


@router.post("/{review_id}/reply", response_model=DataResponse[ReviewResponse])
def reply_to_review(
    review_id: UUID,
    payload: ReplyCreate,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    review = service.reply(service.get(review_id), current_user, payload.comment)
    return DataResponse[ReviewResponse](data=_to_response(review), message="Reply added successfully")

"""Listing report routes."""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import AliasChoices, Field
from sqlalchemy.orm import Session

from pgfinder.api.dependencies import get_current_user, get_db, require_role
from pgfinder.api.schemas import CamelModel, DataResponse
from pgfinder.models.reports import ReportStatus
from pgfinder.models.users import User, UserRole
from pgfinder.services.report_service import ReportService


router = APIRouter(prefix="/api/reports", tags=["reports"])


class ReportCreate(CamelModel):
    listing_id: UUID = Field(..., validation_alias=AliasChoices("pgId", "listingId", "listing_id"))
    reason: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)
    contact_info: Optional[str] = Field(None, max_length=255)


class ReportStatusUpdate(CamelModel):
    status: ReportStatus


class ReportResponse(CamelModel):
    id: UUID
    listing_id: UUID
    reported_by: UUID
    reason: str
    description: Optional[str] = None
    contact_info: Optional[str] = None
    status: ReportStatus
    created_at: datetime
    updated_at: datetime


def get_report_service(db: Session = Depends(get_db)) -> ReportService:
    return ReportService(db)


@router.post("", response_model=DataResponse[ReportResponse], status_code=status.HTTP_201_CREATED)
def report_listing(
    payload: ReportCreate,
    current_user: User = Depends(get_current_user),
    service: ReportService = Depends(get_report_service),
):
    report = service.create(
        current_user,
        payload.listing_id,
        reason=payload.reason,
        description=payload.description,
        contact_info=payload.contact_info,
    )
    return DataResponse[ReportResponse](
        data=ReportResponse.model_validate(report),
        message="Report submitted successfully",
    )


@router.get("", response_model=DataResponse[List[ReportResponse]])
def list_reports(
    status_filter: Optional[ReportStatus] = Query(None, alias="status"),
    _admin: User = Depends(require_role(UserRole.ADMIN)),
    service: ReportService = Depends(get_report_service),
):
    reports = service.list(status_filter)
    return DataResponse[List[ReportResponse]](
        data=[ReportResponse.model_validate(report) for report in reports]
    )


@router.put("/{report_id}/status", response_model=DataResponse[ReportResponse])
def update_report_status(
    report_id: UUID,
    payload: ReportStatusUpdate,
    _admin: User = Depends(require_role(UserRole.ADMIN)),
    service: ReportService = Depends(get_report_service),
):
    report = service.set_status(report_id, payload.status)
    return DataResponse[ReportResponse](
        data=ReportResponse.model_validate(report),
        message="Report status updated",
    )

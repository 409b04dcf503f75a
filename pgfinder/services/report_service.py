"""Listing reports raised by users for moderation."""
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from pgfinder.api.middleware.error_handler import NotFoundException
from pgfinder.lib.logging import get_logger
from pgfinder.models.listings import Listing
from pgfinder.models.reports import Report, ReportStatus
from pgfinder.models.users import User

logger = get_logger(__name__)


class ReportService:

    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        user: User,
        listing_id: UUID,
        reason: str,
        description: Optional[str] = None,
        contact_info: Optional[str] = None,
    ) -> Report:
        if self.session.get(Listing, listing_id) is None:
            raise NotFoundException("Listing", str(listing_id))

        report = Report(
            listing_id=listing_id,
            reported_by=user.id,
            reason=reason,
            description=description,
            contact_info=contact_info,
            status=ReportStatus.PENDING,
        )
        self.session.add(report)
        self.session.commit()
        self.session.refresh(report)

        logger.info(
            "Listing reported",
            extra={"report_id": str(report.id), "listing_id": str(listing_id)},
        )
        return report

    def list(self, status: Optional[ReportStatus] = None) -> List[Report]:
        stmt = select(Report).order_by(Report.created_at.desc(), Report.id.desc())
        if status is not None:
            stmt = stmt.where(Report.status == status)
        return list(self.session.scalars(stmt))

    def set_status(self, report_id: UUID, status: ReportStatus) -> Report:
        report = self.session.get(Report, report_id)
        if report is None:
            raise NotFoundException("Report", str(report_id))

        report.status = status
        self.session.commit()
        self.session.refresh(report)
        logger.info(
            "Report status changed",
            extra={"report_id": str(report.id), "status": status.value},
        )
        return report

"""Admin dashboard endpoints: companies, statistics, exports and bulk email."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from fastapi.concurrency import run_in_threadpool

from registry.api.deps import (
    get_company_registry,
    get_notification_service,
    get_record_store,
    get_reporting_service,
)
from registry.api.routes import shareholders
from registry.api.routes.auth import AuthenticatedUser, require_role
from registry.core.config import get_settings
from registry.schemas.registration import StatisticsRead
from registry.schemas.shareholder import (
    BulkEmailRequest,
    BulkEmailResponse,
    CompanyBreakdown,
    CompanySummary,
)
from registry.services.companies import CompanyRegistry, normalise_company
from registry.services.errors import UnsupportedExportFormatError
from registry.services.notifications import NotificationService
from registry.services.records import RecordStore
from registry.services.reporting import ReportingService

logger = logging.getLogger(__name__)

router = APIRouter()
router.include_router(shareholders.router, prefix="/companies")


def _known_companies(store: RecordStore, registry: CompanyRegistry) -> list[str]:
    companies = [normalise_company(company) for company in registry.supported_companies()]
    companies.extend(company for company in store.list_companies() if company not in companies)
    return companies


@router.get("/companies", response_model=list[CompanySummary])
def list_companies(
    store: RecordStore = Depends(get_record_store),
    registry: CompanyRegistry = Depends(get_company_registry),
    user: AuthenticatedUser = Depends(require_role("ADMIN", "COMPLIANCE")),
) -> list[CompanySummary]:
    return [
        CompanySummary(company=company, display_name=registry.get_display_name(company))
        for company in _known_companies(store, registry)
    ]


@router.get("/statistics", response_model=CompanyBreakdown)
def get_statistics(
    reporting: ReportingService = Depends(get_reporting_service),
    registry: CompanyRegistry = Depends(get_company_registry),
    user: AuthenticatedUser = Depends(require_role("ADMIN", "COMPLIANCE")),
) -> CompanyBreakdown:
    breakdown = reporting.get_all_statistics()
    missing = [
        company
        for company in (normalise_company(item) for item in registry.supported_companies())
        if company not in breakdown
    ]
    breakdown.update(reporting.get_all_statistics(missing))
    return CompanyBreakdown(
        companies={
            company: StatisticsRead.from_statistics(statistics)
            for company, statistics in sorted(breakdown.items())
        }
    )


@router.get("/companies/{company}/export")
def export_shareholders(
    company: str,
    format: str = Query(default="csv"),
    search: str | None = Query(default=None, max_length=255),
    ids: list[int] | None = Query(default=None),
    reporting: ReportingService = Depends(get_reporting_service),
    user: AuthenticatedUser = Depends(require_role("ADMIN", "COMPLIANCE")),
) -> Response:
    try:
        export = reporting.export(
            normalise_company(company), format, search_term=search, record_ids=ids
        )
    except UnsupportedExportFormatError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    logger.info(
        "shareholder export generated",
        extra={"company": company, "format": format, "actor": user.email},
    )
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": f'attachment; filename="{export.filename}"'},
    )


@router.post("/companies/{company}/emails", response_model=BulkEmailResponse)
async def send_bulk_email(
    company: str,
    payload: BulkEmailRequest,
    store: RecordStore = Depends(get_record_store),
    notifications: NotificationService = Depends(get_notification_service),
    user: AuthenticatedUser = Depends(require_role("ADMIN")),
) -> BulkEmailResponse:
    if not get_settings().email_notifications:
        return BulkEmailResponse(sent=0)
    records = await run_in_threadpool(
        store.find_all, normalise_company(company), record_ids=payload.ids
    )
    sent = await notifications.send_bulk(records, payload.subject, payload.html_body)
    logger.info(
        "bulk email sent",
        extra={"company": company, "recipients": len(records), "sent": sent, "actor": user.email},
    )
    return BulkEmailResponse(sent=sent)


__all__ = ["export_shareholders", "get_statistics", "list_companies", "router", "send_bulk_email"]

"""Public registration endpoints; no authentication required."""
from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Request, status
from fastapi.responses import JSONResponse

from registry.api.deps import (
    get_company_registry,
    get_notification_service,
    get_record_store,
    get_reporting_service,
    get_validation_guard,
    resolve_provenance,
)
from registry.core.config import get_settings
from registry.schemas.registration import (
    FormConfigRead,
    RegistrationAccepted,
    RegistrationMessage,
    RegistrationRejected,
    RegistrationRequest,
    StatisticsRead,
)
from registry.services.companies import CompanyRegistry, normalise_company
from registry.services.intake import IntakeService, IntakeStatus
from registry.services.notifications import NotificationService, OutboundEmail
from registry.services.records import RecordStore
from registry.services.reporting import ReportingService
from registry.services.validation import ValidationGuard

router = APIRouter()

_STATUS_CODES = {
    IntakeStatus.DUPLICATE: status.HTTP_409_CONFLICT,
    IntakeStatus.FAILED: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@router.get("/{company}/form", response_model=FormConfigRead)
def get_form_config(
    company: str, registry: CompanyRegistry = Depends(get_company_registry)
) -> FormConfigRead:
    return FormConfigRead.from_config(registry.get_form_config(company))


@router.get("/{company}/statistics", response_model=StatisticsRead)
def get_company_statistics(
    company: str, reporting: ReportingService = Depends(get_reporting_service)
) -> StatisticsRead:
    return StatisticsRead.from_statistics(reporting.get_statistics(normalise_company(company)))


@router.post(
    "/{company}/registrations",
    response_model=RegistrationAccepted,
    status_code=status.HTTP_201_CREATED,
    responses={
        status.HTTP_409_CONFLICT: {"model": RegistrationMessage},
        status.HTTP_422_UNPROCESSABLE_ENTITY: {"model": RegistrationRejected},
        status.HTTP_503_SERVICE_UNAVAILABLE: {"model": RegistrationMessage},
    },
)
def submit_registration(
    company: str,
    payload: RegistrationRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    store: RecordStore = Depends(get_record_store),
    guard: ValidationGuard = Depends(get_validation_guard),
    registry: CompanyRegistry = Depends(get_company_registry),
    notifications: NotificationService = Depends(get_notification_service),
) -> RegistrationAccepted | JSONResponse:
    def dispatch(message: OutboundEmail) -> None:
        background_tasks.add_task(notifications.deliver, message)

    service = IntakeService(
        store=store,
        guard=guard,
        registry=registry,
        settings=get_settings(),
        dispatch=dispatch,
    )
    result = service.submit(payload.to_submission(company), resolve_provenance(request))

    if result.status is IntakeStatus.INVALID:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=RegistrationRejected(errors=list(result.errors)).model_dump(),
        )
    if result.status is not IntakeStatus.ACCEPTED:
        return JSONResponse(
            status_code=_STATUS_CODES[result.status],
            content=RegistrationMessage(message=result.message or "").model_dump(),
        )
    return RegistrationAccepted(
        message=result.message or "",
        record_id=result.record_id,  # type: ignore[arg-type]
        statistics=(
            StatisticsRead.from_statistics(result.statistics) if result.statistics is not None else None
        ),
    )


__all__ = ["get_company_statistics", "get_form_config", "router", "submit_registration"]

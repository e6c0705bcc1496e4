"""Public registration intake: validate, guard, persist, acknowledge."""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from sqlalchemy.exc import SQLAlchemyError

from registry.core.config import Settings
from registry.models import ShareholderRecord
from registry.obs.metrics import NOTIFICATION_COUNTER, record_registration
from registry.obs.tracing import traced_operation
from registry.services.companies import CompanyRegistry, normalise_company
from registry.services.errors import DuplicateRegistrationError, PersistenceError
from registry.services.notifications import (
    OutboundEmail,
    build_admin_notification,
    build_confirmation_email,
)
from registry.services.records import CompanyStatistics, RecordStore
from registry.services.validation import (
    Provenance,
    RegistrationSubmission,
    ValidationGuard,
    prepare_record,
)

logger = logging.getLogger(__name__)

SAVE_FAILED_MESSAGE = "Failed to save data. Please try again."
OTHER_COMPANY_LABEL = "other"

Dispatch = Callable[[OutboundEmail], None]


class IntakeStatus(str, Enum):
    ACCEPTED = "accepted"
    INVALID = "invalid"
    DUPLICATE = "duplicate"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class IntakeResult:
    status: IntakeStatus
    errors: tuple[str, ...] = ()
    message: str | None = None
    record_id: int | None = None
    statistics: CompanyStatistics | None = None

    @property
    def accepted(self) -> bool:
        return self.status is IntakeStatus.ACCEPTED


class IntakeService:
    """Runs one public submission through to an acknowledgement.

    Emails are handed to ``dispatch`` after the record is stored; whatever
    happens there never changes the outcome returned to the submitter.
    """

    def __init__(
        self,
        *,
        store: RecordStore,
        guard: ValidationGuard,
        registry: CompanyRegistry,
        settings: Settings,
        dispatch: Dispatch | None = None,
    ) -> None:
        self._store = store
        self._guard = guard
        self._registry = registry
        self._settings = settings
        self._dispatch = dispatch

    def submit(self, submission: RegistrationSubmission, provenance: Provenance) -> IntakeResult:
        company = normalise_company(submission.company)
        with traced_operation("registry.intake.submit", company=company) as span:
            result = self._submit(submission, provenance, company)
            span.set_attribute("registry.intake.status", result.status.value)
        record_registration(self._metric_label(company), result.status.value)
        return result

    def _submit(
        self, submission: RegistrationSubmission, provenance: Provenance, company: str
    ) -> IntakeResult:
        try:
            guard_result = self._guard.evaluate(submission)
        except (PersistenceError, SQLAlchemyError):
            logger.exception("duplicate check failed", extra={"company": company})
            return IntakeResult(status=IntakeStatus.FAILED, message=SAVE_FAILED_MESSAGE)
        if guard_result.errors:
            return IntakeResult(status=IntakeStatus.INVALID, errors=tuple(guard_result.errors))
        if guard_result.duplicate is not None:
            return IntakeResult(status=IntakeStatus.DUPLICATE, message=str(guard_result.duplicate))

        try:
            record = self._store.insert(prepare_record(submission, provenance))
        except DuplicateRegistrationError:
            # A concurrent submission won the race past the guard.
            return IntakeResult(status=IntakeStatus.DUPLICATE, message=self._guard.duplicate_message)
        except PersistenceError:
            logger.error(
                "registration could not be stored",
                extra={"company": company, "ip_address": provenance.ip_address},
            )
            return IntakeResult(status=IntakeStatus.FAILED, message=SAVE_FAILED_MESSAGE)

        logger.info("registration stored", extra={"company": company, "record_id": record.id})
        statistics: CompanyStatistics | None
        try:
            statistics = self._store.statistics(company)
        except (PersistenceError, SQLAlchemyError):
            # The record is already committed; report success without totals.
            logger.exception(
                "statistics unavailable after registration",
                extra={"company": company, "record_id": record.id},
            )
            statistics = None
        self._notify(record)
        return IntakeResult(
            status=IntakeStatus.ACCEPTED,
            message=self._registry.get_success_message(company),
            record_id=record.id,
            statistics=statistics,
        )

    def _metric_label(self, company: str) -> str:
        supported = {normalise_company(item) for item in self._registry.supported_companies()}
        return company if company in supported else OTHER_COMPANY_LABEL

    def _notify(self, record: ShareholderRecord) -> None:
        if self._dispatch is None or not self._settings.email_notifications:
            return
        messages = [
            build_confirmation_email(record, self._registry, self._settings),
            build_admin_notification(record, self._registry, self._settings),
        ]
        for message in messages:
            if message is None:
                continue
            try:
                self._dispatch(message)
            except Exception:
                NOTIFICATION_COUNTER.labels(kind=message.kind, outcome="dispatch_failed").inc()
                logger.exception(
                    "email dispatch failed", extra={"kind": message.kind, "record_id": record.id}
                )


__all__ = [
    "Dispatch",
    "IntakeResult",
    "IntakeService",
    "IntakeStatus",
    "OTHER_COMPANY_LABEL",
    "SAVE_FAILED_MESSAGE",
]

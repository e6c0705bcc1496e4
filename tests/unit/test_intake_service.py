from __future__ import annotations

from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from registry.core.config import Settings, get_settings
from registry.obs.metrics import REGISTRATION_COUNTER
from registry.services.companies import CompanyRegistry
from registry.services.errors import DuplicateRegistrationError, PersistenceError
from registry.services.intake import (
    OTHER_COMPANY_LABEL,
    SAVE_FAILED_MESSAGE,
    IntakeService,
    IntakeStatus,
)
from registry.services.notifications import OutboundEmail
from registry.services.records import RecordStore
from registry.services.validation import Provenance, RegistrationSubmission, ValidationGuard


def _settings(**overrides: object) -> Settings:
    return get_settings().model_copy(update=overrides)


def _service(
    store: RecordStore,
    sent: list[OutboundEmail] | None = None,
    *,
    settings: Settings | None = None,
) -> IntakeService:
    settings = settings or _settings()
    return IntakeService(
        store=store,
        guard=ValidationGuard(store, support_email=settings.support_email),
        registry=CompanyRegistry(brand_name=settings.brand_name),
        settings=settings,
        dispatch=sent.append if sent is not None else None,
    )


def _submission(company: str = "atos", **overrides: object) -> RegistrationSubmission:
    fields: dict[str, object] = {
        "company": company,
        "name": "Jean Dupont",
        "email": "jean.dupont@example.com",
        "phone": "+33612345678",
        "share_count": "100",
        "purchase_price": "10.50",
    }
    fields.update(overrides)
    return RegistrationSubmission(**fields)  # type: ignore[arg-type]


PROVENANCE = Provenance(ip_address="203.0.113.7", country="FR")


def test_accepted_submission_returns_statistics_and_success_message(store: RecordStore) -> None:
    sent: list[OutboundEmail] = []

    result = _service(store, sent).submit(_submission(), PROVENANCE)

    assert result.status is IntakeStatus.ACCEPTED
    assert result.accepted
    assert result.record_id is not None
    assert result.message is not None and result.message.startswith("Vos données")
    assert result.statistics is not None
    assert result.statistics.total_shares == 100
    assert result.statistics.shareholder_count == 1
    assert result.statistics.total_participation == Decimal("1050.00")
    assert [message.recipient for message in sent] == ["jean.dupont@example.com"]
    assert sent[0].subject == "UPRA Registration - ATOS"
    assert store.find_by_id(result.record_id, "atos").country == "FR"


def test_invalid_submission_is_not_persisted(store: RecordStore) -> None:
    sent: list[OutboundEmail] = []

    result = _service(store, sent).submit(_submission(name=" ", email="broken"), PROVENANCE)

    assert result.status is IntakeStatus.INVALID
    assert result.errors == ("Please enter your name", "Please enter a valid email address")
    assert store.count_total("atos") == 0
    assert sent == []


def test_duplicate_submission_reports_generic_message(store: RecordStore) -> None:
    service = _service(store)
    service.submit(_submission(), PROVENANCE)

    result = service.submit(_submission(email="different@example.com"), PROVENANCE)

    assert result.status is IntakeStatus.DUPLICATE
    assert result.message is not None and "admin@upra.fr" in result.message
    assert store.count_total("atos") == 1


def test_same_person_can_register_for_each_company(store: RecordStore) -> None:
    service = _service(store)

    assert service.submit(_submission("atos"), PROVENANCE).accepted
    assert service.submit(_submission("urpea"), PROVENANCE).accepted


def test_store_level_duplicate_is_reported_as_duplicate(
    store: RecordStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    def racing_insert(values: object) -> None:
        raise DuplicateRegistrationError("constraint")

    monkeypatch.setattr(store, "insert", racing_insert)

    result = _service(store).submit(_submission(), PROVENANCE)

    assert result.status is IntakeStatus.DUPLICATE
    assert result.message is not None and result.message.startswith("Another entry matched")


def test_persistence_failure_returns_generic_failure(
    store: RecordStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    def broken_insert(values: object) -> None:
        raise PersistenceError("disk full")

    monkeypatch.setattr(store, "insert", broken_insert)

    result = _service(store).submit(_submission(), PROVENANCE)

    assert result.status is IntakeStatus.FAILED
    assert result.message == SAVE_FAILED_MESSAGE
    assert result.record_id is None


def test_dispatch_failure_does_not_change_the_outcome(store: RecordStore) -> None:
    def failing_dispatch(message: OutboundEmail) -> None:
        raise RuntimeError("queue unavailable")

    settings = _settings()
    service = IntakeService(
        store=store,
        guard=ValidationGuard(store, support_email=settings.support_email),
        registry=CompanyRegistry(),
        settings=settings,
        dispatch=failing_dispatch,
    )

    result = service.submit(_submission(), PROVENANCE)

    assert result.status is IntakeStatus.ACCEPTED
    assert store.count_total("atos") == 1


def test_admin_alert_is_dispatched_when_enabled(store: RecordStore) -> None:
    sent: list[OutboundEmail] = []
    settings = _settings(admin_notifications=True, admin_email="ops@upra.fr")

    _service(store, sent, settings=settings).submit(_submission("urpea"), PROVENANCE)

    assert [(message.kind, message.recipient) for message in sent] == [
        ("confirmation", "jean.dupont@example.com"),
        ("admin", "ops@upra.fr"),
    ]


def test_notifications_can_be_disabled(store: RecordStore) -> None:
    sent: list[OutboundEmail] = []
    settings = _settings(email_notifications=False)

    result = _service(store, sent, settings=settings).submit(_submission(), PROVENANCE)

    assert result.accepted
    assert sent == []


def test_duplicate_check_failure_returns_generic_failure(
    store: RecordStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    def unavailable(*args: object) -> None:
        raise OperationalError("SELECT", {}, Exception("db down"))

    monkeypatch.setattr(store, "find_duplicate", unavailable)

    result = _service(store).submit(_submission(), PROVENANCE)

    assert result.status is IntakeStatus.FAILED
    assert result.message == SAVE_FAILED_MESSAGE


def test_statistics_failure_after_insert_still_accepts(
    store: RecordStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    sent: list[OutboundEmail] = []

    def unavailable(company: str) -> None:
        raise OperationalError("SELECT", {}, Exception("db down"))

    monkeypatch.setattr(store, "statistics", unavailable)

    result = _service(store, sent).submit(_submission(), PROVENANCE)

    assert result.status is IntakeStatus.ACCEPTED
    assert result.record_id is not None
    assert result.statistics is None
    assert store.count_total("atos") == 1
    assert [message.recipient for message in sent] == ["jean.dupont@example.com"]


def test_unsupported_companies_share_one_metric_label(store: RecordStore) -> None:
    service = _service(store)
    before = REGISTRATION_COUNTER.labels(company=OTHER_COMPANY_LABEL, outcome="invalid")._value.get()

    for index in range(3):
        service.submit(_submission(f"junk{index}", name=""), PROVENANCE)

    after = REGISTRATION_COUNTER.labels(company=OTHER_COMPANY_LABEL, outcome="invalid")._value.get()
    labels = {
        sample.labels["company"]
        for metric in REGISTRATION_COUNTER.collect()
        for sample in metric.samples
    }
    assert after - before == 3
    assert not any(label.startswith("junk") for label in labels)

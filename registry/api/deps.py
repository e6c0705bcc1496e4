"""Common dependencies for API routes."""
from __future__ import annotations

import ipaddress
from collections.abc import Iterator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from registry.core.config import get_settings
from registry.db.session import SessionLocal
from registry.services.companies import CompanyRegistry
from registry.services.notifications import (
    NotificationService,
    NotificationTransport,
    SmtpTransport,
)
from registry.services.records import RecordStore
from registry.services.reporting import ReportingService
from registry.services.validation import UNKNOWN, Provenance, ValidationGuard

_COUNTRY_HEADERS = ("cf-ipcountry", "x-country-code")


def get_db_session() -> Iterator[Session]:
    """Yield a database session for FastAPI dependencies."""

    session: Session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def get_record_store(session: Session = Depends(get_db_session)) -> RecordStore:
    return RecordStore(session)


def get_company_registry() -> CompanyRegistry:
    settings = get_settings()
    return CompanyRegistry(supported=settings.supported_companies, brand_name=settings.brand_name)


def get_validation_guard(store: RecordStore = Depends(get_record_store)) -> ValidationGuard:
    return ValidationGuard(store, support_email=get_settings().support_email)


def get_reporting_service(store: RecordStore = Depends(get_record_store)) -> ReportingService:
    return ReportingService(store)


def get_notification_transport() -> NotificationTransport:
    return SmtpTransport(get_settings())


def get_notification_service(
    transport: NotificationTransport = Depends(get_notification_transport),
) -> NotificationService:
    return NotificationService(transport)


def _as_ip(value: str | None) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    if not value:
        return None
    try:
        return ipaddress.ip_address(value.strip())
    except ValueError:
        return None


def resolve_client_ip(request: Request) -> str:
    """Best-effort client address: explicit header, first public forwarded hop, then the peer."""

    explicit = _as_ip(request.headers.get("x-client-ip"))
    if explicit is not None:
        return str(explicit)

    forwarded = request.headers.get("x-forwarded-for", "")
    for hop in forwarded.split(","):
        address = _as_ip(hop)
        if address is not None and address.is_global:
            return str(address)

    peer = _as_ip(request.client.host if request.client else None)
    return str(peer) if peer is not None else UNKNOWN


def resolve_provenance(request: Request) -> Provenance:
    country = UNKNOWN
    for header in _COUNTRY_HEADERS:
        value = request.headers.get(header, "").strip()
        # Cloudflare reports XX for unknown locations.
        if value and value.upper() != "XX":
            country = value.upper()
            break
    return Provenance(ip_address=resolve_client_ip(request), country=country)


__all__ = [
    "get_company_registry",
    "get_db_session",
    "get_notification_service",
    "get_notification_transport",
    "get_record_store",
    "get_reporting_service",
    "get_validation_guard",
    "resolve_client_ip",
    "resolve_provenance",
]

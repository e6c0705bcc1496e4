"""Observability utilities."""

from .audit import AuditLogRecord, AuditMiddleware
from .metrics import (
    DATA_RETENTION_RECORD_COUNTER,
    NOTIFICATION_COUNTER,
    REGISTRATION_COUNTER,
    REQUEST_COUNTER,
    REQUEST_ERROR_COUNTER,
    REQUEST_LATENCY_SECONDS,
    PrometheusMiddleware,
    metrics_router,
    record_registration,
)
from .tracing import (
    initialise_tracing,
    instrument_fastapi_app,
    instrument_sqlalchemy_engine,
    traced_operation,
)

__all__ = [
    "AuditLogRecord",
    "AuditMiddleware",
    "DATA_RETENTION_RECORD_COUNTER",
    "NOTIFICATION_COUNTER",
    "PrometheusMiddleware",
    "REGISTRATION_COUNTER",
    "REQUEST_COUNTER",
    "REQUEST_ERROR_COUNTER",
    "REQUEST_LATENCY_SECONDS",
    "initialise_tracing",
    "instrument_fastapi_app",
    "instrument_sqlalchemy_engine",
    "metrics_router",
    "record_registration",
    "traced_operation",
]

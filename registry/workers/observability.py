"""Shared observability helpers for worker processes."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry.trace import Span

from registry.core.config import get_settings
from registry.obs import initialise_tracing, traced_operation


def configure_worker(service_name: str) -> None:
    """Initialise tracing for a worker process when enabled."""

    settings = get_settings()
    if settings.enable_tracing:
        initialise_tracing(
            service_name=service_name,
            endpoint=settings.otel_exporter_endpoint,
            instrument_logging=False,
        )


@contextmanager
def worker_span(name: str, **attributes: Any) -> Iterator[Span]:
    """Start a worker span tagged with the worker's attributes."""

    with traced_operation(name, **{"worker.name": name, **attributes}) as span:
        yield span


__all__ = ["configure_worker", "worker_span"]

"""Worker purging registrations past the configured retention window."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime

from registry.core.config import get_settings
from registry.core.logging import configure_logging
from registry.db.session import get_session
from registry.obs import DATA_RETENTION_RECORD_COUNTER
from registry.services.data_retention import DataRetentionReport, DataRetentionService
from registry.services.records import RecordStore
from registry.workers.observability import configure_worker, worker_span

LOGGER = logging.getLogger(__name__)

MIN_INTERVAL_SECONDS = 60


async def run_once(service: DataRetentionService) -> DataRetentionReport:
    """Execute a single retention cycle."""

    with worker_span("data_retention.cycle") as span:
        report = service.purge_expired_records(now=datetime.now(tz=UTC))
        span.set_attribute("data_retention.records_deleted", report.records_deleted)
        if report.records_deleted:
            DATA_RETENTION_RECORD_COUNTER.inc(report.records_deleted)
        LOGGER.info(
            "data retention cycle complete",
            extra={"records_deleted": report.records_deleted},
        )
    return report


async def run() -> None:
    """Run retention cycles forever at the configured cadence."""

    settings = get_settings()
    configure_worker("data-retention-worker")
    interval = max(MIN_INTERVAL_SECONDS, settings.data_retention_interval_seconds)
    if settings.data_retention_days <= 0:
        LOGGER.info("data retention disabled; records are kept indefinitely")
    LOGGER.info("starting data retention worker", extra={"interval_seconds": interval})
    while True:
        with get_session() as session:
            service = DataRetentionService(RecordStore(session), settings=settings)
            await run_once(service)
        await asyncio.sleep(interval)


def main() -> None:
    configure_logging()
    try:
        asyncio.run(run())
    except KeyboardInterrupt:  # pragma: no cover - manual shutdown
        LOGGER.info("data retention worker stopped")


if __name__ == "__main__":
    main()

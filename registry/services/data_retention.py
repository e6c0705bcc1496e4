"""Retention policy for stored registrations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from registry.core.config import Settings, get_settings
from registry.services.records import RecordStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DataRetentionReport:
    """Summary of a retention cycle."""

    records_deleted: int
    cutoff: datetime | None = None


class DataRetentionService:
    """Deletes registrations older than ``data_retention_days``.

    A retention of zero days keeps every record.
    """

    def __init__(self, store: RecordStore, *, settings: Settings | None = None) -> None:
        self._store = store
        self._settings = settings or get_settings()

    def cutoff(self, now: datetime | None = None) -> datetime | None:
        days = self._settings.data_retention_days
        if days <= 0:
            return None
        return (now or datetime.now(timezone.utc)) - timedelta(days=days)

    def purge_expired_records(self, *, now: datetime | None = None) -> DataRetentionReport:
        cutoff = self.cutoff(now)
        if cutoff is None:
            return DataRetentionReport(records_deleted=0)
        deleted = self._store.delete_older_than(cutoff)
        if deleted:
            logger.info(
                "expired registrations purged",
                extra={"records_deleted": deleted, "cutoff": cutoff.isoformat()},
            )
        return DataRetentionReport(records_deleted=deleted, cutoff=cutoff)


__all__ = ["DataRetentionReport", "DataRetentionService"]

"""Company-scoped persistence and aggregate queries for shareholder records."""
from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal

from sqlalchemy import ColumnElement, delete, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from registry.models import ShareholderRecord
from registry.models.base import utcnow
from registry.services.coercion import (
    clean_multiline,
    clean_text,
    coerce_amount,
    coerce_share_count,
    normalise_email,
    to_decimal,
)
from registry.services.errors import (
    DuplicateRegistrationError,
    PersistenceError,
    RecordNotFoundError,
)

logger = logging.getLogger(__name__)

SortDirection = Literal["asc", "desc"]

SORTABLE_COLUMNS: dict[str, Any] = {
    "id": ShareholderRecord.id,
    "name": ShareholderRecord.name,
    "email": ShareholderRecord.email,
    "share_count": ShareholderRecord.share_count,
    "purchase_price": ShareholderRecord.purchase_price,
    "sell_price": ShareholderRecord.sell_price,
    "loss": ShareholderRecord.loss,
    "created_at": ShareholderRecord.created_at,
}
_SORT_ALIASES = {
    "shareCount": "share_count",
    "stock": "share_count",
    "purchasePrice": "purchase_price",
    "sellPrice": "sell_price",
    "createdAt": "created_at",
    "stockholder_name": "name",
}
DEFAULT_SORT_FIELD = "id"
DEFAULT_SORT_DIRECTION: SortDirection = "desc"

EDITABLE_FIELDS = (
    "name",
    "email",
    "phone",
    "share_count",
    "purchase_price",
    "sell_price",
    "loss",
    "remarks",
)

_DUPLICATE_DETAIL = "Email or phone already registered for this company"


@dataclass(slots=True, frozen=True)
class CompanyStatistics:
    """Aggregate figures for one company, always derived from current rows."""

    total_shares: int
    shareholder_count: int
    total_participation: Decimal


@dataclass(slots=True, frozen=True)
class RecordQuery:
    """Parameters of an admin list request.

    ``sort_field`` and ``sort_direction`` usually come straight from query
    strings and are resolved against an allow-list, never interpolated.
    """

    company: str
    search_term: str | None = None
    sort_field: str | None = None
    sort_direction: str | None = None
    page_size: int = 25
    page_number: int = 1

    @property
    def offset(self) -> int:
        return (max(self.page_number, 1) - 1) * max(self.page_size, 1)


@dataclass(slots=True, frozen=True)
class RecordPage:
    records: list[ShareholderRecord]
    total_count: int


def resolve_sort_field(value: str | None) -> str:
    if not value:
        return DEFAULT_SORT_FIELD
    candidate = value.strip()
    candidate = _SORT_ALIASES.get(candidate, candidate)
    return candidate if candidate in SORTABLE_COLUMNS else DEFAULT_SORT_FIELD


def resolve_sort_direction(value: str | None) -> SortDirection:
    normalised = (value or "").strip().lower()
    if normalised in {"asc", "ascending"}:
        return "asc"
    if normalised in {"desc", "descending"}:
        return "desc"
    return DEFAULT_SORT_DIRECTION


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class RecordStore:
    """Owns the ``shareholder_records`` table.

    Every read and write is scoped by company. Mutations commit on success and
    roll the session back on failure, so a rejected insert never leaves a
    partial row behind.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    # -- writes -----------------------------------------------------------------

    def insert(self, values: Mapping[str, Any]) -> ShareholderRecord:
        """Persist a prepared record and return it with its assigned id."""

        record = ShareholderRecord(**values)
        with self._writing(context={"company": record.company}):
            self._session.add(record)
        self._session.refresh(record)
        return record

    def update(self, record_id: int, company: str, fields: Mapping[str, Any]) -> ShareholderRecord:
        record = self.find_by_id(record_id, company)
        changes = _editable_changes(fields)
        if not changes:
            return record
        with self._writing(context={"company": company, "record_id": record_id}):
            for field_name, value in changes.items():
                setattr(record, field_name, value)
            record.updated_at = utcnow()
        self._session.refresh(record)
        return record

    def delete(self, record_id: int, company: str) -> int:
        return self.delete_many([record_id], company)

    def delete_many(self, record_ids: Iterable[int], company: str) -> int:
        ids = sorted({int(record_id) for record_id in record_ids})
        if not ids:
            return 0
        with self._writing(context={"company": company, "record_ids": ids}):
            result = self._session.execute(
                delete(ShareholderRecord).where(
                    ShareholderRecord.company == company,
                    ShareholderRecord.id.in_(ids),
                )
            )
        return int(result.rowcount or 0)

    def delete_older_than(self, cutoff: datetime) -> int:
        with self._writing(context={"cutoff": cutoff.isoformat()}):
            result = self._session.execute(
                delete(ShareholderRecord).where(ShareholderRecord.created_at < cutoff)
            )
        return int(result.rowcount or 0)

    # -- reads ------------------------------------------------------------------

    def find_by_id(self, record_id: int, company: str) -> ShareholderRecord:
        record = self._session.get(ShareholderRecord, record_id)
        if record is None or record.company != company:
            raise RecordNotFoundError(f"Record '{record_id}' was not found for company '{company}'")
        return record

    def find_many(self, query: RecordQuery) -> RecordPage:
        conditions = self._conditions(query.company, query.search_term)
        column = SORTABLE_COLUMNS[resolve_sort_field(query.sort_field)]
        if resolve_sort_direction(query.sort_direction) == "asc":
            ordering = (column.asc(), ShareholderRecord.id.asc())
        else:
            ordering = (column.desc(), ShareholderRecord.id.desc())

        page_size = max(query.page_size, 1)
        statement = (
            select(ShareholderRecord)
            .where(*conditions)
            .order_by(*ordering)
            .limit(page_size)
            .offset(query.offset)
        )
        records = list(self._session.scalars(statement).all())
        total = self._session.scalar(
            select(func.count()).select_from(ShareholderRecord).where(*conditions)
        )
        return RecordPage(records=records, total_count=int(total or 0))

    def find_all(
        self,
        company: str,
        *,
        search_term: str | None = None,
        record_ids: Sequence[int] | None = None,
    ) -> list[ShareholderRecord]:
        """Return every matching record, newest first, without pagination."""

        conditions = self._conditions(company, search_term)
        if record_ids is not None:
            conditions.append(ShareholderRecord.id.in_([int(item) for item in record_ids]))
        statement = select(ShareholderRecord).where(*conditions).order_by(ShareholderRecord.id.desc())
        return list(self._session.scalars(statement).all())

    def find_duplicate(self, email: str, phone: str, company: str) -> int | None:
        statement = (
            select(ShareholderRecord.id)
            .where(
                ShareholderRecord.company == company,
                or_(ShareholderRecord.email == email, ShareholderRecord.phone == phone),
            )
            .limit(1)
        )
        return self._session.scalar(statement)

    def count_total(self, company: str) -> int:
        total = self._session.scalar(
            select(func.count()).select_from(ShareholderRecord).where(ShareholderRecord.company == company)
        )
        return int(total or 0)

    def sum_shares(self, company: str) -> int:
        total = self._session.scalar(
            select(func.coalesce(func.sum(ShareholderRecord.share_count), 0)).where(
                ShareholderRecord.company == company
            )
        )
        return int(total or 0)

    def sum_participation(self, company: str) -> Decimal:
        """Sum of ``purchase_price * share_count`` over the company's records."""

        total = self._session.scalar(
            select(func.sum(ShareholderRecord.purchase_price * ShareholderRecord.share_count)).where(
                ShareholderRecord.company == company
            )
        )
        return to_decimal(total)

    def statistics(self, company: str) -> CompanyStatistics:
        return CompanyStatistics(
            total_shares=self.sum_shares(company),
            shareholder_count=self.count_total(company),
            total_participation=self.sum_participation(company),
        )

    def company_breakdown(self) -> dict[str, CompanyStatistics]:
        statement = (
            select(
                ShareholderRecord.company,
                func.count(),
                func.coalesce(func.sum(ShareholderRecord.share_count), 0),
                func.sum(ShareholderRecord.purchase_price * ShareholderRecord.share_count),
            )
            .group_by(ShareholderRecord.company)
            .order_by(ShareholderRecord.company)
        )
        breakdown: dict[str, CompanyStatistics] = {}
        for company, count, shares, participation in self._session.execute(statement):
            breakdown[company] = CompanyStatistics(
                total_shares=int(shares or 0),
                shareholder_count=int(count or 0),
                total_participation=to_decimal(participation),
            )
        return breakdown

    def list_companies(self) -> list[str]:
        statement = select(ShareholderRecord.company).distinct().order_by(ShareholderRecord.company)
        return list(self._session.scalars(statement).all())

    # -- helpers ----------------------------------------------------------------

    @staticmethod
    def _conditions(company: str, search_term: str | None) -> list[ColumnElement[bool]]:
        conditions: list[ColumnElement[bool]] = [ShareholderRecord.company == company]
        term = (search_term or "").strip()
        if term:
            pattern = f"%{_escape_like(term)}%"
            conditions.append(
                or_(
                    ShareholderRecord.name.ilike(pattern, escape="\\"),
                    ShareholderRecord.email.ilike(pattern, escape="\\"),
                    ShareholderRecord.phone.ilike(pattern, escape="\\"),
                )
            )
        return conditions

    @contextmanager
    def _writing(self, *, context: dict[str, Any]) -> Iterator[None]:
        """Run a unit of work and commit it, translating database failures."""

        try:
            yield
            self._session.commit()
        except IntegrityError as exc:
            self._session.rollback()
            raise DuplicateRegistrationError(_DUPLICATE_DETAIL) from exc
        except SQLAlchemyError as exc:
            self._session.rollback()
            logger.exception("shareholder record write failed", extra=context)
            raise PersistenceError("Shareholder record could not be saved") from exc


def _editable_changes(fields: Mapping[str, Any]) -> dict[str, Any]:
    changes: dict[str, Any] = {}
    for field_name in EDITABLE_FIELDS:
        if field_name not in fields:
            continue
        value = fields[field_name]
        if field_name == "remarks":
            changes[field_name] = clean_multiline(value)
            continue
        if value is None:
            continue
        if field_name == "email":
            changes[field_name] = normalise_email(value)
        elif field_name == "share_count":
            changes[field_name] = coerce_share_count(value)
        elif field_name in {"purchase_price", "sell_price", "loss"}:
            changes[field_name] = coerce_amount(value)
        else:
            changes[field_name] = clean_text(value)
    return changes


__all__ = [
    "CompanyStatistics",
    "DEFAULT_SORT_DIRECTION",
    "DEFAULT_SORT_FIELD",
    "EDITABLE_FIELDS",
    "RecordPage",
    "RecordQuery",
    "RecordStore",
    "SORTABLE_COLUMNS",
    "resolve_sort_direction",
    "resolve_sort_field",
]

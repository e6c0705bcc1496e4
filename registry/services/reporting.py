"""Statistics and file exports for the admin surface."""
from __future__ import annotations

import csv
import io
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from html import escape

from registry.models import ShareholderRecord
from registry.services.errors import UnsupportedExportFormatError
from registry.services.records import CompanyStatistics, RecordStore

UTF8_BOM = "\ufeff"
EXPORT_HEADERS = (
    "ID",
    "Name",
    "Email",
    "Phone",
    "Stock",
    "Purchase Price",
    "Sell Price",
    "Loss",
    "IP",
    "Country",
    "Remarks",
    "Registration Date",
)


class ExportFormat(str, Enum):
    CSV = "csv"
    EXCEL = "excel"

    @classmethod
    def parse(cls, value: str | ExportFormat) -> ExportFormat:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise UnsupportedExportFormatError(f"Unsupported export format '{value}'") from exc

    @property
    def media_type(self) -> str:
        if self is ExportFormat.CSV:
            return "text/csv; charset=utf-8"
        return "application/vnd.ms-excel; charset=utf-8"

    @property
    def extension(self) -> str:
        return "csv" if self is ExportFormat.CSV else "xls"


@dataclass(slots=True, frozen=True)
class ExportFile:
    filename: str
    media_type: str
    content: bytes


def _amount(value: Decimal | None) -> str:
    return f"{(value or Decimal('0')):.2f}"


def _row(record: ShareholderRecord) -> list[str]:
    registered = record.created_at.strftime("%Y-%m-%d %H:%M:%S") if record.created_at else ""
    return [
        str(record.id),
        record.name,
        record.email,
        record.phone,
        str(record.share_count),
        _amount(record.purchase_price),
        _amount(record.sell_price),
        _amount(record.loss),
        record.ip_address,
        record.country,
        record.remarks or "",
        registered,
    ]


def _render_csv(records: Iterable[ShareholderRecord]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(EXPORT_HEADERS)
    for record in records:
        writer.writerow(_row(record))
    return buffer.getvalue()


def _render_table(records: Iterable[ShareholderRecord]) -> str:
    header = "".join(f"<th>{escape(name)}</th>" for name in EXPORT_HEADERS)
    parts = ['<table border="1">', f"<thead><tr>{header}</tr></thead>", "<tbody>"]
    for record in records:
        cells = "".join(f"<td>{escape(value)}</td>" for value in _row(record))
        parts.append(f"<tr>{cells}</tr>")
    parts.append("</tbody></table>")
    return "\n".join(parts)


def export_records(records: Sequence[ShareholderRecord], export_format: str | ExportFormat) -> bytes:
    """Render ``records`` in the given order; the output always starts with a BOM."""

    fmt = ExportFormat.parse(export_format)
    body = _render_csv(records) if fmt is ExportFormat.CSV else _render_table(records)
    return (UTF8_BOM + body).encode("utf-8")


def export_filename(company: str, export_format: str | ExportFormat, today: date | None = None) -> str:
    fmt = ExportFormat.parse(export_format)
    day = today or date.today()
    return f"{company}-shareholders-{day:%Y-%m-%d}.{fmt.extension}"


class ReportingService:
    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def get_statistics(self, company: str) -> CompanyStatistics:
        return self._store.statistics(company)

    def get_all_statistics(self, companies: Iterable[str] | None = None) -> dict[str, CompanyStatistics]:
        """Per-company figures; without ``companies`` every stored company is included."""

        if companies is None:
            return self._store.company_breakdown()
        return {company: self._store.statistics(company) for company in companies}

    def export(
        self,
        company: str,
        export_format: str | ExportFormat,
        *,
        search_term: str | None = None,
        record_ids: Sequence[int] | None = None,
        today: date | None = None,
    ) -> ExportFile:
        fmt = ExportFormat.parse(export_format)
        records = self._store.find_all(company, search_term=search_term, record_ids=record_ids)
        return ExportFile(
            filename=export_filename(company, fmt, today),
            media_type=fmt.media_type,
            content=export_records(records, fmt),
        )


__all__ = [
    "EXPORT_HEADERS",
    "ExportFile",
    "ExportFormat",
    "ReportingService",
    "export_filename",
    "export_records",
]

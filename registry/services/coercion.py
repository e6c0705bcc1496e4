"""Lenient conversions applied to optional numeric and text fields."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_decimal(value: Any) -> Decimal | None:
    """Return ``value`` as a finite Decimal, or ``None`` when it is not numeric."""

    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        candidate = value
    elif isinstance(value, (int, float)):
        candidate = Decimal(str(value))
    elif isinstance(value, str):
        try:
            candidate = Decimal(value.strip())
        except InvalidOperation:
            return None
    else:
        return None
    if not candidate.is_finite():
        return None
    return candidate


def coerce_amount(value: Any) -> Decimal:
    """Coerce a monetary input to a non-negative amount with two decimals.

    Absent, blank, non-numeric and negative inputs all become zero.
    """

    parsed = None if is_blank(value) else parse_decimal(value)
    if parsed is None or parsed < 0:
        return ZERO
    return parsed.quantize(CENT, rounding=ROUND_HALF_UP)


def coerce_share_count(value: Any) -> int:
    """Coerce a share count to a non-negative integer, truncating fractions."""

    parsed = None if is_blank(value) else parse_decimal(value)
    if parsed is None or parsed < 0:
        return 0
    return int(parsed)


def clean_text(value: Any) -> str:
    if value is None:
        return ""
    return " ".join(str(value).split())


def clean_multiline(value: Any) -> str | None:
    if value is None:
        return None
    lines = [line.strip() for line in str(value).strip().splitlines()]
    cleaned = "\n".join(lines)
    return cleaned or None


def normalise_email(value: Any) -> str:
    return clean_text(value).lower()


def to_decimal(value: Any) -> Decimal:
    """Normalise a database aggregate (``None``, float or Decimal) to cents."""

    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


__all__ = [
    "CENT",
    "ZERO",
    "clean_multiline",
    "clean_text",
    "coerce_amount",
    "coerce_share_count",
    "is_blank",
    "normalise_email",
    "parse_decimal",
    "to_decimal",
]

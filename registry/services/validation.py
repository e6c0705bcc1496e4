"""Input validation and the duplicate guard applied to public submissions."""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from email_validator import EmailNotValidError, validate_email

from registry.services.coercion import (
    clean_multiline,
    clean_text,
    coerce_amount,
    coerce_share_count,
    is_blank,
    normalise_email,
)
from registry.services.companies import normalise_company
from registry.services.errors import DuplicateRegistrationError
from registry.services.records import RecordStore

REQUIRED_FIELD_MESSAGES = {
    "name": "Please enter your name",
    "email": "Please enter email address",
    "phone": "Please enter valid phone number",
}
INVALID_EMAIL_MESSAGE = "Please enter a valid email address"
NUMERIC_FIELDS = ("share_count", "purchase_price", "sell_price", "loss")
UNKNOWN = "Unknown"


@dataclass(slots=True, frozen=True)
class RegistrationSubmission:
    """Raw form values as received; optional numerics may be any type."""

    company: str
    name: Any = None
    email: Any = None
    phone: Any = None
    share_count: Any = None
    purchase_price: Any = None
    sell_price: Any = None
    loss: Any = None
    remarks: Any = None


@dataclass(slots=True, frozen=True)
class Provenance:
    ip_address: str = UNKNOWN
    country: str = UNKNOWN


@dataclass(slots=True)
class GuardResult:
    errors: list[str] = field(default_factory=list)
    duplicate: DuplicateRegistrationError | None = None

    @property
    def ok(self) -> bool:
        return not self.errors and self.duplicate is None


def numeric_field_message(field_name: str) -> str:
    return f"Please enter a valid number for {field_name}"


def _is_numeric_type(value: Any) -> bool:
    # Malformed numeric text is coerced to zero later; only structured values
    # such as lists or objects are rejected outright.
    return isinstance(value, (int, float, Decimal, str)) and not isinstance(value, bool)


def is_valid_email(value: str) -> bool:
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


class ValidationGuard:
    """Applies field rules and the per-company duplicate rule to submissions."""

    def __init__(self, store: RecordStore, *, support_email: str) -> None:
        self._store = store
        self._support_email = support_email

    @property
    def duplicate_message(self) -> str:
        return (
            "Another entry matched with the phone number or email address you entered. "
            f"Please contact {self._support_email}, if you mistakenly submitted wrong information."
        )

    def validate(self, submission: RegistrationSubmission) -> list[str]:
        """Return every violated rule at once, in a stable order."""

        errors: list[str] = []
        for field_name, message in REQUIRED_FIELD_MESSAGES.items():
            if is_blank(getattr(submission, field_name)):
                errors.append(message)

        if not is_blank(submission.email) and not is_valid_email(clean_text(submission.email)):
            errors.append(INVALID_EMAIL_MESSAGE)

        for field_name in NUMERIC_FIELDS:
            value = getattr(submission, field_name)
            if not is_blank(value) and not _is_numeric_type(value):
                errors.append(numeric_field_message(field_name))
        return errors

    def check_duplicate(
        self, submission: RegistrationSubmission, company: str
    ) -> DuplicateRegistrationError | None:
        existing = self._store.find_duplicate(
            normalise_email(submission.email),
            clean_text(submission.phone),
            normalise_company(company),
        )
        if existing is None:
            return None
        return DuplicateRegistrationError(self.duplicate_message)

    def evaluate(self, submission: RegistrationSubmission) -> GuardResult:
        errors = self.validate(submission)
        if errors:
            return GuardResult(errors=errors)
        return GuardResult(duplicate=self.check_duplicate(submission, submission.company))


def prepare_record(submission: RegistrationSubmission, provenance: Provenance) -> dict[str, Any]:
    """Build column values for a validated submission.

    Optional numerics that are absent, malformed or negative become zero here
    rather than failing the submission.
    """

    return {
        "company": normalise_company(submission.company),
        "name": clean_text(submission.name),
        "email": normalise_email(submission.email),
        "phone": clean_text(submission.phone),
        "share_count": coerce_share_count(submission.share_count),
        "purchase_price": coerce_amount(submission.purchase_price),
        "sell_price": coerce_amount(submission.sell_price),
        "loss": coerce_amount(submission.loss),
        "ip_address": clean_text(provenance.ip_address)[:45] or UNKNOWN,
        "country": clean_text(provenance.country)[:100] or UNKNOWN,
        "remarks": clean_multiline(submission.remarks),
    }


__all__ = [
    "GuardResult",
    "INVALID_EMAIL_MESSAGE",
    "NUMERIC_FIELDS",
    "Provenance",
    "REQUIRED_FIELD_MESSAGES",
    "RegistrationSubmission",
    "UNKNOWN",
    "ValidationGuard",
    "is_valid_email",
    "numeric_field_message",
    "prepare_record",
]

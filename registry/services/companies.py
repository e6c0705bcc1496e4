"""Presentation metadata for the companies a class action is run against."""
from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType


@dataclass(slots=True, frozen=True)
class FieldConfig:
    label: str
    placeholder: str
    required: bool = False
    input_type: str = "text"


@dataclass(slots=True, frozen=True)
class FormConfig:
    company: str
    title: str
    description: str
    fields: Mapping[str, FieldConfig]
    submit_text: str
    success_message: str


@dataclass(slots=True, frozen=True)
class CompanyProfile:
    """Everything the registry knows about one company."""

    company_id: str
    display_name: str
    field_overrides: Mapping[str, FieldConfig] = field(default_factory=dict)
    submit_text: str = "Submit Registration"
    success_message: str | None = None
    title: str | None = None
    description: str | None = None


def _default_fields() -> dict[str, FieldConfig]:
    return {
        "name": FieldConfig("Your Name", "Your Name (Required)", True, "text"),
        "email": FieldConfig("Email address", "Your Email Address (Required)", True, "email"),
        "phone": FieldConfig("Mobile Phone", "Mobile Phone (Required)", True, "tel"),
        "share_count": FieldConfig("Number of Shares Held", "Number of shares held", False, "number"),
        "purchase_price": FieldConfig("Purchase Price", "Purchase price per share", False, "number"),
        "sell_price": FieldConfig("Sell Price", "Sell price per share", False, "number"),
        "loss": FieldConfig("Total Loss", "Total financial loss", False, "number"),
        "remarks": FieldConfig("Remarks", "Additional comments", False, "textarea"),
    }


KNOWN_COMPANIES: Mapping[str, CompanyProfile] = MappingProxyType(
    {
        "atos": CompanyProfile(
            company_id="atos",
            display_name="ATOS",
            field_overrides={
                "share_count": FieldConfig(
                    "Nombre d'actions détenues", "Nombre d'actions détenues", False, "number"
                ),
                "purchase_price": FieldConfig("Buy Price", "Buy Price", False, "number"),
                "sell_price": FieldConfig("Sell Price", "Sell Price", False, "number"),
                "loss": FieldConfig("Perte Totale", "Perte Totale", False, "number"),
                "remarks": FieldConfig("Remarques", "Remarques", False, "textarea"),
            },
            submit_text="Submit",
            success_message=(
                "Vos données ont été comptabilisées avec succès! <br> "
                "Veuillez rafraichir la page pour voir le nouveau total d'actions cumulées"
            ),
        ),
        "urpea": CompanyProfile(
            company_id="urpea",
            display_name="URPEA",
            success_message=(
                "Your URPEA data has been successfully recorded! <br> "
                "Please refresh the page to see the updated totals."
            ),
        ),
    }
)


class CompanyRegistry:
    """Lookup from company identifier to its profile.

    Identifiers without an explicit entry resolve to a generic profile, so a
    new class action only needs an entry here when its wording differs.
    """

    def __init__(
        self,
        profiles: Mapping[str, CompanyProfile] | None = None,
        *,
        supported: Iterable[str] | None = None,
        brand_name: str = "UPRA",
    ) -> None:
        self._brand_name = brand_name
        self._profiles = dict(KNOWN_COMPANIES if profiles is None else profiles)
        self._supported = tuple(supported) if supported is not None else tuple(self._profiles)

    def profile(self, company_id: str) -> CompanyProfile:
        key = normalise_company(company_id)
        profile = self._profiles.get(key)
        if profile is not None:
            return profile
        return CompanyProfile(company_id=key, display_name=key.upper())

    def get_display_name(self, company_id: str) -> str:
        return self.profile(company_id).display_name

    def get_success_message(self, company_id: str) -> str:
        profile = self.profile(company_id)
        if profile.success_message:
            return profile.success_message
        return (
            f"Your {profile.display_name} data has been successfully recorded! <br> "
            "Please refresh the page to see the updated totals."
        )

    def get_email_subject(self, company_id: str) -> str:
        return f"{self._brand_name} Registration - {self.get_display_name(company_id)}"

    def get_form_config(self, company_id: str) -> FormConfig:
        profile = self.profile(company_id)
        fields = _default_fields()
        fields.update(profile.field_overrides)
        return FormConfig(
            company=profile.company_id,
            title=profile.title or f"{profile.display_name} Shareholder Registration",
            description=profile.description
            or (
                f"Please provide your {profile.display_name} shareholding information "
                "for the class action lawsuit."
            ),
            fields=MappingProxyType(fields),
            submit_text=profile.submit_text,
            success_message=self.get_success_message(company_id),
        )

    def supported_companies(self) -> tuple[str, ...]:
        return self._supported


def normalise_company(company_id: str) -> str:
    return company_id.strip().lower()


__all__ = [
    "CompanyProfile",
    "CompanyRegistry",
    "FieldConfig",
    "FormConfig",
    "KNOWN_COMPANIES",
    "normalise_company",
]

"""Schemas for the public registration endpoints."""
from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from registry.services.companies import FormConfig
from registry.services.records import CompanyStatistics
from registry.services.validation import RegistrationSubmission


class RegistrationRequest(BaseModel):
    """Form payload as posted by the public page.

    Field types are deliberately loose: the validation guard reports problems
    as form messages rather than letting request parsing reject them.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: Any = None
    email: Any = None
    phone: Any = None
    share_count: Any = Field(default=None, validation_alias=AliasChoices("share_count", "shareCount", "stock"))
    purchase_price: Any = Field(
        default=None, validation_alias=AliasChoices("purchase_price", "purchasePrice", "buy_price")
    )
    sell_price: Any = Field(default=None, validation_alias=AliasChoices("sell_price", "sellPrice"))
    loss: Any = None
    remarks: Any = None

    def to_submission(self, company: str) -> RegistrationSubmission:
        return RegistrationSubmission(company=company, **self.model_dump())


class StatisticsRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_shares: int
    shareholder_count: int
    total_participation: Decimal

    @classmethod
    def from_statistics(cls, statistics: CompanyStatistics) -> StatisticsRead:
        return cls.model_validate(statistics)


class RegistrationAccepted(BaseModel):
    message: str
    record_id: int
    statistics: StatisticsRead | None = None


class RegistrationRejected(BaseModel):
    errors: list[str]


class RegistrationMessage(BaseModel):
    message: str


class FieldConfigRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    label: str
    placeholder: str
    required: bool
    input_type: str


class FormConfigRead(BaseModel):
    company: str
    title: str
    description: str
    fields: dict[str, FieldConfigRead]
    submit_text: str
    success_message: str

    @classmethod
    def from_config(cls, config: FormConfig) -> FormConfigRead:
        return cls(
            company=config.company,
            title=config.title,
            description=config.description,
            fields={
                name: FieldConfigRead.model_validate(field_config)
                for name, field_config in config.fields.items()
            },
            submit_text=config.submit_text,
            success_message=config.success_message,
        )


__all__ = [
    "FieldConfigRead",
    "FormConfigRead",
    "RegistrationAccepted",
    "RegistrationMessage",
    "RegistrationRejected",
    "RegistrationRequest",
    "StatisticsRead",
]

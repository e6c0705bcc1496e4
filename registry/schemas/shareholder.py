"""Schemas for the admin shareholder endpoints."""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from registry.schemas.registration import StatisticsRead
from registry.services.validation import is_valid_email


class ShareholderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company: str
    name: str
    email: str
    phone: str
    share_count: int
    purchase_price: Decimal
    sell_price: Decimal
    loss: Decimal
    ip_address: str
    country: str
    remarks: str | None = None
    created_at: datetime
    updated_at: datetime


class ShareholderUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, min_length=1, max_length=50)
    share_count: int | None = Field(default=None, ge=0)
    purchase_price: Decimal | None = Field(default=None, ge=Decimal("0"))
    sell_price: Decimal | None = Field(default=None, ge=Decimal("0"))
    loss: Decimal | None = Field(default=None, ge=Decimal("0"))
    remarks: str | None = None

    @field_validator("name", "phone", mode="before")
    @classmethod
    def _strip_identity(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str | None) -> str | None:
        if value is not None and not is_valid_email(value.strip()):
            raise ValueError("Please enter a valid email address")
        return value


class ShareholderPage(BaseModel):
    records: list[ShareholderRead]
    total_count: int
    page: int
    per_page: int


class BulkDeleteRequest(BaseModel):
    ids: list[int] = Field(..., min_length=1)


class DeleteResponse(BaseModel):
    deleted: int


class BulkEmailRequest(BaseModel):
    subject: str = Field(..., min_length=1, max_length=255)
    html_body: str = Field(..., min_length=1)
    ids: list[int] | None = None


class BulkEmailResponse(BaseModel):
    sent: int


class CompanySummary(BaseModel):
    company: str
    display_name: str


class CompanyBreakdown(BaseModel):
    companies: dict[str, StatisticsRead]


__all__ = [
    "BulkDeleteRequest",
    "BulkEmailRequest",
    "BulkEmailResponse",
    "CompanyBreakdown",
    "CompanySummary",
    "DeleteResponse",
    "ShareholderPage",
    "ShareholderRead",
    "ShareholderUpdate",
]

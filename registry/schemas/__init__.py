"""Pydantic schemas package."""

from .registration import (
    FieldConfigRead,
    FormConfigRead,
    RegistrationAccepted,
    RegistrationMessage,
    RegistrationRejected,
    RegistrationRequest,
    StatisticsRead,
)
from .shareholder import (
    BulkDeleteRequest,
    BulkEmailRequest,
    BulkEmailResponse,
    CompanyBreakdown,
    CompanySummary,
    DeleteResponse,
    ShareholderPage,
    ShareholderRead,
    ShareholderUpdate,
)

__all__ = [
    "BulkDeleteRequest",
    "BulkEmailRequest",
    "BulkEmailResponse",
    "CompanyBreakdown",
    "CompanySummary",
    "DeleteResponse",
    "FieldConfigRead",
    "FormConfigRead",
    "RegistrationAccepted",
    "RegistrationMessage",
    "RegistrationRejected",
    "RegistrationRequest",
    "ShareholderPage",
    "ShareholderRead",
    "ShareholderUpdate",
    "StatisticsRead",
]

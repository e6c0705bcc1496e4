"""Exception hierarchy shared by the registry services."""
from __future__ import annotations


class RegistryError(RuntimeError):
    """Base exception for registry service errors."""


class DuplicateRegistrationError(RegistryError):
    """Raised when an email or phone is already registered for the company."""


class RecordNotFoundError(RegistryError):
    """Raised when a record identifier is missing or not in the company scope."""


class PersistenceError(RegistryError):
    """Raised when the database rejects an operation for a non-domain reason."""


class NotificationError(RegistryError):
    """Raised by a notification transport when a message could not be sent."""


class UnsupportedExportFormatError(RegistryError):
    """Raised when an export is requested in an unknown format."""


__all__ = [
    "DuplicateRegistrationError",
    "NotificationError",
    "PersistenceError",
    "RecordNotFoundError",
    "RegistryError",
    "UnsupportedExportFormatError",
]

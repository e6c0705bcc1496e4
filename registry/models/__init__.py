"""ORM models package."""
from .base import Base, TimestampMixin
from .shareholder_record import ShareholderRecord

__all__ = [
    "Base",
    "ShareholderRecord",
    "TimestampMixin",
]

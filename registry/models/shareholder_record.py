"""Shareholder registration ORM model."""
from __future__ import annotations

from decimal import Decimal

from sqlalchemy import BigInteger, CheckConstraint, Index, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from registry.models.base import Base, TimestampMixin

# SQLite only autoincrements INTEGER primary keys.
_RecordId = BigInteger().with_variant(Integer(), "sqlite")


class ShareholderRecord(TimestampMixin, Base):
    """One person's registration and holdings for one company."""

    __tablename__ = "shareholder_records"
    __table_args__ = (
        UniqueConstraint("email", "company", name="uq_shareholder_records_email_company"),
        UniqueConstraint("phone", "company", name="uq_shareholder_records_phone_company"),
        Index("ix_shareholder_records_company", "company"),
        Index("ix_shareholder_records_email", "email"),
        Index("ix_shareholder_records_phone", "phone"),
        Index("ix_shareholder_records_created_at", "created_at"),
        CheckConstraint("share_count >= 0", name="ck_shareholder_records_share_count"),
        CheckConstraint(
            "purchase_price >= 0 AND sell_price >= 0 AND loss >= 0",
            name="ck_shareholder_records_amounts",
        ),
    )

    id: Mapped[int] = mapped_column(_RecordId, primary_key=True, autoincrement=True)
    company: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    share_count: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    purchase_price: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    sell_price: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    loss: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False, default=Decimal("0"))
    ip_address: Mapped[str] = mapped_column(String(45), nullable=False, default="Unknown")
    country: Mapped[str] = mapped_column(String(100), nullable=False, default="Unknown")
    remarks: Mapped[str | None] = mapped_column(Text)


__all__ = ["ShareholderRecord"]

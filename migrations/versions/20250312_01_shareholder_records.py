"""Create the shareholder_records table."""
from __future__ import annotations

from collections.abc import Iterable

import sqlalchemy as sa
from alembic import op

revision = "20250312_01"
down_revision = None
branch_labels = None
depends_on: Iterable[str] | None = None

_TABLE = "shareholder_records"
_INDEXES = {
    "ix_shareholder_records_company": ["company"],
    "ix_shareholder_records_email": ["email"],
    "ix_shareholder_records_phone": ["phone"],
    "ix_shareholder_records_created_at": ["created_at"],
}


def upgrade() -> None:  # noqa: D401
    """Create the registrations table with its per-company uniqueness rules."""

    amount = sa.Numeric(precision=15, scale=2)
    op.create_table(
        _TABLE,
        sa.Column(
            "id",
            sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
            primary_key=True,
            autoincrement=True,
        ),
        sa.Column("company", sa.String(length=50), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=False),
        sa.Column("share_count", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("purchase_price", amount, nullable=False, server_default="0"),
        sa.Column("sell_price", amount, nullable=False, server_default="0"),
        sa.Column("loss", amount, nullable=False, server_default="0"),
        sa.Column("ip_address", sa.String(length=45), nullable=False, server_default="Unknown"),
        sa.Column("country", sa.String(length=100), nullable=False, server_default="Unknown"),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("email", "company", name="uq_shareholder_records_email_company"),
        sa.UniqueConstraint("phone", "company", name="uq_shareholder_records_phone_company"),
        sa.CheckConstraint("share_count >= 0", name="ck_shareholder_records_share_count"),
        sa.CheckConstraint(
            "purchase_price >= 0 AND sell_price >= 0 AND loss >= 0",
            name="ck_shareholder_records_amounts",
        ),
    )
    for name, columns in _INDEXES.items():
        op.create_index(name, _TABLE, columns)


def downgrade() -> None:
    for name in reversed(list(_INDEXES)):
        op.drop_index(name, table_name=_TABLE)
    op.drop_table(_TABLE)

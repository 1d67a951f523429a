"""coupons_and_claim_records

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

from coupon_drop.db.models.triggers import (
    CLAIM_RECORDS_APPEND_ONLY_FUNCTION,
    CLAIM_RECORDS_APPEND_ONLY_TRIGGER,
    COUPONS_CLAIM_ONCE_FUNCTION,
    COUPONS_CLAIM_ONCE_TRIGGER,
)

revision: str = "a1b2c3d4e5f6"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "coupons",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("code", sa.String(64), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("claimed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("claimed_by", sa.String(45), nullable=True),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("length(code) > 0", name="ck_coupons_code_not_empty"),
        sa.CheckConstraint(
            "(claimed AND claimed_by IS NOT NULL AND claimed_at IS NOT NULL) "
            "OR (NOT claimed AND claimed_by IS NULL AND claimed_at IS NULL)",
            name="ck_coupons_claim_fields_consistency",
        ),
        sa.UniqueConstraint("code", name="uq_coupons_code"),
    )
    op.create_index(
        "idx_coupons_available",
        "coupons",
        ["id"],
        postgresql_where=sa.text("active AND NOT claimed"),
    )
    op.create_index("idx_coupons_claimed_at", "coupons", ["claimed_at"])

    op.create_table(
        "claim_records",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("coupon_code", sa.String(64), nullable=False),
        sa.Column("claimant_address", sa.String(45), nullable=False),
        sa.Column("claimant_session", sa.String(128), nullable=False),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["coupon_code"], ["coupons.code"]),
        sa.UniqueConstraint("coupon_code", name="uq_claim_records_coupon_code"),
    )
    op.create_index(
        "idx_claim_records_session_time",
        "claim_records",
        ["claimant_session", "claimed_at"],
    )
    op.create_index(
        "idx_claim_records_address_time",
        "claim_records",
        ["claimant_address", "claimed_at"],
    )
    op.create_index("idx_claim_records_claimed_at", "claim_records", ["claimed_at"])

    op.execute(COUPONS_CLAIM_ONCE_FUNCTION)
    op.execute(COUPONS_CLAIM_ONCE_TRIGGER)
    op.execute(CLAIM_RECORDS_APPEND_ONLY_FUNCTION)
    op.execute(CLAIM_RECORDS_APPEND_ONLY_TRIGGER)


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS trg_claim_records_append_only ON claim_records;")
    op.execute("DROP FUNCTION IF EXISTS fn_claim_records_append_only();")
    op.execute("DROP TRIGGER IF EXISTS trg_coupons_claim_once ON coupons;")
    op.execute("DROP FUNCTION IF EXISTS fn_coupons_claim_once();")

    op.drop_index("idx_claim_records_claimed_at", table_name="claim_records")
    op.drop_index("idx_claim_records_address_time", table_name="claim_records")
    op.drop_index("idx_claim_records_session_time", table_name="claim_records")
    op.drop_table("claim_records")

    op.drop_index("idx_coupons_claimed_at", table_name="coupons")
    op.drop_index("idx_coupons_available", table_name="coupons")
    op.drop_table("coupons")

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BOOLEAN,
    BigInteger,
    CheckConstraint,
    DateTime,
    Index,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from coupon_drop.db.models.base import Base
from coupon_drop.db.models.triggers import (
    COUPONS_CLAIM_ONCE_FUNCTION,
    COUPONS_CLAIM_ONCE_TRIGGER,
    attach_postgres_ddl,
)


class Coupon(Base):
    __tablename__ = "coupons"
    __table_args__ = (
        CheckConstraint("length(code) > 0", name="ck_coupons_code_not_empty"),
        CheckConstraint(
            "(claimed AND claimed_by IS NOT NULL AND claimed_at IS NOT NULL) "
            "OR (NOT claimed AND claimed_by IS NULL AND claimed_at IS NULL)",
            name="ck_coupons_claim_fields_consistency",
        ),
        Index(
            "idx_coupons_available",
            "id",
            postgresql_where=text("active AND NOT claimed"),
        ),
        Index("idx_coupons_claimed_at", "claimed_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    active: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, server_default=text("true"))
    claimed: Mapped[bool] = mapped_column(BOOLEAN, nullable=False, server_default=text("false"))
    claimed_by: Mapped[str | None] = mapped_column(String(45), nullable=True)
    claimed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )


attach_postgres_ddl(
    Coupon.__table__,
    COUPONS_CLAIM_ONCE_FUNCTION,
    COUPONS_CLAIM_ONCE_TRIGGER,
)

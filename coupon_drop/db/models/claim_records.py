from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from coupon_drop.db.models.base import Base
from coupon_drop.db.models.triggers import (
    CLAIM_RECORDS_APPEND_ONLY_FUNCTION,
    CLAIM_RECORDS_APPEND_ONLY_TRIGGER,
    attach_postgres_ddl,
)


class ClaimRecord(Base):
    __tablename__ = "claim_records"
    __table_args__ = (
        Index("idx_claim_records_session_time", "claimant_session", "claimed_at"),
        Index("idx_claim_records_address_time", "claimant_address", "claimed_at"),
        Index("idx_claim_records_claimed_at", "claimed_at"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    coupon_code: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("coupons.code"),
        unique=True,
        nullable=False,
    )
    claimant_address: Mapped[str] = mapped_column(String(45), nullable=False)
    claimant_session: Mapped[str] = mapped_column(String(128), nullable=False)
    claimed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


attach_postgres_ddl(
    ClaimRecord.__table__,
    CLAIM_RECORDS_APPEND_ONLY_FUNCTION,
    CLAIM_RECORDS_APPEND_ONLY_TRIGGER,
)

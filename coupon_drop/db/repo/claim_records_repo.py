from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from coupon_drop.db.models.claim_records import ClaimRecord


class ClaimRecordsRepo:
    @staticmethod
    async def create(session: AsyncSession, *, record: ClaimRecord) -> ClaimRecord:
        session.add(record)
        await session.flush()
        return record

    @staticmethod
    async def get_last_claimed_at_by_session(
        session: AsyncSession,
        *,
        claimant_session: str,
        since_utc: datetime,
    ) -> datetime | None:
        stmt = select(func.max(ClaimRecord.claimed_at)).where(
            ClaimRecord.claimant_session == claimant_session,
            ClaimRecord.claimed_at > since_utc,
        )
        result = await session.execute(stmt)
        return result.scalar_one()

    @staticmethod
    async def get_last_claimed_at_by_address(
        session: AsyncSession,
        *,
        claimant_address: str,
        since_utc: datetime,
    ) -> datetime | None:
        stmt = select(func.max(ClaimRecord.claimed_at)).where(
            ClaimRecord.claimant_address == claimant_address,
            ClaimRecord.claimed_at > since_utc,
        )
        result = await session.execute(stmt)
        return result.scalar_one()

    @staticmethod
    async def get_latest_by_session(
        session: AsyncSession,
        *,
        claimant_session: str,
    ) -> ClaimRecord | None:
        stmt = (
            select(ClaimRecord)
            .where(ClaimRecord.claimant_session == claimant_session)
            .order_by(ClaimRecord.claimed_at.desc(), ClaimRecord.id.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_records(
        session: AsyncSession,
        *,
        claimant_session: str | None = None,
        claimant_address: str | None = None,
        limit: int = 100,
    ) -> list[ClaimRecord]:
        stmt = (
            select(ClaimRecord)
            .order_by(ClaimRecord.claimed_at.desc(), ClaimRecord.id.desc())
            .limit(limit)
        )
        if claimant_session:
            stmt = stmt.where(ClaimRecord.claimant_session == claimant_session)
        if claimant_address:
            stmt = stmt.where(ClaimRecord.claimant_address == claimant_address)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_since(session: AsyncSession, *, since_utc: datetime) -> int:
        stmt = select(func.count(ClaimRecord.id)).where(ClaimRecord.claimed_at >= since_utc)
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from coupon_drop.db.models.coupons import Coupon


class CouponsRepo:
    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, coupon_id: int) -> Coupon | None:
        stmt = select(Coupon).where(Coupon.id == coupon_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_code(session: AsyncSession, code: str) -> Coupon | None:
        stmt = select(Coupon).where(Coupon.code == code)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_existing_codes(session: AsyncSession, codes: Iterable[str]) -> set[str]:
        values = tuple(codes)
        if not values:
            return set()
        stmt = select(Coupon.code).where(Coupon.code.in_(values))
        result = await session.execute(stmt)
        return set(result.scalars().all())

    @staticmethod
    async def create(session: AsyncSession, *, coupon: Coupon) -> Coupon:
        session.add(coupon)
        await session.flush()
        return coupon

    @staticmethod
    async def create_many(session: AsyncSession, *, coupons: list[Coupon]) -> list[Coupon]:
        session.add_all(coupons)
        await session.flush()
        return coupons

    @staticmethod
    async def list_coupons(
        session: AsyncSession,
        *,
        active: bool | None = None,
        claimed: bool | None = None,
        limit: int = 100,
    ) -> list[Coupon]:
        stmt = select(Coupon).order_by(Coupon.id.desc()).limit(limit)
        if active is not None:
            stmt = stmt.where(Coupon.active.is_(active))
        if claimed is not None:
            stmt = stmt.where(Coupon.claimed.is_(claimed))
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def find_available(session: AsyncSession) -> Coupon | None:
        # Oldest first; SKIP LOCKED spreads concurrent claimers across rows.
        stmt = (
            select(Coupon)
            .where(Coupon.active.is_(True), Coupon.claimed.is_(False))
            .order_by(Coupon.id.asc())
            .limit(1)
            .with_for_update(skip_locked=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def mark_claimed(
        session: AsyncSession,
        *,
        coupon_id: int,
        claimed_by: str,
        claimed_at: datetime,
    ) -> bool:
        stmt = (
            update(Coupon)
            .where(
                Coupon.id == coupon_id,
                Coupon.claimed.is_(False),
                Coupon.active.is_(True),
            )
            .values(claimed=True, claimed_by=claimed_by, claimed_at=claimed_at)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return int(getattr(result, "rowcount", 0) or 0) == 1

    @staticmethod
    async def toggle_active(session: AsyncSession, coupon_id: int) -> Coupon | None:
        coupon = await CouponsRepo.get_by_id_for_update(session, coupon_id)
        if coupon is None:
            return None
        coupon.active = not coupon.active
        await session.flush()
        return coupon

    @staticmethod
    async def count_by_state(session: AsyncSession) -> dict[str, int]:
        stmt = select(
            func.count(Coupon.id),
            func.count(Coupon.id).filter(Coupon.active.is_(True)),
            func.count(Coupon.id).filter(Coupon.claimed.is_(True)),
            func.count(Coupon.id).filter(Coupon.active.is_(True), Coupon.claimed.is_(False)),
        )
        result = await session.execute(stmt)
        total, active, claimed, available = result.one()
        return {
            "total": int(total or 0),
            "active": int(active or 0),
            "claimed": int(claimed or 0),
            "available": int(available or 0),
        }

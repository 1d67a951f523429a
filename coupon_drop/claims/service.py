from __future__ import annotations

from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from coupon_drop.claims.cooldowns import evaluate_cooldowns
from coupon_drop.claims.errors import (
    ClaimNoSupplyError,
    ClaimSessionMissingError,
    ClaimTooSoonError,
    CouponReservationConflictError,
)
from coupon_drop.claims.types import (
    ClaimResult,
    ClaimStatusResult,
    CooldownStatus,
    CooldownWindows,
)
from coupon_drop.core.config import get_settings
from coupon_drop.db.models.claim_records import ClaimRecord
from coupon_drop.db.models.coupons import Coupon
from coupon_drop.db.repo.claim_records_repo import ClaimRecordsRepo
from coupon_drop.db.repo.coupons_repo import CouponsRepo

logger = structlog.get_logger(__name__)


class ClaimService:
    @staticmethod
    def _windows() -> CooldownWindows:
        settings = get_settings()
        return CooldownWindows(
            session=settings.claim_session_cooldown,
            address=settings.claim_address_cooldown,
        )

    @staticmethod
    def _require_session_key(session_key: str | None) -> str:
        normalized = (session_key or "").strip()
        if not normalized:
            raise ClaimSessionMissingError
        return normalized

    @staticmethod
    def _require_address(address: str | None) -> str:
        normalized = (address or "").strip()
        if not normalized:
            raise ValueError("claimant address is required")
        return normalized

    @staticmethod
    async def _evaluate(
        session: AsyncSession,
        *,
        session_key: str,
        address: str,
        windows: CooldownWindows,
        now_utc: datetime,
    ) -> CooldownStatus:
        last_by_session = await ClaimRecordsRepo.get_last_claimed_at_by_session(
            session,
            claimant_session=session_key,
            since_utc=now_utc - windows.lookback,
        )
        last_by_address = await ClaimRecordsRepo.get_last_claimed_at_by_address(
            session,
            claimant_address=address,
            since_utc=now_utc - windows.lookback,
        )
        return evaluate_cooldowns(
            last_claim_by_session=last_by_session,
            last_claim_by_address=last_by_address,
            windows=windows,
            now_utc=now_utc,
        )

    @staticmethod
    async def _reserve(
        session: AsyncSession,
        *,
        coupon: Coupon,
        address: str,
        now_utc: datetime,
    ) -> None:
        reserved = await CouponsRepo.mark_claimed(
            session,
            coupon_id=coupon.id,
            claimed_by=address,
            claimed_at=now_utc,
        )
        if not reserved:
            raise CouponReservationConflictError(coupon.id)

    @staticmethod
    async def check_eligibility(
        session: AsyncSession,
        *,
        session_key: str | None,
        address: str | None,
        now_utc: datetime | None = None,
    ) -> CooldownStatus:
        now_utc = now_utc or datetime.now(timezone.utc)
        return await ClaimService._evaluate(
            session,
            session_key=ClaimService._require_session_key(session_key),
            address=ClaimService._require_address(address),
            windows=ClaimService._windows(),
            now_utc=now_utc,
        )

    @staticmethod
    async def claim(
        session: AsyncSession,
        *,
        session_key: str | None,
        address: str | None,
        now_utc: datetime | None = None,
    ) -> ClaimResult:
        """Hand out one coupon to the claimant, or explain why not.

        Runs inside the caller's transaction: the conditional coupon update and
        the ledger append commit together. Lost reservation races are retried
        with a fresh lookup up to ``CLAIM_MAX_RESERVE_ATTEMPTS`` times and then
        reported as ``ClaimNoSupplyError``.
        """
        now_utc = now_utc or datetime.now(timezone.utc)
        session_key = ClaimService._require_session_key(session_key)
        address = ClaimService._require_address(address)
        windows = ClaimService._windows()

        status = await ClaimService._evaluate(
            session,
            session_key=session_key,
            address=address,
            windows=windows,
            now_utc=now_utc,
        )
        if not status.eligible:
            logger.info(
                "claim_rejected_too_soon",
                client_address=address,
                blocking=list(status.blocking_dimensions),
                retry_at=status.retry_at.isoformat() if status.retry_at else None,
            )
            raise ClaimTooSoonError(status)

        max_attempts = get_settings().claim_max_reserve_attempts
        for attempt in range(1, max_attempts + 1):
            coupon = await CouponsRepo.find_available(session)
            if coupon is None:
                logger.info("claim_no_supply", client_address=address, attempt=attempt)
                raise ClaimNoSupplyError("empty")

            try:
                await ClaimService._reserve(
                    session,
                    coupon=coupon,
                    address=address,
                    now_utc=now_utc,
                )
            except CouponReservationConflictError:
                logger.info(
                    "claim_reservation_conflict",
                    coupon_id=coupon.id,
                    attempt=attempt,
                )
                continue

            await ClaimRecordsRepo.create(
                session,
                record=ClaimRecord(
                    coupon_code=coupon.code,
                    claimant_address=address,
                    claimant_session=session_key,
                    claimed_at=now_utc,
                ),
            )
            logger.info(
                "coupon_claimed",
                coupon_id=coupon.id,
                client_address=address,
                attempt=attempt,
            )
            return ClaimResult(
                coupon_code=coupon.code,
                claimed_at=now_utc,
                next_eligible_by_session=now_utc + windows.session,
                next_eligible_by_address=now_utc + windows.address,
                reserve_attempts=attempt,
            )

        logger.warning(
            "claim_reservation_retries_exhausted",
            client_address=address,
            attempts=max_attempts,
        )
        raise ClaimNoSupplyError("contention")

    @staticmethod
    async def get_claim_status(
        session: AsyncSession,
        *,
        session_key: str | None,
    ) -> ClaimStatusResult:
        record = await ClaimRecordsRepo.get_latest_by_session(
            session,
            claimant_session=ClaimService._require_session_key(session_key),
        )
        if record is None:
            return ClaimStatusResult(claimed=False)
        return ClaimStatusResult(
            claimed=True,
            coupon_code=record.coupon_code,
            claimed_at=record.claimed_at,
        )

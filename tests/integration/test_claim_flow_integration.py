from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from coupon_drop.claims.errors import ClaimNoSupplyError, ClaimTooSoonError
from coupon_drop.claims.service import ClaimService
from coupon_drop.db.repo.coupons_repo import CouponsRepo
from coupon_drop.db.session import SessionLocal
from tests.integration.claim_fixtures import UTC, _create_coupons

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


async def _claim(*, session_key: str, address: str, now_utc: datetime):
    async with SessionLocal.begin() as session:
        return await ClaimService.claim(
            session,
            session_key=session_key,
            address=address,
            now_utc=now_utc,
        )


@pytest.mark.asyncio
async def test_claim_flow_honours_both_cooldowns_against_database() -> None:
    await _create_coupons("FLOW-A", "FLOW-B")

    first = await _claim(session_key="flow-s1", address="203.0.113.7", now_utc=T0)
    assert first.coupon_code == "FLOW-A"

    with pytest.raises(ClaimTooSoonError) as both:
        await _claim(session_key="flow-s1", address="203.0.113.7", now_utc=T0 + timedelta(seconds=90))
    assert both.value.status.blocking_dimensions == ("session", "address")

    with pytest.raises(ClaimTooSoonError) as address_only:
        await _claim(session_key="flow-s1", address="203.0.113.7", now_utc=T0 + timedelta(seconds=150))
    assert address_only.value.status.blocking_dimensions == ("address",)
    assert address_only.value.status.next_eligible_by_session == T0 + timedelta(minutes=2)

    second = await _claim(session_key="flow-s1", address="203.0.113.7", now_utc=T0 + timedelta(seconds=181))
    assert second.coupon_code == "FLOW-B"

    with pytest.raises(ClaimNoSupplyError):
        await _claim(session_key="flow-s2", address="198.51.100.20", now_utc=T0 + timedelta(seconds=200))

    async with SessionLocal.begin() as session:
        status = await ClaimService.get_claim_status(session, session_key="flow-s1")
    assert status.coupon_code == "FLOW-B"
    assert status.claimed_at == T0 + timedelta(seconds=181)


@pytest.mark.asyncio
async def test_deactivated_coupon_is_never_allocated() -> None:
    first_id, _ = await _create_coupons("OFF-A", "ON-B")
    async with SessionLocal.begin() as session:
        toggled = await CouponsRepo.toggle_active(session, first_id)
    assert toggled is not None and toggled.active is False

    result = await _claim(session_key="toggle-s1", address="203.0.113.8", now_utc=T0)

    assert result.coupon_code == "ON-B"
    async with SessionLocal.begin() as session:
        counts = await CouponsRepo.count_by_state(session)
    assert counts == {"total": 2, "active": 1, "claimed": 1, "available": 0}

"""Cooldown arithmetic over claim ledger facts.

Each dimension slides from the most recent claim only, so callers hand in the
latest ``claimed_at`` per dimension (or ``None``). An instant that has already
passed is kept for display and never blocks. Nothing here touches storage,
which keeps eligibility a pure function of durable history.
"""
from __future__ import annotations

import math
from datetime import datetime, timedelta

from coupon_drop.claims.types import CooldownStatus, CooldownWindows


def _require_aware(value: datetime, *, name: str) -> None:
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware")


def next_eligible_at(
    *,
    last_claimed_at: datetime | None,
    window: timedelta,
    now_utc: datetime,
) -> datetime | None:
    _require_aware(now_utc, name="now_utc")
    if last_claimed_at is None:
        return None
    _require_aware(last_claimed_at, name="last_claimed_at")

    return last_claimed_at + window


def evaluate_cooldowns(
    *,
    last_claim_by_session: datetime | None,
    last_claim_by_address: datetime | None,
    windows: CooldownWindows,
    now_utc: datetime,
) -> CooldownStatus:
    return CooldownStatus(
        now_utc=now_utc,
        next_eligible_by_session=next_eligible_at(
            last_claimed_at=last_claim_by_session,
            window=windows.session,
            now_utc=now_utc,
        ),
        next_eligible_by_address=next_eligible_at(
            last_claimed_at=last_claim_by_address,
            window=windows.address,
            now_utc=now_utc,
        ),
    )


def remaining_seconds(next_eligible: datetime | None, now_utc: datetime) -> int:
    if next_eligible is None:
        return 0
    remaining = (next_eligible - now_utc).total_seconds()
    if remaining <= 0:
        return 0
    return math.ceil(remaining)

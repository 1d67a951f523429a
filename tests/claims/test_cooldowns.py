from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from coupon_drop.claims.cooldowns import evaluate_cooldowns, next_eligible_at, remaining_seconds
from coupon_drop.claims.types import CooldownWindows

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
WINDOWS = CooldownWindows(session=timedelta(minutes=2), address=timedelta(minutes=3))


def test_next_eligible_at_is_none_without_history() -> None:
    assert next_eligible_at(last_claimed_at=None, window=timedelta(minutes=2), now_utc=T0) is None


def test_next_eligible_at_returns_window_end_while_blocked() -> None:
    result = next_eligible_at(
        last_claimed_at=T0,
        window=timedelta(minutes=2),
        now_utc=T0 + timedelta(seconds=30),
    )
    assert result == T0 + timedelta(minutes=2)


def test_next_eligible_at_keeps_window_end_after_it_passes() -> None:
    result = next_eligible_at(
        last_claimed_at=T0,
        window=timedelta(minutes=2),
        now_utc=T0 + timedelta(minutes=2, seconds=30),
    )
    assert result == T0 + timedelta(minutes=2)


def test_evaluate_cooldowns_clears_exactly_at_window_end() -> None:
    status = evaluate_cooldowns(
        last_claim_by_session=T0,
        last_claim_by_address=T0 - timedelta(minutes=5),
        windows=WINDOWS,
        now_utc=T0 + timedelta(minutes=2),
    )

    assert status.eligible is True
    assert status.next_eligible_by_session == T0 + timedelta(minutes=2)
    assert status.retry_at is None


def test_next_eligible_at_rejects_naive_datetimes() -> None:
    with pytest.raises(ValueError):
        next_eligible_at(
            last_claimed_at=None,
            window=timedelta(minutes=2),
            now_utc=datetime(2026, 3, 1, 12, 0),
        )
    with pytest.raises(ValueError):
        next_eligible_at(
            last_claimed_at=datetime(2026, 3, 1, 12, 0),
            window=timedelta(minutes=2),
            now_utc=T0,
        )


def test_evaluate_cooldowns_blocks_on_both_dimensions_inside_both_windows() -> None:
    status = evaluate_cooldowns(
        last_claim_by_session=T0,
        last_claim_by_address=T0,
        windows=WINDOWS,
        now_utc=T0 + timedelta(seconds=90),
    )

    assert status.eligible is False
    assert status.blocking_dimensions == ("session", "address")
    assert status.next_eligible_by_session == T0 + timedelta(minutes=2)
    assert status.next_eligible_by_address == T0 + timedelta(minutes=3)
    assert status.retry_at == T0 + timedelta(minutes=3)


def test_evaluate_cooldowns_blocks_on_address_after_session_window_clears() -> None:
    status = evaluate_cooldowns(
        last_claim_by_session=T0,
        last_claim_by_address=T0,
        windows=WINDOWS,
        now_utc=T0 + timedelta(seconds=150),
    )

    assert status.eligible is False
    assert status.blocking_dimensions == ("address",)
    assert status.next_eligible_by_session == T0 + timedelta(minutes=2)
    assert status.retry_at == T0 + timedelta(minutes=3)


def test_evaluate_cooldowns_is_eligible_after_both_windows() -> None:
    status = evaluate_cooldowns(
        last_claim_by_session=T0,
        last_claim_by_address=T0,
        windows=WINDOWS,
        now_utc=T0 + timedelta(seconds=181),
    )

    assert status.eligible is True
    assert status.blocking_dimensions == ()
    assert status.retry_at is None
    assert status.next_eligible_by_address == T0 + timedelta(minutes=3)


def test_cooldown_windows_must_be_positive() -> None:
    with pytest.raises(ValueError):
        CooldownWindows(session=timedelta(0), address=timedelta(minutes=3))


def test_cooldown_windows_lookback_is_the_longer_window() -> None:
    assert WINDOWS.lookback == timedelta(minutes=3)
    assert CooldownWindows(session=timedelta(hours=1), address=timedelta(minutes=3)).lookback == timedelta(hours=1)


def test_remaining_seconds_is_never_negative_and_rounds_up() -> None:
    assert remaining_seconds(None, T0) == 0
    assert remaining_seconds(T0 - timedelta(seconds=5), T0) == 0
    assert remaining_seconds(T0 + timedelta(seconds=89, milliseconds=200), T0) == 90

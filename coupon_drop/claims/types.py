from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

SESSION_DIMENSION = "session"
ADDRESS_DIMENSION = "address"


@dataclass(frozen=True, slots=True)
class CooldownWindows:
    session: timedelta
    address: timedelta

    def __post_init__(self) -> None:
        if self.session <= timedelta(0) or self.address <= timedelta(0):
            raise ValueError("cooldown windows must be positive")

    @property
    def lookback(self) -> timedelta:
        return max(self.session, self.address)


@dataclass(frozen=True, slots=True)
class CooldownStatus:
    now_utc: datetime
    next_eligible_by_session: datetime | None
    next_eligible_by_address: datetime | None

    @property
    def blocking_dimensions(self) -> tuple[str, ...]:
        blocking: list[str] = []
        if self.next_eligible_by_session is not None and self.next_eligible_by_session > self.now_utc:
            blocking.append(SESSION_DIMENSION)
        if self.next_eligible_by_address is not None and self.next_eligible_by_address > self.now_utc:
            blocking.append(ADDRESS_DIMENSION)
        return tuple(blocking)

    @property
    def eligible(self) -> bool:
        return not self.blocking_dimensions

    @property
    def retry_at(self) -> datetime | None:
        candidates = [
            instant
            for instant in (self.next_eligible_by_session, self.next_eligible_by_address)
            if instant is not None and instant > self.now_utc
        ]
        return max(candidates) if candidates else None


@dataclass(slots=True)
class ClaimResult:
    coupon_code: str
    claimed_at: datetime
    next_eligible_by_session: datetime
    next_eligible_by_address: datetime
    reserve_attempts: int = 1


@dataclass(slots=True)
class ClaimStatusResult:
    claimed: bool
    coupon_code: str | None = None
    claimed_at: datetime | None = None

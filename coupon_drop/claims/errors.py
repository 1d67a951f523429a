from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from coupon_drop.claims.types import CooldownStatus


class ClaimError(Exception):
    pass


class ClaimSessionMissingError(ClaimError):
    pass


class ClaimTooSoonError(ClaimError):
    def __init__(self, status: CooldownStatus) -> None:
        super().__init__(f"claim blocked by cooldown: {', '.join(status.blocking_dimensions)}")
        self.status = status


class ClaimNoSupplyError(ClaimError):
    def __init__(self, reason: str = "empty") -> None:
        super().__init__(f"no coupon available ({reason})")
        self.reason = reason


class CouponReservationConflictError(ClaimError):
    """A concurrent claim took the coupon first. Never leaves ClaimService."""

    def __init__(self, coupon_id: int) -> None:
        super().__init__(f"coupon {coupon_id} was claimed concurrently")
        self.coupon_id = coupon_id

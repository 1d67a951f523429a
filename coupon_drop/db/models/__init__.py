from coupon_drop.db.models.claim_records import ClaimRecord
from coupon_drop.db.models.coupons import Coupon

__all__ = [
    "ClaimRecord",
    "Coupon",
]

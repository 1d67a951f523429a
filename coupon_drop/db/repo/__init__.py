from coupon_drop.db.repo.claim_records_repo import ClaimRecordsRepo
from coupon_drop.db.repo.coupons_repo import CouponsRepo

__all__ = [
    "ClaimRecordsRepo",
    "CouponsRepo",
]

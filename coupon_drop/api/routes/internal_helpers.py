from __future__ import annotations

from .internal_coupons_models import ClaimRecordResponse, CouponResponse


def _coupon_as_response(coupon: object) -> CouponResponse:
    return CouponResponse(
        id=int(getattr(coupon, "id")),
        code=str(getattr(coupon, "code")),
        active=bool(getattr(coupon, "active")),
        claimed=bool(getattr(coupon, "claimed")),
        claimed_by=getattr(coupon, "claimed_by"),
        claimed_at=getattr(coupon, "claimed_at"),
        created_at=getattr(coupon, "created_at"),
    )


def _claim_record_as_response(record: object) -> ClaimRecordResponse:
    return ClaimRecordResponse(
        id=int(getattr(record, "id")),
        coupon_code=str(getattr(record, "coupon_code")),
        claimant_address=str(getattr(record, "claimant_address")),
        claimant_session=str(getattr(record, "claimant_session")),
        claimed_at=getattr(record, "claimed_at"),
    )

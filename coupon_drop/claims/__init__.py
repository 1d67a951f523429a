from coupon_drop.claims.service import ClaimService

__all__ = ["ClaimService"]

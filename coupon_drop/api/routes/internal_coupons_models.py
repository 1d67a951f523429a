from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from coupon_drop.claims.batch import MAX_BATCH_SIZE, MAX_CODE_LENGTH


class CouponCreateRequest(BaseModel):
    code: str = Field(min_length=1, max_length=MAX_CODE_LENGTH)


class CouponBatchRequest(BaseModel):
    count: int = Field(gt=0, le=MAX_BATCH_SIZE)
    prefix: str = Field(default="", max_length=32)
    token_length: int = Field(default=8, ge=4, le=32)


class CouponResponse(BaseModel):
    id: int
    code: str
    active: bool
    claimed: bool
    claimed_by: str | None = None
    claimed_at: datetime | None = None
    created_at: datetime


class CouponListResponse(BaseModel):
    coupons: list[CouponResponse]


class CouponBatchResponse(BaseModel):
    created: int = Field(ge=0)
    codes: list[str]


class CouponSummaryResponse(BaseModel):
    total: int = Field(ge=0)
    active: int = Field(ge=0)
    claimed: int = Field(ge=0)
    available: int = Field(ge=0)
    claims_last_24h: int = Field(ge=0)


class ClaimRecordResponse(BaseModel):
    id: int
    coupon_code: str
    claimant_address: str
    claimant_session: str
    claimed_at: datetime


class ClaimHistoryResponse(BaseModel):
    claims: list[ClaimRecordResponse]

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class SessionInitResponse(BaseModel):
    session_id: str
    created: bool


class SessionCheckResponse(BaseModel):
    has_session: bool


class ClaimEligibilityResponse(BaseModel):
    eligible: bool
    next_eligible_by_session: datetime | None = None
    next_eligible_by_address: datetime | None = None
    retry_after_seconds_session: int = Field(ge=0)
    retry_after_seconds_address: int = Field(ge=0)
    blocking: list[str]


class ClaimResponse(BaseModel):
    coupon_code: str
    claimed_at: datetime
    next_eligible_by_session: datetime
    next_eligible_by_address: datetime


class ClaimStatusResponse(BaseModel):
    claimed: bool
    coupon_code: str | None = None
    claimed_at: datetime | None = None

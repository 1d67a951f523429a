from __future__ import annotations

from datetime import datetime, timedelta, timezone

import structlog
from fastapi import APIRouter, HTTPException, Query, Request
from sqlalchemy.exc import IntegrityError

from coupon_drop.claims.batch import generate_raw_codes, normalize_coupon_code, normalize_prefix
from coupon_drop.core.config import get_settings
from coupon_drop.db.models.coupons import Coupon
from coupon_drop.db.repo.claim_records_repo import ClaimRecordsRepo
from coupon_drop.db.repo.coupons_repo import CouponsRepo
from coupon_drop.db.session import SessionLocal
from coupon_drop.services.internal_auth import assert_internal_access

from .internal_coupons_models import (
    ClaimHistoryResponse,
    CouponBatchRequest,
    CouponBatchResponse,
    CouponCreateRequest,
    CouponListResponse,
    CouponResponse,
    CouponSummaryResponse,
)
from .internal_helpers import _claim_record_as_response, _coupon_as_response

router = APIRouter(tags=["internal", "coupons"])
logger = structlog.get_logger(__name__)
BATCH_COLLISION_ROUNDS = 5


def _assert_internal_access(request: Request) -> None:
    assert_internal_access(request, settings=get_settings())


@router.get("/internal/coupons", response_model=CouponListResponse)
async def list_coupons(
    request: Request,
    active: bool | None = Query(default=None),
    claimed: bool | None = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
) -> CouponListResponse:
    _assert_internal_access(request)

    async with SessionLocal.begin() as session:
        coupons = await CouponsRepo.list_coupons(
            session,
            active=active,
            claimed=claimed,
            limit=limit,
        )

    return CouponListResponse(coupons=[_coupon_as_response(coupon) for coupon in coupons])


@router.post("/internal/coupons", response_model=CouponResponse, status_code=201)
async def create_coupon(payload: CouponCreateRequest, request: Request) -> CouponResponse:
    _assert_internal_access(request)

    code = normalize_coupon_code(payload.code)
    if not code:
        raise HTTPException(status_code=422, detail={"code": "E_COUPON_BATCH_INVALID"})

    try:
        async with SessionLocal.begin() as session:
            if await CouponsRepo.get_by_code(session, code) is not None:
                raise HTTPException(status_code=409, detail={"code": "E_COUPON_CODE_EXISTS"})
            coupon = await CouponsRepo.create(
                session,
                coupon=Coupon(
                    code=code,
                    active=True,
                    claimed=False,
                    created_at=datetime.now(timezone.utc),
                ),
            )
            response = _coupon_as_response(coupon)
    except IntegrityError as exc:
        raise HTTPException(status_code=409, detail={"code": "E_COUPON_CODE_EXISTS"}) from exc

    logger.info("internal_coupon_created", coupon_id=response.id)
    return response


@router.post("/internal/coupons/batch", response_model=CouponBatchResponse, status_code=201)
async def create_coupon_batch(payload: CouponBatchRequest, request: Request) -> CouponBatchResponse:
    _assert_internal_access(request)

    prefix = normalize_prefix(payload.prefix)
    try:
        codes = generate_raw_codes(
            count=payload.count,
            token_length=payload.token_length,
            prefix=prefix,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail={"code": "E_COUPON_BATCH_INVALID"}) from exc

    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            taken: set[str] = set()
            for _ in range(BATCH_COLLISION_ROUNDS):
                collisions = await CouponsRepo.list_existing_codes(session, codes)
                if not collisions:
                    break
                taken |= collisions
                fresh = [code for code in codes if code not in collisions]
                codes = fresh + generate_raw_codes(
                    count=len(collisions),
                    token_length=payload.token_length,
                    prefix=prefix,
                    existing_codes=taken | set(fresh),
                )
            else:
                raise HTTPException(status_code=409, detail={"code": "E_COUPON_CODE_EXISTS"})

            await CouponsRepo.create_many(
                session,
                coupons=[
                    Coupon(code=code, active=True, claimed=False, created_at=now_utc)
                    for code in codes
                ],
            )
    except IntegrityError as exc:
        raise HTTPException(status_code=409, detail={"code": "E_COUPON_CODE_EXISTS"}) from exc

    logger.info("internal_coupon_batch_created", created=len(codes), prefix=prefix)
    return CouponBatchResponse(created=len(codes), codes=codes)


@router.post("/internal/coupons/{coupon_id}/toggle", response_model=CouponResponse)
async def toggle_coupon(coupon_id: int, request: Request) -> CouponResponse:
    _assert_internal_access(request)

    async with SessionLocal.begin() as session:
        coupon = await CouponsRepo.toggle_active(session, coupon_id)
        if coupon is None:
            raise HTTPException(status_code=404, detail={"code": "E_COUPON_NOT_FOUND"})
        response = _coupon_as_response(coupon)

    logger.info("internal_coupon_toggled", coupon_id=coupon_id, active=response.active)
    return response


@router.get("/internal/coupons/summary", response_model=CouponSummaryResponse)
async def get_coupon_summary(request: Request) -> CouponSummaryResponse:
    _assert_internal_access(request)

    since_utc = datetime.now(timezone.utc) - timedelta(hours=24)
    async with SessionLocal.begin() as session:
        counts = await CouponsRepo.count_by_state(session)
        claims_last_24h = await ClaimRecordsRepo.count_since(session, since_utc=since_utc)

    return CouponSummaryResponse(**counts, claims_last_24h=claims_last_24h)


@router.get("/internal/claims", response_model=ClaimHistoryResponse)
async def list_claims(
    request: Request,
    limit: int = Query(default=100, ge=1, le=500),
    session_key: str | None = Query(default=None, alias="session", max_length=128),
    address: str | None = Query(default=None, max_length=45),
) -> ClaimHistoryResponse:
    _assert_internal_access(request)

    async with SessionLocal.begin() as session:
        records = await ClaimRecordsRepo.list_records(
            session,
            claimant_session=session_key,
            claimant_address=address,
            limit=limit,
        )

    return ClaimHistoryResponse(claims=[_claim_record_as_response(record) for record in records])

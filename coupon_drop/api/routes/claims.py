from __future__ import annotations

from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, HTTPException, Request, Response

from coupon_drop.claims.cooldowns import remaining_seconds
from coupon_drop.claims.errors import (
    ClaimNoSupplyError,
    ClaimSessionMissingError,
    ClaimTooSoonError,
)
from coupon_drop.claims.service import ClaimService
from coupon_drop.claims.types import CooldownStatus
from coupon_drop.core.config import get_settings
from coupon_drop.db.session import SessionLocal
from coupon_drop.services.claim_sessions import (
    attach_session_cookie,
    new_session_key,
    read_session_key,
)
from coupon_drop.services.client_address import extract_client_ip

from .claims_models import (
    ClaimEligibilityResponse,
    ClaimResponse,
    ClaimStatusResponse,
    SessionCheckResponse,
    SessionInitResponse,
)

router = APIRouter(tags=["claims"])
logger = structlog.get_logger(__name__)


def _session_key(request: Request) -> str | None:
    return read_session_key(request, cookie_name=get_settings().session_cookie_name)


def _require_session_key(request: Request) -> str:
    session_key = _session_key(request)
    if session_key is None:
        raise HTTPException(status_code=401, detail={"code": "E_SESSION_MISSING"})
    return session_key


def _require_client_address(request: Request) -> str:
    address = extract_client_ip(request, trusted_proxies=get_settings().trusted_proxies)
    if address is None:
        logger.warning(
            "client_address_unresolved",
            peer=request.client.host if request.client is not None else None,
        )
        raise HTTPException(status_code=400, detail={"code": "E_CLIENT_ADDRESS_UNRESOLVED"})
    return address


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _too_soon_exception(status: CooldownStatus) -> HTTPException:
    retry_after = remaining_seconds(status.retry_at, status.now_utc)
    return HTTPException(
        status_code=429,
        detail={
            "code": "E_CLAIM_TOO_SOON",
            "blocking": list(status.blocking_dimensions),
            "retry_at": _iso(status.retry_at),
            "next_eligible_by_session": _iso(status.next_eligible_by_session),
            "next_eligible_by_address": _iso(status.next_eligible_by_address),
            "retry_after_seconds": retry_after,
        },
        headers={"Retry-After": str(retry_after)},
    )


@router.post("/session/init", response_model=SessionInitResponse)
async def init_session(request: Request, response: Response) -> SessionInitResponse:
    session_key = _session_key(request)
    created = session_key is None
    if session_key is None:
        session_key = new_session_key()

    attach_session_cookie(response, session_key=session_key, settings=get_settings())
    if created:
        logger.info("claim_session_created")
    return SessionInitResponse(session_id=session_key, created=created)


@router.get("/session", response_model=SessionCheckResponse)
async def check_session(request: Request) -> SessionCheckResponse:
    return SessionCheckResponse(has_session=_session_key(request) is not None)


@router.get("/claims/eligibility", response_model=ClaimEligibilityResponse)
async def get_claim_eligibility(request: Request) -> ClaimEligibilityResponse:
    session_key = _require_session_key(request)
    address = _require_client_address(request)

    now_utc = datetime.now(timezone.utc)
    async with SessionLocal.begin() as session:
        status = await ClaimService.check_eligibility(
            session,
            session_key=session_key,
            address=address,
            now_utc=now_utc,
        )

    return ClaimEligibilityResponse(
        eligible=status.eligible,
        next_eligible_by_session=status.next_eligible_by_session,
        next_eligible_by_address=status.next_eligible_by_address,
        retry_after_seconds_session=remaining_seconds(status.next_eligible_by_session, now_utc),
        retry_after_seconds_address=remaining_seconds(status.next_eligible_by_address, now_utc),
        blocking=list(status.blocking_dimensions),
    )


@router.post("/claims", response_model=ClaimResponse)
async def claim_coupon(request: Request) -> ClaimResponse:
    session_key = _require_session_key(request)
    address = _require_client_address(request)

    now_utc = datetime.now(timezone.utc)
    try:
        async with SessionLocal.begin() as session:
            result = await ClaimService.claim(
                session,
                session_key=session_key,
                address=address,
                now_utc=now_utc,
            )
    except ClaimSessionMissingError as exc:
        raise HTTPException(status_code=401, detail={"code": "E_SESSION_MISSING"}) from exc
    except ClaimTooSoonError as exc:
        raise _too_soon_exception(exc.status) from exc
    except ClaimNoSupplyError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_NO_SUPPLY"}) from exc

    return ClaimResponse(
        coupon_code=result.coupon_code,
        claimed_at=result.claimed_at,
        next_eligible_by_session=result.next_eligible_by_session,
        next_eligible_by_address=result.next_eligible_by_address,
    )


@router.get("/claims/status", response_model=ClaimStatusResponse)
async def get_claim_status(request: Request) -> ClaimStatusResponse:
    session_key = _require_session_key(request)

    async with SessionLocal.begin() as session:
        result = await ClaimService.get_claim_status(session, session_key=session_key)

    return ClaimStatusResponse(
        claimed=result.claimed,
        coupon_code=result.coupon_code,
        claimed_at=result.claimed_at,
    )

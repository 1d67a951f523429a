from __future__ import annotations

import uuid

from fastapi import Request, Response

SESSION_HEADER = "X-Claim-Session"
MAX_SESSION_KEY_LENGTH = 128


def new_session_key() -> str:
    return uuid.uuid4().hex


def _normalize_session_key(value: str | None) -> str | None:
    if value is None:
        return None
    candidate = value.strip()
    if not candidate or len(candidate) > MAX_SESSION_KEY_LENGTH:
        return None
    return candidate


def read_session_key(request: Request, *, cookie_name: str) -> str | None:
    from_cookie = _normalize_session_key(request.cookies.get(cookie_name))
    if from_cookie is not None:
        return from_cookie
    return _normalize_session_key(request.headers.get(SESSION_HEADER))


def attach_session_cookie(response: Response, *, session_key: str, settings) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session_key,
        max_age=settings.session_cookie_max_age_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )

from __future__ import annotations

from types import SimpleNamespace

import pytest
from fastapi import HTTPException

from coupon_drop.services.internal_auth import (
    assert_internal_access,
    is_internal_request_authenticated,
    is_valid_internal_token,
)

SETTINGS = SimpleNamespace(
    internal_api_token="secret",
    internal_api_allowlist="127.0.0.1/32",
    trusted_proxies="",
)


def _request(*, peer: str, token: str | None = None) -> SimpleNamespace:
    headers = {"X-Internal-Token": token} if token is not None else {}
    return SimpleNamespace(headers=headers, client=SimpleNamespace(host=peer))


def test_is_valid_internal_token_requires_exact_match() -> None:
    assert is_valid_internal_token(expected_token="secret", received_token="secret") is True
    assert is_valid_internal_token(expected_token="secret", received_token="wrong") is False
    assert is_valid_internal_token(expected_token="secret", received_token=None) is False
    assert is_valid_internal_token(expected_token="", received_token="") is False


def test_is_internal_request_authenticated_reads_header() -> None:
    assert is_internal_request_authenticated(_request(peer="127.0.0.1", token="secret"), expected_token="secret")
    assert not is_internal_request_authenticated(_request(peer="127.0.0.1"), expected_token="secret")


def test_assert_internal_access_accepts_allowed_ip_with_token() -> None:
    assert_internal_access(_request(peer="127.0.0.1", token="secret"), settings=SETTINGS)


@pytest.mark.parametrize(
    "request_",
    [
        _request(peer="192.168.1.5", token="secret"),
        _request(peer="127.0.0.1", token="wrong"),
        _request(peer="127.0.0.1"),
    ],
)
def test_assert_internal_access_rejects_with_forbidden(request_) -> None:
    with pytest.raises(HTTPException) as exc_info:
        assert_internal_access(request_, settings=SETTINGS)

    assert exc_info.value.status_code == 403
    assert exc_info.value.detail == {"code": "E_FORBIDDEN"}

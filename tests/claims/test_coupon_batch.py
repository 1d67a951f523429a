from __future__ import annotations

import pytest

from coupon_drop.claims.batch import (
    CODE_ALPHABET,
    generate_raw_codes,
    normalize_prefix,
    validate_batch_codes,
)


def test_generate_raw_codes_returns_unique_codes_with_prefix() -> None:
    codes = generate_raw_codes(count=5, token_length=6, prefix="DROP-")
    assert len(codes) == 5
    assert len(set(codes)) == 5
    assert all(code.startswith("DROP-") for code in codes)
    assert all(set(code.removeprefix("DROP-")) <= set(CODE_ALPHABET) for code in codes)


def test_generate_raw_codes_avoids_existing_codes() -> None:
    existing = {f"X{first}{second}" for first in CODE_ALPHABET for second in CODE_ALPHABET[:16]}
    taken = set(existing)

    codes = generate_raw_codes(count=20, token_length=2, prefix="X", existing_codes=existing)

    assert len(set(codes)) == 20
    assert not set(codes) & taken


@pytest.mark.parametrize(
    "kwargs",
    [
        {"count": 0},
        {"count": 1, "token_length": 0},
        {"count": 10_001},
        {"count": 1, "token_length": 60, "prefix": "LONG-PREFIX-"},
    ],
)
def test_generate_raw_codes_rejects_invalid_parameters(kwargs) -> None:
    with pytest.raises(ValueError):
        generate_raw_codes(**kwargs)


def test_normalize_prefix_uppercases_and_appends_separator() -> None:
    assert normalize_prefix(" spring ") == "SPRING-"
    assert normalize_prefix("SPRING-") == "SPRING-"
    assert normalize_prefix("") == ""


def test_validate_batch_codes_strips_values() -> None:
    assert validate_batch_codes([" A1 ", "B2"]) == ["A1", "B2"]


@pytest.mark.parametrize("raw_codes", [["A1", " A1"], ["  "], ["X" * 65]])
def test_validate_batch_codes_rejects_bad_input(raw_codes) -> None:
    with pytest.raises(ValueError):
        validate_batch_codes(raw_codes)

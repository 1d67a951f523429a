from __future__ import annotations

import secrets

CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
MAX_CODE_LENGTH = 64
MAX_BATCH_SIZE = 10_000


def normalize_coupon_code(raw_code: str) -> str:
    return raw_code.strip()


def normalize_prefix(raw_prefix: str) -> str:
    prefix = raw_prefix.strip().upper()
    if prefix and not prefix.endswith("-"):
        prefix = f"{prefix}-"
    return prefix


def generate_raw_codes(
    *,
    count: int,
    token_length: int = 8,
    prefix: str = "",
    existing_codes: set[str] | None = None,
) -> list[str]:
    if count <= 0:
        raise ValueError("count must be positive")
    if count > MAX_BATCH_SIZE:
        raise ValueError(f"count must not exceed {MAX_BATCH_SIZE}")
    if token_length <= 0:
        raise ValueError("token_length must be positive")
    if len(prefix) + token_length > MAX_CODE_LENGTH:
        raise ValueError(f"codes must not exceed {MAX_CODE_LENGTH} characters")

    existing = existing_codes if existing_codes is not None else set()
    generated: list[str] = []
    attempts = 0
    max_attempts = max(100, count * 50)

    while len(generated) < count:
        attempts += 1
        if attempts > max_attempts:
            raise RuntimeError("unable to generate unique coupon codes")

        token = "".join(secrets.choice(CODE_ALPHABET) for _ in range(token_length))
        raw_code = f"{prefix}{token}" if prefix else token
        if raw_code in existing:
            continue

        existing.add(raw_code)
        generated.append(raw_code)

    return generated


def validate_batch_codes(raw_codes: list[str]) -> list[str]:
    """Normalize imported codes and reject blanks, oversize values and repeats."""
    seen: set[str] = set()
    codes: list[str] = []
    for raw_code in raw_codes:
        code = normalize_coupon_code(raw_code)
        if not code:
            raise ValueError("coupon code must not be empty")
        if len(code) > MAX_CODE_LENGTH:
            raise ValueError(f"coupon code '{code}' exceeds {MAX_CODE_LENGTH} characters")
        if code in seen:
            raise ValueError(f"duplicate coupon code in batch: {code}")
        seen.add(code)
        codes.append(code)
    return codes

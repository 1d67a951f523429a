from __future__ import annotations

import asyncio
import re

import asyncpg
from sqlalchemy.engine import make_url

from coupon_drop.core.config import get_settings
from coupon_drop.core.integration_db_safety import assert_safe_test_database

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


async def _ensure_database_exists(database_url: str) -> None:
    assert_safe_test_database(database_url)

    parsed = make_url(database_url)
    db_name = parsed.database or ""
    if IDENTIFIER_RE.fullmatch(db_name) is None:
        raise RuntimeError(f"Unsupported database name '{db_name}'; use [A-Za-z0-9_] only.")
    if parsed.username is None:
        raise RuntimeError("DATABASE_URL username is required.")

    host = parsed.host or "localhost"
    port = int(parsed.port or 5432)
    conn = await asyncpg.connect(
        host=host,
        port=port,
        user=parsed.username,
        password=parsed.password,
        database="postgres",
    )
    try:
        exists = await conn.fetchval("SELECT 1 FROM pg_database WHERE datname = $1", db_name)
        if exists:
            print(f"ensure_test_db: exists db={db_name} host={host}:{port}")  # noqa: T201
            return

        await conn.execute(f'CREATE DATABASE "{db_name}"')
        print(f"ensure_test_db: created db={db_name} host={host}:{port}")  # noqa: T201
    finally:
        await conn.close()


def main() -> int:
    asyncio.run(_ensure_database_exists(get_settings().database_url))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

from __future__ import annotations

import pytest
from sqlalchemy import text

from coupon_drop.core.integration_db_safety import inspect_test_database_url
from coupon_drop.db.models.base import Base
from coupon_drop.db.session import engine

TRUNCATE_TABLES = (
    "claim_records",
    "coupons",
)

TRUNCATE_SQL = f"TRUNCATE TABLE {', '.join(TRUNCATE_TABLES)} RESTART IDENTITY CASCADE"


@pytest.fixture(scope="session", autouse=True)
def guard_integration_db_target() -> None:
    check = inspect_test_database_url(engine.url.render_as_string(hide_password=False))
    if not check.is_safe:
        pytest.skip(f"Refusing destructive integration run: {check.problem}")


@pytest.fixture(autouse=True)
async def cleanup_db() -> None:
    # Dispose pooled connections between tests to avoid cross-event-loop asyncpg reuse.
    await engine.dispose()

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:  # pragma: no cover - environment-dependent
        pytest.skip(f"Postgres is required for integration tests: {exc}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.execute(text(TRUNCATE_SQL))

    yield

    await engine.dispose()

from __future__ import annotations

import pytest
from sqlalchemy import text

from settlement.core.integration_db_safety import assert_safe_integration_db
from settlement.db import models  # noqa: F401
from settlement.db.models.base import Base
from settlement.db.session import engine

TRUNCATE_TABLES = (
    "commissions",
    "payouts",
    "tips",
    "tickets",
    "affiliates",
    "events",
    "artists",
    "processed_payment_events",
)

TRUNCATE_SQL = f"TRUNCATE TABLE {', '.join(TRUNCATE_TABLES)} RESTART IDENTITY CASCADE"


@pytest.fixture(autouse=True)
async def cleanup_db() -> None:
    # Dispose pooled connections between tests to avoid cross-event-loop asyncpg reuse.
    await engine.dispose()

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:  # pragma: no cover - environment-dependent
        pytest.skip(f"Postgres is required for integration tests: {exc}")

    assert_safe_integration_db(str(engine.url))

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.execute(text(TRUNCATE_SQL))

    yield

    await engine.dispose()

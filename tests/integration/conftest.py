from __future__ import annotations

import pytest
from sqlalchemy import text

import app.db.models  # noqa: F401
from app.core.integration_db_safety import assert_safe_integration_db
from app.db.models.base import Base
from app.db.session import engine

# Children first; CASCADE covers anything added later.
TRUNCATE_SQL = "TRUNCATE TABLE {} RESTART IDENTITY CASCADE".format(
    ", ".join(table.name for table in reversed(Base.metadata.sorted_tables))
)


@pytest.fixture(scope="session", autouse=True)
def integration_db_target() -> None:
    assert_safe_integration_db(str(engine.url))


async def _ping_or_skip() -> None:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as exc:  # pragma: no cover - environment-dependent
        pytest.skip(f"Postgres is required for integration tests: {exc}")


@pytest.fixture(autouse=True)
async def clean_gamification_tables() -> None:
    # Each test runs on its own event loop; pooled asyncpg connections cannot follow.
    await engine.dispose()
    await _ping_or_skip()

    async with engine.begin() as conn:
        await conn.execute(text(TRUNCATE_SQL))

    yield

    await engine.dispose()

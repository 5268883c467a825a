from __future__ import annotations

import asyncio

import asyncpg
import structlog

from app.core.config import get_settings
from app.core.integration_db_safety import assert_safe_integration_db
from app.core.logging import configure_logging

logger = structlog.get_logger("scripts.ensure_test_db")


async def _ensure_database_exists(database_url: str) -> bool:
    target = assert_safe_integration_db(database_url)
    if target.username is None:
        raise RuntimeError("DATABASE_URL username is required.")

    conn = await asyncpg.connect(
        host=target.host,
        port=target.port,
        user=target.username,
        password=target.password,
        database="postgres",
    )
    try:
        exists = await conn.fetchval(
            "SELECT 1 FROM pg_database WHERE datname = $1",
            target.database_name,
        )
        if exists:
            logger.info("test_database_exists", database=target.database_name, host=target.host)
            return False

        # Name is validated as a plain identifier above.
        await conn.execute(f'CREATE DATABASE "{target.database_name}"')
        logger.info("test_database_created", database=target.database_name, host=target.host)
        return True
    finally:
        await conn.close()


def main() -> int:
    settings = get_settings()
    configure_logging(settings.log_level)
    asyncio.run(_ensure_database_exists(settings.database_url))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

from __future__ import annotations

import asyncio
from typing import Any

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy import text

from app.core.config import get_settings
from app.db.session import SessionLocal
from app.workers.celery_app import celery_app

router = APIRouter(tags=["health"])
logger = structlog.get_logger(__name__)

LEDGER_GUARD_TRIGGER = "trg_points_ledger_entries_append_only"


def _ok_check(extra: dict[str, Any] | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"status": "ok"}
    if extra:
        payload.update(extra)
    return payload


def _failed_check(error: str) -> dict[str, str]:
    return {"status": "failed", "error": error}


async def _check_database() -> dict[str, Any]:
    # Connectivity alone is not enough: without the append-only trigger the
    # points ledger could be rewritten in place.
    try:
        async with SessionLocal() as session:
            guard_installed = await session.scalar(
                text("SELECT EXISTS (SELECT 1 FROM pg_trigger WHERE tgname = :name)"),
                {"name": LEDGER_GUARD_TRIGGER},
            )
    except Exception:
        logger.warning("health_check_failed", dependency="database", exc_info=True)
        return _failed_check("database_unavailable")

    if not guard_installed:
        logger.warning("health_check_failed", dependency="database", reason="ledger_guard_missing")
        return _failed_check("ledger_guard_missing")
    return _ok_check()


async def _check_redis() -> dict[str, Any]:
    redis_client: Redis | None = None
    try:
        redis_client = Redis.from_url(get_settings().redis_url)
        if await redis_client.ping() is not True:
            return _failed_check("redis_unexpected_ping_response")
        return _ok_check()
    except Exception:
        logger.warning("health_check_failed", dependency="redis", exc_info=True)
        return _failed_check("redis_unavailable")
    finally:
        if redis_client is not None:
            await redis_client.aclose()


def _check_celery_worker_sync() -> dict[str, Any]:
    try:
        inspector = celery_app.control.inspect(timeout=1.0)
        if inspector is None:
            return _failed_check("celery_inspector_unavailable")

        replies = inspector.ping() or {}
    except Exception:
        logger.warning("health_check_failed", dependency="celery", exc_info=True)
        return _failed_check("celery_unavailable")

    if not replies:
        return _failed_check("celery_no_workers")
    return _ok_check({"workers": len(replies)})


async def _check_celery_worker() -> dict[str, Any]:
    return await asyncio.to_thread(_check_celery_worker_sync)


def _report(checks: dict[str, dict[str, Any]], *, ok_status: str, failed_status: str) -> JSONResponse:
    passed = all(check.get("status") == "ok" for check in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if passed else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": ok_status if passed else failed_status, "checks": checks},
    )


@router.get("/health")
async def health() -> JSONResponse:
    database, redis, celery = await asyncio.gather(
        _check_database(),
        _check_redis(),
        _check_celery_worker(),
    )
    return _report(
        {"database": database, "redis": redis, "celery": celery},
        ok_status="ok",
        failed_status="degraded",
    )


@router.get("/ready")
async def ready() -> JSONResponse:
    # Deferred completions queue up in the broker, so a missing worker does
    # not make the HTTP surface unready.
    database, redis = await asyncio.gather(_check_database(), _check_redis())
    return _report(
        {"database": database, "redis": redis},
        ok_status="ready",
        failed_status="not_ready",
    )


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "live"}

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Mapping
from typing import TypeVar

import structlog

from app.db.session import dispose_engine

T = TypeVar("T")


async def _run_in_worker_scope(awaitable: Awaitable[T], context: Mapping[str, object]) -> T:
    # Each asyncio.run gets its own loop; pooled asyncpg connections bound to a
    # previous loop cannot be reused.
    await dispose_engine()
    structlog.contextvars.bind_contextvars(**context)
    try:
        return await awaitable
    finally:
        structlog.contextvars.unbind_contextvars(*context)
        await dispose_engine()


def run_async_job(awaitable: Awaitable[T], *, job_name: str | None = None, **context: object) -> T:
    """Drive a coroutine from a synchronous Celery task.

    ``job_name`` and any extra keyword arguments are bound as structlog
    context for every log line emitted while the job runs.
    """
    bound: dict[str, object] = {key: value for key, value in context.items() if value is not None}
    if job_name is not None:
        bound["job"] = job_name
    return asyncio.run(_run_in_worker_scope(awaitable, bound))

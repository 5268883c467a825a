from __future__ import annotations

import asyncio
import random
from datetime import datetime

import structlog
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm.exc import StaleDataError

from app.core.config import get_settings
from app.core.errors import ConsistencyConflictError
from app.db.session import SessionLocal
from app.game.sessions.completion.constants import RETRY_JITTER_RATIO, TRANSIENT_SQLSTATES
from app.game.sessions.completion.service import SessionCompletionService
from app.game.sessions.completion.types import GameSessionCompleted, SessionProcessingResult

logger = structlog.get_logger(__name__)


def retry_backoff_ms(*, attempt: int, base_ms: int, max_ms: int) -> int:
    safe_attempt = max(1, int(attempt))
    safe_max_ms = max(1, int(max_ms))

    base_delay = min(safe_max_ms, max(1, int(base_ms)) * 2 ** (safe_attempt - 1))
    max_jitter = max(0, int(base_delay * RETRY_JITTER_RATIO))
    jitter = random.randint(0, max_jitter) if max_jitter > 0 else 0
    return min(safe_max_ms, base_delay + jitter)


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    return str(code) if code is not None else None


def is_transient_conflict(exc: BaseException) -> bool:
    if isinstance(exc, StaleDataError):
        return True
    if isinstance(exc, DBAPIError):
        return _sqlstate(exc) in TRANSIENT_SQLSTATES
    return False


async def process_session_completed(
    event: GameSessionCompleted,
    *,
    now_utc: datetime,
) -> SessionProcessingResult:
    settings = get_settings()
    max_attempts = max(1, int(settings.session_completion_max_attempts))

    attempt = 1
    while True:
        try:
            async with SessionLocal.begin() as session:
                return await SessionCompletionService.complete(
                    session,
                    event=event,
                    now_utc=now_utc,
                )
        except (DBAPIError, StaleDataError) as exc:
            if not is_transient_conflict(exc):
                raise
            if attempt >= max_attempts:
                logger.warning(
                    "session_completion_conflict_exhausted",
                    session_id=event.session_id,
                    customer_id=event.customer_id,
                    attempts=attempt,
                    error_type=type(exc).__name__,
                )
                raise ConsistencyConflictError(
                    f"session {event.session_id} could not be applied after {attempt} attempts"
                ) from exc

            delay_ms = retry_backoff_ms(
                attempt=attempt,
                base_ms=settings.session_completion_retry_backoff_base_ms,
                max_ms=settings.session_completion_retry_backoff_max_ms,
            )
            logger.info(
                "session_completion_retry_scheduled",
                session_id=event.session_id,
                customer_id=event.customer_id,
                attempt=attempt,
                retry_in_ms=delay_ms,
                error_type=type(exc).__name__,
            )
            attempt += 1
            await asyncio.sleep(delay_ms / 1000)

from __future__ import annotations

import random
from datetime import datetime, timezone

import structlog
from celery import Task

from app.core.config import get_settings
from app.core.errors import GamificationValidationError, NotFoundError
from app.game.sessions.completion.runner import process_session_completed
from app.game.sessions.completion.types import GameSessionCompleted
from app.game.sessions.completion.validation import parse_session_completed
from app.workers.asyncio_runner import run_async_job
from app.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)
settings = get_settings()
TASK_MAX_RETRIES = max(0, int(settings.session_completion_task_max_retries))
TASK_RETRY_BACKOFF_MAX_SECONDS = 60
RETRY_JITTER_RATIO = 0.25


def _retry_backoff_seconds(
    *,
    next_retry_attempt: int,
    backoff_max_seconds: int,
) -> int:
    safe_retry_attempt = max(1, int(next_retry_attempt))
    safe_backoff_max_seconds = max(1, int(backoff_max_seconds))

    base_delay = min(
        safe_backoff_max_seconds,
        2 ** (safe_retry_attempt - 1),
    )
    max_jitter = max(0, int(base_delay * RETRY_JITTER_RATIO))
    jitter = random.randint(0, max_jitter) if max_jitter > 0 else 0
    return min(safe_backoff_max_seconds, base_delay + jitter)


async def process_session_completed_async(event: GameSessionCompleted) -> str:
    result = await process_session_completed(event, now_utc=datetime.now(timezone.utc))
    if result.idempotent_replay:
        logger.info("session_completion_duplicate", session_id=event.session_id)
        return "duplicate"

    logger.info(
        "session_completion_processed",
        session_id=event.session_id,
        customer_id=event.customer_id,
        total_points=result.customer.total_points,
        segment=result.customer.segment,
        challenges_touched=len(result.challenge_deltas),
    )
    return "processed"


@celery_app.task(
    name="app.workers.tasks.session_completion.process_session_completed_task",
    bind=True,
    max_retries=TASK_MAX_RETRIES,
    acks_late=True,
    reject_on_worker_lost=True,
)
def process_session_completed_task(self: Task, event_payload: dict[str, object]) -> str:
    validation = parse_session_completed(event_payload)
    if validation.event is None:
        logger.warning(
            "session_completion_event_invalid",
            session_id=event_payload.get("session_id"),
            errors=list(validation.errors),
        )
        return "invalid"

    event = validation.event
    task_id = str(self.request.id) if self.request.id is not None else None
    try:
        return run_async_job(
            process_session_completed_async(event),
            job_name="session_completion",
            session_id=event.session_id,
            task_id=task_id,
        )
    except (NotFoundError, GamificationValidationError) as exc:
        logger.warning(
            "session_completion_dropped",
            session_id=event.session_id,
            task_id=task_id,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        return "dropped"
    except Exception as exc:
        current_retries = max(0, int(getattr(self.request, "retries", 0) or 0))
        if current_retries >= TASK_MAX_RETRIES:
            logger.exception(
                "session_completion_failed_final",
                session_id=event.session_id,
                task_id=task_id,
                retries=current_retries,
                max_retries=TASK_MAX_RETRIES,
            )
            raise

        next_retry_attempt = current_retries + 1
        retry_in_seconds = _retry_backoff_seconds(
            next_retry_attempt=next_retry_attempt,
            backoff_max_seconds=TASK_RETRY_BACKOFF_MAX_SECONDS,
        )
        logger.warning(
            "session_completion_retry_scheduled",
            session_id=event.session_id,
            task_id=task_id,
            retry_attempt=next_retry_attempt,
            retry_in_seconds=retry_in_seconds,
            max_retries=TASK_MAX_RETRIES,
        )
        raise self.retry(
            exc=exc,
            countdown=retry_in_seconds,
            max_retries=TASK_MAX_RETRIES,
        )

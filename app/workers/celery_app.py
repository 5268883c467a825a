from celery import Celery

from app.core.config import get_settings

settings = get_settings()

SESSION_COMPLETION_TASK = "app.workers.tasks.session_completion.process_session_completed_task"

celery_app = Celery(
    "merchant_games",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "app.workers.tasks.session_completion",
    ],
)

celery_app.conf.update(
    task_default_queue="q_normal",
    # Points and leaderboard updates are user-visible; keep them off the default lane.
    task_routes={
        SESSION_COMPLETION_TASK: {"queue": "q_high"},
    },
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    result_expires=settings.celery_result_expires_seconds,
    timezone=settings.gameplay_timezone,
    enable_utc=True,
)

from app.workers.tasks.session_completion import process_session_completed_task

__all__ = [
    "process_session_completed_task",
]

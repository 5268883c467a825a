from __future__ import annotations

import pytest
import structlog

from app.workers import asyncio_runner


@pytest.fixture
def dispose_calls(monkeypatch) -> list[str]:
    calls: list[str] = []

    async def fake_dispose_engine() -> None:
        calls.append("dispose")

    monkeypatch.setattr(asyncio_runner, "dispose_engine", fake_dispose_engine)
    return calls


def test_run_async_job_binds_job_context_while_running(dispose_calls: list[str]) -> None:
    seen: dict[str, object] = {}

    async def job() -> str:
        seen.update(structlog.contextvars.get_contextvars())
        return "processed"

    result = asyncio_runner.run_async_job(
        job(),
        job_name="session_completion",
        session_id="gs_1",
        task_id=None,
    )

    assert result == "processed"
    assert seen == {"job": "session_completion", "session_id": "gs_1"}
    assert dispose_calls == ["dispose", "dispose"]


def test_run_async_job_disposes_pool_and_clears_context_on_failure(dispose_calls: list[str]) -> None:
    async def job() -> str:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError, match="boom"):
        asyncio_runner.run_async_job(job(), job_name="session_completion")

    assert dispose_calls == ["dispose", "dispose"]
    assert "job" not in structlog.contextvars.get_contextvars()

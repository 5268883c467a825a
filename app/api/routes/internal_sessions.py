from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Literal

import structlog
from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from app.core.config import get_settings
from app.core.errors import ConsistencyConflictError
from app.game.sessions.completion.errors import (
    CustomerNotFoundError,
    EventValidationError,
    GameSessionNotFoundError,
)
from app.game.sessions.completion.runner import process_session_completed
from app.game.sessions.completion.types import SessionProcessingResult
from app.game.sessions.completion.validation import parse_session_completed, require_valid
from app.services.internal_auth import assert_internal_access
from app.workers.tasks.session_completion import process_session_completed_task

router = APIRouter(tags=["internal", "sessions"])
logger = structlog.get_logger(__name__)


class SessionCompleteRequest(BaseModel):
    customer_id: str = Field(min_length=1, max_length=64)
    merchant_id: str = Field(min_length=1, max_length=64)
    game_type: str = Field(min_length=1, max_length=32)
    score: int | None = Field(default=None, ge=0)
    points_earned: int = Field(ge=0)
    was_completed: bool
    difficulty_level: Literal["easy", "medium", "hard"] = "medium"
    session_duration: int = Field(ge=0)
    prize_won: str | None = Field(default=None, max_length=64)


class CustomerSummaryResponse(BaseModel):
    customer_id: str
    total_points: int
    games_played: int
    average_session_duration: Decimal
    engagement_score: Decimal
    segment: str
    version: int


class LedgerEntryResponse(BaseModel):
    entry_id: int
    transaction_type: str
    points_change: int
    balance_before: int
    balance_after: int
    reference_id: str | None = None


class ChallengeDeltaResponse(BaseModel):
    challenge_id: str
    challenge_type: str
    old_progress: int
    new_progress: int
    target_value: int
    completed: bool
    reward_points_awarded: int


class LeaderboardEntryResponse(BaseModel):
    period_type: str
    period_start: datetime
    rank_position: int
    best_score: int
    games_played: int


class SessionCompleteResponse(BaseModel):
    session_id: str
    idempotent_replay: bool
    stage: str
    customer: CustomerSummaryResponse
    ledger_entry: LedgerEntryResponse | None = None
    challenge_deltas: list[ChallengeDeltaResponse]
    leaderboard_entries: list[LeaderboardEntryResponse]


def _assert_internal_access(request: Request) -> None:
    assert_internal_access(request, settings=get_settings(), scope="sessions")


def _as_response(result: SessionProcessingResult) -> SessionCompleteResponse:
    ledger_entry = None
    if result.ledger_entry is not None:
        ledger_entry = LedgerEntryResponse(
            entry_id=result.ledger_entry.entry_id,
            transaction_type=result.ledger_entry.transaction_type,
            points_change=result.ledger_entry.points_change,
            balance_before=result.ledger_entry.balance_before,
            balance_after=result.ledger_entry.balance_after,
            reference_id=result.ledger_entry.reference_id,
        )
    return SessionCompleteResponse(
        session_id=result.session_id,
        idempotent_replay=result.idempotent_replay,
        stage=result.stage.value,
        customer=CustomerSummaryResponse(
            customer_id=result.customer.customer_id,
            total_points=result.customer.total_points,
            games_played=result.customer.games_played,
            average_session_duration=result.customer.average_session_duration,
            engagement_score=result.customer.engagement_score,
            segment=result.customer.segment,
            version=result.customer.version,
        ),
        ledger_entry=ledger_entry,
        challenge_deltas=[
            ChallengeDeltaResponse(
                challenge_id=delta.challenge_id,
                challenge_type=delta.challenge_type,
                old_progress=delta.old_progress,
                new_progress=delta.new_progress,
                target_value=delta.target_value,
                completed=delta.completed,
                reward_points_awarded=delta.reward_points_awarded,
            )
            for delta in result.challenge_deltas
        ],
        leaderboard_entries=[
            LeaderboardEntryResponse(
                period_type=entry.period_type,
                period_start=entry.period_start,
                rank_position=entry.rank_position,
                best_score=entry.best_score,
                games_played=entry.games_played,
            )
            for entry in result.leaderboard_entries
        ],
    )


@router.post(
    "/internal/sessions/{session_id}/complete",
    response_model=SessionCompleteResponse,
    responses={202: {"description": "Queued for background processing"}},
)
async def complete_session(
    session_id: str,
    payload: SessionCompleteRequest,
    request: Request,
    defer: bool = Query(default=False),
):
    _assert_internal_access(request)

    event_payload: dict[str, object] = {"session_id": session_id, **payload.model_dump()}
    try:
        event = require_valid(parse_session_completed(event_payload))
    except EventValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail={"code": "E_EVENT_INVALID", "errors": list(exc.errors)},
        ) from exc

    if defer:
        process_session_completed_task.delay(event_payload)
        logger.info("session_completion_enqueued", session_id=session_id)
        return JSONResponse(status_code=202, content={"session_id": session_id, "status": "queued"})

    try:
        result = await process_session_completed(event, now_utc=datetime.now(timezone.utc))
    except EventValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail={"code": "E_EVENT_INVALID", "errors": list(exc.errors)},
        ) from exc
    except GameSessionNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_SESSION_NOT_FOUND"}) from exc
    except CustomerNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_CUSTOMER_NOT_FOUND"}) from exc
    except ConsistencyConflictError as exc:
        raise HTTPException(status_code=409, detail={"code": "E_CONSISTENCY_CONFLICT"}) from exc

    return _as_response(result)

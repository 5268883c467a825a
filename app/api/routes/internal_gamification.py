from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, Field

from app.core.config import get_settings
from app.db.session import SessionLocal
from app.game.achievements.errors import (
    AchievementAlreadyUnlockedError,
    AchievementCustomerNotFoundError,
    AchievementNotFoundError,
)
from app.game.achievements.service import AchievementService
from app.game.challenges.constants import MAX_MANUAL_PROGRESS_INCREMENT
from app.game.challenges.errors import (
    ChallengeAlreadyCompletedError,
    ChallengeAlreadyJoinedError,
    ChallengeCustomerNotFoundError,
    ChallengeFullError,
    ChallengeNotFoundError,
    ChallengeParticipationNotFoundError,
    ChallengeProgressValidationError,
)
from app.game.challenges.service import ChallengeService
from app.game.leaderboards.service import LeaderboardRanker
from app.services.internal_auth import assert_internal_access

router = APIRouter(tags=["internal", "gamification"])


class ChallengeJoinRequest(BaseModel):
    customer_id: str = Field(min_length=1, max_length=64)


class ChallengeJoinResponse(BaseModel):
    user_challenge_id: str
    challenge_id: str
    customer_id: str
    current_participants: int = Field(ge=0)
    started_at: datetime


class ChallengeParticipantResponse(BaseModel):
    user_challenge_id: str
    customer_id: str
    current_progress: int = Field(ge=0)
    target_value: int
    is_completed: bool
    completed_at: datetime | None = None


class ChallengeParticipantsResponse(BaseModel):
    challenge_id: str
    participants: list[ChallengeParticipantResponse]


class ChallengeProgressRequest(BaseModel):
    customer_id: str = Field(min_length=1, max_length=64)
    increment: int = Field(ge=0, le=MAX_MANUAL_PROGRESS_INCREMENT)


class ChallengeProgressResponse(BaseModel):
    challenge_id: str
    user_challenge_id: str
    old_progress: int = Field(ge=0)
    new_progress: int = Field(ge=0)
    target_value: int
    completed: bool
    reward_points_awarded: int = Field(ge=0)
    reward_entry_id: int | None = None


class ChallengeCompleteRequest(BaseModel):
    customer_id: str = Field(min_length=1, max_length=64)


class ChallengeCompleteResponse(BaseModel):
    user_challenge_id: str
    challenge_id: str
    customer_id: str
    current_progress: int = Field(ge=0)
    target_value: int
    completed_at: datetime
    reward_points_awarded: int = Field(ge=0)
    reward_entry_id: int | None = None


class AchievementUnlockRequest(BaseModel):
    customer_id: str = Field(min_length=1, max_length=64)
    progress_data: dict[str, object] = Field(default_factory=dict)


class AchievementUnlockResponse(BaseModel):
    user_achievement_id: str
    achievement_id: str
    customer_id: str
    title: str
    tier: str
    points_awarded: int = Field(ge=0)
    reward_entry_id: int | None = None
    unlocked_at: datetime


class UnlockedAchievementResponse(BaseModel):
    achievement_id: str
    title: str
    tier: str
    points_reward: int = Field(ge=0)
    unlocked_at: datetime


class CustomerAchievementsResponse(BaseModel):
    customer_id: str
    achievements: list[UnlockedAchievementResponse]


class StandingResponse(BaseModel):
    standing: int = Field(ge=1)
    customer_id: str
    best_score: int
    games_played: int = Field(ge=0)
    total_points: int
    rank_position: int = Field(ge=1)


class LeaderboardResponse(BaseModel):
    merchant_id: str
    game_type: str
    period_type: str
    generated_at: datetime
    standings: list[StandingResponse]


def _assert_internal_access(request: Request) -> None:
    assert_internal_access(request, settings=get_settings(), scope="gamification")


@router.post(
    "/internal/challenges/{challenge_id}/join",
    response_model=ChallengeJoinResponse,
)
async def join_challenge(
    challenge_id: str,
    payload: ChallengeJoinRequest,
    request: Request,
) -> ChallengeJoinResponse:
    _assert_internal_access(request)

    try:
        async with SessionLocal.begin() as session:
            result = await ChallengeService.join(
                session,
                challenge_id=challenge_id,
                customer_id=payload.customer_id,
                now_utc=datetime.now(timezone.utc),
            )
    except ChallengeNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_CHALLENGE_NOT_FOUND"}) from exc
    except ChallengeCustomerNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_CUSTOMER_NOT_FOUND"}) from exc
    except ChallengeAlreadyJoinedError as exc:
        raise HTTPException(status_code=409, detail={"code": "E_CHALLENGE_ALREADY_JOINED"}) from exc
    except ChallengeFullError as exc:
        raise HTTPException(status_code=422, detail={"code": "E_CHALLENGE_FULL"}) from exc

    return ChallengeJoinResponse(
        user_challenge_id=result.user_challenge_id,
        challenge_id=result.challenge_id,
        customer_id=result.customer_id,
        current_participants=result.current_participants,
        started_at=result.started_at,
    )


@router.post(
    "/internal/challenges/{challenge_id}/progress",
    response_model=ChallengeProgressResponse,
)
async def record_challenge_progress(
    challenge_id: str,
    payload: ChallengeProgressRequest,
    request: Request,
) -> ChallengeProgressResponse:
    _assert_internal_access(request)

    try:
        async with SessionLocal.begin() as session:
            delta = await ChallengeService.record_progress(
                session,
                challenge_id=challenge_id,
                customer_id=payload.customer_id,
                increment=payload.increment,
                now_utc=datetime.now(timezone.utc),
            )
    except ChallengeNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_CHALLENGE_NOT_FOUND"}) from exc
    except ChallengeCustomerNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_CUSTOMER_NOT_FOUND"}) from exc
    except ChallengeParticipationNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_PARTICIPATION_NOT_FOUND"}) from exc
    except ChallengeProgressValidationError as exc:
        raise HTTPException(status_code=422, detail={"code": "E_PROGRESS_INVALID"}) from exc

    return ChallengeProgressResponse(
        challenge_id=delta.challenge_id,
        user_challenge_id=delta.user_challenge_id,
        old_progress=delta.old_progress,
        new_progress=delta.new_progress,
        target_value=delta.target_value,
        completed=delta.completed,
        reward_points_awarded=delta.reward_points_awarded,
        reward_entry_id=delta.reward_entry_id,
    )


@router.post(
    "/internal/challenges/{challenge_id}/complete",
    response_model=ChallengeCompleteResponse,
)
async def complete_challenge(
    challenge_id: str,
    payload: ChallengeCompleteRequest,
    request: Request,
) -> ChallengeCompleteResponse:
    _assert_internal_access(request)

    try:
        async with SessionLocal.begin() as session:
            result = await ChallengeService.complete(
                session,
                challenge_id=challenge_id,
                customer_id=payload.customer_id,
                now_utc=datetime.now(timezone.utc),
            )
    except ChallengeNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_CHALLENGE_NOT_FOUND"}) from exc
    except ChallengeCustomerNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_CUSTOMER_NOT_FOUND"}) from exc
    except ChallengeParticipationNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_PARTICIPATION_NOT_FOUND"}) from exc
    except ChallengeAlreadyCompletedError as exc:
        raise HTTPException(status_code=409, detail={"code": "E_CHALLENGE_ALREADY_COMPLETED"}) from exc

    return ChallengeCompleteResponse(
        user_challenge_id=result.user_challenge_id,
        challenge_id=result.challenge_id,
        customer_id=result.customer_id,
        current_progress=result.current_progress,
        target_value=result.target_value,
        completed_at=result.completed_at,
        reward_points_awarded=result.reward_points_awarded,
        reward_entry_id=result.reward_entry_id,
    )


@router.post(
    "/internal/achievements/{achievement_id}/unlock",
    response_model=AchievementUnlockResponse,
)
async def unlock_achievement(
    achievement_id: str,
    payload: AchievementUnlockRequest,
    request: Request,
) -> AchievementUnlockResponse:
    _assert_internal_access(request)

    try:
        async with SessionLocal.begin() as session:
            result = await AchievementService.unlock(
                session,
                achievement_id=achievement_id,
                customer_id=payload.customer_id,
                progress_data=payload.progress_data,
                now_utc=datetime.now(timezone.utc),
            )
    except AchievementNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_ACHIEVEMENT_NOT_FOUND"}) from exc
    except AchievementCustomerNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_CUSTOMER_NOT_FOUND"}) from exc
    except AchievementAlreadyUnlockedError as exc:
        raise HTTPException(status_code=409, detail={"code": "E_ACHIEVEMENT_ALREADY_UNLOCKED"}) from exc

    return AchievementUnlockResponse(
        user_achievement_id=result.user_achievement_id,
        achievement_id=result.achievement_id,
        customer_id=result.customer_id,
        title=result.title,
        tier=result.tier,
        points_awarded=result.points_awarded,
        reward_entry_id=result.reward_entry_id,
        unlocked_at=result.unlocked_at,
    )


@router.get(
    "/internal/achievements/customers/{customer_id}",
    response_model=CustomerAchievementsResponse,
)
async def list_customer_achievements(
    customer_id: str,
    request: Request,
) -> CustomerAchievementsResponse:
    _assert_internal_access(request)

    async with SessionLocal.begin() as session:
        unlocked = await AchievementService.list_for_customer(session, customer_id=customer_id)

    return CustomerAchievementsResponse(
        customer_id=customer_id,
        achievements=[
            UnlockedAchievementResponse(
                achievement_id=view.achievement_id,
                title=view.title,
                tier=view.tier,
                points_reward=view.points_reward,
                unlocked_at=view.unlocked_at,
            )
            for view in unlocked
        ],
    )


@router.get(
    "/internal/challenges/{challenge_id}/participants",
    response_model=ChallengeParticipantsResponse,
)
async def list_challenge_participants(
    challenge_id: str,
    request: Request,
    limit: int = Query(default=100, ge=1, le=1000),
) -> ChallengeParticipantsResponse:
    _assert_internal_access(request)

    try:
        async with SessionLocal.begin() as session:
            participants = await ChallengeService.list_participants(
                session,
                challenge_id=challenge_id,
                limit=limit,
            )
    except ChallengeNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_CHALLENGE_NOT_FOUND"}) from exc

    return ChallengeParticipantsResponse(
        challenge_id=challenge_id,
        participants=[
            ChallengeParticipantResponse(
                user_challenge_id=participant.user_challenge_id,
                customer_id=participant.customer_id,
                current_progress=participant.current_progress,
                target_value=participant.target_value,
                is_completed=participant.is_completed,
                completed_at=participant.completed_at,
            )
            for participant in participants
        ],
    )


@router.get("/internal/leaderboards/{merchant_id}", response_model=LeaderboardResponse)
async def get_leaderboard(
    merchant_id: str,
    request: Request,
    game_type: str = Query(min_length=1, max_length=32),
    period_type: Literal["daily", "weekly", "monthly", "alltime"] = Query(default="alltime"),
    limit: int = Query(default=50, ge=1, le=500),
) -> LeaderboardResponse:
    _assert_internal_access(request)

    now_utc = datetime.now(timezone.utc)
    async with SessionLocal.begin() as session:
        standings = await LeaderboardRanker.list_standings(
            session,
            merchant_id=merchant_id,
            game_type=game_type,
            period_type=period_type,
            now_utc=now_utc,
            limit=limit,
        )

    return LeaderboardResponse(
        merchant_id=merchant_id,
        game_type=game_type,
        period_type=period_type,
        generated_at=now_utc,
        standings=[
            StandingResponse(
                standing=row.standing,
                customer_id=row.customer_id,
                best_score=row.best_score,
                games_played=row.games_played,
                total_points=row.total_points,
                rank_position=row.rank_position,
            )
            for row in standings
        ],
    )

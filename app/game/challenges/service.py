from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.gameplay_time import local_day_bounds_utc
from app.db.models.challenges import Challenge
from app.db.models.user_challenges import UserChallenge
from app.db.repo.challenges_repo import ChallengesRepo
from app.db.repo.customers_repo import CustomersRepo
from app.db.repo.game_sessions_repo import GameSessionsRepo
from app.db.repo.user_challenges_repo import UserChallengesRepo
from app.economy.points.constants import TRANSACTION_EARNED
from app.economy.points.service import PointsLedgerService
from app.game.challenges.constants import (
    CHALLENGE_DAILY_STREAK,
    MAX_MANUAL_PROGRESS_INCREMENT,
    PARTICIPANTS_DEFAULT_LIMIT,
)
from app.game.challenges.errors import (
    ChallengeAlreadyCompletedError,
    ChallengeAlreadyJoinedError,
    ChallengeCustomerNotFoundError,
    ChallengeFullError,
    ChallengeNotFoundError,
    ChallengeParticipationNotFoundError,
    ChallengeProgressValidationError,
)
from app.game.challenges.rules import (
    clamp_progress,
    has_free_slot,
    is_challenge_joinable,
    is_challenge_running,
    progress_increment,
)
from app.game.challenges.types import (
    ChallengeActivity,
    ChallengeCompletionResult,
    ChallengeJoinResult,
    ChallengeParticipantView,
    ChallengeProgressDelta,
)

logger = structlog.get_logger(__name__)


class ChallengeProgressTracker:
    @staticmethod
    async def _is_first_session_today(
        session: AsyncSession,
        *,
        customer_id: str,
        occurred_at: datetime,
    ) -> bool:
        day_start_utc, day_end_utc = local_day_bounds_utc(occurred_at)
        completed_today = await GameSessionsRepo.count_completed_between(
            session,
            customer_id=customer_id,
            start_utc=day_start_utc,
            end_utc=day_end_utc,
        )
        return completed_today == 1

    @staticmethod
    async def _complete(
        session: AsyncSession,
        *,
        user_challenge: UserChallenge,
        challenge: Challenge,
        customer_id: str,
        merchant_id: str,
        now_utc: datetime,
        trigger: str,
    ) -> tuple[int, int | None]:
        user_challenge.is_completed = True
        user_challenge.completed_at = now_utc

        locked_challenge = await ChallengesRepo.get_by_id_for_update(session, challenge.id)
        if locked_challenge is not None:
            locked_challenge.completion_count += 1
            locked_challenge.updated_at = now_utc

        reward_points = challenge.reward_points
        reward_entry_id: int | None = None
        if reward_points > 0:
            recorded = await PointsLedgerService.record(
                session,
                customer_id=customer_id,
                merchant_id=merchant_id,
                points_change=reward_points,
                transaction_type=TRANSACTION_EARNED,
                reference_id=user_challenge.id,
                description=f"Challenge completed: {challenge.title}"[:500],
                now_utc=now_utc,
                metadata={"challenge_id": challenge.id, "source": "challenge_reward"},
            )
            reward_entry_id = recorded.entry.entry_id
            if recorded.idempotent_replay:
                reward_points = 0

        user_challenge.reward_claimed = True
        user_challenge.claimed_at = now_utc
        await session.flush()

        logger.info(
            "challenge_completed",
            challenge_id=challenge.id,
            user_challenge_id=user_challenge.id,
            customer_id=customer_id,
            trigger=trigger,
            reward_points=reward_points,
            reward_entry_id=reward_entry_id,
        )
        return reward_points, reward_entry_id

    @staticmethod
    async def _advance(
        session: AsyncSession,
        *,
        user_challenge: UserChallenge,
        challenge: Challenge,
        increment: int,
        customer_id: str,
        merchant_id: str,
        now_utc: datetime,
        trigger: str,
    ) -> ChallengeProgressDelta | None:
        """Applies one clamped increment; returns None when progress did not move."""
        old_progress = user_challenge.current_progress
        new_progress = clamp_progress(
            current_progress=old_progress,
            increment=increment,
            target_value=challenge.target_value,
        )
        if new_progress == old_progress:
            return None
        user_challenge.current_progress = new_progress

        reward_points_awarded = 0
        reward_entry_id: int | None = None
        completed = new_progress >= challenge.target_value
        if completed:
            reward_points_awarded, reward_entry_id = await ChallengeProgressTracker._complete(
                session,
                user_challenge=user_challenge,
                challenge=challenge,
                customer_id=customer_id,
                merchant_id=merchant_id,
                now_utc=now_utc,
                trigger=trigger,
            )

        return ChallengeProgressDelta(
            challenge_id=challenge.id,
            user_challenge_id=user_challenge.id,
            challenge_type=challenge.challenge_type,
            old_progress=old_progress,
            new_progress=new_progress,
            target_value=challenge.target_value,
            completed=completed,
            reward_points_awarded=reward_points_awarded,
            reward_entry_id=reward_entry_id,
        )

    @staticmethod
    async def on_activity(
        session: AsyncSession,
        *,
        customer_id: str,
        merchant_id: str,
        activity: ChallengeActivity,
        now_utc: datetime,
    ) -> list[ChallengeProgressDelta]:
        """Advances the customer's open challenges for one finished game.

        Only rows whose progress actually moved are returned. Completed rows are
        excluded by the locking query, so a completed challenge is never touched
        again.
        """
        rows = await UserChallengesRepo.list_active_by_customer_for_update(
            session,
            customer_id=customer_id,
            merchant_id=merchant_id,
            now_utc=now_utc,
        )
        if not rows:
            return []

        first_session_today: bool | None = None
        deltas: list[ChallengeProgressDelta] = []
        for user_challenge, challenge in rows:
            if challenge.challenge_type == CHALLENGE_DAILY_STREAK and first_session_today is None:
                first_session_today = await ChallengeProgressTracker._is_first_session_today(
                    session,
                    customer_id=customer_id,
                    occurred_at=activity.occurred_at,
                )

            increment = progress_increment(
                challenge_type=challenge.challenge_type,
                target_game_type=challenge.target_game_type,
                activity=activity,
                first_session_today=bool(first_session_today),
            )
            if increment <= 0:
                continue

            delta = await ChallengeProgressTracker._advance(
                session,
                user_challenge=user_challenge,
                challenge=challenge,
                increment=increment,
                customer_id=customer_id,
                merchant_id=merchant_id,
                now_utc=now_utc,
                trigger="activity",
            )
            if delta is not None:
                deltas.append(delta)

        await session.flush()
        return deltas


class ChallengeService:
    @staticmethod
    async def join(
        session: AsyncSession,
        *,
        challenge_id: str,
        customer_id: str,
        now_utc: datetime,
    ) -> ChallengeJoinResult:
        challenge = await ChallengesRepo.get_by_id_for_update(session, challenge_id)
        if challenge is None or not is_challenge_joinable(challenge, now_utc=now_utc):
            raise ChallengeNotFoundError(challenge_id)

        customer = await CustomersRepo.get_by_id(session, customer_id)
        if customer is None or customer.merchant_id != challenge.merchant_id:
            raise ChallengeCustomerNotFoundError(customer_id)

        existing = await UserChallengesRepo.get_by_customer_and_challenge(
            session,
            customer_id=customer_id,
            challenge_id=challenge_id,
        )
        if existing is not None:
            raise ChallengeAlreadyJoinedError(challenge_id)

        if not has_free_slot(challenge):
            raise ChallengeFullError(challenge_id)

        user_challenge = await UserChallengesRepo.create(
            session,
            customer_id=customer_id,
            challenge_id=challenge_id,
            now_utc=now_utc,
        )
        challenge.current_participants += 1
        challenge.updated_at = now_utc
        await session.flush()

        logger.info(
            "challenge_joined",
            challenge_id=challenge_id,
            customer_id=customer_id,
            user_challenge_id=user_challenge.id,
            current_participants=challenge.current_participants,
        )
        return ChallengeJoinResult(
            user_challenge_id=user_challenge.id,
            challenge_id=challenge_id,
            customer_id=customer_id,
            current_participants=challenge.current_participants,
            started_at=user_challenge.started_at,
        )

    @staticmethod
    async def _lock_participation(
        session: AsyncSession,
        *,
        challenge: Challenge,
        customer_id: str,
    ) -> UserChallenge:
        # Customer before user challenge, same order as session completion.
        customer = await CustomersRepo.get_by_id_for_update(session, customer_id)
        if customer is None or customer.merchant_id != challenge.merchant_id:
            raise ChallengeCustomerNotFoundError(customer_id)

        user_challenge = await UserChallengesRepo.get_by_customer_and_challenge_for_update(
            session,
            customer_id=customer_id,
            challenge_id=challenge.id,
        )
        if user_challenge is None:
            raise ChallengeParticipationNotFoundError(challenge.id)
        return user_challenge

    @staticmethod
    async def record_progress(
        session: AsyncSession,
        *,
        challenge_id: str,
        customer_id: str,
        increment: int,
        now_utc: datetime,
    ) -> ChallengeProgressDelta:
        """Adds externally reported progress, e.g. for social challenges.

        Uses the same clamping and completion path as gameplay activity. A
        completed participation is left untouched and reported as is.
        """
        if (
            isinstance(increment, bool)
            or not isinstance(increment, int)
            or not 0 <= increment <= MAX_MANUAL_PROGRESS_INCREMENT
        ):
            raise ChallengeProgressValidationError(f"invalid progress increment: {increment!r}")

        challenge = await ChallengesRepo.get_by_id(session, challenge_id)
        if challenge is None or not is_challenge_running(challenge, now_utc=now_utc):
            raise ChallengeNotFoundError(challenge_id)

        user_challenge = await ChallengeService._lock_participation(
            session,
            challenge=challenge,
            customer_id=customer_id,
        )

        delta: ChallengeProgressDelta | None = None
        if not user_challenge.is_completed:
            delta = await ChallengeProgressTracker._advance(
                session,
                user_challenge=user_challenge,
                challenge=challenge,
                increment=increment,
                customer_id=customer_id,
                merchant_id=challenge.merchant_id,
                now_utc=now_utc,
                trigger="manual_progress",
            )
        if delta is None:
            delta = ChallengeProgressDelta(
                challenge_id=challenge.id,
                user_challenge_id=user_challenge.id,
                challenge_type=challenge.challenge_type,
                old_progress=user_challenge.current_progress,
                new_progress=user_challenge.current_progress,
                target_value=challenge.target_value,
                completed=user_challenge.is_completed,
                reward_points_awarded=0,
                reward_entry_id=None,
            )

        await session.flush()
        logger.info(
            "challenge_progress_recorded",
            challenge_id=challenge.id,
            customer_id=customer_id,
            increment=increment,
            old_progress=delta.old_progress,
            new_progress=delta.new_progress,
            completed=delta.completed,
        )
        return delta

    @staticmethod
    async def complete(
        session: AsyncSession,
        *,
        challenge_id: str,
        customer_id: str,
        now_utc: datetime,
    ) -> ChallengeCompletionResult:
        challenge = await ChallengesRepo.get_by_id(session, challenge_id)
        if challenge is None:
            raise ChallengeNotFoundError(challenge_id)

        user_challenge = await ChallengeService._lock_participation(
            session,
            challenge=challenge,
            customer_id=customer_id,
        )
        if user_challenge.is_completed:
            raise ChallengeAlreadyCompletedError(challenge_id)

        # Progress is frozen where it stands; only the completion is forced.
        reward_points_awarded, reward_entry_id = await ChallengeProgressTracker._complete(
            session,
            user_challenge=user_challenge,
            challenge=challenge,
            customer_id=customer_id,
            merchant_id=challenge.merchant_id,
            now_utc=now_utc,
            trigger="manual_complete",
        )
        return ChallengeCompletionResult(
            user_challenge_id=user_challenge.id,
            challenge_id=challenge.id,
            customer_id=customer_id,
            current_progress=user_challenge.current_progress,
            target_value=challenge.target_value,
            completed_at=now_utc,
            reward_points_awarded=reward_points_awarded,
            reward_entry_id=reward_entry_id,
        )

    @staticmethod
    async def list_participants(
        session: AsyncSession,
        *,
        challenge_id: str,
        limit: int = PARTICIPANTS_DEFAULT_LIMIT,
    ) -> list[ChallengeParticipantView]:
        challenge = await ChallengesRepo.get_by_id(session, challenge_id)
        if challenge is None:
            raise ChallengeNotFoundError(challenge_id)

        rows = await UserChallengesRepo.list_by_challenge(
            session,
            challenge_id=challenge_id,
            limit=limit,
        )
        return [
            ChallengeParticipantView(
                user_challenge_id=row.id,
                customer_id=row.customer_id,
                current_progress=row.current_progress,
                target_value=challenge.target_value,
                is_completed=row.is_completed,
                completed_at=row.completed_at,
                started_at=row.started_at,
            )
            for row in rows
        ]

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.db.models.customers import Customer
from app.db.models.game_sessions import GameSession
from app.db.repo.customers_repo import CustomersRepo
from app.db.repo.game_sessions_repo import GameSessionsRepo
from app.economy.engagement.rules import score_customer
from app.economy.engagement.types import EngagementStats
from app.economy.points.constants import TRANSACTION_EARNED
from app.economy.points.service import PointsLedgerService
from app.economy.points.types import LedgerEntrySnapshot
from app.game.challenges.service import ChallengeProgressTracker
from app.game.challenges.types import ChallengeActivity
from app.game.leaderboards.periods import parse_period_types
from app.game.leaderboards.service import LeaderboardRanker
from app.game.leaderboards.types import LeaderboardEntrySnapshot
from app.game.sessions.completion.errors import (
    CustomerNotFoundError,
    EventValidationError,
    GameSessionNotFoundError,
)
from app.game.sessions.completion.types import (
    CustomerSummary,
    GameSessionCompleted,
    ProcessingStage,
    SessionProcessingResult,
)
from app.game.sessions.completion.validation import require_valid, validate_session_completed

logger = structlog.get_logger(__name__)

AVERAGE_DURATION_QUANTUM = Decimal("0.01")


def _customer_summary(customer: Customer) -> CustomerSummary:
    return CustomerSummary(
        customer_id=customer.id,
        merchant_id=customer.merchant_id,
        total_points=customer.total_points,
        games_played=customer.games_played,
        total_session_duration=customer.total_session_duration,
        average_session_duration=customer.average_session_duration,
        first_play_date=customer.first_play_date,
        last_play_date=customer.last_play_date,
        engagement_score=customer.engagement_score,
        segment=customer.segment,
        version=customer.version,
    )


def _owner_mismatch_errors(game_session: GameSession, event: GameSessionCompleted) -> tuple[str, ...]:
    errors: list[str] = []
    if game_session.customer_id != event.customer_id:
        errors.append("customer_id does not own the session")
    if game_session.merchant_id != event.merchant_id:
        errors.append("merchant_id does not match the session")
    if game_session.game_type != event.game_type:
        errors.append("game_type does not match the session")
    return tuple(errors)


def _log_stage(event: GameSessionCompleted, stage: ProcessingStage, **context: object) -> None:
    logger.info(
        "session_completion_stage",
        session_id=event.session_id,
        customer_id=event.customer_id,
        stage=stage.value,
        **context,
    )


class SessionCompletionService:
    @staticmethod
    async def _replay(
        session: AsyncSession,
        *,
        event: GameSessionCompleted,
    ) -> SessionProcessingResult:
        customer = await CustomersRepo.get_by_id(session, event.customer_id)
        if customer is None or customer.merchant_id != event.merchant_id:
            raise CustomerNotFoundError(event.customer_id)

        ledger_entry = await PointsLedgerService.get_by_reference(
            session,
            customer_id=event.customer_id,
            transaction_type=TRANSACTION_EARNED,
            reference_id=event.session_id,
        )
        logger.info(
            "session_completion_replayed",
            session_id=event.session_id,
            customer_id=event.customer_id,
        )
        return SessionProcessingResult(
            session_id=event.session_id,
            idempotent_replay=True,
            customer=_customer_summary(customer),
            ledger_entry=ledger_entry,
            stage=ProcessingStage.DONE,
        )

    @staticmethod
    def _apply_stats(
        customer: Customer,
        *,
        event: GameSessionCompleted,
        now_utc: datetime,
    ) -> None:
        customer.games_played += 1
        customer.total_session_duration += event.session_duration
        customer.average_session_duration = (
            Decimal(customer.total_session_duration) / Decimal(customer.games_played)
        ).quantize(AVERAGE_DURATION_QUANTUM, rounding=ROUND_HALF_UP)
        if customer.first_play_date is None:
            customer.first_play_date = now_utc
        customer.last_play_date = now_utc

        engagement = score_customer(
            EngagementStats(
                games_played=customer.games_played,
                total_points=customer.total_points,
                last_play_date=customer.last_play_date,
                email=customer.email,
                instagram=customer.instagram,
                age_group=customer.age_group,
                gender=customer.gender,
                location=customer.location,
            ),
            now_utc,
        )
        customer.engagement_score = engagement.score
        customer.segment = engagement.segment.value
        customer.version += 1
        customer.updated_at = now_utc

    @staticmethod
    async def complete(
        session: AsyncSession,
        *,
        event: GameSessionCompleted,
        now_utc: datetime,
    ) -> SessionProcessingResult:
        """Applies one finished game session to every customer-facing aggregate.

        Runs inside the caller's transaction. A session that already carries a
        processed_at stamp is reported back as a replay without any writes.
        """
        stage = ProcessingStage.RECEIVED
        _log_stage(event, stage)
        try:
            require_valid(validate_session_completed(event))

            game_session = await GameSessionsRepo.get_by_id_for_update(session, event.session_id)
            if game_session is None:
                raise GameSessionNotFoundError(event.session_id)
            mismatch_errors = _owner_mismatch_errors(game_session, event)
            if mismatch_errors:
                raise EventValidationError(mismatch_errors)

            if game_session.processed_at is not None:
                return await SessionCompletionService._replay(session, event=event)

            customer = await CustomersRepo.get_by_id_for_update(session, event.customer_id)
            if customer is None or customer.merchant_id != event.merchant_id:
                raise CustomerNotFoundError(event.customer_id)

            game_session.score = event.score
            game_session.points_earned = event.points_earned
            game_session.session_duration = event.session_duration
            game_session.difficulty_level = event.difficulty_level
            game_session.was_completed = event.was_completed
            game_session.prize_won = event.prize_won
            game_session.completed_at = now_utc
            game_session.processed_at = now_utc
            await session.flush()

            ledger_entry: LedgerEntrySnapshot | None = None
            if event.points_earned > 0:
                recorded = await PointsLedgerService.record(
                    session,
                    customer_id=event.customer_id,
                    merchant_id=event.merchant_id,
                    points_change=event.points_earned,
                    transaction_type=TRANSACTION_EARNED,
                    reference_id=event.session_id,
                    description=f"Points earned from {event.game_type} game",
                    now_utc=now_utc,
                    metadata={"game_type": event.game_type, "source": "game_session"},
                )
                ledger_entry = recorded.entry
            stage = ProcessingStage.LEDGER_APPLIED
            _log_stage(event, stage, points_earned=event.points_earned)

            SessionCompletionService._apply_stats(customer, event=event, now_utc=now_utc)
            await session.flush()
            stage = ProcessingStage.STATS_UPDATED
            _log_stage(event, stage, segment=customer.segment, games_played=customer.games_played)

            challenge_deltas = await ChallengeProgressTracker.on_activity(
                session,
                customer_id=event.customer_id,
                merchant_id=event.merchant_id,
                activity=ChallengeActivity(
                    game_type=event.game_type,
                    score=event.score,
                    points_earned=event.points_earned,
                    occurred_at=now_utc,
                    session_id=event.session_id,
                ),
                now_utc=now_utc,
            )
            stage = ProcessingStage.CHALLENGES_EVALUATED
            _log_stage(event, stage, challenges_touched=len(challenge_deltas))

            leaderboard_entries: list[LeaderboardEntrySnapshot] = []
            if event.was_completed and event.score is not None:
                for period_type in parse_period_types(get_settings().leaderboard_period_types):
                    recorded_score = await LeaderboardRanker.record_score(
                        session,
                        customer_id=event.customer_id,
                        merchant_id=event.merchant_id,
                        game_type=event.game_type,
                        score=event.score,
                        period_type=period_type,
                        now_utc=now_utc,
                    )
                    leaderboard_entries.append(recorded_score.entry)
            stage = ProcessingStage.LEADERBOARD_UPDATED
            _log_stage(event, stage, leaderboard_entries=len(leaderboard_entries))
        except Exception:
            logger.warning(
                "session_completion_stage",
                session_id=event.session_id,
                customer_id=event.customer_id,
                stage=ProcessingStage.FAILED.value,
                stage_reached=stage.value,
                exc_info=True,
            )
            raise

        stage = ProcessingStage.DONE
        _log_stage(event, stage)
        return SessionProcessingResult(
            session_id=event.session_id,
            idempotent_replay=False,
            customer=_customer_summary(customer),
            ledger_entry=ledger_entry,
            challenge_deltas=challenge_deltas,
            leaderboard_entries=leaderboard_entries,
            stage=stage,
        )

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from app.db.models.challenges import Challenge
from app.db.models.loyalty_rewards import LoyaltyReward
from app.db.repo.challenges_repo import ChallengesRepo
from app.db.repo.customers_repo import CustomersRepo
from app.db.repo.game_sessions_repo import GameSessionsRepo
from app.db.repo.user_challenges_repo import UserChallengesRepo
from app.db.session import SessionLocal
from app.economy.points.service import PointsLedgerService
from app.game.sessions.completion.types import GameSessionCompleted

UTC = timezone.utc
MERCHANT_ID = "m_integration"


async def _create_customer(seed: str, *, starting_points: int = 0, now_utc: datetime) -> str:
    async with SessionLocal.begin() as session:
        customer = await CustomersRepo.create(
            session,
            merchant_id=MERCHANT_ID,
            name=f"Customer {seed}",
            phone=f"+49{abs(hash(seed)) % 10_000_000_000:010d}",
            now_utc=now_utc - timedelta(days=30),
        )
        if starting_points > 0:
            await PointsLedgerService.record(
                session,
                customer_id=customer.id,
                merchant_id=MERCHANT_ID,
                points_change=starting_points,
                transaction_type="bonus",
                reference_id=f"welcome:{seed}",
                description="Welcome bonus",
                now_utc=now_utc - timedelta(days=30),
            )
        return customer.id


async def _start_session(customer_id: str, *, now_utc: datetime, game_type: str = "spin-win") -> str:
    async with SessionLocal.begin() as session:
        game_session = await GameSessionsRepo.create_started(
            session,
            customer_id=customer_id,
            merchant_id=MERCHANT_ID,
            game_type=game_type,
            started_at=now_utc - timedelta(minutes=3),
        )
        return game_session.id


async def _create_challenge(
    challenge_id: str,
    *,
    now_utc: datetime,
    challenge_type: str = "points_collector",
    target_value: int = 500,
    reward_points: int = 100,
) -> str:
    async with SessionLocal.begin() as session:
        challenge = await ChallengesRepo.create(
            session,
            challenge=Challenge(
                id=challenge_id,
                merchant_id=MERCHANT_ID,
                title=f"Challenge {challenge_id}",
                description=None,
                challenge_type=challenge_type,
                target_game_type=None,
                target_value=target_value,
                reward_points=reward_points,
                max_participants=None,
                current_participants=0,
                completion_count=0,
                start_date=now_utc - timedelta(days=1),
                end_date=now_utc + timedelta(days=6),
                is_active=True,
                created_at=now_utc - timedelta(days=1),
                updated_at=now_utc - timedelta(days=1),
            ),
        )
        return challenge.id


async def _join_challenge(
    customer_id: str,
    challenge_id: str,
    *,
    now_utc: datetime,
    progress: int = 0,
) -> str:
    async with SessionLocal.begin() as session:
        user_challenge = await UserChallengesRepo.create(
            session,
            customer_id=customer_id,
            challenge_id=challenge_id,
            now_utc=now_utc - timedelta(hours=1),
        )
        user_challenge.current_progress = progress
        return user_challenge.id


async def _create_reward(
    reward_id: str,
    *,
    now_utc: datetime,
    points_cost: int,
    stock_quantity: int | None,
) -> str:
    async with SessionLocal.begin() as session:
        reward = LoyaltyReward(
            id=reward_id,
            merchant_id=MERCHANT_ID,
            reward_name="Free coffee",
            reward_type="product",
            points_cost=points_cost,
            stock_quantity=stock_quantity,
            total_redemptions=0,
            start_date=None,
            end_date=None,
            is_active=True,
            created_at=now_utc - timedelta(days=5),
            updated_at=now_utc - timedelta(days=5),
        )
        session.add(reward)
        await session.flush()
        return reward.id


def _event(
    session_id: str,
    customer_id: str,
    *,
    points_earned: int,
    score: int | None = 100,
) -> GameSessionCompleted:
    return GameSessionCompleted(
        session_id=session_id,
        customer_id=customer_id,
        merchant_id=MERCHANT_ID,
        game_type="spin-win",
        score=score,
        points_earned=points_earned,
        was_completed=score is not None,
        difficulty_level="medium",
        session_duration=60,
    )

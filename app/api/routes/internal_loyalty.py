from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, Field

from app.core.config import get_settings
from app.db.session import SessionLocal
from app.economy.points.errors import PointsCustomerNotFoundError, PointsInsufficientBalanceError
from app.economy.points.service import PointsLedgerService
from app.economy.rewards.errors import (
    RewardCustomerNotFoundError,
    RewardNotFoundError,
    RewardUnavailableError,
)
from app.economy.rewards.service import LoyaltyRewardsService
from app.services.internal_auth import assert_internal_access

router = APIRouter(tags=["internal", "loyalty"])


class RewardRedeemRequest(BaseModel):
    customer_id: str = Field(min_length=1, max_length=64)
    idempotency_key: str = Field(min_length=1, max_length=96)


class RewardRedeemResponse(BaseModel):
    reward_id: str
    customer_id: str
    points_cost: int = Field(gt=0)
    balance_after: int = Field(ge=0)
    total_redemptions: int = Field(ge=0)
    stock_remaining: int | None = None
    ledger_entry_id: int
    idempotent_replay: bool


class LedgerHistoryItemResponse(BaseModel):
    entry_id: int
    transaction_type: str
    points_change: int
    balance_before: int
    balance_after: int
    reference_id: str | None = None
    description: str | None = None
    created_at: datetime


class CustomerBalanceResponse(BaseModel):
    customer_id: str
    total_points: int = Field(ge=0)
    ledger_sum: int
    is_consistent: bool
    history: list[LedgerHistoryItemResponse]


def _assert_internal_access(request: Request) -> None:
    assert_internal_access(request, settings=get_settings(), scope="loyalty")


@router.post(
    "/internal/loyalty/rewards/{reward_id}/redeem",
    response_model=RewardRedeemResponse,
)
async def redeem_reward(
    reward_id: str,
    payload: RewardRedeemRequest,
    request: Request,
) -> RewardRedeemResponse:
    _assert_internal_access(request)

    try:
        async with SessionLocal.begin() as session:
            result = await LoyaltyRewardsService.redeem(
                session,
                customer_id=payload.customer_id,
                reward_id=reward_id,
                idempotency_key=payload.idempotency_key,
                now_utc=datetime.now(timezone.utc),
            )
    except RewardNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_REWARD_NOT_FOUND"}) from exc
    except (RewardCustomerNotFoundError, PointsCustomerNotFoundError) as exc:
        raise HTTPException(status_code=404, detail={"code": "E_CUSTOMER_NOT_FOUND"}) from exc
    except RewardUnavailableError as exc:
        raise HTTPException(status_code=410, detail={"code": "E_REWARD_UNAVAILABLE"}) from exc
    except PointsInsufficientBalanceError as exc:
        raise HTTPException(status_code=409, detail={"code": "E_INSUFFICIENT_POINTS"}) from exc

    return RewardRedeemResponse(
        reward_id=result.reward_id,
        customer_id=result.customer_id,
        points_cost=result.points_cost,
        balance_after=result.balance_after,
        total_redemptions=result.total_redemptions,
        stock_remaining=result.stock_remaining,
        ledger_entry_id=result.ledger_entry.entry_id,
        idempotent_replay=result.idempotent_replay,
    )


@router.get(
    "/internal/loyalty/customers/{customer_id}/balance",
    response_model=CustomerBalanceResponse,
)
async def get_customer_balance(
    customer_id: str,
    request: Request,
    merchant_id: str = Query(min_length=1, max_length=64),
    history_limit: int = Query(default=20, ge=1, le=500),
) -> CustomerBalanceResponse:
    _assert_internal_access(request)

    try:
        async with SessionLocal.begin() as session:
            check = await PointsLedgerService.verify_balance(session, customer_id=customer_id)
            history = await PointsLedgerService.list_history(
                session,
                customer_id=customer_id,
                merchant_id=merchant_id,
                limit=history_limit,
            )
    except PointsCustomerNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_CUSTOMER_NOT_FOUND"}) from exc

    return CustomerBalanceResponse(
        customer_id=customer_id,
        total_points=check.total_points,
        ledger_sum=check.ledger_sum,
        is_consistent=check.is_consistent,
        history=[
            LedgerHistoryItemResponse(
                entry_id=entry.entry_id,
                transaction_type=entry.transaction_type,
                points_change=entry.points_change,
                balance_before=entry.balance_before,
                balance_after=entry.balance_after,
                reference_id=entry.reference_id,
                description=entry.description,
                created_at=entry.created_at,
            )
            for entry in history
        ],
    )

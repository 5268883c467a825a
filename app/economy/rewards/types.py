from __future__ import annotations

from dataclasses import dataclass

from app.economy.points.types import LedgerEntrySnapshot


@dataclass(slots=True)
class RewardRedeemResult:
    reward_id: str
    customer_id: str
    points_cost: int
    balance_after: int
    total_redemptions: int
    stock_remaining: int | None
    ledger_entry: LedgerEntrySnapshot
    idempotent_replay: bool

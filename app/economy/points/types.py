from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class LedgerEntrySnapshot:
    entry_id: int
    customer_id: str
    merchant_id: str
    transaction_type: str
    points_change: int
    balance_before: int
    balance_after: int
    reference_id: str | None
    description: str | None
    created_at: datetime


@dataclass(slots=True)
class PointsRecordResult:
    entry: LedgerEntrySnapshot
    idempotent_replay: bool


@dataclass(frozen=True, slots=True)
class BalanceCheckResult:
    customer_id: str
    total_points: int
    ledger_sum: int

    @property
    def is_consistent(self) -> bool:
        return self.total_points == self.ledger_sum

from __future__ import annotations

from app.economy.points.constants import (
    CREDIT_TRANSACTION_TYPES,
    MAX_DESCRIPTION_LENGTH,
    MAX_REFERENCE_ID_LENGTH,
    TRANSACTION_REDEEMED,
    TRANSACTION_REFUND,
    TRANSACTION_TYPES,
)


def points_change_violation(
    *,
    transaction_type: str,
    points_change: int,
    allow_negative: bool = False,
) -> str | None:
    """Returns a violation reason for an ill-signed change, or None when acceptable."""
    if transaction_type not in TRANSACTION_TYPES:
        return f"unknown transaction_type {transaction_type!r}"
    if points_change == 0:
        return "points_change must not be zero"
    if transaction_type == TRANSACTION_REDEEMED and points_change > 0:
        return "redeemed transactions must debit points"
    if transaction_type == TRANSACTION_REFUND and points_change < 0:
        return "refund transactions must credit points"
    if transaction_type in CREDIT_TRANSACTION_TYPES and points_change < 0 and not allow_negative:
        return f"{transaction_type} transactions must credit points unless explicitly allowed"
    return None


def reference_violation(*, reference_id: str | None, description: str | None) -> str | None:
    if reference_id is not None and not (0 < len(reference_id) <= MAX_REFERENCE_ID_LENGTH):
        return "reference_id must be 1..96 characters"
    if description is not None and len(description) > MAX_DESCRIPTION_LENGTH:
        return "description must not exceed 500 characters"
    return None


def balance_after_change(*, balance_before: int, points_change: int) -> int | None:
    """Returns the resulting balance, or None when it would drop below zero."""
    balance_after = balance_before + points_change
    if balance_after < 0:
        return None
    return balance_after

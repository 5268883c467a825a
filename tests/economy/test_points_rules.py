from __future__ import annotations

import pytest

from app.economy.points.rules import (
    balance_after_change,
    points_change_violation,
    reference_violation,
)


@pytest.mark.parametrize(
    ("transaction_type", "points_change", "allow_negative", "is_valid"),
    [
        ("earned", 50, False, True),
        ("earned", -10, False, False),
        ("earned", -10, True, True),
        ("bonus", -5, False, False),
        ("redeemed", -100, False, True),
        ("redeemed", 100, False, False),
        ("refund", 25, False, True),
        ("refund", -25, True, False),
        ("adjustment", -30, False, True),
        ("adjustment", 30, False, True),
        ("earned", 0, False, False),
        ("gift", 10, False, False),
    ],
)
def test_points_change_violation_matrix(
    transaction_type: str,
    points_change: int,
    allow_negative: bool,
    is_valid: bool,
) -> None:
    violation = points_change_violation(
        transaction_type=transaction_type,
        points_change=points_change,
        allow_negative=allow_negative,
    )

    assert (violation is None) is is_valid


def test_reference_violation_bounds() -> None:
    assert reference_violation(reference_id=None, description=None) is None
    assert reference_violation(reference_id="x" * 96, description="d" * 500) is None
    assert reference_violation(reference_id="", description=None) is not None
    assert reference_violation(reference_id="x" * 97, description=None) is not None
    assert reference_violation(reference_id="gs_1", description="d" * 501) is not None


def test_balance_after_change_rejects_negative_result() -> None:
    assert balance_after_change(balance_before=100, points_change=50) == 150
    assert balance_after_change(balance_before=100, points_change=-100) == 0
    assert balance_after_change(balance_before=100, points_change=-101) is None

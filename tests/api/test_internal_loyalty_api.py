from __future__ import annotations

from types import SimpleNamespace

from fastapi.testclient import TestClient

from app.api.routes import internal_loyalty
from app.economy.points.errors import PointsInsufficientBalanceError
from app.economy.points.types import BalanceCheckResult, LedgerEntrySnapshot
from app.economy.rewards.errors import RewardNotFoundError, RewardUnavailableError
from app.economy.rewards.types import RewardRedeemResult
from app.main import app
from tests.gamification_fakes import NOW_UTC, FakeSessionLocal, FakeStore

TOKEN_HEADERS = {"X-Internal-Token": "internal-secret"}


def _settings() -> SimpleNamespace:
    return SimpleNamespace(
        internal_api_token="internal-secret",
        internal_api_allowlist="127.0.0.1/32",
        internal_api_trusted_proxies="",
    )


def _setup(monkeypatch) -> TestClient:
    monkeypatch.setattr(internal_loyalty, "get_settings", _settings)
    monkeypatch.setattr(internal_loyalty, "SessionLocal", FakeSessionLocal(FakeStore()))
    return TestClient(app, client=("127.0.0.1", 5300))


def _entry(*, points_change: int, balance_before: int) -> LedgerEntrySnapshot:
    return LedgerEntrySnapshot(
        entry_id=11,
        customer_id="cus_1",
        merchant_id="m_1",
        transaction_type="redeemed" if points_change < 0 else "earned",
        points_change=points_change,
        balance_before=balance_before,
        balance_after=balance_before + points_change,
        reference_id="redeem-1",
        description=None,
        created_at=NOW_UTC,
    )


def test_redeem_reward_rejects_missing_token(monkeypatch) -> None:
    client = _setup(monkeypatch)

    response = client.post(
        "/internal/loyalty/rewards/rw_1/redeem",
        json={"customer_id": "cus_1", "idempotency_key": "redeem-1"},
    )

    assert response.status_code == 403
    assert response.json() == {"detail": {"code": "E_FORBIDDEN"}}


def test_redeem_reward_returns_result(monkeypatch) -> None:
    async def fake_redeem(session, *, customer_id, reward_id, idempotency_key, now_utc):
        return RewardRedeemResult(
            reward_id=reward_id,
            customer_id=customer_id,
            points_cost=100,
            balance_after=150,
            total_redemptions=1,
            stock_remaining=9,
            ledger_entry=_entry(points_change=-100, balance_before=250),
            idempotent_replay=False,
        )

    client = _setup(monkeypatch)
    monkeypatch.setattr(internal_loyalty.LoyaltyRewardsService, "redeem", fake_redeem)

    response = client.post(
        "/internal/loyalty/rewards/rw_1/redeem",
        json={"customer_id": "cus_1", "idempotency_key": "redeem-1"},
        headers=TOKEN_HEADERS,
    )

    assert response.status_code == 200
    assert response.json() == {
        "reward_id": "rw_1",
        "customer_id": "cus_1",
        "points_cost": 100,
        "balance_after": 150,
        "total_redemptions": 1,
        "stock_remaining": 9,
        "ledger_entry_id": 11,
        "idempotent_replay": False,
    }


def test_redeem_reward_maps_domain_errors(monkeypatch) -> None:
    errors = {
        "rw_missing": RewardNotFoundError("rw_missing"),
        "rw_gone": RewardUnavailableError("reward is out of stock"),
        "rw_pricey": PointsInsufficientBalanceError(customer_id="cus_1", balance=10, points_change=-100),
    }

    async def fake_redeem(session, *, customer_id, reward_id, idempotency_key, now_utc):
        raise errors[reward_id]

    client = _setup(monkeypatch)
    monkeypatch.setattr(internal_loyalty.LoyaltyRewardsService, "redeem", fake_redeem)

    def _redeem(reward_id: str):
        return client.post(
            f"/internal/loyalty/rewards/{reward_id}/redeem",
            json={"customer_id": "cus_1", "idempotency_key": "redeem-1"},
            headers=TOKEN_HEADERS,
        )

    missing = _redeem("rw_missing")
    gone = _redeem("rw_gone")
    pricey = _redeem("rw_pricey")

    assert (missing.status_code, missing.json()) == (404, {"detail": {"code": "E_REWARD_NOT_FOUND"}})
    assert (gone.status_code, gone.json()) == (410, {"detail": {"code": "E_REWARD_UNAVAILABLE"}})
    assert (pricey.status_code, pricey.json()) == (409, {"detail": {"code": "E_INSUFFICIENT_POINTS"}})


def test_customer_balance_reports_consistency_and_history(monkeypatch) -> None:
    async def fake_verify(session, *, customer_id):
        return BalanceCheckResult(customer_id=customer_id, total_points=150, ledger_sum=150)

    async def fake_history(session, *, customer_id, merchant_id, limit):
        assert limit == 5
        return [_entry(points_change=50, balance_before=100)]

    client = _setup(monkeypatch)
    monkeypatch.setattr(internal_loyalty.PointsLedgerService, "verify_balance", fake_verify)
    monkeypatch.setattr(internal_loyalty.PointsLedgerService, "list_history", fake_history)

    response = client.get(
        "/internal/loyalty/customers/cus_1/balance?merchant_id=m_1&history_limit=5",
        headers=TOKEN_HEADERS,
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["is_consistent"] is True
    assert payload["total_points"] == 150
    assert payload["history"][0]["balance_after"] == 150

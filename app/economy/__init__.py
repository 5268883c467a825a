from app.economy.engagement.rules import score_customer
from app.economy.points.service import PointsLedgerService
from app.economy.rewards.service import LoyaltyRewardsService

__all__ = [
    "LoyaltyRewardsService",
    "PointsLedgerService",
    "score_customer",
]

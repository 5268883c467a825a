from app.db.models.achievements import Achievement, UserAchievement
from app.db.models.challenges import Challenge
from app.db.models.customers import Customer
from app.db.models.game_sessions import GameSession
from app.db.models.leaderboard_entries import LeaderboardEntry
from app.db.models.loyalty_rewards import LoyaltyReward
from app.db.models.points_ledger_entries import PointsLedgerEntry
from app.db.models.user_challenges import UserChallenge

__all__ = [
    "Achievement",
    "Challenge",
    "Customer",
    "GameSession",
    "LeaderboardEntry",
    "LoyaltyReward",
    "PointsLedgerEntry",
    "UserAchievement",
    "UserChallenge",
]

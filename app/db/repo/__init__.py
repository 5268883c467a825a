from app.db.repo.achievements_repo import AchievementsRepo
from app.db.repo.challenges_repo import ChallengesRepo
from app.db.repo.customers_repo import CustomersRepo
from app.db.repo.game_sessions_repo import GameSessionsRepo
from app.db.repo.leaderboard_repo import LeaderboardRepo
from app.db.repo.loyalty_rewards_repo import LoyaltyRewardsRepo
from app.db.repo.points_ledger_repo import PointsLedgerRepo
from app.db.repo.user_challenges_repo import UserChallengesRepo

__all__ = [
    "AchievementsRepo",
    "ChallengesRepo",
    "CustomersRepo",
    "GameSessionsRepo",
    "LeaderboardRepo",
    "LoyaltyRewardsRepo",
    "PointsLedgerRepo",
    "UserChallengesRepo",
]

from app.core.errors import GamificationValidationError


class LeaderboardPeriodError(GamificationValidationError):
    pass

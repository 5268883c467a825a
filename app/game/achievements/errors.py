from app.core.errors import ConflictAlreadyCompletedError, NotFoundError


class AchievementNotFoundError(NotFoundError):
    pass


class AchievementCustomerNotFoundError(NotFoundError):
    pass


class AchievementAlreadyUnlockedError(ConflictAlreadyCompletedError):
    pass

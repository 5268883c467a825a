class GamificationError(Exception):
    pass


class NotFoundError(GamificationError):
    pass


class InsufficientBalanceError(GamificationError):
    pass


class ConflictAlreadyCompletedError(GamificationError):
    pass


class ConsistencyConflictError(GamificationError):
    pass


class GamificationValidationError(GamificationError):
    pass

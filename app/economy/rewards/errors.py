from app.core.errors import GamificationValidationError, NotFoundError


class RewardNotFoundError(NotFoundError):
    pass


class RewardCustomerNotFoundError(NotFoundError):
    pass


class RewardUnavailableError(GamificationValidationError):
    pass

from app.core.errors import ConflictAlreadyCompletedError, GamificationValidationError, NotFoundError


class ChallengeNotFoundError(NotFoundError):
    pass


class ChallengeCustomerNotFoundError(NotFoundError):
    pass


class ChallengeAlreadyJoinedError(ConflictAlreadyCompletedError):
    pass


class ChallengeFullError(GamificationValidationError):
    pass


class ChallengeParticipationNotFoundError(NotFoundError):
    pass


class ChallengeAlreadyCompletedError(ConflictAlreadyCompletedError):
    pass


class ChallengeProgressValidationError(GamificationValidationError):
    pass

from app.core.errors import GamificationValidationError, NotFoundError


class EventValidationError(GamificationValidationError):
    def __init__(self, errors: tuple[str, ...]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors


class GameSessionNotFoundError(NotFoundError):
    pass


class CustomerNotFoundError(NotFoundError):
    pass

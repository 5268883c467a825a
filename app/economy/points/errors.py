from app.core.errors import GamificationValidationError, InsufficientBalanceError, NotFoundError


class PointsValidationError(GamificationValidationError):
    pass


class PointsCustomerNotFoundError(NotFoundError):
    pass


class PointsInsufficientBalanceError(InsufficientBalanceError):
    def __init__(self, *, customer_id: str, balance: int, points_change: int) -> None:
        super().__init__(
            f"customer {customer_id} balance {balance} cannot absorb points change {points_change}"
        )
        self.customer_id = customer_id
        self.balance = balance
        self.points_change = points_change

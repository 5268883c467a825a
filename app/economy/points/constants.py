TRANSACTION_EARNED = "earned"
TRANSACTION_REDEEMED = "redeemed"
TRANSACTION_ADJUSTMENT = "adjustment"
TRANSACTION_BONUS = "bonus"
TRANSACTION_REFUND = "refund"

TRANSACTION_TYPES = frozenset(
    {
        TRANSACTION_EARNED,
        TRANSACTION_REDEEMED,
        TRANSACTION_ADJUSTMENT,
        TRANSACTION_BONUS,
        TRANSACTION_REFUND,
    }
)

# Types whose points_change may be negative only when the caller opts in (penalties).
CREDIT_TRANSACTION_TYPES = frozenset({TRANSACTION_EARNED, TRANSACTION_BONUS})

MAX_REFERENCE_ID_LENGTH = 96
MAX_DESCRIPTION_LENGTH = 500
HISTORY_DEFAULT_LIMIT = 50

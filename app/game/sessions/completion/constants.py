DIFFICULTY_LEVELS = frozenset({"easy", "medium", "hard"})

MAX_IDENTIFIER_LENGTH = 64
MAX_GAME_TYPE_LENGTH = 32
MAX_PRIZE_LENGTH = 64

# unique_violation, serialization_failure, deadlock_detected
TRANSIENT_SQLSTATES = frozenset({"23505", "40001", "40P01"})
RETRY_JITTER_RATIO = 0.25

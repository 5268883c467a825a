CHALLENGE_GAME_MASTER = "game_master"
CHALLENGE_POINTS_COLLECTOR = "points_collector"
CHALLENGE_DAILY_STREAK = "daily_streak"
CHALLENGE_SOCIAL = "social"

CHALLENGE_TYPES = frozenset(
    {
        CHALLENGE_GAME_MASTER,
        CHALLENGE_POINTS_COLLECTOR,
        CHALLENGE_DAILY_STREAK,
        CHALLENGE_SOCIAL,
    }
)

PARTICIPANTS_DEFAULT_LIMIT = 100
# Upper bound for a single externally reported progress step.
MAX_MANUAL_PROGRESS_INCREMENT = 1_000_000

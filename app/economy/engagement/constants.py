from decimal import Decimal

GAMES_WEIGHT = 2
GAMES_COMPONENT_CAP = Decimal("40")
POINTS_DIVISOR = Decimal("100")
POINTS_COMPONENT_CAP = Decimal("30")

RECENT_PLAY_DAYS = 7
MONTHLY_PLAY_DAYS = 30
RECENT_PLAY_BONUS = Decimal("20")
MONTHLY_PLAY_BONUS = Decimal("10")

PROFILE_COMPONENT_MAX = Decimal("10")

NEVER_PLAYED_DAYS = 999

LOYAL_MIN_SCORE = Decimal("70")
LOYAL_MAX_DAYS = 30
ACTIVE_MIN_SCORE = Decimal("50")
ACTIVE_MAX_DAYS = 60
NEW_MAX_DAYS = 7
NEW_MAX_GAMES = 3
AT_RISK_MIN_DAYS = 90
AT_RISK_MAX_SCORE = Decimal("30")
INACTIVE_MIN_DAYS = 180

SCORE_QUANTUM = Decimal("0.01")

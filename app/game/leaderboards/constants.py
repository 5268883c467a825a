from datetime import datetime, timedelta, timezone

PERIOD_DAILY = "daily"
PERIOD_WEEKLY = "weekly"
PERIOD_MONTHLY = "monthly"
PERIOD_ALLTIME = "alltime"

PERIOD_TYPES = (PERIOD_DAILY, PERIOD_WEEKLY, PERIOD_MONTHLY, PERIOD_ALLTIME)

ALLTIME_PERIOD_START = datetime(1970, 1, 1, tzinfo=timezone.utc)
ALLTIME_OPEN_WINDOW = timedelta(days=36525)

STANDINGS_DEFAULT_LIMIT = 50

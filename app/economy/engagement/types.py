from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum


class CustomerSegment(str, Enum):
    NEW = "new"
    ACTIVE = "active"
    LOYAL = "loyal"
    AT_RISK = "at_risk"
    INACTIVE = "inactive"


@dataclass(frozen=True, slots=True)
class EngagementStats:
    games_played: int
    total_points: int
    last_play_date: datetime | None
    email: str | None = None
    instagram: str | None = None
    age_group: str | None = None
    gender: str | None = None
    location: str | None = None


@dataclass(frozen=True, slots=True)
class EngagementResult:
    score: Decimal
    segment: CustomerSegment
    days_since_last_play: int

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class AchievementUnlockResult:
    user_achievement_id: str
    achievement_id: str
    customer_id: str
    title: str
    tier: str
    points_awarded: int
    reward_entry_id: int | None
    unlocked_at: datetime


@dataclass(slots=True)
class UnlockedAchievementView:
    achievement_id: str
    title: str
    tier: str
    points_reward: int
    unlocked_at: datetime

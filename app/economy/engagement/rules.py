from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from app.economy.engagement.constants import (
    ACTIVE_MAX_DAYS,
    ACTIVE_MIN_SCORE,
    AT_RISK_MAX_SCORE,
    AT_RISK_MIN_DAYS,
    GAMES_COMPONENT_CAP,
    GAMES_WEIGHT,
    INACTIVE_MIN_DAYS,
    LOYAL_MAX_DAYS,
    LOYAL_MIN_SCORE,
    MONTHLY_PLAY_BONUS,
    MONTHLY_PLAY_DAYS,
    NEVER_PLAYED_DAYS,
    NEW_MAX_DAYS,
    NEW_MAX_GAMES,
    POINTS_COMPONENT_CAP,
    POINTS_DIVISOR,
    PROFILE_COMPONENT_MAX,
    RECENT_PLAY_BONUS,
    RECENT_PLAY_DAYS,
    SCORE_QUANTUM,
)
from app.economy.engagement.types import CustomerSegment, EngagementResult, EngagementStats


def days_since_last_play(last_play_date: datetime | None, *, now_utc: datetime) -> int:
    if last_play_date is None:
        return NEVER_PLAYED_DAYS
    return max(0, (now_utc - last_play_date).days)


def filled_profile_fields(stats: EngagementStats) -> int:
    fields = (stats.email, stats.instagram, stats.age_group, stats.gender, stats.location)
    return sum(1 for value in fields if value is not None and value.strip() != "")


def engagement_score(stats: EngagementStats, *, days_since_play: int) -> Decimal:
    score = min(Decimal(stats.games_played * GAMES_WEIGHT), GAMES_COMPONENT_CAP)
    score += min(Decimal(stats.total_points) / POINTS_DIVISOR, POINTS_COMPONENT_CAP)

    if days_since_play <= RECENT_PLAY_DAYS:
        score += RECENT_PLAY_BONUS
    elif days_since_play <= MONTHLY_PLAY_DAYS:
        score += MONTHLY_PLAY_BONUS

    score += Decimal(filled_profile_fields(stats)) / Decimal(5) * PROFILE_COMPONENT_MAX
    return score.quantize(SCORE_QUANTUM, rounding=ROUND_HALF_UP)


def classify_segment(*, score: Decimal, days_since_play: int, games_played: int) -> CustomerSegment:
    """First matching rule wins; the fallback keeps unclassified customers active."""
    if score >= LOYAL_MIN_SCORE and days_since_play <= LOYAL_MAX_DAYS:
        return CustomerSegment.LOYAL
    if score >= ACTIVE_MIN_SCORE and days_since_play <= ACTIVE_MAX_DAYS:
        return CustomerSegment.ACTIVE
    if days_since_play <= NEW_MAX_DAYS and games_played <= NEW_MAX_GAMES:
        return CustomerSegment.NEW
    if days_since_play > AT_RISK_MIN_DAYS and score < AT_RISK_MAX_SCORE:
        return CustomerSegment.AT_RISK
    if days_since_play > INACTIVE_MIN_DAYS:
        return CustomerSegment.INACTIVE
    return CustomerSegment.ACTIVE


def score_customer(stats: EngagementStats, now_utc: datetime) -> EngagementResult:
    days = days_since_last_play(stats.last_play_date, now_utc=now_utc)
    score = engagement_score(stats, days_since_play=days)
    return EngagementResult(
        score=score,
        segment=classify_segment(score=score, days_since_play=days, games_played=stats.games_played),
        days_since_last_play=days,
    )

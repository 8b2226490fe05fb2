"""Exponential time decay of genre affinity scores."""

import math
from datetime import datetime, timedelta

from reeldeck.core.contracts import PreferenceProfile

HALF_LIFE_DAYS = 90.0
MIN_SCORE_TO_KEEP = 0.1

SECONDS_PER_DAY = timedelta(days=1).total_seconds()


def elapsed_days(since: datetime, now: datetime) -> float:
    """Fractional days between two instants (negative if ``now`` is earlier)."""
    return (now - since).total_seconds() / SECONDS_PER_DAY


def apply_decay(
    profile: PreferenceProfile,
    now: datetime,
    half_life_days: float = HALF_LIFE_DAYS,
    min_score: float = MIN_SCORE_TO_KEEP,
) -> PreferenceProfile:
    """Decay every score by the time elapsed since the last decay.

    Less than one day since the last decay is a no-op, so frequent feedback
    does not rewrite the profile on every event. Scores that fall below
    ``min_score`` are pruned. The input profile is never mutated.

    Args:
        profile: Current profile
        now: Current instant (timezone-aware)
        half_life_days: Days for a score to halve
        min_score: Scores strictly below this are dropped

    Returns:
        The same profile when nothing elapsed, otherwise a new decayed one
    """
    days = elapsed_days(profile.last_decay_at, now)
    if days < 1:
        return profile

    factor = math.exp(-(math.log(2) / half_life_days) * days)

    decayed = {}
    for genre_id, score in profile.genre_scores.items():
        value = score * factor
        if value >= min_score:
            decayed[genre_id] = value

    return PreferenceProfile(genre_scores=decayed, last_decay_at=now)

"""Preference learning from user feedback."""

from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from reeldeck.config import config
from reeldeck.core.contracts import FeedbackOutcome, PreferenceProfile
from reeldeck.core.decay import apply_decay
from reeldeck.logging import get_logger
from reeldeck.storage.repo_preferences import PreferencesRepo

logger = get_logger(__name__)

LIKE_DELTA = 1.0
DISLIKE_DELTA = -1.0
WATCH_LATER_DELTA = 0.5

# Score change applied to every genre of the title for each outcome
FEEDBACK_DELTAS: dict[FeedbackOutcome, float] = {
    FeedbackOutcome.LIKED: LIKE_DELTA,
    FeedbackOutcome.DISLIKED: DISLIKE_DELTA,
    FeedbackOutcome.WATCH_LATER: WATCH_LATER_DELTA,
}


def record(
    profile: PreferenceProfile,
    genre_ids: Iterable[int],
    delta: float,
    now: datetime,
    half_life_days: float | None = None,
    min_score: float | None = None,
) -> PreferenceProfile:
    """Apply one feedback signal to a profile.

    Decay runs first, then ``delta`` is added to each genre, clamped at 0 so
    a disliked genre can only fall back to neutral. An empty genre list
    returns the profile untouched, decay included.

    Args:
        profile: Current profile (not mutated)
        genre_ids: Genres of the title the feedback is about
        delta: Signed score change
        now: Current instant
        half_life_days: Decay half-life override
        min_score: Pruning threshold override

    Returns:
        Updated profile
    """
    genres = list(dict.fromkeys(genre_ids))
    if not genres:
        return profile

    decayed = apply_decay(
        profile,
        now,
        half_life_days=half_life_days if half_life_days is not None else config.decay_half_life_days,
        min_score=min_score if min_score is not None else config.min_score_to_keep,
    )

    scores = dict(decayed.genre_scores)
    for genre_id in genres:
        scores[genre_id] = max(0.0, scores.get(genre_id, 0.0) + delta)

    return PreferenceProfile(genre_scores=scores, last_decay_at=decayed.last_decay_at)


def top_genres(profile: PreferenceProfile, n: int = 3) -> list[int]:
    """Highest-scoring genres, descending, ties by ascending genre id.

    Zero scores carry no preference and are never returned.
    """
    ranked = sorted(
        ((gid, score) for gid, score in profile.genre_scores.items() if score > 0),
        key=lambda pair: (-pair[1], pair[0]),
    )
    return [gid for gid, _ in ranked[:n]]


class FeedbackRecorder:
    """Persisting wrapper around :func:`record`."""

    def __init__(self, session: AsyncSession) -> None:
        self.preferences = PreferencesRepo(session)

    async def load_profile(self, now: datetime | None = None) -> PreferenceProfile:
        """Load the profile with decay applied as of ``now`` (not persisted)."""
        profile = await self.preferences.load_profile()
        return apply_decay(
            profile,
            now or datetime.now(timezone.utc),
            half_life_days=config.decay_half_life_days,
            min_score=config.min_score_to_keep,
        )

    async def record_feedback(
        self,
        genre_ids: Iterable[int],
        delta: float,
        now: datetime | None = None,
    ) -> PreferenceProfile:
        """Record a signal and persist the resulting profile.

        Args:
            genre_ids: Genres of the title
            delta: Signed score change
            now: Current instant, defaults to the wall clock

        Returns:
            Profile after the update

        Raises:
            StorageError: If the profile could not be persisted
        """
        genres = list(genre_ids)
        profile = await self.preferences.load_profile()
        if not genres:
            logger.debug("Feedback without genres ignored")
            return profile

        updated = record(profile, genres, delta, now or datetime.now(timezone.utc))
        await self.preferences.save_profile(updated)
        logger.debug(f"Recorded feedback delta={delta} genres={genres}")
        return updated

"""Tests for preference decay."""

import math
import random
from datetime import datetime, timedelta, timezone

import pytest

from reeldeck.core.contracts import PreferenceProfile
from reeldeck.core.decay import MIN_SCORE_TO_KEEP, apply_decay, elapsed_days

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _profile(scores: dict[int, float], days_ago: float) -> PreferenceProfile:
    return PreferenceProfile(genre_scores=dict(scores), last_decay_at=NOW - timedelta(days=days_ago))


def test_half_life_halves_score():
    """A score decayed over one half-life is halved."""
    decayed = apply_decay(_profile({28: 2.0}, days_ago=90), NOW)

    assert decayed.genre_scores[28] == pytest.approx(1.0)
    assert decayed.last_decay_at == NOW


def test_decay_under_a_day_is_noop():
    """Less than a day since the last decay leaves the profile as is."""
    profile = _profile({28: 2.0, 12: 0.5}, days_ago=0.9)

    decayed = apply_decay(profile, NOW)

    assert decayed is profile
    assert decayed.genre_scores == {28: 2.0, 12: 0.5}


def test_decay_idempotent_within_a_day():
    """Decaying at now and now+12h equals decaying once at now."""
    profile = _profile({28: 3.0, 35: 1.0}, days_ago=10)

    once = apply_decay(profile, NOW)
    twice = apply_decay(once, NOW + timedelta(hours=12))

    assert twice.genre_scores == once.genre_scores
    assert twice.last_decay_at == once.last_decay_at


def test_decay_never_increases_scores():
    """Randomized profiles never gain score through decay."""
    rng = random.Random(7)
    for _ in range(50):
        scores = {rng.randint(1, 50): rng.uniform(0, 20) for _ in range(8)}
        days = rng.uniform(0, 400)
        decayed = apply_decay(_profile(scores, days_ago=days), NOW)
        for genre_id, value in decayed.genre_scores.items():
            assert value <= scores[genre_id]


def test_prune_below_threshold():
    """Scores that end up just under the threshold are removed."""
    expected = 0.3 * math.exp(-(math.log(2) / 90.0) * 90.0)

    kept = apply_decay(_profile({18: 0.3}, days_ago=90), NOW, min_score=expected)
    pruned = apply_decay(_profile({18: 0.3}, days_ago=90), NOW, min_score=expected + 1e-9)

    assert kept.genre_scores[18] == expected
    assert 18 not in pruned.genre_scores


def test_default_threshold_prunes_small_scores():
    """Stale small scores disappear with the default threshold."""
    decayed = apply_decay(_profile({28: 5.0, 99: 0.15}, days_ago=90), NOW)

    assert decayed.genre_scores[28] == pytest.approx(2.5)
    assert 99 not in decayed.genre_scores
    assert MIN_SCORE_TO_KEEP == 0.1


def test_decay_does_not_mutate_input():
    """The input profile keeps its scores and timestamp."""
    profile = _profile({28: 2.0}, days_ago=30)
    before = profile.last_decay_at

    apply_decay(profile, NOW)

    assert profile.genre_scores == {28: 2.0}
    assert profile.last_decay_at == before


def test_elapsed_days_fractional():
    """Elapsed days are fractional."""
    assert elapsed_days(NOW - timedelta(hours=36), NOW) == pytest.approx(1.5)

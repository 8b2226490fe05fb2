"""Core module containing the preference learning and sampling engine."""

from reeldeck.core.contracts import (
    ALL_TYPES,
    CandidateItem,
    ContentKey,
    ContentType,
    DeckFilters,
    FeedbackOutcome,
    ListEntry,
    PreferenceProfile,
)
from reeldeck.core.decay import HALF_LIFE_DAYS, MIN_SCORE_TO_KEEP, apply_decay

__all__ = [
    # Contracts/Types
    "ALL_TYPES",
    "CandidateItem",
    "ContentKey",
    "ContentType",
    "DeckFilters",
    "FeedbackOutcome",
    "ListEntry",
    "PreferenceProfile",
    # Decay
    "HALF_LIFE_DAYS",
    "MIN_SCORE_TO_KEEP",
    "apply_decay",
]

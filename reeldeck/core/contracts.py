"""Domain contracts and type definitions."""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ContentType(str, Enum):
    """Catalog content types, valued as TMDB path segments."""

    MOVIE = "movie"
    TV = "tv"


class FeedbackOutcome(str, Enum):
    """Result of asking the user about the card under the cursor."""

    LIKED = "liked"
    DISLIKED = "disliked"
    WATCH_LATER = "watch_later"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"


# Mixed-type deck selector used by filters
ALL_TYPES = "all"


@dataclass(frozen=True)
class ContentKey:
    """Composite identity of a catalog entry."""

    content_type: ContentType
    content_id: int

    def __str__(self) -> str:
        return f"{self.content_type.value}-{self.content_id}"

    @classmethod
    def parse(cls, raw: str) -> "ContentKey":
        """Parse the ``"movie-550"`` string form.

        Raises:
            ValueError: If the string is not a valid key
        """
        type_part, sep, id_part = raw.partition("-")
        if not sep:
            raise ValueError(f"Invalid content key: {raw!r}")
        return cls(ContentType(type_part), int(id_part))


@dataclass
class CandidateItem:
    """One catalog entry waiting in the deck."""

    content_id: int
    content_type: ContentType
    title: str = ""
    poster_path: str | None = None
    genre_ids: list[int] = field(default_factory=list)

    @property
    def has_poster(self) -> bool:
        return bool(self.poster_path)

    @property
    def key(self) -> ContentKey:
        return ContentKey(self.content_type, self.content_id)


@dataclass
class PreferenceProfile:
    """Learned per-genre affinity with the instant of the last decay."""

    genre_scores: dict[int, float] = field(default_factory=dict)
    last_decay_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-safe dictionary."""
        return {
            "genre_scores": {str(gid): score for gid, score in self.genre_scores.items()},
            "last_decay_at": self.last_decay_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PreferenceProfile":
        """Create from a stored dictionary, skipping unreadable entries."""
        scores: dict[int, float] = {}
        raw_scores = data.get("genre_scores")
        if isinstance(raw_scores, dict):
            for raw_id, raw_score in raw_scores.items():
                try:
                    genre_id = int(raw_id)
                    score = float(raw_score)
                except (TypeError, ValueError):
                    continue
                if math.isfinite(score) and score >= 0:
                    scores[genre_id] = score

        last_decay_at = datetime.now(timezone.utc)
        raw_stamp = data.get("last_decay_at")
        if isinstance(raw_stamp, str):
            try:
                last_decay_at = datetime.fromisoformat(raw_stamp)
            except ValueError:
                pass
            if last_decay_at.tzinfo is None:
                last_decay_at = last_decay_at.replace(tzinfo=timezone.utc)

        return cls(genre_scores=scores, last_decay_at=last_decay_at)


@dataclass(frozen=True)
class DeckFilters:
    """Filters the user applied to the deck."""

    content_type: str = ContentType.MOVIE.value
    genre_ids: tuple[int, ...] = ()
    provider_ids: tuple[int, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.content_type,
            "genres": list(self.genre_ids),
            "providers": list(self.provider_ids),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DeckFilters":
        content_type = data.get("type")
        if content_type not in (ContentType.MOVIE.value, ContentType.TV.value, ALL_TYPES):
            content_type = ContentType.MOVIE.value
        genres = data.get("genres")
        providers = data.get("providers")
        if not isinstance(genres, list):
            genres = []
        if not isinstance(providers, list):
            providers = []
        return cls(
            content_type=content_type,
            genre_ids=tuple(g for g in genres if isinstance(g, int)),
            provider_ids=tuple(p for p in providers if isinstance(p, int)),
        )


@dataclass(frozen=True)
class ListEntry:
    """Title saved to one of the user's lists."""

    content_id: int
    content_type: ContentType
    title: str
    poster_path: str | None = None

    @property
    def key(self) -> ContentKey:
        return ContentKey(self.content_type, self.content_id)

    @classmethod
    def from_item(cls, item: CandidateItem) -> "ListEntry":
        return cls(
            content_id=item.content_id,
            content_type=item.content_type,
            title=item.title,
            poster_path=item.poster_path,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.content_id,
            "type": self.content_type.value,
            "title": self.title,
            "poster_path": self.poster_path,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ListEntry":
        """Create from a stored dictionary.

        Raises:
            ValueError: If id or type are missing or invalid
        """
        content_id = data.get("id")
        if not isinstance(content_id, int):
            raise ValueError(f"Invalid list entry id: {content_id!r}")
        return cls(
            content_id=content_id,
            content_type=ContentType(data.get("type")),
            title=data.get("title") or "",
            poster_path=data.get("poster_path") or None,
        )

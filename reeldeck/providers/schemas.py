"""Typed views over the subset of TMDB payloads the engine reads."""

from dataclasses import dataclass, field
from typing import Any

from reeldeck.core.contracts import CandidateItem, ContentType

# TMDB refuses discovery pages beyond this
TMDB_MAX_PAGES = 500
MAX_PROVIDER_CATALOG = 40
PROVIDER_BUCKETS = ("flatrate", "free", "rent", "buy")


def _int_list(values: Any) -> list[int]:
    if not isinstance(values, list):
        return []
    return [v for v in values if isinstance(v, int) and not isinstance(v, bool)]


@dataclass
class DiscoverEntry:
    """One result row of a discovery or popular listing."""

    content_id: int
    title: str = ""
    poster_path: str | None = None
    genre_ids: list[int] = field(default_factory=list)

    @classmethod
    def from_payload(cls, data: Any) -> "DiscoverEntry | None":
        """Parse a result row.

        Returns:
            Entry, or None when the row has no integer id
        """
        if not isinstance(data, dict):
            return None
        content_id = data.get("id")
        if not isinstance(content_id, int) or isinstance(content_id, bool):
            return None

        title = (
            data.get("title")
            or data.get("name")
            or data.get("original_title")
            or data.get("original_name")
            or ""
        )
        return cls(
            content_id=content_id,
            title=str(title),
            poster_path=data.get("poster_path") or None,
            genre_ids=_int_list(data.get("genre_ids")),
        )

    def to_candidate(self, content_type: ContentType) -> CandidateItem:
        return CandidateItem(
            content_id=self.content_id,
            content_type=content_type,
            title=self.title,
            poster_path=self.poster_path,
            genre_ids=list(self.genre_ids),
        )


@dataclass
class DiscoverPage:
    """A page of listing results with the catalog's total page count."""

    results: list[DiscoverEntry] = field(default_factory=list)
    total_pages: int = 1

    @classmethod
    def from_payload(cls, data: Any) -> "DiscoverPage":
        if not isinstance(data, dict):
            return cls()

        raw_results = data.get("results")
        results = []
        if isinstance(raw_results, list):
            for row in raw_results:
                entry = DiscoverEntry.from_payload(row)
                if entry is not None:
                    results.append(entry)

        total_pages = data.get("total_pages")
        if not isinstance(total_pages, int) or isinstance(total_pages, bool):
            total_pages = 1
        total_pages = max(1, min(total_pages, TMDB_MAX_PAGES))

        return cls(results=results, total_pages=total_pages)


@dataclass(frozen=True)
class Genre:
    """Catalog genre."""

    id: int
    name: str


def parse_genres(data: Any) -> list[Genre]:
    """Extract ``genres[]`` from a detail or genre-list payload.

    Raises:
        ValueError: If the payload has no genres list
    """
    if not isinstance(data, dict) or not isinstance(data.get("genres"), list):
        raise ValueError("Payload has no genres list")

    genres = []
    for row in data["genres"]:
        if isinstance(row, dict) and isinstance(row.get("id"), int):
            genres.append(Genre(id=row["id"], name=str(row.get("name") or "")))
    return genres


@dataclass(frozen=True)
class WatchProvider:
    """Streaming provider offering a title or listed in the catalog."""

    provider_id: int
    provider_name: str
    logo_path: str | None = None
    display_priority: int = 999

    @classmethod
    def from_payload(cls, data: Any) -> "WatchProvider | None":
        if not isinstance(data, dict) or not isinstance(data.get("provider_id"), int):
            return None
        priority = data.get("display_priority")
        return cls(
            provider_id=data["provider_id"],
            provider_name=str(data.get("provider_name") or ""),
            logo_path=data.get("logo_path") or None,
            display_priority=priority if isinstance(priority, int) else 999,
        )


def parse_provider_catalog(data: Any) -> list[WatchProvider]:
    """Parse ``/watch/providers/{type}``, ordered by display priority, top 40."""
    rows = data.get("results") if isinstance(data, dict) else None
    if not isinstance(rows, list):
        return []

    providers = [p for p in (WatchProvider.from_payload(r) for r in rows) if p is not None]
    providers.sort(key=lambda p: p.display_priority)
    return providers[:MAX_PROVIDER_CATALOG]


def parse_title_providers(data: Any, region: str, fallback_region: str = "US") -> list[WatchProvider]:
    """Parse ``/{type}/{id}/watch/providers`` for the first region present.

    Offers from every bucket are merged in flatrate, free, rent, buy order
    and deduplicated by provider id.
    """
    regions = data.get("results") if isinstance(data, dict) else None
    if not isinstance(regions, dict):
        return []

    country = None
    for candidate in (region, fallback_region):
        if candidate and isinstance(regions.get(candidate), dict):
            country = candidate
            break
    if country is None:
        return []

    offers = regions[country]
    seen: set[int] = set()
    providers = []
    for bucket in PROVIDER_BUCKETS:
        rows = offers.get(bucket)
        if not isinstance(rows, list):
            continue
        for row in rows:
            provider = WatchProvider.from_payload(row)
            if provider is None or provider.provider_id in seen:
                continue
            seen.add(provider.provider_id)
            providers.append(provider)
    return providers

"""TMDB API client with retry logic."""

import asyncio
import math
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Sequence

import httpx

from reeldeck.core.contracts import ContentType
from reeldeck.logging import get_logger
from reeldeck.providers.schemas import (
    DiscoverPage,
    Genre,
    WatchProvider,
    parse_genres,
    parse_provider_catalog,
    parse_title_providers,
)

logger = get_logger(__name__)

TMDB_BASE_URL = "https://api.themoviedb.org/3"
DEFAULT_TIMEOUT = 30.0
MAX_RETRIES = 5
BASE_BACKOFF = 1.0
DEFAULT_MONETIZATION_TYPES = "flatrate|ads|free"


class TMDBError(Exception):
    """Base exception for TMDB API errors."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class TMDBRateLimitError(TMDBError):
    """Rate limit exceeded."""

    def __init__(self, retry_after: int | None = None):
        super().__init__("Rate limit exceeded", status_code=429)
        self.retry_after = retry_after


def parse_retry_after(value: str | None) -> int | None:
    """Parse a Retry-After header given as seconds or as an HTTP-date.

    Returns:
        Seconds to wait, or None when the header is missing or unreadable
    """
    if not value:
        return None
    value = value.strip()
    if value.isdigit():
        return int(value)
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max(0, math.ceil((when - datetime.now(timezone.utc)).total_seconds()))


def build_discover_params(
    content_type: ContentType,
    region: str,
    genre_ids: Sequence[int] = (),
    provider_ids: Sequence[int] = (),
    monetization_types: str = DEFAULT_MONETIZATION_TYPES,
) -> dict[str, Any]:
    """Build discovery query parameters.

    Genres are comma-joined (all must match), providers pipe-joined (any).

    Args:
        content_type: Movie or TV
        region: Watch region (ISO 3166-1)
        genre_ids: Genre filter, omitted when empty
        provider_ids: Provider filter, omitted when empty
        monetization_types: Pipe-joined monetization types

    Returns:
        Query parameters without the page number
    """
    params: dict[str, Any] = {
        "sort_by": "popularity.desc",
        "with_watch_monetization_types": monetization_types,
    }
    if region:
        params["watch_region"] = region
        # Release-date region only exists for movies
        if content_type == ContentType.MOVIE:
            params["region"] = region
    if genre_ids:
        params["with_genres"] = ",".join(str(g) for g in genre_ids)
    if provider_ids:
        params["with_watch_providers"] = "|".join(str(p) for p in provider_ids)
    return params


class TMDBClient:
    """Async TMDB API client with retry logic."""

    def __init__(
        self,
        bearer_token: str,
        language: str = "es-ES",
        region: str = "ES",
        timeout: float = DEFAULT_TIMEOUT,
        monetization_types: str = DEFAULT_MONETIZATION_TYPES,
    ):
        """Initialize TMDB client.

        Args:
            bearer_token: TMDB API bearer token (v4 auth)
            language: Language for results (e.g., "es-ES")
            region: Watch region for discovery and providers (e.g., "ES")
            timeout: Request timeout in seconds
            monetization_types: Pipe-joined monetization filter for discovery
        """
        self.bearer_token = bearer_token
        self.language = language
        self.region = region
        self.timeout = timeout
        self.monetization_types = monetization_types
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_config(cls) -> "TMDBClient":
        """Create a client from application config."""
        from reeldeck.config import ConfigurationError, config

        if not config.tmdb_bearer_token:
            raise ConfigurationError("TMDB_BEARER_TOKEN environment variable is required")
        return cls(
            bearer_token=config.tmdb_bearer_token,
            language=config.tmdb_language,
            region=config.tmdb_region,
            monetization_types=config.tmdb_monetization_types,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=TMDB_BASE_URL,
                headers={
                    "Authorization": f"Bearer {self.bearer_token}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make an API request with retry logic.

        Args:
            method: HTTP method
            path: API path (e.g., "/discover/movie")
            params: Query parameters

        Returns:
            Parsed JSON response

        Raises:
            TMDBError: On API error, malformed body, or retries exhausted
        """
        client = await self._get_client()

        if params is None:
            params = {}
        params.setdefault("language", self.language)

        last_error: Exception | None = None

        for attempt in range(MAX_RETRIES):
            try:
                response = await client.request(method, path, params=params)

                if response.status_code == 200:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise TMDBError(f"Malformed JSON from {path}: {e}", status_code=200)

                if response.status_code == 429:
                    retry_after = parse_retry_after(response.headers.get("Retry-After"))
                    wait_time = retry_after if retry_after is not None else BASE_BACKOFF * (2 ** attempt)
                    logger.warning(
                        f"TMDB rate limited, retry after {wait_time}s "
                        f"(attempt {attempt + 1}/{MAX_RETRIES})"
                    )
                    if attempt < MAX_RETRIES - 1:
                        await asyncio.sleep(wait_time)
                        continue
                    raise TMDBRateLimitError(retry_after=retry_after)

                if response.status_code >= 500:
                    wait_time = BASE_BACKOFF * (2 ** attempt)
                    logger.warning(
                        f"TMDB server error {response.status_code}, "
                        f"retry in {wait_time}s (attempt {attempt + 1}/{MAX_RETRIES})"
                    )
                    if attempt < MAX_RETRIES - 1:
                        await asyncio.sleep(wait_time)
                        continue
                    raise TMDBError(
                        f"Server error: {response.status_code}",
                        status_code=response.status_code,
                    )

                # Client error (4xx except 429)
                try:
                    error_data = response.json() if response.content else {}
                except ValueError:
                    error_data = {}
                if not isinstance(error_data, dict):
                    error_data = {}
                error_msg = error_data.get("status_message", f"HTTP {response.status_code}")
                raise TMDBError(error_msg, status_code=response.status_code)

            except httpx.TimeoutException as e:
                wait_time = BASE_BACKOFF * (2 ** attempt)
                logger.warning(
                    f"TMDB timeout, retry in {wait_time}s "
                    f"(attempt {attempt + 1}/{MAX_RETRIES})"
                )
                last_error = e
                if attempt < MAX_RETRIES - 1:
                    await asyncio.sleep(wait_time)
                    continue

            except httpx.RequestError as e:
                wait_time = BASE_BACKOFF * (2 ** attempt)
                logger.warning(
                    f"TMDB request error: {e}, retry in {wait_time}s "
                    f"(attempt {attempt + 1}/{MAX_RETRIES})"
                )
                last_error = e
                if attempt < MAX_RETRIES - 1:
                    await asyncio.sleep(wait_time)
                    continue

        raise TMDBError(f"Max retries exceeded: {last_error}")

    async def discover(
        self,
        content_type: ContentType,
        page: int = 1,
        genre_ids: Sequence[int] = (),
        provider_ids: Sequence[int] = (),
    ) -> DiscoverPage:
        """Discover titles sorted by popularity.

        Args:
            content_type: Movie or TV
            page: Page number (1-based)
            genre_ids: Genre filter (all must match)
            provider_ids: Provider filter (any may match)

        Returns:
            Parsed page with results and total page count
        """
        params = build_discover_params(
            content_type,
            region=self.region,
            genre_ids=genre_ids,
            provider_ids=provider_ids,
            monetization_types=self.monetization_types,
        )
        params["page"] = page
        data = await self._request("GET", f"/discover/{content_type.value}", params=params)
        return DiscoverPage.from_payload(data)

    async def fetch_popular(self, content_type: ContentType, page: int = 1) -> DiscoverPage:
        """Fetch the unfiltered popular listing."""
        data = await self._request("GET", f"/{content_type.value}/popular", params={"page": page})
        return DiscoverPage.from_payload(data)

    async def get_details(self, content_type: ContentType, content_id: int) -> dict[str, Any]:
        """Get movie or TV show details.

        Args:
            content_type: Movie or TV
            content_id: TMDB ID

        Returns:
            Raw details payload
        """
        return await self._request("GET", f"/{content_type.value}/{content_id}")

    async def get_genres(self, content_type: ContentType) -> list[Genre]:
        """Get the genre catalog for a content type."""
        data = await self._request("GET", f"/genre/{content_type.value}/list")
        try:
            return parse_genres(data)
        except ValueError as e:
            raise TMDBError(f"Malformed genre list: {e}")

    async def get_provider_catalog(
        self,
        content_type: ContentType,
        region: str | None = None,
    ) -> list[WatchProvider]:
        """Get streaming providers available in a region.

        Args:
            content_type: Movie or TV
            region: Watch region, defaults to the configured one
        """
        data = await self._request(
            "GET",
            f"/watch/providers/{content_type.value}",
            params={"watch_region": region or self.region},
        )
        return parse_provider_catalog(data)

    async def get_watch_providers(
        self,
        content_type: ContentType,
        content_id: int,
    ) -> list[WatchProvider]:
        """Get providers offering a title, preferring the configured region."""
        data = await self._request("GET", f"/{content_type.value}/{content_id}/watch/providers")
        return parse_title_providers(data, region=self.region)

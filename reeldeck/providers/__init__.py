"""Remote catalog providers."""

from reeldeck.providers.tmdb_client import TMDBClient, TMDBError, TMDBRateLimitError

__all__ = ["TMDBClient", "TMDBError", "TMDBRateLimitError"]

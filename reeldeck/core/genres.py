"""Best-effort genre lookup for catalog entries."""

import httpx

from reeldeck.core.contracts import CandidateItem
from reeldeck.logging import get_logger
from reeldeck.providers.schemas import parse_genres
from reeldeck.providers.tmdb_client import TMDBClient, TMDBError

logger = get_logger(__name__)


async def resolve_genres(item: CandidateItem, client: TMDBClient) -> list[int]:
    """Return the item's genre ids, fetching details when the listing had none.

    Never raises: any lookup failure is logged and yields an empty list.

    Args:
        item: Deck item
        client: Catalog client used for the detail lookup

    Returns:
        Genre ids (possibly empty)
    """
    if item.genre_ids:
        return list(item.genre_ids)

    try:
        details = await client.get_details(item.content_type, item.content_id)
        genre_ids = [genre.id for genre in parse_genres(details)]
    except (TMDBError, httpx.HTTPError, ValueError) as e:
        logger.warning(f"Genre lookup failed for {item.key}: {e}")
        return []

    item.genre_ids = genre_ids
    return genre_ids

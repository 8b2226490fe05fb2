"""Print the first cards of the discovery deck.

Usage::

    python -m reeldeck [movie|tv|all] [GENRE_ID ...]

Without arguments the saved filters are used (movies if none were saved).
"""

import asyncio
import sys

from reeldeck.config import ConfigurationError, config
from reeldeck.core.contracts import ALL_TYPES, ContentType, DeckFilters
from reeldeck.core.session import DiscoverySession
from reeldeck.logging import get_logger, setup_logging
from reeldeck.providers.tmdb_client import TMDBClient
from reeldeck.storage.db import close_engine, get_session_factory, init_db

setup_logging(config.log_level)
logger = get_logger(__name__)

PREVIEW_SIZE = 10


def _parse_args(argv: list[str]) -> DeckFilters | None:
    if not argv:
        return None
    content_type = argv[0]
    if content_type not in (ContentType.MOVIE.value, ContentType.TV.value, ALL_TYPES):
        raise SystemExit(f"Unknown content type: {content_type}")
    try:
        genre_ids = tuple(int(g) for g in argv[1:])
    except ValueError:
        raise SystemExit("Genre ids must be integers")
    return DeckFilters(content_type=content_type, genre_ids=genre_ids)


async def _run(filters: DeckFilters | None) -> None:
    await init_db()
    client = TMDBClient.from_config()
    try:
        async with get_session_factory()() as session:
            deck = DiscoverySession(session, client)
            if filters is not None:
                await deck.start(filters)
            elif not await deck.resume():
                await deck.start(DeckFilters(), persist=False)

            for item in deck.queue.items[:PREVIEW_SIZE]:
                print(f"{item.key}\t{item.title}")
    finally:
        await client.close()
        await close_engine()


def main() -> None:
    filters = _parse_args(sys.argv[1:])
    try:
        asyncio.run(_run(filters))
    except ConfigurationError as e:
        logger.error(str(e))
        sys.exit(2)


if __name__ == "__main__":
    main()

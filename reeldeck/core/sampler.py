"""Deduplicated random sampling of the remote catalog."""

import asyncio
import random
from dataclasses import dataclass, field
from itertools import zip_longest
from typing import Awaitable, Callable, Sequence

import httpx

from reeldeck.config import config
from reeldeck.core.contracts import CandidateItem, ContentKey, ContentType, PreferenceProfile
from reeldeck.core.learning import top_genres
from reeldeck.logging import get_logger
from reeldeck.providers.schemas import DiscoverPage
from reeldeck.providers.tmdb_client import TMDBClient, TMDBError

logger = get_logger(__name__)

HiddenKeysLoader = Callable[[], Awaitable[set[ContentKey]]]
ProfileLoader = Callable[[], Awaitable[PreferenceProfile]]


def interleave(first: Sequence[CandidateItem], second: Sequence[CandidateItem]) -> list[CandidateItem]:
    """Alternate items from two sequences, then append the longer one's tail."""
    merged = []
    for a, b in zip_longest(first, second):
        if a is not None:
            merged.append(a)
        if b is not None:
            merged.append(b)
    return merged


@dataclass
class SampleBatch:
    """Admitted items plus the page counts seen while fetching them."""

    items: list[CandidateItem] = field(default_factory=list)
    total_pages: dict[ContentType, int] = field(default_factory=dict)


class ContentSampler:
    """Session-scoped sampler.

    Remembers every key it has handed out so repeated calls (refills) never
    return the same title twice, and caches the catalog's page count per
    content type for the current filters.
    """

    def __init__(
        self,
        client: TMDBClient,
        hidden_keys: HiddenKeysLoader,
        profile: ProfileLoader,
        rng: random.Random | None = None,
        top_n: int | None = None,
    ) -> None:
        """Initialize sampler.

        Args:
            client: Catalog client
            hidden_keys: Async loader of the current hidden set
            profile: Async loader of the current decayed preference profile
            rng: Random source for page picks and shuffling
            top_n: Learned genres used when no genre filter is set
        """
        self.client = client
        self._hidden_keys = hidden_keys
        self._profile = profile
        self.rng = rng or random.Random()
        self.top_n = top_n if top_n is not None else config.top_genres_count
        self.total_pages: dict[ContentType, int] = {}
        self.enqueued: set[ContentKey] = set()

    def reset(self) -> None:
        """Forget enqueued keys and page counts (filters changed)."""
        self.enqueued.clear()
        self.total_pages.clear()

    async def effective_genres(self, filter_genres: Sequence[int]) -> list[int]:
        """Explicit genre filter if given, else the top learned genres."""
        if filter_genres:
            return list(filter_genres)
        return top_genres(await self._profile(), self.top_n)

    async def _fetch_page(
        self,
        content_type: ContentType,
        page: int,
        genre_ids: Sequence[int],
        provider_ids: Sequence[int],
    ) -> DiscoverPage | None:
        try:
            return await self.client.discover(
                content_type,
                page=page,
                genre_ids=genre_ids,
                provider_ids=provider_ids,
            )
        except (TMDBError, httpx.HTTPError, ValueError) as e:
            logger.warning(f"Discover {content_type.value} page {page} failed: {e}")
            return None

    async def _fetch_popular(self, content_type: ContentType) -> DiscoverPage | None:
        try:
            return await self.client.fetch_popular(content_type)
        except (TMDBError, httpx.HTTPError, ValueError) as e:
            logger.warning(f"Popular {content_type.value} fallback failed: {e}")
            return None

    async def collect(
        self,
        content_type: ContentType,
        filter_genres: Sequence[int] = (),
        filter_providers: Sequence[int] = (),
        page_count: int | None = None,
        use_learned_genres: bool = True,
    ) -> SampleBatch:
        """Fetch and admit a shuffled batch of unseen titles.

        Page 1 is always fetched to learn the total page count, then
        ``page_count - 1`` random pages are fetched concurrently. Failed
        pages contribute nothing. Sampler state is only read here; the
        batch takes effect through ``commit``.

        Args:
            content_type: Movie or TV
            filter_genres: Explicit genre filter (empty means learned genres)
            filter_providers: Streaming provider filter
            page_count: Pages to fetch, including page 1
            use_learned_genres: When False, ``filter_genres`` is already the
                effective filter and is used as-is, even if empty

        Returns:
            Admitted items in random order (possibly empty)
        """
        page_count = page_count or config.sample_page_count
        if use_learned_genres:
            genres = await self.effective_genres(filter_genres)
        else:
            genres = list(filter_genres)
        providers = list(filter_providers)

        batch = SampleBatch()
        pages: list[DiscoverPage] = []
        first = await self._fetch_page(content_type, 1, genres, providers)

        if first is not None:
            batch.total_pages[content_type] = first.total_pages
            pages.append(first)

        total = batch.total_pages.get(content_type) or self.total_pages.get(content_type)

        if first is not None and not first.results:
            logger.info(
                f"No {content_type.value} results for genres={genres} "
                f"providers={providers}, falling back to popular"
            )
            popular = await self._fetch_popular(content_type)
            if popular is not None:
                pages.append(popular)
        elif page_count > 1 and total:
            picks = [self.rng.randint(1, total) for _ in range(page_count - 1)]
            fetched = await asyncio.gather(
                *(self._fetch_page(content_type, p, genres, providers) for p in picks)
            )
            pages.extend(page for page in fetched if page is not None)

        hidden = await self._hidden_keys()
        seen: set[ContentKey] = set()
        for page in pages:
            for entry in page.results:
                item = entry.to_candidate(content_type)
                if not item.has_poster:
                    continue
                if item.key in hidden or item.key in self.enqueued or item.key in seen:
                    continue
                seen.add(item.key)
                batch.items.append(item)

        self.rng.shuffle(batch.items)
        logger.debug(
            f"Sampled {len(batch.items)} {content_type.value} items from {len(pages)} pages"
        )
        return batch

    async def collect_all(
        self,
        filter_genres: Sequence[int] = (),
        filter_providers: Sequence[int] = (),
        page_count: int | None = None,
        use_learned_genres: bool = True,
    ) -> SampleBatch:
        """Collect movies and TV independently and interleave them."""
        movies = await self.collect(
            ContentType.MOVIE, filter_genres, filter_providers, page_count, use_learned_genres
        )
        shows = await self.collect(
            ContentType.TV, filter_genres, filter_providers, page_count, use_learned_genres
        )
        return SampleBatch(
            items=interleave(movies.items, shows.items),
            total_pages={**movies.total_pages, **shows.total_pages},
        )

    def commit(self, batch: SampleBatch) -> list[CandidateItem]:
        """Record a batch's page counts and keys as handed out.

        Returns:
            The batch items not enqueued by another batch meanwhile
        """
        self.total_pages.update(batch.total_pages)
        admitted = []
        for item in batch.items:
            if item.key in self.enqueued:
                continue
            self.enqueued.add(item.key)
            admitted.append(item)
        return admitted

    async def sample(
        self,
        content_type: ContentType,
        filter_genres: Sequence[int] = (),
        filter_providers: Sequence[int] = (),
        page_count: int | None = None,
        use_learned_genres: bool = True,
    ) -> list[CandidateItem]:
        """Collect a batch and commit it at once."""
        batch = await self.collect(
            content_type, filter_genres, filter_providers, page_count, use_learned_genres
        )
        return self.commit(batch)

    async def sample_all(
        self,
        filter_genres: Sequence[int] = (),
        filter_providers: Sequence[int] = (),
        page_count: int | None = None,
        use_learned_genres: bool = True,
    ) -> list[CandidateItem]:
        """Sample movies and TV independently and interleave them."""
        batch = await self.collect_all(
            filter_genres, filter_providers, page_count, use_learned_genres
        )
        return self.commit(batch)

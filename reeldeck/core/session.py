"""Discovery session: the event-driven API the UI talks to."""

import random
from typing import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from reeldeck.config import config
from reeldeck.core.contracts import (
    ALL_TYPES,
    CandidateItem,
    ContentType,
    DeckFilters,
    FeedbackOutcome,
    ListEntry,
)
from reeldeck.core.deck import HiddenSetManager, PresentationQueue, should_refill
from reeldeck.core.genres import resolve_genres
from reeldeck.core.learning import FEEDBACK_DELTAS, FeedbackRecorder
from reeldeck.core.sampler import ContentSampler, SampleBatch
from reeldeck.logging import get_logger
from reeldeck.providers.tmdb_client import TMDBClient
from reeldeck.storage.repo_documents import LIKED, WATCHLIST
from reeldeck.storage.repo_filters import FiltersRepo
from reeldeck.storage.repo_lists import ListsRepo

logger = get_logger(__name__)

FeedbackPrompt = Callable[[CandidateItem], Awaitable[FeedbackOutcome]]

# Lists a positive outcome saves the title to
OUTCOME_LISTS: dict[FeedbackOutcome, str] = {
    FeedbackOutcome.LIKED: LIKED,
    FeedbackOutcome.WATCH_LATER: WATCHLIST,
}


class DiscoverySession:
    """One foreground deck session for the local profile.

    Every swipe records feedback and hides the title before the refill
    decision, so a refill can never resample what was just acted upon.
    """

    def __init__(
        self,
        session: AsyncSession,
        client: TMDBClient,
        rng: random.Random | None = None,
        page_count: int | None = None,
        refill_threshold: int | None = None,
    ) -> None:
        self.client = client
        self.recorder = FeedbackRecorder(session)
        self.hidden = HiddenSetManager(session)
        self.lists = ListsRepo(session)
        self.saved_filters = FiltersRepo(session)
        self.sampler = ContentSampler(
            client,
            hidden_keys=self.hidden.hidden_keys,
            profile=self.recorder.load_profile,
            rng=rng,
        )
        self.page_count = page_count or config.sample_page_count
        self.refill_threshold = (
            refill_threshold if refill_threshold is not None else config.refill_threshold
        )

        self.queue = PresentationQueue()
        self.filters = DeckFilters()
        self.effective_genres: list[int] = []
        self._generation = 0

    async def _collect(self) -> SampleBatch:
        genres = self.effective_genres
        providers = self.filters.provider_ids
        if self.filters.content_type == ALL_TYPES:
            return await self.sampler.collect_all(
                genres, providers, self.page_count, use_learned_genres=False
            )
        return await self.sampler.collect(
            ContentType(self.filters.content_type),
            genres,
            providers,
            self.page_count,
            use_learned_genres=False,
        )

    async def _fill(self) -> int:
        """Sample and append, unless the filters changed meanwhile."""
        generation = self._generation
        batch = await self._collect()
        if generation != self._generation:
            logger.info(f"Discarding {len(batch.items)} items sampled for superseded filters")
            return 0
        items = self.sampler.commit(batch)
        hidden = await self.hidden.hidden_keys()
        return self.queue.extend(items, hidden=hidden)

    async def start(self, filters: DeckFilters, persist: bool = True) -> PresentationQueue:
        """Replace the deck with a fresh one for the given filters.

        Args:
            filters: Filters to apply
            persist: Save filters and mark the filter screen as seen

        Returns:
            The new deck
        """
        self._generation += 1
        self.filters = filters
        self.sampler.reset()
        self.queue = PresentationQueue()

        if persist:
            await self.saved_filters.save_filters(filters)
            await self.saved_filters.mark_seen_filters()

        self.effective_genres = await self.sampler.effective_genres(filters.genre_ids)
        added = await self._fill()
        logger.info(
            f"Deck started type={filters.content_type} genres={self.effective_genres} "
            f"providers={list(filters.provider_ids)} items={added}"
        )
        return self.queue

    async def resume(self) -> bool:
        """Restart the deck with the saved filters.

        Returns:
            False when the user has never applied filters (show them first)
        """
        if not await self.saved_filters.has_seen_filters():
            return False
        filters = await self.saved_filters.load_filters() or DeckFilters()
        await self.start(filters, persist=False)
        return True

    def current(self) -> CandidateItem | None:
        return self.queue.current()

    async def swipe(self, outcome: FeedbackOutcome) -> CandidateItem | None:
        """Apply the user's decision to the current card.

        Args:
            outcome: What the user decided

        Returns:
            The consumed item, or None when cancelled or the deck is empty
        """
        item = self.queue.current()
        if item is None or outcome == FeedbackOutcome.CANCELLED:
            return None

        self.queue.advance()

        delta = FEEDBACK_DELTAS.get(outcome)
        if delta is not None:
            genre_ids = await resolve_genres(item, self.client)
            await self.recorder.record_feedback(genre_ids, delta)

            list_name = OUTCOME_LISTS.get(outcome)
            if list_name is not None:
                await self.lists.add(list_name, ListEntry.from_item(item))

            await self.hidden.hide(item, self.queue)

        if should_refill(len(self.queue), self.queue.current_index, self.refill_threshold):
            added = await self._fill()
            logger.debug(f"Refilled deck with {added} items")

        return item

    async def review_current(self, prompt: FeedbackPrompt) -> CandidateItem | None:
        """Ask for a decision on the current card and apply it."""
        item = self.queue.current()
        if item is None:
            return None
        outcome = await prompt(item)
        return await self.swipe(outcome)

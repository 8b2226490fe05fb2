"""Presentation queue, refill trigger and hidden-set management."""

from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from reeldeck.core.contracts import CandidateItem, ContentKey
from reeldeck.logging import get_logger
from reeldeck.storage.repo_hidden import HiddenRepo

logger = get_logger(__name__)

DEFAULT_REFILL_THRESHOLD = 10


def should_refill(queue_length: int, cursor: int, threshold: int = DEFAULT_REFILL_THRESHOLD) -> bool:
    """Whether few enough unconsumed items remain to fetch more."""
    return queue_length - cursor <= threshold


class PresentationQueue:
    """The swipe deck: ordered unique items plus a cursor."""

    def __init__(self, items: Iterable[CandidateItem] = ()) -> None:
        self.items: list[CandidateItem] = []
        self.current_index = 0
        self._keys: set[ContentKey] = set()
        self.extend(items)

    def __len__(self) -> int:
        return len(self.items)

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    @property
    def remaining(self) -> int:
        return len(self.items) - self.current_index

    def current(self) -> CandidateItem | None:
        """Item under the cursor, or None when the deck is exhausted."""
        if self.current_index < len(self.items):
            return self.items[self.current_index]
        return None

    def advance(self) -> CandidateItem | None:
        """Consume the current item and return it."""
        item = self.current()
        if item is not None:
            self.current_index += 1
        return item

    def extend(self, items: Iterable[CandidateItem], hidden: set[ContentKey] | None = None) -> int:
        """Append items whose key is neither queued nor hidden.

        Returns:
            Number of items appended
        """
        added = 0
        for item in items:
            key = item.key
            if key in self._keys or (hidden and key in hidden):
                continue
            self._keys.add(key)
            self.items.append(item)
            added += 1
        return added

    def remove_pending(self, key: ContentKey) -> int:
        """Drop occurrences of a key at or after the cursor.

        Consumed items stay so the cursor keeps pointing at the same card.

        Returns:
            Number of items removed
        """
        head = self.items[: self.current_index]
        tail = [item for item in self.items[self.current_index:] if item.key != key]
        removed = len(self.items) - len(head) - len(tail)
        if removed:
            self.items = head + tail
            if not any(item.key == key for item in head):
                self._keys.discard(key)
        return removed


class HiddenSetManager:
    """Hides titles permanently and keeps the live deck consistent."""

    def __init__(self, session: AsyncSession) -> None:
        self.hidden = HiddenRepo(session)

    async def hidden_keys(self) -> set[ContentKey]:
        return await self.hidden.list_hidden_keys()

    async def hide(
        self,
        target: CandidateItem | ContentKey,
        queue: PresentationQueue | None = None,
    ) -> bool:
        """Add a title to the hidden set and pull it from the pending deck.

        Args:
            target: Item or key to hide
            queue: Live deck to clean up, if any

        Returns:
            True if the key was newly hidden

        Raises:
            StorageError: If the hidden set could not be persisted
        """
        key = target.key if isinstance(target, CandidateItem) else target
        added = await self.hidden.add_hidden(key)

        if queue is not None:
            removed = queue.remove_pending(key)
            if removed:
                logger.debug(f"Removed {removed} pending copies of {key} from deck")

        return added

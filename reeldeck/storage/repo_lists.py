"""Repository for the user's saved lists (watch later, liked)."""

from sqlalchemy.ext.asyncio import AsyncSession

from reeldeck.core.contracts import ContentKey, ListEntry
from reeldeck.logging import get_logger
from reeldeck.storage.repo_documents import LIKED, WATCHLIST, DocumentsRepo

logger = get_logger(__name__)

LIST_NAMES = (WATCHLIST, LIKED)


class ListsRepo:
    """Repository for newest-first lists unique per composite key."""

    def __init__(self, session: AsyncSession) -> None:
        self.documents = DocumentsRepo(session)

    @staticmethod
    def _check_name(list_name: str) -> None:
        if list_name not in LIST_NAMES:
            raise ValueError(f"Unknown list: {list_name}")

    async def list_entries(self, list_name: str) -> list[ListEntry]:
        """Get all entries of a list, newest first.

        Args:
            list_name: WATCHLIST or LIKED

        Returns:
            List of entries (malformed stored rows are skipped)
        """
        self._check_name(list_name)
        raw = await self.documents.get_document(list_name, default=[])
        if not isinstance(raw, list):
            return []

        entries = []
        for row in raw:
            if not isinstance(row, dict):
                continue
            try:
                entries.append(ListEntry.from_dict(row))
            except ValueError:
                logger.warning(f"Skipping malformed {list_name} entry {row!r}")
        return entries

    async def add(self, list_name: str, entry: ListEntry) -> bool:
        """Prepend an entry unless its key is already present.

        Returns:
            True if added, False if already in the list
        """
        entries = await self.list_entries(list_name)
        if any(e.key == entry.key for e in entries):
            return False

        entries.insert(0, entry)
        await self._save(list_name, entries)
        return True

    async def remove(self, list_name: str, key: ContentKey) -> bool:
        """Remove an entry by key.

        Returns:
            True if removed, False if not found
        """
        entries = await self.list_entries(list_name)
        remaining = [e for e in entries if e.key != key]
        if len(remaining) == len(entries):
            return False

        await self._save(list_name, remaining)
        return True

    async def clear(self, list_name: str) -> None:
        """Empty a list."""
        self._check_name(list_name)
        await self.documents.put_document(list_name, [])

    async def _save(self, list_name: str, entries: list[ListEntry]) -> None:
        await self.documents.put_document(list_name, [e.to_dict() for e in entries])

"""Repository for the hidden set (titles never to be sampled again)."""

from sqlalchemy.ext.asyncio import AsyncSession

from reeldeck.core.contracts import ContentKey
from reeldeck.logging import get_logger
from reeldeck.storage.repo_documents import HIDDEN_SET, DocumentsRepo

logger = get_logger(__name__)


class HiddenRepo:
    """Repository for the append-only hidden set."""

    def __init__(self, session: AsyncSession) -> None:
        self.documents = DocumentsRepo(session)

    async def list_hidden_keys(self) -> set[ContentKey]:
        """Get every hidden key, skipping malformed stored entries."""
        raw = await self.documents.get_document(HIDDEN_SET, default=[])
        if not isinstance(raw, list):
            return set()

        keys: set[ContentKey] = set()
        for value in raw:
            try:
                keys.add(ContentKey.parse(str(value)))
            except ValueError:
                logger.warning(f"Skipping malformed hidden key {value!r}")
        return keys

    async def add_hidden(self, key: ContentKey) -> bool:
        """Add a key to the hidden set.

        Args:
            key: Composite key to hide

        Returns:
            True if added, False if it was already hidden
        """
        keys = await self.list_hidden_keys()
        if key in keys:
            return False

        keys.add(key)
        await self.documents.put_document(HIDDEN_SET, sorted(str(k) for k in keys))
        return True

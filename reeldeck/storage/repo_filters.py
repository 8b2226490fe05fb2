"""Repository for saved deck filters and the onboarding flag."""

from sqlalchemy.ext.asyncio import AsyncSession

from reeldeck.core.contracts import DeckFilters
from reeldeck.storage.repo_documents import HAS_SEEN_HOME_FILTERS, HOME_FILTERS, DocumentsRepo


class FiltersRepo:
    """Repository for the last applied deck filters."""

    def __init__(self, session: AsyncSession) -> None:
        self.documents = DocumentsRepo(session)

    async def load_filters(self) -> DeckFilters | None:
        """Get saved filters, or None if the user never applied any."""
        data = await self.documents.get_document(HOME_FILTERS)
        if not isinstance(data, dict):
            return None
        return DeckFilters.from_dict(data)

    async def save_filters(self, filters: DeckFilters) -> None:
        await self.documents.put_document(HOME_FILTERS, filters.to_dict())

    async def has_seen_filters(self) -> bool:
        """Whether the user already went through the filter screen once."""
        return bool(await self.documents.get_document(HAS_SEEN_HOME_FILTERS, default=False))

    async def mark_seen_filters(self) -> None:
        await self.documents.put_document(HAS_SEEN_HOME_FILTERS, True)

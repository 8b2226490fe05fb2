"""Repository for the preference profile document."""

from sqlalchemy.ext.asyncio import AsyncSession

from reeldeck.core.contracts import PreferenceProfile
from reeldeck.storage.repo_documents import PREFERENCES, DocumentsRepo


class PreferencesRepo:
    """Loads and saves the single local preference profile."""

    def __init__(self, session: AsyncSession) -> None:
        self.documents = DocumentsRepo(session)

    async def load_profile(self) -> PreferenceProfile:
        """Load the stored profile, or a fresh empty one on first use."""
        data = await self.documents.get_document(PREFERENCES)
        if not isinstance(data, dict):
            return PreferenceProfile()
        return PreferenceProfile.from_dict(data)

    async def save_profile(self, profile: PreferenceProfile) -> None:
        """Persist the profile, replacing the previous one."""
        await self.documents.put_document(PREFERENCES, profile.to_dict())

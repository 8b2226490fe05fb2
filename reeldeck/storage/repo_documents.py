"""Repository for named JSON documents (the local key-value store)."""

import asyncio
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from reeldeck.logging import get_logger
from reeldeck.storage.json_utils import safe_json_dumps, safe_json_loads
from reeldeck.storage.models import Document

logger = get_logger(__name__)

# Logical document names
PREFERENCES = "PREFERENCES"
HIDDEN_SET = "HIDDEN_SET"
HOME_FILTERS = "HOME_FILTERS"
HAS_SEEN_HOME_FILTERS = "HAS_SEEN_HOME_FILTERS"
WATCHLIST = "WATCHLIST"
LIKED = "LIKED"

WRITE_BACKOFF = 0.05


class StorageError(Exception):
    """Raised when a document write keeps failing after retries."""

    def __init__(self, key: str, cause: Exception | None = None):
        super().__init__(f"Failed to persist document {key}: {cause}")
        self.key = key
        self.cause = cause


class DocumentsRepo:
    """Repository for reading and writing named documents."""

    def __init__(self, session: AsyncSession, max_attempts: int | None = None) -> None:
        self.session = session
        if max_attempts is None:
            from reeldeck.config import config
            max_attempts = config.storage_write_retries
        self.max_attempts = max(1, max_attempts)

    async def get_document(self, key: str, default: Any = None) -> Any:
        """Load and decode a document.

        Args:
            key: Logical document name
            default: Value returned when missing or unreadable

        Returns:
            Decoded JSON value or default
        """
        stmt = select(Document.value_json).where(Document.key == key)
        result = await self.session.execute(stmt)
        raw = result.scalar_one_or_none()
        if raw is None:
            return default
        return safe_json_loads(raw, default=default)

    async def put_document(self, key: str, value: Any) -> None:
        """Encode and upsert a document, retrying transient write failures.

        Args:
            key: Logical document name
            value: JSON-serializable value

        Raises:
            StorageError: If every attempt failed
        """
        value_json = safe_json_dumps(value)
        last_error: Exception | None = None

        for attempt in range(self.max_attempts):
            now = datetime.now(timezone.utc)
            insert_stmt = sqlite_insert(Document).values(
                key=key,
                value_json=value_json,
                updated_at=now,
            )
            upsert_stmt = insert_stmt.on_conflict_do_update(
                index_elements=["key"],
                set_={"value_json": value_json, "updated_at": now},
            )
            try:
                await self.session.execute(upsert_stmt)
                await self.session.commit()
                return
            except OperationalError as e:
                await self.session.rollback()
                last_error = e
                wait_time = WRITE_BACKOFF * (2 ** attempt)
                logger.warning(
                    f"Write of {key} failed: {e}, retry in {wait_time}s "
                    f"(attempt {attempt + 1}/{self.max_attempts})"
                )
                if attempt < self.max_attempts - 1:
                    await asyncio.sleep(wait_time)

        raise StorageError(key, last_error)

    async def delete_document(self, key: str) -> bool:
        """Delete a document.

        Returns:
            True if a document was removed
        """
        result = await self.session.execute(delete(Document).where(Document.key == key))
        await self.session.commit()
        return result.rowcount > 0

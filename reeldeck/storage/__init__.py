"""Storage module for the local document store."""

from reeldeck.storage.db import Base, close_engine, get_engine, get_session_factory, init_db
from reeldeck.storage.json_utils import safe_json_dumps, safe_json_loads
from reeldeck.storage.models import Document
from reeldeck.storage.repo_documents import (
    HAS_SEEN_HOME_FILTERS,
    HIDDEN_SET,
    HOME_FILTERS,
    LIKED,
    PREFERENCES,
    WATCHLIST,
    DocumentsRepo,
    StorageError,
)
from reeldeck.storage.repo_filters import FiltersRepo
from reeldeck.storage.repo_hidden import HiddenRepo
from reeldeck.storage.repo_lists import ListsRepo
from reeldeck.storage.repo_preferences import PreferencesRepo

__all__ = [
    # Database
    "Base",
    "get_engine",
    "get_session_factory",
    "init_db",
    "close_engine",
    # JSON utilities
    "safe_json_dumps",
    "safe_json_loads",
    # Models
    "Document",
    # Document names
    "PREFERENCES",
    "HIDDEN_SET",
    "HOME_FILTERS",
    "HAS_SEEN_HOME_FILTERS",
    "WATCHLIST",
    "LIKED",
    # Repositories
    "DocumentsRepo",
    "StorageError",
    "FiltersRepo",
    "HiddenRepo",
    "ListsRepo",
    "PreferencesRepo",
]

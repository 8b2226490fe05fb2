"""Tests for storage layer."""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from reeldeck.core.contracts import ContentKey, ContentType, DeckFilters, ListEntry, PreferenceProfile
from reeldeck.storage import (
    HIDDEN_SET,
    HOME_FILTERS,
    LIKED,
    PREFERENCES,
    WATCHLIST,
    DocumentsRepo,
    FiltersRepo,
    HiddenRepo,
    ListsRepo,
    PreferencesRepo,
    StorageError,
)
from reeldeck.storage.json_utils import safe_json_loads


@pytest.mark.anyio
async def test_document_upsert_and_get(session):
    """Documents round-trip and a second put replaces the first."""
    repo = DocumentsRepo(session)

    assert await repo.get_document("MISSING", default=[]) == []

    await repo.put_document("SOME_KEY", {"a": 1})
    await repo.put_document("SOME_KEY", {"a": 2})

    assert await repo.get_document("SOME_KEY") == {"a": 2}
    assert await repo.delete_document("SOME_KEY") is True
    assert await repo.get_document("SOME_KEY") is None


@pytest.mark.anyio
async def test_corrupt_document_degrades_to_default(session):
    """Unparseable stored JSON yields the default."""
    from reeldeck.storage.models import Document

    session.add(Document(key=PREFERENCES, value_json="{not json", updated_at=datetime.now(timezone.utc)))
    await session.commit()

    profile = await PreferencesRepo(session).load_profile()
    assert profile.genre_scores == {}


def test_safe_json_loads_default():
    """Empty or malformed input returns the default."""
    assert safe_json_loads(None, default=[]) == []
    assert safe_json_loads("", default={}) == {}
    assert safe_json_loads("[1, 2", default="x") == "x"
    assert safe_json_loads("[1, 2]") == [1, 2]


@pytest.mark.anyio
async def test_preferences_round_trip(session):
    """Integer genre keys survive JSON string keys."""
    repo = PreferencesRepo(session)
    stamp = datetime(2026, 7, 1, tzinfo=timezone.utc)

    await repo.save_profile(PreferenceProfile(genre_scores={28: 1.5, 10751: 0.25}, last_decay_at=stamp))
    profile = await repo.load_profile()

    assert profile.genre_scores == {28: 1.5, 10751: 0.25}
    assert profile.last_decay_at == stamp


def test_profile_from_dict_skips_bad_entries():
    """Non-numeric keys, non-finite values and negatives are ignored."""
    profile = PreferenceProfile.from_dict(
        {
            "genre_scores": {"28": 1.0, "abc": 2.0, "12": "x", "35": -1.0, "16": "inf", "27": "nan"},
            "last_decay_at": "2026-01-01T00:00:00",
        }
    )

    assert profile.genre_scores == {28: 1.0}
    assert profile.last_decay_at.tzinfo is not None


@pytest.mark.anyio
async def test_hidden_set_append_only(session):
    """Hiding is idempotent and persisted as key strings."""
    repo = HiddenRepo(session)
    key = ContentKey(ContentType.MOVIE, 550)

    assert await repo.add_hidden(key) is True
    assert await repo.add_hidden(key) is False
    assert await repo.add_hidden(ContentKey(ContentType.TV, 550)) is True

    assert await repo.list_hidden_keys() == {
        ContentKey(ContentType.MOVIE, 550),
        ContentKey(ContentType.TV, 550),
    }
    raw = await DocumentsRepo(session).get_document(HIDDEN_SET)
    assert raw == ["movie-550", "tv-550"]


@pytest.mark.anyio
async def test_hidden_set_skips_malformed(session):
    """Malformed stored keys are skipped."""
    await DocumentsRepo(session).put_document(HIDDEN_SET, ["movie-1", "garbage", "book-3", "tv-x"])

    assert await HiddenRepo(session).list_hidden_keys() == {ContentKey(ContentType.MOVIE, 1)}


def test_content_key_parse():
    """Key string form parses back."""
    assert ContentKey.parse("tv-1399") == ContentKey(ContentType.TV, 1399)
    assert str(ContentKey(ContentType.MOVIE, 550)) == "movie-550"
    with pytest.raises(ValueError):
        ContentKey.parse("550")


@pytest.mark.anyio
async def test_lists_add_dedup_remove_clear(session):
    """Lists are newest first, unique per key, and removable."""
    repo = ListsRepo(session)
    fight_club = ListEntry(550, ContentType.MOVIE, "Fight Club", "/fc.jpg")
    got = ListEntry(1399, ContentType.TV, "Game of Thrones")

    assert await repo.add(WATCHLIST, fight_club) is True
    assert await repo.add(WATCHLIST, got) is True
    assert await repo.add(WATCHLIST, fight_club) is False

    entries = await repo.list_entries(WATCHLIST)
    assert [e.title for e in entries] == ["Game of Thrones", "Fight Club"]
    assert await repo.list_entries(LIKED) == []

    assert await repo.remove(WATCHLIST, fight_club.key) is True
    assert await repo.remove(WATCHLIST, fight_club.key) is False

    await repo.clear(WATCHLIST)
    assert await repo.list_entries(WATCHLIST) == []


@pytest.mark.anyio
async def test_lists_reject_unknown_name(session):
    """Only the known lists exist."""
    with pytest.raises(ValueError):
        await ListsRepo(session).list_entries("FAVORITES")


@pytest.mark.anyio
async def test_filters_and_onboarding(session):
    """Saved filters round-trip and the onboarding flag sticks."""
    repo = FiltersRepo(session)

    assert await repo.load_filters() is None
    assert await repo.has_seen_filters() is False

    await repo.save_filters(DeckFilters(content_type="tv", genre_ids=(18,), provider_ids=(8, 337)))
    await repo.mark_seen_filters()

    assert await repo.load_filters() == DeckFilters(content_type="tv", genre_ids=(18,), provider_ids=(8, 337))
    assert await repo.has_seen_filters() is True


def test_filters_from_dict_defaults():
    """Unknown types fall back to movies and junk ids are dropped."""
    filters = DeckFilters.from_dict({"type": "book", "genres": [28, "x"], "providers": None})

    assert filters == DeckFilters(content_type="movie", genre_ids=(28,), provider_ids=())


@pytest.mark.anyio
async def test_misshapen_saved_filters_load_defaults(session):
    """Valid JSON of the wrong shape gives empty genre and provider filters."""
    await DocumentsRepo(session).put_document(HOME_FILTERS, {"type": "tv", "genres": 5, "providers": "8"})

    assert await FiltersRepo(session).load_filters() == DeckFilters(content_type="tv")


@pytest.mark.anyio
async def test_write_retries_then_succeeds(session):
    """A transient write failure is retried."""
    repo = DocumentsRepo(session, max_attempts=3)
    real_execute = session.execute
    calls = 0

    async def flaky_execute(*args, **kwargs):
        nonlocal calls
        calls += 1
        if calls == 1:
            raise OperationalError("INSERT", {}, Exception("database is locked"))
        return await real_execute(*args, **kwargs)

    with patch("reeldeck.storage.repo_documents.WRITE_BACKOFF", 0), \
            patch.object(session, "execute", side_effect=flaky_execute):
        await repo.put_document("RETRY_KEY", [1])

    assert calls == 2
    assert await repo.get_document("RETRY_KEY") == [1]


@pytest.mark.anyio
async def test_write_raises_after_retries(session):
    """Persistent write failures surface as StorageError."""
    repo = DocumentsRepo(session, max_attempts=2)

    async def failing_execute(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    with patch("reeldeck.storage.repo_documents.WRITE_BACKOFF", 0), \
            patch.object(session, "execute", side_effect=failing_execute):
        with pytest.raises(StorageError) as exc_info:
            await repo.put_document(PREFERENCES, {})

    assert exc_info.value.key == PREFERENCES

"""Tests for the store session orchestrator."""

import math

import pytest

from kb_store.errors import NotFoundError, StorageError, ValidationError
from kb_store.repository import StoreRepository
from kb_store.session import LAST_SELECTED_KEY, SessionState, StoreSession


FOX = [
    {"id": "a", "source": "doc1", "text": "red fox", "startIndex": 0},
    {"id": "b", "source": "doc1", "text": "blue sky", "startIndex": 10},
]
GARDEN = [
    {"id": "g1", "source": "garden.md", "text": "green grass and tall trees", "startIndex": 0},
    {"id": "g2", "source": "garden.md", "text": "a red rose", "startIndex": 27},
    {"id": "g3", "source": "notes.md", "text": "water the grass daily", "startIndex": 0},
]


@pytest.fixture
def repo(tmp_path):
    with StoreRepository(str(tmp_path / "store")) as repository:
        yield repository


@pytest.fixture
def session(repo):
    return StoreSession(repo)


def test_new_session_is_empty(session):
    """Test a fresh session has no active store."""
    assert session.state is SessionState.EMPTY
    assert session.active_id is None
    assert session.summary is None
    assert session.chunks == []
    assert session.search("fox") == []


def test_create_and_select(session, repo):
    """Test creating a store makes it active and searchable."""
    store_id = session.create_and_select("fox.json", FOX)

    assert session.state is SessionState.READY
    assert session.active_id == store_id
    assert session.file_name == "fox.json"
    assert session.summary.total_chunks == 2
    assert session.summary.unique_sources == 1
    assert [chunk.id for chunk in session.chunks] == ["a", "b"]
    assert repo.get_meta(LAST_SELECTED_KEY) == store_id

    results = session.search("fox")
    assert [result.chunk.id for result in results] == ["a"]
    assert results[0].score == pytest.approx(1 / math.sqrt(2))


def test_create_and_select_invalid_persists_nothing(session, repo):
    """Test invalid content never reaches the repository."""
    with pytest.raises(ValidationError):
        session.create_and_select("bad.json", [{"id": 1}])

    assert repo.list_metadata() == []
    assert session.state is SessionState.EMPTY


def test_create_and_select_invalid_keeps_active_store(session):
    """Test a rejected upload leaves the current selection alone."""
    store_id = session.create_and_select("fox.json", FOX)
    with pytest.raises(ValidationError):
        session.create_and_select("bad.json", "not a list")

    assert session.state is SessionState.READY
    assert session.active_id == store_id


def test_select_missing_store(session, repo):
    """Test selecting an unknown id fails and clears the hint."""
    session.create_and_select("fox.json", FOX)

    with pytest.raises(NotFoundError):
        session.select_store(999)

    assert session.state is SessionState.FAILED
    assert isinstance(session.error, NotFoundError)
    assert session.active_id is None
    assert session.search("fox") == []
    assert repo.get_meta(LAST_SELECTED_KEY) is None


def test_select_invalid_stored_content(session, repo):
    """Test stored content that fails validation is never exposed."""
    store_id = repo.create("odd.json", [{"id": "a", "source": "s", "text": "t", "startIndex": "0"}])

    with pytest.raises(ValidationError):
        session.select_store(store_id)

    assert session.state is SessionState.FAILED
    assert isinstance(session.error, ValidationError)
    assert session.chunks == []
    assert session.summary is None


def test_select_storage_failure(session, repo, monkeypatch):
    """Test read failures send the session to FAILED."""
    store_id = repo.create("fox.json", FOX)

    def failing_get(store_id):
        raise StorageError("timed out")

    monkeypatch.setattr(repo, "get", failing_get)
    with pytest.raises(StorageError):
        session.select_store(store_id)

    assert session.state is SessionState.FAILED
    assert session.search("fox") == []


def test_select_replaces_previous_store(session, repo):
    """Test switching stores rebuilds everything derived from them."""
    fox_id = repo.create("fox.json", FOX)
    garden_id = repo.create("garden.json", GARDEN)

    session.select_store(fox_id)
    assert [result.chunk.id for result in session.search("red")] == ["a"]

    session.select_store(garden_id)
    assert session.active_id == garden_id
    assert session.summary.total_chunks == 3
    assert [result.chunk.id for result in session.search("red")] == ["g2"]
    assert session.search("fox") == []


def test_deselect(session, repo):
    """Test deselecting drops all derived state."""
    session.create_and_select("fox.json", FOX)
    session.deselect()

    assert session.state is SessionState.EMPTY
    assert session.active_id is None
    assert session.summary is None
    assert session.search("fox") == []
    assert repo.get_meta(LAST_SELECTED_KEY) is None


def test_search_top_k(repo):
    """Test the session default and per-call result limits."""
    session = StoreSession(repo, top_k=1)
    session.create_and_select("garden.json", GARDEN)

    assert len(session.search("grass")) == 1
    assert len(session.search("grass", top_k=3)) == 2


def test_delete_active_selects_newest_remaining(session, repo):
    """Test deleting the active store falls back to the newest one."""
    older = repo.create("fox.json", FOX)
    newer = repo.create("garden.json", GARDEN)
    session.select_store(older)

    assert session.delete_active() == older
    assert repo.get(older) is None
    assert session.state is SessionState.READY
    assert session.active_id == newer

    assert session.delete_active() == newer
    assert session.state is SessionState.EMPTY
    assert repo.list_metadata() == []
    assert repo.get_meta(LAST_SELECTED_KEY) is None


def test_delete_active_without_selection(session, repo):
    """Test deleting with nothing selected does nothing."""
    repo.create("fox.json", FOX)

    assert session.delete_active() is None
    assert len(repo.list_metadata()) == 1


def test_delete_active_failure_keeps_selection(session, repo, monkeypatch):
    """Test a failed deletion leaves the active store selected."""
    store_id = session.create_and_select("fox.json", FOX)

    def failing_delete(store_id):
        raise StorageError("disk unavailable")

    monkeypatch.setattr(repo, "delete", failing_delete)
    with pytest.raises(StorageError):
        session.delete_active()

    assert session.state is SessionState.READY
    assert session.active_id == store_id
    assert session.search("fox")


def test_restore_prefers_last_selected(repo):
    """Test restore reselects the store used last."""
    older = repo.create("fox.json", FOX)
    repo.create("garden.json", GARDEN)
    StoreSession(repo).select_store(older)

    restored = StoreSession(repo)
    assert restored.restore() == older
    assert restored.active_id == older


def test_restore_falls_back_to_newest(repo):
    """Test restore picks the newest store when there is no usable hint."""
    older = repo.create("fox.json", FOX)
    newer = repo.create("garden.json", GARDEN)
    repo.set_meta(LAST_SELECTED_KEY, older + newer)

    session = StoreSession(repo)
    assert session.restore() == newer
    assert session.state is SessionState.READY


def test_restore_empty_repository(session):
    """Test restore on an empty repository stays empty."""
    assert session.restore() is None
    assert session.state is SessionState.EMPTY


def test_newer_selection_supersedes_loading_one(session, repo, monkeypatch):
    """Test a load that finishes after a newer selection is discarded."""
    fox_id = repo.create("fox.json", FOX)
    garden_id = repo.create("garden.json", GARDEN)
    original_get = repo.get
    observed = {}

    def get_with_interruption(store_id):
        if store_id == fox_id and not observed:
            observed["state"] = session.state
            observed["search"] = session.search("fox")
            session.select_store(garden_id)
        return original_get(store_id)

    monkeypatch.setattr(repo, "get", get_with_interruption)
    session.select_store(fox_id)

    assert observed["state"] is SessionState.LOADING
    assert observed["search"] == []
    assert session.state is SessionState.READY
    assert session.active_id == garden_id
    assert repo.get_meta(LAST_SELECTED_KEY) == garden_id


def test_list_metadata_passes_through(session, repo):
    """Test the session lists the repository's stores, newest first."""
    older = repo.create("fox.json", FOX)
    newer = session.create_and_select("garden.json", GARDEN)

    assert [meta.id for meta in session.list_metadata()] == [newer, older]


def test_delete_active_listing_failure_drops_deleted_store(session, repo, monkeypatch):
    """Test a failure after the deletion never leaves the deleted store active."""
    store_id = session.create_and_select("fox.json", FOX)

    def failing_list_metadata():
        raise StorageError("disk unavailable")

    monkeypatch.setattr(repo, "list_metadata", failing_list_metadata)
    with pytest.raises(StorageError):
        session.delete_active()

    assert repo.get(store_id) is None
    assert session.state is SessionState.FAILED
    assert isinstance(session.error, StorageError)
    assert session.active_id is None
    assert session.search("fox") == []
    assert repo.get_meta(LAST_SELECTED_KEY) is None

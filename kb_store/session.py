"""Select, load and search persisted vector stores."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional

from .errors import KBStoreError, NotFoundError, StorageError
from .index import DEFAULT_TOP_K, TextVectorIndex
from .repository import StoreRepository
from .schemas import Chunk, SearchResult, StoreMeta, SummaryData
from .validator import validate


logger = logging.getLogger(__name__)

LAST_SELECTED_KEY = "last_selected_store"


class SessionState(str, Enum):
    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class ActiveStore:
    """Everything derived from the selected store; replaced as a whole."""
    store_id: int
    file_name: str
    chunks: List[Chunk]
    summary: SummaryData
    index: TextVectorIndex


class StoreSession:
    """
    Single-client session over a StoreRepository.

    Selecting a store fetches its raw content, validates it and builds a
    TextVectorIndex; search() then runs against that index. A selection
    started later supersedes one still loading: the older result is dropped.
    """

    def __init__(
        self,
        repository: StoreRepository,
        top_k: int = DEFAULT_TOP_K,
        show_progress: bool = False,
    ):
        self.repository = repository
        self.top_k = top_k
        self.show_progress = show_progress
        self._lock = threading.RLock()
        self._generation = 0
        self._state = SessionState.EMPTY
        self._active: Optional[ActiveStore] = None
        self._error: Optional[KBStoreError] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def error(self) -> Optional[KBStoreError]:
        """The error that sent the session to FAILED, if any."""
        return self._error

    @property
    def active(self) -> Optional[ActiveStore]:
        return self._active

    @property
    def active_id(self) -> Optional[int]:
        active = self._active
        return active.store_id if active else None

    @property
    def file_name(self) -> Optional[str]:
        active = self._active
        return active.file_name if active else None

    @property
    def chunks(self) -> List[Chunk]:
        active = self._active
        return list(active.chunks) if active else []

    @property
    def summary(self) -> Optional[SummaryData]:
        active = self._active
        return active.summary if active else None

    def list_metadata(self) -> List[StoreMeta]:
        return self.repository.list_metadata()

    def _begin(self, state: SessionState) -> int:
        with self._lock:
            self._generation += 1
            self._state = state
            self._active = None
            self._error = None
            return self._generation

    def _clear_hint(self) -> None:
        try:
            self.repository.delete_meta(LAST_SELECTED_KEY)
        except StorageError as exc:
            logger.warning("Failed to clear last selected store: %s", exc)

    def select_store(self, store_id: int) -> None:
        """
        Load a persisted store and make it the active one.

        Raises:
            NotFoundError: If no store has this id
            ValidationError: If the stored content is malformed
            StorageError: If the store cannot be read
        """
        generation = self._begin(SessionState.LOADING)
        logger.info("Loading vector store %d", store_id)

        try:
            self.repository.set_meta(LAST_SELECTED_KEY, store_id)
            stored = self.repository.get(store_id)
            if stored is None:
                raise NotFoundError(store_id)
            chunks, summary = validate(stored.content)
            index = TextVectorIndex.build(chunks, show_progress=self.show_progress)
        except KBStoreError as exc:
            with self._lock:
                if generation != self._generation:
                    raise
                self._state = SessionState.FAILED
                self._error = exc
            logger.warning("Failed to load vector store %d: %s", store_id, exc)
            self._clear_hint()
            raise

        with self._lock:
            if generation != self._generation:
                logger.warning("Discarding superseded load of vector store %d", store_id)
                return
            self._active = ActiveStore(
                store_id=stored.id,
                file_name=stored.file_name,
                chunks=chunks,
                summary=summary,
                index=index,
            )
            self._state = SessionState.READY
        logger.info("Selected vector store %d (%s): chunks=%d", stored.id, stored.file_name, len(chunks))

    def deselect(self) -> None:
        """Drop the active store and everything derived from it."""
        self._begin(SessionState.EMPTY)
        self._clear_hint()

    def search(self, query: str, top_k: Optional[int] = None) -> List[SearchResult]:
        """Rank chunks of the active store; empty unless the session is READY."""
        with self._lock:
            state, active = self._state, self._active
        if state is not SessionState.READY or active is None:
            return []
        return active.index.score(query, top_k=self.top_k if top_k is None else top_k)

    def create_and_select(self, file_name: str, raw_content: Any) -> int:
        """
        Validate, persist and select a new store.

        Invalid content raises ValidationError before anything is written.
        """
        validate(raw_content)
        store_id = self.repository.create(file_name, raw_content)
        self.select_store(store_id)
        return store_id

    def delete_active(self) -> Optional[int]:
        """
        Delete the active store, then select the newest remaining one.

        Returns the deleted id, or None when no store is active. If the
        deletion fails the active store stays selected.
        """
        active = self._active
        if active is None:
            return None

        self.repository.delete(active.store_id)

        try:
            remaining = self.repository.list_metadata()
        except KBStoreError as exc:
            # the deleted store must not stay active
            self._begin(SessionState.FAILED)
            self._error = exc
            self._clear_hint()
            raise
        if remaining:
            self.select_store(remaining[0].id)
        else:
            self.deselect()
        return active.store_id

    def restore(self) -> Optional[int]:
        """
        Select the last selected store if it still exists, else the newest.

        Returns the selected id, or None when the repository is empty.
        """
        metas = self.repository.list_metadata()
        if not metas:
            return None

        hint = self.repository.get_meta(LAST_SELECTED_KEY)
        known_ids = {meta.id for meta in metas}
        if isinstance(hint, int) and not isinstance(hint, bool) and hint in known_ids:
            store_id = hint
        else:
            store_id = metas[0].id
        self.select_store(store_id)
        return store_id

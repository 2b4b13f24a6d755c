"""Persist named chunk collections on the local filesystem."""

from __future__ import annotations

import logging
import os
import re
import shutil
import tempfile
from typing import Any, List, Optional

from .errors import StorageError
from .schemas import StoredVectorStore, StoreManifest, StoreMeta
from .utils import now_ms, read_json, utc_timestamp, write_json, write_json_atomic


logger = logging.getLogger(__name__)

STORES_DIRNAME = "stores"
META_DIRNAME = "meta"
MANIFEST_FILENAME = "manifest.json"
CONTENT_FILENAME = "content.json"

_META_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class StoreRepository:
    """
    Directory-backed store of vector store records keyed by creation time.

    Layout:
        <root>/stores/<id>/manifest.json   id, fileName, createdAt
        <root>/stores/<id>/content.json    raw chunk data as saved
        <root>/meta/<key>.json             reserved metadata values

    Use as a context manager, or call open()/close() explicitly.
    """

    def __init__(self, root_dir: str):
        self.root_dir = os.path.abspath(root_dir)
        self.stores_dir = os.path.join(self.root_dir, STORES_DIRNAME)
        self.meta_dir = os.path.join(self.root_dir, META_DIRNAME)
        self._is_open = False

    def __enter__(self) -> "StoreRepository":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._is_open

    def open(self) -> None:
        """Create or verify the directory tree."""
        try:
            os.makedirs(self.stores_dir, exist_ok=True)
            os.makedirs(self.meta_dir, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Store directory unavailable: {self.root_dir}: {exc}") from exc
        if not os.access(self.root_dir, os.W_OK):
            raise StorageError(f"Store directory is not writable: {self.root_dir}")
        self._is_open = True
        logger.info("Opened store repository at %s", self.root_dir)

    def close(self) -> None:
        self._is_open = False

    def _require_open(self) -> None:
        if not self._is_open:
            raise StorageError("Store repository is not open.")

    def _store_dir(self, store_id: int) -> str:
        return os.path.join(self.stores_dir, str(int(store_id)))

    def _store_ids(self) -> List[int]:
        try:
            names = os.listdir(self.stores_dir)
        except OSError as exc:
            raise StorageError(f"Failed to list stores: {exc}") from exc
        return [int(name) for name in names if name.isdigit()]

    def _next_id(self) -> int:
        existing = self._store_ids()
        newest = max(existing) if existing else 0
        return max(now_ms(), newest + 1)

    def create(self, file_name: str, raw_content: Any) -> int:
        """
        Persist a new vector store and return its id.

        The record is written into a temporary directory first and renamed
        into place, so a partially written store is never listed.

        Raises:
            StorageError: If the content cannot be serialized or written
        """
        self._require_open()
        store_id = self._next_id()
        manifest = StoreManifest(id=store_id, file_name=file_name, created_at=utc_timestamp())

        tmp_dir = None
        try:
            tmp_dir = tempfile.mkdtemp(prefix=".tmp_store_", dir=self.stores_dir)
            write_json(os.path.join(tmp_dir, CONTENT_FILENAME), raw_content)
            write_json(os.path.join(tmp_dir, MANIFEST_FILENAME), manifest.model_dump(by_alias=True))
            os.rename(tmp_dir, self._store_dir(store_id))
            tmp_dir = None
        except (OSError, TypeError, ValueError) as exc:
            raise StorageError(f"Failed to save vector store '{file_name}': {exc}") from exc
        finally:
            if tmp_dir is not None:
                shutil.rmtree(tmp_dir, ignore_errors=True)

        logger.info("Created vector store %d (%s)", store_id, file_name)
        return store_id

    def _read_manifest(self, store_id: int) -> StoreManifest:
        path = os.path.join(self._store_dir(store_id), MANIFEST_FILENAME)
        return StoreManifest.model_validate(read_json(path))

    def list_metadata(self) -> List[StoreMeta]:
        """Return id and file name of every store, newest first."""
        self._require_open()
        metas: List[StoreMeta] = []
        for store_id in self._store_ids():
            try:
                manifest = self._read_manifest(store_id)
            except FileNotFoundError:
                # deleted while listing
                continue
            except (OSError, ValueError) as exc:
                logger.warning("Skipping unreadable manifest for store %d: %s", store_id, exc)
                continue
            metas.append(StoreMeta(id=manifest.id, file_name=manifest.file_name))
        metas.sort(key=lambda meta: meta.id, reverse=True)
        return metas

    def get(self, store_id: int) -> Optional[StoredVectorStore]:
        """Fetch one store with its content, or None if it does not exist."""
        self._require_open()
        store_dir = self._store_dir(store_id)
        if not os.path.isdir(store_dir):
            return None
        try:
            manifest = self._read_manifest(store_id)
            content = read_json(os.path.join(store_dir, CONTENT_FILENAME))
        except FileNotFoundError as exc:
            if not os.path.isdir(store_dir):
                return None
            raise StorageError(f"Vector store {store_id} is incomplete on disk.") from exc
        except (OSError, ValueError) as exc:
            raise StorageError(f"Failed to read vector store {store_id}: {exc}") from exc
        return StoredVectorStore(id=manifest.id, file_name=manifest.file_name, content=content)

    def delete(self, store_id: int) -> None:
        """Remove a store. Deleting an id that does not exist is a no-op."""
        self._require_open()
        store_dir = self._store_dir(store_id)
        if not os.path.isdir(store_dir):
            return
        # rename first so a half-deleted store never shows up in listings
        trash_dir = os.path.join(self.stores_dir, f".deleted_{int(store_id)}")
        try:
            os.rename(store_dir, trash_dir)
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StorageError(f"Failed to delete vector store {store_id}: {exc}") from exc
        shutil.rmtree(trash_dir, ignore_errors=True)
        logger.info("Deleted vector store %d", store_id)

    def _meta_path(self, key: str) -> str:
        if not _META_KEY_RE.match(key):
            raise ValueError(f"Invalid metadata key: {key!r}")
        return os.path.join(self.meta_dir, f"{key}.json")

    def get_meta(self, key: str) -> Any:
        """Read a reserved metadata value, or None if unset."""
        self._require_open()
        path = self._meta_path(key)
        try:
            return read_json(path)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            raise StorageError(f"Failed to read metadata '{key}': {exc}") from exc

    def set_meta(self, key: str, value: Any) -> None:
        self._require_open()
        path = self._meta_path(key)
        try:
            write_json_atomic(path, value)
        except (OSError, TypeError, ValueError) as exc:
            raise StorageError(f"Failed to write metadata '{key}': {exc}") from exc

    def delete_meta(self, key: str) -> None:
        self._require_open()
        path = self._meta_path(key)
        try:
            os.unlink(path)
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StorageError(f"Failed to delete metadata '{key}': {exc}") from exc

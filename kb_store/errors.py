"""Exception types raised by KB Store."""

from __future__ import annotations

from typing import Any, Optional


class KBStoreError(Exception):
    """Base class for all KB Store errors."""
    pass


class ValidationError(KBStoreError):
    """Raised when chunk data does not have the expected shape."""

    def __init__(
        self,
        message: str,
        index: Optional[int] = None,
        field: Optional[str] = None,
        value: Any = None,
    ):
        super().__init__(message)
        self.index = index
        self.field = field
        self.value = value


class StorageError(KBStoreError):
    """Raised when the store directory cannot be read or written."""
    pass


class NotFoundError(KBStoreError):
    """Raised when a selected store id does not exist."""

    def __init__(self, store_id: int):
        super().__init__(f"Vector store not found: {store_id}")
        self.store_id = store_id

"""KB Store - local chunk stores with term-frequency retrieval."""

from .config import Settings, load_settings
from .context import build_context_text, build_system_instruction, preview_chunks
from .errors import KBStoreError, NotFoundError, StorageError, ValidationError
from .index import TextVectorIndex, cosine_similarity, tokenize
from .repository import StoreRepository
from .schemas import (
    Chunk,
    SearchResult,
    SourceCount,
    StoredVectorStore,
    StoreMeta,
    SummaryData,
)
from .session import SessionState, StoreSession
from .validator import load_chunk_file, parse_chunk_json, summarize, validate

__version__ = "0.1.0"

__all__ = [
    "Settings",
    "load_settings",
    "build_context_text",
    "build_system_instruction",
    "preview_chunks",
    "KBStoreError",
    "NotFoundError",
    "StorageError",
    "ValidationError",
    "TextVectorIndex",
    "cosine_similarity",
    "tokenize",
    "StoreRepository",
    "Chunk",
    "SearchResult",
    "SourceCount",
    "StoredVectorStore",
    "StoreMeta",
    "SummaryData",
    "SessionState",
    "StoreSession",
    "load_chunk_file",
    "parse_chunk_json",
    "summarize",
    "validate",
]

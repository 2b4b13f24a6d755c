"""Data schemas for KB Store."""

from __future__ import annotations

from typing import Any, Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field, NonNegativeFloat, NonNegativeInt


class Chunk(BaseModel):
    """A single validated passage of source text."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    source: str
    text: str
    start_index: Union[NonNegativeInt, NonNegativeFloat] = Field(alias="startIndex")
    extra: Dict[str, Any] = Field(default_factory=dict)

    def to_raw(self) -> Dict[str, Any]:
        """Rebuild the record shape the chunk was validated from."""
        raw: Dict[str, Any] = {
            "id": self.id,
            "source": self.source,
            "text": self.text,
            "startIndex": self.start_index,
        }
        raw.update(self.extra)
        return raw


class SourceCount(BaseModel):
    """Number of chunks that came from one source."""
    model_config = ConfigDict(frozen=True)

    source: str
    count: int


class SummaryData(BaseModel):
    """Aggregate statistics over a chunk collection."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    total_chunks: int = Field(alias="totalChunks")
    unique_sources: int = Field(alias="uniqueSources")
    total_text_length: int = Field(alias="totalTextLength")
    top_sources: List[SourceCount] = Field(alias="topSources", default_factory=list)


class StoreMeta(BaseModel):
    """Lightweight listing entry for a persisted vector store."""
    model_config = ConfigDict(populate_by_name=True)

    id: int
    file_name: str = Field(alias="fileName")


class StoreManifest(StoreMeta):
    """Metadata written next to the content of a persisted vector store."""
    created_at: str = Field(alias="createdAt")


class StoredVectorStore(BaseModel):
    """A persisted vector store with its raw, unvalidated content."""
    model_config = ConfigDict(populate_by_name=True)

    id: int
    file_name: str = Field(alias="fileName")
    content: Any


class SearchResult(BaseModel):
    """A chunk matched by a query, with its cosine similarity."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    chunk_index: int = Field(alias="chunkIndex")
    chunk: Chunk
    score: float

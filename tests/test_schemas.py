"""Tests for KB Store schemas."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from kb_store.schemas import Chunk, SourceCount, StoreManifest, SummaryData


def test_chunk_creation_by_alias():
    """Test creating Chunk from the camelCase record shape."""
    chunk = Chunk(id="a", source="doc1", text="red fox", startIndex=4)

    assert chunk.id == "a"
    assert chunk.start_index == 4
    assert chunk.extra == {}


def test_chunk_to_raw_keeps_extra_fields():
    """Test extra fields come back unchanged."""
    chunk = Chunk(
        id="a",
        source="doc1",
        text="red fox",
        start_index=0,
        extra={"page": 3, "tags": ["x", "y"]},
    )

    assert chunk.to_raw() == {
        "id": "a",
        "source": "doc1",
        "text": "red fox",
        "startIndex": 0,
        "page": 3,
        "tags": ["x", "y"],
    }


def test_chunk_is_frozen():
    """Test chunks cannot be modified after creation."""
    chunk = Chunk(id="a", source="doc1", text="red fox", start_index=0)
    with pytest.raises(PydanticValidationError):
        chunk.text = "changed"


def test_chunk_rejects_negative_start_index():
    """Test start_index must be non-negative."""
    with pytest.raises(PydanticValidationError):
        Chunk(id="a", source="doc1", text="red fox", start_index=-1)


def test_summary_dump_uses_camel_case():
    """Test SummaryData serializes with camelCase keys."""
    summary = SummaryData(
        total_chunks=2,
        unique_sources=1,
        total_text_length=15,
        top_sources=[SourceCount(source="doc1", count=2)],
    )

    assert summary.model_dump(by_alias=True) == {
        "totalChunks": 2,
        "uniqueSources": 1,
        "totalTextLength": 15,
        "topSources": [{"source": "doc1", "count": 2}],
    }


def test_manifest_round_trip():
    """Test StoreManifest parses what it dumps."""
    manifest = StoreManifest(id=1700000000000, file_name="store.json", created_at="2024-01-01T12:00:00Z")
    data = manifest.model_dump(by_alias=True)

    assert data["fileName"] == "store.json"
    assert StoreManifest.model_validate(data) == manifest

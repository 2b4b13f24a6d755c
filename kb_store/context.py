"""Turn search results into context for an external completion service."""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from .schemas import Chunk, SearchResult
from .utils import truncate_text


CONTEXT_SEPARATOR = "\n\n---\n\n"
NO_CONTEXT_TEXT = "No relevant context found."

SYSTEM_INSTRUCTION_TEMPLATE = (
    "Based on the context provided below, answer the user's question in English. "
    "If the context doesn't contain the answer, say you cannot answer based on "
    "the provided information.\n\nContext:\n{context}"
)


def build_context_text(results: Sequence[SearchResult]) -> str:
    """Join the text of retrieved chunks, best match first."""
    if not results:
        return NO_CONTEXT_TEXT
    return CONTEXT_SEPARATOR.join(result.chunk.text for result in results)


def build_system_instruction(context_text: str) -> str:
    return SYSTEM_INSTRUCTION_TEMPLATE.format(context=context_text)


def preview_chunks(chunks: Sequence[Chunk], limit: int, width: int) -> List[Dict[str, Any]]:
    """
    First `limit` chunks with their text cut to `width` characters.

    Returns:
        List of chunk records (extra fields included) with truncated text
    """
    if limit <= 0:
        return []
    return [
        {**chunk.to_raw(), "text": truncate_text(chunk.text, width)}
        for chunk in chunks[:limit]
    ]

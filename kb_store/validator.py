"""Validate raw chunk data and summarize chunk collections."""

from __future__ import annotations

import json
import numbers
from typing import Any, Dict, List, Mapping, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .schemas import Chunk, SourceCount, SummaryData


REQUIRED_FIELDS = ("id", "source", "text", "startIndex")
TOP_SOURCES_LIMIT = 10


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    return type(value).__name__


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _check_string(item: Mapping[str, Any], field: str, index: int) -> str:
    value = item.get(field)
    if not isinstance(value, str):
        raise ValidationError(
            f"Invalid item field '{field}' at index {index}: "
            f"expected string, got {_type_name(value)}. Item: {item!r}",
            index=index,
            field=field,
            value=value,
        )
    return value


def _check_start_index(item: Mapping[str, Any], index: int) -> Union[int, float]:
    value = item.get("startIndex")
    if not _is_number(value):
        raise ValidationError(
            f"Invalid item field 'startIndex' at index {index}: "
            f"expected number, got {_type_name(value)}. Item: {item!r}",
            index=index,
            field="startIndex",
            value=value,
        )
    if isinstance(value, numbers.Integral):
        is_offset = value >= 0
    else:
        try:
            is_offset = value >= 0 and value == int(value)
        except (OverflowError, ValueError):
            # inf, nan
            is_offset = False
    if not is_offset:
        raise ValidationError(
            f"Invalid item field 'startIndex' at index {index}: "
            f"expected a non-negative integer offset, got {value!r}",
            index=index,
            field="startIndex",
            value=value,
        )
    return value


def _check_keys(item: Mapping[Any, Any], index: int) -> None:
    for key in item:
        if not isinstance(key, str):
            raise ValidationError(
                f"Invalid item at index {index}: field names must be strings, "
                f"got {_type_name(key)} {key!r}.",
                index=index,
                field=repr(key),
                value=item,
            )


def _to_chunk(item: Any, index: int) -> Chunk:
    if not isinstance(item, Mapping):
        raise ValidationError(
            f"Invalid item at index {index}: expected object, got {_type_name(item)}.",
            index=index,
            value=item,
        )

    _check_keys(item, index)
    chunk_id = _check_string(item, "id", index)
    source = _check_string(item, "source", index)
    text = _check_string(item, "text", index)
    start_index = _check_start_index(item, index)
    extra = {key: value for key, value in item.items() if key not in REQUIRED_FIELDS}

    try:
        return Chunk(
            id=chunk_id,
            source=source,
            text=text,
            start_index=start_index,
            extra=extra,
        )
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid item at index {index}: {exc}", index=index, value=item) from exc


def summarize(chunks: List[Chunk]) -> SummaryData:
    """
    Compute aggregate statistics in a single pass.

    Sources with equal counts keep the order in which they were first seen.
    """
    source_counts: Dict[str, int] = {}
    total_text_length = 0
    for chunk in chunks:
        source_counts[chunk.source] = source_counts.get(chunk.source, 0) + 1
        total_text_length += len(chunk.text)

    # sorted() is stable and dicts keep insertion order
    ranked = sorted(source_counts.items(), key=lambda pair: pair[1], reverse=True)
    top_sources = [
        SourceCount(source=source, count=count)
        for source, count in ranked[:TOP_SOURCES_LIMIT]
    ]

    return SummaryData(
        total_chunks=len(chunks),
        unique_sources=len(source_counts),
        total_text_length=total_text_length,
        top_sources=top_sources,
    )


def validate(raw: Any) -> Tuple[List[Chunk], SummaryData]:
    """
    Validate decoded chunk data.

    Args:
        raw: Decoded JSON value of unknown shape

    Returns:
        (chunks_in_input_order, summary)

    Raises:
        ValidationError: If the top level is not a list or any element is
            not a record with string id/source/text and numeric startIndex
    """
    if not isinstance(raw, (list, tuple)):
        raise ValidationError(
            "Invalid JSON format: top-level structure is not a list.",
            value=raw,
        )

    chunks = [_to_chunk(item, index) for index, item in enumerate(raw)]
    return chunks, summarize(chunks)


def parse_chunk_json(text: str) -> Any:
    """Decode JSON text, reporting syntax errors as ValidationError."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Invalid JSON: {exc}") from exc


def load_chunk_file(path: str) -> Any:
    """Read and decode a chunk file from disk."""
    try:
        with open(path, "r", encoding="utf-8") as handle:
            text = handle.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise ValidationError(f"Failed to read file content: {path}: {exc}") from exc
    return parse_chunk_json(text)

"""Utility functions for KB Store."""

from __future__ import annotations

import json
import os
import time
from datetime import datetime, timezone
from typing import Any


def now_ms() -> int:
    """Current wall-clock time in milliseconds."""
    return time.time_ns() // 1_000_000


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with a trailing Z."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def write_json(path: str, data: Any) -> None:
    """Write JSON to path and flush it to disk before returning."""
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(data, handle, ensure_ascii=False)
        handle.flush()
        os.fsync(handle.fileno())


def write_json_atomic(path: str, data: Any) -> None:
    """Write JSON next to path, then swap it into place."""
    tmp_path = f"{path}.tmp"
    try:
        write_json(tmp_path, data)
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)


def read_json(path: str) -> Any:
    """Read a UTF-8 JSON file."""
    with open(path, "r", encoding="utf-8") as handle:
        return json.load(handle)


def truncate_text(text: str, limit: int, suffix: str = "…") -> str:
    """Truncate text to limit characters, appending suffix when cut."""
    if len(text) <= limit:
        return text
    return text[:max(limit, 0)] + suffix

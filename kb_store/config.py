"""
Environment-driven settings for KB Store.

Every field is read from a KB_-prefixed environment variable, e.g.
KB_STORE_DIR, KB_TOP_K, KB_PREVIEW_LIMIT, KB_PREVIEW_WIDTH and
KB_SHOW_PROGRESS.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings for the store directory, search and previews."""

    model_config = SettingsConfigDict(
        env_prefix="KB_",
        case_sensitive=False,
        env_ignore_empty=True,
        extra="ignore",
    )

    store_dir: str = Field(default="./kb_store_data", description="Root directory of the store repository")
    top_k: int = Field(default=3, ge=1, description="Maximum number of search results")
    preview_limit: int = Field(default=3, ge=0, description="Number of chunks shown in previews")
    preview_width: int = Field(default=200, ge=1, description="Characters of chunk text shown in previews")
    show_progress: bool = Field(default=False, description="Show a progress bar while indexing")


def load_settings() -> Settings:
    """Read Settings from the environment; malformed values raise pydantic's ValidationError."""
    return Settings()

"""
Configuration settings for flashdrill.

Uses Pydantic Settings for environment variable management with .env file support.
All variables are prefixed with FLASHDRILL_ (e.g. FLASHDRILL_DATA_DIR).
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FLASHDRILL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Storage
    # ========================================
    data_dir: Path = Field(
        default=Path.home() / ".flashdrill",
        description="Directory holding the local state database",
    )
    db_filename: str = Field(
        default="state.db",
        description="SQLite file name inside data_dir",
    )

    # ========================================
    # Lesson Text
    # ========================================
    default_language: str = Field(
        default="en-GB",
        description="Language code used when a lesson header has no #lang# group",
    )

    # ========================================
    # Built-in Lessons
    # ========================================
    builtin_source: str = Field(
        default=str(PROJECT_ROOT / "data" / "builtin"),
        description="Base URL (http/https) or local directory with built-in lesson files",
    )
    builtin_manifest: str = Field(
        default="files.txt",
        description="Newline-delimited list of built-in lesson file names",
    )
    http_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for fetching built-in lessons over HTTP",
    )

    # ========================================
    # Scheduling
    # ========================================
    reinsert_min_gap: int = Field(
        default=3,
        ge=0,
        description="Minimum number of cards shown before a reviewed card returns",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Minimum level written to stderr",
    )

    @property
    def db_path(self) -> Path:
        """Full path of the SQLite state database."""
        return self.data_dir / self.db_filename


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

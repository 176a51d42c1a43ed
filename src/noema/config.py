"""Configuration management for Noema.

Loads from environment variables, .env files, and config/default.toml.
Structural config comes from TOML and env vars; the notes root chosen via
``noema set-root`` is persisted as JSON in the app data directory.

Default base directory: ~/.noema/
  config.json  — persisted app state (notes root)
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from noema.notes.chunker import DEFAULT_MAX_CHARS

logger = logging.getLogger(__name__)

NOEMA_HOME = Path.home() / ".noema"
CONFIG_FILENAME = "config.json"

OLLAMA_DEFAULT_URL = "http://localhost:11434"
DEFAULT_EMBED_MODEL = "nomic-embed-text"


class EmbeddingConfig(BaseSettings):
    """Embedding provider configuration."""

    provider: Literal["ollama", "openai"] = "ollama"
    base_url: str = ""  # Empty = provider default
    model: str = DEFAULT_EMBED_MODEL
    batch_size: int = Field(default=0, ge=0)  # 0 = single request for all texts
    timeout_seconds: float = 60.0


class ChunkingConfig(BaseSettings):
    """Note chunking configuration."""

    max_chars: int = Field(default=DEFAULT_MAX_CHARS, ge=0)


class WatchConfig(BaseSettings):
    """Watch mode configuration."""

    debounce_ms: int = Field(default=400, ge=0)


class SearchConfig(BaseSettings):
    """Search defaults."""

    top_k: int = Field(default=5, ge=0)


class Settings(BaseSettings):
    """Root configuration — aggregates all sub-configs."""

    model_config = SettingsConfigDict(
        env_prefix="NOEMA_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    notes_root: Path | None = None
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)

    # API keys come from env vars only
    openai_api_key: str = ""

    @field_validator("notes_root")
    @classmethod
    def expand_notes_root(cls, v: Path | None) -> Path | None:
        return v.expanduser() if v is not None else None

    @classmethod
    def from_toml(cls, path: Path | None = None) -> Settings:
        """Load settings from TOML file, with env var overrides."""
        config_path = path or Path("config/default.toml")
        if config_path.exists():
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
            return cls(**data)
        return cls()


def load_settings(config_path: Path | None = None) -> Settings:
    """Load and validate settings. Entry point for all structural config access."""
    return Settings.from_toml(config_path)


# ---------------------------------------------------------------------------
# Persisted app state
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Base error for persisted configuration."""


class NotesRootError(ConfigError):
    """Raised when a notes root cannot be resolved or is not a directory."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path}")


class PersistedConfig(BaseModel):
    """App state saved between runs."""

    notes_root: str | None = None


def app_data_dir(home: Path | None = None) -> Path:
    """Directory where Noema keeps its own state. Created if missing.

    User notes stay in the folder they choose; only app state lives here.
    """
    data_dir = home or NOEMA_HOME
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def load_config(home: Path | None = None) -> PersistedConfig:
    """Load persisted config. Returns defaults if the file is missing or invalid."""
    path = app_data_dir(home) / CONFIG_FILENAME
    if not path.exists():
        return PersistedConfig()
    try:
        with open(path, encoding="utf-8") as f:
            return PersistedConfig.model_validate(json.load(f))
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.warning("Ignoring unreadable config at %s: %s", path, e)
        return PersistedConfig()


def save_config(config: PersistedConfig, home: Path | None = None) -> Path:
    """Write persisted config. Returns the file path."""
    path = app_data_dir(home) / CONFIG_FILENAME
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config.model_dump(), f, indent=2)
    logger.debug("Saved config to %s", path)
    return path


def get_notes_root(home: Path | None = None) -> Path | None:
    """The persisted notes root, if one has been set."""
    root = load_config(home).notes_root
    return Path(root) if root else None


def set_notes_root(path: Path, home: Path | None = None) -> Path:
    """Resolve, validate and persist the notes root. Returns the resolved path."""
    try:
        resolved = path.expanduser().resolve(strict=True)
    except OSError:
        raise NotesRootError(path, "failed to resolve path") from None
    if not resolved.is_dir():
        raise NotesRootError(resolved, "not a directory")

    config = load_config(home)
    config.notes_root = str(resolved)
    save_config(config, home)
    logger.info("Notes root set to %s", resolved)
    return resolved

"""Data models for scanned notes and their chunks."""

from __future__ import annotations

from pathlib import Path  # noqa: TC003 — Pydantic needs Path at runtime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field


class Note(BaseModel):
    """A markdown note found under the notes root."""

    model_config = ConfigDict(frozen=True)

    path: Path
    raw: str
    body: str
    title: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)


class Chunk(BaseModel):
    """A bounded-length slice of a note body, ready for embedding."""

    model_config = ConfigDict(frozen=True)

    text: str
    note_path: Path
    index: int

    @computed_field  # type: ignore[prop-decorator]
    @property
    def chunk_id(self) -> str:
        """Unique identifier for this chunk."""
        return f"{self.note_path}::{self.index}"

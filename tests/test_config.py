"""Tests for settings loading and the persisted notes root."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from noema.config import (
    CONFIG_FILENAME,
    NotesRootError,
    PersistedConfig,
    Settings,
    app_data_dir,
    get_notes_root,
    load_config,
    load_settings,
    save_config,
    set_notes_root,
)

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def home(tmp_path: Path) -> Path:
    return tmp_path / "noema-home"


class TestSettings:
    def test_defaults(self, tmp_path: Path) -> None:
        settings = load_settings(tmp_path / "missing.toml")
        assert settings.embedding.provider == "ollama"
        assert settings.embedding.model == "nomic-embed-text"
        assert settings.chunking.max_chars == 512
        assert settings.watch.debounce_ms == 400
        assert settings.search.top_k == 5

    def test_from_toml(self, tmp_path: Path) -> None:
        toml_file = tmp_path / "noema.toml"
        toml_file.write_text(
            "[embedding]\n"
            'model = "all-minilm"\n'
            "batch_size = 32\n\n"
            "[chunking]\n"
            "max_chars = 256\n"
        )
        settings = load_settings(toml_file)
        assert settings.embedding.model == "all-minilm"
        assert settings.embedding.batch_size == 32
        assert settings.chunking.max_chars == 256

    def test_env_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NOEMA_NOTES_ROOT", str(tmp_path))
        monkeypatch.setenv("NOEMA_WATCH__DEBOUNCE_MS", "50")
        settings = Settings()
        assert settings.notes_root == tmp_path
        assert settings.watch.debounce_ms == 50

    def test_negative_budget_rejected(self) -> None:
        with pytest.raises(ValueError):
            Settings(chunking={"max_chars": -1})  # type: ignore[arg-type]


class TestPersistedConfig:
    def test_app_data_dir_created(self, home: Path) -> None:
        assert app_data_dir(home) == home
        assert home.is_dir()

    def test_missing_file_gives_defaults(self, home: Path) -> None:
        assert load_config(home) == PersistedConfig()
        assert get_notes_root(home) is None

    def test_invalid_file_gives_defaults(self, home: Path) -> None:
        home.mkdir(parents=True)
        (home / CONFIG_FILENAME).write_text("{not json")
        assert load_config(home) == PersistedConfig()

    def test_save_and_load(self, home: Path) -> None:
        path = save_config(PersistedConfig(notes_root="/tmp/notes"), home)
        assert json.loads(path.read_text()) == {"notes_root": "/tmp/notes"}
        assert load_config(home).notes_root == "/tmp/notes"

    def test_set_notes_root(self, home: Path, tmp_path: Path) -> None:
        notes = tmp_path / "my-notes"
        notes.mkdir()
        resolved = set_notes_root(notes, home)
        assert resolved == notes.resolve()
        assert get_notes_root(home) == notes.resolve()

    def test_set_notes_root_missing(self, home: Path, tmp_path: Path) -> None:
        with pytest.raises(NotesRootError, match="failed to resolve path"):
            set_notes_root(tmp_path / "nope", home)
        assert get_notes_root(home) is None

    def test_set_notes_root_file(self, home: Path, tmp_path: Path) -> None:
        f = tmp_path / "file.md"
        f.write_text("x")
        with pytest.raises(NotesRootError, match="not a directory"):
            set_notes_root(f, home)

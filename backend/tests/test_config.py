"""Tests for settings loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from lore_rag.core.config import Settings


def test_defaults() -> None:
    settings = Settings()
    assert settings.top_k == 6
    assert settings.min_score == 0.5
    assert settings.chunk_tokens == 240
    assert settings.chunk_overlap_tokens == 40
    assert settings.cache_max_entries == 1000
    assert settings.cache_ttl_seconds == 300.0
    assert settings.job_max_retries == 3
    assert settings.index_mode == "queue"
    assert settings.worker_enabled is True


def test_yaml_sections_map_to_fields(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("LRAG_DB_PATH")
    config = tmp_path / "config.yaml"
    config.write_text(
        "storage:\n"
        f"  db_path: {tmp_path / 'custom.db'}\n"
        "retrieval:\n"
        "  top_k: 3\n"
        "  min_score: 0.2\n"
        "chunking:\n"
        "  tokens: 120\n"
        "jobs:\n"
        "  max_retries: 5\n",
        encoding="utf-8",
    )
    settings = Settings.from_yaml(config)
    assert settings.db_path == tmp_path / "custom.db"
    assert settings.top_k == 3
    assert settings.min_score == 0.2
    assert settings.chunk_tokens == 120
    assert settings.job_max_retries == 5


def test_env_overrides_yaml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config = tmp_path / "config.yaml"
    config.write_text("retrieval:\n  top_k: 3\n", encoding="utf-8")
    monkeypatch.setenv("LRAG_TOP_K", "9")
    monkeypatch.setenv("LRAG_INDEX_MODE", "direct")
    settings = Settings.from_yaml(config)
    assert settings.top_k == 9
    assert settings.index_mode == "direct"
    assert settings.worker_enabled is False


def test_missing_config_file_uses_defaults(tmp_path: Path) -> None:
    settings = Settings.from_yaml(tmp_path / "absent.yaml")
    assert settings.db_path == tmp_path / "rag.db"
    assert settings.top_k == 6


def test_invalid_tokenizer_rejected() -> None:
    assert Settings(tokenizer="tiktoken:cl100k_base").tokenizer == "tiktoken:cl100k_base"
    with pytest.raises(ValidationError):
        Settings(tokenizer="whitespace")

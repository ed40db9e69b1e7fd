"""Application configuration handling."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from pydantic import BaseModel, Field, field_validator

ENV_PREFIX = "LRAG_"
DEFAULT_CONFIG_PATH = Path("~/.config/lore-rag/config.yaml")

_YAML_KEY_MAP: Mapping[tuple[str, ...], str] = {
    ("storage", "db_path"): "db_path",
    ("embeddings", "backend"): "embedding_backend",
    ("embeddings", "model"): "embedding_model",
    ("embeddings", "dim"): "embedding_dim",
    ("chunking", "tokenizer"): "tokenizer",
    ("chunking", "tokens"): "chunk_tokens",
    ("chunking", "overlap_tokens"): "chunk_overlap_tokens",
    ("cache", "max_entries"): "cache_max_entries",
    ("cache", "ttl_seconds"): "cache_ttl_seconds",
    ("cache", "sweep_interval"): "cache_sweep_interval",
    ("retrieval", "top_k"): "top_k",
    ("retrieval", "min_score"): "min_score",
    ("jobs", "max_retries"): "job_max_retries",
    ("jobs", "poll_interval"): "job_poll_interval",
    ("jobs", "retention_days"): "job_retention_days",
    ("jobs", "cleanup_interval"): "job_cleanup_interval",
    ("jobs", "worker_enabled"): "worker_enabled",
    ("indexing", "mode"): "index_mode",
}


class Settings(BaseModel):
    """Runtime configuration loaded from YAML file and environment variables."""

    db_path: Path = Field(default=Path.home() / ".lore-rag" / "rag.db")
    embedding_backend: Literal["hashed", "sentence-transformers"] = "hashed"
    embedding_model: str = "BAAI/bge-small-en-v1.5"
    embedding_dim: int = Field(default=384, gt=0)
    tokenizer: str = "regex"
    chunk_tokens: int = Field(default=240, gt=0)
    chunk_overlap_tokens: int = Field(default=40, ge=0)
    cache_max_entries: int = Field(default=1000, gt=0)
    cache_ttl_seconds: float = Field(default=300.0, gt=0)
    cache_sweep_interval: float = Field(default=60.0, gt=0)
    top_k: int = Field(default=6, gt=0)
    min_score: float = Field(default=0.5, ge=-1.0, le=1.0)
    job_max_retries: int = Field(default=3, gt=0)
    job_poll_interval: float = Field(default=1.0, gt=0)
    job_retention_days: float = Field(default=7.0, gt=0)
    job_cleanup_interval: float = Field(default=3600.0, gt=0)
    worker_enabled: bool = True
    index_mode: Literal["queue", "direct"] = "queue"

    model_config = {
        "validate_assignment": True,
        "extra": "ignore",
    }

    @field_validator("db_path", mode="before")
    @classmethod
    def _expand_db_path(cls, value: Any) -> Path:
        if isinstance(value, Path):
            return value.expanduser()
        if isinstance(value, str):
            return Path(value).expanduser()
        raise TypeError("db_path must be a path or string")

    @field_validator("tokenizer")
    @classmethod
    def _check_tokenizer(cls, value: str) -> str:
        if value == "regex" or value.startswith("tiktoken:"):
            return value
        raise ValueError("tokenizer must be 'regex' or 'tiktoken:<encoding>'")

    @classmethod
    def from_yaml(cls, path: Path | None = None) -> "Settings":
        """Load YAML config and overlay env vars; fall back to defaults."""
        config_path = cls._resolve_config_path(path)
        data: dict[str, Any] = {}
        if config_path and config_path.exists():
            with config_path.open("r", encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
            data.update(_flatten_yaml(raw))
        data.update(_load_env_overrides())
        return cls(**data)

    @staticmethod
    def _resolve_config_path(path: Path | None) -> Path | None:
        if path is not None:
            return path.expanduser()
        env_path = os.environ.get(f"{ENV_PREFIX}CONFIG")
        if env_path:
            return Path(env_path).expanduser()
        resolved_default = DEFAULT_CONFIG_PATH.expanduser()
        return resolved_default if resolved_default.exists() else None


def _flatten_yaml(raw: Mapping[str, Any], prefix: tuple[str, ...] = ()) -> dict[str, Any]:
    """Flatten nested YAML configuration to Settings field names."""
    flat: dict[str, Any] = {}
    for key, value in raw.items():
        next_prefix = prefix + (key,)
        if isinstance(value, Mapping):
            flat.update(_flatten_yaml(value, prefix=next_prefix))
        else:
            mapped_key = _YAML_KEY_MAP.get(next_prefix)
            if mapped_key:
                flat[mapped_key] = value
            elif key in Settings.model_fields:
                flat[key] = value
    return flat


def _load_env_overrides() -> dict[str, Any]:
    """Map environment variables with LRAG_ prefix into Settings fields."""
    overrides: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        field_name = key[len(ENV_PREFIX) :].lower()
        if field_name in Settings.model_fields:
            overrides[field_name] = value
    return overrides


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings accessor for dependency injection."""
    return Settings.from_yaml()


__all__ = ["Settings", "get_settings"]

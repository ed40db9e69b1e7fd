"""Internal dataclasses representing persisted entities."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class SourceType(str, Enum):
    LORE = "lore"
    CHARACTER = "character"
    MESSAGE = "message"
    MEMORY = "memory"


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(slots=True)
class ChunkRecord:
    """Chunk ready to be written; the store derives ``content_hash``."""

    owner_id: str
    source_type: SourceType
    text: str
    embedding: list[float]
    token_count: int
    source_id: int | None = None
    conversation_id: int | None = None
    character_ref: int | None = None
    title: str | None = None


@dataclass(slots=True)
class StoredChunk:
    id: int
    owner_id: str
    source_type: SourceType
    source_id: int | None
    conversation_id: int | None
    character_ref: int | None
    title: str | None
    text: str
    embedding: list[float]
    token_count: int | None
    content_hash: str
    created_at: int
    updated_at: int


@dataclass(slots=True)
class Job:
    id: int
    owner_id: str
    job_type: str
    payload: dict[str, Any]
    status: JobStatus
    retry_count: int
    max_retries: int
    error: str | None
    created_at: int
    updated_at: int
    processed_at: int | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "job_type": self.job_type,
            "payload": self.payload,
            "status": self.status.value,
            "retry_count": self.retry_count,
            "max_retries": self.max_retries,
            "error": self.error,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "processed_at": self.processed_at,
        }


@dataclass(slots=True)
class LoreRow:
    id: int
    title: str
    content: str


@dataclass(slots=True)
class CharacterRow:
    id: int
    name: str
    bio: str | None


__all__ = [
    "SourceType",
    "JobStatus",
    "ChunkRecord",
    "StoredChunk",
    "Job",
    "LoreRow",
    "CharacterRow",
]

"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from lore_rag.models.entities import JobStatus, SourceType


class RetrieveRequest(BaseModel):
    owner_id: str
    query: str
    conversation_id: int | None = None
    character_ref: int | None = None
    lore_scope: list[int] | None = None
    top_k: int | None = Field(default=None, ge=1, le=50)
    sync: bool = Field(default=False, description="Drain the owner's pending jobs before retrieving")


class RetrievedChunkResponse(BaseModel):
    title: str | None
    content: str
    score: float


class RetrieveResponse(BaseModel):
    lore: list[RetrievedChunkResponse]
    characters: list[RetrievedChunkResponse]
    memories: list[RetrievedChunkResponse]
    context: str
    drained_jobs: int = 0


class ReindexRequest(BaseModel):
    owner_id: str


class ReindexResponse(BaseModel):
    ok: bool
    stats: dict[str, int]


class IndexLoreRequest(BaseModel):
    owner_id: str
    lore_id: int
    title: str
    content: str
    replace: bool = Field(default=False, description="Drop the source's existing chunks before indexing")


class IndexCharacterRequest(BaseModel):
    owner_id: str
    character_id: int
    name: str
    bio: str | None = None
    replace: bool = Field(default=False, description="Drop the source's existing chunks before indexing")


class IndexMessageRequest(BaseModel):
    owner_id: str
    conversation_id: int
    role: Literal["user", "assistant"]
    content: str
    character_ref: int | None = None


class DeleteChunksRequest(BaseModel):
    owner_id: str
    source_type: SourceType
    source_id: int | None = None


class EnqueueResponse(BaseModel):
    job_id: int


class JobResponse(BaseModel):
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


class CleanupRequest(BaseModel):
    retention_days: float | None = Field(default=None, gt=0)


class CleanupResponse(BaseModel):
    deleted: int


class CacheStatsResponse(BaseModel):
    size: int
    max_size: int
    ttl_seconds: float
    hits: int
    misses: int
    evictions: int
    expirations: int


__all__ = [
    "RetrieveRequest",
    "RetrieveResponse",
    "RetrievedChunkResponse",
    "ReindexRequest",
    "ReindexResponse",
    "IndexLoreRequest",
    "IndexCharacterRequest",
    "IndexMessageRequest",
    "DeleteChunksRequest",
    "EnqueueResponse",
    "JobResponse",
    "CleanupRequest",
    "CleanupResponse",
    "CacheStatsResponse",
]

"""Administrative routes: reindexing, job inspection and cache control."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from lore_rag.api.dependencies import get_embedding_cache, get_indexer, get_job_queue
from lore_rag.core.errors import JobNotFoundError
from lore_rag.core.logging import get_logger
from lore_rag.ingest.embedding_cache import EmbeddingCache
from lore_rag.ingest.indexer import Indexer
from lore_rag.jobs.queue import JobQueue
from lore_rag.models.dto import (
    CacheStatsResponse,
    CleanupRequest,
    CleanupResponse,
    JobResponse,
    ReindexRequest,
    ReindexResponse,
)
from lore_rag.models.entities import JobStatus

router = APIRouter()
logger = get_logger(__name__)


@router.post("/reindex", response_model=ReindexResponse, summary="Rebuild all lore and character chunks for a user")
def reindex(request: ReindexRequest, indexer: Indexer = Depends(get_indexer)) -> ReindexResponse:
    try:
        stats = indexer.reindex_all_for_user(request.owner_id)
    except Exception as exc:
        logger.exception("Reindex failed", extra={"ctx_owner_id": request.owner_id})
        raise HTTPException(status_code=500, detail={"error": "Reindex failed", "details": str(exc)}) from exc
    return ReindexResponse(ok=True, stats=stats.to_dict())


@router.get("/jobs", response_model=list[JobResponse], summary="List indexing jobs")
def list_jobs(
    status: JobStatus | None = None,
    owner_id: str | None = None,
    limit: int = 100,
    queue: JobQueue = Depends(get_job_queue),
) -> list[JobResponse]:
    return [JobResponse(**job.to_dict()) for job in queue.list_jobs(status=status, owner_id=owner_id, limit=limit)]


@router.get("/jobs/counts", response_model=dict[str, int], summary="Job counts by status")
def job_counts(owner_id: str | None = None, queue: JobQueue = Depends(get_job_queue)) -> dict[str, int]:
    return queue.counts(owner_id)


@router.get("/jobs/{job_id}", response_model=JobResponse, summary="Inspect a single job")
def get_job(job_id: int, queue: JobQueue = Depends(get_job_queue)) -> JobResponse:
    try:
        job = queue.get_job(job_id)
    except JobNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return JobResponse(**job.to_dict())


@router.post("/jobs/cleanup", response_model=CleanupResponse, summary="Purge old completed and failed jobs")
def cleanup_jobs(request: CleanupRequest, queue: JobQueue = Depends(get_job_queue)) -> CleanupResponse:
    return CleanupResponse(deleted=queue.cleanup(request.retention_days))


@router.get("/cache", response_model=CacheStatsResponse, summary="Embedding cache statistics")
def cache_stats(cache: EmbeddingCache = Depends(get_embedding_cache)) -> CacheStatsResponse:
    return CacheStatsResponse(**cache.stats())


@router.delete("/cache", response_model=CacheStatsResponse, summary="Clear the embedding cache")
def clear_cache(cache: EmbeddingCache = Depends(get_embedding_cache)) -> CacheStatsResponse:
    cache.clear()
    return CacheStatsResponse(**cache.stats())

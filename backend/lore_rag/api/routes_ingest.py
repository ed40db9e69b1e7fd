"""Indexing API routes; each call enqueues a job."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from lore_rag.api.dependencies import get_job_queue
from lore_rag.jobs.queue import JobQueue
from lore_rag.models.dto import (
    DeleteChunksRequest,
    EnqueueResponse,
    IndexCharacterRequest,
    IndexLoreRequest,
    IndexMessageRequest,
)
from lore_rag.models.jobs import DeleteChunksJob, IndexCharacterJob, IndexLoreJob, IndexMessageJob

router = APIRouter()


@router.post("/index/lore", response_model=EnqueueResponse, status_code=status.HTTP_202_ACCEPTED)
def index_lore(request: IndexLoreRequest, queue: JobQueue = Depends(get_job_queue)) -> EnqueueResponse:
    job = IndexLoreJob(
        lore_id=request.lore_id,
        title=request.title,
        content=request.content,
        replace=request.replace,
    )
    return EnqueueResponse(job_id=queue.enqueue(request.owner_id, job.job_type, job))


@router.post("/index/character", response_model=EnqueueResponse, status_code=status.HTTP_202_ACCEPTED)
def index_character(request: IndexCharacterRequest, queue: JobQueue = Depends(get_job_queue)) -> EnqueueResponse:
    job = IndexCharacterJob(
        character_id=request.character_id,
        name=request.name,
        bio=request.bio,
        replace=request.replace,
    )
    return EnqueueResponse(job_id=queue.enqueue(request.owner_id, job.job_type, job))


@router.post("/index/message", response_model=EnqueueResponse, status_code=status.HTTP_202_ACCEPTED)
def index_message(request: IndexMessageRequest, queue: JobQueue = Depends(get_job_queue)) -> EnqueueResponse:
    job = IndexMessageJob(
        conversation_id=request.conversation_id,
        role=request.role,
        content=request.content,
        character_ref=request.character_ref,
    )
    return EnqueueResponse(job_id=queue.enqueue(request.owner_id, job.job_type, job))


@router.delete("/chunks", response_model=EnqueueResponse, status_code=status.HTTP_202_ACCEPTED)
def delete_chunks(request: DeleteChunksRequest, queue: JobQueue = Depends(get_job_queue)) -> EnqueueResponse:
    job = DeleteChunksJob(source_type=request.source_type, source_id=request.source_id)
    return EnqueueResponse(job_id=queue.enqueue(request.owner_id, job.job_type, job))

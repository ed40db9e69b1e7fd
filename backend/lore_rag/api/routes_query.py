"""Retrieval API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from lore_rag.api.dependencies import get_job_queue, get_retriever
from lore_rag.jobs.queue import JobQueue
from lore_rag.models.dto import RetrieveRequest, RetrieveResponse
from lore_rag.retrieval import Retriever, compose_context

router = APIRouter()


@router.post("/retrieve", response_model=RetrieveResponse, summary="Retrieve ranked context for a query")
def retrieve(
    request: RetrieveRequest,
    retriever: Retriever = Depends(get_retriever),
    queue: JobQueue = Depends(get_job_queue),
) -> RetrieveResponse:
    drained = queue.process_pending_for_user(request.owner_id) if request.sync else 0
    result = retriever.retrieve(
        request.owner_id,
        request.query,
        conversation_id=request.conversation_id,
        character_ref=request.character_ref,
        lore_scope=request.lore_scope,
        top_k=request.top_k,
    )
    return RetrieveResponse(**result.to_dict(), context=compose_context(result), drained_jobs=drained)

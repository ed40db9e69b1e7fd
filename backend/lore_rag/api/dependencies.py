"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from lore_rag.core.config import Settings, get_settings
from lore_rag.ingest.embedding_cache import EmbeddingCache
from lore_rag.ingest.indexer import Indexer
from lore_rag.jobs.queue import JobQueue
from lore_rag.retrieval import Retriever
from lore_rag.runtime import Runtime

_RUNTIME: Runtime | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_runtime() -> Runtime:
    global _RUNTIME
    if _RUNTIME is None:
        _RUNTIME = Runtime.build(get_app_settings())
    return _RUNTIME


def shutdown_runtime() -> None:
    global _RUNTIME
    if _RUNTIME is not None:
        _RUNTIME.stop()
        _RUNTIME = None


def get_indexer() -> Indexer:
    return get_runtime().indexer


def get_retriever() -> Retriever:
    return get_runtime().retriever


def get_job_queue() -> JobQueue:
    return get_runtime().queue


def get_embedding_cache() -> EmbeddingCache:
    return get_runtime().cache


__all__ = [
    "get_app_settings",
    "get_runtime",
    "shutdown_runtime",
    "get_indexer",
    "get_retriever",
    "get_job_queue",
    "get_embedding_cache",
]

"""Construction and lifecycle of the indexing/retrieval components."""

from __future__ import annotations

from dataclasses import dataclass

from lore_rag.core.config import Settings
from lore_rag.core.logging import get_logger
from lore_rag.db.catalog import ContentCatalog, SQLiteContentCatalog
from lore_rag.db.chunk_store import ChunkStore
from lore_rag.db.sqlite import SQLiteDatabase
from lore_rag.ingest.embedding_cache import EmbeddingCache
from lore_rag.ingest.embeddings import EmbedFn, build_embedding_model
from lore_rag.ingest.hooks import IndexingHooks
from lore_rag.ingest.indexer import Indexer
from lore_rag.ingest.tokenizer import build_tokenizer
from lore_rag.jobs.queue import JobQueue
from lore_rag.jobs.worker import JobWorker
from lore_rag.retrieval.retriever import Retriever

logger = get_logger(__name__)


@dataclass
class Runtime:
    settings: Settings
    db: SQLiteDatabase
    cache: EmbeddingCache
    store: ChunkStore
    indexer: Indexer
    retriever: Retriever
    queue: JobQueue
    worker: JobWorker
    hooks: IndexingHooks

    @classmethod
    def build(
        cls,
        settings: Settings,
        embed_fn: EmbedFn | None = None,
        catalog: ContentCatalog | None = None,
    ) -> "Runtime":
        """Wire every component from ``settings``; nothing is started yet."""
        db = SQLiteDatabase(settings.db_path)
        db.ensure_schema()
        if embed_fn is None:
            embed_fn = build_embedding_model(settings).embed
        cache = EmbeddingCache(
            embed_fn,
            max_entries=settings.cache_max_entries,
            ttl_seconds=settings.cache_ttl_seconds,
            sweep_interval=settings.cache_sweep_interval,
        )
        store = ChunkStore(db)
        indexer = Indexer(
            store,
            cache.embed,
            catalog=catalog or SQLiteContentCatalog(db),
            chunk_tokens=settings.chunk_tokens,
            overlap_tokens=settings.chunk_overlap_tokens,
            tokenizer=build_tokenizer(settings.tokenizer),
        )
        retriever = Retriever(store, cache.embed, top_k=settings.top_k, min_score=settings.min_score)
        queue = JobQueue(
            db,
            indexer,
            max_retries=settings.job_max_retries,
            retention_days=settings.job_retention_days,
        )
        worker = JobWorker(
            queue,
            poll_interval=settings.job_poll_interval,
            cleanup_interval=settings.job_cleanup_interval,
        )
        hooks = IndexingHooks(queue, indexer, mode=settings.index_mode)
        return cls(
            settings=settings,
            db=db,
            cache=cache,
            store=store,
            indexer=indexer,
            retriever=retriever,
            queue=queue,
            worker=worker,
            hooks=hooks,
        )

    def start(self) -> None:
        self.cache.start()
        if self.settings.worker_enabled:
            self.worker.start()
        logger.info("Runtime started", extra={"ctx_db_path": str(self.db.db_path)})

    def stop(self) -> None:
        self.worker.stop()
        self.cache.stop()
        self.db.close()
        logger.info("Runtime stopped")


__all__ = ["Runtime"]

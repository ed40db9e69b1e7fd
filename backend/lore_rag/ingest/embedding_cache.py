"""LRU + TTL cache in front of the embedding model."""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable

from lore_rag.core.metrics import CACHE_EVENTS
from lore_rag.ingest.embeddings import EmbedFn
from lore_rag.utils.text import cache_key

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Entry:
    vector: list[float]
    inserted_at: float


class EmbeddingCache:
    """Memoize ``embed_fn`` by trimmed, lower-cased text.

    Entries older than ``ttl_seconds`` are recomputed on access and dropped by
    the background sweep started with ``start()``. The cache is never a source
    of truth: a cold cache gives the same vectors, just slower.
    """

    def __init__(
        self,
        embed_fn: EmbedFn,
        max_entries: int = 1000,
        ttl_seconds: float = 300.0,
        sweep_interval: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self._embed_fn = embed_fn
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self.hits = 0
        self.misses = 0
        self.evictions = 0
        self.expirations = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, text: object) -> bool:
        return isinstance(text, str) and cache_key(text) in self._entries

    def embed(self, text: str) -> list[float]:
        key = cache_key(text)
        cached = self.get(key)
        if cached is not None:
            return cached
        vector = self._embed_fn(text)
        self.put(key, vector)
        return vector

    __call__ = embed

    def get(self, key: str) -> list[float] | None:
        """Return a fresh vector for an already-normalized key, or None."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                self._entries.move_to_end(key)
                if self._clock() - entry.inserted_at < self.ttl_seconds:
                    self.hits += 1
                    CACHE_EVENTS.labels(event="hit").inc()
                    return list(entry.vector)
            self.misses += 1
        CACHE_EVENTS.labels(event="miss").inc()
        return None

    def put(self, key: str, vector: list[float]) -> None:
        evicted = 0
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            self._entries[key] = _Entry(vector=list(vector), inserted_at=self._clock())
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
                evicted += 1
            self.evictions += evicted
        if evicted:
            CACHE_EVENTS.labels(event="eviction").inc(evicted)

    def sweep(self) -> int:
        """Drop every entry older than the TTL; return how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if now - entry.inserted_at >= self.ttl_seconds]
            for key in expired:
                del self._entries[key]
            self.expirations += len(expired)
        if expired:
            CACHE_EVENTS.labels(event="expiry").inc(len(expired))
            logger.debug("Swept %s expired embeddings", len(expired))
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.info("Embedding cache cleared")

    def stats(self) -> dict[str, float | int]:
        with self._lock:
            return {
                "size": len(self._entries),
                "max_size": self.max_entries,
                "ttl_seconds": self.ttl_seconds,
                "hits": self.hits,
                "misses": self.misses,
                "evictions": self.evictions,
                "expirations": self.expirations,
            }

    # Lifecycle --------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._sweep_loop, name="embedding-cache-sweep", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        thread, self._thread = self._thread, None
        if thread is not None:
            thread.join(timeout=timeout)

    def _sweep_loop(self) -> None:
        while not self._stop_event.wait(self.sweep_interval):
            try:
                self.sweep()
            except Exception:
                logger.exception("Embedding cache sweep failed")


__all__ = ["EmbeddingCache"]

"""Test fixtures for Lore RAG."""

from __future__ import annotations

import re
import sys
from pathlib import Path

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from lore_rag.db.catalog import SQLiteContentCatalog  # noqa: E402
from lore_rag.db.chunk_store import ChunkStore  # noqa: E402
from lore_rag.db.sqlite import SQLiteDatabase  # noqa: E402
from lore_rag.ingest.embeddings import normalize  # noqa: E402
from lore_rag.ingest.indexer import Indexer  # noqa: E402
from lore_rag.jobs.queue import JobQueue  # noqa: E402

DIM = 384
KEYWORDS = {
    "aragorn": 0,
    "ranger": 1,
    "ring": 2,
    "sauron": 3,
    "dragon": 4,
    "smaug": 5,
    "gondor": 6,
    "tavern": 7,
}
_WORD_RE = re.compile(r"\w+")


class KeywordEmbedder:
    """Deterministic embedder: one axis per known keyword, a shared axis otherwise."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def __call__(self, text: str) -> list[float]:
        self.calls.append(text)
        vector = [0.0] * DIM
        for word in _WORD_RE.findall(text.lower()):
            slot = KEYWORDS.get(word)
            if slot is not None:
                vector[slot] += 1.0
        if not any(vector):
            vector[DIM - 1] = 1.0
        normalize(vector)
        return vector


class FailingEmbedder:
    def __init__(self, message: str = "embedding service unavailable") -> None:
        self.message = message
        self.calls = 0

    def __call__(self, text: str) -> list[float]:
        self.calls += 1
        raise RuntimeError(self.message)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset global singletons and environment between tests."""
    monkeypatch.setenv("LRAG_DB_PATH", str(tmp_path / "rag.db"))
    monkeypatch.setenv("LRAG_WORKER_ENABLED", "false")
    monkeypatch.delenv("LRAG_CONFIG", raising=False)

    from lore_rag.api import dependencies as deps
    from lore_rag.core.config import get_settings

    get_settings.cache_clear()
    deps.get_app_settings.cache_clear()
    deps.shutdown_runtime()
    yield
    deps.shutdown_runtime()
    deps.get_app_settings.cache_clear()
    get_settings.cache_clear()


@pytest.fixture
def db(tmp_path: Path) -> SQLiteDatabase:
    database = SQLiteDatabase(tmp_path / "store.db")
    database.ensure_schema()
    yield database
    database.close()


@pytest.fixture
def embedder() -> KeywordEmbedder:
    return KeywordEmbedder()


@pytest.fixture
def store(db: SQLiteDatabase) -> ChunkStore:
    return ChunkStore(db)


@pytest.fixture
def indexer(db: SQLiteDatabase, store: ChunkStore, embedder: KeywordEmbedder) -> Indexer:
    return Indexer(store, embedder, catalog=SQLiteContentCatalog(db), chunk_tokens=60, overlap_tokens=10)


@pytest.fixture
def queue(db: SQLiteDatabase, indexer: Indexer) -> JobQueue:
    return JobQueue(db, indexer, max_retries=3)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()

"""Per-bucket semantic retrieval over stored chunks."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass, field
from typing import Any, Sequence

from lore_rag.core.metrics import RETRIEVE_LATENCY
from lore_rag.db.chunk_store import ChunkStore
from lore_rag.ingest.embeddings import EmbedFn
from lore_rag.models.entities import SourceType, StoredChunk


@dataclass(slots=True)
class RetrievedChunk:
    title: str | None
    content: str
    score: float

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "content": self.content, "score": self.score}


@dataclass(slots=True)
class RetrievalResult:
    lore: list[RetrievedChunk] = field(default_factory=list)
    characters: list[RetrievedChunk] = field(default_factory=list)
    memories: list[RetrievedChunk] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.lore or self.characters or self.memories)

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "lore": [item.to_dict() for item in self.lore],
            "characters": [item.to_dict() for item in self.characters],
            "memories": [item.to_dict() for item in self.memories],
        }


def cosine(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity; 0.0 when either vector has zero norm."""
    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y
    if norm_a == 0 or norm_b == 0:
        return 0.0
    score = dot / (math.sqrt(norm_a) * math.sqrt(norm_b))
    return max(-1.0, min(1.0, score))


def rank(
    query_vector: Sequence[float],
    candidates: Sequence[StoredChunk],
    top_k: int,
    min_score: float,
) -> list[RetrievedChunk]:
    """Score candidates, drop those below ``min_score`` and keep the best ``top_k``.

    ``sorted`` is stable, so equal scores keep storage order.
    """
    scored = [(cosine(query_vector, chunk.embedding), chunk) for chunk in candidates]
    kept = [(score, chunk) for score, chunk in scored if score >= min_score]
    kept.sort(key=lambda item: item[0], reverse=True)
    return [RetrievedChunk(title=chunk.title, content=chunk.text, score=score) for score, chunk in kept[:top_k]]


class Retriever:
    """Embeds a query and ranks lore, character and message chunks for one owner."""

    def __init__(
        self,
        store: ChunkStore,
        embed: EmbedFn,
        top_k: int = 6,
        min_score: float = 0.5,
    ) -> None:
        self.store = store
        self.embed = embed
        self.top_k = top_k
        self.min_score = min_score

    def retrieve(
        self,
        owner_id: str,
        query: str,
        conversation_id: int | None = None,
        character_ref: int | None = None,
        lore_scope: Sequence[int] | None = None,
        top_k: int | None = None,
    ) -> RetrievalResult:
        # lore_scope is accepted but not applied: all of an owner's lore stays
        # searchable so lore added later reaches older conversations.
        del lore_scope
        start = time.perf_counter()
        limit = self.top_k if top_k is None else top_k
        query_vector = self.embed(query)

        def bucket(source_type: SourceType, **scope: int | None) -> list[RetrievedChunk]:
            candidates = self.store.fetch_candidates(owner_id, source_type, **scope)
            return rank(query_vector, candidates, limit, self.min_score)

        result = RetrievalResult(
            lore=bucket(SourceType.LORE),
            characters=bucket(SourceType.CHARACTER, character_ref=character_ref),
            memories=bucket(
                SourceType.MESSAGE,
                conversation_id=conversation_id,
                character_ref=character_ref,
            ),
        )
        RETRIEVE_LATENCY.observe(time.perf_counter() - start)
        return result


def compose_context(result: RetrievalResult) -> str:
    """Render retrieved chunks as a prompt block: characters, then lore, then memory."""
    parts: list[str] = []
    if result.characters:
        lines = [
            f"({idx}) {item.title or 'Character'}: {item.content}"
            for idx, item in enumerate(result.characters, 1)
        ]
        parts.append("Character profile context:\n" + "\n".join(lines))
    if result.lore:
        lines = [f"({idx}) {item.title or 'Lore'}: {item.content}" for idx, item in enumerate(result.lore, 1)]
        parts.append("Relevant lore:\n" + "\n".join(lines))
    if result.memories:
        lines = [f"({idx}) {item.content}" for idx, item in enumerate(result.memories, 1)]
        parts.append("Relevant conversation memory:\n" + "\n".join(lines))
    return "\n\n".join(parts)


__all__ = ["Retriever", "RetrievedChunk", "RetrievalResult", "compose_context", "cosine", "rank"]

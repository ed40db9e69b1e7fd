"""Retrieval components."""

from .retriever import RetrievalResult, RetrievedChunk, Retriever, compose_context, cosine, rank

__all__ = [
    "Retriever",
    "RetrievalResult",
    "RetrievedChunk",
    "compose_context",
    "cosine",
    "rank",
]

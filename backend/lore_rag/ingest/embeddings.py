"""Embedding utilities."""

from __future__ import annotations

import hashlib
import logging
import math
import re
from array import array
from dataclasses import dataclass
from typing import Callable, Iterable, Protocol, Sequence

from lore_rag.core.config import Settings

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"\w+")

EmbedFn = Callable[[str], list[float]]


@dataclass(slots=True)
class EmbeddingBatch:
    vectors: list[list[float]]
    model: str
    dim: int
    backend: str


class SupportsEmbedding(Protocol):
    model_name: str

    @property
    def dim(self) -> int: ...

    def embed(self, text: str) -> list[float]: ...

    def encode(self, texts: Iterable[str], batch_size: int = 16) -> EmbeddingBatch: ...


class EmbeddingModel:
    """Lightweight hashed embedding model with deterministic output."""

    def __init__(
        self,
        model_name: str = "hashed",
        dim: int = 384,
    ) -> None:
        self.model_name = model_name
        self._dim = dim
        self._backend = "hashed"

    @property
    def dim(self) -> int:
        return self._dim

    @property
    def backend(self) -> str:
        return self._backend

    def embed(self, text: str) -> list[float]:
        return self.encode([text]).vectors[0]

    def encode(self, texts: Iterable[str], batch_size: int = 16) -> EmbeddingBatch:
        vectors: list[list[float]] = []
        for text in texts:
            tokens = _tokenize(text)
            vector = [0.0] * self._dim
            for token in tokens:
                slot = _hash_token(token, self._dim)
                vector[slot] += 1.0
            normalize(vector)
            vectors.append(vector)
        return EmbeddingBatch(vectors=vectors, model=self.model_name, dim=self._dim, backend=self._backend)


class SentenceTransformerModel:
    """sentence-transformers model producing normalized mean-pooled vectors."""

    def __init__(self, model_name: str, device: str | None = None) -> None:
        from sentence_transformers import SentenceTransformer

        self.model_name = model_name
        self._model = SentenceTransformer(model_name, device=device)
        self._dim = int(self._model.get_sentence_embedding_dimension())
        logger.info("Loaded embedding model %s (%s dims)", model_name, self._dim)

    @property
    def dim(self) -> int:
        return self._dim

    @property
    def backend(self) -> str:
        return "sentence-transformers"

    def embed(self, text: str) -> list[float]:
        return self.encode([text]).vectors[0]

    def encode(self, texts: Iterable[str], batch_size: int = 16) -> EmbeddingBatch:
        output = self._model.encode(
            list(texts),
            batch_size=batch_size,
            normalize_embeddings=True,
            convert_to_numpy=True,
        )
        vectors = [[float(value) for value in row] for row in output]
        return EmbeddingBatch(vectors=vectors, model=self.model_name, dim=self._dim, backend=self.backend)


def build_embedding_model(settings: Settings) -> SupportsEmbedding:
    if settings.embedding_backend == "sentence-transformers":
        return SentenceTransformerModel(settings.embedding_model)
    return EmbeddingModel(model_name="hashed", dim=settings.embedding_dim)


def vector_to_bytes(vector: Sequence[float]) -> bytes:
    return array("f", vector).tobytes()


def vector_from_bytes(data: bytes) -> list[float]:
    floats = array("f")
    floats.frombytes(data)
    return list(floats)


def _tokenize(text: str) -> list[str]:
    return _TOKEN_RE.findall(text.lower())


def _hash_token(token: str, dim: int) -> int:
    digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
    value = int.from_bytes(digest, "big")
    return value % dim


def normalize(vector: list[float]) -> None:
    """Scale ``vector`` to unit length in place; zero vectors are left alone."""
    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0:
        return
    inv = 1.0 / norm
    for idx, value in enumerate(vector):
        vector[idx] = value * inv


__all__ = [
    "EmbedFn",
    "EmbeddingBatch",
    "EmbeddingModel",
    "SentenceTransformerModel",
    "SupportsEmbedding",
    "build_embedding_model",
    "normalize",
    "vector_from_bytes",
    "vector_to_bytes",
]

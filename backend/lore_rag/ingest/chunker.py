"""Chunking utilities."""

from __future__ import annotations

from dataclasses import dataclass

from lore_rag.ingest.tokenizer import RegexTokenizer, Tokenizer

MIN_CHUNK_TOKENS = 50

_DEFAULT_TOKENIZER = RegexTokenizer()


@dataclass(slots=True, frozen=True)
class TextChunk:
    text: str
    token_count: int


def window_params(max_tokens: int, overlap_tokens: int) -> tuple[int, int]:
    """Clamp the configured window to (size, overlap) with overlap < size."""
    size = max(MIN_CHUNK_TOKENS, max_tokens)
    overlap = max(0, min(size // 4, overlap_tokens))
    return size, overlap


def chunk_text(
    text: str,
    max_tokens: int = 240,
    overlap_tokens: int = 40,
    tokenizer: Tokenizer | None = None,
) -> list[TextChunk]:
    """Split text into overlapping token windows.

    Always returns at least one chunk; empty input yields a single empty
    chunk and callers decide whether it is worth indexing.
    """
    tokenizer = tokenizer or _DEFAULT_TOKENIZER
    tokens = tokenizer.encode(text)
    size, overlap = window_params(max_tokens, overlap_tokens)
    step = size - overlap

    chunks: list[TextChunk] = []
    for start in range(0, len(tokens), step):
        window = tokens[start : start + size]
        if not window:
            break
        chunks.append(TextChunk(text=tokenizer.decode(window), token_count=len(window)))
    if not chunks:
        return [TextChunk(text=text, token_count=len(tokens))]
    return chunks


__all__ = ["TextChunk", "chunk_text", "window_params", "MIN_CHUNK_TOKENS"]

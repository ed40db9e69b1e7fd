"""Deterministic tokenizers used for chunking."""

from __future__ import annotations

import re
from typing import Any, Protocol, Sequence

_PIECE_RE = re.compile(r"\s*\S+|\s+")


class Tokenizer(Protocol):
    """Splits text into tokens that ``decode`` joins back losslessly."""

    def encode(self, text: str) -> list[Any]: ...

    def decode(self, tokens: Sequence[Any]) -> str: ...


class RegexTokenizer:
    """Word-piece tokenizer: each token is a word with its leading whitespace.

    Tokens are the text pieces themselves, so ``decode(encode(text)) == text``
    and nothing is remembered between calls.
    """

    __slots__ = ()

    def encode(self, text: str) -> list[str]:
        return _PIECE_RE.findall(text)

    def decode(self, tokens: Sequence[str]) -> str:
        return "".join(tokens)


class TiktokenTokenizer:
    """BPE tokenizer backed by tiktoken."""

    def __init__(self, encoding_name: str = "cl100k_base") -> None:
        import tiktoken

        self.encoding_name = encoding_name
        self._encoding = tiktoken.get_encoding(encoding_name)

    def encode(self, text: str) -> list[int]:
        return self._encoding.encode(text, disallowed_special=())

    def decode(self, ids: Sequence[int]) -> str:
        return self._encoding.decode(list(ids))


def build_tokenizer(name: str) -> Tokenizer:
    """Return a tokenizer for a settings value like ``regex`` or ``tiktoken:cl100k_base``."""
    if name == "regex":
        return RegexTokenizer()
    if name.startswith("tiktoken:"):
        return TiktokenTokenizer(name.split(":", 1)[1] or "cl100k_base")
    raise ValueError(f"Unsupported tokenizer: {name}")


__all__ = ["Tokenizer", "RegexTokenizer", "TiktokenTokenizer", "build_tokenizer"]

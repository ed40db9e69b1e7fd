"""Chunk → embed → upsert orchestration for lore, characters and messages."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from lore_rag.core.logging import get_logger
from lore_rag.db.catalog import ContentCatalog
from lore_rag.db.chunk_store import ChunkStore
from lore_rag.ingest.chunker import chunk_text
from lore_rag.ingest.embeddings import EmbedFn
from lore_rag.ingest.tokenizer import RegexTokenizer, Tokenizer
from lore_rag.models.entities import ChunkRecord, SourceType
from lore_rag.models.jobs import DeleteChunksJob, IndexCharacterJob, IndexLoreJob, IndexMessageJob, JobPayload

logger = get_logger(__name__)

Role = Literal["user", "assistant"]


@dataclass(slots=True)
class ReindexStats:
    lore: int = 0
    characters: int = 0
    chunks: int = 0

    def to_dict(self) -> dict[str, int]:
        return {"lore": self.lore, "characters": self.characters, "chunks": self.chunks}


def lore_text(title: str, content: str) -> str:
    return f"{title}\n\n{content}"


def character_text(name: str, bio: str | None) -> str:
    text = f"Character: {name}"
    if bio:
        text += f"\n\nBio: {bio}"
    return text


def message_text(role: Role, content: str) -> str:
    prefix = "User" if role == "user" else "Assistant"
    return f"{prefix}: {content}"


class Indexer:
    """Turn source rows into stored, embedded chunks."""

    def __init__(
        self,
        store: ChunkStore,
        embed: EmbedFn,
        catalog: ContentCatalog | None = None,
        chunk_tokens: int = 240,
        overlap_tokens: int = 40,
        tokenizer: Tokenizer | None = None,
    ) -> None:
        self.store = store
        self.embed = embed
        self.catalog = catalog
        self.chunk_tokens = chunk_tokens
        self.overlap_tokens = overlap_tokens
        self.tokenizer = tokenizer or RegexTokenizer()

    def index_lore(self, owner_id: str, lore_id: int, title: str, content: str) -> int:
        return self._index(
            owner_id,
            SourceType.LORE,
            lore_text(title, content),
            source_id=lore_id,
            title=title,
        )

    def index_character(self, owner_id: str, character_id: int, name: str, bio: str | None = None) -> int:
        return self._index(
            owner_id,
            SourceType.CHARACTER,
            character_text(name, bio),
            source_id=character_id,
            title=name,
            character_ref=character_id,
        )

    def index_message(
        self,
        owner_id: str,
        conversation_id: int,
        role: Role,
        content: str,
        character_ref: int | None = None,
    ) -> int:
        return self._index(
            owner_id,
            SourceType.MESSAGE,
            message_text(role, content),
            conversation_id=conversation_id,
            character_ref=character_ref,
        )

    def delete_chunks_for_source(
        self,
        owner_id: str,
        source_type: SourceType | str,
        source_id: int | None = None,
    ) -> int:
        return self.store.delete_by_source(owner_id, source_type, source_id)

    def apply(self, owner_id: str, payload: JobPayload) -> None:
        """Perform the work described by one job payload.

        A ``replace`` index job drops the source's old chunks first and does
        not index if that delete fails.
        """
        if isinstance(payload, IndexLoreJob):
            if payload.replace:
                self.delete_chunks_for_source(owner_id, SourceType.LORE, payload.lore_id)
            self.index_lore(owner_id, payload.lore_id, payload.title, payload.content)
        elif isinstance(payload, IndexCharacterJob):
            if payload.replace:
                self.delete_chunks_for_source(owner_id, SourceType.CHARACTER, payload.character_id)
            self.index_character(owner_id, payload.character_id, payload.name, payload.bio)
        elif isinstance(payload, IndexMessageJob):
            self.index_message(
                owner_id,
                payload.conversation_id,
                payload.role,
                payload.content,
                character_ref=payload.character_ref,
            )
        elif isinstance(payload, DeleteChunksJob):
            self.delete_chunks_for_source(owner_id, payload.source_type, payload.source_id)
        else:
            raise TypeError(f"Unhandled payload {type(payload).__name__}")

    def reindex_all_for_user(self, owner_id: str) -> ReindexStats:
        """Rebuild every lore and character chunk for ``owner_id`` from current rows."""
        if self.catalog is None:
            raise RuntimeError("Indexer has no content catalog; cannot reindex")
        stats = ReindexStats()
        for lore in self.catalog.list_lore(owner_id):
            self.delete_chunks_for_source(owner_id, SourceType.LORE, lore.id)
            stats.chunks += self.index_lore(owner_id, lore.id, lore.title, lore.content)
            stats.lore += 1
        for character in self.catalog.list_characters(owner_id):
            self.delete_chunks_for_source(owner_id, SourceType.CHARACTER, character.id)
            stats.chunks += self.index_character(owner_id, character.id, character.name, character.bio)
            stats.characters += 1
        logger.info("Reindexed %s", stats.to_dict(), extra={"ctx_owner_id": owner_id})
        return stats

    def _index(
        self,
        owner_id: str,
        source_type: SourceType,
        text: str,
        source_id: int | None = None,
        title: str | None = None,
        conversation_id: int | None = None,
        character_ref: int | None = None,
    ) -> int:
        try:
            records = [
                ChunkRecord(
                    owner_id=owner_id,
                    source_type=source_type,
                    text=chunk.text,
                    embedding=self.embed(chunk.text),
                    token_count=chunk.token_count,
                    source_id=source_id,
                    conversation_id=conversation_id,
                    character_ref=character_ref,
                    title=title,
                )
                for chunk in chunk_text(text, self.chunk_tokens, self.overlap_tokens, self.tokenizer)
            ]
            self.store.upsert_many(records)
        except Exception:
            logger.exception(
                "Failed to index %s",
                source_type.value,
                extra={
                    "ctx_owner_id": owner_id,
                    "ctx_source_type": source_type,
                    "ctx_source_id": source_id,
                    "ctx_conversation_id": conversation_id,
                },
            )
            raise
        return len(records)


__all__ = ["Indexer", "ReindexStats", "lore_text", "character_text", "message_text"]

"""Persistence for indexed chunks."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Iterable

from lore_rag.core.metrics import INDEX_SIZE
from lore_rag.db.sqlite import SQLiteDatabase
from lore_rag.ingest.embeddings import vector_from_bytes, vector_to_bytes
from lore_rag.models.entities import ChunkRecord, SourceType, StoredChunk
from lore_rag.utils.hashing import sha256_text
from lore_rag.utils.time import now_ms

logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, owner_id, source_type, source_id, conversation_id, character_ref, title, text, "
    "embedding, token_count, content_hash, created_at, updated_at"
)

# One statement: concurrent writers of the same key cannot interleave a read
# and a write, the last one wins.
_UPSERT_SQL = """
INSERT INTO rag_chunks (
  owner_id, source_type, source_id, conversation_id, character_ref, title, text,
  embedding, dim, token_count, content_hash, created_at, updated_at
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT (owner_id, source_type, source_id, content_hash) DO UPDATE SET
  conversation_id = excluded.conversation_id,
  character_ref = excluded.character_ref,
  title = excluded.title,
  text = excluded.text,
  embedding = excluded.embedding,
  dim = excluded.dim,
  token_count = excluded.token_count,
  updated_at = excluded.updated_at
"""


class ChunkStore:
    """Content-addressed chunk storage scoped by owner."""

    def __init__(self, db: SQLiteDatabase) -> None:
        self.db = db

    def upsert(self, chunk: ChunkRecord) -> str:
        """Insert or refresh ``chunk``; return its content hash."""
        content_hash = sha256_text(chunk.text)
        now = now_ms()
        with self.db.transaction() as cursor:
            cursor.execute(_UPSERT_SQL, self._params(chunk, content_hash, now))
        self._update_index_metric()
        return content_hash

    def upsert_many(self, chunks: Iterable[ChunkRecord]) -> list[str]:
        now = now_ms()
        rows = []
        hashes = []
        for chunk in chunks:
            content_hash = sha256_text(chunk.text)
            hashes.append(content_hash)
            rows.append(self._params(chunk, content_hash, now))
        if not rows:
            return []
        with self.db.transaction() as cursor:
            cursor.executemany(_UPSERT_SQL, rows)
        self._update_index_metric()
        return hashes

    def delete_by_source(
        self,
        owner_id: str,
        source_type: SourceType | str,
        source_id: int | None = None,
    ) -> int:
        """Delete chunks of one type for an owner, optionally for a single source."""
        clauses = ["owner_id = ?", "source_type = ?"]
        params: list[Any] = [owner_id, SourceType(source_type).value]
        if source_id is not None:
            clauses.append("source_id = ?")
            params.append(source_id)
        with self.db.transaction() as cursor:
            cursor.execute(f"DELETE FROM rag_chunks WHERE {' AND '.join(clauses)}", params)
            deleted = cursor.rowcount
        self._update_index_metric()
        logger.debug(
            "Deleted %s chunks",
            deleted,
            extra={
                "ctx_owner_id": owner_id,
                "ctx_source_type": SourceType(source_type),
                "ctx_source_id": source_id,
            },
        )
        return deleted

    def fetch_candidates(
        self,
        owner_id: str,
        source_type: SourceType | str,
        conversation_id: int | None = None,
        character_ref: int | None = None,
    ) -> list[StoredChunk]:
        """Return every chunk in a retrieval bucket, in storage order."""
        clauses = ["owner_id = ?", "source_type = ?"]
        params: list[Any] = [owner_id, SourceType(source_type).value]
        if conversation_id is not None:
            clauses.append("conversation_id = ?")
            params.append(conversation_id)
        if character_ref is not None:
            clauses.append("character_ref = ?")
            params.append(character_ref)
        rows = self.db.query(
            f"SELECT {_COLUMNS} FROM rag_chunks WHERE {' AND '.join(clauses)} ORDER BY id",
            params,
        )
        return [_row_to_chunk(row) for row in rows]

    def list_chunks(self, owner_id: str, source_type: SourceType | str | None = None) -> list[StoredChunk]:
        params: list[Any] = [owner_id]
        where = "owner_id = ?"
        if source_type is not None:
            where += " AND source_type = ?"
            params.append(SourceType(source_type).value)
        rows = self.db.query(f"SELECT {_COLUMNS} FROM rag_chunks WHERE {where} ORDER BY id", params)
        return [_row_to_chunk(row) for row in rows]

    def count(self, owner_id: str | None = None, source_type: SourceType | str | None = None) -> int:
        clauses: list[str] = []
        params: list[Any] = []
        if owner_id is not None:
            clauses.append("owner_id = ?")
            params.append(owner_id)
        if source_type is not None:
            clauses.append("source_type = ?")
            params.append(SourceType(source_type).value)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        row = self.db.query_one(f"SELECT COUNT(*) AS count FROM rag_chunks{where}", params)
        return int(row["count"]) if row else 0

    @staticmethod
    def _params(chunk: ChunkRecord, content_hash: str, now: int) -> tuple[Any, ...]:
        return (
            chunk.owner_id,
            SourceType(chunk.source_type).value,
            chunk.source_id,
            chunk.conversation_id,
            chunk.character_ref,
            chunk.title,
            chunk.text,
            vector_to_bytes(chunk.embedding),
            len(chunk.embedding),
            chunk.token_count,
            content_hash,
            now,
            now,
        )

    def _update_index_metric(self) -> None:
        try:
            INDEX_SIZE.set(self.count())
        except sqlite3.Error:
            logger.warning("Could not refresh index size metric", exc_info=True)


def _row_to_chunk(row: sqlite3.Row) -> StoredChunk:
    return StoredChunk(
        id=row["id"],
        owner_id=row["owner_id"],
        source_type=SourceType(row["source_type"]),
        source_id=row["source_id"],
        conversation_id=row["conversation_id"],
        character_ref=row["character_ref"],
        title=row["title"],
        text=row["text"],
        embedding=vector_from_bytes(row["embedding"]),
        token_count=row["token_count"],
        content_hash=row["content_hash"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


__all__ = ["ChunkStore"]

"""Tests for chunk persistence."""

import pytest

from lore_rag.db.chunk_store import ChunkStore
from lore_rag.db.sqlite import SQLiteDatabase
from lore_rag.models.entities import ChunkRecord, SourceType
from lore_rag.utils.hashing import sha256_text


def _record(text="The One Ring", source_type=SourceType.LORE, source_id=1, owner="u1", **extra) -> ChunkRecord:
    return ChunkRecord(
        owner_id=owner,
        source_type=source_type,
        text=text,
        embedding=[1.0, 0.0, 0.0],
        token_count=len(text.split()),
        source_id=source_id,
        **extra,
    )


def test_upsert_same_content_updates_in_place(store: ChunkStore, db: SQLiteDatabase) -> None:
    first_hash = store.upsert(_record(title="Old title"))
    db.execute("UPDATE rag_chunks SET updated_at = 0")
    db.commit()
    second_hash = store.upsert(_record(title="New title"))

    assert first_hash == second_hash == sha256_text("The One Ring")
    chunks = store.list_chunks("u1")
    assert len(chunks) == 1
    assert chunks[0].title == "New title"
    assert chunks[0].updated_at > 0


def test_changed_content_creates_new_row(store: ChunkStore) -> None:
    store.upsert(_record("The One Ring"))
    store.upsert(_record("The One Ring, forged in Mount Doom"))
    assert store.count("u1", SourceType.LORE) == 2


def test_key_includes_owner_and_source(store: ChunkStore) -> None:
    store.upsert(_record(owner="u1"))
    store.upsert(_record(owner="u2"))
    store.upsert(_record(source_id=2))
    store.upsert(_record(source_type=SourceType.CHARACTER))
    assert store.count() == 4


def test_message_chunks_are_append_only(store: ChunkStore) -> None:
    for _ in range(2):
        store.upsert(_record("User: hello", source_type=SourceType.MESSAGE, source_id=None, conversation_id=7))
    assert store.count("u1", SourceType.MESSAGE) == 2


def test_upsert_many_is_idempotent(store: ChunkStore) -> None:
    records = [_record("alpha"), _record("beta")]
    store.upsert_many(records)
    store.upsert_many(records)
    assert store.count("u1") == 2
    assert store.upsert_many([]) == []


def test_delete_by_source_leaves_other_sources(store: ChunkStore) -> None:
    store.upsert(_record("five a", source_id=5))
    store.upsert(_record("five b", source_id=5))
    store.upsert(_record("six", source_id=6))
    store.upsert(_record("other owner", source_id=5, owner="u2"))

    assert store.delete_by_source("u1", "lore", 5) == 2
    remaining = store.list_chunks("u1")
    assert [chunk.source_id for chunk in remaining] == [6]
    assert store.count("u2") == 1


def test_delete_without_source_id_wipes_type(store: ChunkStore) -> None:
    store.upsert(_record("one", source_id=1))
    store.upsert(_record("two", source_id=2))
    store.upsert(_record("bio", source_type=SourceType.CHARACTER))
    assert store.delete_by_source("u1", SourceType.LORE) == 2
    assert store.count("u1", SourceType.LORE) == 0
    assert store.count("u1", SourceType.CHARACTER) == 1


def test_fetch_candidates_scopes(store: ChunkStore) -> None:
    store.upsert(_record("User: a", SourceType.MESSAGE, None, conversation_id=1, character_ref=10))
    store.upsert(_record("User: b", SourceType.MESSAGE, None, conversation_id=2, character_ref=10))
    store.upsert(_record("User: c", SourceType.MESSAGE, None, conversation_id=1, character_ref=11))

    assert len(store.fetch_candidates("u1", SourceType.MESSAGE)) == 3
    assert [c.text for c in store.fetch_candidates("u1", SourceType.MESSAGE, conversation_id=1)] == [
        "User: a",
        "User: c",
    ]
    scoped = store.fetch_candidates("u1", SourceType.MESSAGE, conversation_id=1, character_ref=10)
    assert [c.text for c in scoped] == ["User: a"]
    assert store.fetch_candidates("u2", SourceType.MESSAGE) == []


def test_embedding_round_trip(store: ChunkStore) -> None:
    store.upsert(_record())
    (chunk,) = store.list_chunks("u1")
    assert chunk.embedding == pytest.approx([1.0, 0.0, 0.0])
    assert chunk.source_type is SourceType.LORE
    assert chunk.content_hash == sha256_text("The One Ring")


def test_invalid_source_type_rejected(store: ChunkStore) -> None:
    with pytest.raises(ValueError):
        store.delete_by_source("u1", "wiki", 1)

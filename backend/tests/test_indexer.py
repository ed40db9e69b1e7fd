"""Tests for the indexer."""

import logging

import pytest

from conftest import FailingEmbedder
from lore_rag.db.catalog import SQLiteContentCatalog
from lore_rag.db.chunk_store import ChunkStore
from lore_rag.db.sqlite import SQLiteDatabase
from lore_rag.ingest.indexer import Indexer, character_text, lore_text, message_text
from lore_rag.models.entities import SourceType
from lore_rag.utils.hashing import sha256_text

LONG_CONTENT = " ".join(f"word{i}" for i in range(150))


def test_canonical_texts() -> None:
    assert lore_text("The One Ring", "Sauron's ring.") == "The One Ring\n\nSauron's ring."
    assert character_text("Aragorn", "Ranger") == "Character: Aragorn\n\nBio: Ranger"
    assert character_text("Aragorn", None) == "Character: Aragorn"
    assert message_text("user", "hi") == "User: hi"
    assert message_text("assistant", "hello") == "Assistant: hello"


def test_index_lore_stores_embedded_chunks(indexer: Indexer, store: ChunkStore) -> None:
    written = indexer.index_lore("u1", 1, "The One Ring", "Sauron's ring.")
    assert written == 1
    (chunk,) = store.list_chunks("u1")
    assert chunk.source_type is SourceType.LORE
    assert chunk.source_id == 1
    assert chunk.title == "The One Ring"
    assert chunk.text == "The One Ring\n\nSauron's ring."
    assert len(chunk.embedding) == 384
    assert chunk.token_count == 5


def test_reindexing_same_content_is_idempotent(indexer: Indexer, store: ChunkStore) -> None:
    first = indexer.index_lore("u1", 1, "Long", LONG_CONTENT)
    assert first > 1
    indexer.index_lore("u1", 1, "Long", LONG_CONTENT)
    assert store.count("u1", SourceType.LORE) == first


def test_content_change_replaces_stale_chunks(indexer: Indexer, store: ChunkStore) -> None:
    indexer.index_lore("u1", 1, "Ring", "Forged in secret.")
    old_hashes = {chunk.content_hash for chunk in store.list_chunks("u1")}

    indexer.delete_chunks_for_source("u1", SourceType.LORE, 1)
    indexer.index_lore("u1", 1, "Ring", "Lost in the river.")

    new_hashes = {chunk.content_hash for chunk in store.list_chunks("u1")}
    assert new_hashes == {sha256_text("Ring\n\nLost in the river.")}
    assert not old_hashes & new_hashes


def test_character_chunks_carry_reference(indexer: Indexer, store: ChunkStore) -> None:
    indexer.index_character("u1", 4, "Aragorn", "Ranger of the North")
    (chunk,) = store.list_chunks("u1", SourceType.CHARACTER)
    assert chunk.character_ref == 4
    assert chunk.source_id == 4
    assert chunk.title == "Aragorn"


def test_message_chunks_have_conversation_and_no_source(indexer: Indexer, store: ChunkStore) -> None:
    indexer.index_message("u1", 9, "assistant", "The ring must be destroyed", character_ref=4)
    (chunk,) = store.list_chunks("u1", SourceType.MESSAGE)
    assert chunk.conversation_id == 9
    assert chunk.character_ref == 4
    assert chunk.source_id is None
    assert chunk.title is None
    assert chunk.text.startswith("Assistant: ")


def test_reindex_all_for_user_rebuilds_from_catalog(
    db: SQLiteDatabase, indexer: Indexer, store: ChunkStore
) -> None:
    db.execute("INSERT INTO lore (id, owner_id, title, content) VALUES (1, 'u1', 'Ring', 'Current text')")
    db.execute("INSERT INTO characters (id, owner_id, name, bio) VALUES (2, 'u1', 'Aragorn', NULL)")
    db.execute("INSERT INTO lore (id, owner_id, title, content) VALUES (3, 'u2', 'Other', 'Not mine')")
    db.commit()
    indexer.index_lore("u1", 1, "Ring", "Stale text")

    stats = indexer.reindex_all_for_user("u1")

    assert stats.to_dict() == {"lore": 1, "characters": 1, "chunks": 2}
    texts = sorted(chunk.text for chunk in store.list_chunks("u1"))
    assert texts == ["Character: Aragorn", "Ring\n\nCurrent text"]
    assert store.count("u2") == 0


def test_reindex_requires_catalog(store: ChunkStore) -> None:
    indexer = Indexer(store, lambda text: [1.0])
    with pytest.raises(RuntimeError):
        indexer.reindex_all_for_user("u1")


def test_failures_are_logged_and_reraised(
    db: SQLiteDatabase, store: ChunkStore, caplog: pytest.LogCaptureFixture
) -> None:
    indexer = Indexer(store, FailingEmbedder(), catalog=SQLiteContentCatalog(db))
    with caplog.at_level(logging.ERROR):
        with pytest.raises(RuntimeError, match="embedding service unavailable"):
            indexer.index_lore("u1", 5, "Ring", "text")
    record = next(r for r in caplog.records if r.getMessage() == "Failed to index lore")
    assert record.ctx_source_id == 5
    assert record.ctx_owner_id == "u1"
    assert store.count() == 0

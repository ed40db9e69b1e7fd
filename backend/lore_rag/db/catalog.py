"""Read access to the host application's lore and character rows."""

from __future__ import annotations

from typing import Protocol

from lore_rag.db.sqlite import SQLiteDatabase
from lore_rag.models.entities import CharacterRow, LoreRow


class ContentCatalog(Protocol):
    def list_lore(self, owner_id: str) -> list[LoreRow]: ...

    def list_characters(self, owner_id: str) -> list[CharacterRow]: ...


class SQLiteContentCatalog:
    """Catalog over the ``lore`` and ``characters`` tables."""

    def __init__(self, db: SQLiteDatabase) -> None:
        self.db = db

    def list_lore(self, owner_id: str) -> list[LoreRow]:
        rows = self.db.query("SELECT id, title, content FROM lore WHERE owner_id = ? ORDER BY id", [owner_id])
        return [LoreRow(id=row["id"], title=row["title"], content=row["content"]) for row in rows]

    def list_characters(self, owner_id: str) -> list[CharacterRow]:
        rows = self.db.query("SELECT id, name, bio FROM characters WHERE owner_id = ? ORDER BY id", [owner_id])
        return [CharacterRow(id=row["id"], name=row["name"], bio=row["bio"]) for row in rows]


__all__ = ["ContentCatalog", "SQLiteContentCatalog"]

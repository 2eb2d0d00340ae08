"""Repository for the ``tags`` and ``article_tags`` tables."""

from __future__ import annotations

import logging
from typing import Optional

from mdnotes.db.database import Database
from mdnotes.errors import StatementError
from mdnotes.models.tag import Tag

logger = logging.getLogger(__name__)


class TagRepository:
    """Tags are append-only; associations come and go with attach/detach."""

    def __init__(self, db: Database):
        self._db = db

    # -- Tags ------------------------------------------------------------------

    def find_or_create(self, name: str) -> Tag:
        result = self._db.execute("INSERT OR IGNORE INTO tags (name) VALUES (?)", (name,))
        if result.rows_affected:
            logger.info(f"Created tag {result.inserted_id}: {name}")
        row = self._db.query_one("SELECT * FROM tags WHERE name = ?", (name,))
        if row is None:
            raise StatementError(f"Tag could not be created: {name!r}")
        return Tag.from_row(row)

    def get_by_name(self, name: str) -> Optional[Tag]:
        row = self._db.query_one("SELECT * FROM tags WHERE name = ?", (name,))
        return Tag.from_row(row) if row else None

    def list_all(self) -> list[Tag]:
        rows = self._db.query_many("SELECT * FROM tags ORDER BY name ASC")
        return [Tag.from_row(r) for r in rows]

    # -- Associations ----------------------------------------------------------

    def attach(self, article_id: int, tag_id: int) -> bool:
        """Link a tag to an article. Returns False if it was already linked."""
        result = self._db.execute(
            "INSERT OR IGNORE INTO article_tags (article_id, tag_id) VALUES (?, ?)",
            (article_id, tag_id),
        )
        return result.rows_affected > 0

    def detach(self, article_id: int, tag_id: int) -> bool:
        result = self._db.execute(
            "DELETE FROM article_tags WHERE article_id = ? AND tag_id = ?",
            (article_id, tag_id),
        )
        return result.rows_affected > 0

    def detach_all(self, article_id: int) -> int:
        result = self._db.execute(
            "DELETE FROM article_tags WHERE article_id = ?", (article_id,)
        )
        return result.rows_affected

    def list_for_article(self, article_id: int) -> list[Tag]:
        rows = self._db.query_many(
            """SELECT t.* FROM tags t
               JOIN article_tags at ON t.id = at.tag_id
               WHERE at.article_id = ?""",
            (article_id,),
        )
        return [Tag.from_row(r) for r in rows]

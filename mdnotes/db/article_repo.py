"""Repository for the ``articles`` table — CRUD, tagging, and search."""

from __future__ import annotations

import logging
from typing import Any, Optional

from mdnotes.db.database import Database
from mdnotes.db.tag_repo import TagRepository
from mdnotes.errors import NotFoundError
from mdnotes.models.article import Article, utc_timestamp
from mdnotes.models.tag import Tag

logger = logging.getLogger(__name__)

# ORDER BY cannot be bound as a parameter, so only these exact
# column names and directions ever reach the statement text.
SORT_COLUMNS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "viewCount": "view_count",
    "title": "title",
}
SORT_ORDERS = ("ASC", "DESC")
DEFAULT_SORT = "updatedAt"
DEFAULT_ORDER = "DESC"
DEFAULT_LIMIT = 100


def order_clause(sort_by: Any = DEFAULT_SORT, order: Any = DEFAULT_ORDER, alias: str = "") -> str:
    """
    Build an ORDER BY clause from the allow-list.

    Unknown values silently fall back to the defaults. ``id`` is appended in
    the same direction so ties come back in a stable order.
    """
    column = SORT_COLUMNS.get(sort_by) if isinstance(sort_by, str) else None
    if column is None:
        column = SORT_COLUMNS[DEFAULT_SORT]
    direction = order.upper() if isinstance(order, str) else ""
    if direction not in SORT_ORDERS:
        direction = DEFAULT_ORDER
    prefix = f"{alias}." if alias else ""
    return f"ORDER BY {prefix}{column} {direction}, {prefix}id {direction}"


def like_pattern(keyword: Any) -> str:
    """Substring pattern with LIKE wildcards in *keyword* taken literally."""
    text = "" if keyword is None else str(keyword)
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class ArticleRepository:
    """Domain operations over articles and their tags."""

    def __init__(self, db: Database, tags: Optional[TagRepository] = None):
        self._db = db
        self._tags = tags or TagRepository(db)

    @property
    def db(self) -> Database:
        return self._db

    # -- Create ----------------------------------------------------------------

    def create(self, title: str, content: str = "") -> Article:
        article = Article(title=title, content=content if content is not None else "")
        result = self._db.execute(
            "INSERT INTO articles (uuid, title, content) VALUES (?, ?, ?)",
            (article.uuid, article.title, article.content),
        )
        row = self._db.query_one("SELECT * FROM articles WHERE id = ?", (result.inserted_id,))
        logger.info(f"Created article {article.uuid}: {title}")
        return Article.from_row(row)  # type: ignore[arg-type]

    # -- Read ------------------------------------------------------------------

    def get_by_uuid(self, uuid: str) -> Optional[Article]:
        """
        Fetch an article and count the read.

        The returned snapshot is the row as it was before this view was
        recorded; the stored ``view_count`` is one higher afterwards.
        """
        row = self._db.query_one("SELECT * FROM articles WHERE uuid = ?", (uuid,))
        if not row:
            return None
        self.record_view(uuid)
        return Article.from_row(row)

    def record_view(self, uuid: str) -> bool:
        result = self._db.execute(
            "UPDATE articles SET view_count = view_count + 1 WHERE uuid = ?", (uuid,)
        )
        return result.rows_affected > 0

    def count(self) -> int:
        row = self._db.query_one("SELECT COUNT(*) AS n FROM articles")
        return row["n"] if row else 0

    # -- List / Search ---------------------------------------------------------

    def list_all(
        self,
        sort_by: Any = DEFAULT_SORT,
        order: Any = DEFAULT_ORDER,
        limit: int = DEFAULT_LIMIT,
        offset: int = 0,
    ) -> list[Article]:
        rows = self._db.query_many(
            f"SELECT * FROM articles {order_clause(sort_by, order)} LIMIT ? OFFSET ?",
            (limit, offset),
        )
        return [Article.from_row(r) for r in rows]

    def search(
        self,
        keyword: Optional[str],
        sort_by: Any = DEFAULT_SORT,
        order: Any = DEFAULT_ORDER,
    ) -> list[Article]:
        """Case-insensitive substring match on title or content."""
        pattern = like_pattern(keyword)
        rows = self._db.query_many(
            f"""SELECT * FROM articles
                WHERE title LIKE ? ESCAPE '\\' OR content LIKE ? ESCAPE '\\'
                {order_clause(sort_by, order)}""",
            (pattern, pattern),
        )
        return [Article.from_row(r) for r in rows]

    def search_by_tag(
        self,
        tag_name: str,
        sort_by: Any = DEFAULT_SORT,
        order: Any = DEFAULT_ORDER,
    ) -> list[Article]:
        rows = self._db.query_many(
            f"""SELECT DISTINCT a.* FROM articles a
                JOIN article_tags at ON a.id = at.article_id
                JOIN tags t ON at.tag_id = t.id
                WHERE t.name = ?
                {order_clause(sort_by, order, alias='a')}""",
            (tag_name,),
        )
        return [Article.from_row(r) for r in rows]

    # -- Update ----------------------------------------------------------------

    def update(self, uuid: str, title: str, content: str) -> dict[str, Any]:
        """Overwrite title/content; an unknown uuid touches nothing."""
        result = self._db.execute(
            "UPDATE articles SET title = ?, content = ?, updated_at = ? WHERE uuid = ?",
            (title, content, utc_timestamp(), uuid),
        )
        if result.rows_affected:
            logger.info(f"Updated article {uuid}")
        else:
            logger.info(f"Update skipped, no article {uuid}")
        return {"uuid": uuid, "title": title, "content": content}

    # -- Delete ----------------------------------------------------------------

    def delete(self, uuid: str) -> bool:
        """Delete an article and its tag links. Unknown uuids are a no-op."""
        with self._db.transaction():
            row = self._db.query_one("SELECT id FROM articles WHERE uuid = ?", (uuid,))
            if not row:
                return False
            self._tags.detach_all(row["id"])
            self._db.execute("DELETE FROM articles WHERE id = ?", (row["id"],))
        logger.info(f"Deleted article {uuid}")
        return True

    # -- Tags ------------------------------------------------------------------

    def _resolve_id(self, uuid: str) -> int:
        row = self._db.query_one("SELECT id FROM articles WHERE uuid = ?", (uuid,))
        if not row:
            raise NotFoundError(f"Article not found: {uuid}")
        return row["id"]

    def list_tags(self) -> list[Tag]:
        return self._tags.list_all()

    def add_tag(self, uuid: str, tag_name: str) -> dict[str, Any]:
        with self._db.transaction():
            article_id = self._resolve_id(uuid)
            tag = self._tags.find_or_create(tag_name)
            if self._tags.attach(article_id, tag.id):  # type: ignore[arg-type]
                logger.info(f"Tagged article {uuid} with {tag_name!r}")
        return {"tagId": tag.id, "tagName": tag.name}

    def remove_tag(self, uuid: str, tag_id: int) -> None:
        article_id = self._resolve_id(uuid)
        if self._tags.detach(article_id, tag_id):
            logger.info(f"Removed tag {tag_id} from article {uuid}")

    def get_tags(self, uuid: str) -> list[Tag]:
        return self._tags.list_for_article(self._resolve_id(uuid))

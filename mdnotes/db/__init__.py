"""Database layer — SQLite storage engine and repositories."""

from mdnotes.db.database import Database, ExecResult
from mdnotes.db.schema import SCHEMA_DDL
from mdnotes.db.article_repo import ArticleRepository
from mdnotes.db.tag_repo import TagRepository

__all__ = ["Database", "ExecResult", "SCHEMA_DDL", "ArticleRepository", "TagRepository"]

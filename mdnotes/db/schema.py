"""Database schema DDL — articles, tags and their association."""

SCHEMA_DDL = """
PRAGMA foreign_keys = ON;

-- ==========================================================================
-- Articles
-- ==========================================================================
CREATE TABLE IF NOT EXISTS articles (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    uuid        TEXT UNIQUE NOT NULL,
    title       TEXT,
    content     TEXT DEFAULT '',
    view_count  INTEGER NOT NULL DEFAULT 0 CHECK(view_count >= 0),
    created_at  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ','now')),
    updated_at  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ','now'))
);

CREATE INDEX IF NOT EXISTS idx_articles_updated ON articles(updated_at);
CREATE INDEX IF NOT EXISTS idx_articles_created ON articles(created_at);

-- ==========================================================================
-- Tags
-- ==========================================================================
CREATE TABLE IF NOT EXISTS tags (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    name        TEXT UNIQUE NOT NULL,
    created_at  TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ','now'))
);

-- ==========================================================================
-- Article <-> Tag association
-- ==========================================================================
CREATE TABLE IF NOT EXISTS article_tags (
    article_id  INTEGER NOT NULL REFERENCES articles(id),
    tag_id      INTEGER NOT NULL REFERENCES tags(id),
    PRIMARY KEY (article_id, tag_id)
);

CREATE INDEX IF NOT EXISTS idx_article_tags_tag ON article_tags(tag_id);
"""

TABLES = ("articles", "tags", "article_tags")

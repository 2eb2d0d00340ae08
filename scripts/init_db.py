#!/usr/bin/env python3
"""Initialize the database and optionally seed it with articles from a YAML file."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from mdnotes.config import RunMode, get_log_config, get_store_config
from mdnotes.db.article_repo import ArticleRepository
from mdnotes.db.database import Database
from mdnotes.errors import MdNotesError, StoreConnectionError
from mdnotes.logging_config import configure_logging

logger = logging.getLogger("init_db")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Initialize the database")
    parser.add_argument("--seed", type=str, help="YAML file with article definitions")
    parser.add_argument("--db-path", type=str, help="Override database path")
    args = parser.parse_args(argv)

    configure_logging(get_log_config(RunMode.STANDALONE))
    cfg = get_store_config(RunMode.STANDALONE)
    db = Database(path=Path(args.db_path) if args.db_path else cfg.db_path, timeout=cfg.timeout)
    try:
        db.init()
    except StoreConnectionError as e:
        logger.error(f"Initialization failed: {e}")
        return 1
    print(f"Database initialized at: {db.path}")

    try:
        if args.seed:
            seed_articles(db, Path(args.seed))
        print(f"Articles in store: {ArticleRepository(db).count()}")
    finally:
        db.close()
    print("Done.")
    return 0


def seed_articles(db: Database, path: Path) -> int:
    """Create the articles (and their tags) listed under ``articles:``."""
    import yaml
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    repo = ArticleRepository(db)
    created = 0
    for a in data.get("articles", []):
        try:
            article = repo.create(a["title"], a.get("content", ""))
            for tag_name in a.get("tags", []):
                repo.add_tag(article.uuid, tag_name)
            created += 1
            print(f"  Created article: {article.title} ({article.uuid})")
        except (KeyError, MdNotesError) as e:
            print(f"  Skipping {a.get('title', '?')}: {e}")
    return created


if __name__ == "__main__":
    sys.exit(main())

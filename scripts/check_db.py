#!/usr/bin/env python3
"""Print every table in the database with its columns."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from mdnotes.config import RunMode, get_store_config
from mdnotes.db.database import Database
from mdnotes.db.schema import TABLES
from mdnotes.errors import MdNotesError


def describe(db: Database) -> dict[str, list[tuple[str, str]]]:
    tables = db.query_many(
        "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
    )
    report: dict[str, list[tuple[str, str]]] = {}
    for t in tables:
        # PRAGMA arguments cannot be bound; names come from sqlite_master
        cols = db.query_many(f"PRAGMA table_info({t['name']})")
        report[t["name"]] = [(c["name"], c["type"]) for c in cols]
    return report


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Verify the database schema")
    parser.add_argument("--db-path", type=str, help="Override database path")
    args = parser.parse_args(argv)

    path = Path(args.db_path) if args.db_path else get_store_config(RunMode.STANDALONE).db_path
    if not path.exists():
        print(f"Missing database: {path}")
        return 1
    db = Database(path=path)
    try:
        report = describe(db)
    except MdNotesError as e:
        print(f"Check failed: {e}")
        return 1
    finally:
        db.close()

    print(f"=== Schema: {path} ===")
    for name, cols in report.items():
        print(f"{name}:")
        for col_name, col_type in cols:
            print(f"   - {col_name} ({col_type})")

    missing = [t for t in TABLES if t not in report]
    if missing:
        print(f"Missing tables: {', '.join(missing)}")
        return 1
    print("Schema OK")
    return 0


if __name__ == "__main__":
    sys.exit(main())

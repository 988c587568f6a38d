"""SQLite database initialization and session management."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from sqlmodel import Session, SQLModel, create_engine

# Import models so SQLModel registers them
from trygo.storage import models as _models  # noqa: F401

logger = logging.getLogger(__name__)

_engines: dict[str, object] = {}

# Columns added after the first release of each table
_COLUMN_MIGRATIONS = [
    ("backlogidea", "scheduled_date", "TIMESTAMP"),
    ("contentitem", "image_url", "VARCHAR"),
    ("contentitem", "publish_date", "DATE"),
]


def _migrate_if_needed(db_path: Path) -> None:
    """Add any missing columns to existing tables (lightweight migration).

    Tables that do not exist yet are skipped; ``create_all`` builds them
    with the full schema.
    """
    if not db_path.exists():
        return

    conn = sqlite3.connect(str(db_path))
    try:
        existing: dict[str, set[str]] = {}
        for table, col, col_type in _COLUMN_MIGRATIONS:
            if table not in existing:
                cursor = conn.execute(f"PRAGMA table_info({table})")
                existing[table] = {row[1] for row in cursor.fetchall()}
            if existing[table] and col not in existing[table]:
                logger.info("Adding column %s.%s", table, col)
                conn.execute(f"ALTER TABLE {table} ADD COLUMN {col} {col_type}")
                existing[table].add(col)

        conn.commit()
    finally:
        conn.close()


def get_engine(db_path: Path):
    """Get or create a SQLAlchemy engine for the given database path."""
    key = str(db_path)
    if key not in _engines:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        _migrate_if_needed(db_path)
        engine = create_engine(f"sqlite:///{db_path}", echo=False)
        SQLModel.metadata.create_all(engine)
        _engines[key] = engine
    return _engines[key]


def get_session(db_path: Path) -> Session:
    """Create a new database session."""
    engine = get_engine(db_path)
    return Session(engine)

"""
Database connection and initialization.
"""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from vbm import config
from .schema import all_schema_sql

_db_path: Path | None = None


def set_db_path(path: str | Path) -> None:
    """Set the database path. Call before first get_connection if not using the configured one."""
    global _db_path
    _db_path = Path(path)


def get_db_path() -> Path:
    """Return the current database path (VBM_DB_PATH unless overridden)."""
    if _db_path is not None:
        return _db_path
    return config.DB_PATH


def get_connection(db_path: str | Path | None = None) -> sqlite3.Connection:
    """
    Return a new SQLite connection with foreign keys enforced.
    Use as context manager or ensure close() is called.
    """
    path = Path(db_path) if db_path else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """
    Group several repository writes (made with commit=False) into one unit.
    Commits when the block exits cleanly, rolls everything back if it raises.
    """
    try:
        yield conn
    except BaseException:
        conn.rollback()
        raise
    conn.commit()


def init_db(db_path: str | Path | None = None, seed_demo: bool = False, seed: int = 2024) -> None:
    """
    Create or ensure all tables exist.
    If seed_demo is set and the database has no leagues yet, load the demo leagues
    (uses vbm.persistence.seed).
    """
    conn = get_connection(db_path)
    try:
        conn.executescript(all_schema_sql())
        conn.commit()
        if seed_demo:
            from .seed import seed_demo_data
            if conn.execute("SELECT COUNT(*) FROM leagues").fetchone()[0] == 0:
                seed_demo_data(conn, seed=seed)
    finally:
        conn.close()

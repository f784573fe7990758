"""Database schema initialization."""
from __future__ import annotations

from src.shared.db.connection import ConnectionPool

HIERARCHY_TABLES: tuple[str, ...] = ("processes", "subprocesses", "use_cases")


def init_analyzer_db(pool: ConnectionPool) -> None:
    """Initialize the process / subprocess / use case schema."""
    conn = pool.get()
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS processes (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            description TEXT
        );

        CREATE TABLE IF NOT EXISTS subprocesses (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            process_id INTEGER NOT NULL REFERENCES processes(id),
            name TEXT NOT NULL,
            description TEXT
        );
        CREATE INDEX IF NOT EXISTS idx_subprocesses_process ON subprocesses(process_id);

        CREATE TABLE IF NOT EXISTS use_cases (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            subprocess_id INTEGER NOT NULL REFERENCES subprocesses(id),
            name TEXT NOT NULL,
            description TEXT,
            primary_actor TEXT,
            kind INTEGER NOT NULL DEFAULT 1 CHECK(kind BETWEEN 1 AND 3),
            preconditions TEXT,
            postconditions TEXT,
            acceptance_criteria TEXT
        );
        CREATE INDEX IF NOT EXISTS idx_use_cases_subprocess ON use_cases(subprocess_id);
    """)
    conn.commit()

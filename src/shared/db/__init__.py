"""Database connection pool and schema initialization."""

from src.shared.db.connection import ConnectionPool
from src.shared.db.schema import HIERARCHY_TABLES, init_analyzer_db

__all__ = [
    "ConnectionPool",
    "HIERARCHY_TABLES",
    "init_analyzer_db",
]

"""SQLite database engine and schema via SQLAlchemy Core."""

from xlog.infrastructure.database.engine import create_db_engine, db_path_for, init_database
from xlog.infrastructure.database.schema import (
    domains,
    elements,
    metadata,
    tasks,
    user,
    xp_log,
)

__all__ = [
    "create_db_engine",
    "db_path_for",
    "domains",
    "elements",
    "init_database",
    "metadata",
    "tasks",
    "user",
    "xp_log",
]

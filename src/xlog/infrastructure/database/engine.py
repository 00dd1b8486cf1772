"""Database engine setup for SQLite with WAL mode.

SQLite is the persistence layer: WAL mode for concurrent readers, foreign
keys on, and explicit ``BEGIN`` handling so write transactions can take
the write lock up front (``BEGIN IMMEDIATE``). The DB is stored at
``{data_dir}/xLog.db``.

SQLAlchemy Core (not ORM) is used because xlog is a short-lived CLI
process — no benefit from session management or identity maps.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Connection, Engine

from xlog.infrastructure.database.schema import metadata

DB_FILENAME = "xLog.db"

# Execution option read by the "begin" listener: DEFERRED or IMMEDIATE.
BEGIN_MODE_OPTION = "sqlite_begin_mode"


def db_path_for(data_dir: Path) -> Path:
    """Location of the database file inside *data_dir*."""
    return data_dir / DB_FILENAME


def create_db_engine(db_path: Path) -> Engine:
    """Create a SQLite engine with WAL mode and foreign keys enabled.

    pysqlite's implicit transaction handling is disabled so the ``begin``
    listener controls the ``BEGIN`` statement (and its locking mode).
    """
    engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _begin(conn: Connection) -> None:
        mode = conn.get_execution_options().get(BEGIN_MODE_OPTION, "DEFERRED")
        conn.exec_driver_sql(f"BEGIN {mode}")

    return engine


def init_database(data_dir: Path) -> Engine:
    """Initialize the xlog database at ``{data_dir}/xLog.db``.

    Creates the data directory layout (``backups/``, ``plugins/``) and all
    tables from :data:`schema.metadata`.

    Idempotent — safe to call on an existing database. Columns added after
    a database was created are handled by ``xlog upgrade``, not here.

    Returns the engine ready for use.
    """
    data_dir.mkdir(parents=True, exist_ok=True)
    (data_dir / "backups").mkdir(exist_ok=True)
    (data_dir / "plugins").mkdir(exist_ok=True)

    engine = create_db_engine(db_path_for(data_dir))
    metadata.create_all(engine)
    return engine

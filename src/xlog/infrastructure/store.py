"""Store — persistence gateway with scoped unit-of-work transactions.

The Store is the single dependency injected into every service. It owns
the SQLAlchemy engine and hands out :class:`StoreTransaction` objects that
expose the narrow read/write contract the engine needs (task and element
lookups, XP deltas, guarded penalty claims, history inserts).

- **Writes**: :meth:`Store.transaction` takes a process-level lock and
  opens a SQLite ``BEGIN IMMEDIATE`` transaction, so the write lock is held
  from the first read. Commit on success, rollback on any exception.
- **Reads**: :meth:`Store.read` opens a deferred transaction that is always
  rolled back.

INVARIANT: the two idempotence guards (one penalty per task per day, one
history row per day) are single conditional statements, never a separate
check followed by a later write.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, func, insert, or_, select, update
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from xlog.domain.models import Domain, Element, Profile, Task, XpHistoryEntry
from xlog.domain.types import TaskType
from xlog.infrastructure.database.engine import BEGIN_MODE_OPTION, db_path_for, init_database
from xlog.infrastructure.database.schema import (
    DOMAIN_XP_COLUMNS,
    domains,
    elements,
    tasks,
    user,
    xp_log,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy import Connection, Row
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

# Task model field -> tasks column
_TASK_COLUMNS: dict[str, str] = {
    "name": "name",
    "type": "type",
    "frequency_days": "frequency",
    "major_element_id": "major_elem",
    "minor_element_id": "minor_elem",
    "last_done": "last_done",
    "streak": "streak",
    "active": "active",
    "last_penalty_date": "last_penalty_date",
}


def _parse_date(raw: str | None) -> date | None:
    if not raw:
        return None
    return date.fromisoformat(raw)


def _task_from_row(row: Row[Any]) -> Task:
    return Task(
        id=row.id,
        name=row.name,
        type=TaskType(row.type),
        frequency_days=row.frequency,
        major_element_id=row.major_elem,
        minor_element_id=row.minor_elem,
        last_done=_parse_date(row.last_done),
        streak=row.streak,
        active=bool(row.active),
        last_penalty_date=_parse_date(row.last_penalty_date),
    )


def _element_from_row(row: Row[Any]) -> Element:
    return Element(
        id=row.id,
        domain_id=row.domain_id,
        name=row.name,
        is_focus=bool(row.is_focus),
        xp=row.xp,
    )


def _column_value(field_name: str, value: Any) -> Any:
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, TaskType):
        return value.value
    if field_name == "active":
        return 1 if value else 0
    return value


# ---------------------------------------------------------------------------
# StoreTransaction: yielded to callers within transaction() / read()
# ---------------------------------------------------------------------------


@dataclass
class StoreTransaction:
    """Active unit of work over one database connection."""

    conn: Connection

    # -- profile & taxonomy ------------------------------------------------

    def get_profile(self) -> Profile | None:
        row = self.conn.execute(select(user).where(user.c.id == 1)).first()
        if row is None:
            return None
        created = _parse_date(row.created_at)
        assert created is not None
        return Profile(user_name=row.name, created_at=created)

    def insert_profile(self, user_name: str, created_at: date) -> None:
        self.conn.execute(
            insert(user).values(id=1, name=user_name, created_at=created_at.isoformat())
        )

    def list_domains(self) -> list[Domain]:
        """All domains in creation order."""
        rows = self.conn.execute(select(domains).order_by(domains.c.id)).fetchall()
        return [Domain(id=r.id, name=r.name) for r in rows]

    def get_domain_by_name(self, name: str) -> Domain | None:
        row = self.conn.execute(select(domains).where(domains.c.name == name)).first()
        return Domain(id=row.id, name=row.name) if row is not None else None

    def insert_domain(self, name: str) -> int:
        result = self.conn.execute(insert(domains).values(name=name))
        return int(result.inserted_primary_key[0])

    def insert_element(self, domain_id: int, name: str) -> int:
        result = self.conn.execute(insert(elements).values(domain_id=domain_id, name=name))
        return int(result.inserted_primary_key[0])

    def get_element(self, element_id: int) -> Element | None:
        row = self.conn.execute(select(elements).where(elements.c.id == element_id)).first()
        return _element_from_row(row) if row is not None else None

    def list_elements(self, domain_id: int | None = None) -> list[Element]:
        stmt = select(elements).order_by(elements.c.id)
        if domain_id is not None:
            stmt = stmt.where(elements.c.domain_id == domain_id)
        return [_element_from_row(r) for r in self.conn.execute(stmt).fetchall()]

    def find_elements_by_name(self, name: str) -> list[Element]:
        """Resolve an element name, optionally qualified as ``Domain/Element``.

        Element names are unique only within a domain, so more than one
        match is possible for an unqualified name.
        """
        if "/" in name:
            domain_name, element_name = name.split("/", 1)
            domain = self.get_domain_by_name(domain_name)
            if domain is not None:
                rows = self.conn.execute(
                    select(elements).where(
                        elements.c.domain_id == domain.id,
                        elements.c.name == element_name,
                    )
                ).fetchall()
                return [_element_from_row(r) for r in rows]
        rows = self.conn.execute(
            select(elements).where(elements.c.name == name).order_by(elements.c.id)
        ).fetchall()
        return [_element_from_row(r) for r in rows]

    # -- element mutations -------------------------------------------------

    def update_element_xp(self, element_id: int, delta: int) -> None:
        """Add *delta* (may be negative) to an element's running XP total."""
        self.conn.execute(
            update(elements).where(elements.c.id == element_id).values(xp=elements.c.xp + delta)
        )

    def set_focus_element(self, domain_id: int, element_id: int) -> None:
        """Make *element_id* the only focus element of *domain_id*."""
        self.conn.execute(
            update(elements).where(elements.c.domain_id == domain_id).values(is_focus=0)
        )
        self.conn.execute(update(elements).where(elements.c.id == element_id).values(is_focus=1))

    # -- tasks -------------------------------------------------------------

    def get_task(self, task_id: int) -> Task | None:
        row = self.conn.execute(select(tasks).where(tasks.c.id == task_id)).first()
        return _task_from_row(row) if row is not None else None

    def get_task_by_name(self, name: str) -> Task | None:
        row = self.conn.execute(select(tasks).where(tasks.c.name == name)).first()
        return _task_from_row(row) if row is not None else None

    def list_tasks(self, *, active_only: bool = False) -> list[Task]:
        stmt = select(tasks).order_by(tasks.c.id)
        if active_only:
            stmt = stmt.where(tasks.c.active == 1)
        return [_task_from_row(r) for r in self.conn.execute(stmt).fetchall()]

    def insert_task(
        self,
        name: str,
        task_type: TaskType,
        frequency_days: int,
        major_element_id: int,
        minor_element_id: int,
    ) -> int:
        result = self.conn.execute(
            insert(tasks).values(
                name=name,
                type=task_type.value,
                frequency=frequency_days,
                major_elem=major_element_id,
                minor_elem=minor_element_id,
            )
        )
        return int(result.inserted_primary_key[0])

    def update_task(self, task_id: int, **fields: Any) -> bool:
        """Update task fields by model field name. Returns False if no row matched."""
        values: dict[str, Any] = {}
        for field_name, value in fields.items():
            column = _TASK_COLUMNS.get(field_name)
            if column is None:
                msg = f"Unknown task field: {field_name}"
                raise KeyError(msg)
            values[column] = _column_value(field_name, value)
        if not values:
            return False
        result = self.conn.execute(update(tasks).where(tasks.c.id == task_id).values(**values))
        return result.rowcount > 0

    def delete_task(self, task_id: int) -> bool:
        result = self.conn.execute(delete(tasks).where(tasks.c.id == task_id))
        return result.rowcount > 0

    def list_active_overdue_unpenalized_tasks(self, today: date) -> list[Task]:
        """Active recurring tasks past their due date and not yet penalized today."""
        today_iso = today.isoformat()
        rows = self.conn.execute(
            select(tasks)
            .where(
                tasks.c.active == 1,
                tasks.c.frequency > 0,
                tasks.c.last_done.is_not(None),
                or_(
                    tasks.c.last_penalty_date.is_(None),
                    tasks.c.last_penalty_date != today_iso,
                ),
            )
            .order_by(tasks.c.id)
        ).fetchall()
        return [t for t in map(_task_from_row, rows) if t.is_overdue(today)]

    def claim_penalty(self, task_id: int, today: date) -> bool:
        """Atomically mark a task penalized for *today*.

        Returns True only for the caller whose UPDATE flipped the date,
        so the XP deduction is applied at most once per task per day.
        """
        today_iso = today.isoformat()
        result = self.conn.execute(
            update(tasks)
            .where(
                tasks.c.id == task_id,
                or_(
                    tasks.c.last_penalty_date.is_(None),
                    tasks.c.last_penalty_date != today_iso,
                ),
            )
            .values(last_penalty_date=today_iso)
        )
        return result.rowcount == 1

    # -- aggregates & history ------------------------------------------------

    def sum_element_xp_by_domain(self, domain_id: int) -> float:
        total = self.conn.execute(
            select(func.coalesce(func.sum(elements.c.xp), 0)).where(
                elements.c.domain_id == domain_id
            )
        ).scalar_one()
        return float(total)

    def domain_xp_sums(self) -> list[tuple[Domain, float]]:
        """XP totals of the first four domains, in creation order."""
        return [(d, self.sum_element_xp_by_domain(d.id)) for d in self.list_domains()[:4]]

    def xp_history_exists(self, day: date) -> bool:
        row = self.conn.execute(select(xp_log.c.id).where(xp_log.c.date == day.isoformat())).first()
        return row is not None

    def insert_xp_history(self, entry: XpHistoryEntry) -> bool:
        """Insert a snapshot row; returns False if *entry.date* already exists."""
        values: dict[str, Any] = {
            "date": entry.date.isoformat(),
            "profile_xp": entry.profile_xp,
        }
        values.update(zip(DOMAIN_XP_COLUMNS, entry.domain_xp, strict=True))
        result = self.conn.execute(
            sqlite_insert(xp_log).values(**values).on_conflict_do_nothing(index_elements=["date"])
        )
        return result.rowcount == 1

    def list_xp_history(self, *, limit: int | None = None) -> list[XpHistoryEntry]:
        """Snapshots newest first."""
        stmt = select(xp_log).order_by(xp_log.c.date.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        entries: list[XpHistoryEntry] = []
        for row in self.conn.execute(stmt).fetchall():
            day = _parse_date(row.date)
            assert day is not None
            entries.append(
                XpHistoryEntry(
                    date=day,
                    profile_xp=row.profile_xp,
                    domain_xp=tuple(getattr(row, c) for c in DOMAIN_XP_COLUMNS),
                )
            )
        return entries


# ---------------------------------------------------------------------------
# Store: the persistence gateway
# ---------------------------------------------------------------------------


class Store:
    """Persistence gateway owning the engine and its transaction boundary.

    Constructed once at CLI startup from the resolved data directory and
    stored on the Click context. Services receive the Store via their
    :class:`BaseService` constructor.
    """

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = data_dir
        self._engine: Engine = init_database(data_dir)
        self._lock = threading.Lock()
        self._event_bus: Any | None = None

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    @property
    def db_path(self) -> Path:
        return db_path_for(self._data_dir)

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine (for direct access when needed)."""
        return self._engine

    @property
    def event_bus(self) -> Any | None:
        """The plugin event bus (None if not initialized)."""
        return self._event_bus

    def init_event_bus(self, *, sync: bool = False, local_plugins: bool = True) -> None:
        """Create the plugin manager, discover plugins, and wire the event bus."""
        from xlog.plugins.event_bus import EventBus
        from xlog.plugins.manager import PluginManager

        pm = PluginManager()
        pm.discover_and_load(local_dir=self._data_dir / "plugins" if local_plugins else None)
        self._event_bus = EventBus(pm, sync=sync)

    def close(self) -> None:
        """Wait for pending plugin events and release pooled connections."""
        if self._event_bus is not None:
            self._event_bus.shutdown()
            self._event_bus = None
        self._engine.dispose()

    @contextmanager
    def transaction(self) -> Iterator[StoreTransaction]:
        """Scoped write unit of work.

        Holds the process lock and the SQLite write lock (``BEGIN
        IMMEDIATE``) for the whole block: every read inside sees a state
        no other writer can change before commit. Commits when the block
        exits normally, rolls back on any exception.

        Usage::

            with store.transaction() as txn:
                task = txn.get_task(task_id)
                txn.update_element_xp(task.major_element_id, 10)
                txn.update_task(task_id, streak=task.streak + 1)
                # All commit together, or none do.
        """
        with self._lock, self._engine.connect() as conn:
            conn.execution_options(**{BEGIN_MODE_OPTION: "IMMEDIATE"})
            with conn.begin():
                yield StoreTransaction(conn=conn)

    @contextmanager
    def read(self) -> Iterator[StoreTransaction]:
        """Read-only view; never commits."""
        with self._engine.connect() as conn:
            yield StoreTransaction(conn=conn)

"""SQLAlchemy Core table definitions for the xlog database.

Table and column names match the databases written by earlier xLog
releases so an existing ``xLog.db`` can be opened (and upgraded) in place.
Dates are ISO ``YYYY-MM-DD`` text.
"""

from __future__ import annotations

from sqlalchemy import (
    REAL,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    UniqueConstraint,
)

metadata = MetaData()

user = Table(
    "user",
    metadata,
    Column("id", Integer, primary_key=True),
    Column("name", Text, nullable=False),
    Column("created_at", Text, nullable=False),
    CheckConstraint("id = 1", name="ck_user_singleton"),
)

domains = Table(
    "domains",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", Text, nullable=False, unique=True),
)

elements = Table(
    "elements",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "domain_id",
        Integer,
        ForeignKey("domains.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("name", Text, nullable=False),
    Column("is_focus", Integer, nullable=False, default=0, server_default="0"),
    Column("xp", Integer, nullable=False, default=0, server_default="0"),
    UniqueConstraint("domain_id", "name"),
)

tasks = Table(
    "tasks",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", Text, nullable=False, unique=True),
    Column("type", Text, nullable=False),  # quick | session | grind
    Column("frequency", Integer, nullable=False),  # days, 0 = one-time
    Column("major_elem", Integer, ForeignKey("elements.id"), nullable=False),
    Column("minor_elem", Integer, ForeignKey("elements.id"), nullable=False),
    Column("last_done", Text),
    Column("streak", Integer, nullable=False, default=0, server_default="0"),
    Column("active", Integer, nullable=False, default=1, server_default="1"),
    Column("last_penalty_date", Text),
)

xp_log = Table(
    "xp_log",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("date", Text, nullable=False, unique=True),
    Column("profile_xp", REAL, nullable=False),
    Column("domain1_xp", REAL, nullable=False),
    Column("domain2_xp", REAL, nullable=False),
    Column("domain3_xp", REAL, nullable=False),
    Column("domain4_xp", REAL, nullable=False),
)

# ---------------------------------------------------------------------------
# Indexes for frequently filtered columns
# ---------------------------------------------------------------------------

Index("ix_elements_domain", elements.c.domain_id)
Index("ix_elements_name", elements.c.name)
Index("ix_tasks_active", tasks.c.active)

DOMAIN_XP_COLUMNS = ("domain1_xp", "domain2_xp", "domain3_xp", "domain4_xp")

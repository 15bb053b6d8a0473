"""
Store wiring for each backend.

Schemas are listed in foreign-key order: users first, tasks last.
"""

from __future__ import annotations

from planner.core import config
from planner.core.db import Database, PostgresStore
from planner.core.memory import MemoryBackend
from planner.core.store import EntitySchema, Stores
from planner.lists.repository import LIST_SCHEMA
from planner.notes.repository import NOTE_SCHEMA
from planner.tags.repository import TAG_SCHEMA
from planner.tasks.repository import TASK_SCHEMA
from planner.users.repository import USER_SCHEMA

SCHEMAS: list[EntitySchema] = [USER_SCHEMA, LIST_SCHEMA, TAG_SCHEMA, NOTE_SCHEMA, TASK_SCHEMA]


def memory_stores() -> Stores:
    backend = MemoryBackend()
    return Stores(
        users=backend.store(USER_SCHEMA),
        lists=backend.store(LIST_SCHEMA),
        tags=backend.store(TAG_SCHEMA),
        notes=backend.store(NOTE_SCHEMA),
        tasks=backend.store(TASK_SCHEMA),
        transaction=backend.transaction,
    )


def postgres_stores(db: Database) -> Stores:
    return Stores(
        users=PostgresStore(db, USER_SCHEMA),
        lists=PostgresStore(db, LIST_SCHEMA),
        tags=PostgresStore(db, TAG_SCHEMA),
        notes=PostgresStore(db, NOTE_SCHEMA),
        tasks=PostgresStore(db, TASK_SCHEMA),
        transaction=db.transaction,
    )


async def open_stores(db: Database | None = None) -> Stores:
    """
    Build stores for the backend selected by PLANNER_STORE.

    For PostgreSQL the pool is connected and the schema ensured; the caller
    owns `db` and closes it on shutdown.
    """
    if config.store_backend() == "memory":
        return memory_stores()

    if db is None:
        raise RuntimeError("A Database is required for the postgres store backend.")
    await db.connect()
    await db.init_schema(SCHEMAS)
    return postgres_stores(db)

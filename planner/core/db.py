"""
Async PostgreSQL access (raw SQL) using asyncpg.

`Database` owns the connection pool; whoever embeds the data-access layer
connects it on startup and closes it on shutdown. `PostgresStore` implements the
entity store contract for one table described by an `EntitySchema`.

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...

Connection setup registers codecs so `uuid` columns travel as text and `jsonb`
columns as plain Python lists/dicts.
"""

from __future__ import annotations

import json
import logging
import os
import re
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Any, AsyncIterator
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import asyncpg

from . import config
from .errors import duplicate_key, related_missing
from .ids import new_id
from .store import DeleteResult, EntitySchema, EntityStore, Filter, UpdateResult

logger = logging.getLogger(__name__)

_KEY_DETAIL = re.compile(r"Key \((?P<columns>[^)]*)\)=")


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url() -> str:
    url = os.environ.get("DATABASE_URL", "").strip()
    if not url:
        raise RuntimeError("DATABASE_URL is not set.")
    return _sanitize_database_url(url)


async def _init_connection(conn: asyncpg.Connection) -> None:
    await conn.set_type_codec("uuid", encoder=str, decoder=str, schema="pg_catalog", format="text")
    await conn.set_type_codec(
        "jsonb",
        encoder=lambda value: json.dumps(value, ensure_ascii=True),
        decoder=json.loads,
        schema="pg_catalog",
    )


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


def _affected_rows(status: str) -> int:
    """
    Parse the row count from a command tag such as "UPDATE 3" or "DELETE 1".
    """
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (ValueError, IndexError):
        return 0


def _detail_columns(exc: asyncpg.PostgresError) -> list[str]:
    match = _KEY_DETAIL.search(getattr(exc, "detail", None) or "")
    if match is None:
        return []
    return [column.strip() for column in match.group("columns").split(",")]


class Database:
    def __init__(self, dsn: str | None = None) -> None:
        self._dsn = dsn
        self._pool: asyncpg.Pool | None = None
        self._tx_conn: ContextVar[asyncpg.Connection | None] = ContextVar(f"planner_tx_{id(self)}", default=None)

    async def connect(self) -> None:
        if self._pool is not None:
            return None
        self._pool = await asyncpg.create_pool(
            dsn=self._dsn or database_url(),
            min_size=config.pool_min_size(),
            max_size=config.pool_max_size(),
            command_timeout=config.command_timeout_s(),
            init=_init_connection,
        )

    async def close(self) -> None:
        if self._pool is None:
            return None
        await self._pool.close()
        self._pool = None

    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise RuntimeError("DB pool is not initialized. Call connect() on startup.")
        return self._pool

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[asyncpg.Connection]:
        # Statements issued inside transaction() reuse its connection.
        conn = self._tx_conn.get()
        if conn is not None:
            yield conn
            return
        async with self.pool().acquire() as conn:
            yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """
        Run every statement issued inside the block on one connection, atomically.

        Nested calls become savepoints on the outer connection.
        """
        conn = self._tx_conn.get()
        if conn is not None:
            async with conn.transaction():
                yield
            return

        async with self.pool().acquire() as conn:
            async with conn.transaction():
                token = self._tx_conn.set(conn)
                try:
                    yield
                finally:
                    self._tx_conn.reset(token)

    async def fetch_one(self, sql: str, *args: Any) -> dict[str, Any] | None:
        """
        Run a query and return a single row as a dict (or None).
        """
        async with self._connection() as conn:
            row = await conn.fetchrow(sql, *args)
        return _record_to_dict(row) if row is not None else None

    async def fetch_all(self, sql: str, *args: Any) -> list[dict[str, Any]]:
        """
        Run a query and return all rows as a list of dicts.
        """
        async with self._connection() as conn:
            rows = await conn.fetch(sql, *args)
        return [_record_to_dict(r) for r in rows]

    async def execute(self, sql: str, *args: Any) -> str:
        """
        Run a statement (INSERT/UPDATE/DELETE/DDL) and return its command tag.
        """
        async with self._connection() as conn:
            return await conn.execute(sql, *args)

    async def init_schema(self, schemas: list[EntitySchema]) -> None:
        """
        Create tables and indexes in the given (dependency) order.
        """
        async with self.transaction():
            for schema in schemas:
                await self.execute(schema.ddl)
                logger.info("Ensured table %s", schema.table)


def build_where(schema: EntitySchema, flt: Filter, *, start: int = 1) -> tuple[str, list[Any]]:
    """
    Translate a `Filter` into a WHERE clause and its positional arguments.

    Column names come from the schema whitelist, values are always parameters.
    """
    schema.check_columns(flt.columns)
    clauses: list[str] = []
    args: list[Any] = []

    for column, value in flt.equals.items():
        if value is None:
            clauses.append(f"{column} IS NULL")
            continue
        args.append(value)
        clauses.append(f"{column} = ${start + len(args) - 1}")

    for column, (low, high) in flt.ranges.items():
        if low is None and high is None:
            clauses.append(f"{column} IS NOT NULL")
        if low is not None:
            args.append(low)
            clauses.append(f"{column} >= ${start + len(args) - 1}")
        if high is not None:
            args.append(high)
            clauses.append(f"{column} <= ${start + len(args) - 1}")

    if not clauses:
        return "", args
    return "WHERE " + "\n  AND ".join(clauses), args


def build_set(patch: dict[str, Any], *, start: int) -> tuple[str, list[Any]]:
    assignments = [f"{column} = ${start + i}" for i, column in enumerate(patch)]
    assignments.append("updated_at = now()")
    return ",\n    ".join(assignments), list(patch.values())


class PostgresStore(EntityStore):
    def __init__(self, db: Database, schema: EntitySchema) -> None:
        super().__init__(schema)
        self._db = db
        self._select_list = ", ".join(schema.all_columns)

    async def find_by_id(self, entity_id: str) -> dict[str, Any] | None:
        return await self._db.fetch_one(
            f"""
            SELECT {self._select_list}
            FROM {self.schema.table}
            WHERE id = $1
            """,
            entity_id,
        )

    async def find_by_ids(self, entity_ids: list[str]) -> list[dict[str, Any]]:
        if not entity_ids:
            return []
        return await self._db.fetch_all(
            f"""
            SELECT {self._select_list}
            FROM {self.schema.table}
            WHERE id = ANY($1::uuid[])
            ORDER BY seq
            """,
            list(entity_ids),
        )

    async def find_many(self, flt: Filter, *, skip: int = 0, limit: int | None = None) -> list[dict[str, Any]]:
        where, args = build_where(self.schema, flt)
        args.extend([limit, skip])
        return await self._db.fetch_all(
            f"""
            SELECT {self._select_list}
            FROM {self.schema.table}
            {where}
            ORDER BY seq
            LIMIT ${len(args) - 1}
            OFFSET ${len(args)}
            """,
            *args,
        )

    async def count(self, flt: Filter) -> int:
        where, args = build_where(self.schema, flt)
        row = await self._db.fetch_one(
            f"""
            SELECT count(*) AS n
            FROM {self.schema.table}
            {where}
            """,
            *args,
        )
        return int((row or {}).get("n", 0))

    async def create(self, data: dict[str, Any]) -> dict[str, Any]:
        row = self.schema.prepare_insert(data)
        row["id"] = row["id"] or new_id()
        columns = list(row)
        placeholders = ", ".join(f"${i}" for i in range(1, len(columns) + 1))
        try:
            created = await self._db.fetch_one(
                f"""
                INSERT INTO {self.schema.table} ({", ".join(columns)})
                VALUES ({placeholders})
                RETURNING {self._select_list}
                """,
                *row.values(),
            )
        except asyncpg.UniqueViolationError as exc:
            raise duplicate_key(_detail_columns(exc) or ["id"]) from exc
        except asyncpg.ForeignKeyViolationError as exc:
            columns = _detail_columns(exc)
            field = columns[0] if columns else "reference"
            raise related_missing(field, row.get(field)) from exc
        if created is None:
            raise RuntimeError(f"Failed to insert {self.schema.name}.")
        return created

    async def update_one(self, entity_id: str, patch: dict[str, Any]) -> UpdateResult:
        changes = self.schema.prepare_patch(patch)
        assignments, args = build_set(changes, start=2)
        try:
            row = await self._db.fetch_one(
                f"""
                UPDATE {self.schema.table}
                SET {assignments}
                WHERE id = $1
                RETURNING id
                """,
                entity_id,
                *args,
            )
        except asyncpg.UniqueViolationError as exc:
            raise duplicate_key(_detail_columns(exc)) from exc
        except asyncpg.ForeignKeyViolationError as exc:
            columns = _detail_columns(exc)
            field = columns[0] if columns else "reference"
            raise related_missing(field, changes.get(field)) from exc
        matched = 0 if row is None else 1
        return UpdateResult(matched_count=matched, modified_count=matched)

    async def update_many(self, flt: Filter, patch: dict[str, Any]) -> int:
        changes = self.schema.prepare_patch(patch)
        assignments, set_args = build_set(changes, start=1)
        where, where_args = build_where(self.schema, flt, start=len(set_args) + 1)
        status = await self._db.execute(
            f"""
            UPDATE {self.schema.table}
            SET {assignments}
            {where}
            """,
            *set_args,
            *where_args,
        )
        return _affected_rows(status)

    async def delete_one(self, entity_id: str) -> DeleteResult:
        status = await self._db.execute(
            f"""
            DELETE FROM {self.schema.table}
            WHERE id = $1
            """,
            entity_id,
        )
        return DeleteResult(acknowledged=status.startswith("DELETE"), deleted_count=_affected_rows(status))

    async def delete_many(self, flt: Filter) -> int:
        where, args = build_where(self.schema, flt)
        status = await self._db.execute(
            f"""
            DELETE FROM {self.schema.table}
            {where}
            """,
            *args,
        )
        return _affected_rows(status)

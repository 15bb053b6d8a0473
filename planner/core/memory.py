"""
In-memory entity store.

Used by the test suite and for local runs without PostgreSQL
(`PLANNER_STORE=memory`). Records are kept in insertion order and handed out as
deep copies, so callers can never mutate stored state by accident.
"""

from __future__ import annotations

import asyncio
import copy
from contextlib import asynccontextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, AsyncIterator

from .errors import duplicate_key
from .ids import new_id
from .store import DeleteResult, EntitySchema, EntityStore, Filter, UpdateResult


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def matches(record: dict[str, Any], flt: Filter) -> bool:
    for column, expected in flt.equals.items():
        if record.get(column) != expected:
            return False
    for column, (low, high) in flt.ranges.items():
        value = record.get(column)
        if value is None:
            return False
        if low is not None and value < low:
            return False
        if high is not None and value > high:
            return False
    return True


class MemoryBackend:
    """
    Owns every in-memory store and gives them a shared transaction.

    Transactions are serialized with a lock; on error all stores are restored
    to the snapshot taken when the outermost transaction began.
    """

    def __init__(self) -> None:
        self._stores: list[MemoryStore] = []
        self._lock = asyncio.Lock()
        self._in_transaction: ContextVar[bool] = ContextVar(f"planner_memory_tx_{id(self)}", default=False)

    def store(self, schema: EntitySchema) -> MemoryStore:
        store = MemoryStore(schema)
        self._stores.append(store)
        return store

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        if self._in_transaction.get():
            yield
            return

        async with self._lock:
            snapshot = [copy.deepcopy(store.records) for store in self._stores]
            token = self._in_transaction.set(True)
            try:
                yield
            except BaseException:
                for store, records in zip(self._stores, snapshot):
                    store.records = records
                raise
            finally:
                self._in_transaction.reset(token)


class MemoryStore(EntityStore):
    def __init__(self, schema: EntitySchema) -> None:
        super().__init__(schema)
        self.records: dict[str, dict[str, Any]] = {}

    def _select(self, flt: Filter) -> list[dict[str, Any]]:
        self.schema.check_columns(flt.columns)
        return [record for record in self.records.values() if matches(record, flt)]

    def _check_unique(self, row: dict[str, Any], *, ignore_id: str | None = None) -> None:
        if ignore_id is None and row["id"] in self.records:
            raise duplicate_key(["id"])
        taken = [
            column
            for column in self.schema.unique
            if row.get(column) is not None
            and any(
                other.get(column) == row[column]
                for other_id, other in self.records.items()
                if other_id != (ignore_id or row["id"])
            )
        ]
        if taken:
            raise duplicate_key(taken)

    async def find_by_id(self, entity_id: str) -> dict[str, Any] | None:
        record = self.records.get(entity_id)
        return copy.deepcopy(record) if record is not None else None

    async def find_by_ids(self, entity_ids: list[str]) -> list[dict[str, Any]]:
        wanted = set(entity_ids)
        return [copy.deepcopy(record) for record_id, record in self.records.items() if record_id in wanted]

    async def find_many(self, flt: Filter, *, skip: int = 0, limit: int | None = None) -> list[dict[str, Any]]:
        selected = self._select(flt)
        end = None if limit is None else skip + limit
        return copy.deepcopy(selected[skip:end])

    async def count(self, flt: Filter) -> int:
        return len(self._select(flt))

    async def create(self, data: dict[str, Any]) -> dict[str, Any]:
        row = self.schema.prepare_insert(data)
        row["id"] = row["id"] or new_id()
        self._check_unique(row)

        now = _utc_now()
        row["created_at"] = now
        row["updated_at"] = now
        self.records[row["id"]] = row
        return copy.deepcopy(row)

    async def update_one(self, entity_id: str, patch: dict[str, Any]) -> UpdateResult:
        record = self.records.get(entity_id)
        if record is None:
            return UpdateResult(matched_count=0, modified_count=0)

        changes = self.schema.prepare_patch(patch)
        self._check_unique({**record, **changes}, ignore_id=entity_id)
        record.update(copy.deepcopy(changes))
        record["updated_at"] = _utc_now()
        return UpdateResult(matched_count=1, modified_count=1)

    async def update_many(self, flt: Filter, patch: dict[str, Any]) -> int:
        changes = self.schema.prepare_patch(patch)
        selected = self._select(flt)
        now = _utc_now()
        for record in selected:
            record.update(copy.deepcopy(changes))
            record["updated_at"] = now
        return len(selected)

    async def delete_one(self, entity_id: str) -> DeleteResult:
        removed = self.records.pop(entity_id, None)
        return DeleteResult(acknowledged=True, deleted_count=0 if removed is None else 1)

    async def delete_many(self, flt: Filter) -> int:
        selected = [record["id"] for record in self._select(flt)]
        for record_id in selected:
            del self.records[record_id]
        return len(selected)

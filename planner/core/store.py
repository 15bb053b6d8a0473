"""
Entity store contract shared by the PostgreSQL and in-memory backends.

A store owns persisted records of one entity kind and knows nothing about
callers, ownership or other kinds. Records travel as plain dicts keyed by
column name. Cross-entity rules live in `planner.relations`.
"""

from __future__ import annotations

import abc
import copy
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from typing import Any, Callable

ID_COLUMN = "id"
TIMESTAMP_COLUMNS = ("created_at", "updated_at")


@dataclass(frozen=True)
class EntitySchema:
    """
    Static description of one entity kind.

    `columns` are the writable columns (everything except id and timestamps).
    `defaults` are applied on create for missing columns; values are deep-copied
    so mutable defaults are never shared between records.
    """

    name: str
    table: str
    columns: tuple[str, ...]
    defaults: dict[str, Any] = field(default_factory=dict)
    unique: tuple[str, ...] = ()
    ddl: str = ""

    @property
    def all_columns(self) -> tuple[str, ...]:
        return (ID_COLUMN, *self.columns, *TIMESTAMP_COLUMNS)

    def check_columns(self, names: Any) -> None:
        unknown = sorted(set(names) - set(self.all_columns))
        if unknown:
            raise RuntimeError(f"Unknown {self.name} columns: {unknown}")

    def prepare_insert(self, data: dict[str, Any]) -> dict[str, Any]:
        self.check_columns(data)
        row = {ID_COLUMN: data.get(ID_COLUMN)}
        for column in self.columns:
            if column in data:
                row[column] = data[column]
            else:
                row[column] = copy.deepcopy(self.defaults.get(column))
        return row

    def prepare_patch(self, patch: dict[str, Any]) -> dict[str, Any]:
        self.check_columns(patch)
        return {key: value for key, value in patch.items() if key in self.columns}


@dataclass(frozen=True)
class Filter:
    """
    Conjunctive filter: exact matches plus inclusive ranges.

    A `None` in `equals` matches a null column. Either range bound may be
    `None`; a record whose column is null never satisfies a range.
    """

    equals: dict[str, Any] = field(default_factory=dict)
    ranges: dict[str, tuple[Any, Any]] = field(default_factory=dict)

    @property
    def columns(self) -> set[str]:
        return set(self.equals) | set(self.ranges)


def by_owner(owner_id: str, **equals: Any) -> Filter:
    return Filter(equals={"owner_id": owner_id, **equals})


@dataclass(frozen=True)
class UpdateResult:
    matched_count: int
    modified_count: int


@dataclass(frozen=True)
class DeleteResult:
    acknowledged: bool
    deleted_count: int


class EntityStore(abc.ABC):
    def __init__(self, schema: EntitySchema) -> None:
        self.schema = schema

    @abc.abstractmethod
    async def find_by_id(self, entity_id: str) -> dict[str, Any] | None: ...

    @abc.abstractmethod
    async def find_by_ids(self, entity_ids: list[str]) -> list[dict[str, Any]]: ...

    @abc.abstractmethod
    async def find_many(self, flt: Filter, *, skip: int = 0, limit: int | None = None) -> list[dict[str, Any]]: ...

    @abc.abstractmethod
    async def count(self, flt: Filter) -> int: ...

    @abc.abstractmethod
    async def create(self, data: dict[str, Any]) -> dict[str, Any]: ...

    @abc.abstractmethod
    async def update_one(self, entity_id: str, patch: dict[str, Any]) -> UpdateResult: ...

    @abc.abstractmethod
    async def update_many(self, flt: Filter, patch: dict[str, Any]) -> int: ...

    @abc.abstractmethod
    async def delete_one(self, entity_id: str) -> DeleteResult: ...

    @abc.abstractmethod
    async def delete_many(self, flt: Filter) -> int: ...


@dataclass
class Stores:
    """
    One store per entity kind plus the backend's transaction factory.
    """

    users: EntityStore
    lists: EntityStore
    tags: EntityStore
    notes: EntityStore
    tasks: EntityStore
    transaction: Callable[[], AbstractAsyncContextManager[None]]

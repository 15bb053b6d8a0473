"""
Task business logic.

On top of the shared owned-resource operations, tasks:
- reference an optional list and tag, checked on every write of the reference
- come back with the referenced list/tag joined in as {id, heading, color}
- can be filtered by done flag, due-date range, list or tag
- toggle their done flag
"""

from __future__ import annotations

from typing import Any

from planner.core.guard import ensure_updated
from planner.core.ids import is_valid_id
from planner.core.service import OwnedResourceService, page_window
from planner.core.store import DeleteResult, Filter, UpdateResult, by_owner

from . import schemas

RELATION_FIELDS = ("list_id", "tag_id")


def _validate_relation_ids(fields: dict[str, Any]) -> None:
    for field in RELATION_FIELDS:
        if fields.get(field) is not None:
            is_valid_id(fields[field])


def build_filter(query: schemas.TaskQuery) -> Filter:
    equals: dict[str, Any] = {"owner_id": query.owner_id}
    if query.done is not None:
        equals["done"] = query.done

    ranges: dict[str, tuple[Any, Any]] = {}
    if query.due_date_from is not None or query.due_date_to is not None:
        ranges["due_date"] = (query.due_date_from, query.due_date_to)
    return Filter(equals=equals, ranges=ranges)


class TaskService(OwnedResourceService):
    create_model = schemas.TaskCreate
    update_model = schemas.TaskUpdate

    async def _present(self, entities: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return await self._relations.populate_tasks(entities)

    def _validate_record(self, data: schemas.TaskCreate) -> dict[str, Any]:
        record = super()._validate_record(data)
        _validate_relation_ids(record)
        return record

    async def _create(self, record: dict[str, Any]) -> dict[str, Any]:
        return await self._relations.create_task(record)

    async def _update(self, entity_id: str, changes: dict[str, Any], owner_id: str) -> UpdateResult:
        _validate_relation_ids(changes)
        return await self._relations.update_task(entity_id, owner_id, changes)

    async def _delete(self, entity_id: str) -> DeleteResult:
        return await self._relations.delete_task(entity_id)

    async def _page(self, per_page: int, page: int, flt: Filter) -> list[dict[str, Any]]:
        skip, limit = page_window(per_page, page)
        rows = await self._store.find_many(flt, skip=skip, limit=limit)
        return await self._present(rows)

    async def get_all(
        self, per_page: int, page: int, query: schemas.TaskQuery | dict[str, Any]
    ) -> list[dict[str, Any]]:
        if isinstance(query, dict):
            query = schemas.TaskQuery.model_validate(query)
        is_valid_id(query.owner_id)
        return await self._page(per_page, page, build_filter(query))

    async def get_all_by_list(self, per_page: int, page: int, owner_id: str, list_id: str) -> list[dict[str, Any]]:
        is_valid_id(owner_id)
        is_valid_id(list_id)
        return await self._page(per_page, page, by_owner(owner_id, list_id=list_id))

    async def get_all_by_tag(self, per_page: int, page: int, owner_id: str, tag_id: str) -> list[dict[str, Any]]:
        is_valid_id(owner_id)
        is_valid_id(tag_id)
        return await self._page(per_page, page, by_owner(owner_id, tag_id=tag_id))

    async def change_done_status(self, entity_id: str, owner_id: str) -> int:
        """
        Flip `done`. Not idempotent: two calls restore the original value.
        """
        task = await self._fetch_owned(entity_id, owner_id)
        done = not bool(task.get("done"))
        modified = ensure_updated(await self._store.update_one(entity_id, {"done": done}))
        self._log.info("Set task %s done=%s", entity_id, done)
        return modified

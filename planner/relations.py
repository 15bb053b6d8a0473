"""
Cross-entity consistency.

Everything that touches more than one entity kind goes through here:
- every owned write checks that its owner exists
- task writes check that a referenced list/tag exists (and belongs to the
  task's owner) before the write is accepted
- deleting a list or tag clears the reference on every task that points to it
- deleting a user deletes everything the user owns

Each operation is an explicit, ordered step list run inside one backend
transaction, so a cascade is either fully applied or not at all. The order also
matches the foreign keys of the PostgreSQL schema (children before parents).
"""

from __future__ import annotations

import logging
from typing import Any

from planner.core.errors import ErrorKind, ServiceError, related_missing
from planner.core.guard import strip_owner
from planner.core.store import DeleteResult, EntityStore, Filter, Stores, UpdateResult, by_owner

logger = logging.getLogger(__name__)

JOINED_FIELDS = ("id", "heading", "color")


def _ensure_deleted(result: DeleteResult) -> DeleteResult:
    # Raised inside the transaction so the cascade rolls back with it.
    if not result.acknowledged or result.deleted_count == 0:
        raise ServiceError(ErrorKind.ENTITY_NOT_DELETED)
    return result


class RelationIntegrity:
    def __init__(self, stores: Stores) -> None:
        self._stores = stores

    def _task_relations(self) -> tuple[tuple[str, EntityStore], ...]:
        return (("list_id", self._stores.lists), ("tag_id", self._stores.tags))

    async def check_task_references(self, owner_id: str, fields: dict[str, Any]) -> None:
        """
        Raise RELATED_ENTITY_MISSING for the first non-null list/tag reference
        in `fields` that does not resolve to a record owned by `owner_id`.

        Keys absent from `fields` are not checked, so a patch that leaves the
        references alone never fails because of them.
        """
        for field, store in self._task_relations():
            related_id = fields.get(field)
            if related_id is None:
                continue
            related = await store.find_by_id(related_id)
            if related is None or str(related.get("owner_id")) != str(owner_id):
                raise related_missing(field, related_id)

    async def check_owner(self, owner_id: str) -> None:
        if await self._stores.users.find_by_id(owner_id) is None:
            raise related_missing("owner_id", owner_id)

    async def create_owned(self, store: EntityStore, record: dict[str, Any]) -> dict[str, Any]:
        async with self._stores.transaction():
            await self.check_owner(record["owner_id"])
            return await store.create(record)

    async def create_task(self, record: dict[str, Any]) -> dict[str, Any]:
        async with self._stores.transaction():
            await self.check_owner(record["owner_id"])
            await self.check_task_references(record["owner_id"], record)
            return await self._stores.tasks.create(record)

    async def update_task(self, task_id: str, owner_id: str, changes: dict[str, Any]) -> UpdateResult:
        async with self._stores.transaction():
            await self.check_task_references(owner_id, changes)
            return await self._stores.tasks.update_one(task_id, changes)

    async def delete_list(self, list_id: str) -> DeleteResult:
        async with self._stores.transaction():
            cleared = await self._stores.tasks.update_many(Filter(equals={"list_id": list_id}), {"list_id": None})
            result = _ensure_deleted(await self._stores.lists.delete_one(list_id))
        logger.info("Deleted list %s, cleared list_id on %d tasks", list_id, cleared)
        return result

    async def delete_tag(self, tag_id: str) -> DeleteResult:
        async with self._stores.transaction():
            cleared = await self._stores.tasks.update_many(Filter(equals={"tag_id": tag_id}), {"tag_id": None})
            result = _ensure_deleted(await self._stores.tags.delete_one(tag_id))
        logger.info("Deleted tag %s, cleared tag_id on %d tasks", tag_id, cleared)
        return result

    async def delete_note(self, note_id: str) -> DeleteResult:
        return await self._stores.notes.delete_one(note_id)

    async def delete_task(self, task_id: str) -> DeleteResult:
        return await self._stores.tasks.delete_one(task_id)

    async def delete_user(self, user_id: str) -> DeleteResult:
        owned = by_owner(user_id)
        async with self._stores.transaction():
            counts = {
                "tasks": await self._stores.tasks.delete_many(owned),
                "notes": await self._stores.notes.delete_many(owned),
                "tags": await self._stores.tags.delete_many(owned),
                "lists": await self._stores.lists.delete_many(owned),
            }
            result = _ensure_deleted(await self._stores.users.delete_one(user_id))
        logger.info("Deleted user %s with owned entities %s", user_id, counts)
        return result

    async def populate_tasks(self, tasks: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """
        Attach `list` and `tag` ({id, heading, color} or None) to each task and
        drop the owner field.
        """
        joined: dict[str, dict[str, dict[str, Any]]] = {}
        for field, store in self._task_relations():
            wanted = sorted({task[field] for task in tasks if task.get(field) is not None})
            rows = await store.find_by_ids(wanted) if wanted else []
            joined[field] = {row["id"]: {key: row[key] for key in JOINED_FIELDS} for row in rows}

        populated = []
        for task in tasks:
            item = strip_owner(task)
            item["list"] = joined["list_id"].get(task.get("list_id"))
            item["tag"] = joined["tag_id"].get(task.get("tag_id"))
            populated.append(item)
        return populated

"""
Shared operation shape for owned resources (lists, tags, sticky notes, tasks).

Check order is fixed for every operation taking an id:
owner id format -> entity id format -> fetch -> exists -> owned -> mutate.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .errors import ErrorKind, ServiceError
from .guard import check_authorized, ensure_deleted, ensure_exists, ensure_updated, strip_owner
from .ids import is_valid_id
from .schemas import OwnedCreate, Patch
from .store import DeleteResult, EntityStore, UpdateResult, by_owner

if TYPE_CHECKING:
    from planner.relations import RelationIntegrity


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def page_window(per_page: int, page: int) -> tuple[int, int]:
    """
    Return (skip, limit) for a 1-based page.
    """
    if not (_is_positive_int(per_page) and _is_positive_int(page)):
        raise ServiceError(ErrorKind.INVALID_PAGINATION, per_page=per_page, page=page)
    return per_page * (page - 1), per_page


class OwnedResourceService:
    create_model: type[OwnedCreate] = OwnedCreate
    update_model: type[Patch] = Patch

    def __init__(self, store: EntityStore, relations: RelationIntegrity) -> None:
        self._store = store
        self._relations = relations
        self._log = logging.getLogger(type(self).__module__)

    @property
    def kind(self) -> str:
        return self._store.schema.name

    async def _fetch_owned(self, entity_id: str, owner_id: str) -> dict[str, Any]:
        is_valid_id(owner_id)
        is_valid_id(entity_id)
        entity = ensure_exists(await self._store.find_by_id(entity_id))
        check_authorized(owner_id, entity)
        return entity

    async def _present(self, entities: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return [strip_owner(entity) for entity in entities]

    async def _create(self, record: dict[str, Any]) -> dict[str, Any]:
        return await self._relations.create_owned(self._store, record)

    async def _update(self, entity_id: str, changes: dict[str, Any], owner_id: str) -> UpdateResult:
        return await self._store.update_one(entity_id, changes)

    async def _delete(self, entity_id: str) -> DeleteResult:
        raise NotImplementedError

    def _validate_record(self, data: OwnedCreate) -> dict[str, Any]:
        is_valid_id(data.owner_id)
        if data.id is not None:
            is_valid_id(data.id)
        return data.to_record()

    async def get_all(self, per_page: int, page: int, owner_id: str) -> list[dict[str, Any]]:
        is_valid_id(owner_id)
        skip, limit = page_window(per_page, page)
        rows = await self._store.find_many(by_owner(owner_id), skip=skip, limit=limit)
        return await self._present(rows)

    async def get(self, entity_id: str, owner_id: str) -> dict[str, Any]:
        entity = await self._fetch_owned(entity_id, owner_id)
        return (await self._present([entity]))[0]

    async def count(self, owner_id: str) -> int:
        is_valid_id(owner_id)
        return await self._store.count(by_owner(owner_id))

    async def add(self, data: OwnedCreate | dict[str, Any]) -> None:
        if isinstance(data, dict):
            data = self.create_model.model_validate(data)
        record = self._validate_record(data)
        created = await self._create(record)
        self._log.info("Created %s %s for owner %s", self.kind, created["id"], created["owner_id"])

    async def update(self, entity_id: str, patch: Patch | dict[str, Any], owner_id: str) -> int:
        await self._fetch_owned(entity_id, owner_id)
        if isinstance(patch, dict):
            patch = self.update_model.model_validate(patch)
        modified = ensure_updated(await self._update(entity_id, patch.to_patch(), owner_id))
        self._log.info("Updated %s %s", self.kind, entity_id)
        return modified

    async def remove(self, entity_id: str, owner_id: str) -> int:
        await self._fetch_owned(entity_id, owner_id)
        deleted = ensure_deleted(await self._delete(entity_id))
        self._log.info("Deleted %s %s", self.kind, entity_id)
        return deleted

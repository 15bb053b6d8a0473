"""
List business logic.

Removing a list keeps its tasks; their `list_id` is cleared (see `planner.relations`).
"""

from __future__ import annotations

from planner.core.service import OwnedResourceService
from planner.core.store import DeleteResult

from . import schemas


class ListService(OwnedResourceService):
    create_model = schemas.ListCreate
    update_model = schemas.ListUpdate

    async def _delete(self, entity_id: str) -> DeleteResult:
        return await self._relations.delete_list(entity_id)

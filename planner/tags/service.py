"""
Tag business logic.
"""

from __future__ import annotations

from planner.core.service import OwnedResourceService
from planner.core.store import DeleteResult

from . import schemas


class TagService(OwnedResourceService):
    create_model = schemas.TagCreate
    update_model = schemas.TagUpdate

    async def _delete(self, entity_id: str) -> DeleteResult:
        # Tasks tagged with this tag keep existing with tag_id cleared.
        return await self._relations.delete_tag(entity_id)

"""
Sticky note business logic.
"""

from __future__ import annotations

from planner.core.service import OwnedResourceService
from planner.core.store import DeleteResult

from . import schemas


class StickyNoteService(OwnedResourceService):
    create_model = schemas.StickyNoteCreate
    update_model = schemas.StickyNoteUpdate

    async def _delete(self, entity_id: str) -> DeleteResult:
        return await self._relations.delete_note(entity_id)

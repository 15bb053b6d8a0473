"""
Existence, authorization and acknowledgement checks.

Services call these in a fixed order: id format, existence, ownership, mutation.
"""

from __future__ import annotations

import logging
from typing import Any

from .errors import ErrorKind, ServiceError
from .store import DeleteResult, UpdateResult

logger = logging.getLogger(__name__)

OWNER_FIELD = "owner_id"


def ensure_exists(entity: dict[str, Any] | None) -> dict[str, Any]:
    if entity is None:
        raise ServiceError(ErrorKind.ENTITY_NOT_FOUND)
    return entity


def check_authorized(caller_id: str, entity: dict[str, Any]) -> None:
    """
    Raise `ACCESS_DENIED` unless `caller_id` owns `entity`.
    """
    if str(caller_id) != str(entity.get(OWNER_FIELD)):
        logger.warning("Denied access to %s for caller %s", entity.get("id"), caller_id)
        raise ServiceError(ErrorKind.ACCESS_DENIED)


def ensure_updated(result: UpdateResult) -> int:
    if result.matched_count == 0 or result.modified_count == 0:
        raise ServiceError(ErrorKind.ENTITY_NOT_UPDATED)
    return result.modified_count


def ensure_deleted(result: DeleteResult) -> int:
    if not result.acknowledged or result.deleted_count == 0:
        raise ServiceError(ErrorKind.ENTITY_NOT_DELETED)
    return result.deleted_count


def strip_owner(entity: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in entity.items() if key != OWNER_FIELD}

"""
User business logic.

Users own every other entity, so removing one goes through the relation engine
and takes the user's lists, tags, sticky notes and tasks with it.
"""

from __future__ import annotations

import logging
from typing import Any

from planner.core.errors import ErrorKind, ServiceError
from planner.core.guard import ensure_deleted, ensure_exists, ensure_updated
from planner.core.ids import is_valid_id
from planner.core.store import EntityStore, Filter
from planner.relations import RelationIntegrity

from . import repository, schemas, security

logger = logging.getLogger(__name__)

SECRET_FIELDS = ("password_hash",)


def _public(user_row: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in user_row.items() if key not in SECRET_FIELDS}


class UserService:
    def __init__(self, store: EntityStore, relations: RelationIntegrity) -> None:
        self._store = store
        self._relations = relations

    async def _find_one(self, **equals: Any) -> dict[str, Any] | None:
        rows = await self._store.find_many(Filter(equals=equals), limit=1)
        return rows[0] if rows else None

    async def _fetch(self, user_id: str) -> dict[str, Any]:
        is_valid_id(user_id)
        return ensure_exists(await self._store.find_by_id(user_id))

    async def find(self, user_id: str) -> dict[str, Any]:
        return _public(await self._fetch(user_id))

    async def find_by_email(self, email: str) -> dict[str, Any]:
        """
        Return the full user row, credential hash included, for login checks.
        """
        return ensure_exists(await self._find_one(email=repository.normalize_email(email)))

    async def find_by_username(self, username: str) -> dict[str, Any]:
        """
        Return the full user row, credential hash included, for login checks.
        """
        return ensure_exists(await self._find_one(username=(username or "").strip()))

    async def add(self, data: schemas.UserCreate | dict[str, Any]) -> None:
        if isinstance(data, dict):
            data = schemas.UserCreate.model_validate(data)
        if data.id is not None:
            is_valid_id(data.id)

        record = data.model_dump(exclude={"password", "confirm_password"}, exclude_none=True)
        record["password_hash"] = security.hash_password(data.password)
        created = await self._store.create(record)
        logger.info("Created user %s", created["id"])

    async def update(self, user_id: str, patch: schemas.UserUpdate | dict[str, Any]) -> int:
        await self._fetch(user_id)
        if isinstance(patch, dict):
            patch = schemas.UserUpdate.model_validate(patch)
        modified = ensure_updated(await self._store.update_one(user_id, patch.to_patch()))
        logger.info("Updated user %s", user_id)
        return modified

    async def change_password(self, user_id: str, data: schemas.PasswordChange | dict[str, Any]) -> int:
        await self._fetch(user_id)
        if isinstance(data, dict):
            data = schemas.PasswordChange.model_validate(data)
        password_hash = security.hash_password(data.password)
        modified = ensure_updated(await self._store.update_one(user_id, {"password_hash": password_hash}))
        logger.info("Changed password for user %s", user_id)
        return modified

    async def remove(self, user_id: str) -> int:
        await self._fetch(user_id)
        deleted = ensure_deleted(await self._relations.delete_user(user_id))
        logger.info("Deleted user %s", user_id)
        return deleted

    async def authenticate(self, data: schemas.LoginRequest | dict[str, Any]) -> dict[str, Any]:
        """
        Check credentials; the login is an email when it contains "@",
        otherwise a username.
        """
        if isinstance(data, dict):
            data = schemas.LoginRequest.model_validate(data)

        login = data.email_or_username
        if "@" in login:
            user_row = await self._find_one(email=repository.normalize_email(login))
        else:
            user_row = await self._find_one(username=login)

        if user_row is None or not security.verify_password(data.password, str(user_row.get("password_hash") or "")):
            raise ServiceError(ErrorKind.INVALID_CREDENTIALS)
        return _public(user_row)

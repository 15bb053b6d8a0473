"""
Shared pydantic building blocks for feature value objects.
"""

from __future__ import annotations

from typing import Annotated, Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

HEX_COLOR_PATTERN = r"^#(?:[0-9a-fA-F]{3}){1,2}$"

Color = Annotated[str, Field(pattern=HEX_COLOR_PATTERN)]
Heading = Annotated[str, Field(min_length=1, max_length=200)]


class ValueObject(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")


class OwnedCreate(ValueObject):
    """
    Base for create payloads of owned entities.

    `id` is optional; the store generates one when it is missing. Identifier
    format is checked by the services, not here, so a malformed id surfaces as
    INVALID_IDENTIFIER rather than a schema failure.
    """

    id: str | None = None
    owner_id: str

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class Patch(ValueObject):
    # Fields that may be cleared by sending an explicit null.
    nullable_fields: ClassVar[frozenset[str]] = frozenset()

    def to_patch(self) -> dict[str, Any]:
        patch = self.model_dump(exclude_unset=True)
        return {
            key: value
            for key, value in patch.items()
            if value is not None or key in self.nullable_fields
        }

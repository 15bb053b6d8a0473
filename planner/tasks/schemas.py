"""
Task value objects and the listing query.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, ClassVar

from pydantic import Field

from planner.core.schemas import Heading, OwnedCreate, Patch, ValueObject

Description = Annotated[str, Field(max_length=5000)]


class SubTask(ValueObject):
    heading: Heading
    done: bool = False


class TaskCreate(OwnedCreate):
    heading: Heading
    description: Description | None = None
    due_date: date | None = None
    list_id: str | None = None
    tag_id: str | None = None
    done: bool = False
    sub_tasks: list[SubTask] = Field(default_factory=list)


class TaskUpdate(Patch):
    nullable_fields: ClassVar[frozenset[str]] = frozenset({"description", "due_date", "list_id", "tag_id"})

    heading: Heading | None = None
    description: Description | None = None
    due_date: date | None = None
    list_id: str | None = None
    tag_id: str | None = None
    done: bool | None = None
    sub_tasks: list[SubTask] | None = None


class TaskQuery(ValueObject):
    """
    Filters for listing a user's tasks.

    `done` filters only when it is not None, so both True and False narrow the
    result. Due-date bounds are inclusive and independently optional.
    """

    owner_id: str
    done: bool | None = None
    due_date_from: date | None = None
    due_date_to: date | None = None

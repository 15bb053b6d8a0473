"""
Service container: one instance of every resource service sharing one set of stores.
"""

from __future__ import annotations

from dataclasses import dataclass

from planner.core.store import Stores
from planner.lists.service import ListService
from planner.notes.service import StickyNoteService
from planner.relations import RelationIntegrity
from planner.tags.service import TagService
from planner.tasks.service import TaskService
from planner.users.service import UserService


@dataclass
class Services:
    users: UserService
    lists: ListService
    tags: TagService
    notes: StickyNoteService
    tasks: TaskService
    relations: RelationIntegrity


def build_services(stores: Stores) -> Services:
    relations = RelationIntegrity(stores)
    return Services(
        users=UserService(stores.users, relations),
        lists=ListService(stores.lists, relations),
        tags=TagService(stores.tags, relations),
        notes=StickyNoteService(stores.notes, relations),
        tasks=TaskService(stores.tasks, relations),
        relations=relations,
    )

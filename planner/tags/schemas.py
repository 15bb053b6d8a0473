"""
Tag value objects.
"""

from __future__ import annotations

from planner.core.config import DEFAULT_COLOR
from planner.core.schemas import Color, Heading, OwnedCreate, Patch


class TagCreate(OwnedCreate):
    heading: Heading
    color: Color = DEFAULT_COLOR


class TagUpdate(Patch):
    heading: Heading | None = None
    color: Color | None = None

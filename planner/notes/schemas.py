"""
Sticky note value objects.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import Field

from planner.core.config import DEFAULT_COLOR
from planner.core.schemas import Color, OwnedCreate, Patch

Content = Annotated[str, Field(min_length=1, max_length=5000)]


class StickyNoteCreate(OwnedCreate):
    content: Content
    color: Color = DEFAULT_COLOR


class StickyNoteUpdate(Patch):
    content: Content | None = None
    color: Color | None = None

"""
Entity identifiers.

Ids are canonical (lowercase, hyphenated) UUID strings. They are generated in
the application so both store backends share one format.
"""

from __future__ import annotations

import uuid
from typing import Any

from .errors import ErrorKind, ServiceError

ID_LENGTH = 36


def new_id() -> str:
    return str(uuid.uuid4())


def is_well_formed(value: Any) -> bool:
    if not isinstance(value, str) or len(value) != ID_LENGTH:
        return False
    try:
        parsed = uuid.UUID(value)
    except ValueError:
        return False
    return str(parsed) == value


def is_valid_id(value: Any) -> None:
    """
    Raise `INVALID_IDENTIFIER` unless `value` is a well-formed entity id.
    """
    if not is_well_formed(value):
        raise ServiceError(ErrorKind.INVALID_IDENTIFIER, value=value if isinstance(value, str) else None)

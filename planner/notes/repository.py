"""
Sticky note persistence.
"""

from __future__ import annotations

from planner.core.config import DEFAULT_COLOR
from planner.core.store import EntitySchema

NOTE_SCHEMA = EntitySchema(
    name="sticky note",
    table="sticky_notes",
    columns=("owner_id", "content", "color"),
    defaults={"color": DEFAULT_COLOR},
    ddl=f"""
    CREATE TABLE IF NOT EXISTS sticky_notes (
        seq bigint GENERATED ALWAYS AS IDENTITY,
        id uuid PRIMARY KEY,
        owner_id uuid NOT NULL REFERENCES users (id),
        content text NOT NULL,
        color text NOT NULL DEFAULT '{DEFAULT_COLOR}',
        created_at timestamptz NOT NULL DEFAULT now(),
        updated_at timestamptz NOT NULL DEFAULT now()
    );
    CREATE INDEX IF NOT EXISTS sticky_notes_owner_seq_idx ON sticky_notes (owner_id, seq);
    """,
)

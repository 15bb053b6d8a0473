"""
Tag persistence: table layout and indexes.
"""

from __future__ import annotations

from planner.core.config import DEFAULT_COLOR
from planner.core.store import EntitySchema

TAG_SCHEMA = EntitySchema(
    name="tag",
    table="tags",
    columns=("owner_id", "heading", "color"),
    defaults={"color": DEFAULT_COLOR},
    ddl=f"""
    CREATE TABLE IF NOT EXISTS tags (
        seq bigint GENERATED ALWAYS AS IDENTITY,
        id uuid PRIMARY KEY,
        owner_id uuid NOT NULL REFERENCES users (id),
        heading text NOT NULL,
        color text NOT NULL DEFAULT '{DEFAULT_COLOR}',
        created_at timestamptz NOT NULL DEFAULT now(),
        updated_at timestamptz NOT NULL DEFAULT now()
    );
    CREATE INDEX IF NOT EXISTS tags_owner_seq_idx ON tags (owner_id, seq);
    """,
)

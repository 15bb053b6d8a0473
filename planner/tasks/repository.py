"""
Task persistence.

Tasks reference lists and tags without ON DELETE actions: clearing those
references is done explicitly by `planner.relations` before the referenced row
goes away. Sub-tasks are embedded as a jsonb array of {heading, done}.
"""

from __future__ import annotations

from planner.core.store import EntitySchema

TASK_SCHEMA = EntitySchema(
    name="task",
    table="tasks",
    columns=(
        "owner_id",
        "heading",
        "description",
        "due_date",
        "list_id",
        "tag_id",
        "done",
        "sub_tasks",
    ),
    defaults={"done": False, "sub_tasks": []},
    ddl="""
    CREATE TABLE IF NOT EXISTS tasks (
        seq bigint GENERATED ALWAYS AS IDENTITY,
        id uuid PRIMARY KEY,
        owner_id uuid NOT NULL REFERENCES users (id),
        heading text NOT NULL,
        description text,
        due_date date,
        list_id uuid REFERENCES lists (id),
        tag_id uuid REFERENCES tags (id),
        done boolean NOT NULL DEFAULT false,
        sub_tasks jsonb NOT NULL DEFAULT '[]'::jsonb,
        created_at timestamptz NOT NULL DEFAULT now(),
        updated_at timestamptz NOT NULL DEFAULT now()
    );
    CREATE INDEX IF NOT EXISTS tasks_owner_seq_idx ON tasks (owner_id, seq);
    CREATE INDEX IF NOT EXISTS tasks_list_tag_idx ON tasks (list_id, tag_id);
    CREATE INDEX IF NOT EXISTS tasks_tag_idx ON tasks (tag_id);
    """,
)

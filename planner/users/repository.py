"""
User persistence: table layout and unique constraints.
"""

from __future__ import annotations

from planner.core.store import EntitySchema


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


USER_SCHEMA = EntitySchema(
    name="user",
    table="users",
    columns=("username", "email", "password_hash", "first_name", "last_name"),
    unique=("username", "email"),
    ddl="""
    CREATE TABLE IF NOT EXISTS users (
        seq bigint GENERATED ALWAYS AS IDENTITY,
        id uuid PRIMARY KEY,
        username text NOT NULL,
        email text NOT NULL,
        password_hash text NOT NULL,
        first_name text NOT NULL,
        last_name text NOT NULL,
        created_at timestamptz NOT NULL DEFAULT now(),
        updated_at timestamptz NOT NULL DEFAULT now(),
        CONSTRAINT users_username_key UNIQUE (username),
        CONSTRAINT users_email_key UNIQUE (email)
    );
    CREATE INDEX IF NOT EXISTS users_seq_idx ON users (seq);
    """,
)

"""
Runtime settings read from environment variables.

Every setting is a small accessor so tests can change the environment without
reloading modules.
"""

from __future__ import annotations

import os

DEFAULT_COLOR = "#dbdbdb"

STORE_BACKENDS = {"postgres", "memory"}


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def store_backend() -> str:
    backend = os.environ.get("PLANNER_STORE", "postgres").strip().lower() or "postgres"
    if backend not in STORE_BACKENDS:
        raise RuntimeError(f"PLANNER_STORE must be one of {sorted(STORE_BACKENDS)}, got '{backend}'.")
    return backend


def pool_min_size() -> int:
    return max(1, _env_int("DB_POOL_MIN", 1))


def pool_max_size() -> int:
    return max(pool_min_size(), _env_int("DB_POOL_MAX", 5))


def command_timeout_s() -> int:
    return _env_int("DB_COMMAND_TIMEOUT", 30)


def log_level() -> str:
    return os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"


def bcrypt_rounds() -> int:
    # bcrypt accepts 4..31 rounds.
    return min(31, max(4, _env_int("BCRYPT_ROUNDS", 12)))

from __future__ import annotations

import pytest

from planner.backends import memory_stores
from planner.container import build_services
from planner.core.ids import new_id


def user_payload(username: str, **overrides) -> dict:
    payload = {
        "id": new_id(),
        "username": username,
        "email": f"{username}@gmail.com",
        "password": "Aa12131415",
        "confirm_password": "Aa12131415",
        "first_name": "John",
        "last_name": "Doe",
    }
    payload.update(overrides)
    return payload


@pytest.fixture(autouse=True)
def _fast_bcrypt(monkeypatch):
    monkeypatch.setenv("BCRYPT_ROUNDS", "4")


@pytest.fixture
def make_user():
    return user_payload


@pytest.fixture
def stores():
    return memory_stores()


@pytest.fixture
def services(stores):
    return build_services(stores)


@pytest.fixture
async def owner_id(services) -> str:
    payload = user_payload("taskTester")
    await services.users.add(payload)
    return payload["id"]


@pytest.fixture
async def other_owner_id(services) -> str:
    payload = user_payload("someoneElse")
    await services.users.add(payload)
    return payload["id"]

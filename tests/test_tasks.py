from datetime import date

import pytest
from pydantic import ValidationError

from planner.core.errors import ErrorKind, ServiceError
from planner.core.ids import new_id
from planner.tasks.schemas import TaskCreate, TaskQuery, TaskUpdate

SUB_TASKS = [
    {"heading": "Subtask 1 Heading", "done": False},
    {"heading": "Subtask 2 Heading", "done": True},
]


@pytest.fixture
async def list_id(services, owner_id):
    list_id = new_id()
    await services.lists.add({"id": list_id, "owner_id": owner_id, "heading": "This is a test list", "color": "#00FF00"})
    return list_id


@pytest.fixture
async def tag_id(services, owner_id):
    tag_id = new_id()
    await services.tags.add({"id": tag_id, "owner_id": owner_id, "heading": "This is a test tag", "color": "#00FF00"})
    return tag_id


@pytest.fixture
async def task_id(services, owner_id, list_id, tag_id):
    task_id = new_id()
    await services.tasks.add(
        TaskCreate(
            id=task_id,
            owner_id=owner_id,
            list_id=list_id,
            tag_id=tag_id,
            heading="Task Heading 3",
            description="Task Description",
            due_date="2023-09-10",
            sub_tasks=SUB_TASKS,
        )
    )
    return task_id


async def test_add_minimal_task_applies_defaults(services, owner_id):
    task_id = new_id()
    assert await services.tasks.add({"id": task_id, "owner_id": owner_id, "heading": "Task Heading 1"}) is None

    task = await services.tasks.get(task_id, owner_id)
    assert task["heading"] == "Task Heading 1"
    assert task["done"] is False
    assert task["sub_tasks"] == []
    assert task["list_id"] is None and task["list"] is None
    assert task["tag_id"] is None and task["tag"] is None
    assert "owner_id" not in task


async def test_get_joins_list_and_tag(services, owner_id, list_id, tag_id, task_id):
    task = await services.tasks.get(task_id, owner_id)

    assert task["list"] == {"id": list_id, "heading": "This is a test list", "color": "#00FF00"}
    assert task["tag"] == {"id": tag_id, "heading": "This is a test tag", "color": "#00FF00"}
    assert task["due_date"] == date(2023, 9, 10)
    assert task["sub_tasks"] == SUB_TASKS


@pytest.mark.parametrize(("field", "label"), [("list_id", "listID"), ("tag_id", "tagID")])
async def test_add_with_missing_relation_fails(services, owner_id, list_id, tag_id, field, label):
    data = {"owner_id": owner_id, "heading": "Task Heading 3", "list_id": list_id, "tag_id": tag_id, field: new_id()}

    with pytest.raises(ServiceError) as exc_info:
        await services.tasks.add(data)

    assert exc_info.value.kind is ErrorKind.RELATED_ENTITY_MISSING
    assert exc_info.value.message == f"The provided {label} is not exists"
    assert await services.tasks.count(owner_id) == 0


async def test_add_with_someone_elses_list_fails(services, owner_id, other_owner_id):
    foreign_list = new_id()
    await services.lists.add({"id": foreign_list, "owner_id": other_owner_id, "heading": "not yours"})

    with pytest.raises(ServiceError) as exc_info:
        await services.tasks.add({"owner_id": owner_id, "heading": "t", "list_id": foreign_list})
    assert exc_info.value.kind is ErrorKind.RELATED_ENTITY_MISSING


async def test_add_with_malformed_relation_id_fails_before_lookup(services, stores, owner_id, monkeypatch):
    async def fail(*_args, **_kwargs):
        raise AssertionError("store must not be reached")

    monkeypatch.setattr(stores.lists, "find_by_id", fail)

    with pytest.raises(ServiceError) as exc_info:
        await services.tasks.add({"owner_id": owner_id, "heading": "t", "list_id": "Invalid"})
    assert exc_info.value.kind is ErrorKind.INVALID_IDENTIFIER


async def test_update_checks_new_relation(services, owner_id, task_id):
    with pytest.raises(ServiceError) as exc_info:
        await services.tasks.update(task_id, {"list_id": new_id()}, owner_id)
    assert exc_info.value.kind is ErrorKind.RELATED_ENTITY_MISSING


async def test_update_malformed_relation_id(services, owner_id, task_id):
    with pytest.raises(ServiceError) as exc_info:
        await services.tasks.update(task_id, {"tag_id": "Invalid"}, owner_id)
    assert exc_info.value.kind is ErrorKind.INVALID_IDENTIFIER


async def test_update_can_detach_a_list(services, owner_id, task_id):
    assert await services.tasks.update(task_id, TaskUpdate(list_id=None), owner_id) == 1

    task = await services.tasks.get(task_id, owner_id)
    assert task["list_id"] is None and task["list"] is None
    assert task["tag"] is not None


async def test_update_without_touching_relations(services, owner_id, task_id, list_id):
    assert await services.tasks.update(task_id, {"heading": "X"}, owner_id) == 1
    assert await services.tasks.update(task_id, {"heading": "X"}, owner_id) == 1

    task = await services.tasks.get(task_id, owner_id)
    assert task["heading"] == "X"
    assert task["list_id"] == list_id


async def test_change_done_status_toggles(services, owner_id, task_id):
    before = (await services.tasks.get(task_id, owner_id))["done"]

    assert await services.tasks.change_done_status(task_id, owner_id) == 1
    assert (await services.tasks.get(task_id, owner_id))["done"] is (not before)

    assert await services.tasks.change_done_status(task_id, owner_id) == 1
    assert (await services.tasks.get(task_id, owner_id))["done"] is before


async def test_change_done_status_checks_owner(services, other_owner_id, task_id):
    with pytest.raises(ServiceError) as exc_info:
        await services.tasks.change_done_status(task_id, other_owner_id)
    assert exc_info.value.kind is ErrorKind.ACCESS_DENIED


async def test_change_done_status_precedence(services, owner_id):
    with pytest.raises(ServiceError) as invalid:
        await services.tasks.change_done_status("Invalid", owner_id)
    with pytest.raises(ServiceError) as missing:
        await services.tasks.change_done_status(new_id(), owner_id)

    assert invalid.value.kind is ErrorKind.INVALID_IDENTIFIER
    assert missing.value.kind is ErrorKind.ENTITY_NOT_FOUND


OPERATIONS = ["get", "update", "remove", "change_done_status"]


async def call(services, operation, task_id, owner_id):
    if operation == "update":
        return await services.tasks.update(task_id, {"heading": "X"}, owner_id)
    return await getattr(services.tasks, operation)(task_id, owner_id)


@pytest.mark.parametrize("operation", OPERATIONS)
async def test_non_owner_is_denied(services, owner_id, other_owner_id, task_id, operation):
    with pytest.raises(ServiceError) as exc_info:
        await call(services, operation, task_id, other_owner_id)
    assert exc_info.value.kind is ErrorKind.ACCESS_DENIED

    task = await services.tasks.get(task_id, owner_id)
    assert task["heading"] == "Task Heading 3"
    assert task["done"] is False


@pytest.mark.parametrize("operation", OPERATIONS)
async def test_missing_task_is_not_found(services, owner_id, operation):
    with pytest.raises(ServiceError) as exc_info:
        await call(services, operation, new_id(), owner_id)
    assert exc_info.value.kind is ErrorKind.ENTITY_NOT_FOUND


@pytest.mark.parametrize("operation", OPERATIONS)
async def test_malformed_task_id_fails_before_store_access(services, stores, owner_id, monkeypatch, operation):
    async def fail(*_args, **_kwargs):
        raise AssertionError("store must not be reached")

    monkeypatch.setattr(stores.tasks, "find_by_id", fail)

    with pytest.raises(ServiceError) as exc_info:
        await call(services, operation, "Invalid", owner_id)
    assert exc_info.value.kind is ErrorKind.INVALID_IDENTIFIER


@pytest.mark.parametrize("operation", OPERATIONS)
async def test_not_found_wins_over_access_denied(services, other_owner_id, operation):
    with pytest.raises(ServiceError) as exc_info:
        await call(services, operation, new_id(), other_owner_id)
    assert exc_info.value.kind is ErrorKind.ENTITY_NOT_FOUND


async def test_add_for_a_missing_owner_fails(services, list_id):
    ghost_owner = new_id()

    with pytest.raises(ServiceError) as exc_info:
        await services.tasks.add({"owner_id": ghost_owner, "heading": "t", "list_id": list_id})

    assert exc_info.value.kind is ErrorKind.RELATED_ENTITY_MISSING
    assert exc_info.value.payload["field"] == "owner_id"
    assert await services.tasks.count(ghost_owner) == 0


async def test_remove_task_keeps_list_and_tag(services, owner_id, list_id, tag_id, task_id):
    assert await services.tasks.remove(task_id, owner_id) == 1
    assert (await services.lists.get(list_id, owner_id))["id"] == list_id
    assert (await services.tags.get(tag_id, owner_id))["id"] == tag_id


class TestListing:
    @pytest.fixture
    async def seeded(self, services, owner_id, other_owner_id, list_id, tag_id):
        tasks = [
            {"heading": "early", "due_date": "2023-09-01", "list_id": list_id},
            {"heading": "middle", "due_date": "2023-09-10", "done": True, "tag_id": tag_id},
            {"heading": "late", "due_date": "2023-09-30", "list_id": list_id, "tag_id": tag_id},
            {"heading": "undated", "done": True},
        ]
        for task in tasks:
            await services.tasks.add({"owner_id": owner_id, **task})
        await services.tasks.add({"owner_id": other_owner_id, "heading": "foreign"})

    @staticmethod
    def headings(tasks):
        return [task["heading"] for task in tasks]

    async def test_all_of_owner(self, services, owner_id, seeded):
        tasks = await services.tasks.get_all(10, 1, TaskQuery(owner_id=owner_id))
        assert self.headings(tasks) == ["early", "middle", "late", "undated"]
        assert all("owner_id" not in task for task in tasks)

    async def test_pagination(self, services, owner_id, seeded):
        query = TaskQuery(owner_id=owner_id)
        assert self.headings(await services.tasks.get_all(3, 1, query)) == ["early", "middle", "late"]
        assert self.headings(await services.tasks.get_all(3, 2, query)) == ["undated"]
        assert await services.tasks.get_all(3, 3, query) == []

    async def test_done_true_and_false_both_filter(self, services, owner_id, seeded):
        done = await services.tasks.get_all(10, 1, TaskQuery(owner_id=owner_id, done=True))
        not_done = await services.tasks.get_all(10, 1, TaskQuery(owner_id=owner_id, done=False))

        assert self.headings(done) == ["middle", "undated"]
        assert self.headings(not_done) == ["early", "late"]

    async def test_due_date_bounds(self, services, owner_id, seeded):
        both = TaskQuery(owner_id=owner_id, due_date_from=date(2023, 9, 1), due_date_to=date(2023, 9, 10))
        from_only = TaskQuery(owner_id=owner_id, due_date_from=date(2023, 9, 10))
        to_only = TaskQuery(owner_id=owner_id, due_date_to=date(2023, 9, 9))

        assert self.headings(await services.tasks.get_all(10, 1, both)) == ["early", "middle"]
        assert self.headings(await services.tasks.get_all(10, 1, from_only)) == ["middle", "late"]
        assert self.headings(await services.tasks.get_all(10, 1, to_only)) == ["early"]

    async def test_filters_combine(self, services, owner_id, seeded):
        query = TaskQuery(owner_id=owner_id, done=True, due_date_from=date(2023, 9, 1))
        assert self.headings(await services.tasks.get_all(10, 1, query)) == ["middle"]

    async def test_query_strings_are_converted(self, services, owner_id, seeded):
        query = {"owner_id": owner_id, "done": "false", "due_date_from": "2023-09-01", "due_date_to": "2023-09-30"}
        assert self.headings(await services.tasks.get_all(10, 1, query)) == ["early", "late"]

        query = TaskQuery(owner_id=owner_id, done="true", due_date_from="2023-09-10")
        assert query.due_date_from == date(2023, 9, 10)
        assert self.headings(await services.tasks.get_all(10, 1, query)) == ["middle"]

    async def test_malformed_query_is_rejected(self, services, owner_id):
        with pytest.raises(ValidationError):
            await services.tasks.get_all(10, 1, {"owner_id": owner_id, "due_date_from": "soon"})
        with pytest.raises(ValidationError):
            await services.tasks.get_all(10, 1, {"owner_id": owner_id, "done": "maybe"})

    async def test_listing_joins_relations(self, services, owner_id, list_id, seeded):
        [late] = [t for t in await services.tasks.get_all(10, 1, TaskQuery(owner_id=owner_id)) if t["heading"] == "late"]
        assert late["list"]["id"] == list_id
        assert set(late["list"]) == {"id", "heading", "color"}
        assert late["tag"]["heading"] == "This is a test tag"

    async def test_by_list(self, services, owner_id, list_id, seeded):
        tasks = await services.tasks.get_all_by_list(10, 1, owner_id, list_id)
        assert self.headings(tasks) == ["early", "late"]

    async def test_by_tag(self, services, owner_id, tag_id, seeded):
        tasks = await services.tasks.get_all_by_tag(10, 1, owner_id, tag_id)
        assert self.headings(tasks) == ["middle", "late"]

    async def test_by_relation_rejects_malformed_ids(self, services, owner_id):
        with pytest.raises(ServiceError) as by_list:
            await services.tasks.get_all_by_list(10, 1, owner_id, "Invalid")
        with pytest.raises(ServiceError) as by_tag:
            await services.tasks.get_all_by_tag(10, 1, "Invalid", new_id())

        assert by_list.value.kind is ErrorKind.INVALID_IDENTIFIER
        assert by_tag.value.kind is ErrorKind.INVALID_IDENTIFIER

    async def test_get_all_rejects_malformed_owner(self, services):
        with pytest.raises(ServiceError) as exc_info:
            await services.tasks.get_all(3, 1, TaskQuery(owner_id="Invalid"))
        assert exc_info.value.kind is ErrorKind.INVALID_IDENTIFIER

    async def test_count(self, services, owner_id, other_owner_id, seeded):
        assert await services.tasks.count(owner_id) == 4
        assert await services.tasks.count(other_owner_id) == 1

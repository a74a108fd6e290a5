"""End-to-end task list scenario against file-backed and in-memory stores."""

import pytest

from entitystore import Environment, PersistenceManager, StaticDataSource, StoreConfig, asc, equals
from sample_models import SCHEMA_NAME


@pytest.fixture(params=["file", "memory"])
def scenario_manager(request, registry, tmp_path):
    if request.param == "memory":
        config = StoreConfig.for_environment(Environment.TESTING)
    else:
        config = StoreConfig(store_directory=tmp_path)
    source = StaticDataSource(SCHEMA_NAME)
    manager = PersistenceManager(source, config=config, registry=registry)
    yield manager
    if manager.container is not None:
        manager.container.close()


def test_task_lifecycle(scenario_manager):
    manager = scenario_manager

    manager.insert("Task", {"title": "A", "done": False}, instant_save=True)

    open_tasks = manager.fetch("Task", equals("done", False))
    assert len(open_tasks) == 1
    assert open_tasks[0].title == "A"

    manager.delete(open_tasks[0], instant_save=True)
    assert manager.fetch("Task", equals("done", False)) == []


def test_task_list_workflow(scenario_manager):
    manager = scenario_manager

    for title in ["write report", "review", "deploy"]:
        manager.insert_if_absent("Task", equals("title", title), {"title": title})
    manager.insert_if_absent("Task", equals("title", "review"), {"title": "review"})
    manager.save()

    review = manager.fetch("Task", equals("title", "review"))[0]
    manager.update(review, {"done": True, "priority": 2}, instant_save=True)

    remaining = manager.fetch("Task", equals("done", False), [asc("title")])
    assert [task.title for task in remaining] == ["deploy", "write report"]

    manager.delete_all("Task", instant_save=True)
    assert manager.fetch("Task") == []
    assert not manager.has_changes

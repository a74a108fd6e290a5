"""Shared fixtures for entitystore tests."""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))
sys.path.insert(0, os.path.dirname(__file__))

from entitystore import PersistenceManager, Schema, SchemaRegistry, StaticDataSource, StoreConfig
from sample_models import SCHEMA_NAME, Tag, Task


@pytest.fixture
def registry():
    registry = SchemaRegistry()
    registry.register(Schema(SCHEMA_NAME, [Task, Tag]))
    return registry


@pytest.fixture
def store_config(tmp_path):
    return StoreConfig(store_directory=tmp_path)


@pytest.fixture
def data_source():
    return StaticDataSource(SCHEMA_NAME)


@pytest.fixture
def make_manager(registry, store_config):
    """Build managers on the test's store directory and close their stores afterwards."""
    managers = []

    def factory(source, **kwargs):
        kwargs.setdefault("config", store_config)
        kwargs.setdefault("registry", registry)
        manager = PersistenceManager(source, **kwargs)
        managers.append(manager)
        return manager

    yield factory

    for manager in managers:
        if manager.container is not None:
            manager.container.close()


@pytest.fixture
def manager(make_manager, data_source):
    return make_manager(data_source)

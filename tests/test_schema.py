"""Tests for entity schemas, typed setters and the schema registry."""

import pytest

from entitystore import (
    AttributeValueError, EntitySchema, Schema, SchemaNotFoundError, SchemaRegistry,
    UnknownEntityError, register_schema
)
from sample_models import Note, Tag, Task


def test_entity_schema_lists_model_fields():
    entity = EntitySchema.from_model(Task)

    assert entity.entity_name == "Task"
    assert entity.model is Task
    assert set(entity.attribute_names) == {"id", "title", "done", "priority", "due"}
    assert entity.has_attribute("title")
    assert not entity.has_attribute("owner")


def test_entity_schema_custom_name():
    entity = EntitySchema.from_model(Task, entity_name="Todo")
    assert entity.entity_name == "Todo"


def test_entity_schema_rejects_plain_models():
    with pytest.raises(TypeError):
        EntitySchema.from_model(Note)


def test_apply_ignores_unknown_keys():
    entity = EntitySchema.from_model(Task)
    task = Task(title="before", priority=1)

    written = entity.apply(task, {"title": "after", "owner": "nobody", "colour": 3})

    assert written == ["title"]
    assert task.title == "after"
    assert task.priority == 1
    assert not hasattr(task, "owner")


def test_apply_empty_payload_writes_nothing():
    entity = EntitySchema.from_model(Task)
    task = Task(title="same", done=True)

    assert entity.apply(task, {}) == []
    assert task.title == "same"
    assert task.done is True


def test_setter_converts_compatible_values():
    entity = EntitySchema.from_model(Task)
    task = Task()

    entity.apply(task, {"priority": "7", "done": "yes", "due": "2024-05-01T10:00:00"})

    assert task.priority == 7
    assert task.done is True
    assert task.due.year == 2024 and task.due.hour == 10


def test_setter_rejects_incompatible_values():
    entity = EntitySchema.from_model(Task)
    task = Task(priority=2)

    with pytest.raises(AttributeValueError) as excinfo:
        entity.apply(task, {"priority": "high"})

    assert excinfo.value.attribute == "priority"
    assert excinfo.value.entity_name == "Task"
    assert isinstance(excinfo.value, ValueError)
    assert task.priority == 2


def test_rejected_value_leaves_record_untouched():
    entity = EntitySchema.from_model(Task)
    task = Task(title="A", done=False, priority=1)

    with pytest.raises(AttributeValueError):
        entity.apply(task, {"done": True, "priority": "very", "title": "B"})

    assert (task.title, task.done, task.priority) == ("A", False, 1)


def test_setter_accepts_none_for_optional_attributes():
    entity = EntitySchema.from_model(Task)
    task = Task(priority=2)
    entity.apply(task, {"due": None})
    assert task.due is None


def test_schema_lookup():
    schema = Schema("Tasks", [Task, Tag])

    assert schema.entity_names == ["Task", "Tag"]
    assert "Task" in schema
    assert len(schema) == 2
    assert schema.entity("Tag").model is Tag
    assert schema.entity_for(Task).entity_name == "Task"
    assert {table.name for table in schema.tables} == {Task.__table__.name, Tag.__table__.name}


def test_schema_unknown_entity():
    schema = Schema("Tasks", [Task])

    with pytest.raises(UnknownEntityError):
        schema.entity("Project")
    with pytest.raises(UnknownEntityError):
        schema.entity_for(Tag)


def test_schema_rejects_duplicate_entity_names():
    schema = Schema("Tasks", [Task])
    with pytest.raises(ValueError):
        schema.add(Task)


def test_schema_requires_a_name():
    with pytest.raises(ValueError):
        Schema("", [Task])


def test_registry_register_and_get():
    registry = SchemaRegistry()
    schema = registry.register(Schema("Tasks", [Task]))

    assert registry.get("Tasks") is schema
    assert "Tasks" in registry
    assert registry.names() == ["Tasks"]


def test_registry_duplicate_names():
    registry = SchemaRegistry()
    registry.register(Schema("Tasks", [Task]))

    with pytest.raises(ValueError):
        registry.register(Schema("Tasks", [Tag]))

    replacement = registry.register(Schema("Tasks", [Tag]), replace=True)
    assert registry.get("Tasks") is replacement


def test_registry_missing_schema():
    registry = SchemaRegistry()
    with pytest.raises(SchemaNotFoundError):
        registry.get("Nope")
    assert registry.unregister("Nope") is None


def test_register_schema_helper_uses_given_registry():
    registry = SchemaRegistry()
    schema = register_schema("Tags", [Tag], registry=registry)
    assert registry.get("Tags") is schema
    assert schema.entity_names == ["Tag"]

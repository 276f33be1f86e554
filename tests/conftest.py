"""Shared pytest fixtures for metaforge tests."""

from pathlib import Path

import pytest

from metaforge.core import ir
from metaforge.core.builder import ModelBuilder
from metaforge.core.graph import ModelState

TASK = "test.class.Task"
ISSUE = "test.class.Issue"
COMMENT = "test.class.Comment"
PERSON = "test.class.Person"
PROJECT = "test.class.Project"
LABELS = "test.mixin.Labels"


@pytest.fixture
def examples_dir() -> Path:
    """Return path to the bundled example projects."""
    return Path(__file__).parent.parent / "examples"


@pytest.fixture
def builder() -> ModelBuilder:
    """Return an empty batch on top of the prelude."""
    return ModelBuilder(name="test")


def declare_task_model(builder: ModelBuilder) -> ModelBuilder:
    """Declare a small task-tracking vocabulary on ``builder``."""
    person = builder.register_class(PERSON, "core.class.Doc", label="test.string.Person")
    person.declare_property("name", ir.type_string(), index=ir.IndexKind.FULL_TEXT)

    comment = builder.register_class(COMMENT, "core.class.AttachedDoc")
    comment.declare_property("message", ir.type_markup())

    project = builder.register_class(PROJECT, "core.class.Space")
    project.declare_property("identifier", ir.type_string())

    task = builder.register_class(TASK, "core.class.AttachedDoc", label_prop="title")
    task.declare_property("title", ir.type_string(), label="test.string.Title")
    task.declare_property("status", ir.type_enum("open", "closed"))
    task.declare_property("assignee", ir.type_ref(PERSON), label="test.string.Assignee")
    task.declare_property("comments", ir.collection(COMMENT))
    task.declare_property("rank", ir.type_string(), hidden=True)

    issue = builder.register_class(ISSUE, TASK)
    issue.declare_property("priority", ir.type_number())
    issue.declare_property("title", ir.type_string(), index=ir.IndexKind.FULL_TEXT)

    labels = builder.register_mixin(LABELS, TASK)
    labels.declare_property("labels", ir.array_of("core.class.Doc"))
    return builder


@pytest.fixture
def task_builder(builder: ModelBuilder) -> ModelBuilder:
    """Return a batch with the task vocabulary declared."""
    return declare_task_model(builder)


@pytest.fixture
def task_model(task_builder: ModelBuilder) -> ModelState:
    """Return the committed state after building the task vocabulary."""
    return task_builder.build().model


@pytest.fixture
def make_task_builder():
    """Return a factory for fresh batches with the task vocabulary declared."""

    def factory(name: str = "test") -> ModelBuilder:
        return declare_task_model(ModelBuilder(name=name))

    return factory

"""Tests for buildspine.orchestration.registry — name → task lookup."""

from __future__ import annotations

import pytest

from buildspine.orchestration.composition import CompositeKind, CompositeTask
from buildspine.orchestration.exceptions import (
    DuplicateTaskError,
    RegistrySealedError,
    UnknownTaskError,
)
from buildspine.orchestration.registry import TaskRegistry
from buildspine.orchestration.task import Task, TaskId


def _noop(ctx):
    """Do nothing."""


class TestRegister:
    def test_register_and_resolve(self):
        registry = TaskRegistry()
        task = registry.register(Task.define("clean", _noop))
        assert registry.resolve("clean") is task
        assert "clean" in registry
        assert len(registry) == 1

    def test_task_id_names_are_plain_strings(self):
        registry = TaskRegistry()
        registry.register(Task.define(TaskId.BUILD_STYLES, _noop))
        assert registry.names() == ["build:styles"]
        assert registry.resolve(TaskId.BUILD_STYLES).name == "build:styles"
        assert TaskId.BUILD_STYLES in registry

    def test_duplicate_name_rejected(self):
        registry = TaskRegistry()
        registry.register(Task.define("clean", _noop))
        with pytest.raises(DuplicateTaskError, match="clean"):
            registry.register(Task.define("clean", _noop))

    def test_sealed_registry_rejects_registration(self):
        registry = TaskRegistry()
        registry.seal()
        assert registry.sealed
        with pytest.raises(RegistrySealedError):
            registry.register(Task.define("late", _noop))

    def test_description_defaults_to_docstring(self):
        task = Task.define("noop", _noop)
        assert task.description == "Do nothing."


class TestResolve:
    def test_unknown_name_lists_available(self):
        registry = TaskRegistry()
        registry.register(Task.define("clean", _noop))
        with pytest.raises(UnknownTaskError) as excinfo:
            registry.resolve("deploy")
        assert "deploy" in str(excinfo.value)
        assert "clean" in str(excinfo.value)

    def test_unknown_error_is_fatal(self):
        with pytest.raises(UnknownTaskError) as excinfo:
            TaskRegistry().resolve("x")
        assert excinfo.value.fatal

    def test_compose_by_name_resolves_immediately(self):
        registry = TaskRegistry()
        registry.register(Task.define("a", _noop))
        with pytest.raises(UnknownTaskError):
            registry.series("a", "missing")

    def test_compose_by_name(self):
        registry = TaskRegistry()
        a = registry.register(Task.define("a", _noop))
        b = registry.register(Task.define("b", _noop))
        composite = registry.parallel("a", "b", name="both")
        assert isinstance(composite, CompositeTask)
        assert composite.kind is CompositeKind.PARALLEL
        assert composite.members == (a, b)
        assert composite.name == "both"

    def test_iteration_keeps_registration_order(self):
        registry = TaskRegistry()
        for name in ("c", "a", "b"):
            registry.register(Task.define(name, _noop))
        assert [t.name for t in registry] == ["c", "a", "b"]

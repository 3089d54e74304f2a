"""Tests for write-target resolution of task occurrences."""

from datetime import datetime

import pytest

from carecompanion.core.materialize import (
    DirectTarget,
    EditScope,
    PendingMaterialization,
    VirtualTaskError,
    completion_target,
    resolve_write_target,
    template_id_of,
)
from carecompanion.core.tasks import Task

WHEN = datetime(2024, 1, 5, 9, 30)


@pytest.fixture
def virtual_occurrence():
    return Task(
        id="abc123_virtual_2024-01-05",
        title="Morning walk",
        due_date=WHEN,
        parent_task_id="abc123",
        is_virtual=True,
        virtual_date=WHEN,
    )


class TestResolveWriteTarget:
    def test_virtual_occurrence_needs_materialization(self, virtual_occurrence):
        target = resolve_write_target(virtual_occurrence, EditScope.OCCURRENCE)
        assert isinstance(target, PendingMaterialization)
        assert target.must_materialize_first is True
        assert target.occurrence_id == "abc123_virtual_2024-01-05"
        assert target.template_id == "abc123"
        assert target.virtual_date == WHEN
        assert not hasattr(target, "target_id")

    def test_series_scope_targets_template(self, virtual_occurrence):
        target = resolve_write_target(virtual_occurrence, EditScope.SERIES)
        assert target == DirectTarget("abc123")
        assert target.must_materialize_first is False

    def test_series_scope_from_bare_virtual_id(self):
        occurrence = Task(id="abc123_virtual_2024-01-05", title="")
        assert resolve_write_target(occurrence, EditScope.SERIES) == DirectTarget("abc123")

    def test_materialized_occurrence_written_directly(self):
        occurrence = Task(id="c77", title="Walk", parent_task_id="abc123", due_date=WHEN)
        assert resolve_write_target(occurrence, EditScope.OCCURRENCE) == DirectTarget("c77")
        assert resolve_write_target(occurrence, EditScope.SERIES) == DirectTarget("abc123")

    def test_one_off_task(self):
        task = Task(id="t9", title="Pick up forms")
        assert resolve_write_target(task, EditScope.OCCURRENCE) == DirectTarget("t9")
        assert resolve_write_target(task, EditScope.SERIES) == DirectTarget("t9")

    def test_virtual_id_without_flag_still_pending(self):
        occurrence = Task(id="abc123_virtual_2024-01-05", title="")
        target = resolve_write_target(occurrence, EditScope.OCCURRENCE)
        assert isinstance(target, PendingMaterialization)
        assert target.virtual_date == datetime(2024, 1, 5)

    def test_resolve_gives_direct_target(self, virtual_occurrence):
        target = resolve_write_target(virtual_occurrence, EditScope.OCCURRENCE)
        assert target.resolve("c77") == DirectTarget("c77")

    def test_resolve_rejects_virtual_id(self, virtual_occurrence):
        target = resolve_write_target(virtual_occurrence, EditScope.OCCURRENCE)
        with pytest.raises(VirtualTaskError):
            target.resolve("abc123_virtual_2024-01-05")


class TestDirectTarget:
    def test_rejects_virtual_id(self):
        with pytest.raises(VirtualTaskError):
            DirectTarget("abc123_virtual_2024-01-05")

    def test_accepts_concrete_id(self):
        assert DirectTarget("abc123").target_id == "abc123"


class TestCompletionTarget:
    def test_completion_is_single_occurrence(self, virtual_occurrence):
        assert isinstance(completion_target(virtual_occurrence), PendingMaterialization)
        assert completion_target(Task(id="c77", title="", parent_task_id="abc123")) == DirectTarget("c77")


class TestTemplateIdOf:
    def test_sources(self, virtual_occurrence):
        assert template_id_of(virtual_occurrence) == "abc123"
        assert template_id_of(Task(id="x_virtual_2024-02-01", title="")) == "x"
        assert template_id_of(Task(id="tmpl", title="")) == "tmpl"

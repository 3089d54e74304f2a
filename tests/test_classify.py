"""Tests for task classification."""

import pytest

from carecompanion.core.classify import (
    FAMILY,
    Classification,
    ItemType,
    MEDICAL_APPOINTMENT_COLOR,
    MEDICATION_COLOR,
    SOCIAL_VISIT_COLOR,
    TASK_COLOR,
    appointment_kind,
    classify,
    display_color,
)
from carecompanion.core.tasks import Priority, Task


@pytest.fixture
def make_task():
    def _make(description=None, priority=Priority.MEDIUM, task_type=None) -> Task:
        return Task(
            id="t1",
            title="Test",
            description=description,
            priority=priority,
            task_type=task_type,
        )
    return _make


class TestClassify:
    def test_medical_appointment(self, make_task):
        task = make_task("🏥 with Dr. Smith\n📍 Clinic\nFollow-up", Priority.HIGH)
        assert classify(task) == Classification(ItemType.APPOINTMENT, is_social_visit=False)

    def test_social_visit(self, make_task):
        task = make_task("👥 lunch with John", Priority.MEDIUM)
        assert classify(task) == Classification(ItemType.APPOINTMENT, is_social_visit=True)

    def test_family_visit(self, make_task):
        task = make_task(f"{FAMILY} Sunday dinner", Priority.LOW)
        result = classify(task)
        assert result.type == ItemType.APPOINTMENT
        assert result.is_social_visit is True

    def test_therapy_and_lab_need_high_priority(self, make_task):
        assert classify(make_task("🧠 session", Priority.HIGH)).type == ItemType.APPOINTMENT
        assert classify(make_task("🔬 blood work", Priority.HIGH)).type == ItemType.APPOINTMENT
        assert classify(make_task("🔬 blood work", Priority.MEDIUM)).type == ItemType.TASK

    def test_medical_marker_without_high_priority_is_task(self, make_task):
        assert classify(make_task("🏥 pick up forms", Priority.LOW)).type == ItemType.TASK

    def test_medication_source_ignores_description(self, make_task):
        task = make_task("👥 lunch with John", Priority.HIGH)
        result = classify(task, from_medication_source=True)
        assert result == Classification(ItemType.MEDICATION)

    def test_missing_description(self, make_task):
        assert classify(make_task(None, Priority.HIGH)) == Classification(ItemType.TASK)
        assert classify(make_task("", Priority.HIGH)) == Classification(ItemType.TASK)

    def test_persisted_task_type(self, make_task):
        task = make_task("Annual checkup", Priority.MEDIUM, task_type="appointment")
        assert classify(task).type == ItemType.APPOINTMENT
        assert classify(make_task("Laundry", task_type="task")).type == ItemType.TASK

    def test_deterministic(self, make_task):
        task = make_task("🏥 follow-up", Priority.HIGH)
        assert classify(task) == classify(task)


class TestDisplayColor:
    def test_colors(self):
        assert display_color(Classification(ItemType.MEDICATION)) == MEDICATION_COLOR
        assert display_color(Classification(ItemType.TASK)) == TASK_COLOR
        assert display_color(Classification(ItemType.APPOINTMENT)) == MEDICAL_APPOINTMENT_COLOR
        assert display_color(Classification(ItemType.APPOINTMENT, True)) == SOCIAL_VISIT_COLOR


class TestAppointmentKind:
    def test_first_marker_wins(self):
        assert appointment_kind("🔬 labs, then 🏥 visit") == "lab"

    def test_kinds(self):
        assert appointment_kind("🏥 checkup") == "medical"
        assert appointment_kind("🧠 therapy") == "therapy"
        assert appointment_kind(f"{FAMILY} visit") == "social"

    def test_none(self):
        assert appointment_kind("Buy groceries") is None
        assert appointment_kind(None) is None

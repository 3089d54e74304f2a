"""Tests for core task logic."""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from carecompanion.core.tasks import (
    Priority,
    Task,
    TaskStatus,
    filter_visible_to,
    parse_datetime,
    to_iso,
)


# Fixtures
@pytest.fixture
def api_task():
    return {
        "id": "t1",
        "title": "Morning walk",
        "description": "Around the block",
        "priority": "HIGH",
        "status": "IN_PROGRESS",
        "dueDate": "2025-01-15T14:30:00.000Z",
        "reminderDate": "2025-01-15T13:00:00.000Z",
        "assignedTo": {"id": "u1", "firstName": "Ana", "lastName": "Munson"},
        "parentTaskId": None,
        "isRecurrenceTemplate": True,
        "recurrenceRule": "weekly",
        "taskType": "task",
    }


class TestFromApi:
    def test_fields(self, api_task):
        task = Task.from_api(api_task, ZoneInfo("America/Toronto"))
        assert task.priority == Priority.HIGH
        assert task.status == TaskStatus.IN_PROGRESS
        assert task.due_date.hour == 9
        assert task.reminder_date.hour == 8
        assert task.assigned_to_id == "u1"
        assert task.assigned_to_name == "Ana Munson"
        assert task.is_recurrence_template is True
        assert task.recurrence_rule == "weekly"
        assert task.task_type == "task"

    def test_defaults(self):
        task = Task.from_api({"id": "t2", "priority": "URGENT"})
        assert task.title == "Untitled"
        assert task.priority == Priority.MEDIUM
        assert task.status == TaskStatus.PENDING
        assert task.due_date is None
        assert task.assigned_to_name == ""

    def test_virtual_date_falls_back_to_due(self, api_task):
        api_task.update(id="t1_virtual_2025-01-15", isVirtual=True, isRecurrenceTemplate=False)
        task = Task.from_api(api_task)
        assert task.is_virtual is True
        assert task.virtual_date == task.due_date
        assert task.occurrence_date() == date(2025, 1, 15)


class TestDisplayDate:
    def test_priority_order(self):
        due = datetime(2025, 1, 15, 9)
        reminder = datetime(2025, 1, 14, 9)
        assert Task(id="a", title="a", due_date=due, reminder_date=reminder).display_date == due
        assert Task(id="b", title="b", reminder_date=reminder).display_date == reminder
        assert Task(id="c", title="c").display_date is None


class TestParseDatetime:
    def test_trailing_z(self):
        assert parse_datetime("2025-01-15T14:30:00Z") == datetime(2025, 1, 15, 14, 30, tzinfo=timezone.utc)

    def test_naive_assumed_in_tz(self):
        tz = ZoneInfo("America/Toronto")
        assert parse_datetime("2025-01-15T09:00:00", tz).tzinfo is tz

    def test_malformed(self):
        assert parse_datetime("tomorrow") is None
        assert parse_datetime("") is None
        assert parse_datetime(None) is None


class TestToIso:
    def test_utc_millis(self):
        dt = datetime(2025, 1, 15, 9, 30, 0, 123456, tzinfo=ZoneInfo("America/Toronto"))
        assert to_iso(dt) == "2025-01-15T14:30:00.123Z"

    def test_naive_is_utc(self):
        assert to_iso(datetime(2025, 1, 15)) == "2025-01-15T00:00:00.000Z"


class TestFilterVisibleTo:
    @pytest.fixture
    def tasks(self):
        day = datetime(2025, 1, 15)
        return [
            Task(id="1", title="Mine", assigned_to_id="u1", due_date=day),
            Task(id="2", title="Theirs", assigned_to_id="u2", due_date=day + timedelta(hours=1)),
            Task(id="3", title="Unassigned"),
        ]

    def test_keeps_own_and_unassigned(self, tasks):
        assert [t.id for t in filter_visible_to(tasks, "u1")] == ["1", "3"]

    def test_empty_user_disables_filter(self, tasks):
        assert len(filter_visible_to(tasks, "")) == 3

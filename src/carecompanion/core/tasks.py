"""Pure care-task domain model - no I/O dependencies."""

from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from enum import Enum


class Priority(Enum):
    """Care task priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskStatus(Enum):
    """Care task status."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def _enum_value(enum_cls, raw, default):
    """Map a backend enum string (any case) to a member, or the default."""
    if not raw:
        return default
    try:
        return enum_cls(str(raw).lower())
    except ValueError:
        return default


def parse_datetime(value: str | None, tz: tzinfo | None = None) -> datetime | None:
    """
    Parse an ISO-8601 timestamp from the backend.

    Accepts a trailing "Z". Returns None for missing or malformed values.
    When tz is given, aware results are converted to it and naive results are
    assumed to already be in it.
    """
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    if tz is not None:
        dt = dt.astimezone(tz) if dt.tzinfo else dt.replace(tzinfo=tz)
    return dt


def to_iso(dt: datetime) -> str:
    """Serialize a datetime the way the backend expects (UTC, millisecond Z)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    utc = dt.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


@dataclass
class Task:
    """A care task, a recurrence template, or a projected virtual occurrence."""

    id: str
    title: str
    description: str | None = None
    priority: Priority = Priority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    due_date: datetime | None = None
    reminder_date: datetime | None = None
    assigned_to_id: str | None = None
    assigned_to_name: str = ""
    parent_task_id: str | None = None
    is_recurrence_template: bool = False
    is_virtual: bool = False
    virtual_date: datetime | None = None
    recurrence_rule: str | None = None
    task_type: str | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    @property
    def display_date(self) -> datetime | None:
        """When this task shows up on a schedule."""
        return self.due_date or self.virtual_date or self.reminder_date

    def occurrence_date(self) -> date | None:
        """Calendar day of a virtual occurrence."""
        when = self.virtual_date or self.due_date
        return when.date() if when else None

    @classmethod
    def from_api(cls, data: dict, tz: tzinfo | None = None) -> "Task":
        """Create Task from a care-tasks API response item."""
        assignee = data.get("assignedTo") or {}
        name = " ".join(
            part for part in (assignee.get("firstName"), assignee.get("lastName")) if part
        )
        due = parse_datetime(data.get("dueDate"), tz)
        is_virtual = bool(data.get("isVirtual", False))
        virtual_date = parse_datetime(data.get("virtualDate"), tz)
        if is_virtual and virtual_date is None:
            virtual_date = due
        return cls(
            id=data["id"],
            title=data.get("title") or "Untitled",
            description=data.get("description"),
            priority=_enum_value(Priority, data.get("priority"), Priority.MEDIUM),
            status=_enum_value(TaskStatus, data.get("status"), TaskStatus.PENDING),
            due_date=due,
            reminder_date=parse_datetime(data.get("reminderDate"), tz),
            assigned_to_id=data.get("assignedToId") or assignee.get("id"),
            assigned_to_name=name,
            parent_task_id=data.get("parentTaskId"),
            is_recurrence_template=bool(data.get("isRecurrenceTemplate", False)),
            is_virtual=is_virtual,
            virtual_date=virtual_date,
            recurrence_rule=data.get("recurrenceRule"),
            task_type=data.get("taskType"),
        )


def filter_visible_to(tasks: list[Task], user_id: str) -> list[Task]:
    """
    Keep tasks assigned to the user or unassigned.

    An empty user_id disables the filter.
    """
    if not user_id:
        return list(tasks)
    return [t for t in tasks if not t.assigned_to_id or t.assigned_to_id == user_id]

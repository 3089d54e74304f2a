"""Functional core - pure schedule derivation with no I/O."""

from .tasks import Task, Priority, TaskStatus, filter_visible_to
from .classify import Classification, ItemType, classify, display_color
from .recurrence import RecurrencePattern, expand_recurring_task, parse_virtual_id
from .medications import Medication, MedicationScheduleEntry, DoseStatus, expand_medication
from .schedule import ScheduleItem, ScheduleGroup, ViewMode, Bucket, bucket, relative_label
from .materialize import (
    DirectTarget,
    EditScope,
    PendingMaterialization,
    VirtualTaskError,
    resolve_write_target,
)
from .calendar import CalendarEvent, EventFilters, build_calendar

__all__ = [
    # Tasks
    "Task",
    "Priority",
    "TaskStatus",
    "filter_visible_to",
    # Classifier
    "Classification",
    "ItemType",
    "classify",
    "display_color",
    # Occurrence expander
    "RecurrencePattern",
    "expand_recurring_task",
    "parse_virtual_id",
    "Medication",
    "MedicationScheduleEntry",
    "DoseStatus",
    "expand_medication",
    # Time bucketer
    "ScheduleItem",
    "ScheduleGroup",
    "ViewMode",
    "Bucket",
    "bucket",
    "relative_label",
    # Materializer coordinator
    "DirectTarget",
    "EditScope",
    "PendingMaterialization",
    "VirtualTaskError",
    "resolve_write_target",
    # Calendar
    "CalendarEvent",
    "EventFilters",
    "build_calendar",
]

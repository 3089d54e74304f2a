"""Pure calendar event derivation - no I/O dependencies."""

from dataclasses import dataclass
from datetime import datetime, timedelta

from .classify import MEDICATION_COLOR, ItemType, appointment_kind, classify, display_color
from .medications import MedicationScheduleEntry
from .tasks import Task

DOSE_DURATION = timedelta(minutes=30)


@dataclass
class CalendarEvent:
    """A calendar entry derived from a task or a medication dose."""

    id: str
    title: str
    start: datetime
    end: datetime | None
    color: str
    type: ItemType
    is_social_visit: bool = False
    description: str | None = None
    task_id: str | None = None
    medication_id: str | None = None
    is_virtual: bool = False
    parent_task_id: str | None = None
    status: str = ""
    kind: str | None = None

    def format_time(self) -> str:
        """Format the event time for display."""
        return self.start.strftime("%H:%M")


@dataclass
class EventFilters:
    """Which event kinds a calendar shows."""

    medications: bool = True
    tasks: bool = True
    medical_appointments: bool = True
    social_visits: bool = True

    def allows(self, event: CalendarEvent) -> bool:
        match event.type:
            case ItemType.MEDICATION:
                return self.medications
            case ItemType.TASK:
                return self.tasks
            case ItemType.APPOINTMENT:
                return self.social_visits if event.is_social_visit else self.medical_appointments
        return True


def event_from_dose(entry: MedicationScheduleEntry, instructions: str = "") -> CalendarEvent:
    return CalendarEvent(
        id=entry.id,
        title=entry.title,
        start=entry.scheduled_time,
        end=entry.scheduled_time + DOSE_DURATION,
        color=MEDICATION_COLOR,
        type=ItemType.MEDICATION,
        description=instructions or None,
        medication_id=entry.medication_id,
        status=entry.status.value,
    )


def event_from_task(task: Task) -> CalendarEvent | None:
    """Calendar entry for a task, or None if it has no date to show on."""
    start = task.display_date
    if start is None:
        return None
    classification = classify(task)
    title = f"{task.title} ({task.assigned_to_name.split()[0]})" if task.assigned_to_name else task.title
    return CalendarEvent(
        id=task.id if task.is_virtual else f"task-{task.id}",
        title=title,
        start=start,
        end=None,
        color=display_color(classification),
        type=classification.type,
        is_social_visit=classification.is_social_visit,
        description=task.description,
        task_id=task.id,
        is_virtual=task.is_virtual,
        parent_task_id=task.parent_task_id,
        status=task.status.value,
        kind=appointment_kind(task.description) if classification.type == ItemType.APPOINTMENT else None,
    )


def build_calendar(
    tasks: list[Task],
    doses: list[MedicationScheduleEntry],
    filters: EventFilters | None = None,
    instructions: dict[str, str] | None = None,
) -> list[CalendarEvent]:
    """
    Merge doses and tasks into filtered calendar events sorted by start.

    Pure function - no I/O. Recurrence templates are never shown themselves.
    """
    filters = filters or EventFilters()
    instructions = instructions or {}
    events = [event_from_dose(d, instructions.get(d.medication_id, "")) for d in doses]
    for task in tasks:
        if task.is_recurrence_template:
            continue
        event = event_from_task(task)
        if event:
            events.append(event)
    return sorted((e for e in events if filters.allows(e)), key=lambda e: (e.start, e.title))

"""Schedule view model and time bucketing - pure functions, no I/O dependencies."""

from dataclasses import dataclass
from datetime import datetime, time, timedelta
from enum import Enum

from .classify import ItemType, appointment_kind, classify
from .medications import MedicationScheduleEntry
from .tasks import Task

TERMINAL_STATUSES = {"completed", "given", "missed", "refused"}


class ViewMode(Enum):
    TODAY = "today"
    ALL = "all"
    PENDING = "pending"


class Bucket(Enum):
    """Schedule groups, in display order."""

    DUE_NOW = "due_now"
    UPCOMING = "upcoming"
    LATER = "later"
    ANYTIME = "anytime"
    OPEN = "open"
    COMPLETED = "completed"


BUCKET_TITLES = {
    Bucket.DUE_NOW: "Do Now",
    Bucket.UPCOMING: "Coming Up",
    Bucket.LATER: "Later Today",
    Bucket.ANYTIME: "Anytime Today",
    Bucket.OPEN: "Tasks",
    Bucket.COMPLETED: "Completed",
}


@dataclass
class ScheduleItem:
    """A task or medication dose as shown on a schedule."""

    id: str
    type: ItemType
    title: str
    time: datetime | None
    status: str = "pending"
    description: str | None = None
    assigned_to: str = ""
    is_social_visit: bool = False
    task_id: str | None = None
    medication_id: str | None = None
    reminder_date: datetime | None = None
    due_date: datetime | None = None
    is_virtual: bool = False
    parent_task_id: str | None = None
    virtual_date: datetime | None = None
    # medical, therapy, lab or social; appointments only
    kind: str | None = None

    @property
    def is_completed(self) -> bool:
        return self.status in TERMINAL_STATUSES


@dataclass
class ScheduleGroup:
    bucket: Bucket
    items: list[ScheduleItem]

    @property
    def title(self) -> str:
        return BUCKET_TITLES[self.bucket]


def schedule_item_from_task(task: Task) -> ScheduleItem:
    """Build a schedule item from a concrete or virtual task."""
    classification = classify(task)
    return ScheduleItem(
        id=task.id if task.is_virtual else f"task-{task.id}",
        type=classification.type,
        title=task.title,
        time=task.display_date,
        status=task.status.value,
        description=task.description,
        assigned_to=task.assigned_to_name,
        is_social_visit=classification.is_social_visit,
        task_id=task.id,
        reminder_date=task.reminder_date,
        due_date=task.due_date,
        is_virtual=task.is_virtual,
        parent_task_id=task.parent_task_id,
        virtual_date=task.virtual_date,
        kind=appointment_kind(task.description) if classification.type == ItemType.APPOINTMENT else None,
    )


def schedule_item_from_medication(entry: MedicationScheduleEntry) -> ScheduleItem:
    """Build a schedule item from a scheduled dose."""
    return ScheduleItem(
        id=entry.id,
        type=ItemType.MEDICATION,
        title=entry.title,
        time=entry.scheduled_time,
        status=entry.status.value,
        medication_id=entry.medication_id,
        due_date=entry.scheduled_time,
    )


def include_in_view(item: ScheduleItem, now: datetime, view_mode: ViewMode) -> bool:
    """
    Whether an item belongs in a view.

    today: shown on today's date, open-ended (reminder passed, no due date), or
           today falls between reminder and due date.
    pending: not yet due or no due date; appointments never shown.
    all: everything.
    """
    reminder, due = item.reminder_date, item.due_date

    if view_mode == ViewMode.ALL:
        return True

    if view_mode == ViewMode.PENDING:
        if item.type == ItemType.APPOINTMENT:
            return False
        if reminder and reminder > now:
            return True
        return due is None or due > now

    if item.time and item.time.date() == now.date():
        return True
    if reminder and reminder <= now:
        return due is None or now <= due
    return False


def _sort_key(item: ScheduleItem) -> tuple:
    # Untimed items sort after timed ones, then by title
    if item.time is None:
        return (1, 0.0, item.title)
    return (0, item.time.timestamp(), item.title)


def _today_bucket(item: ScheduleItem, now: datetime, due_now: timedelta, upcoming: timedelta) -> Bucket:
    # Open-ended tasks, and spans due on a later day, have no slot today
    if item.time is None or item.due_date is None:
        return Bucket.ANYTIME
    if item.time > datetime.combine(now.date(), time.max, tzinfo=now.tzinfo):
        return Bucket.ANYTIME
    if item.time <= now + due_now:
        return Bucket.DUE_NOW
    if item.time <= now + due_now + upcoming:
        return Bucket.UPCOMING
    return Bucket.LATER


def bucket(
    items: list[ScheduleItem],
    now: datetime,
    view_mode: ViewMode,
    due_now_minutes: int = 30,
    upcoming_minutes: int = 30,
) -> list[ScheduleGroup]:
    """
    Partition items into ordered display groups.

    Pure function - no I/O. Completed items always land in the completed group.
    In the today view the rest split into due-now (at or before now plus the
    proximity threshold), upcoming (the following window), later, and anytime
    (no due date). Other views use a single open group. Empty groups are
    omitted.
    """
    due_now = timedelta(minutes=due_now_minutes)
    upcoming = timedelta(minutes=upcoming_minutes)
    grouped: dict[Bucket, list[ScheduleItem]] = {b: [] for b in Bucket}

    for item in items:
        if item.is_completed:
            grouped[Bucket.COMPLETED].append(item)
        elif view_mode == ViewMode.TODAY:
            grouped[_today_bucket(item, now, due_now, upcoming)].append(item)
        else:
            grouped[Bucket.OPEN].append(item)

    return [
        ScheduleGroup(bucket=b, items=sorted(grouped[b], key=_sort_key))
        for b in Bucket
        if grouped[b]
    ]


def build_schedule(
    tasks: list[Task],
    doses: list[MedicationScheduleEntry],
    now: datetime,
    view_mode: ViewMode,
) -> list[ScheduleItem]:
    """Schedule items for a view, sorted by time."""
    items = [schedule_item_from_medication(d) for d in doses]
    items.extend(schedule_item_from_task(t) for t in tasks if not t.is_recurrence_template)
    return sorted((i for i in items if include_in_view(i, now, view_mode)), key=_sort_key)


def minutes_delta(when: datetime, now: datetime) -> int:
    """Floor of (when - now) in whole minutes; negative when late."""
    delta_ms = (when - now) // timedelta(milliseconds=1)
    return delta_ms // 60000


def relative_label(when: datetime, now: datetime) -> str:
    """Human label for how late or how soon an item is."""
    if when <= now:
        late = minutes_delta(now, when)
        return "Due now" if late == 0 else f"{late} min late"
    until = minutes_delta(when, now)
    return "Due now" if until == 0 else f"in {until} min"


"""Recurring task expansion - pure functions, no I/O dependencies."""

from dataclasses import dataclass, replace
from datetime import date, datetime, time, timezone, tzinfo
from enum import Enum

from dateutil.relativedelta import relativedelta
from dateutil.rrule import DAILY, rrule

from .tasks import Task, TaskStatus, parse_datetime

VIRTUAL_MARKER = "_virtual_"


class RecurrenceType(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


_INTERVAL_DAYS = {
    RecurrenceType.DAILY: 1,
    RecurrenceType.WEEKLY: 7,
    RecurrenceType.BIWEEKLY: 14,
}


@dataclass(frozen=True)
class RecurrencePattern:
    """A recurrence rule: how often, and optionally until which day."""

    type: RecurrenceType
    end_date: date | None = None


def parse_recurrence_rule(rule: str | None, tz: tzinfo | None = None) -> RecurrencePattern | None:
    """
    Parse a rule string of the form "<type>" or "<type>;<iso end date>".

    The end date is taken as a calendar day in tz (the series' timezone);
    clients store it as local midnight in UTC. Returns None for empty or
    unrecognized rules.
    """
    if not rule:
        return None
    kind, _, end = rule.strip().partition(";")
    try:
        rec_type = RecurrenceType(kind.strip().lower())
    except ValueError:
        return None
    end_date = None
    if end.strip():
        end_dt = parse_datetime(end, tz)
        if end_dt is None:
            return None
        end_date = end_dt.date()
    return RecurrencePattern(type=rec_type, end_date=end_date)


def format_recurrence_rule(pattern: RecurrencePattern) -> str:
    """Inverse of parse_recurrence_rule."""
    if pattern.end_date:
        return f"{pattern.type.value};{pattern.end_date.isoformat()}T00:00:00.000Z"
    return pattern.type.value


def _monthly(anchor: datetime, start: datetime, until: datetime) -> list[datetime]:
    """
    Monthly occurrences in [start, until].

    Each one is the anchor plus n months (relativedelta clamps the day), so a
    series on the 31st returns to the 31st after a short month.
    """
    gap = relativedelta(start.date(), anchor.date())
    n = max(0, gap.years * 12 + gap.months - 1)
    result = []
    while True:
        when = anchor + relativedelta(months=n)
        if when > until:
            return result
        if when >= start:
            result.append(when)
        n += 1


def occurrence_times(
    anchor: datetime,
    pattern: RecurrencePattern,
    window_start: date,
    window_end: date,
) -> list[datetime]:
    """Occurrence datetimes whose day falls in the window, ascending."""
    last = min(window_end, pattern.end_date) if pattern.end_date else window_end
    start = datetime.combine(window_start, time.min, tzinfo=anchor.tzinfo)
    until = datetime.combine(last, time.max, tzinfo=anchor.tzinfo)
    if until < start or until < anchor:
        return []
    if pattern.type == RecurrenceType.MONTHLY:
        return _monthly(anchor, start, until)
    rule = rrule(DAILY, interval=_INTERVAL_DAYS[pattern.type], dtstart=anchor, until=until)
    return rule.between(start, until, inc=True)


def virtual_id(template_id: str, day: date) -> str:
    return f"{template_id}{VIRTUAL_MARKER}{day.isoformat()}"


def parse_virtual_id(task_id: str) -> tuple[str, date | None] | None:
    """
    Split a virtual occurrence id into (template id, occurrence day).

    Understands both the ISO-date suffix and the epoch-millisecond suffix the
    backend uses. Returns None when the id is not virtual; the day is None when
    the suffix cannot be read.
    """
    template_id, marker, suffix = task_id.partition(VIRTUAL_MARKER)
    if not marker or not template_id:
        return None
    if suffix.isdigit():
        return template_id, datetime.fromtimestamp(int(suffix) / 1000, timezone.utc).date()
    try:
        return template_id, date.fromisoformat(suffix[:10])
    except ValueError:
        return template_id, None


def is_virtual_id(task_id: str) -> bool:
    return parse_virtual_id(task_id) is not None


def _occurrence(template: Task, when: datetime) -> Task:
    return replace(
        template,
        id=virtual_id(template.id, when.date()),
        status=TaskStatus.PENDING,
        due_date=when,
        parent_task_id=template.id,
        is_recurrence_template=False,
        is_virtual=True,
        virtual_date=when,
        # The template's reminder belongs to the first occurrence only
        reminder_date=None,
    )


def expand_recurring_task(
    template: Task,
    window_start: date,
    window_end: date,
    materialized_dates: set[date] | None = None,
) -> list[Task]:
    """
    Project a recurrence template onto the days in [window_start, window_end].

    Pure function - no I/O. The template's due date is the series anchor; each
    virtual occurrence gets its own due date. Days that already have a
    materialized instance are skipped.
    """
    if not template.is_recurrence_template or not template.due_date:
        return []
    pattern = parse_recurrence_rule(template.recurrence_rule, template.due_date.tzinfo)
    if pattern is None:
        return []

    skip = materialized_dates or set()
    return [
        _occurrence(template, when)
        for when in occurrence_times(template.due_date, pattern, window_start, window_end)
        if when.date() not in skip
    ]


def occurs_on(template: Task, day: date) -> bool:
    """Check if a recurring template has an occurrence on a specific day."""
    return bool(expand_recurring_task(template, day, day))


def materialized_days(tasks: list[Task]) -> dict[str, set[date]]:
    """Map template id to the days already materialized as concrete tasks."""
    days: dict[str, set[date]] = {}
    for t in tasks:
        if t.parent_task_id and not t.is_virtual and t.due_date:
            days.setdefault(t.parent_task_id, set()).add(t.due_date.date())
    return days

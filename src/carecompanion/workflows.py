"""Workflow layer between the CLI and the functional core.

Loads always refetch and re-derive from scratch; writes resolve their target,
materialize virtual occurrences first, perform a single request, then announce
DATA_CHANGED so every subscriber refetches. Local state is never patched.
"""

import logging
import threading
from datetime import date, datetime, time
from typing import Callable
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

from .adapters.care_api import ApiError, AuthenticationError
from .config import Config
from .core.calendar import CalendarEvent, EventFilters, build_calendar
from .core.materialize import (
    EditScope,
    PendingMaterialization,
    WriteTarget,
    completion_target,
    resolve_write_target,
)
from .core.medications import DoseStatus, expand_medication
from .core.recurrence import expand_recurring_task, materialized_days, parse_virtual_id
from .core.schedule import ScheduleGroup, ScheduleItem, ViewMode, bucket, build_schedule
from .core.tasks import Task, filter_visible_to
from .ports import DATA_CHANGED, CareRepository, EventBus

logger = logging.getLogger(__name__)


def fetch_window(view_mode: ViewMode, now: datetime) -> tuple[datetime, datetime]:
    """
    Date range to request for a view.

    today covers the current day; all and pending cover one month back to
    three months ahead.
    """
    day_start = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
    day_end = datetime.combine(now.date(), time.max, tzinfo=now.tzinfo)
    if view_mode == ViewMode.TODAY:
        return day_start, day_end
    return day_start - relativedelta(months=1), day_end + relativedelta(months=3)


def expand_templates(tasks: list[Task], start: date, end: date) -> list[Task]:
    """
    Replace recurrence templates with their virtual occurrences.

    Occurrences the backend already projected, or already materialized, are
    not duplicated.
    """
    templates = [t for t in tasks if t.is_recurrence_template]
    concrete = [t for t in tasks if not t.is_recurrence_template]
    if not templates:
        return concrete

    done = materialized_days(concrete)
    projected = {
        (t.parent_task_id, t.occurrence_date()) for t in concrete if t.is_virtual and t.parent_task_id
    }
    result = list(concrete)
    for template in templates:
        for occ in expand_recurring_task(template, start, end, done.get(template.id)):
            if (template.id, occ.occurrence_date()) not in projected:
                result.append(occ)
    return result


def load_tasks(repo: CareRepository, config: Config, start: datetime, end: datetime) -> list[Task]:
    tasks = repo.fetch_tasks(start, end, include_virtual=True)
    tasks = expand_templates(tasks, start.date(), end.date())
    return filter_visible_to(tasks, config.user_id)


def load_schedule(
    repo: CareRepository,
    config: Config,
    now: datetime,
    view_mode: ViewMode,
) -> list[ScheduleItem]:
    """Fetch tasks and today's doses and derive the schedule for a view."""
    start, end = fetch_window(view_mode, now)
    tasks = load_tasks(repo, config, start, end)
    doses = repo.fetch_today_medications(config.patient_id) if config.patient_id else []
    return build_schedule(tasks, doses, now, view_mode)


def load_calendar(
    repo: CareRepository,
    config: Config,
    start: date,
    end: date,
    filters: EventFilters | None = None,
) -> list[CalendarEvent]:
    """Fetch medications and tasks and derive calendar events for [start, end]."""
    tz = ZoneInfo(config.timezone)
    range_start = datetime.combine(start, time.min, tzinfo=tz)
    range_end = datetime.combine(end, time.max, tzinfo=tz)

    medications = repo.fetch_medications()
    doses = []
    for med in medications:
        doses.extend(expand_medication(med, start, end, tz))
    instructions = {m.id: m.instructions for m in medications}

    tasks = load_tasks(repo, config, range_start, range_end)
    return build_calendar(tasks, doses, filters, instructions)


class ScheduleLoader:
    """
    Holds the current schedule and refetches it on demand or on DATA_CHANGED.

    Every refresh takes a generation number; a response that arrives after a
    newer refresh started is discarded instead of overwriting newer data.
    """

    def __init__(
        self,
        repo: CareRepository,
        config: Config,
        bus: EventBus | None = None,
        clock: Callable[[], datetime] | None = None,
        view_mode: ViewMode = ViewMode.TODAY,
    ):
        self.repo = repo
        self.config = config
        self.view_mode = view_mode
        self.items: list[ScheduleItem] = []
        self.error: Exception | None = None
        self._clock = clock or (lambda: datetime.now(ZoneInfo(config.timezone)))
        self._generation = 0
        self._lock = threading.Lock()
        self._unsubscribe = bus.subscribe(DATA_CHANGED, lambda _: self.refresh()) if bus else None

    def refresh(self, view_mode: ViewMode | None = None) -> bool:
        """Refetch and re-derive. Returns False if the result was stale or failed."""
        with self._lock:
            self._generation += 1
            generation = self._generation
            if view_mode is not None:
                self.view_mode = view_mode
            mode = self.view_mode

        try:
            items = load_schedule(self.repo, self.config, self._clock(), mode)
        except (ApiError, AuthenticationError) as e:
            logger.warning(f"Failed to load schedule: {e}")
            with self._lock:
                if generation == self._generation:
                    self.error = e
            return False

        with self._lock:
            if generation != self._generation:
                logger.debug(f"Discarding stale schedule (generation {generation} < {self._generation})")
                return False
            self.items = items
            self.error = None
            return True

    def groups(self) -> list[ScheduleGroup]:
        """Current items bucketed for display."""
        return bucket(
            self.items,
            self._clock(),
            self.view_mode,
            due_now_minutes=self.config.due_now_minutes,
            upcoming_minutes=self.config.upcoming_minutes,
        )

    def close(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None


# ============== Writes ==============


def occurrence_from_item(item: ScheduleItem) -> Task:
    """The task identity behind a schedule item, for write routing."""
    if item.task_id is None:
        raise ValueError(f"{item.id} is not a task")
    return Task(
        id=item.task_id,
        title=item.title,
        description=item.description,
        due_date=item.due_date,
        reminder_date=item.reminder_date,
        parent_task_id=item.parent_task_id,
        is_virtual=item.is_virtual,
        virtual_date=item.virtual_date,
    )


def occurrence_from_id(task_id: str, tz=None) -> Task:
    """
    Best-effort task identity from a bare id.

    Prefer occurrence_from_item: a bare virtual id only carries the day, so
    the occurrence is placed at midnight.
    """
    parsed = parse_virtual_id(task_id)
    if parsed is None:
        return Task(id=task_id, title="")
    template_id, day = parsed
    when = datetime.combine(day, time.min, tzinfo=tz) if day else None
    return Task(
        id=task_id,
        title="",
        due_date=when,
        parent_task_id=template_id,
        is_virtual=True,
        virtual_date=when,
    )


def _writable_id(repo: CareRepository, target: WriteTarget) -> str:
    """Materialize first when needed. Materialization errors propagate."""
    if isinstance(target, PendingMaterialization):
        task = repo.materialize(target.occurrence_id, target.virtual_date)
        logger.info(f"Materialized {target.occurrence_id} as {task.id}")
        target = target.resolve(task.id)
    return target.target_id


def _announce(bus: EventBus | None, kind: str, task_id: str) -> None:
    if bus:
        bus.publish(DATA_CHANGED, {"kind": kind, "id": task_id})


def complete_task(
    repo: CareRepository,
    occurrence: Task,
    notes: str | None = None,
    bus: EventBus | None = None,
) -> Task:
    """Complete exactly this occurrence, materializing it first if virtual."""
    task_id = _writable_id(repo, completion_target(occurrence))
    task = repo.complete_task(task_id, notes)
    _announce(bus, "complete", task_id)
    return task


def edit_task(
    repo: CareRepository,
    occurrence: Task,
    scope: EditScope,
    updates: dict,
    bus: EventBus | None = None,
) -> Task:
    """Edit one occurrence or the whole series it belongs to."""
    target = resolve_write_target(occurrence, scope)
    task_id = _writable_id(repo, target)
    if scope == EditScope.SERIES:
        task = repo.update_series(task_id, updates)
    else:
        task = repo.update_task(task_id, updates)
    _announce(bus, "edit", task_id)
    return task


def delete_task(repo: CareRepository, occurrence: Task, bus: EventBus | None = None) -> str:
    """Delete one occurrence. Returns the id that was deleted."""
    task_id = _writable_id(repo, resolve_write_target(occurrence, EditScope.OCCURRENCE))
    repo.delete_task(task_id)
    _announce(bus, "delete", task_id)
    return task_id


def log_dose(
    repo: CareRepository,
    item: ScheduleItem,
    status: DoseStatus,
    notes: str | None = None,
    bus: EventBus | None = None,
) -> dict:
    """Record a scheduled dose as given, missed or refused."""
    if item.medication_id is None or item.time is None:
        raise ValueError(f"{item.id} is not a medication dose")
    if status == DoseStatus.PENDING:
        raise ValueError("A dose can only be logged as given, missed or refused")
    result = repo.log_medication(item.medication_id, item.time, status.value, notes)
    _announce(bus, "dose", item.id)
    return result


def find_item(items: list[ScheduleItem], item_id: str) -> ScheduleItem | None:
    """Look up an item by its schedule id or its underlying task id."""
    for item in items:
        if item_id in (item.id, item.task_id):
            return item
    return None

"""Write-target resolution for recurring task occurrences - no I/O dependencies."""

from dataclasses import dataclass
from datetime import datetime, time
from enum import Enum

from .recurrence import is_virtual_id, parse_virtual_id
from .tasks import Task


class VirtualTaskError(Exception):
    """Raised when a virtual occurrence id is used as a write target."""

    pass


class EditScope(Enum):
    OCCURRENCE = "occurrence"
    SERIES = "series"


@dataclass(frozen=True)
class DirectTarget:
    """A concrete task id that can be written to as-is."""

    target_id: str

    def __post_init__(self):
        if is_virtual_id(self.target_id):
            raise VirtualTaskError(f"{self.target_id} is virtual; materialize it first")

    @property
    def must_materialize_first(self) -> bool:
        return False


@dataclass(frozen=True)
class PendingMaterialization:
    """
    A virtual occurrence that needs a concrete record before any write.

    Has no target_id. The only way to a writable id is resolve()
    with the id of the task the backend materialized.
    """

    occurrence_id: str
    template_id: str
    virtual_date: datetime | None

    @property
    def must_materialize_first(self) -> bool:
        return True

    def resolve(self, materialized_task_id: str) -> DirectTarget:
        return DirectTarget(materialized_task_id)


WriteTarget = DirectTarget | PendingMaterialization


def template_id_of(occurrence: Task) -> str:
    """The template a task belongs to, or its own id if it is the template."""
    if occurrence.parent_task_id:
        return occurrence.parent_task_id
    parsed = parse_virtual_id(occurrence.id)
    if parsed:
        return parsed[0]
    return occurrence.id


def resolve_write_target(occurrence: Task, scope: EditScope) -> WriteTarget:
    """
    Decide where an edit of this occurrence must be written.

    occurrence scope: virtual occurrences must be materialized first; concrete
    ones (materialized or one-off) are written directly.
    series scope: the template, found via parent_task_id, the virtual id
    suffix, or the task itself when it is the template.
    """
    if scope == EditScope.SERIES:
        return DirectTarget(template_id_of(occurrence))

    if occurrence.is_virtual or is_virtual_id(occurrence.id):
        when = occurrence.virtual_date or occurrence.due_date
        if when is None:
            parsed = parse_virtual_id(occurrence.id)
            if parsed and parsed[1]:
                when = datetime.combine(parsed[1], time())
        return PendingMaterialization(
            occurrence_id=occurrence.id,
            template_id=template_id_of(occurrence),
            virtual_date=when,
        )
    return DirectTarget(occurrence.id)


def completion_target(occurrence: Task) -> WriteTarget:
    """Completion only ever touches the single occurrence."""
    return resolve_write_target(occurrence, EditScope.OCCURRENCE)

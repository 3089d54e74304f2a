"""Care backend repository interface."""

from datetime import datetime
from typing import Protocol

from carecompanion.core.medications import Medication, MedicationScheduleEntry
from carecompanion.core.tasks import Task


class CareRepository(Protocol):
    """Interface for reading and writing care data on the backend."""

    def fetch_tasks(self, start: datetime, end: datetime, include_virtual: bool = True) -> list[Task]:
        """Fetch tasks (and virtual occurrences) in a date range."""
        ...

    def fetch_today_medications(self, patient_id: str) -> list[MedicationScheduleEntry]:
        """Fetch today's dose schedule with logged statuses."""
        ...

    def fetch_medications(self) -> list[Medication]:
        """Fetch medications including their schedule times."""
        ...

    def materialize(self, task_id: str, virtual_date: datetime | None) -> Task:
        """Turn a virtual occurrence into a concrete task. Returns the new task."""
        ...

    def update_task(self, task_id: str, updates: dict) -> Task:
        """Update a single concrete task."""
        ...

    def update_series(self, task_id: str, updates: dict) -> Task:
        """Update a recurrence template and all its future occurrences."""
        ...

    def complete_task(self, task_id: str, notes: str | None = None) -> Task:
        """Mark a concrete task completed."""
        ...

    def delete_task(self, task_id: str) -> None:
        """Delete a concrete task."""
        ...

    def log_medication(
        self,
        medication_id: str,
        scheduled_time: datetime,
        status: str,
        notes: str | None = None,
    ) -> dict:
        """Record a dose as given, missed or refused."""
        ...

"""Medication schedule expansion - pure functions, no I/O dependencies."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from enum import Enum

from .tasks import parse_datetime

logger = logging.getLogger(__name__)


class DoseStatus(Enum):
    """Administration status of a scheduled dose."""

    PENDING = "pending"
    GIVEN = "given"
    MISSED = "missed"
    REFUSED = "refused"


@dataclass
class Medication:
    """An active or past medication with daily schedule times."""

    id: str
    name: str
    dosage: str
    schedule_times: list[str]
    is_active: bool = True
    start_date: date | None = None
    end_date: date | None = None
    instructions: str = ""

    @classmethod
    def from_api(cls, data: dict, tz: tzinfo | None = None) -> "Medication":
        """Create Medication from a /medications?includeSchedules=true item."""
        start = parse_datetime(data.get("startDate"), tz)
        end = parse_datetime(data.get("endDate"), tz)
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            dosage=data.get("dosage", ""),
            schedule_times=list(data.get("scheduleTimes") or data.get("scheduleTime") or []),
            is_active=bool(data.get("isActive", True)),
            start_date=start.date() if start else None,
            end_date=end.date() if end else None,
            instructions=data.get("instructions") or "",
        )

    def is_scheduled_on(self, day: date) -> bool:
        if self.start_date and day < self.start_date:
            return False
        if self.end_date and day > self.end_date:
            return False
        return True


@dataclass
class MedicationScheduleEntry:
    """One scheduled dose of a medication."""

    medication_id: str
    medication_name: str
    dosage: str
    scheduled_time: datetime
    status: DoseStatus = DoseStatus.PENDING
    given_time: datetime | None = None
    given_by: str = ""
    notes: str = ""
    log_id: str | None = None

    @property
    def id(self) -> str:
        return occurrence_id(self.medication_id, self.scheduled_time)

    @property
    def title(self) -> str:
        return f"{self.medication_name} - {self.dosage}" if self.dosage else self.medication_name

    @classmethod
    def from_api(cls, data: dict, tz: tzinfo | None = None) -> "MedicationScheduleEntry":
        """
        Create an entry from a /medications/today schedule item.

        A missing or unreadable scheduledTime leaves scheduled_time as None;
        callers drop such entries.
        """
        given_by = data.get("givenBy") or {}
        try:
            status = DoseStatus(str(data.get("status") or "pending").lower())
        except ValueError:
            status = DoseStatus.PENDING
        return cls(
            medication_id=data.get("medicationId") or "",
            medication_name=data.get("medicationName", ""),
            dosage=data.get("dosage", ""),
            scheduled_time=parse_datetime(data.get("scheduledTime"), tz),
            status=status,
            given_time=parse_datetime(data.get("givenTime"), tz),
            given_by=" ".join(
                p for p in (given_by.get("firstName"), given_by.get("lastName")) if p
            ),
            notes=data.get("notes") or "",
            log_id=data.get("logId"),
        )


def epoch_millis(dt: datetime) -> int:
    """Milliseconds since the epoch; naive datetimes are read as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp()) * 1000 + dt.microsecond // 1000


def occurrence_id(medication_id: str, scheduled_time: datetime) -> str:
    return f"med-{medication_id}-{epoch_millis(scheduled_time)}"


def parse_schedule_time(value: str) -> time | None:
    """Parse "HH:MM" (24h). Returns None if malformed."""
    hours, sep, minutes = value.strip().partition(":")
    if not sep or not hours.isdigit() or not minutes.isdigit():
        return None
    h, m = int(hours), int(minutes)
    if not (0 <= h <= 23 and 0 <= m <= 59):
        return None
    return time(h, m)


def expand_medication(
    medication: Medication,
    window_start: date,
    window_end: date,
    tz: tzinfo | None = None,
) -> list[MedicationScheduleEntry]:
    """
    One pending dose per schedule time per day in [window_start, window_end].

    Pure function - no I/O. Inactive medications produce nothing; days outside
    the medication's start/end dates are skipped.
    """
    if not medication.is_active:
        return []

    times = []
    for raw in medication.schedule_times:
        parsed = parse_schedule_time(raw)
        if parsed is None:
            logger.warning(f"Skipping malformed schedule time {raw!r} for {medication.name}")
            continue
        times.append(parsed)

    entries = []
    day = window_start
    while day <= window_end:
        if medication.is_scheduled_on(day):
            for t in times:
                entries.append(
                    MedicationScheduleEntry(
                        medication_id=medication.id,
                        medication_name=medication.name,
                        dosage=medication.dosage,
                        scheduled_time=datetime.combine(day, t, tzinfo=tz),
                    )
                )
        day += timedelta(days=1)

    return sorted(entries, key=lambda e: (e.scheduled_time, e.medication_name))

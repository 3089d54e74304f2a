"""Task type classification from free-text markers - no I/O dependencies."""

from dataclasses import dataclass
from enum import Enum

from .tasks import Priority, Task

MEDICAL = "\U0001F3E5"  # 🏥
THERAPY = "\U0001F9E0"  # 🧠
LAB = "\U0001F52C"  # 🔬
SOCIAL = "\U0001F465"  # 👥
FAMILY = "\U0001F468\u200d\U0001F469\u200d\U0001F467\u200d\U0001F466"  # family

APPOINTMENT_MARKERS = (MEDICAL, THERAPY, LAB)
SOCIAL_MARKERS = (SOCIAL, FAMILY)


class ItemType(Enum):
    """Semantic type of a schedule item."""

    MEDICATION = "medication"
    TASK = "task"
    APPOINTMENT = "appointment"


@dataclass(frozen=True)
class Classification:
    type: ItemType
    is_social_visit: bool = False


MEDICATION_COLOR = "#3B82F6"
MEDICAL_APPOINTMENT_COLOR = "#9333EA"
SOCIAL_VISIT_COLOR = "#059669"
TASK_COLOR = "#10B981"


def is_social_visit(description: str | None) -> bool:
    """Social or family visit markers present."""
    text = description or ""
    return any(marker in text for marker in SOCIAL_MARKERS)


def classify(task: Task, from_medication_source: bool = False) -> Classification:
    """
    Assign a semantic type to a task.

    Rules, first match wins:
    1. Medication-schedule items are medications; the description is ignored.
    2. Social/family markers make a social-visit appointment.
    3. High priority with a medical, therapy or lab marker is an appointment.
    4. A persisted "appointment" task type is an appointment.
    5. Everything else is a plain task.
    """
    if from_medication_source:
        return Classification(ItemType.MEDICATION)

    text = task.description or ""
    if is_social_visit(text):
        return Classification(ItemType.APPOINTMENT, is_social_visit=True)
    if task.priority == Priority.HIGH and any(m in text for m in APPOINTMENT_MARKERS):
        return Classification(ItemType.APPOINTMENT)
    if (task.task_type or "").lower() == ItemType.APPOINTMENT.value:
        return Classification(ItemType.APPOINTMENT)
    return Classification(ItemType.TASK)


def display_color(classification: Classification) -> str:
    """Calendar color for a classification."""
    match classification.type:
        case ItemType.MEDICATION:
            return MEDICATION_COLOR
        case ItemType.APPOINTMENT:
            return SOCIAL_VISIT_COLOR if classification.is_social_visit else MEDICAL_APPOINTMENT_COLOR
        case _:
            return TASK_COLOR


def appointment_kind(description: str | None) -> str | None:
    """Which kind of appointment the first marker in the description names."""
    text = description or ""
    kinds = {MEDICAL: "medical", THERAPY: "therapy", LAB: "lab", SOCIAL: "social", FAMILY: "social"}
    found = [(text.find(marker), kind) for marker, kind in kinds.items() if marker in text]
    if not found:
        return None
    return min(found)[1]

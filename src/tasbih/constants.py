"""
Centralized enumerations shared by models, request contracts and services.
Values match the column values stored in the database.
"""

from __future__ import annotations

from enum import Enum


class GoalCategory(str, Enum):
    GENERAL = "general"
    SURAH = "surah"
    AYAH = "ayah"
    DUA = "dua"
    AZKAR = "azkar"
    NAMES99 = "names99"
    SALAWAT = "salawat"
    KALIMAT = "kalimat"


class GoalType(str, Enum):
    RECITE = "recite"
    LEARN = "learn"


class GoalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class PrayerSegment(str, Enum):
    FAJR = "fajr"
    DHUHR = "dhuhr"
    ASR = "asr"
    MAGHRIB = "maghrib"
    ISHA = "isha"
    NONE = "none"


class EventType(str, Enum):
    TAP = "tap"
    BULK = "bulk"
    REPEAT = "repeat"
    LEARN_MARK = "learn_mark"
    GOAL_COMPLETED = "goal_completed"
    AUTO_RESET = "auto_reset"


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    ERROR = "error"


# Daily bucket counters, in prayer order.
SEGMENT_FIELDS: tuple[str, ...] = (
    PrayerSegment.FAJR.value,
    PrayerSegment.DHUHR.value,
    PrayerSegment.ASR.value,
    PrayerSegment.MAGHRIB.value,
    PrayerSegment.ISHA.value,
)

NO_SEGMENT = PrayerSegment.NONE.value


def normalize_segment(value: str | None) -> str | None:
    """Return the segment name, or ``None`` for blank/``"none"`` values."""

    if value is None:
        return None
    cleaned = value.strip().lower()
    if not cleaned or cleaned == NO_SEGMENT:
        return None
    return cleaned


__all__ = [
    "EventType",
    "GoalCategory",
    "GoalStatus",
    "GoalType",
    "JobStatus",
    "NO_SEGMENT",
    "PrayerSegment",
    "SEGMENT_FIELDS",
    "normalize_segment",
]

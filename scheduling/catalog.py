"""Fixed weekly catalog: class types, days, half-hour time labels.

The week is a template, not a calendar. Time labels are 12-hour strings such
as "5:30 AM"; they are only ever compared through `to_minutes`.
"""

from __future__ import annotations

import re
from typing import Dict, Mapping, Optional, Tuple

from .exceptions import InvalidSlotKeyError, InvalidTimeLabelError


CLASS_TYPES: Tuple[str, ...] = ("Lagree", "Strength", "Boxing", "Stretch", "PT")

DAYS_OF_WEEK: Tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

CLASS_TIMES: Tuple[str, ...] = (
    "5:30 AM", "6:00 AM", "6:30 AM", "7:00 AM", "7:30 AM", "8:00 AM",
    "8:30 AM", "9:00 AM", "9:30 AM", "10:00 AM", "10:30 AM", "11:00 AM",
    "11:30 AM", "12:00 PM", "12:30 PM", "1:00 PM", "1:30 PM", "2:00 PM",
    "2:30 PM", "3:00 PM", "3:30 PM", "4:00 PM", "4:30 PM", "5:00 PM",
    "5:30 PM", "6:00 PM", "6:30 PM", "7:00 PM", "7:30 PM", "8:00 PM",
)

# Placeholder for an offered class with no instructor yet.
TBD = "TBD"

# Catch-all type most instructors list first; see the specialization factor.
DEFAULT_CLASS_TYPE = "Lagree"

CLASS_PRIORITY: Dict[str, int] = {
    "Lagree": 1,
    "Strength": 2,
    "Boxing": 3,
    "Stretch": 4,
    "PT": 5,
}
UNKNOWN_PRIORITY = 99


_MON_WED_LAGREE = ("5:30 AM", "6:30 AM", "7:30 AM", "8:30 AM", "9:30 AM", "10:30 AM", "12:00 PM", "1:00 PM", "5:30 PM", "6:30 PM")
_TUE_THU_LAGREE = ("5:30 AM", "6:30 AM", "7:30 AM", "8:30 AM", "9:30 AM", "10:30 AM", "12:00 PM", "1:00 PM", "4:30 PM", "5:30 PM", "6:30 PM")

# day -> class type -> times offered every week
WEEKLY_TEMPLATE: Dict[str, Dict[str, Tuple[str, ...]]] = {
    "Mon": {
        "Lagree": _MON_WED_LAGREE,
        "Strength": ("7:30 AM", "12:00 PM"),
        "Boxing": ("6:30 AM",),
    },
    "Tue": {
        "Lagree": _TUE_THU_LAGREE,
        "Strength": ("6:30 AM", "12:00 PM", "5:30 PM", "6:30 PM"),
    },
    "Wed": {
        "Lagree": _MON_WED_LAGREE,
        "Strength": ("7:30 AM", "12:00 PM"),
        "Boxing": ("6:30 AM",),
    },
    "Thu": {
        "Lagree": _TUE_THU_LAGREE,
        "Strength": ("6:30 AM", "12:00 PM", "5:30 PM", "6:30 PM"),
    },
    "Fri": {
        "Lagree": ("5:30 AM", "6:30 AM", "7:30 AM", "8:30 AM", "9:30 AM", "10:30 AM", "12:00 PM", "1:00 PM"),
        "Strength": ("7:30 AM", "12:00 PM"),
        "Boxing": ("6:30 AM",),
        "Stretch": ("1:00 PM",),
    },
    "Sat": {
        "Lagree": ("7:00 AM", "8:00 AM", "9:00 AM", "10:00 AM", "11:00 AM", "12:00 PM", "1:00 PM"),
        "Strength": ("9:00 AM", "10:00 AM", "11:00 AM"),
        "Boxing": ("8:00 AM",),
    },
    "Sun": {
        "Lagree": ("9:00 AM", "10:00 AM", "11:00 AM"),
        "Stretch": ("12:00 PM", "1:00 PM"),
    },
}


# Starting roster used by demos and `ScheduleService.with_default_roster()`.
DEFAULT_INSTRUCTORS: Tuple[dict, ...] = (
    {"instructor_id": "DB", "name": "Dayron", "email": "dayron@example.com", "phone": "555-123-4567",
     "class_types": ["Lagree", "Strength", "Boxing", "PT"], "block_size": 4, "min_classes": 15, "max_classes": 20},
    {"instructor_id": "MH", "name": "Michelle", "email": "michelle@example.com", "phone": "555-234-5678",
     "class_types": ["Lagree", "Strength"], "block_size": 4, "min_classes": 15, "max_classes": 20},
    {"instructor_id": "AK", "name": "Allison", "class_types": ["Stretch", "Lagree"], "block_size": 2, "min_classes": 2, "max_classes": 10},
    {"instructor_id": "AD", "name": "Aseel", "class_types": ["Lagree"], "block_size": 1, "min_classes": 1, "max_classes": 6},
    {"instructor_id": "TS", "name": "Taylor", "class_types": ["Lagree"], "block_size": 2, "min_classes": 4, "max_classes": 8},
    {"instructor_id": "MB", "name": "Megan", "class_types": ["Lagree"], "block_size": 2, "min_classes": 3, "max_classes": 8},
    {"instructor_id": "EF", "name": "Erin", "class_types": ["Lagree"], "block_size": 2, "min_classes": 4, "max_classes": 10},
    {"instructor_id": "SS", "name": "Sandhya", "class_types": ["Lagree"], "block_size": 2, "min_classes": 5, "max_classes": 15},
    {"instructor_id": "JD", "name": "Jess", "class_types": ["Strength"], "block_size": 2, "min_classes": 5, "max_classes": 15},
)


# ----------------------------
# Time labels
# ----------------------------


_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2}) (AM|PM)$")

_TIME_INDEX: Dict[str, int] = {t: i for i, t in enumerate(CLASS_TIMES)}


def to_minutes(label: str) -> int:
    """Convert "H:MM AM/PM" to minutes since midnight.

    "12:00 AM" -> 0, "12:00 PM" -> 720, "5:30 PM" -> 1050.
    """

    m = _TIME_RE.match(str(label or "").strip())
    if not m:
        raise InvalidTimeLabelError(f"Malformed time label: {label!r}")

    hours = int(m.group(1))
    minutes = int(m.group(2))
    period = m.group(3)
    if not 1 <= hours <= 12 or minutes > 59:
        raise InvalidTimeLabelError(f"Malformed time label: {label!r}")

    if period == "PM" and hours != 12:
        hours += 12
    elif period == "AM" and hours == 12:
        hours = 0
    return hours * 60 + minutes


def is_time_in_range(time: str, start_time: str, end_time: str) -> bool:
    """Inclusive on both ends."""

    return to_minutes(start_time) <= to_minutes(time) <= to_minutes(end_time)


def time_index(time: str, times: Tuple[str, ...] = CLASS_TIMES) -> Optional[int]:
    if times is CLASS_TIMES:
        return _TIME_INDEX.get(time)
    try:
        return times.index(time)
    except ValueError:
        return None


# ----------------------------
# Slot keys
# ----------------------------


def slot_key(day: str, time: str) -> str:
    return f"{day}-{time}"


def parse_slot_key(key: str) -> Tuple[str, str]:
    """Split "Mon-7:00 AM" into ("Mon", "7:00 AM").

    Day names never contain a hyphen, so the first one is the separator.
    """

    day, sep, time = str(key or "").partition("-")
    if not sep or not day or not time:
        raise InvalidSlotKeyError(f"Malformed slot key: {key!r}")
    return day, time


def is_catalog_slot(day: str, class_type: str, time: str) -> bool:
    return day in DAYS_OF_WEEK and class_type in CLASS_TYPES and time in _TIME_INDEX


def class_priority(
    class_type: str,
    priorities: Mapping[str, int] = CLASS_PRIORITY,
    unknown: int = UNKNOWN_PRIORITY,
) -> int:
    return int(priorities.get(class_type, unknown))

"""Validation / normalization helpers for instructor records.

Incoming records come from forms, JSON files, or older saved data and may use
either snake_case or the camelCase field names of older exports.
Normalization never raises for bad domain data: missing fields get defaults
and invalid entries are rewritten or dropped.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

from scheduling.catalog import to_minutes
from scheduling.exceptions import InvalidTimeLabelError
from scheduling.instructors import Blacklist, Instructor, TimeRange


logger = logging.getLogger(__name__)


DEFAULT_BLOCK_SIZE = 2
DEFAULT_MIN_CLASSES = 2
DEFAULT_MAX_CLASSES = 10

_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,32}$")

_ALIASES = {
    "id": "instructor_id",
    "classTypes": "class_types",
    "blockSize": "block_size",
    "minClasses": "min_classes",
    "maxClasses": "max_classes",
    "classTypePreferences": "class_type_preferences",
    "timeRanges": "time_ranges",
    "startTime": "start_time",
    "endTime": "end_time",
}

# day labels older records still carry
_LEGACY_DAYS = {"Tues": "Tue"}


def require_non_empty(value: str, field: str) -> Tuple[bool, str]:
    if not value or not str(value).strip():
        return False, f"{field} cannot be empty"
    return True, ""


def validate_id(value: str, field: str) -> Tuple[bool, str]:
    ok, msg = require_non_empty(value, field)
    if not ok:
        return ok, msg
    if not _ID_RE.match(str(value).strip()):
        return False, f"{field} must be 1-32 chars (letters/numbers/_/-)"
    return True, ""


def validate_positive_int(value: Any, field: str, min_value: int = 1, max_value: int | None = None) -> Tuple[bool, str]:
    if value is None or isinstance(value, bool):
        return False, f"{field} is required"
    try:
        value = int(value)
    except (TypeError, ValueError):
        return False, f"{field} must be a whole number"
    if value < min_value:
        return False, f"{field} must be >= {min_value}"
    if max_value is not None and value > max_value:
        return False, f"{field} must be <= {max_value}"
    return True, ""


def canonical_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Rename camelCase aliases to the snake_case field names."""

    return {_ALIASES.get(k, k): v for k, v in (data or {}).items()}


def _int_or_default(value: Any, field: str, default: int) -> int:
    ok, msg = validate_positive_int(value, field)
    if not ok:
        if value not in (None, 0, ""):
            logger.warning("%s; using default %d", msg, default)
        return default
    return int(value)


def _str_list(values: Any) -> List[str]:
    if not values or isinstance(values, (str, dict)):
        return []
    out: List[str] = []
    for v in values:
        s = str(v).strip() if v is not None else ""
        if s and s not in out:
            out.append(s)
    return out


def _day(label: str) -> str:
    return _LEGACY_DAYS.get(label, label)


def _slot(key: str) -> str:
    day, sep, time = key.partition("-")
    return _day(day) + sep + time


def _day_list(values: Any) -> List[str]:
    return _str_list([_day(d) for d in _str_list(values)])


def _slot_list(values: Any) -> List[str]:
    return _str_list([_slot(k) for k in _str_list(values)])


def _time_ranges(raw_ranges: Any) -> Tuple[TimeRange, ...]:
    out: List[TimeRange] = []
    for raw in raw_ranges or []:
        if isinstance(raw, TimeRange):
            out.append(raw)
            continue
        r = canonical_keys(raw)
        start, end = str(r.get("start_time") or ""), str(r.get("end_time") or "")
        try:
            to_minutes(start)
            to_minutes(end)
        except InvalidTimeLabelError:
            logger.warning("Dropping unavailability range with bad times: %r-%r", start, end)
            continue
        out.append(TimeRange(days=tuple(_day_list(r.get("days"))), start_time=start, end_time=end))
    return tuple(out)


def normalize_unavailability(raw: Any) -> Blacklist:
    if isinstance(raw, Blacklist):
        return raw
    if not isinstance(raw, Mapping):
        return Blacklist()
    u = canonical_keys(raw)
    return Blacklist(
        days=tuple(_day_list(u.get("days"))),
        slots=frozenset(_slot_list(u.get("slots"))),
        time_ranges=_time_ranges(u.get("time_ranges")),
    )


def normalize_preferences(raw: Any, class_types: Tuple[str, ...]) -> Dict[str, str]:
    """Keep preferences within `class_types`.

    An entry naming a type the instructor cannot teach is rewritten to the
    instructor's first class type (dropped if they have none).
    """

    out: Dict[str, str] = {}
    if not isinstance(raw, Mapping):
        return out
    for key, class_type in raw.items():
        key = _slot(str(key))
        if class_type in class_types:
            out[key] = str(class_type)
        elif class_types:
            out[key] = class_types[0]
    return out


def normalize_instructor_data(data: Mapping[str, Any], *, instructor_id: Optional[str] = None) -> Instructor:
    """Build a consistent Instructor from a loose record."""

    d = canonical_keys(data)
    iid = str(instructor_id if instructor_id is not None else d.get("instructor_id") or "").strip()
    class_types = tuple(_str_list(d.get("class_types")))

    return Instructor(
        instructor_id=iid,
        name=str(d.get("name") or iid),
        class_types=class_types,
        email=str(d.get("email") or ""),
        phone=str(d.get("phone") or ""),
        block_size=_int_or_default(d.get("block_size"), "block_size", DEFAULT_BLOCK_SIZE),
        min_classes=_int_or_default(d.get("min_classes"), "min_classes", DEFAULT_MIN_CLASSES),
        max_classes=_int_or_default(d.get("max_classes"), "max_classes", DEFAULT_MAX_CLASSES),
        availability=frozenset(_slot_list(d.get("availability"))),
        class_type_preferences=normalize_preferences(d.get("class_type_preferences"), class_types),
        unavailability=normalize_unavailability(d.get("unavailability")),
    )


def instructor_to_dict(instructor: Instructor) -> Dict[str, Any]:
    """Plain JSON-friendly form; `normalize_instructor_data` reads it back."""

    u = instructor.unavailability
    return {
        "instructor_id": instructor.instructor_id,
        "name": instructor.name,
        "email": instructor.email,
        "phone": instructor.phone,
        "class_types": list(instructor.class_types),
        "block_size": instructor.block_size,
        "min_classes": instructor.min_classes,
        "max_classes": instructor.max_classes,
        "availability": sorted(instructor.availability),
        "class_type_preferences": dict(instructor.class_type_preferences),
        "unavailability": {
            "days": list(u.days),
            "slots": sorted(u.slots),
            "time_ranges": [
                {"days": list(r.days), "start_time": r.start_time, "end_time": r.end_time} for r in u.time_ranges
            ],
        },
    }


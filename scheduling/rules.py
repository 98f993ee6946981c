"""Conflict, eligibility and availability predicates.

All pure: they read a schedule / instructor and never mutate.
"""

from __future__ import annotations

from .instructors import Instructor, availability_rule
from .schedule_grid import Assigned, Schedule


def has_conflict(schedule: Schedule, instructor_id: str, day: str, time: str) -> bool:
    """True if `instructor_id` already teaches any class type at day/time."""

    target = Assigned(instructor_id)
    for column in schedule.get(day, {}).values():
        if column.get(time) == target:
            return True
    return False


def is_eligible(instructor: Instructor, class_type: str) -> bool:
    return class_type in instructor.class_types


def is_available(instructor: Instructor, day: str, time: str) -> bool:
    return availability_rule(instructor).allows(day, time)

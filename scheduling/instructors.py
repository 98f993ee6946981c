"""Instructor records and the two-tier availability model.

An instructor either declares an explicit whitelist of "{day}-{time}" slots,
or (when that list is empty) falls back to legacy unavailability data:
whole days, single slots, and time ranges. `availability_rule` resolves which
of the two applies; nothing else should inspect the raw fields to decide.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import FrozenSet, Mapping, Tuple, Union

from .catalog import is_time_in_range, slot_key


# ----------------------------
# Availability
# ----------------------------


@dataclass(frozen=True)
class TimeRange:
    days: Tuple[str, ...]
    start_time: str
    end_time: str

    def covers(self, day: str, time: str) -> bool:
        return day in self.days and is_time_in_range(time, self.start_time, self.end_time)


@dataclass(frozen=True)
class Whitelist:
    """Explicit availability: only the listed slot keys are schedulable."""

    slots: FrozenSet[str]

    def allows(self, day: str, time: str) -> bool:
        return slot_key(day, time) in self.slots


@dataclass(frozen=True)
class Blacklist:
    """Legacy unavailability: everything is schedulable except what is listed."""

    days: Tuple[str, ...] = ()
    slots: FrozenSet[str] = frozenset()
    time_ranges: Tuple[TimeRange, ...] = ()

    def excludes(self, day: str, time: str) -> bool:
        if day in self.days:
            return True
        if slot_key(day, time) in self.slots:
            return True
        return any(r.covers(day, time) for r in self.time_ranges)

    def allows(self, day: str, time: str) -> bool:
        return not self.excludes(day, time)


Availability = Union[Whitelist, Blacklist]


# ----------------------------
# Instructor
# ----------------------------


@dataclass(frozen=True)
class Instructor:
    instructor_id: str
    name: str
    # Order matters: the first entry is the instructor's "home" type.
    class_types: Tuple[str, ...]
    email: str = ""
    phone: str = ""
    block_size: int = 2
    min_classes: int = 2
    max_classes: int = 10
    availability: FrozenSet[str] = frozenset()
    # "{day}-{time}" -> class type the instructor should teach there
    class_type_preferences: Mapping[str, str] = field(default_factory=dict)
    unavailability: Blacklist = field(default_factory=Blacklist)

    def __post_init__(self) -> None:
        # read-only view over a private copy
        object.__setattr__(
            self, "class_type_preferences", MappingProxyType(dict(self.class_type_preferences))
        )

    def preferred_type_at(self, day: str, time: str) -> str | None:
        return self.class_type_preferences.get(slot_key(day, time))

    def prefers(self, day: str, time: str, class_type: str) -> bool:
        return self.preferred_type_at(day, time) == class_type


def availability_rule(instructor: Instructor) -> Availability:
    """Resolve which availability model applies to `instructor`.

    Any explicit availability entry switches the instructor into whitelist
    mode entirely; the legacy unavailability data is then ignored.
    """

    if instructor.availability:
        return Whitelist(slots=frozenset(instructor.availability))
    return instructor.unavailability

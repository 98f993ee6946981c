"""Schedule grid and lock table.

Schedule shape: day -> class type -> time -> Cell, total over the catalog.
A cell is exactly one of:

- `Empty`      no class offered
- `Unresolved` class offered, instructor still "TBD"
- `Assigned`   class offered and taught by `instructor_id`

Cells are immutable, so copying a schedule only has to copy the three dict
levels. Every function here returns new structures; callers never mutate a
schedule or lock table they did not just create.

The lock table is a sparse overlay with the same key shape whose values are
instructor ids.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional, Tuple, Union

from .catalog import CLASS_TIMES, CLASS_TYPES, DAYS_OF_WEEK, TBD


# ----------------------------
# Cells
# ----------------------------


@dataclass(frozen=True)
class Empty:
    pass


@dataclass(frozen=True)
class Unresolved:
    pass


@dataclass(frozen=True)
class Assigned:
    instructor_id: str


Cell = Union[Empty, Unresolved, Assigned]

EMPTY = Empty()
UNRESOLVED = Unresolved()

Schedule = Dict[str, Dict[str, Dict[str, Cell]]]
LockTable = Dict[str, Dict[str, Dict[str, str]]]


@dataclass(frozen=True)
class ClassSlot:
    day: str
    class_type: str
    time: str


def cell_from_value(value: Optional[str]) -> Cell:
    """Map the legacy value form (None / "TBD" / id) to a cell."""

    if value is None or value == "":
        return EMPTY
    if value == TBD:
        return UNRESOLVED
    return Assigned(str(value))


def cell_to_value(cell: Cell) -> Optional[str]:
    if isinstance(cell, Assigned):
        return cell.instructor_id
    if isinstance(cell, Unresolved):
        return TBD
    return None


def assigned_id(cell: Cell) -> Optional[str]:
    return cell.instructor_id if isinstance(cell, Assigned) else None


# ----------------------------
# Schedule
# ----------------------------


def init_empty_schedule(
    days: Iterable[str] = DAYS_OF_WEEK,
    class_types: Iterable[str] = CLASS_TYPES,
    times: Iterable[str] = CLASS_TIMES,
) -> Schedule:
    times = tuple(times)
    class_types = tuple(class_types)
    return {day: {ct: {t: EMPTY for t in times} for ct in class_types} for day in days}


def copy_schedule(schedule: Schedule) -> Schedule:
    return {day: {ct: dict(col) for ct, col in types.items()} for day, types in schedule.items()}


def get_cell(schedule: Schedule, day: str, class_type: str, time: str) -> Cell:
    return schedule.get(day, {}).get(class_type, {}).get(time, EMPTY)


def with_cell(schedule: Schedule, day: str, class_type: str, time: str, cell: Cell) -> Schedule:
    out = copy_schedule(schedule)
    out.setdefault(day, {}).setdefault(class_type, {})[time] = cell
    return out


def iter_cells(schedule: Schedule) -> Iterator[Tuple[str, str, str, Cell]]:
    """Yield (day, class_type, time, cell) in catalog order."""

    for day, types in schedule.items():
        for class_type, column in types.items():
            for time, cell in column.items():
                yield day, class_type, time, cell


# ----------------------------
# Lock table
# ----------------------------


def copy_locks(locks: LockTable) -> LockTable:
    return {day: {ct: dict(col) for ct, col in types.items()} for day, types in locks.items()}


def get_lock(locks: LockTable, day: str, class_type: str, time: str) -> Optional[str]:
    return locks.get(day, {}).get(class_type, {}).get(time)


def with_lock(locks: LockTable, day: str, class_type: str, time: str, instructor_id: str) -> LockTable:
    out = copy_locks(locks)
    out.setdefault(day, {}).setdefault(class_type, {})[time] = instructor_id
    return out


def without_lock(locks: LockTable, day: str, class_type: str, time: str) -> LockTable:
    """Drop one lock and prune intermediate levels left empty."""

    out = copy_locks(locks)
    column = out.get(day, {}).get(class_type)
    if column is None or time not in column:
        return out
    del column[time]
    if not column:
        del out[day][class_type]
    if not out[day]:
        del out[day]
    return out


def iter_locks(locks: LockTable) -> Iterator[Tuple[str, str, str, str]]:
    for day, types in locks.items():
        for class_type, column in types.items():
            for time, instructor_id in column.items():
                yield day, class_type, time, instructor_id

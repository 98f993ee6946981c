"""Schedule service: owner of instructors, schedule and locks.

All reads and writes go through one `ScheduleService` instance. Every
mutation is copy-on-write: it builds new containers, pushes the state it
replaces onto the undo history, then swaps the references. Old states are
therefore never modified and can be restored as they are.

Expected domain failures (conflict, ineligible, unavailable, unknown slot)
return False and leave the state untouched.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .catalog import (
    CLASS_TIMES,
    CLASS_TYPES,
    DAYS_OF_WEEK,
    DEFAULT_INSTRUCTORS,
    TBD,
    WEEKLY_TEMPLATE,
    slot_key,
)
from .class_scheduler import GenerationResult, GenerationSettings, compute_metrics, generate_schedule
from .history import DEFAULT_HISTORY_DEPTH, HistoryBuffer, HistorySnapshot
from .instructors import Instructor
from .rules import has_conflict, is_eligible
from .schedule_grid import (
    Assigned,
    Cell,
    ClassSlot,
    EMPTY,
    Empty,
    LockTable,
    Schedule,
    UNRESOLVED,
    cell_from_value,
    cell_to_value,
    copy_locks,
    copy_schedule,
    get_cell,
    get_lock,
    init_empty_schedule,
    iter_cells,
    iter_locks,
    with_cell,
    with_lock,
    without_lock,
)
from utils.id_generator import generate_instructor_id, unique_id
from utils.validators import canonical_keys, instructor_to_dict, normalize_instructor_data, validate_id


logger = logging.getLogger(__name__)


InstructorData = Union[Instructor, Mapping[str, Any]]


class ScheduleService:
    """Handle over one weekly schedule and its instructor roster."""

    def __init__(
        self,
        instructors: Iterable[InstructorData] = (),
        schedule: Optional[Schedule] = None,
        locks: Optional[LockTable] = None,
        *,
        settings: GenerationSettings = GenerationSettings(),
        history_depth: int = DEFAULT_HISTORY_DEPTH,
    ):
        self._mutex = threading.RLock()
        self.settings = settings
        self._history = HistoryBuffer(history_depth)

        roster: Dict[str, Instructor] = {}
        for item in instructors:
            inst = item if isinstance(item, Instructor) else normalize_instructor_data(item)
            roster[inst.instructor_id] = inst
        self._instructors = roster
        self._schedule = copy_schedule(schedule) if schedule is not None else init_empty_schedule()
        self._locks = copy_locks(locks or {})

    @classmethod
    def with_default_roster(cls, **kwargs) -> "ScheduleService":
        return cls(DEFAULT_INSTRUCTORS, **kwargs)

    @classmethod
    def from_snapshot(cls, snapshot: HistorySnapshot, **kwargs) -> "ScheduleService":
        return cls(snapshot.instructors.values(), snapshot.schedule, snapshot.locks, **kwargs)

    # ----------------------------
    # Read accessors
    # ----------------------------

    @property
    def class_types(self) -> Tuple[str, ...]:
        return CLASS_TYPES

    @property
    def days(self) -> Tuple[str, ...]:
        return DAYS_OF_WEEK

    @property
    def times(self) -> Tuple[str, ...]:
        return CLASS_TIMES

    @property
    def instructors(self) -> Dict[str, Instructor]:
        return dict(self._instructors)

    @property
    def schedule(self) -> Schedule:
        return copy_schedule(self._schedule)

    @property
    def locked_assignments(self) -> LockTable:
        return copy_locks(self._locks)

    @property
    def history_size(self) -> int:
        return len(self._history)

    def snapshot(self) -> HistorySnapshot:
        with self._mutex:
            return HistorySnapshot.capture(self._instructors, self._schedule, self._locks)

    def get_instructor(self, instructor_id: str) -> Optional[Instructor]:
        return self._instructors.get(instructor_id)

    def get_cell(self, day: str, class_type: str, time: str) -> Cell:
        return get_cell(self._schedule, day, class_type, time)

    def get_value(self, day: str, class_type: str, time: str) -> Optional[str]:
        """Cell in plain form: None, "TBD" or an instructor id."""

        return cell_to_value(self.get_cell(day, class_type, time))

    # ----------------------------
    # Internals
    # ----------------------------

    def _has_slot(self, day: str, class_type: str, time: str) -> bool:
        return time in self._schedule.get(day, {}).get(class_type, {})

    def _commit(
        self,
        *,
        instructors: Optional[Dict[str, Instructor]] = None,
        schedule: Optional[Schedule] = None,
        locks: Optional[LockTable] = None,
    ) -> None:
        # The replaced containers are never written again, so they are
        # stored as they are.
        self._history.push(HistorySnapshot(self._instructors, self._schedule, self._locks))
        if instructors is not None:
            self._instructors = instructors
        if schedule is not None:
            self._schedule = schedule
        if locks is not None:
            self._locks = locks

    def _write_cell(self, day: str, class_type: str, time: str, cell: Cell) -> Tuple[Schedule, LockTable]:
        """New schedule with one cell changed; a lock that no longer matches is dropped."""

        schedule = with_cell(self._schedule, day, class_type, time, cell)
        locks = self._locks
        locked_id = get_lock(locks, day, class_type, time)
        if locked_id is not None and cell != Assigned(locked_id):
            locks = without_lock(locks, day, class_type, time)
        return schedule, locks

    # ----------------------------
    # Schedule mutations
    # ----------------------------

    @staticmethod
    def init_empty_schedule() -> Schedule:
        return init_empty_schedule()

    def seed_template_classes(self) -> None:
        """Offer every class of the weekly template as "TBD".

        Only empty cells are touched, so running it again changes nothing and
        existing assignments survive.
        """

        with self._mutex:
            schedule = copy_schedule(self._schedule)
            added = 0
            for day, types in WEEKLY_TEMPLATE.items():
                for class_type, times in types.items():
                    column = schedule.setdefault(day, {}).setdefault(class_type, {})
                    for time in times:
                        if isinstance(column.get(time, EMPTY), Empty):
                            column[time] = UNRESOLVED
                            added += 1
            if added:
                self._commit(schedule=schedule)
            logger.info("Seeded %d template classes", added)

    def add_class(self, day: str, class_type: str, time: str, instructor_id: str = TBD) -> bool:
        with self._mutex:
            if not self._has_slot(day, class_type, time):
                logger.warning("Unknown slot %s %s %s", day, class_type, time)
                return False
            if instructor_id != TBD and has_conflict(self._schedule, instructor_id, day, time):
                logger.warning("Scheduling conflict detected for %s on %s at %s", instructor_id, day, time)
                return False
            schedule, locks = self._write_cell(day, class_type, time, cell_from_value(instructor_id))
            self._commit(schedule=schedule, locks=locks)
            return True

    def manually_assign_instructor(self, day: str, class_type: str, time: str, instructor_id: str) -> bool:
        """Assign (and lock) an instructor, or reset the class to "TBD".

        Fails for an unknown instructor, an instructor who cannot teach
        `class_type`, a double booking, or a slot outside the instructor's
        explicit availability list.
        """

        with self._mutex:
            if not self._has_slot(day, class_type, time):
                logger.warning("Unknown slot %s %s %s", day, class_type, time)
                return False

            if instructor_id != TBD:
                inst = self._instructors.get(instructor_id)
                if inst is None:
                    logger.warning("Unknown instructor %s", instructor_id)
                    return False
                if not is_eligible(inst, class_type):
                    logger.warning("Instructor %s cannot teach %s", instructor_id, class_type)
                    return False
                if has_conflict(self._schedule, instructor_id, day, time):
                    logger.warning("Scheduling conflict detected for %s on %s at %s", instructor_id, day, time)
                    return False
                if inst.availability and slot_key(day, time) not in inst.availability:
                    logger.warning("Instructor %s is not available on %s at %s", instructor_id, day, time)
                    return False

            schedule, locks = self._write_cell(day, class_type, time, cell_from_value(instructor_id))
            if instructor_id != TBD:
                locks = with_lock(locks, day, class_type, time, instructor_id)
            self._commit(schedule=schedule, locks=locks)
            return True

    def remove_class(self, day: str, class_type: str, time: str) -> bool:
        with self._mutex:
            if not self._has_slot(day, class_type, time):
                return False
            schedule = with_cell(self._schedule, day, class_type, time, EMPTY)
            self._commit(schedule=schedule, locks=without_lock(self._locks, day, class_type, time))
            return True

    def clear_schedule(self) -> None:
        """Replace the schedule with an empty one. All locks go with it."""

        with self._mutex:
            self._commit(schedule=init_empty_schedule(), locks={})

    def lock_assignment(self, day: str, class_type: str, time: str) -> bool:
        with self._mutex:
            cell = self.get_cell(day, class_type, time)
            if not isinstance(cell, Assigned):
                return False
            if get_lock(self._locks, day, class_type, time) == cell.instructor_id:
                return True
            self._commit(locks=with_lock(self._locks, day, class_type, time, cell.instructor_id))
            return True

    def unlock_assignment(self, day: str, class_type: str, time: str) -> bool:
        with self._mutex:
            if not isinstance(self.get_cell(day, class_type, time), Assigned):
                return False
            if get_lock(self._locks, day, class_type, time) is None:
                return False
            self._commit(locks=without_lock(self._locks, day, class_type, time))
            return True

    def is_assignment_locked(self, day: str, class_type: str, time: str) -> bool:
        return get_lock(self._locks, day, class_type, time) is not None

    def generate(self, settings: Optional[GenerationSettings] = None) -> GenerationResult:
        """Fill "TBD" classes; see `scheduling.class_scheduler`."""

        with self._mutex:
            result = generate_schedule(self._instructors, self._schedule, self._locks, settings or self.settings)
            if result.schedule != self._schedule or result.locks != self._locks:
                self._commit(schedule=result.schedule, locks=result.locks)
            return result

    # ----------------------------
    # Instructor mutations
    # ----------------------------

    def add_instructor(self, data: InstructorData) -> str:
        """Add an instructor and return its id.

        Missing or malformed ids are generated from the name's initials; an id
        already in use gets a numeric suffix.
        """

        with self._mutex:
            raw = instructor_to_dict(data) if isinstance(data, Instructor) else canonical_keys(data)
            requested = str(raw.get("instructor_id") or "").strip()
            ok, _msg = validate_id(requested, "instructor_id")
            if ok:
                iid = unique_id(requested, self._instructors)
            else:
                iid = generate_instructor_id(str(raw.get("name") or ""), self._instructors)

            inst = normalize_instructor_data(raw, instructor_id=iid)
            instructors = dict(self._instructors)
            instructors[iid] = inst
            self._commit(instructors=instructors)
            logger.info("Added instructor %s", iid)
            return iid

    def update_instructor(self, instructor_id: str, partial: Mapping[str, Any]) -> bool:
        """Merge `partial` into the instructor record and re-normalize it."""

        with self._mutex:
            current = self._instructors.get(instructor_id)
            if current is None:
                return False
            merged = instructor_to_dict(current)
            merged.update(canonical_keys(partial))
            inst = normalize_instructor_data(merged, instructor_id=instructor_id)
            instructors = dict(self._instructors)
            instructors[instructor_id] = inst
            self._commit(instructors=instructors)
            return True

    def delete_instructor(self, instructor_id: str) -> bool:
        """Remove an instructor; each of their classes reverts to "TBD"."""

        with self._mutex:
            if instructor_id not in self._instructors:
                return False
            instructors = {k: v for k, v in self._instructors.items() if k != instructor_id}

            target = Assigned(instructor_id)
            schedule = copy_schedule(self._schedule)
            for day, class_type, time, cell in iter_cells(self._schedule):
                if cell == target:
                    schedule[day][class_type][time] = UNRESOLVED

            locks = self._locks
            for day, class_type, time, locked_id in list(iter_locks(self._locks)):
                if locked_id == instructor_id:
                    locks = without_lock(locks, day, class_type, time)

            self._commit(instructors=instructors, schedule=schedule, locks=locks)
            logger.info("Deleted instructor %s", instructor_id)
            return True

    def set_instructor_availability(self, instructor_id: str, day: str, time: str, is_available: bool) -> bool:
        """Toggle one slot in the instructor's legacy unavailability list."""

        with self._mutex:
            inst = self._instructors.get(instructor_id)
            if inst is None:
                return False
            slots = set(inst.unavailability.slots)
            key = slot_key(day, time)
            if is_available:
                slots.discard(key)
            else:
                slots.add(key)
            unavailability = instructor_to_dict(inst)["unavailability"]
            unavailability["slots"] = sorted(slots)
            return self.update_instructor(instructor_id, {"unavailability": unavailability})

    # ----------------------------
    # Queries
    # ----------------------------

    def get_instructor_classes(self, instructor_id: str) -> List[ClassSlot]:
        target = Assigned(instructor_id)
        return [
            ClassSlot(day, class_type, time)
            for day, class_type, time, cell in iter_cells(self._schedule)
            if cell == target
        ]

    def get_total_assigned_classes(self) -> int:
        return sum(1 for *_k, cell in iter_cells(self._schedule) if isinstance(cell, Assigned))

    def get_total_scheduled_slots(self) -> int:
        return sum(1 for *_k, cell in iter_cells(self._schedule) if not isinstance(cell, Empty))

    def metrics(self) -> Dict[str, float]:
        return compute_metrics(self._instructors, self._schedule)

    # ----------------------------
    # History
    # ----------------------------

    def undo_last_change(self) -> bool:
        with self._mutex:
            previous = self._history.pop()
            if previous is None:
                return False
            self._instructors = previous.instructors
            self._schedule = previous.schedule
            self._locks = previous.locks
            return True

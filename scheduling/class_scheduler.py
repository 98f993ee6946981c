"""Weekly class instructor assignment.

This module fills unresolved ("TBD") class slots of the weekly template with
eligible instructors. It is a greedy, deterministic heuristic, not an optimal
solver: every slot is decided once, in priority order, and a slot nobody can
take simply stays "TBD".

Passes
------
0. Preferences: every instructor's explicit slot -> class-type preference is
   written into the schedule and locked, overriding earlier assignments.
1. Capture: locked and already-assigned cells are kept as they are and counted
   toward each instructor's occupancy and weekly load.
2. Collect: all "TBD" cells, ordered by class-type priority
   (Lagree, Strength, Boxing, Stretch, PT, then anything else).
3. Fill: for each collected slot pick the best-ranked eligible instructor.

Hard constraints
----------------
- An instructor never teaches two class types at the same day/time
- Instructor must list the class type
- Instructor must be available (whitelist, or legacy blacklist)
- Automatic assignments never push an instructor past max_classes

Ranking (first decisive factor wins)
------------------------------------
a. specialists over generalists whose first type is the catch-all type
b. for block class types: continue an unfinished block, smaller block first
c. explicit preference for this exact slot
d. lower assigned/min_classes ratio (only beyond a small tolerance)
e. any adjacent class on that day
f. instructor id
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Dict, List, Mapping, Optional, Set, Tuple

from .block_analysis import BlockInfo, block_info, is_mid_block
from .catalog import (
    CLASS_PRIORITY,
    DEFAULT_CLASS_TYPE,
    UNKNOWN_PRIORITY,
    class_priority,
    parse_slot_key,
)
from .exceptions import InvalidSlotKeyError
from .instructors import Instructor
from .rules import is_available, is_eligible
from .schedule_grid import (
    Assigned,
    ClassSlot,
    LockTable,
    Schedule,
    Unresolved,
    UNRESOLVED,
    copy_locks,
    copy_schedule,
    get_lock,
    iter_cells,
    iter_locks,
)


logger = logging.getLogger(__name__)


# ----------------------------
# Settings / results
# ----------------------------


@dataclass(frozen=True)
class GenerationSettings:
    # Lower value is resolved first.
    class_priority: Dict[str, int] = field(default_factory=lambda: dict(CLASS_PRIORITY))
    unknown_priority: int = UNKNOWN_PRIORITY

    # Specialization factor: instructors with several types whose first-listed
    # type is NOT this one rank above the rest.
    prefer_specialists: bool = True
    default_class_type: str = DEFAULT_CLASS_TYPE

    # Class type for which block continuity is ranked.
    block_class_type: str = "Lagree"

    # Load ratios closer than this are treated as equal.
    load_ratio_tolerance: float = 0.1

    # Pass 0 (write + lock explicit preferences)
    enforce_preferences: bool = True


@dataclass(frozen=True)
class GenerationResult:
    schedule: Schedule
    locks: LockTable
    filled: Tuple[Tuple[ClassSlot, str], ...]
    unresolved: Tuple[ClassSlot, ...]
    stale_locks: Tuple[ClassSlot, ...] = ()


@dataclass
class _LoadTracker:
    """Per-instructor occupancy (day -> times) and running assignment count."""

    occupied: Dict[str, Dict[str, Set[str]]] = field(default_factory=dict)
    counts: Dict[str, int] = field(default_factory=dict)

    def take(self, instructor_id: str, day: str, time: str) -> None:
        self.occupied.setdefault(instructor_id, {}).setdefault(day, set()).add(time)
        self.counts[instructor_id] = self.counts.get(instructor_id, 0) + 1

    def is_taken(self, instructor_id: str, day: str, time: str) -> bool:
        return time in self.occupied.get(instructor_id, {}).get(day, ())

    def count(self, instructor_id: str) -> int:
        return self.counts.get(instructor_id, 0)


# ----------------------------
# Pass 0: preferences
# ----------------------------


def apply_preferences(
    instructors: Mapping[str, Instructor],
    schedule: Schedule,
    locks: LockTable,
) -> Tuple[Schedule, LockTable]:
    """Force every valid class-type preference into the schedule and lock it.

    A preference only counts when the instructor lists that class type and the
    slot exists in the schedule. When several instructors prefer the same cell
    the last one in roster order gets it; the others are left untouched. If the
    winner already sits in another class type at the same day/time, that other
    cell goes back to "TBD" and loses its lock.
    """

    out = copy_schedule(schedule)
    out_locks = copy_locks(locks)

    winners: Dict[ClassSlot, str] = {}
    for inst in instructors.values():
        for key, class_type in inst.class_type_preferences.items():
            if not is_eligible(inst, class_type):
                continue
            try:
                day, time = parse_slot_key(key)
            except InvalidSlotKeyError:
                logger.warning("Ignoring preference %r of %s: malformed slot key", key, inst.instructor_id)
                continue
            if time not in out.get(day, {}).get(class_type, {}):
                logger.warning("Ignoring preference %s of %s: slot not in schedule", key, inst.instructor_id)
                continue
            slot = ClassSlot(day, class_type, time)
            if slot in winners:
                logger.debug("Preference of %s for %s overridden by %s", winners[slot], key, inst.instructor_id)
            winners[slot] = inst.instructor_id

    for slot, instructor_id in winners.items():
        day, class_type, time = slot.day, slot.class_type, slot.time
        target = Assigned(instructor_id)
        for other_type, other_col in out[day].items():
            if other_type != class_type and other_col.get(time) == target:
                other_col[time] = UNRESOLVED
                if get_lock(out_locks, day, other_type, time) is not None:
                    del out_locks[day][other_type][time]

        out[day][class_type][time] = target
        out_locks.setdefault(day, {}).setdefault(class_type, {})[time] = instructor_id

    return out, _pruned(out_locks)


def _pruned(locks: LockTable) -> LockTable:
    return {
        day: {ct: col for ct, col in types.items() if col}
        for day, types in locks.items()
        if any(types.values())
    }


# ----------------------------
# Pass 1: capture existing assignments
# ----------------------------


def capture_existing(
    instructors: Mapping[str, Instructor],
    schedule: Schedule,
    locks: LockTable,
) -> Tuple[_LoadTracker, List[ClassSlot]]:
    """Re-assert locks and record occupancy of locked / assigned cells.

    Mutates `schedule` (the engine's private working copy). Returns the load
    tracker and the locks whose instructor no longer exists.
    """

    tracker = _LoadTracker()
    stale: List[ClassSlot] = []

    for day, class_type, time, cell in list(iter_cells(schedule)):
        locked_id = get_lock(locks, day, class_type, time)
        if locked_id is not None:
            if locked_id in instructors:
                schedule[day][class_type][time] = Assigned(locked_id)
                tracker.take(locked_id, day, time)
            else:
                stale.append(ClassSlot(day, class_type, time))
            continue

        if isinstance(cell, Assigned) and cell.instructor_id in instructors:
            tracker.take(cell.instructor_id, day, time)

    # Locks on cells outside the schedule are stale as well.
    for day, class_type, time, _locked_id in iter_locks(locks):
        if time not in schedule.get(day, {}).get(class_type, {}):
            stale.append(ClassSlot(day, class_type, time))

    return tracker, stale


# ----------------------------
# Pass 2: collect unresolved slots
# ----------------------------


def collect_pending_slots(schedule: Schedule, settings: GenerationSettings = GenerationSettings()) -> List[ClassSlot]:
    pending = [
        ClassSlot(day, class_type, time)
        for day, class_type, time, cell in iter_cells(schedule)
        if isinstance(cell, Unresolved)
    ]
    # sorted() is stable: catalog order is kept inside a priority band
    return sorted(
        pending,
        key=lambda s: class_priority(s.class_type, settings.class_priority, settings.unknown_priority),
    )


# ----------------------------
# Pass 3: ranking
# ----------------------------


def is_specialist(instructor: Instructor, class_type: str, default_class_type: str = DEFAULT_CLASS_TYPE) -> bool:
    types = instructor.class_types
    return len(types) > 1 and class_type in types and types[0] != default_class_type


def _flag_order(a: bool, b: bool) -> int:
    if a and not b:
        return -1
    if b and not a:
        return 1
    return 0


def eligible_instructors(
    instructors: Mapping[str, Instructor],
    slot: ClassSlot,
    tracker: _LoadTracker,
) -> List[Instructor]:
    return [
        inst
        for inst in instructors.values()
        if is_eligible(inst, slot.class_type)
        and is_available(inst, slot.day, slot.time)
        and not tracker.is_taken(inst.instructor_id, slot.day, slot.time)
        and tracker.count(inst.instructor_id) < inst.max_classes
    ]


def rank_candidates(
    candidates: List[Instructor],
    slot: ClassSlot,
    schedule: Schedule,
    tracker: _LoadTracker,
    settings: GenerationSettings = GenerationSettings(),
) -> List[Instructor]:
    """Return `candidates` best-first for `slot`."""

    day, class_type, time = slot.day, slot.class_type, slot.time
    blocks: Dict[str, BlockInfo] = {
        inst.instructor_id: block_info(inst.instructor_id, day, time, class_type, schedule) for inst in candidates
    }

    def ratio(inst: Instructor) -> float:
        return tracker.count(inst.instructor_id) / max(1, inst.min_classes)

    def compare(a: Instructor, b: Instructor) -> int:
        a_block = blocks[a.instructor_id]
        b_block = blocks[b.instructor_id]

        if settings.prefer_specialists:
            c = _flag_order(
                is_specialist(a, class_type, settings.default_class_type),
                is_specialist(b, class_type, settings.default_class_type),
            )
            if c:
                return c

        if class_type == settings.block_class_type:
            a_mid = is_mid_block(a_block, a.block_size)
            b_mid = is_mid_block(b_block, b.block_size)
            c = _flag_order(a_mid, b_mid)
            if c:
                return c
            if a_mid and b_mid and a_block.current_block_size != b_block.current_block_size:
                return -1 if a_block.current_block_size < b_block.current_block_size else 1

        c = _flag_order(a.prefers(day, time, class_type), b.prefers(day, time, class_type))
        if c:
            return c

        a_ratio, b_ratio = ratio(a), ratio(b)
        if abs(a_ratio - b_ratio) > settings.load_ratio_tolerance:
            return -1 if a_ratio < b_ratio else 1

        c = _flag_order(a_block.has_adjacent_class, b_block.has_adjacent_class)
        if c:
            return c

        if a.instructor_id == b.instructor_id:
            return 0
        return -1 if a.instructor_id < b.instructor_id else 1

    return sorted(candidates, key=cmp_to_key(compare))


def pick_instructor(
    instructors: Mapping[str, Instructor],
    slot: ClassSlot,
    schedule: Schedule,
    tracker: _LoadTracker,
    settings: GenerationSettings = GenerationSettings(),
) -> Optional[Instructor]:
    eligible = eligible_instructors(instructors, slot, tracker)
    preferring = [i for i in eligible if i.prefers(slot.day, slot.time, slot.class_type)]
    pool = preferring or eligible
    if not pool:
        return None
    return rank_candidates(pool, slot, schedule, tracker, settings)[0]


# ----------------------------
# Generate
# ----------------------------


def generate_schedule(
    instructors: Mapping[str, Instructor],
    schedule: Schedule,
    locks: LockTable,
    settings: GenerationSettings = GenerationSettings(),
) -> GenerationResult:
    """Run all passes on copies of the inputs and return the new state.

    Never raises for unfillable slots; they are reported in `unresolved`.
    """

    if settings.enforce_preferences:
        work, work_locks = apply_preferences(instructors, schedule, locks)
    else:
        work, work_locks = copy_schedule(schedule), copy_locks(locks)

    tracker, stale = capture_existing(instructors, work, work_locks)
    for s in stale:
        logger.warning("Dropping stale lock at %s %s %s", s.day, s.class_type, s.time)
        column = work_locks.get(s.day, {}).get(s.class_type, {})
        column.pop(s.time, None)
    work_locks = _pruned(work_locks)

    filled: List[Tuple[ClassSlot, str]] = []
    unresolved: List[ClassSlot] = []

    for slot in collect_pending_slots(work, settings):
        best = pick_instructor(instructors, slot, work, tracker, settings)
        if best is None:
            logger.debug("No eligible instructor for %s %s %s", slot.day, slot.class_type, slot.time)
            unresolved.append(slot)
            continue
        work[slot.day][slot.class_type][slot.time] = Assigned(best.instructor_id)
        tracker.take(best.instructor_id, slot.day, slot.time)
        filled.append((slot, best.instructor_id))
        logger.debug("Assigned %s to %s %s %s", best.instructor_id, slot.day, slot.class_type, slot.time)

    logger.info("Schedule generated: %d slots filled, %d left TBD", len(filled), len(unresolved))

    return GenerationResult(
        schedule=work,
        locks=work_locks,
        filled=tuple(filled),
        unresolved=tuple(unresolved),
        stale_locks=tuple(stale),
    )


# ----------------------------
# Metrics
# ----------------------------


def instructor_loads(instructors: Mapping[str, Instructor], schedule: Schedule) -> Dict[str, int]:
    loads: Dict[str, int] = {iid: 0 for iid in instructors}
    for _day, _ct, _time, cell in iter_cells(schedule):
        if isinstance(cell, Assigned) and cell.instructor_id in loads:
            loads[cell.instructor_id] += 1
    return loads


def count_conflicts(schedule: Schedule) -> int:
    """Number of extra bookings of one instructor at one day/time."""

    seen: Dict[Tuple[str, str, str], int] = {}
    for day, _ct, time, cell in iter_cells(schedule):
        if isinstance(cell, Assigned):
            k = (cell.instructor_id, day, time)
            seen[k] = seen.get(k, 0) + 1
    return sum(c - 1 for c in seen.values() if c > 1)


def compute_metrics(instructors: Mapping[str, Instructor], schedule: Schedule) -> Dict[str, float]:
    scheduled = 0
    assigned = 0
    for _day, _ct, _time, cell in iter_cells(schedule):
        if isinstance(cell, (Assigned, Unresolved)):
            scheduled += 1
        if isinstance(cell, Assigned):
            assigned += 1

    loads = instructor_loads(instructors, schedule)
    values = list(loads.values()) or [0]
    under_min = sum(1 for iid, n in loads.items() if n < instructors[iid].min_classes)
    over_max = sum(1 for iid, n in loads.items() if n > instructors[iid].max_classes)

    return {
        "scheduled_slots": float(scheduled),
        "assigned_slots": float(assigned),
        "unresolved_slots": float(scheduled - assigned),
        "instructor_conflicts": float(count_conflicts(schedule)),
        "instructors_under_min": float(under_min),
        "instructors_over_max": float(over_max),
        "load_min": float(min(values)),
        "load_max": float(max(values)),
        "load_avg": float(sum(values) / len(values)),
    }

"""Block-adjacency analysis.

A block is a run of consecutive time slots of one class type taught by the
same instructor. The engine uses this to keep instructors teaching
back-to-back classes until their preferred block size is reached.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from .catalog import CLASS_TIMES, time_index
from .schedule_grid import Assigned, Schedule


@dataclass(frozen=True)
class BlockInfo:
    has_adjacent_class: bool
    current_block_size: int


def block_info(
    instructor_id: str,
    day: str,
    time: str,
    class_type: str,
    schedule: Schedule,
    times: Tuple[str, ...] = CLASS_TIMES,
) -> BlockInfo:
    """Describe the block `instructor_id` would extend by teaching at `time`.

    1. Walk backward from `time` in the same class-type column while the
       instructor occupies it; that is the block start.
    2. Count forward from the block start; once past `time`, stop at the first
       slot the instructor does not hold.
    3. Without a same-type neighbour before `time`, the instructor still counts
       as adjacent if they teach any class type in the slot right before or
       right after `time`.
    """

    idx = time_index(time, times)
    if idx is None:
        return BlockInfo(has_adjacent_class=False, current_block_size=0)

    target = Assigned(instructor_id)
    column = schedule.get(day, {}).get(class_type, {})

    has_adjacent = False
    start = idx
    for i in range(idx - 1, -1, -1):
        if column.get(times[i]) == target:
            start = i
            has_adjacent = True
        else:
            break

    size = 0
    for i in range(start, len(times)):
        if column.get(times[i]) == target:
            size += 1
        elif i >= idx:
            break

    if not has_adjacent:
        day_columns = schedule.get(day, {}).values()
        neighbours = []
        if idx > 0:
            neighbours.append(times[idx - 1])
        if idx < len(times) - 1:
            neighbours.append(times[idx + 1])
        has_adjacent = any(col.get(t) == target for t in neighbours for col in day_columns)

    return BlockInfo(has_adjacent_class=has_adjacent, current_block_size=size)


def is_mid_block(info: BlockInfo, block_size: int) -> bool:
    """Adjacent to an existing run that is still shorter than `block_size`."""

    return info.has_adjacent_class and info.current_block_size < block_size

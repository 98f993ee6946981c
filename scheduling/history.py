"""Bounded undo history of full schedule states."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Optional

from .instructors import Instructor
from .schedule_grid import LockTable, Schedule, copy_locks, copy_schedule


DEFAULT_HISTORY_DEPTH = 10


@dataclass(frozen=True)
class HistorySnapshot:
    instructors: Dict[str, Instructor]
    schedule: Schedule
    locks: LockTable

    @classmethod
    def capture(cls, instructors: Dict[str, Instructor], schedule: Schedule, locks: LockTable) -> "HistorySnapshot":
        # Instructor records are frozen; only the containers need copying.
        return cls(
            instructors=dict(instructors),
            schedule=copy_schedule(schedule),
            locks=copy_locks(locks),
        )


class HistoryBuffer:
    """LIFO stack of snapshots; the oldest entry is discarded past `max_depth`."""

    def __init__(self, max_depth: int = DEFAULT_HISTORY_DEPTH):
        if max_depth < 1:
            raise ValueError("max_depth must be >= 1")
        self._stack: Deque[HistorySnapshot] = deque(maxlen=int(max_depth))

    @property
    def max_depth(self) -> int:
        return int(self._stack.maxlen or 0)

    def push(self, snapshot: HistorySnapshot) -> None:
        self._stack.append(snapshot)

    def pop(self) -> Optional[HistorySnapshot]:
        if not self._stack:
            return None
        return self._stack.pop()

    def __len__(self) -> int:
        return len(self._stack)

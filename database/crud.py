"""CRUD operations for instructors, the working schedule and saved schedules.

All DB access is centralized here. Plain `sqlite3` + parameterized queries;
nested fields are stored as JSON text.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from typing import Any, Dict, List, Optional, Sequence

from scheduling.history import HistorySnapshot
from scheduling.instructors import Instructor
from scheduling.schedule_grid import (
    LockTable,
    Schedule,
    cell_from_value,
    cell_to_value,
    get_lock,
    init_empty_schedule,
    iter_cells,
    iter_locks,
    with_lock,
)
from utils.validators import instructor_to_dict, normalize_instructor_data


# -----------------
# Helper utilities
# -----------------


def _rows(conn: sqlite3.Connection, query: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
    cur = conn.execute(query, params)
    return [dict(r) for r in cur.fetchall()]


def _row(conn: sqlite3.Connection, query: str, params: Sequence[Any] = ()) -> Optional[Dict[str, Any]]:
    cur = conn.execute(query, params)
    r = cur.fetchone()
    return dict(r) if r is not None else None


def _set_cell(schedule: Schedule, day: str, class_type: str, time: str, value: str) -> None:
    schedule.setdefault(day, {}).setdefault(class_type, {})[time] = cell_from_value(value)


# -----------
# Instructors
# -----------


def _instructor_from_row(r: Dict[str, Any]) -> Instructor:
    return normalize_instructor_data(
        {
            "instructor_id": r["instructor_id"],
            "name": r["name"],
            "email": r["email"],
            "phone": r["phone"],
            "class_types": json.loads(r.get("class_types_json") or "[]"),
            "block_size": r["block_size"],
            "min_classes": r["min_classes"],
            "max_classes": r["max_classes"],
            "availability": json.loads(r.get("availability_json") or "[]"),
            "class_type_preferences": json.loads(r.get("preferences_json") or "{}"),
            "unavailability": json.loads(r.get("unavailability_json") or "{}"),
        }
    )


def list_instructors(conn: sqlite3.Connection) -> List[Instructor]:
    return [_instructor_from_row(r) for r in _rows(conn, "SELECT * FROM instructors ORDER BY instructor_id")]


def get_instructor(conn: sqlite3.Connection, instructor_id: str) -> Optional[Instructor]:
    r = _row(conn, "SELECT * FROM instructors WHERE instructor_id=?", (instructor_id,))
    return _instructor_from_row(r) if r is not None else None


def upsert_instructor(conn: sqlite3.Connection, instructor: Instructor) -> None:
    d = instructor_to_dict(instructor)
    conn.execute(
        """
        INSERT INTO instructors (
            instructor_id, name, email, phone, class_types_json,
            block_size, min_classes, max_classes,
            availability_json, preferences_json, unavailability_json
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        ON CONFLICT(instructor_id) DO UPDATE SET
            name=excluded.name,
            email=excluded.email,
            phone=excluded.phone,
            class_types_json=excluded.class_types_json,
            block_size=excluded.block_size,
            min_classes=excluded.min_classes,
            max_classes=excluded.max_classes,
            availability_json=excluded.availability_json,
            preferences_json=excluded.preferences_json,
            unavailability_json=excluded.unavailability_json
        """,
        (
            d["instructor_id"],
            d["name"],
            d["email"],
            d["phone"],
            json.dumps(d["class_types"]),
            d["block_size"],
            d["min_classes"],
            d["max_classes"],
            json.dumps(d["availability"]),
            json.dumps(d["class_type_preferences"]),
            json.dumps(d["unavailability"]),
        ),
    )


def delete_instructor(conn: sqlite3.Connection, instructor_id: str) -> None:
    conn.execute("DELETE FROM instructors WHERE instructor_id=?", (instructor_id,))


# ----------------
# Working state
# ----------------


def save_state(conn: sqlite3.Connection, state: HistorySnapshot) -> None:
    """Replace the stored roster, schedule and locks with `state`."""

    conn.execute("DELETE FROM instructors")
    for inst in state.instructors.values():
        upsert_instructor(conn, inst)

    conn.execute("DELETE FROM schedule_cells")
    for day, class_type, time, cell in iter_cells(state.schedule):
        value = cell_to_value(cell)
        if value is not None:
            conn.execute(
                "INSERT INTO schedule_cells (day, class_type, time, value) VALUES (?, ?, ?, ?)",
                (day, class_type, time, value),
            )

    conn.execute("DELETE FROM locked_assignments")
    for day, class_type, time, instructor_id in iter_locks(state.locks):
        conn.execute(
            "INSERT INTO locked_assignments (day, class_type, time, instructor_id) VALUES (?, ?, ?, ?)",
            (day, class_type, time, instructor_id),
        )


def load_state(conn: sqlite3.Connection) -> HistorySnapshot:
    """Read the stored state; an empty database yields an empty schedule."""

    instructors = {inst.instructor_id: inst for inst in list_instructors(conn)}

    schedule = init_empty_schedule()
    for r in _rows(conn, "SELECT day, class_type, time, value FROM schedule_cells"):
        _set_cell(schedule, r["day"], r["class_type"], r["time"], r["value"])

    locks: LockTable = {}
    for r in _rows(conn, "SELECT day, class_type, time, instructor_id FROM locked_assignments"):
        locks = with_lock(locks, r["day"], r["class_type"], r["time"], r["instructor_id"])

    return HistorySnapshot(instructors=instructors, schedule=schedule, locks=locks)


# ----------------
# Saved schedules
# ----------------


def _new_schedule_id() -> str:
    # short, URL-safe-ish id
    return uuid.uuid4().hex[:12]


def list_saved_schedules(conn: sqlite3.Connection) -> List[Dict[str, Any]]:
    return _rows(conn, "SELECT schedule_id, name, created_at FROM saved_schedules ORDER BY created_at DESC")


def create_saved_schedule(
    conn: sqlite3.Connection,
    *,
    name: str,
    schedule: Schedule,
    locks: LockTable,
    settings: Dict[str, Any],
    metrics: Dict[str, Any],
) -> str:
    """Persist a schedule (offered classes only) with its lock flags."""

    schedule_id = _new_schedule_id()

    conn.execute(
        """
        INSERT INTO saved_schedules (schedule_id, name, settings_json, metrics_json)
        VALUES (?, ?, ?, ?)
        """,
        (schedule_id, name, json.dumps(settings), json.dumps(metrics)),
    )

    for day, class_type, time, cell in iter_cells(schedule):
        value = cell_to_value(cell)
        if value is None:
            continue
        locked = get_lock(locks, day, class_type, time) == value
        conn.execute(
            """
            INSERT INTO saved_schedule_entries (schedule_id, day, class_type, time, value, locked)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (schedule_id, day, class_type, time, value, int(locked)),
        )

    return schedule_id


def get_saved_schedule(conn: sqlite3.Connection, schedule_id: str) -> Optional[Dict[str, Any]]:
    """Saved schedule with its raw `entries` and the rebuilt `schedule` / `locks`."""

    s = _row(conn, "SELECT * FROM saved_schedules WHERE schedule_id=?", (schedule_id,))
    if s is None:
        return None
    s["settings"] = json.loads(s.get("settings_json") or "{}")
    s["metrics"] = json.loads(s.get("metrics_json") or "{}")
    s["entries"] = _rows(
        conn,
        "SELECT * FROM saved_schedule_entries WHERE schedule_id=? ORDER BY entry_id",
        (schedule_id,),
    )

    schedule = init_empty_schedule()
    locks: LockTable = {}
    for e in s["entries"]:
        _set_cell(schedule, e["day"], e["class_type"], e["time"], e["value"])
        if e["locked"]:
            locks = with_lock(locks, e["day"], e["class_type"], e["time"], e["value"])
    s["schedule"] = schedule
    s["locks"] = locks
    return s


def delete_saved_schedule(conn: sqlite3.Connection, schedule_id: str) -> None:
    conn.execute("DELETE FROM saved_schedules WHERE schedule_id=?", (schedule_id,))

from __future__ import annotations

from typing import Iterable, Mapping, Optional

import pandas as pd

from scheduling.catalog import CLASS_TIMES, class_priority, time_index
from scheduling.instructors import Instructor
from scheduling.schedule_grid import LockTable, Schedule, assigned_id, cell_to_value, get_lock, iter_cells


def schedule_rows_df(schedule: Schedule, locks: Optional[LockTable] = None) -> pd.DataFrame:
    """One row per offered class: day, class_type, time, instructor, locked.

    Rows are ordered by day then time then class-type priority.
    """

    locks = locks or {}
    day_order = {d: i for i, d in enumerate(schedule)}
    rows = []
    for day, class_type, time, cell in iter_cells(schedule):
        value = cell_to_value(cell)
        if value is None:
            continue
        rows.append(
            {
                "day": day,
                "class_type": class_type,
                "time": time,
                "instructor": value,
                "locked": get_lock(locks, day, class_type, time) is not None,
                "_d": day_order[day],
                "_t": time_index(time),
                "_p": class_priority(class_type),
            }
        )

    cols = ["day", "class_type", "time", "instructor", "locked"]
    if not rows:
        return pd.DataFrame(columns=cols)
    out = pd.DataFrame(rows).sort_values(["_d", "_t", "_p"], kind="stable")
    return out[cols].reset_index(drop=True)


def day_timetable_df(
    schedule: Schedule,
    day: str,
    *,
    times: Iterable[str] = CLASS_TIMES,
    empty_label: str = "",
) -> pd.DataFrame:
    """Spreadsheet-style view of one day: TIME column plus one column per class type.

    Times with no class in any column are left out.
    """

    columns = schedule.get(day, {})
    class_types = list(columns)
    out_rows: list[list[str]] = []
    for t in times:
        values = [cell_to_value(columns[ct].get(t)) if t in columns[ct] else None for ct in class_types]
        if all(v is None for v in values):
            continue
        out_rows.append([t] + [v if v is not None else empty_label for v in values])

    return pd.DataFrame(out_rows, columns=["TIME"] + class_types)


def instructor_load_df(instructors: Mapping[str, Instructor], schedule: Schedule) -> pd.DataFrame:
    """Per-instructor weekly load against min/max, with one count column per class type."""

    type_cols = list(dict.fromkeys(ct for types in schedule.values() for ct in types))

    rows = {}
    for iid, inst in instructors.items():
        rows[iid] = {
            "instructor_id": iid,
            "name": inst.name,
            "min_classes": inst.min_classes,
            "max_classes": inst.max_classes,
        }
        for c in type_cols:
            rows[iid][c] = 0

    for _day, class_type, _time, cell in iter_cells(schedule):
        iid = assigned_id(cell)
        if iid in rows:
            rows[iid][class_type] += 1

    out = pd.DataFrame(list(rows.values()))
    if out.empty:
        return out

    out["Total"] = out[type_cols].sum(axis=1)
    out["UnderMin"] = (out["min_classes"] - out["Total"]).clip(lower=0)
    out["OverMax"] = (out["Total"] - out["max_classes"]).clip(lower=0)
    return out.sort_values(["Total", "instructor_id"], ascending=[False, True]).reset_index(drop=True)


def _md_cell(value: object) -> str:
    return str(value).replace("|", "\\|").replace("\n", " ")


def _md_row(values: Iterable[object]) -> str:
    return "| " + " | ".join(_md_cell(v) for v in values) + " |"


def df_to_markdown(df: pd.DataFrame) -> str:
    """Render a view as a pipe table, e.g. for the demo script's report."""

    lines = [_md_row(df.columns), _md_row("---" for _ in df.columns)]
    lines.extend(_md_row(row) for row in df.itertuples(index=False, name=None))
    return "\n".join(lines) + "\n"

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pandas as pd

from scheduling.instructors import Instructor
from scheduling.schedule_grid import Assigned, UNRESOLVED, init_empty_schedule
from utils.timetable_export import day_timetable_df, df_to_markdown, instructor_load_df, schedule_rows_df


def _schedule():
    s = init_empty_schedule()
    s["Mon"]["Strength"]["7:30 AM"] = Assigned("B")
    s["Mon"]["Lagree"]["7:30 AM"] = Assigned("A")
    s["Mon"]["Lagree"]["5:30 AM"] = UNRESOLVED
    s["Tue"]["Lagree"]["5:30 AM"] = Assigned("A")
    return s


def test_df_to_markdown_basic() -> None:
    df = pd.DataFrame([["A", "B"], ["C", "D"]], columns=["Col1", "Col2"])
    md = df_to_markdown(df)
    assert "| Col1 | Col2 |" in md
    assert "| A | B |" in md


def test_df_to_markdown_escapes_pipes_and_newlines() -> None:
    df = pd.DataFrame([["a|b", "two\nlines"]], columns=["x", "y"])
    assert df_to_markdown(df).splitlines() == ["| x | y |", "| --- | --- |", "| a\\|b | two lines |"]


def test_schedule_rows_are_ordered_by_day_time_and_priority() -> None:
    locks = {"Mon": {"Lagree": {"7:30 AM": "A"}}}
    df = schedule_rows_df(_schedule(), locks)

    assert list(df.columns) == ["day", "class_type", "time", "instructor", "locked"]
    assert df[["day", "class_type", "time", "instructor"]].values.tolist() == [
        ["Mon", "Lagree", "5:30 AM", "TBD"],
        ["Mon", "Lagree", "7:30 AM", "A"],
        ["Mon", "Strength", "7:30 AM", "B"],
        ["Tue", "Lagree", "5:30 AM", "A"],
    ]
    assert df["locked"].tolist() == [False, True, False, False]


def test_schedule_rows_empty() -> None:
    df = schedule_rows_df(init_empty_schedule())
    assert df.empty
    assert "instructor" in df.columns


def test_day_timetable_skips_times_without_classes() -> None:
    df = day_timetable_df(_schedule(), "Mon")

    assert list(df.columns) == ["TIME", "Lagree", "Strength", "Boxing", "Stretch", "PT"]
    assert df["TIME"].tolist() == ["5:30 AM", "7:30 AM"]
    assert df.iloc[0]["Lagree"] == "TBD"
    assert df.iloc[1]["Strength"] == "B"
    assert df.iloc[1]["PT"] == ""


def test_instructor_load_counts_per_type() -> None:
    instructors = {
        "A": Instructor(instructor_id="A", name="Ann", class_types=("Lagree",), min_classes=3, max_classes=5),
        "B": Instructor(instructor_id="B", name="Bo", class_types=("Strength",), min_classes=1, max_classes=1),
        "C": Instructor(instructor_id="C", name="Cy", class_types=("PT",)),
    }
    df = instructor_load_df(instructors, _schedule())

    assert df["instructor_id"].tolist() == ["A", "B", "C"]
    a = df.iloc[0]
    assert a["Lagree"] == 2
    assert a["Total"] == 2
    assert a["UnderMin"] == 1
    assert a["OverMax"] == 0
    assert df.iloc[2]["Total"] == 0

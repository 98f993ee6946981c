"""Demo runner: seed the weekly template, fill it with the default roster.

Usage:
    python scripts/run_schedule_demo.py [--save NAME] [--markdown]

"""

from __future__ import annotations

import argparse
from dataclasses import asdict
from pathlib import Path
import sys

# Ensure project root is on PYTHONPATH when running as a script
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from database import crud
from database.db import db_session
from scheduling.schedule_service import ScheduleService
from utils.logger import configure_logging
from utils.timetable_export import df_to_markdown, day_timetable_df, instructor_load_df


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--save", metavar="NAME", help="store the result as a saved schedule")
    parser.add_argument("--markdown", action="store_true", help="print tables as Markdown")
    args = parser.parse_args(argv)

    configure_logging()

    service = ScheduleService.with_default_roster()
    service.seed_template_classes()
    result = service.generate()

    render = df_to_markdown if args.markdown else (lambda df: df.to_string(index=False))

    for day in service.days:
        print(f"\n=== {day} ===")
        print(render(day_timetable_df(service.schedule, day)))

    print("\n=== Instructor load ===")
    print(render(instructor_load_df(service.instructors, service.schedule)))

    print("\n=== Metrics ===")
    metrics = service.metrics()
    for k, v in metrics.items():
        print(f"{k}: {v}")

    if result.unresolved:
        print(f"\n{len(result.unresolved)} classes still TBD")

    if args.save:
        with db_session() as conn:
            sid = crud.create_saved_schedule(
                conn,
                name=args.save,
                schedule=service.schedule,
                locks=service.locked_assignments,
                settings=asdict(service.settings),
                metrics=metrics,
            )
        print(f"\nSaved as {sid}")


if __name__ == "__main__":
    main()

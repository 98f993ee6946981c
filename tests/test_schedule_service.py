import sys
from pathlib import Path

# Ensure project root is on PYTHONPATH
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from scheduling.catalog import CLASS_TIMES, CLASS_TYPES, DAYS_OF_WEEK, TBD, WEEKLY_TEMPLATE
from scheduling.class_scheduler import count_conflicts
from scheduling.rules import is_available
from scheduling.schedule_grid import Assigned, ClassSlot, EMPTY, UNRESOLVED
from scheduling.schedule_service import ScheduleService


TEMPLATE_SIZE = sum(len(times) for types in WEEKLY_TEMPLATE.values() for times in types.values())


@pytest.fixture
def service():
    svc = ScheduleService.with_default_roster()
    svc.seed_template_classes()
    return svc


def test_catalog_accessors():
    svc = ScheduleService()
    assert svc.class_types == CLASS_TYPES
    assert svc.days == DAYS_OF_WEEK
    assert svc.times == CLASS_TIMES
    assert svc.get_total_scheduled_slots() == 0
    assert svc.get_cell("Mon", "Lagree", "5:30 AM") == EMPTY
    assert svc.get_value("Mon", "Lagree", "5:30 AM") is None


def test_seed_template_is_idempotent(service):
    assert service.get_total_scheduled_slots() == TEMPLATE_SIZE
    assert service.get_total_assigned_classes() == 0
    assert service.get_value("Mon", "Boxing", "6:30 AM") == TBD

    depth = service.history_size
    service.seed_template_classes()
    assert service.get_total_scheduled_slots() == TEMPLATE_SIZE
    assert service.history_size == depth


def test_seed_keeps_existing_assignments():
    svc = ScheduleService.with_default_roster()
    assert svc.add_class("Mon", "Lagree", "5:30 AM", "AD")
    svc.seed_template_classes()
    assert svc.get_value("Mon", "Lagree", "5:30 AM") == "AD"


def test_add_class_rejects_conflict_and_unknown_slot(service):
    assert service.add_class("Mon", "Lagree", "5:30 AM", "DB")
    before = service.schedule
    depth = service.history_size

    assert not service.add_class("Mon", "Strength", "5:30 AM", "DB")
    assert not service.add_class("Mon", "Yoga", "5:30 AM")
    assert not service.add_class("Someday", "Lagree", "5:30 AM")

    assert service.schedule == before
    assert service.history_size == depth


def test_undo_after_add_class_restores_schedule_exactly(service):
    before = service.schedule
    assert service.add_class("Mon", "PT", "9:00 AM", "DB")
    assert service.get_value("Mon", "PT", "9:00 AM") == "DB"

    assert service.undo_last_change()
    assert service.schedule == before


def test_undo_with_empty_history():
    assert not ScheduleService().undo_last_change()


def test_history_is_bounded():
    svc = ScheduleService(history_depth=3)
    for t in CLASS_TIMES[:5]:
        assert svc.add_class("Mon", "Lagree", t)
    assert svc.history_size == 3

    for _ in range(3):
        assert svc.undo_last_change()
    assert not svc.undo_last_change()
    # the two oldest changes can no longer be undone
    assert svc.get_total_scheduled_slots() == 2


def test_manual_assign_rejects_ineligible_instructor(service):
    before = service.schedule
    # Michelle teaches Lagree and Strength only
    assert not service.manually_assign_instructor("Tue", "Boxing", "6:30 AM", "MH")
    assert service.schedule == before
    assert service.locked_assignments == {}


def test_manual_assign_rejects_unknown_instructor_and_conflict(service):
    assert not service.manually_assign_instructor("Mon", "Lagree", "5:30 AM", "NOPE")

    assert service.manually_assign_instructor("Mon", "Lagree", "5:30 AM", "DB")
    assert not service.manually_assign_instructor("Mon", "Strength", "5:30 AM", "DB")


def test_manual_assign_respects_whitelist(service):
    iid = service.add_instructor(
        {"name": "Wendy Lee", "class_types": ["Lagree"], "availability": ["Mon-6:30 AM"]}
    )
    assert not service.manually_assign_instructor("Mon", "Lagree", "5:30 AM", iid)
    assert service.manually_assign_instructor("Mon", "Lagree", "6:30 AM", iid)


def test_manual_assign_locks_and_survives_generation(service):
    assert service.manually_assign_instructor("Mon", "Lagree", "5:30 AM", "AD")
    assert service.is_assignment_locked("Mon", "Lagree", "5:30 AM")

    service.generate()
    assert service.get_value("Mon", "Lagree", "5:30 AM") == "AD"
    assert service.locked_assignments == {"Mon": {"Lagree": {"5:30 AM": "AD"}}}


def test_manual_assign_tbd_clears_lock(service):
    assert service.manually_assign_instructor("Mon", "Lagree", "5:30 AM", "AD")
    assert service.manually_assign_instructor("Mon", "Lagree", "5:30 AM", TBD)

    assert service.get_value("Mon", "Lagree", "5:30 AM") == TBD
    assert not service.is_assignment_locked("Mon", "Lagree", "5:30 AM")
    assert service.locked_assignments == {}


def test_lock_and_unlock(service):
    # nothing to lock on an unresolved or empty cell
    assert not service.lock_assignment("Mon", "Lagree", "5:30 AM")
    assert not service.lock_assignment("Mon", "PT", "5:30 AM")

    assert service.add_class("Mon", "Lagree", "5:30 AM", "TS")
    assert service.lock_assignment("Mon", "Lagree", "5:30 AM")
    assert service.locked_assignments == {"Mon": {"Lagree": {"5:30 AM": "TS"}}}

    assert service.unlock_assignment("Mon", "Lagree", "5:30 AM")
    assert service.locked_assignments == {}
    assert not service.unlock_assignment("Mon", "Lagree", "5:30 AM")


def test_overwriting_a_locked_cell_drops_the_lock(service):
    assert service.manually_assign_instructor("Mon", "Lagree", "5:30 AM", "AD")
    assert service.add_class("Mon", "Lagree", "5:30 AM", "TS")
    assert not service.is_assignment_locked("Mon", "Lagree", "5:30 AM")


def test_remove_class_drops_lock(service):
    assert service.manually_assign_instructor("Mon", "Lagree", "5:30 AM", "AD")
    assert service.remove_class("Mon", "Lagree", "5:30 AM")

    assert service.get_cell("Mon", "Lagree", "5:30 AM") == EMPTY
    assert service.locked_assignments == {}
    assert service.get_total_scheduled_slots() == TEMPLATE_SIZE - 1


def test_clear_schedule(service):
    service.manually_assign_instructor("Mon", "Lagree", "5:30 AM", "AD")
    service.clear_schedule()
    assert service.get_total_scheduled_slots() == 0
    assert service.locked_assignments == {}

    assert service.undo_last_change()
    assert service.get_total_scheduled_slots() == TEMPLATE_SIZE


def test_generate_fills_template_without_conflicts(service):
    result = service.generate()

    assert result.filled
    assert service.get_total_assigned_classes() == len(result.filled)
    assert count_conflicts(service.schedule) == 0
    assert service.metrics()["instructor_conflicts"] == 0.0

    # a second run changes nothing and records no history
    depth = service.history_size
    again = service.generate()
    assert again.filled == ()
    assert service.history_size == depth


def test_generate_on_empty_schedule_records_no_history():
    svc = ScheduleService.with_default_roster()
    result = svc.generate()
    assert result.filled == ()
    assert svc.history_size == 0


def test_get_instructor_classes(service):
    service.add_class("Mon", "Lagree", "5:30 AM", "AD")
    service.add_class("Tue", "Lagree", "6:30 AM", "AD")

    assert service.get_instructor_classes("AD") == [
        ClassSlot("Mon", "Lagree", "5:30 AM"),
        ClassSlot("Tue", "Lagree", "6:30 AM"),
    ]
    assert service.get_instructor_classes("NOPE") == []


def test_delete_instructor_reverts_classes_to_tbd(service):
    service.generate()
    classes = service.get_instructor_classes("DB")
    assert classes
    first = classes[0]
    assert service.lock_assignment(first.day, first.class_type, first.time)

    assert service.delete_instructor("DB")

    assert service.get_instructor("DB") is None
    assert service.get_instructor_classes("DB") == []
    for slot in classes:
        assert service.get_cell(slot.day, slot.class_type, slot.time) == UNRESOLVED
    assert not service.is_assignment_locked(first.day, first.class_type, first.time)
    assert not service.delete_instructor("DB")


def test_add_instructor_generates_and_dedupes_ids(service):
    # "JD" is already on the default roster
    assert service.add_instructor({"name": "Jane Dunn", "classTypes": ["Lagree"]}) == "JD2"
    assert service.add_instructor({"id": "XY", "name": "Xavier", "classTypes": ["PT"]}) == "XY"
    assert service.add_instructor({"id": "XY", "name": "Xena", "classTypes": ["PT"]}) == "XY2"

    jd2 = service.get_instructor("JD2")
    assert jd2.name == "Jane Dunn"
    assert jd2.block_size == 2
    assert jd2.min_classes == 2
    assert jd2.max_classes == 10


def test_add_instructor_rewrites_invalid_preferences(service):
    iid = service.add_instructor(
        {
            "name": "Pat Quinn",
            "class_types": ["Strength", "Lagree"],
            "class_type_preferences": {"Mon-7:30 AM": "Boxing", "Mon-12:00 PM": "Lagree"},
        }
    )
    inst = service.get_instructor(iid)
    assert inst.class_type_preferences == {"Mon-7:30 AM": "Strength", "Mon-12:00 PM": "Lagree"}


def test_update_instructor_merges_and_keeps_id(service):
    assert service.update_instructor("AD", {"maxClasses": 3, "instructor_id": "ZZ"})
    inst = service.get_instructor("AD")
    assert inst.instructor_id == "AD"
    assert inst.max_classes == 3
    assert inst.class_types == ("Lagree",)
    assert service.get_instructor("ZZ") is None

    assert not service.update_instructor("NOPE", {"name": "x"})


def test_set_instructor_availability(service):
    assert service.set_instructor_availability("AD", "Mon", "5:30 AM", False)
    assert not is_available(service.get_instructor("AD"), "Mon", "5:30 AM")

    assert service.set_instructor_availability("AD", "Mon", "5:30 AM", True)
    assert is_available(service.get_instructor("AD"), "Mon", "5:30 AM")

    assert not service.set_instructor_availability("NOPE", "Mon", "5:30 AM", False)


def test_snapshot_is_detached(service):
    snap = service.snapshot()
    service.add_class("Mon", "Lagree", "5:30 AM", "AD")
    assert snap.schedule["Mon"]["Lagree"]["5:30 AM"] == UNRESOLVED
    assert service.get_cell("Mon", "Lagree", "5:30 AM") == Assigned("AD")

    restored = ScheduleService.from_snapshot(snap)
    assert restored.schedule == snap.schedule
    assert restored.instructors == snap.instructors


def test_lock_survives_when_another_instructor_wins_the_preferred_cell():
    svc = ScheduleService(
        [
            {"id": "A", "name": "Ana", "class_types": ["Lagree", "Strength"],
             "class_type_preferences": {"Mon-7:30 AM": "Strength"}},
            {"id": "B", "name": "Bea", "class_types": ["Strength"],
             "class_type_preferences": {"Mon-7:30 AM": "Strength"}},
        ]
    )
    svc.seed_template_classes()
    assert svc.manually_assign_instructor("Mon", "Lagree", "7:30 AM", "A")

    svc.generate()

    assert svc.get_value("Mon", "Strength", "7:30 AM") == "B"
    assert svc.get_value("Mon", "Lagree", "7:30 AM") == "A"
    assert svc.is_assignment_locked("Mon", "Lagree", "7:30 AM")
    assert count_conflicts(svc.schedule) == 0

import sys
from pathlib import Path

# Ensure project root is on PYTHONPATH
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from scheduling.instructors import Blacklist, Instructor, TimeRange, Whitelist, availability_rule
from scheduling.rules import has_conflict, is_available, is_eligible
from scheduling.schedule_grid import Assigned, UNRESOLVED, init_empty_schedule


def _inst(**kw):
    base = dict(instructor_id="A", name="A", class_types=("Lagree",))
    base.update(kw)
    return Instructor(**base)


def test_has_conflict_checks_every_class_type_at_that_time():
    s = init_empty_schedule()
    s["Mon"]["Strength"]["7:30 AM"] = Assigned("A")
    s["Mon"]["Lagree"]["7:30 AM"] = UNRESOLVED

    assert has_conflict(s, "A", "Mon", "7:30 AM")
    assert not has_conflict(s, "B", "Mon", "7:30 AM")
    assert not has_conflict(s, "A", "Mon", "8:30 AM")
    assert not has_conflict(s, "A", "Tue", "7:30 AM")


def test_is_eligible_uses_class_type_list():
    a = _inst(class_types=("Lagree", "Strength"))
    assert is_eligible(a, "Strength")
    assert not is_eligible(a, "Boxing")


def test_whitelist_mode_ignores_legacy_unavailability():
    a = _inst(
        availability=frozenset({"Mon-5:30 AM"}),
        unavailability=Blacklist(days=("Mon",)),
    )
    assert isinstance(availability_rule(a), Whitelist)
    assert is_available(a, "Mon", "5:30 AM")
    assert not is_available(a, "Mon", "6:00 AM")
    assert not is_available(a, "Tue", "5:30 AM")


def test_blacklist_mode_days_slots_and_ranges():
    a = _inst(
        unavailability=Blacklist(
            days=("Sun",),
            slots=frozenset({"Mon-5:30 AM"}),
            time_ranges=(TimeRange(days=("Tue", "Thu"), start_time="12:00 PM", end_time="2:00 PM"),),
        )
    )
    assert isinstance(availability_rule(a), Blacklist)
    assert not is_available(a, "Sun", "9:00 AM")
    assert not is_available(a, "Mon", "5:30 AM")
    assert is_available(a, "Mon", "6:00 AM")
    assert not is_available(a, "Tue", "12:00 PM")
    assert not is_available(a, "Thu", "2:00 PM")
    assert is_available(a, "Thu", "2:30 PM")
    assert is_available(a, "Wed", "1:00 PM")


def test_no_availability_data_means_available_everywhere():
    a = _inst()
    assert is_available(a, "Sat", "8:00 PM")


def test_preference_lookup():
    a = _inst(class_types=("Lagree", "Strength"), class_type_preferences={"Mon-7:30 AM": "Strength"})
    assert a.preferred_type_at("Mon", "7:30 AM") == "Strength"
    assert a.prefers("Mon", "7:30 AM", "Strength")
    assert not a.prefers("Mon", "7:30 AM", "Lagree")
    assert a.preferred_type_at("Mon", "8:30 AM") is None


def test_preferences_are_read_only_and_detached():
    prefs = {"Mon-7:30 AM": "Lagree"}
    a = _inst(class_type_preferences=prefs)

    prefs["Tue-7:30 AM"] = "Lagree"
    assert a.class_type_preferences == {"Mon-7:30 AM": "Lagree"}

    with pytest.raises(TypeError):
        a.class_type_preferences["Wed-7:30 AM"] = "Lagree"
    assert a == _inst(class_type_preferences={"Mon-7:30 AM": "Lagree"})

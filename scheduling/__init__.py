"""Weekly studio class scheduling: catalog, instructors, rules and the assignment engine.

The service handle is imported from `scheduling.schedule_service`.
"""

from .catalog import CLASS_TIMES, CLASS_TYPES, DAYS_OF_WEEK, DEFAULT_INSTRUCTORS, TBD, WEEKLY_TEMPLATE

from .instructors import Blacklist, Instructor, TimeRange, Whitelist, availability_rule

from .schedule_grid import Assigned, ClassSlot, Empty, Unresolved, init_empty_schedule

from .rules import has_conflict, is_available, is_eligible

from .class_scheduler import GenerationResult, GenerationSettings, compute_metrics, generate_schedule

__all__ = [
	"CLASS_TIMES",
	"CLASS_TYPES",
	"DAYS_OF_WEEK",
	"DEFAULT_INSTRUCTORS",
	"TBD",
	"WEEKLY_TEMPLATE",
	"Blacklist",
	"Instructor",
	"TimeRange",
	"Whitelist",
	"availability_rule",
	"Assigned",
	"ClassSlot",
	"Empty",
	"Unresolved",
	"init_empty_schedule",
	"has_conflict",
	"is_available",
	"is_eligible",
	"GenerationResult",
	"GenerationSettings",
	"compute_metrics",
	"generate_schedule",
]

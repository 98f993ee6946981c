"""Exceptions raised for malformed input that should never reach the engine.

Expected domain outcomes (conflicts, ineligible instructors, unfillable slots)
are reported through boolean / result returns instead.
"""


class InvalidTimeLabelError(ValueError):
    """Raised when a time label is not in 12-hour "H:MM AM/PM" form."""

    pass


class InvalidSlotKeyError(ValueError):
    """Raised when a slot key is not of the form "{day}-{time}"."""

    pass

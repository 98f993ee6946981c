"""Instructor id generation.

Ids are short and human-friendly: the initials of the instructor's name
("Jess Doe" -> "JD"). A taken id gets the next numeric suffix ("JD2", "JD3").
"""

from __future__ import annotations

import re
from typing import Iterable


def initials_from_name(name: str) -> str:
    return "".join(part[0].upper() for part in str(name or "").split() if part[0].isalnum())


def _next_numeric_suffix(existing: Iterable[str], prefix: str) -> int:
    # Match e.g. JD2, JD3 (the bare prefix counts as 1)
    pat = re.compile(rf"^{re.escape(prefix)}(\d+)$")
    nums = [1]
    for x in existing:
        m = pat.match(x)
        if m:
            nums.append(int(m.group(1)))
    return max(nums) + 1


def generate_instructor_id(name: str, existing: Iterable[str], *, fallback: str = "I") -> str:
    """Initials of `name`, made unique against `existing`."""

    return unique_id(initials_from_name(name) or fallback, existing)


def unique_id(candidate: str, existing: Iterable[str]) -> str:
    """Return `candidate`, suffixed if it collides with `existing`."""

    existing = set(existing)
    if candidate not in existing:
        return candidate
    return f"{candidate}{_next_numeric_suffix(existing, candidate)}"

"""Fertile window around an ovulation day.

Sperm survive up to five days and the egg about one, so the window spans
five days before ovulation through the day after.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FertileWindow:
    """Fertile window in cycle days (inclusive on both ends)."""

    start: int
    end: int

    def __contains__(self, day: int) -> bool:
        return self.start <= day <= self.end


def calculate_fertile_window(
    ovulation_day: int | None,
    days_before: int = 5,
    days_after: int = 1,
) -> FertileWindow | None:
    """Return the fertile window for ``ovulation_day``, or None if unknown."""
    if ovulation_day is None:
        return None
    return FertileWindow(
        start=max(1, ovulation_day - days_before),
        end=ovulation_day + days_after,
    )


def is_fertile_day(
    day: int | None,
    ovulation_day: int | None,
    days_before: int = 5,
    days_after: int = 1,
) -> bool:
    window = calculate_fertile_window(ovulation_day, days_before, days_after)
    if window is None or day is None:
        return False
    return day in window

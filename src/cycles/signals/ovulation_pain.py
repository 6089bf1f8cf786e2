"""Ovulation pain (mittelschmerz) detection.

A day only counts when its ovulation-pain value is corroborated by the pain
the user logged for the same day.  An ovulation-pain entry that never shows
up on the pain chart must not drive a prediction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from src.cycles.base import DailyObservation

logger = logging.getLogger("endotrack.cycles.signals.ovulation_pain")


@dataclass(frozen=True)
class OvulationPainSignal:
    """The strongest qualifying ovulation-pain day of a cycle.

    Attributes:
        day:       Cycle day of the pain.
        intensity: Ovulation-pain intensity (0–10).
        side:      Side reported by the user, if any.
    """

    day: int
    intensity: float
    side: str | None = None


def find_ovulation_pain_day(
    entries: Sequence[tuple[int, DailyObservation]],
    min_intensity: float = 3,
    min_visible_pain: float = 3,
) -> OvulationPainSignal | None:
    """Return the highest-intensity qualifying ovulation-pain day.

    A day qualifies when its ovulation-pain intensity is at least
    ``min_intensity`` and its visible pain (general score, body regions,
    acute events) is at least ``min_visible_pain``.  Ties go to the earlier
    day.

    Args:
        entries: (cycle_day, observation) pairs in date order.

    Returns:
        OvulationPainSignal, or None if no day qualifies.
    """
    best: OvulationPainSignal | None = None
    for cycle_day, obs in entries:
        intensity = obs.ovulation_pain_intensity
        if intensity is None or intensity < min_intensity:
            continue
        visible = obs.visible_pain_intensity
        if visible is None or visible < min_visible_pain:
            logger.debug(
                "Ignoring ovulation pain %.1f on cycle day %d: visible pain %s",
                intensity, cycle_day, visible,
            )
            continue
        if best is None or intensity > best.intensity:
            best = OvulationPainSignal(
                day=cycle_day, intensity=intensity, side=obs.ovulation_pain_side
            )
    return best

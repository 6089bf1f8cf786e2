"""Cervical mucus fertility scoring and Billings Peak Day detection.

Scores combine the sensation (``MucusObservation``) with the appearance
(``MucusAppearance``) on a fixed 0–4 scale:

    4  slippery + egg white                 (peak-type mucus)
    3  slippery or egg white alone,
       or wet with creamy / egg white
    2  wet or creamy alone
    1  moist + sticky
    0  anything else, including dry / nothing recorded

The Peak Day is the *last* day of peak-type mucus (score ≥ 3) before the
score drops again.  Ovulation is expected on the day after.
"""

from __future__ import annotations

import logging
from typing import Sequence

from src.cycles.base import DailyObservation, MucusAppearance, MucusObservation

logger = logging.getLogger("endotrack.cycles.signals.mucus")

PEAK_SCORE = 4
DEFAULT_PEAK_THRESHOLD = 3


def score_cervix_mucus_fertility(
    observation: MucusObservation | None,
    appearance: MucusAppearance | None,
) -> int:
    """Return the 0–4 fertility score for one day's mucus record."""
    slippery = observation == MucusObservation.slippery
    wet = observation == MucusObservation.wet
    moist = observation == MucusObservation.moist
    egg_white = appearance == MucusAppearance.egg_white
    creamy = appearance == MucusAppearance.creamy
    sticky = appearance == MucusAppearance.sticky

    if slippery and egg_white:
        return PEAK_SCORE
    if slippery or egg_white or (wet and creamy):
        return 3
    if wet or creamy:
        return 2
    if moist and sticky:
        return 1
    return 0


def score_observation(obs: DailyObservation) -> int:
    return score_cervix_mucus_fertility(obs.mucus_observation, obs.mucus_appearance)


def find_peak_mucus_day_in_cycle(
    entries: Sequence[tuple[int, DailyObservation]],
    threshold: int = DEFAULT_PEAK_THRESHOLD,
) -> int | None:
    """Find the Billings Peak Day of one cycle.

    Days without any mucus record are skipped: an unlogged day is not an
    observed drop.  If peak-type mucus lasts until the end of the data, the
    last peak-type day seen so far is returned as the best available
    estimate.

    Args:
        entries:   (cycle_day, observation) pairs in date order.
        threshold: Minimum score that counts as peak-type mucus.

    Returns:
        Cycle day of the Peak Day, or None if no peak-type mucus was logged.
    """
    candidate: int | None = None
    for cycle_day, obs in entries:
        if not obs.has_mucus_record:
            continue
        if score_observation(obs) >= threshold:
            candidate = cycle_day
        elif candidate is not None:
            return candidate
    return candidate

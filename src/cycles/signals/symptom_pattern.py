"""Symptom pattern around the expected ovulation day.

Fatigue, bloating and non-menstrual pelvic pain tend to cluster around
ovulation for some users.  The pattern is too weak to stand alone; the
resolver only uses it to raise confidence when it agrees with another
signal.
"""

from __future__ import annotations

from typing import Sequence

from src.cycles.base import DailyObservation

DEFAULT_SYMPTOMS: tuple[str, ...] = ("fatigue", "bloating", "pelvicPainNonMenses")


def find_symptom_pattern_day(
    entries: Sequence[tuple[int, DailyObservation]],
    cycle_length: int,
    luteal_phase_guess: int = 14,
    window_radius_days: int = 5,
    min_score: float = 0.5,
    symptoms: Sequence[str] = DEFAULT_SYMPTOMS,
) -> int | None:
    """Return the cycle day with the strongest symptom cluster near ovulation.

    Only days within ``[expected - radius, expected + radius]`` are scored,
    where ``expected = cycle_length - luteal_phase_guess``.  A day's score is
    the sum of its present symptom scores divided by 10.

    Returns:
        The best-scoring day if its score exceeds ``min_score``, else None.
    """
    expected = cycle_length - luteal_phase_guess
    low, high = expected - window_radius_days, expected + window_radius_days

    best_day: int | None = None
    best_score = 0.0
    for cycle_day, obs in entries:
        if not (low <= cycle_day <= high):
            continue
        score = sum(obs.symptom_score(key) for key in symptoms)
        if score > best_score:
            best_day, best_score = cycle_day, score

    if best_day is None or best_score <= min_score:
        return None
    return best_day

"""Daily pain trend series annotated with cycle days.

Builds the data behind the 30-day pain chart: one point per calendar day
ending today, with the cycle-day label, pain, bleeding (PBAC) and average
symptom score.  Days without an entry appear with empty values so the chart
keeps a continuous axis.
"""

from __future__ import annotations

import statistics
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Mapping, Sequence

from src.cycles.base import DailyObservation

LAST_TREND_WINDOW_DAYS = 30
EMPTY_LABEL = "–"


@dataclass(frozen=True)
class PainTrendPoint:
    date: str
    cycle_day: int | None
    cycle_label: str
    weekday: str
    pain: float | None
    pbac: float | None
    symptom_average: float | None


def symptom_average(obs: DailyObservation) -> float | None:
    """Mean score of the symptoms marked present that carry a score."""
    scores = [
        reading.score
        for reading in obs.symptoms.values()
        if reading.present and reading.score is not None
    ]
    return round(statistics.mean(scores), 2) if scores else None


def build_pain_trend_series(
    observations: Sequence[DailyObservation],
    cycle_days: Mapping[str, int | None],
    today: date,
    window_days: int = LAST_TREND_WINDOW_DAYS,
) -> tuple[list[PainTrendPoint], list[PainTrendPoint]]:
    """Return (series, cycle_starts) for the trailing ``window_days`` days.

    Args:
        observations: Logged observations (any order).
        cycle_days:   Output of ``compute_cycle_days``.
        today:        Last day of the window.
        window_days:  Number of days in the window.

    Returns:
        The full series oldest first, and the points that start a cycle.
    """
    by_date = {obs.date: obs for obs in observations}

    series: list[PainTrendPoint] = []
    for offset in range(window_days - 1, -1, -1):
        current = today - timedelta(days=offset)
        iso = current.isoformat()
        obs = by_date.get(iso)
        cycle_day = cycle_days.get(iso)
        series.append(
            PainTrendPoint(
                date=iso,
                cycle_day=cycle_day,
                cycle_label=f"CD {cycle_day}" if cycle_day else EMPTY_LABEL,
                weekday=current.strftime("%a"),
                pain=obs.overall_pain_intensity if obs else None,
                pbac=obs.pbac_score if obs else None,
                symptom_average=symptom_average(obs) if obs else None,
            )
        )

    return series, [p for p in series if p.cycle_day == 1]

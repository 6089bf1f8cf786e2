"""Cycle segmentation: number every logged day relative to bleeding onset.

A new cycle starts on a bleeding day that follows a non-bleeding stretch (or
a gap in logging), provided at least ``noise_gate_days`` have passed since the
last bleeding day.  The gate keeps spotting and erratic mid-cycle bleeding
from being read as a new period.

The cycle-day counter advances by the calendar distance between entries, not
by entry count, so gaps in logging do not shift later days.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Sequence

from src.cycles.base import DailyObservation
from src.cycles.config_loader import EngineConfig, get_engine_config

logger = logging.getLogger("endotrack.cycles.segmenter")


@dataclass(frozen=True)
class CycleSegment:
    """One menstrual cycle, derived from the observation list.

    Attributes:
        start_date:   First bleeding day of the cycle.
        end_date:     Day before the next cycle started; None while ongoing.
        length:       Cycle length in days (days elapsed so far if ongoing).
        is_completed: True once the next cycle has started.
        entries:      (cycle_day, observation) pairs in date order.
    """

    start_date: date
    end_date: date | None
    length: int
    is_completed: bool
    entries: tuple[tuple[int, DailyObservation], ...] = ()

    @property
    def has_mucus_records(self) -> bool:
        return any(obs.has_mucus_record for _, obs in self.entries)

    @property
    def has_positive_hormone_test(self) -> bool:
        return any(obs.hormone_test_positive for _, obs in self.entries)


def _annotate(
    observations: Sequence[DailyObservation],
    noise_gate_days: int,
) -> list[tuple[int | None, DailyObservation]]:
    """Walk the observations once and attach a cycle day to each."""
    annotated: list[tuple[int | None, DailyObservation]] = []

    cycle_day: int | None = None
    previous_date: date | None = None
    previous_bleeding = False
    last_bleeding_date: date | None = None

    for obs in observations:
        current = obs.parsed_date
        if current is None:
            # Malformed date: keep the counter, still track the bleeding streak
            logger.debug("Unparsable date %r; keeping cycle day %s", obs.date, cycle_day)
            annotated.append((cycle_day, obs))
            previous_bleeding = obs.bleeding_active
            continue

        diff_days = (current - previous_date).days if previous_date is not None else 0
        if cycle_day is not None and diff_days > 0:
            cycle_day += diff_days

        if obs.bleeding_active:
            opens_cycle = (
                not previous_bleeding
                or diff_days > 1
                or cycle_day is None
            )
            gate_open = (
                last_bleeding_date is None
                or (current - last_bleeding_date).days >= noise_gate_days
            )
            if opens_cycle and gate_open:
                cycle_day = 1
            last_bleeding_date = current

        annotated.append((cycle_day, obs))
        previous_date = current
        previous_bleeding = obs.bleeding_active

    return annotated


def compute_cycle_days(
    observations: Sequence[DailyObservation],
    config: EngineConfig | None = None,
) -> dict[str, int | None]:
    """Return the cycle day (or None) for every logged date.

    Args:
        observations: Chronologically sorted observations.
        config:       Engine config (defaults to the global one).

    Returns:
        Mapping of ISO date string → 1-based cycle day, None before the first
        detected bleeding onset.
    """
    config = config or get_engine_config()
    annotated = _annotate(observations, config.segmentation.noise_gate_days)
    return {obs.date: day for day, obs in annotated}


def build_cycle_segments(
    observations: Sequence[DailyObservation],
    as_of_date: date | None = None,
    config: EngineConfig | None = None,
) -> list[CycleSegment]:
    """Split the observation list into cycles.

    Args:
        observations: Chronologically sorted observations.
        as_of_date:   Reference date for the ongoing cycle's elapsed length.
                      Defaults to the last parsable logged date.
        config:       Engine config (defaults to the global one).

    Returns:
        Cycles oldest first.  All but the last are completed.
    """
    config = config or get_engine_config()
    annotated = _annotate(observations, config.segmentation.noise_gate_days)

    groups: list[tuple[date, list[tuple[int, DailyObservation]]]] = []
    for day, obs in annotated:
        if day is None:
            continue
        start = obs.parsed_date
        if day == 1 and start is not None:
            groups.append((start, []))
        if groups:
            groups[-1][1].append((day, obs))

    segments: list[CycleSegment] = []
    for index, (start, entries) in enumerate(groups):
        if index + 1 < len(groups):
            next_start = groups[index + 1][0]
            segments.append(
                CycleSegment(
                    start_date=start,
                    end_date=next_start - timedelta(days=1),
                    length=(next_start - start).days,
                    is_completed=True,
                    entries=tuple(entries),
                )
            )
            continue

        reference = as_of_date
        if reference is None:
            logged = [d for d in (obs.parsed_date for _, obs in entries) if d is not None]
            reference = max(logged) if logged else start
        elapsed = (reference - start).days + 1
        last_logged_day = max(day for day, _ in entries)
        segments.append(
            CycleSegment(
                start_date=start,
                end_date=None,
                length=max(elapsed, last_logged_day),
                is_completed=False,
                entries=tuple(entries),
            )
        )

    logger.debug(
        "Segmented %d observations into %d cycles (%d completed)",
        len(observations),
        len(segments),
        sum(1 for s in segments if s.is_completed),
    )
    return segments

"""Cross-cycle ovulation prediction for the ongoing cycle.

Combines the resolved estimates of the most recent completed cycles into a
confidence-weighted average ovulation day::

    predicted = round(Σ(day · confidence) / Σ(confidence))

Strong cycles (hormone-confirmed, cross-validated mucus + pain) therefore
pull the prediction harder than textbook fallbacks.  With no completed
cycles the prediction degrades to ``default cycle length − 14``.

Predictions built from fewer than three completed cycles are flagged as
approximate and displayed with a ``~`` prefix.
"""

from __future__ import annotations

import logging
import statistics
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Sequence

from src.cycles.base import ADVANCED_METHODS, OvulationMethod
from src.cycles.config_loader import EngineConfig, get_engine_config
from src.cycles.fertile_window import FertileWindow, calculate_fertile_window, is_fertile_day
from src.cycles.resolver import OvulationEstimate, round_day
from src.cycles.segmenter import CycleSegment

logger = logging.getLogger("endotrack.cycles.predictor")

APPROXIMATE_PREFIX = "~"


@dataclass(frozen=True)
class CyclePrediction:
    """Prediction bundle for the ongoing cycle.

    Attributes:
        predicted_ovulation_day: Cycle day ovulation is expected on.
        fertile_window:          Fertile window around that day.
        current_cycle_day:       Today's cycle day (None without an open cycle).
        days_until_ovulation:    Days from today to the predicted day
                                 (negative once it has passed).
        is_fertile_today:        Whether today falls in the fertile window.
        current_phase:           'menstrual', 'follicular', 'ovulatory', 'luteal'.
        cycles_used:             Completed cycles that fed the average.
        confidence:              Mean confidence of the contributing estimates.
        uses_advanced_signals:   True if mucus, pain, hormone tests or the
                                 personal luteal phase contributed.
        is_approximate:          True with fewer than three completed cycles.
        model_used:              'cross_cycle', 'current_cycle' or 'standard'.
        avg_cycle_length:        Mean length of the cycles used.
        predicted_next_period:   Expected start of the next cycle.
    """

    predicted_ovulation_day: int
    fertile_window: FertileWindow | None = None
    current_cycle_day: int | None = None
    days_until_ovulation: int | None = None
    is_fertile_today: bool = False
    current_phase: str | None = None
    cycles_used: int = 0
    confidence: int = 0
    uses_advanced_signals: bool = False
    is_approximate: bool = True
    model_used: str = "standard"
    avg_cycle_length: float | None = None
    predicted_next_period: date | None = None


def format_estimate(value: int | None, is_approximate: bool) -> str:
    """Render a predicted number for display, prefixing rough values with '~'."""
    if value is None:
        return "–"
    return f"{APPROXIMATE_PREFIX}{value}" if is_approximate else str(value)


def weighted_ovulation_day(estimates: Sequence[OvulationEstimate]) -> int | None:
    """Confidence-weighted mean ovulation day, or None for no estimates."""
    if not estimates:
        return None
    total_confidence = sum(e.confidence for e in estimates)
    if total_confidence == 0:
        return round_day(statistics.mean(e.ovulation_day for e in estimates))
    weighted = sum(e.ovulation_day * e.confidence for e in estimates)
    return round_day(weighted / total_confidence)


class CrossCyclePredictor:
    """Predict ovulation in the ongoing cycle from recent completed cycles.

    Usage::

        predictor = CrossCyclePredictor()
        prediction = predictor.predict(estimates, segments, as_of_date=today)
        print(format_estimate(prediction.days_until_ovulation,
                              prediction.is_approximate))
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self._config = config or get_engine_config()

    def predict(
        self,
        estimates: Sequence[OvulationEstimate],
        segments: Sequence[CycleSegment],
        as_of_date: date | None = None,
    ) -> CyclePrediction:
        """Build the prediction bundle.

        Args:
            estimates:  Final (pass-2) estimates, oldest cycle first.
            segments:   The cycle segments the estimates belong to.
            as_of_date: Reference date (defaults to today).

        Returns:
            CyclePrediction.  Never raises.
        """
        cfg = self._config
        today = as_of_date or date.today()
        window = cfg.prediction.rolling_average_cycles

        completed = [e for e in estimates if e.is_completed][-window:]
        lengths = [e.cycle_length for e in completed]
        avg_length = round(statistics.mean(lengths), 1) if lengths else None

        if completed:
            predicted_day = weighted_ovulation_day(completed)
            contributing = list(completed)
            model_used = "cross_cycle"
        else:
            predicted_day = (
                cfg.segmentation.default_cycle_length - cfg.luteal_phase.default_days
            )
            contributing = []
            model_used = "standard"

        current_segment = segments[-1] if segments and not segments[-1].is_completed else None
        current_estimate = next(
            (
                e for e in estimates
                if not e.is_completed
                and current_segment is not None
                and e.cycle_start_date == current_segment.start_date
            ),
            None,
        )
        # A confirmed test in the ongoing cycle beats any cross-cycle average
        if current_estimate is not None and current_estimate.method == OvulationMethod.hormone_test:
            predicted_day = current_estimate.ovulation_day
            contributing = [current_estimate]
            model_used = "current_cycle"

        confidence = (
            round_day(statistics.mean(e.confidence for e in contributing))
            if contributing
            else cfg.confidence("standard")
        )
        uses_advanced = any(e.method in ADVANCED_METHODS for e in contributing)
        fw = cfg.fertile_window
        fertile_window = calculate_fertile_window(predicted_day, fw.days_before, fw.days_after)

        current_day: int | None = None
        days_until: int | None = None
        phase: str | None = None
        next_period: date | None = None
        if current_segment is not None:
            current_day = max(1, (today - current_segment.start_date).days + 1)
            days_until = predicted_day - current_day
            phase = self._phase(current_day, days_until)
            if avg_length is not None:
                next_period = current_segment.start_date + timedelta(days=round_day(avg_length))

        prediction = CyclePrediction(
            predicted_ovulation_day=predicted_day,
            fertile_window=fertile_window,
            current_cycle_day=current_day,
            days_until_ovulation=days_until,
            is_fertile_today=is_fertile_day(
                current_day, predicted_day, fw.days_before, fw.days_after
            ),
            current_phase=phase,
            cycles_used=len(completed),
            confidence=confidence,
            uses_advanced_signals=uses_advanced,
            is_approximate=len(completed) < cfg.prediction.approximate_below_cycles,
            model_used=model_used,
            avg_cycle_length=avg_length,
            predicted_next_period=next_period,
        )
        logger.info(
            "Predicted ovulation on cycle day %d (%s, %d cycles, confidence=%d)",
            predicted_day, model_used, len(completed), confidence,
        )
        return prediction

    def _phase(self, cycle_day: int, days_until_ovulation: int) -> str:
        if cycle_day <= self._config.prediction.menstrual_phase_days:
            return "menstrual"
        if days_until_ovulation > 1:
            return "follicular"
        if days_until_ovulation >= -1:
            return "ovulatory"
        return "luteal"

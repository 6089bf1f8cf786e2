"""Ovulation resolver: fuse per-cycle signals into one ovulation estimate.

Resolution cascade (first matching rule wins):

    0. Positive hormone (LH) test  → test day + 1, confidence 100
    1. Mucus + pain agree (±2 d)   → 95 (65 without mucus history)
    2. Mucus + pain disagree       → mucus day, 80 (55)
    3. Mucus only                  → 85 (55), +5 if symptoms agree
    4. Pain only (intensity ≥ 5)   → 70, +5 if symptoms agree
    5. Personal luteal phase known → cycle length − phase, 60
    6. Fallback                    → cycle length − 14, 50

Mucus-based claims are only reported at full confidence once enough cycles
with mucus observations exist to trust them.  Until then an agreeing
mucus + pain pair (65) can score below pain with agreeing symptoms (75):
unproven mucus charting lowers confidence in the pair it joins.

Rule 2 trusts mucus over a disagreeing pain signal; this mirrors the
established app behavior and has not been clinically validated.

All confidence values come from engine_config.yaml.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date

from src.cycles.base import OvulationMethod
from src.cycles.config_loader import EngineConfig, get_engine_config
from src.cycles.segmenter import CycleSegment
from src.cycles.signals.mucus import find_peak_mucus_day_in_cycle
from src.cycles.signals.ovulation_pain import OvulationPainSignal, find_ovulation_pain_day
from src.cycles.signals.symptom_pattern import find_symptom_pattern_day

logger = logging.getLogger("endotrack.cycles.resolver")

UNCERTAIN_BELOW = 60


def round_day(value: float) -> int:
    """Round half up to the nearest integer cycle day."""
    return math.floor(value + 0.5)


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OvulationSignals:
    """Raw per-cycle signals the estimate was built from (diagnostic only).

    Attributes:
        peak_mucus_day:           Billings Peak Day (cycle day).
        ovulation_pain_day:       Strongest qualifying ovulation-pain day.
        ovulation_pain_intensity: Intensity of that pain.
        ovulation_pain_side:      Side the user reported for that pain.
        symptom_peak_day:         Day of the strongest symptom cluster.
        hormone_test_day:         First positive hormone test day.
    """

    peak_mucus_day: int | None = None
    ovulation_pain_day: int | None = None
    ovulation_pain_intensity: float | None = None
    ovulation_pain_side: str | None = None
    symptom_peak_day: int | None = None
    hormone_test_day: int | None = None

    @property
    def pain(self) -> OvulationPainSignal | None:
        if self.ovulation_pain_day is None or self.ovulation_pain_intensity is None:
            return None
        return OvulationPainSignal(
            day=self.ovulation_pain_day,
            intensity=self.ovulation_pain_intensity,
            side=self.ovulation_pain_side,
        )


@dataclass(frozen=True)
class OvulationEstimate:
    """Best-estimate ovulation day for one cycle.

    Attributes:
        cycle_start_date: First day of the cycle.
        ovulation_day:    1-based cycle day of the estimated ovulation.
        confidence:       0–100.  100 only for a confirmed hormone test.
        method:           Cascade rule that produced the estimate.
        signals:          Raw signals (diagnostic).
        cycle_length:     Cycle length the estimate was resolved against.
        is_completed:     Whether the cycle had ended.
    """

    cycle_start_date: date
    ovulation_day: int
    confidence: int
    method: OvulationMethod
    signals: OvulationSignals = field(default_factory=OvulationSignals)
    cycle_length: int = 0
    is_completed: bool = False

    @property
    def luteal_length(self) -> int:
        return self.cycle_length - self.ovulation_day

    @property
    def is_uncertain(self) -> bool:
        """True for results the UI should mark as a rough estimate."""
        return self.method == OvulationMethod.standard or self.confidence < UNCERTAIN_BELOW


# ---------------------------------------------------------------------------
# Cascade
# ---------------------------------------------------------------------------


def _agrees(a: int | None, b: int | None, tolerance: int) -> bool:
    return a is not None and b is not None and abs(a - b) <= tolerance


def resolve_ovulation(
    cycle_start_date: date,
    signals: OvulationSignals,
    cycle_length: int,
    is_completed: bool,
    personal_luteal_phase: int | None,
    has_sufficient_mucus_history: bool,
    config: EngineConfig | None = None,
) -> OvulationEstimate:
    """Run the resolution cascade for one cycle.

    Args:
        cycle_start_date:             First day of the cycle.
        signals:                      Extracted per-cycle signals.
        cycle_length:                 Length (or elapsed days) of the cycle.
        is_completed:                 Whether the next cycle has started.
        personal_luteal_phase:        Learned luteal length, or None.
        has_sufficient_mucus_history: Enough past mucus data to trust it fully.
        config:                       Engine config (defaults to global).

    Returns:
        OvulationEstimate.  Never raises; falls back to the standard estimate.
    """
    config = config or get_engine_config()
    tolerance = config.resolver.agreement_tolerance_days
    bonus = config.confidence("symptom_bonus")
    full = has_sufficient_mucus_history

    def build(day: float, confidence: int, method: OvulationMethod) -> OvulationEstimate:
        return OvulationEstimate(
            cycle_start_date=cycle_start_date,
            ovulation_day=max(1, round_day(day)),
            confidence=confidence,
            method=method,
            signals=signals,
            cycle_length=cycle_length,
            is_completed=is_completed,
        )

    # 0. Ground truth
    if signals.hormone_test_day is not None:
        return build(
            signals.hormone_test_day + 1,
            config.confidence("hormone_test"),
            OvulationMethod.hormone_test,
        )

    mucus_day = signals.peak_mucus_day + 1 if signals.peak_mucus_day is not None else None
    pain = signals.pain
    pain_day = pain.day if pain is not None else None
    symptom_day = signals.symptom_peak_day

    if mucus_day is not None and pain_day is not None:
        # 1. Cross-validated
        if _agrees(mucus_day, pain_day, tolerance):
            if full:
                return build(
                    (mucus_day + pain_day) / 2,
                    config.confidence("mucus_pain"),
                    OvulationMethod.mucus_pain,
                )
            return build(
                (mucus_day + pain_day) / 2,
                config.confidence("mucus_pain_limited"),
                OvulationMethod.mucus,
            )
        # 2. Conflict: mucus wins
        key = "mucus_conflict" if full else "mucus_conflict_limited"
        return build(mucus_day, config.confidence(key), OvulationMethod.mucus)

    # 3. Mucus only
    if mucus_day is not None:
        confidence = config.confidence("mucus_only" if full else "mucus_only_limited")
        if _agrees(mucus_day, symptom_day, tolerance):
            confidence += bonus
        return build(mucus_day, confidence, OvulationMethod.mucus)

    # 4. Pain only, strong enough to stand alone
    if pain is not None and pain.intensity >= config.ovulation_pain.standalone_min_intensity:
        confidence = config.confidence("pain_only")
        if _agrees(pain.day, symptom_day, tolerance):
            confidence += bonus
        return build(pain.day, confidence, OvulationMethod.pain)

    # 5. Learned luteal phase
    if personal_luteal_phase is not None:
        return build(
            cycle_length - personal_luteal_phase,
            config.confidence("personal_luteal"),
            OvulationMethod.personal_luteal,
        )

    # 6. Textbook fallback
    return build(
        cycle_length - config.luteal_phase.default_days,
        config.confidence("standard"),
        OvulationMethod.standard,
    )


class OvulationResolver:
    """Extract signals from a cycle segment and resolve its ovulation day.

    Usage::

        resolver = OvulationResolver()
        estimate = resolver.resolve(segment, personal_luteal_phase=13,
                                    has_sufficient_mucus_history=True)
        print(estimate.ovulation_day, estimate.confidence, estimate.method)
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self._config = config or get_engine_config()

    def extract_signals(
        self,
        segment: CycleSegment,
        personal_luteal_phase: int | None = None,
        use_mucus_inference: bool = True,
    ) -> OvulationSignals:
        """Run all signal extractors over one cycle."""
        cfg = self._config
        entries = segment.entries

        peak_mucus_day = (
            find_peak_mucus_day_in_cycle(entries, cfg.mucus.peak_score_threshold)
            if use_mucus_inference
            else None
        )
        pain = find_ovulation_pain_day(
            entries,
            min_intensity=cfg.ovulation_pain.min_intensity,
            min_visible_pain=cfg.ovulation_pain.min_visible_pain,
        )
        luteal_guess = (
            personal_luteal_phase
            if personal_luteal_phase is not None
            else cfg.luteal_phase.default_days
        )
        symptom_day = find_symptom_pattern_day(
            entries,
            cycle_length=segment.length,
            luteal_phase_guess=luteal_guess,
            window_radius_days=cfg.symptom_pattern.window_radius_days,
            min_score=cfg.symptom_pattern.min_score,
            symptoms=cfg.symptom_pattern.symptoms,
        )
        hormone_day = next(
            (day for day, obs in entries if obs.hormone_test_positive),
            None,
        )

        return OvulationSignals(
            peak_mucus_day=peak_mucus_day,
            ovulation_pain_day=pain.day if pain else None,
            ovulation_pain_intensity=pain.intensity if pain else None,
            ovulation_pain_side=pain.side if pain else None,
            symptom_peak_day=symptom_day,
            hormone_test_day=hormone_day,
        )

    def resolve(
        self,
        segment: CycleSegment,
        personal_luteal_phase: int | None = None,
        has_sufficient_mucus_history: bool = False,
        use_mucus_inference: bool = True,
    ) -> OvulationEstimate:
        """Extract signals for ``segment`` and run the cascade."""
        signals = self.extract_signals(segment, personal_luteal_phase, use_mucus_inference)
        estimate = resolve_ovulation(
            cycle_start_date=segment.start_date,
            signals=signals,
            cycle_length=segment.length,
            is_completed=segment.is_completed,
            personal_luteal_phase=personal_luteal_phase,
            has_sufficient_mucus_history=has_sufficient_mucus_history and use_mucus_inference,
            config=self._config,
        )
        logger.debug(
            "Cycle %s (len=%d): ovulation day %d via %s (confidence=%d)",
            segment.start_date,
            segment.length,
            estimate.ovulation_day,
            estimate.method.value,
            estimate.confidence,
        )
        return estimate

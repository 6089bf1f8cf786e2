"""Cycle engine: the single entry point from observations to predictions.

Pipeline::

    observations
        → segmenter             cycle days + cycle segments
        → resolver (pass 1)     completed cycles, no personal luteal phase
        → luteal_phase          learn phase from confident pass-1 results
        → resolver (pass 2)     all cycles, with the learned phase
        → predictor             ongoing-cycle prediction
        → trend                 30-day pain series with cycle-day labels

The two resolver passes are required: the personal-luteal rule depends on a
value that only the other rules' output can produce.  They must run in order.

The mucus feature flag is a parameter of every call, never ambient state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Mapping, Sequence

from src.cycles.base import DailyObservation
from src.cycles.cache import AnalysisCache, observations_fingerprint
from src.cycles.config_loader import EngineConfig, get_engine_config
from src.cycles.luteal_phase import calculate_personal_luteal_phase
from src.cycles.predictor import CrossCyclePredictor, CyclePrediction
from src.cycles.resolver import OvulationEstimate, OvulationResolver
from src.cycles.segmenter import CycleSegment, build_cycle_segments, compute_cycle_days
from src.cycles.trend import PainTrendPoint, build_pain_trend_series

logger = logging.getLogger("endotrack.cycles.engine")


@dataclass(frozen=True)
class CycleAnalysis:
    """Everything the engine derives from one observation snapshot.

    Attributes:
        cycle_days:            Read-only ISO date → cycle day (None before first onset).
        segments:              Cycles, oldest first.
        estimates:             Final ovulation estimate per segment.
        personal_luteal_phase: Learned luteal length, or None.
        prediction:            Ongoing-cycle prediction.
        has_mucus_history:     Whether mucus claims were trusted at full confidence.
        pain_trend:            Daily pain series for the 30 days ending on the as-of date.
    """

    cycle_days: Mapping[str, int | None] = field(
        default_factory=lambda: MappingProxyType({})
    )
    segments: tuple[CycleSegment, ...] = ()
    estimates: tuple[OvulationEstimate, ...] = ()
    personal_luteal_phase: int | None = None
    prediction: CyclePrediction | None = None
    has_mucus_history: bool = False
    pain_trend: tuple[PainTrendPoint, ...] = ()

    @property
    def current_estimate(self) -> OvulationEstimate | None:
        if self.estimates and not self.estimates[-1].is_completed:
            return self.estimates[-1]
        return None


class CycleEngine:
    """Run the full segmentation → inference → prediction pipeline.

    Usage::

        engine = CycleEngine()
        analysis = engine.analyze(observations, use_mucus_inference=True,
                                  as_of_date=date(2026, 3, 1))
        print(analysis.personal_luteal_phase)
        print(analysis.prediction.days_until_ovulation)
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        cache: AnalysisCache | None = None,
    ) -> None:
        self._config = config or get_engine_config()
        self._resolver = OvulationResolver(self._config)
        self._predictor = CrossCyclePredictor(self._config)
        self._cache = cache

    @classmethod
    def with_cache(cls, config: EngineConfig | None = None) -> CycleEngine:
        """Build an engine with an analysis cache sized from application settings."""
        from src.config import get_settings

        return cls(config, AnalysisCache(get_settings().analysis_cache_size))

    def analyze(
        self,
        observations: Sequence[DailyObservation],
        use_mucus_inference: bool,
        as_of_date: date | None = None,
    ) -> CycleAnalysis:
        """Analyze an observation snapshot.

        Args:
            observations:        Date-ordered observations.
            use_mucus_inference: Whether mucus observations may drive estimates.
            as_of_date:          Reference date (defaults to today).

        Returns:
            CycleAnalysis.  Never raises on sparse or noisy data.
        """
        today = as_of_date or date.today()
        if self._cache is None:
            return self._run(observations, use_mucus_inference, today)

        key = observations_fingerprint(
            observations, use_mucus_inference, today, self._config.version
        )
        return self._cache.get_or_compute(
            key, lambda: self._run(observations, use_mucus_inference, today)
        )

    def has_sufficient_mucus_history(
        self,
        segments: Sequence[CycleSegment],
        use_mucus_inference: bool,
    ) -> bool:
        """True once enough completed cycles carry mucus observations."""
        if not use_mucus_inference:
            return False
        with_mucus = sum(1 for s in segments if s.is_completed and s.has_mucus_records)
        return with_mucus >= self._config.mucus.min_history_cycles

    def _run(
        self,
        observations: Sequence[DailyObservation],
        use_mucus_inference: bool,
        today: date,
    ) -> CycleAnalysis:
        cfg = self._config
        cycle_days = compute_cycle_days(observations, cfg)
        segments = build_cycle_segments(observations, today, cfg)
        mucus_history = self.has_sufficient_mucus_history(segments, use_mucus_inference)

        # Pass 1: completed cycles, no learned phase
        first_pass = [
            self._resolver.resolve(
                segment,
                personal_luteal_phase=None,
                has_sufficient_mucus_history=mucus_history,
                use_mucus_inference=use_mucus_inference,
            )
            for segment in segments
            if segment.is_completed
        ]
        luteal_phase = calculate_personal_luteal_phase(first_pass, cfg)

        # Pass 2: every cycle, with the learned phase
        estimates = tuple(
            self._resolver.resolve(
                segment,
                personal_luteal_phase=luteal_phase,
                has_sufficient_mucus_history=mucus_history,
                use_mucus_inference=use_mucus_inference,
            )
            for segment in segments
        )
        prediction = self._predictor.predict(estimates, segments, today)
        pain_trend, _ = build_pain_trend_series(observations, cycle_days, today)

        logger.info(
            "Analyzed %d observations: %d cycles, luteal phase %s, mucus history %s",
            len(observations),
            len(segments),
            luteal_phase,
            mucus_history,
        )
        return CycleAnalysis(
            cycle_days=MappingProxyType(cycle_days),
            segments=tuple(segments),
            estimates=estimates,
            personal_luteal_phase=luteal_phase,
            prediction=prediction,
            has_mucus_history=mucus_history,
            pain_trend=tuple(pain_trend),
        )


def analyze_cycles(
    observations: Sequence[DailyObservation],
    use_mucus_inference: bool,
    as_of_date: date | None = None,
    config: EngineConfig | None = None,
) -> CycleAnalysis:
    """Convenience wrapper: run one uncached analysis."""
    return CycleEngine(config).analyze(observations, use_mucus_inference, as_of_date)

"""EndoTrack cycle engine.

Turns the daily diary (bleeding, cervical mucus, pain, symptoms, hormone
tests) into cycle days, per-cycle ovulation estimates with confidence, a
personal luteal phase and a prediction for the ongoing cycle.  Everything
here is a pure computation over an immutable observation snapshot.

Subpackages:
    signals/ — Mucus, ovulation-pain and symptom-pattern extractors

Core modules:
    base           — DailyObservation input model and raw-entry normalization
    segmenter      — Cycle-day numbering and cycle segments
    resolver       — Ovulation resolution cascade
    luteal_phase   — Personal luteal phase learning
    fertile_window — Fertile window calculator
    predictor      — Cross-cycle prediction for the ongoing cycle
    engine         — Two-pass pipeline entry point
    cache          — Fingerprint-keyed analysis cache
    trend          — Pain trend series for charts
    config_loader  — Load/validate engine_config.yaml

Embedding applications call ``configure_logging()`` once at startup.
"""

from src.cycles.base import DailyObservation, OvulationMethod, parse_observations
from src.cycles.config_loader import EngineConfig, get_engine_config
from src.cycles.engine import CycleAnalysis, CycleEngine, analyze_cycles
from src.cycles.fertile_window import FertileWindow, calculate_fertile_window, is_fertile_day
from src.cycles.predictor import CyclePrediction, format_estimate
from src.cycles.resolver import OvulationEstimate
from src.cycles.trend import PainTrendPoint, build_pain_trend_series
from src.logging_config import configure_logging

__all__ = [
    "DailyObservation",
    "OvulationMethod",
    "parse_observations",
    "EngineConfig",
    "get_engine_config",
    "CycleAnalysis",
    "CycleEngine",
    "analyze_cycles",
    "FertileWindow",
    "calculate_fertile_window",
    "is_fertile_day",
    "CyclePrediction",
    "format_estimate",
    "OvulationEstimate",
    "PainTrendPoint",
    "build_pain_trend_series",
    "configure_logging",
]

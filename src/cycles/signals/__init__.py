"""Per-cycle physiological signal extractors.

Modules:
    mucus            — Cervical mucus scoring and Billings Peak Day
    ovulation_pain   — Mittelschmerz detection gated by visible pain
    symptom_pattern  — Symptom cluster near the expected ovulation day
"""

from src.cycles.signals.mucus import find_peak_mucus_day_in_cycle, score_cervix_mucus_fertility
from src.cycles.signals.ovulation_pain import OvulationPainSignal, find_ovulation_pain_day
from src.cycles.signals.symptom_pattern import find_symptom_pattern_day

__all__ = [
    "score_cervix_mucus_fertility",
    "find_peak_mucus_day_in_cycle",
    "OvulationPainSignal",
    "find_ovulation_pain_day",
    "find_symptom_pattern_day",
]

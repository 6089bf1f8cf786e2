"""Personal luteal-phase length learned from the user's own cycles.

The luteal phase (ovulation → next period) is physiologically stable per
person even when the pre-ovulatory phase varies.  Once at least two completed
cycles have a confident ovulation estimate, their average luteal length
replaces the textbook 14 days in the resolver's fallback path.
"""

from __future__ import annotations

import logging
from typing import Sequence

from src.cycles.config_loader import EngineConfig, get_engine_config
from src.cycles.resolver import OvulationEstimate, round_day

logger = logging.getLogger("endotrack.cycles.luteal_phase")


def calculate_personal_luteal_phase(
    estimates: Sequence[OvulationEstimate],
    config: EngineConfig | None = None,
) -> int | None:
    """Learn the user's luteal phase length from confident completed cycles.

    Args:
        estimates: Ovulation estimates (only completed cycles are used).
        config:    Engine config (defaults to global).

    Returns:
        Average luteal length rounded and clamped to the configured range
        (10–16 days), or None with fewer than two qualifying cycles.
    """
    lp = (config or get_engine_config()).luteal_phase
    qualifying = [
        e for e in estimates
        if e.is_completed and e.confidence >= lp.min_confidence
    ]
    if len(qualifying) < lp.min_qualifying_cycles:
        logger.debug(
            "Personal luteal phase unavailable: %d qualifying cycles (need %d)",
            len(qualifying), lp.min_qualifying_cycles,
        )
        return None

    average = sum(e.luteal_length for e in qualifying) / len(qualifying)
    phase = min(lp.max_days, max(lp.min_days, round_day(average)))
    logger.info(
        "Personal luteal phase: %d days (raw avg %.1f over %d cycles)",
        phase, average, len(qualifying),
    )
    return phase

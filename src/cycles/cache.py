"""Memoization of full cycle analyses.

An analysis is a pure function of the observation list, the mucus-inference
flag, the reference date and the engine config.  The cache key is a SHA-256
fingerprint over all four, so any edit to the diary produces a new key and
nothing is ever partially invalidated.
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from collections import OrderedDict
from datetime import date
from typing import TYPE_CHECKING, Callable, Sequence

from src.cycles.base import DailyObservation

if TYPE_CHECKING:
    from src.cycles.engine import CycleAnalysis

logger = logging.getLogger("endotrack.cycles.cache")


def _json_default(value: object) -> object:
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    return str(value)


def observations_fingerprint(
    observations: Sequence[DailyObservation],
    use_mucus_inference: bool,
    as_of_date: date | None,
    config_version: str,
) -> str:
    """Compute a deterministic SHA-256 key for one analysis input.

    Args:
        observations:        The observation snapshot.
        use_mucus_inference: Mucus feature flag.
        as_of_date:          Reference date (None = "today", resolved by caller).
        config_version:      Engine config version string.

    Returns:
        Hex digest.
    """
    payload = {
        "observations": [obs.model_dump(mode="python") for obs in observations],
        "use_mucus_inference": use_mucus_inference,
        "as_of_date": as_of_date.isoformat() if as_of_date else None,
        "config_version": config_version,
    }
    # Sort keys for deterministic serialization
    canonical = json.dumps(payload, sort_keys=True, default=_json_default)
    return hashlib.sha256(canonical.encode()).hexdigest()


class AnalysisCache:
    """Bounded, thread-safe LRU cache of ``CycleAnalysis`` results."""

    def __init__(self, max_size: int = 32) -> None:
        self._max_size = max(1, max_size)
        self._entries: OrderedDict[str, CycleAnalysis] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get_or_compute(self, key: str, compute: Callable[[], CycleAnalysis]) -> CycleAnalysis:
        """Return the cached analysis for ``key``, computing it on a miss."""
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                self._entries.move_to_end(key)
                self.hits += 1
                return cached

        # Compute outside the lock; analyses are pure so a duplicate is harmless
        result = compute()
        with self._lock:
            self.misses += 1
            self._entries[key] = result
            self._entries.move_to_end(key)
            while len(self._entries) > self._max_size:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted analysis %s…", evicted[:12])
        return result

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

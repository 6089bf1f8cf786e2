"""Load, validate, and hot-reload the EndoTrack cycle engine configuration.

The config lives in ``engine_config.yaml`` alongside this module.  It is
loaded once and cached.  Call ``reload_engine_config()`` to re-read it from
disk after an update.

Usage::

    from src.cycles.config_loader import get_engine_config

    config = get_engine_config()
    config.segmentation.noise_gate_days        # 7
    config.resolver.confidence["mucus_pain"]   # 95
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger("endotrack.cycles.config")

# Path to the YAML file sitting next to this module
_CONFIG_PATH = Path(__file__).parent / "engine_config.yaml"

# Confidence keys every resolver config must define
CONFIDENCE_KEYS: tuple[str, ...] = (
    "hormone_test",
    "mucus_pain",
    "mucus_pain_limited",
    "mucus_conflict",
    "mucus_conflict_limited",
    "mucus_only",
    "mucus_only_limited",
    "pain_only",
    "symptom_bonus",
    "personal_luteal",
    "standard",
)


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SegmentationConfig:
    """Cycle segmentation settings."""

    noise_gate_days: int = 7
    default_cycle_length: int = 28


@dataclass(frozen=True)
class MucusConfig:
    """Cervical mucus signal settings."""

    peak_score_threshold: int = 3
    min_history_cycles: int = 2


@dataclass(frozen=True)
class OvulationPainConfig:
    """Ovulation pain (mittelschmerz) signal settings."""

    min_intensity: float = 3
    min_visible_pain: float = 3
    standalone_min_intensity: float = 5


@dataclass(frozen=True)
class SymptomPatternConfig:
    """Symptom pattern window and the symptoms that contribute to it."""

    window_radius_days: int = 5
    min_score: float = 0.5
    symptoms: tuple[str, ...] = ("fatigue", "bloating", "pelvicPainNonMenses")


@dataclass(frozen=True)
class ResolverConfig:
    """Ovulation resolver cascade settings.

    Attributes:
        agreement_tolerance_days: Max distance (days) for two signals to agree.
        confidence:               Confidence value per cascade outcome.
    """

    agreement_tolerance_days: int
    confidence: dict[str, int]


@dataclass(frozen=True)
class LutealPhaseConfig:
    """Personal luteal phase learning settings."""

    default_days: int = 14
    min_days: int = 10
    max_days: int = 16
    min_confidence: int = 70
    min_qualifying_cycles: int = 2


@dataclass(frozen=True)
class FertileWindowConfig:
    """Fertile window offsets around the ovulation day."""

    days_before: int = 5
    days_after: int = 1


@dataclass(frozen=True)
class PredictionConfig:
    """Cross-cycle prediction settings."""

    rolling_average_cycles: int = 6
    approximate_below_cycles: int = 3
    menstrual_phase_days: int = 5


@dataclass(frozen=True)
class EngineConfig:
    """Complete, validated cycle engine configuration.

    This is the single in-memory representation of engine_config.yaml.
    Every engine component reads its thresholds from this object.
    """

    version: str
    segmentation: SegmentationConfig
    mucus: MucusConfig
    ovulation_pain: OvulationPainConfig
    symptom_pattern: SymptomPatternConfig
    resolver: ResolverConfig
    luteal_phase: LutealPhaseConfig
    fertile_window: FertileWindowConfig
    prediction: PredictionConfig
    _raw: dict = field(default_factory=dict, repr=False, compare=False, hash=False)

    def confidence(self, key: str) -> int:
        """Return the configured confidence for a resolver outcome.

        Args:
            key: Confidence key (e.g. 'mucus_pain', 'standard').

        Returns:
            Confidence between 0 and 100.  Unknown keys return 0.
        """
        return self.resolver.confidence.get(key, 0)


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when engine_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    import yaml  # pyyaml

    if not path.exists():
        raise FileNotFoundError(f"Engine config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            return yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc


def _validate_and_build(raw: dict) -> EngineConfig:
    """Validate the raw YAML dict and construct an EngineConfig.

    Optional sections fall back to their dataclass defaults.  The resolver
    confidence table is required.

    Args:
        raw: Parsed YAML dict.

    Returns:
        Validated EngineConfig instance.

    Raises:
        ConfigValidationError: If required fields are missing or invalid.
    """
    errors: list[str] = []

    def _int(section: dict, key: str, default: int, path: str) -> int:
        value = section.get(key, default)
        try:
            number = int(value)
        except (TypeError, ValueError):
            errors.append(f"{path}.{key} must be an integer, got {value!r}")
            return default
        if number < 0:
            errors.append(f"{path}.{key} = {number} must not be negative")
        return number

    def _float(section: dict, key: str, default: float, path: str) -> float:
        value = section.get(key, default)
        try:
            return float(value)
        except (TypeError, ValueError):
            errors.append(f"{path}.{key} must be a number, got {value!r}")
            return default

    version = str(raw.get("version", "1.0"))

    # ── Segmentation ──
    seg_raw = raw.get("segmentation") or {}
    segmentation = SegmentationConfig(
        noise_gate_days=_int(seg_raw, "noise_gate_days", 7, "segmentation"),
        default_cycle_length=_int(seg_raw, "default_cycle_length", 28, "segmentation"),
    )

    # ── Mucus ──
    mucus_raw = raw.get("mucus") or {}
    mucus = MucusConfig(
        peak_score_threshold=_int(mucus_raw, "peak_score_threshold", 3, "mucus"),
        min_history_cycles=_int(mucus_raw, "min_history_cycles", 2, "mucus"),
    )
    if not (0 <= mucus.peak_score_threshold <= 4):
        errors.append(
            f"mucus.peak_score_threshold = {mucus.peak_score_threshold} "
            "is out of range [0, 4]"
        )

    # ── Ovulation pain ──
    pain_raw = raw.get("ovulation_pain") or {}
    ovulation_pain = OvulationPainConfig(
        min_intensity=_float(pain_raw, "min_intensity", 3, "ovulation_pain"),
        min_visible_pain=_float(pain_raw, "min_visible_pain", 3, "ovulation_pain"),
        standalone_min_intensity=_float(
            pain_raw, "standalone_min_intensity", 5, "ovulation_pain"
        ),
    )

    # ── Symptom pattern ──
    sp_raw = raw.get("symptom_pattern") or {}
    symptoms_raw = sp_raw.get("symptoms", ["fatigue", "bloating", "pelvicPainNonMenses"])
    if not isinstance(symptoms_raw, list) or not symptoms_raw:
        errors.append("symptom_pattern.symptoms must be a non-empty list")
        symptoms_raw = []
    symptom_pattern = SymptomPatternConfig(
        window_radius_days=_int(sp_raw, "window_radius_days", 5, "symptom_pattern"),
        min_score=_float(sp_raw, "min_score", 0.5, "symptom_pattern"),
        symptoms=tuple(str(s) for s in symptoms_raw),
    )

    # ── Resolver ──
    res_raw = raw.get("resolver") or {}
    conf_raw = res_raw.get("confidence") or {}
    if not conf_raw:
        errors.append("'resolver.confidence' section is missing or empty")
    confidence: dict[str, int] = {}
    for key in CONFIDENCE_KEYS:
        if conf_raw and key not in conf_raw:
            errors.append(f"Missing required key '{key}' in section 'resolver.confidence'")
            continue
        if key not in conf_raw:
            continue
        value = conf_raw[key]
        try:
            c = int(value)
        except (TypeError, ValueError):
            errors.append(f"resolver.confidence.{key} must be an integer, got {value!r}")
            continue
        if not (0 <= c <= 100):
            errors.append(f"resolver.confidence.{key} = {c} is out of range [0, 100]")
        confidence[key] = c
    # Only a confirmed hormone test may reach full certainty
    for key, c in confidence.items():
        if key != "hormone_test" and c >= 100:
            errors.append(f"resolver.confidence.{key} = {c} must stay below 100")
    resolver = ResolverConfig(
        agreement_tolerance_days=_int(res_raw, "agreement_tolerance_days", 2, "resolver"),
        confidence=confidence,
    )

    # ── Luteal phase ──
    lp_raw = raw.get("luteal_phase") or {}
    luteal_phase = LutealPhaseConfig(
        default_days=_int(lp_raw, "default_days", 14, "luteal_phase"),
        min_days=_int(lp_raw, "min_days", 10, "luteal_phase"),
        max_days=_int(lp_raw, "max_days", 16, "luteal_phase"),
        min_confidence=_int(lp_raw, "min_confidence", 70, "luteal_phase"),
        min_qualifying_cycles=_int(lp_raw, "min_qualifying_cycles", 2, "luteal_phase"),
    )
    if luteal_phase.min_days > luteal_phase.max_days:
        errors.append(
            f"luteal_phase.min_days ({luteal_phase.min_days}) exceeds "
            f"max_days ({luteal_phase.max_days})"
        )

    # ── Fertile window ──
    fw_raw = raw.get("fertile_window") or {}
    fertile_window = FertileWindowConfig(
        days_before=_int(fw_raw, "days_before", 5, "fertile_window"),
        days_after=_int(fw_raw, "days_after", 1, "fertile_window"),
    )

    # ── Prediction ──
    pr_raw = raw.get("prediction") or {}
    prediction = PredictionConfig(
        rolling_average_cycles=_int(pr_raw, "rolling_average_cycles", 6, "prediction"),
        approximate_below_cycles=_int(pr_raw, "approximate_below_cycles", 3, "prediction"),
        menstrual_phase_days=_int(pr_raw, "menstrual_phase_days", 5, "prediction"),
    )
    if prediction.rolling_average_cycles < 1:
        errors.append("prediction.rolling_average_cycles must be at least 1")

    if errors:
        raise ConfigValidationError(
            f"engine_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return EngineConfig(
        version=version,
        segmentation=segmentation,
        mucus=mucus,
        ovulation_pain=ovulation_pain,
        symptom_pattern=symptom_pattern,
        resolver=resolver,
        luteal_phase=luteal_phase,
        fertile_window=fertile_window,
        prediction=prediction,
        _raw=raw,
    )


def load_engine_config(path: Path | None = None) -> EngineConfig:
    """Load and validate the engine config from disk.

    Args:
        path: Override path to YAML. Uses the bundled engine_config.yaml by default.

    Returns:
        Validated EngineConfig instance.
    """
    target = path or _CONFIG_PATH
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded engine config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Global singleton with hot-reload support
# ---------------------------------------------------------------------------

_config: EngineConfig | None = None
_config_lock = threading.Lock()


def _configured_path() -> Path | None:
    from src.config import get_settings

    override = get_settings().engine_config_path
    return Path(override) if override else None


def get_engine_config() -> EngineConfig:
    """Return the global EngineConfig singleton, loading it on first call.

    Honors ``Settings.engine_config_path`` when set.  Thread-safe.
    """
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:  # double-checked locking
                _config = load_engine_config(_configured_path())
    return _config


def reload_engine_config(path: Path | None = None) -> EngineConfig:
    """Reload the engine config from disk and replace the global singleton.

    If validation fails, the old config is retained and the error is re-raised.

    Raises:
        ConfigValidationError: If the new config is invalid.
        FileNotFoundError:     If the config file is missing.
    """
    global _config
    new_config = load_engine_config(path)  # validate before acquiring lock
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info("Reloaded engine config: %s → %s", old_version, new_config.version)
    return new_config


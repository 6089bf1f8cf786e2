"""Canonical input model for the EndoTrack cycle engine.

``DailyObservation`` is the single per-date record the UI layer hands to the
engine.  It is immutable: the engine reads it and never writes back.  Raw
records coming from storage or older app versions are normalized and
validated here, at the boundary, so that every engine function downstream
can assume well-formed values.
"""

from __future__ import annotations

import logging
from datetime import date
from enum import Enum
from typing import Any, Iterable

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger("endotrack.cycles.base")


# ---------- Enums ----------

class MucusObservation(str, Enum):
    """What the user feels at the vulva (sensation)."""

    dry = "dry"
    moist = "moist"
    wet = "wet"
    slippery = "slippery"


class MucusAppearance(str, Enum):
    """What the user sees (consistency)."""

    none = "none"
    sticky = "sticky"
    creamy = "creamy"
    egg_white = "eggWhite"


class OvulationMethod(str, Enum):
    """How an ovulation day was determined, strongest evidence first."""

    hormone_test = "hormone_test"
    mucus_pain = "mucus_pain"
    mucus = "mucus"
    pain = "pain"
    personal_luteal = "personal_luteal"
    standard = "standard"


# Methods backed by something the user actually observed or learned from history
ADVANCED_METHODS: frozenset[OvulationMethod] = frozenset(
    {
        OvulationMethod.hormone_test,
        OvulationMethod.mucus_pain,
        OvulationMethod.mucus,
        OvulationMethod.pain,
        OvulationMethod.personal_luteal,
    }
)


# ---------- Models ----------

class CycleBase(BaseModel):
    """Base model with shared config for all engine input schemas."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        str_strip_whitespace=True,
    )


class PainRegion(CycleBase):
    region_id: str
    intensity: float = Field(ge=0, le=10)
    qualities: frozenset[str] = frozenset()


class AcutePainEvent(CycleBase):
    intensity: float = Field(ge=0, le=10)
    time: str | None = None


class SymptomReading(CycleBase):
    present: bool = False
    score: float | None = Field(default=None, ge=0, le=10)


class DailyObservation(CycleBase):
    """Everything the user logged for one calendar day.

    ``date`` stays an ISO string, zero-padded on validation when it parses
    (``2026-1-5`` becomes ``2026-01-05``).  A malformed value must still
    reach the segmenter, which folds the entry into bleeding state without
    using it for date arithmetic.
    """

    date: str
    bleeding_active: bool = False
    pbac_score: float | None = Field(default=None, ge=0)
    pain_regions: tuple[PainRegion, ...] = ()
    overall_pain_intensity: float | None = Field(default=None, ge=0, le=10)
    impact_intensity: float | None = Field(default=None, ge=0, le=10)
    acute_pain_events: tuple[AcutePainEvent, ...] = ()
    mucus_observation: MucusObservation | None = None
    mucus_appearance: MucusAppearance | None = None
    ovulation_pain_intensity: float | None = Field(default=None, ge=0, le=10)
    ovulation_pain_side: str | None = None
    hormone_test_positive: bool | None = None
    symptoms: dict[str, SymptomReading] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _normalize_legacy_shape(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return normalize_daily_entry(data)
        return data

    @field_validator("date")
    @classmethod
    def _canonical_date(cls, value: str) -> str:
        parsed = parse_iso_date(value)
        return parsed.isoformat() if parsed is not None else value

    @property
    def parsed_date(self) -> date | None:
        return parse_iso_date(self.date)

    @property
    def has_mucus_record(self) -> bool:
        return self.mucus_observation is not None or self.mucus_appearance is not None

    @property
    def visible_pain_intensity(self) -> float | None:
        """Highest pain value that shows up on the pain chart for this day.

        Max over the general pain score, every body-region score and every
        acute pain event.  None when nothing was logged.
        """
        values: list[float] = [r.intensity for r in self.pain_regions]
        values.extend(e.intensity for e in self.acute_pain_events)
        if self.overall_pain_intensity is not None:
            values.append(self.overall_pain_intensity)
        return max(values) if values else None

    def symptom_score(self, key: str) -> float:
        """Return the 0–1 normalized score of a present symptom, else 0."""
        reading = self.symptoms.get(key)
        if reading is None or not reading.present or reading.score is None:
            return 0.0
        return reading.score / 10.0


# ---------- Normalization ----------

def parse_iso_date(value: str | None) -> date | None:
    """Parse ``YYYY-MM-DD``; return None for anything unparsable."""
    if not value:
        return None
    parts = value.split("-")
    if len(parts) != 3:
        return None
    try:
        year, month, day = (int(p) for p in parts)
        return date(year, month, day)
    except ValueError:
        return None


def normalize_daily_entry(raw: dict) -> dict:
    """Bring a stored diary entry into the current ``DailyObservation`` shape.

    Older app versions stored bleeding as a bare boolean or as a nested
    ``{"isBleeding": ..., "pbacScore": ...}`` object, kept ovulation pain and
    LH test results in nested objects, and sometimes omitted list fields.
    Already-normalized input passes through unchanged.
    """
    data = dict(raw)

    bleeding = data.pop("bleeding", None)
    if isinstance(bleeding, bool):
        data.setdefault("bleedingActive", bleeding)
    elif isinstance(bleeding, dict):
        data.setdefault("bleedingActive", bool(bleeding.get("isBleeding")))
        pbac = bleeding.get("pbacScore")
        if isinstance(pbac, (int, float)) and not isinstance(pbac, bool):
            data.setdefault("pbacScore", pbac)

    if "painNRS" in data:
        data.setdefault("overallPainIntensity", data.pop("painNRS"))

    ovulation_pain = data.pop("ovulationPain", None)
    if isinstance(ovulation_pain, dict):
        if ovulation_pain.get("intensity") is not None:
            data.setdefault("ovulationPainIntensity", ovulation_pain["intensity"])
        if ovulation_pain.get("side"):
            data.setdefault("ovulationPainSide", ovulation_pain["side"])

    ovulation = data.pop("ovulation", None)
    if isinstance(ovulation, dict) and ovulation.get("lhTestDone", True):
        if ovulation.get("lhPositive") is not None:
            data.setdefault("hormoneTestPositive", bool(ovulation["lhPositive"]))

    for key in ("painRegions", "pain_regions", "acutePainEvents", "acute_pain_events"):
        if key in data and data[key] is None:
            data[key] = []
    if data.get("symptoms", {}) is None:
        data["symptoms"] = {}

    return data


def parse_observations(records: Iterable[DailyObservation | dict]) -> list[DailyObservation]:
    """Validate raw diary records into a date-ordered observation list.

    Invalid records are logged and dropped so the rest of the diary can still
    be analyzed.  When a date occurs twice the later record wins, mirroring
    how a saved day overwrites the previous version.

    Args:
        records: ``DailyObservation`` instances or raw dicts.

    Returns:
        Observations in calendar order.  Records whose date cannot be parsed
        come last, in input order.
    """
    by_date: dict[str, DailyObservation] = {}
    dropped = 0
    for record in records:
        if isinstance(record, DailyObservation):
            obs = record
        else:
            try:
                obs = DailyObservation.model_validate(record)
            except ValidationError as exc:
                dropped += 1
                logger.warning(
                    "Dropping invalid diary record for %s: %d error(s)",
                    record.get("date", "?") if isinstance(record, dict) else "?",
                    exc.error_count(),
                )
                continue
        by_date[obs.date] = obs

    if dropped:
        logger.info("Parsed %d observations (%d dropped)", len(by_date), dropped)
    return sorted(
        by_date.values(),
        key=lambda o: (o.parsed_date is None, o.parsed_date or date.min),
    )

"""Tests for the DailyObservation model and raw diary normalization."""

from __future__ import annotations

import logging
from datetime import date

import pytest
from pydantic import ValidationError

from src.cycles.base import (
    AcutePainEvent,
    DailyObservation,
    MucusAppearance,
    MucusObservation,
    PainRegion,
    SymptomReading,
    normalize_daily_entry,
    parse_iso_date,
    parse_observations,
)
from src.cycles.config_loader import EngineConfig
from src.cycles.segmenter import compute_cycle_days


class TestParseObservations:
    def test_fixture_diary(self, diary_records: list[dict]) -> None:
        observations = parse_observations(diary_records)
        assert [o.date for o in observations] == [
            "2026-01-05",
            "2026-01-06",
            "2026-01-17",
            "2026-01-18",
        ]

    def test_invalid_record_is_dropped_with_warning(
        self, diary_records: list[dict], caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="endotrack.cycles.base"):
            observations = parse_observations(diary_records)
        assert "2026-01-07" not in {o.date for o in observations}
        assert "Dropping invalid diary record for 2026-01-07" in caplog.text

    def test_later_record_for_same_date_wins(self, diary_records: list[dict]) -> None:
        latest = parse_observations(diary_records)[-1]
        assert latest.date == "2026-01-18"
        assert latest.hormone_test_positive is True
        assert latest.overall_pain_intensity == 5
        assert latest.acute_pain_events == ()

    def test_legacy_nested_bleeding(self, diary_records: list[dict]) -> None:
        first, second, *_ = parse_observations(diary_records)
        assert first.bleeding_active
        assert first.pbac_score == 55
        assert first.overall_pain_intensity == 6
        assert first.pain_regions[0].region_id == "lower_abdomen"
        assert first.pain_regions[0].qualities == frozenset({"krampfend", "ziehend"})
        assert second.bleeding_active
        assert second.pbac_score is None
        assert second.pain_regions == ()

    def test_null_symptoms_become_empty(self, diary_records: list[dict]) -> None:
        observations = {o.date: o for o in parse_observations(diary_records)}
        wet_day = observations["2026-01-17"]
        assert wet_day.symptoms == {}
        assert wet_day.mucus_observation == MucusObservation.wet
        assert wet_day.mucus_appearance == MucusAppearance.creamy

    def test_accepts_model_instances(self) -> None:
        obs = DailyObservation(date="2026-02-01")
        assert parse_observations([obs, {"date": "2026-01-31"}])[1] is obs

    def test_unpadded_dates_are_canonical_and_in_calendar_order(
        self, engine_config: EngineConfig
    ) -> None:
        records = [
            {"date": f"2024-01-{day:02d}", "bleedingActive": day <= 3} for day in range(1, 11)
        ]
        records.append({"date": "2024-1-5", "overallPainIntensity": 4})
        records.append({"date": "2024-1-11"})

        observations = parse_observations(records)

        assert [o.date for o in observations] == [
            f"2024-01-{day:02d}" for day in range(1, 12)
        ]
        # The unpadded record replaced the padded one for the same day
        assert observations[4].overall_pain_intensity == 4
        days = compute_cycle_days(observations, engine_config)
        assert days["2024-01-05"] == 5
        assert days["2024-01-11"] == 11

    def test_unparsable_dates_come_last_in_input_order(self) -> None:
        observations = parse_observations(
            [
                {"date": "someday"},
                {"date": "2024-01-02"},
                {"date": "2024-13-01"},
                {"date": "2024-01-01"},
            ]
        )
        assert [o.date for o in observations] == [
            "2024-01-01",
            "2024-01-02",
            "someday",
            "2024-13-01",
        ]


class TestNormalizeDailyEntry:
    def test_bare_boolean_bleeding(self) -> None:
        assert normalize_daily_entry({"date": "2026-01-05", "bleeding": True}) == {
            "date": "2026-01-05",
            "bleedingActive": True,
        }

    def test_nested_ovulation_fields(self) -> None:
        data = normalize_daily_entry(
            {
                "date": "2026-01-18",
                "ovulationPain": {"side": "rechts", "intensity": 4},
                "ovulation": {"lhTestDone": True, "lhPositive": False},
            }
        )
        assert data["ovulationPainIntensity"] == 4
        assert data["ovulationPainSide"] == "rechts"
        assert data["hormoneTestPositive"] is False

    def test_lh_result_ignored_when_no_test_done(self) -> None:
        data = normalize_daily_entry(
            {"date": "2026-01-18", "ovulation": {"lhTestDone": False, "lhPositive": True}}
        )
        assert "hormoneTestPositive" not in data

    def test_current_shape_wins_over_legacy(self) -> None:
        data = normalize_daily_entry(
            {"date": "2026-01-05", "bleedingActive": False, "bleeding": True}
        )
        assert data["bleedingActive"] is False

    def test_does_not_mutate_input(self) -> None:
        raw = {"date": "2026-01-05", "bleeding": True}
        normalize_daily_entry(raw)
        assert raw == {"date": "2026-01-05", "bleeding": True}


class TestDailyObservation:
    def test_date_is_zero_padded(self) -> None:
        assert DailyObservation(date="2026-1-5").date == "2026-01-05"
        assert DailyObservation(date="2026-02-30").date == "2026-02-30"

    def test_camel_case_and_snake_case_both_accepted(self) -> None:
        camel = DailyObservation.model_validate({"date": "2026-01-05", "bleedingActive": True})
        snake = DailyObservation(date="2026-01-05", bleeding_active=True)
        assert camel == snake

    def test_is_immutable(self) -> None:
        obs = DailyObservation(date="2026-01-05")
        with pytest.raises(ValidationError):
            obs.bleeding_active = True

    def test_pain_out_of_range_rejected(self) -> None:
        with pytest.raises(ValidationError):
            DailyObservation(date="2026-01-05", overall_pain_intensity=11)

    def test_visible_pain_is_max_of_chart_sources(self) -> None:
        obs = DailyObservation(
            date="2026-01-05",
            overall_pain_intensity=2,
            pain_regions=[PainRegion(region_id="back", intensity=4)],
            acute_pain_events=[AcutePainEvent(intensity=7)],
            impact_intensity=9,
        )
        assert obs.visible_pain_intensity == 7

    def test_impact_alone_is_not_visible_pain(self) -> None:
        obs = DailyObservation(date="2026-01-05", impact_intensity=9)
        assert obs.visible_pain_intensity is None

    def test_symptom_score(self) -> None:
        obs = DailyObservation(
            date="2026-01-05",
            symptoms={
                "fatigue": SymptomReading(present=True, score=6),
                "bloating": SymptomReading(present=True),
                "nausea": SymptomReading(present=False, score=8),
            },
        )
        assert obs.symptom_score("fatigue") == pytest.approx(0.6)
        assert obs.symptom_score("bloating") == 0.0
        assert obs.symptom_score("nausea") == 0.0
        assert obs.symptom_score("headache") == 0.0

    def test_mucus_record_flag(self) -> None:
        assert not DailyObservation(date="2026-01-05").has_mucus_record
        assert DailyObservation(
            date="2026-01-05", mucus_appearance=MucusAppearance.sticky
        ).has_mucus_record


class TestParseIsoDate:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2026-01-05", date(2026, 1, 5)),
            ("2026-1-5", date(2026, 1, 5)),
            ("2026-02-30", None),
            ("2026/01/05", None),
            ("", None),
            (None, None),
            ("not-a-date", None),
        ],
    )
    def test_parse(self, value: str | None, expected: date | None) -> None:
        assert parse_iso_date(value) == expected

"""Tests for cycle-day numbering and cycle segmentation."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from src.cycles.config_loader import EngineConfig
from src.cycles.segmenter import build_cycle_segments, compute_cycle_days
from src.cycles.tests.factories import START, build_log, make_obs


def d(offset: int) -> date:
    return START + timedelta(days=offset)


class TestComputeCycleDays:
    def test_consecutive_days_are_numbered_from_bleeding_onset(
        self, engine_config: EngineConfig
    ) -> None:
        observations = build_log([{"length": 28}, {"length": 28, "logged_days": 3}])
        days = compute_cycle_days(observations, engine_config)
        assert days[d(0).isoformat()] == 1
        assert days[d(4).isoformat()] == 5
        assert days[d(27).isoformat()] == 28
        assert days[d(28).isoformat()] == 1
        assert days[d(30).isoformat()] == 3

    def test_counter_carries_across_logging_gaps(self, engine_config: EngineConfig) -> None:
        observations = [
            make_obs(d(0), bleeding_active=True),
            make_obs(d(9)),
            make_obs(d(20)),
        ]
        days = compute_cycle_days(observations, engine_config)
        assert days[d(9).isoformat()] == 10
        assert days[d(20).isoformat()] == 21

    def test_no_bleeding_means_no_cycle_days(self, engine_config: EngineConfig) -> None:
        observations = [make_obs(d(i), overall_pain_intensity=2) for i in range(10)]
        days = compute_cycle_days(observations, engine_config)
        assert set(days.values()) == {None}

    def test_days_before_first_onset_are_none(self, engine_config: EngineConfig) -> None:
        observations = [make_obs(d(0)), make_obs(d(1)), make_obs(d(2), bleeding_active=True)]
        days = compute_cycle_days(observations, engine_config)
        assert days[d(0).isoformat()] is None
        assert days[d(1).isoformat()] is None
        assert days[d(2).isoformat()] == 1

    @pytest.mark.parametrize("gap", [1, 2, 3, 4, 5, 6])
    def test_spotting_inside_noise_gate_does_not_start_cycle(
        self, engine_config: EngineConfig, gap: int
    ) -> None:
        """Bleeding fewer than 7 days after the last bleeding day is spotting."""
        observations = [make_obs(d(i), bleeding_active=True) for i in range(5)]
        spotting_day = d(4 + gap)
        if gap > 1:
            # A dry day in between makes the spotting a fresh bleeding streak
            observations.append(make_obs(d(5)))
        observations.append(make_obs(spotting_day, bleeding_active=True))

        days = compute_cycle_days(observations, engine_config)
        assert days[spotting_day.isoformat()] != 1
        assert days[spotting_day.isoformat()] == (spotting_day - START).days + 1

    def test_bleeding_after_noise_gate_starts_new_cycle(
        self, engine_config: EngineConfig
    ) -> None:
        observations = [make_obs(d(i), bleeding_active=True) for i in range(5)]
        observations.append(make_obs(d(5)))
        observations.append(make_obs(d(11), bleeding_active=True))  # 7 days after d(4)
        days = compute_cycle_days(observations, engine_config)
        assert days[d(11).isoformat()] == 1

    def test_continuous_bleeding_stays_in_one_cycle(self, engine_config: EngineConfig) -> None:
        observations = [make_obs(d(i), bleeding_active=True) for i in range(9)]
        days = compute_cycle_days(observations, engine_config)
        assert [days[o.date] for o in observations] == list(range(1, 10))

    def test_malformed_date_keeps_previous_cycle_day(self, engine_config: EngineConfig) -> None:
        observations = [
            make_obs(d(0), bleeding_active=True),
            make_obs(d(1), bleeding_active=True),
            make_obs("2026-13-45", bleeding_active=True),
            make_obs(d(2)),
        ]
        days = compute_cycle_days(observations, engine_config)
        assert days["2026-13-45"] == 2
        assert days[d(2).isoformat()] == 3

    def test_malformed_date_before_any_cycle_is_none(self, engine_config: EngineConfig) -> None:
        observations = [make_obs("not-a-date", bleeding_active=True), make_obs(d(0))]
        days = compute_cycle_days(observations, engine_config)
        assert days["not-a-date"] is None
        assert days[d(0).isoformat()] is None


class TestBuildCycleSegments:
    def test_completed_and_ongoing_segments(self, engine_config: EngineConfig) -> None:
        observations = build_log(
            [{"length": 28}, {"length": 31}, {"length": 28, "logged_days": 6}]
        )
        as_of = d(28 + 31 + 9)
        segments = build_cycle_segments(observations, as_of, engine_config)

        assert len(segments) == 3
        first, second, current = segments
        assert first.is_completed and second.is_completed
        assert first.length == 28
        assert second.length == 31
        assert first.end_date == d(27)
        assert second.start_date == d(28)

        assert not current.is_completed
        assert current.end_date is None
        assert current.length == 10  # elapsed through as_of, not just logged days

    def test_ongoing_length_defaults_to_last_logged_day(
        self, engine_config: EngineConfig
    ) -> None:
        observations = build_log([{"length": 28, "logged_days": 12}])
        segments = build_cycle_segments(observations, config=engine_config)
        assert segments[-1].length == 12

    def test_entries_carry_cycle_days(self, engine_config: EngineConfig) -> None:
        observations = build_log([{"length": 28}, {"length": 28, "logged_days": 2}])
        segments = build_cycle_segments(observations, d(29), engine_config)
        assert [day for day, _ in segments[0].entries] == list(range(1, 29))
        assert segments[1].entries[0][0] == 1

    def test_no_bleeding_gives_no_segments(self, engine_config: EngineConfig) -> None:
        observations = [make_obs(d(i)) for i in range(5)]
        assert build_cycle_segments(observations, d(5), engine_config) == []

    def test_segment_flags(self, engine_config: EngineConfig) -> None:
        observations = build_log(
            [{"length": 28, "peak_mucus_day": 13, "hormone_day": 12}, {"length": 28, "logged_days": 1}]
        )
        first = build_cycle_segments(observations, d(28), engine_config)[0]
        assert first.has_mucus_records
        assert first.has_positive_hormone_test

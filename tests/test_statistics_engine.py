"""Tests for StatisticsEngine.

Tests cover:
- Dose-based day and range summaries (taken/missed/pending)
- The no-data default and the taken + missed + pending == total invariant
- Log-based views: all-time counts, daily trend, per-pet breakdown, history
- Period key generation and period buckets
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time
from unittest.mock import patch

from freezegun import freeze_time
import pytest

from tailtimer import const
from tailtimer.data_builders import build_log_for_dose
from tailtimer.engines.schedule_engine import doses_on
from tailtimer.engines.statistics_engine import (
    AdherenceSummary,
    StatisticsEngine,
    filter_medications,
)

from conftest import make_log, make_medication, make_pet, utc


@pytest.fixture
def stats() -> StatisticsEngine:
    """Return a StatisticsEngine instance."""
    return StatisticsEngine()


class TestAdherenceSummary:
    """Summary construction from raw counts."""

    def test_from_counts(self) -> None:
        """Adherence ignores pending; completion includes it."""
        summary = AdherenceSummary.from_counts(taken=2, missed=1, pending=1)

        assert summary.total == 4
        assert summary.logged == 3
        assert summary.adherence == 66.67
        assert summary.completion == 50.0

    def test_no_data_default(self) -> None:
        """Nothing logged reports the package-wide default."""
        summary = AdherenceSummary.from_counts(0, 0, pending=3)

        assert summary.adherence == const.DEFAULT_ADHERENCE_NO_DATA
        assert summary.completion == 0.0

    def test_all_missed_is_zero(self) -> None:
        """Only missed doses give 0%."""
        assert AdherenceSummary.from_counts(0, 4).adherence == 0.0


class TestSummarizeDay:
    """Dose-based summaries for one day."""

    def test_example_scenario(
        self, stats: StatisticsEngine, daily_medication: dict
    ) -> None:
        """08:00 taken and 20:00 unlogged: 1 taken, 1 pending, 100%."""
        morning, _evening = doses_on(date(2024, 1, 5), [daily_medication])
        log = build_log_for_dose(morning, const.LOG_STATUS_TAKEN)

        summary = stats.summarize_day(date(2024, 1, 5), [daily_medication], [log])

        assert summary.taken == 1
        assert summary.missed == 0
        assert summary.pending == 1
        assert summary.total == 2
        assert summary.adherence == 100.0

    def test_empty_inputs(self, stats: StatisticsEngine) -> None:
        """No medications and no logs give an all-zero summary."""
        summary = stats.summarize_day(date(2024, 1, 5), [], [])

        assert summary == AdherenceSummary.from_counts(0, 0, 0)
        assert summary.adherence == const.DEFAULT_ADHERENCE_NO_DATA

    def test_logs_from_other_days_ignored(
        self, stats: StatisticsEngine, daily_medication: dict
    ) -> None:
        """A log for Jan 4 does not answer a Jan 5 dose."""
        log = make_log("med-1", utc(2024, 1, 4, 8))

        summary = stats.summarize_day(date(2024, 1, 5), [daily_medication], [log])

        assert summary.pending == 2
        assert summary.taken == 0

    def test_pet_filter(self, stats: StatisticsEngine) -> None:
        """pet_id limits the day to that pet's medications."""
        meds = [
            make_medication(pet_id="pet-1", medication_id="m1"),
            make_medication(pet_id="pet-2", medication_id="m2"),
        ]
        logs = [make_log("m2", utc(2024, 1, 5, 8), const.LOG_STATUS_MISSED)]

        pet_one = stats.summarize_day(date(2024, 1, 5), meds, logs, pet_id="pet-1")
        pet_two = stats.summarize_day(date(2024, 1, 5), meds, logs, pet_id="pet-2")

        assert (pet_one.pending, pet_one.missed) == (1, 0)
        assert (pet_two.pending, pet_two.missed) == (0, 1)

    def test_unknown_status_excluded_from_counts(
        self, stats: StatisticsEngine, daily_medication: dict
    ) -> None:
        """A dose answered with an unknown status counts nowhere."""
        logs = [
            make_log("med-1", utc(2024, 1, 5, 8), "skipped"),
            make_log("med-1", utc(2024, 1, 5, 20), const.LOG_STATUS_TAKEN),
        ]

        summary = stats.summarize_day(date(2024, 1, 5), [daily_medication], logs)

        assert (summary.taken, summary.missed, summary.pending) == (1, 0, 0)
        assert summary.total == summary.taken + summary.missed + summary.pending

    @freeze_time("2024-01-05 12:00:00")
    def test_defaults_to_today(
        self, stats: StatisticsEngine, daily_medication: dict
    ) -> None:
        """A None day means today in the local timezone."""
        summary = stats.summarize_day(None, [daily_medication], [])

        assert summary.pending == 2

    @freeze_time("2024-01-05 12:00:00")
    def test_unparseable_day_is_empty(
        self, stats: StatisticsEngine, daily_medication: dict
    ) -> None:
        """A day that cannot be parsed has no doses instead of falling back to today."""
        summary = stats.summarize_day("garbage", [daily_medication], [])

        assert summary.total == 0
        assert stats.match_day("garbage", [daily_medication], []) == []


class TestSummarizeRange:
    """Dose-based summaries across several days."""

    def test_range_counts(self, stats: StatisticsEngine) -> None:
        """Every-other-day course over a week: 4 doses, 2 answered."""
        med = make_medication(
            frequency=const.FREQUENCY_CUSTOM_INTERVAL, interval=2, times=[time(9, 0)]
        )
        logs = [
            make_log("med-1", utc(2024, 1, 1, 9), const.LOG_STATUS_TAKEN),
            make_log("med-1", utc(2024, 1, 3, 9), const.LOG_STATUS_MISSED),
        ]

        summary = stats.summarize_range(date(2024, 1, 1), date(2024, 1, 7), [med], logs)

        assert summary.total == 4
        assert (summary.taken, summary.missed, summary.pending) == (1, 1, 2)
        assert summary.adherence == 50.0

    def test_inverted_range_empty(self, stats: StatisticsEngine) -> None:
        """end before start has no doses."""
        summary = stats.summarize_range(
            date(2024, 1, 7), date(2024, 1, 1), [make_medication()], []
        )

        assert summary.total == 0


class TestSummarizeLogs:
    """All-time log counts."""

    def test_counts(self, stats: StatisticsEngine) -> None:
        """Pending is always zero for log-only views."""
        logs = [
            make_log("m", utc(2024, 1, 1, 8)),
            make_log("m", utc(2024, 1, 2, 8)),
            make_log("m", utc(2024, 1, 3, 8), const.LOG_STATUS_MISSED),
            make_log("m", utc(2024, 1, 4, 8), "bogus"),
        ]

        summary = stats.summarize_logs(logs)

        assert (summary.taken, summary.missed, summary.pending) == (2, 1, 0)
        assert summary.total == 3
        assert summary.adherence == 66.67


class TestDailyTrend:
    """Trailing per-day adherence."""

    def test_seven_days_oldest_first(self, stats: StatisticsEngine) -> None:
        """One entry per day ending on the reference day."""
        trend = stats.daily_trend([], reference_date=date(2024, 1, 7))

        assert [entry.day for entry in trend] == [
            date(2024, 1, day) for day in range(1, 8)
        ]
        assert all(entry.adherence == const.DEFAULT_ADHERENCE_NO_DATA for entry in trend)

    def test_logs_bucketed_by_scheduled_day(self, stats: StatisticsEngine) -> None:
        """Each day only counts its own logs."""
        logs = [
            make_log("m", utc(2024, 1, 6, 8), const.LOG_STATUS_TAKEN),
            make_log("m", utc(2024, 1, 6, 20), const.LOG_STATUS_MISSED),
            make_log("m", utc(2024, 1, 7, 8), const.LOG_STATUS_TAKEN),
            make_log("m", utc(2023, 12, 1, 8), const.LOG_STATUS_MISSED),
        ]

        trend = stats.daily_trend(logs, days=3, reference_date=date(2024, 1, 7))

        assert [entry.adherence for entry in trend] == [0.0, 50.0, 100.0]
        assert trend[0].summary.logged == 0

    def test_non_positive_days(self, stats: StatisticsEngine) -> None:
        """Zero days gives an empty trend."""
        assert stats.daily_trend([], days=0, reference_date=date(2024, 1, 7)) == []

    def test_unparseable_reference_day(self, stats: StatisticsEngine) -> None:
        """An unparseable reference day gives an empty trend."""
        assert stats.daily_trend([], reference_date="not a day") == []

    @freeze_time("2024-01-10 09:00:00")
    def test_defaults_to_today(self, stats: StatisticsEngine) -> None:
        """Without a reference day the window ends today."""
        trend = stats.daily_trend([])

        assert trend[-1].day == date(2024, 1, 10)
        assert trend[0].day == date(2024, 1, 4)


class TestPetBreakdown:
    """Per-pet adherence, worst first."""

    def test_worst_first(self, stats: StatisticsEngine) -> None:
        """Pets are ordered by ascending adherence."""
        pets = [make_pet("Rex", pet_id="p1"), make_pet("Luna", pet_id="p2")]
        meds = [
            make_medication(pet_id="p1", medication_id="m1"),
            make_medication(pet_id="p2", medication_id="m2"),
        ]
        logs = [
            make_log("m1", utc(2024, 1, 1, 8), const.LOG_STATUS_TAKEN),
            make_log("m2", utc(2024, 1, 1, 8), const.LOG_STATUS_TAKEN),
            make_log("m2", utc(2024, 1, 2, 8), const.LOG_STATUS_MISSED),
        ]

        breakdown = stats.pet_breakdown(pets, meds, logs)

        assert [(item.name, item.adherence) for item in breakdown] == [
            ("Luna", 50.0),
            ("Rex", 100.0),
        ]

    def test_ties_sorted_by_name(self, stats: StatisticsEngine) -> None:
        """Equal adherence falls back to name order."""
        pets = [make_pet("Zed", pet_id="p1"), make_pet("Abby", pet_id="p2")]

        breakdown = stats.pet_breakdown(pets, [], [])

        assert [item.name for item in breakdown] == ["Abby", "Zed"]

    def test_orphan_logs_excluded(self, stats: StatisticsEngine) -> None:
        """Logs whose medication no longer exists count for nobody."""
        pets = [make_pet("Rex", pet_id="p1")]
        meds = [make_medication(pet_id="p1", medication_id="m1")]
        logs = [make_log("deleted", utc(2024, 1, 1, 8), const.LOG_STATUS_MISSED)]

        (item,) = stats.pet_breakdown(pets, meds, logs)

        assert item.summary.logged == 0


class TestPetHistory:
    """Per-pet log history."""

    def test_newest_action_first(self, stats: StatisticsEngine) -> None:
        """Only the pet's logs, newest action first."""
        meds = [
            make_medication(pet_id="p1", medication_id="m1"),
            make_medication(pet_id="p2", medication_id="m2"),
        ]
        old = make_log("m1", utc(2024, 1, 1, 8), action=utc(2024, 1, 1, 8, 5))
        new = make_log("m1", utc(2024, 1, 2, 8), const.LOG_STATUS_MISSED)
        other = make_log("m2", utc(2024, 1, 3, 8))

        history = stats.pet_history("p1", meds, [old, other, new])

        assert history.logs == [new, old]
        assert history.summary.adherence == 50.0


class TestGetPeriodKeys:
    """Tests for get_period_keys method."""

    def test_formats(self, stats: StatisticsEngine) -> None:
        """Keys use daily, ISO-week, monthly and yearly formats."""
        keys = stats.get_period_keys(reference_date=date(2024, 1, 5))

        assert keys == {
            const.PERIOD_DAILY: "2024-01-05",
            const.PERIOD_WEEKLY: "2024-W01",
            const.PERIOD_MONTHLY: "2024-01",
            const.PERIOD_YEARLY: "2024",
        }

    def test_iso_week_year_boundary(self, stats: StatisticsEngine) -> None:
        """Dec 30, 2024 belongs to ISO week 1 of 2025."""
        keys = stats.get_period_keys(reference_date=date(2024, 12, 30))

        assert keys[const.PERIOD_WEEKLY] == "2025-W01"
        assert keys[const.PERIOD_YEARLY] == "2024"

    def test_accepts_datetime(self, stats: StatisticsEngine) -> None:
        """Should accept datetime and extract date."""
        keys = stats.get_period_keys(datetime(2024, 7, 15, 14, 30, tzinfo=UTC))

        assert keys[const.PERIOD_DAILY] == "2024-07-15"

    def test_none_uses_today(self, stats: StatisticsEngine) -> None:
        """None reference_date should use today."""
        with patch.object(stats, "_dt_today_local", return_value=date(2024, 3, 10)):
            keys = stats.get_period_keys(reference_date=None)

        assert keys[const.PERIOD_DAILY] == "2024-03-10"


class TestPeriodBreakdown:
    """Log-based adherence grouped by period."""

    def test_monthly(self, stats: StatisticsEngine) -> None:
        """Logs group by month, oldest month first."""
        logs = [
            make_log("m", utc(2024, 2, 1, 8), const.LOG_STATUS_MISSED),
            make_log("m", utc(2024, 1, 5, 8), const.LOG_STATUS_TAKEN),
            make_log("m", utc(2024, 1, 6, 8), const.LOG_STATUS_TAKEN),
        ]

        breakdown = stats.period_breakdown(logs, const.PERIOD_MONTHLY)

        assert list(breakdown) == ["2024-01", "2024-02"]
        assert breakdown["2024-01"].adherence == 100.0
        assert breakdown["2024-02"].adherence == 0.0

    def test_unknown_period(self, stats: StatisticsEngine) -> None:
        """An unknown period type gives an empty mapping."""
        assert stats.period_breakdown([make_log("m", utc(2024, 1, 1))], "hourly") == {}


class TestFilterMedications:
    """Pet filtering helper."""

    def test_none_returns_all(self) -> None:
        """No pet id keeps every medication."""
        meds = [make_medication(pet_id="a"), make_medication(pet_id="b")]

        assert filter_medications(meds) == meds
        assert filter_medications(meds, "b") == [meds[1]]

"""Statistics Engine - Adherence aggregation over doses and logs.

This engine folds matched doses and medication logs into adherence figures:
- Dose-based windows (a day, a date range), optionally for one pet, with
  pending doses counted
- Log-based views: all-time totals, the trailing daily trend, the per-pet
  breakdown, per-pet history and period buckets (daily/weekly/monthly/yearly)

Adherence is taken / (taken + missed) * 100. When nothing has been logged the
engine reports const.DEFAULT_ADHERENCE_NO_DATA everywhere.

Design Principles:
    - Stateless: operates on passed data structures, never mutates them
    - Total: any finite input, including empty collections, yields a result
    - Consistent: one summary type and one no-data default for every view
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from typing import TYPE_CHECKING

from .. import const
from ..utils.dt_utils import (
    as_local,
    dt_date_range,
    dt_now_utc,
    dt_parse,
    dt_to_local_date,
)
from ..utils.math_utils import calculate_percentage
from .dose_engine import MatchedDose, log_key, match_doses
from .schedule_engine import doses_on

if TYPE_CHECKING:
    from datetime import tzinfo

    from ..type_defs import MedicationData, MedicationLogData, PetData


# =============================================================================
# RESULT DATA STRUCTURES
# =============================================================================


@dataclass(frozen=True)
class AdherenceSummary:
    """Counts and percentages for one aggregation window.

    Attributes:
        taken: Doses logged as taken
        missed: Doses logged as missed
        pending: Doses with no log yet (always 0 for log-only views)
        total: taken + missed + pending
        adherence: taken / (taken + missed) as a percentage
        completion: taken / total as a percentage (dashboard progress)
    """

    taken: int = 0
    missed: int = 0
    pending: int = 0
    total: int = 0
    adherence: float = const.DEFAULT_ADHERENCE_NO_DATA
    completion: float = 0.0

    @classmethod
    def from_counts(cls, taken: int, missed: int, pending: int = 0) -> AdherenceSummary:
        """Build a summary from raw counts."""
        total = taken + missed + pending
        return cls(
            taken=taken,
            missed=missed,
            pending=pending,
            total=total,
            adherence=calculate_percentage(
                taken,
                taken + missed,
                default=const.DEFAULT_ADHERENCE_NO_DATA,
                precision=const.DATA_FLOAT_PRECISION,
            ),
            completion=calculate_percentage(
                taken, total, precision=const.DATA_FLOAT_PRECISION
            ),
        )

    @property
    def logged(self) -> int:
        """Doses that have been answered (taken + missed)."""
        return self.taken + self.missed


@dataclass(frozen=True)
class DailyAdherence:
    """Log-based adherence for one calendar day of a trend window."""

    day: date
    summary: AdherenceSummary

    @property
    def adherence(self) -> float:
        """Adherence percentage for the day."""
        return self.summary.adherence


@dataclass(frozen=True)
class PetAdherence:
    """Log-based adherence for one pet."""

    pet_id: str
    name: str
    summary: AdherenceSummary

    @property
    def adherence(self) -> float:
        """Adherence percentage for the pet."""
        return self.summary.adherence


@dataclass(frozen=True)
class PetHistory:
    """All logs of one pet, newest action first, with their summary."""

    pet_id: str
    logs: list[MedicationLogData] = field(default_factory=list)
    summary: AdherenceSummary = field(default_factory=AdherenceSummary)


# =============================================================================
# STATISTICS ENGINE
# =============================================================================


class StatisticsEngine:
    """Unified engine for adherence statistics.

    All methods are read-only over the passed collections. The engine does NOT
    persist anything; callers supply fresh snapshots on each query.

    Example:
        stats = StatisticsEngine()

        # Today's progress card
        today = stats.summarize_day(None, medications, logs)

        # Analytics screen
        trend = stats.daily_trend(logs, days=7)
        worst_first = stats.pet_breakdown(pets, medications, logs)
    """

    def __init__(self, tz: tzinfo | None = None) -> None:
        """Initialize the engine.

        Args:
            tz: Timezone for day boundaries. Defaults to the dt_utils default.
        """
        self._tz = tz

    # ────────────────────────────────────────────────────────────────
    # Time Helpers
    # ────────────────────────────────────────────────────────────────

    def _dt_today_local(self) -> date:
        """Return today's date in the engine's local timezone."""
        return as_local(dt_now_utc(), self._tz).date()

    def _resolve_day(
        self, reference_date: date | datetime | str | None
    ) -> date | None:
        """Normalize a reference day, defaulting to today.

        Returns None when a reference is given but cannot be parsed.
        """
        if reference_date is None:
            return self._dt_today_local()
        return dt_to_local_date(reference_date, self._tz)

    def _log_day(self, log: MedicationLogData) -> date | None:
        """Return the local calendar day a log's dose was scheduled on."""
        key = log_key(log, self._tz)
        if key is None:
            return None
        return as_local(key[1], self._tz).date()

    # ────────────────────────────────────────────────────────────────
    # Dose-Based Windows
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def summarize(matched: Iterable[MatchedDose]) -> AdherenceSummary:
        """Fold matched doses into counts.

        Doses answered by a log with an unrecognized status are left out of
        every count so that taken + missed + pending == total always holds.
        """
        taken = missed = pending = 0
        for item in matched:
            status = item.status
            if item.is_pending:
                pending += 1
            elif status == const.LOG_STATUS_TAKEN:
                taken += 1
            elif status == const.LOG_STATUS_MISSED:
                missed += 1
            else:
                const.LOGGER.debug(
                    "StatisticsEngine: Skipping dose %s with unknown log status '%s'",
                    item.dose.dose_id,
                    status,
                )
        return AdherenceSummary.from_counts(taken, missed, pending)

    def match_day(
        self,
        target_date: date | datetime | str | None,
        medications: Iterable[MedicationData],
        logs: Iterable[MedicationLogData],
        pet_id: str | None = None,
    ) -> list[MatchedDose]:
        """Materialize and match one day's doses (today if target_date is None).

        An unparseable target_date yields no doses.
        """
        day = self._resolve_day(target_date)
        if day is None:
            return []
        doses = doses_on(day, filter_medications(medications, pet_id), self._tz)
        return match_doses(doses, logs, self._tz)

    def summarize_day(
        self,
        target_date: date | datetime | str | None,
        medications: Iterable[MedicationData],
        logs: Iterable[MedicationLogData],
        pet_id: str | None = None,
    ) -> AdherenceSummary:
        """Summarize one day's doses, optionally for a single pet.

        Example:
            Daily medication at 08:00 and 20:00, 08:00 logged as taken:
            taken=1, missed=0, pending=1, total=2, adherence=100.0
        """
        return self.summarize(self.match_day(target_date, medications, logs, pet_id))

    def summarize_range(
        self,
        start: date | datetime | str,
        end: date | datetime | str,
        medications: Iterable[MedicationData],
        logs: Iterable[MedicationLogData],
        pet_id: str | None = None,
    ) -> AdherenceSummary:
        """Summarize every dose scheduled between start and end (inclusive)."""
        first = dt_to_local_date(start, self._tz)
        last = dt_to_local_date(end, self._tz)
        if first is None or last is None:
            return AdherenceSummary.from_counts(0, 0, 0)

        selected = filter_medications(medications, pet_id)
        doses = []
        for day in dt_date_range(first, last):
            doses.extend(doses_on(day, selected, self._tz))
        return self.summarize(match_doses(doses, logs, self._tz))

    # ────────────────────────────────────────────────────────────────
    # Log-Based Views
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def summarize_logs(logs: Iterable[MedicationLogData]) -> AdherenceSummary:
        """Count taken/missed logs (all-time view; pending is always 0).

        Logs with an unrecognized status are not counted.
        """
        taken = missed = 0
        for log in logs:
            status = log.get(const.DATA_LOG_STATUS)
            if status == const.LOG_STATUS_TAKEN:
                taken += 1
            elif status == const.LOG_STATUS_MISSED:
                missed += 1
        return AdherenceSummary.from_counts(taken, missed)

    def daily_trend(
        self,
        logs: Iterable[MedicationLogData],
        days: int = const.DEFAULT_TREND_DAYS,
        reference_date: date | datetime | str | None = None,
    ) -> list[DailyAdherence]:
        """Return per-day adherence for the trailing window, oldest day first.

        Each day only counts logs whose scheduled_time falls on that local day.

        Args:
            logs: All medication logs
            days: Window length ending on (and including) reference_date
            reference_date: Last day of the window. Defaults to today.
        """
        if days <= 0:
            return []

        last = self._resolve_day(reference_date)
        if last is None:
            return []
        first = last - timedelta(days=days - 1)

        buckets: dict[date, list[MedicationLogData]] = {
            day: [] for day in dt_date_range(first, last)
        }
        for log in logs:
            day = self._log_day(log)
            if day in buckets:
                buckets[day].append(log)

        return [
            DailyAdherence(day=day, summary=self.summarize_logs(day_logs))
            for day, day_logs in buckets.items()
        ]

    def pet_breakdown(
        self,
        pets: Iterable[PetData],
        medications: Iterable[MedicationData],
        logs: Iterable[MedicationLogData],
    ) -> list[PetAdherence]:
        """Return log-based adherence per pet, worst adherence first.

        Logs are attributed through their medication's pet_id; logs whose
        medication is unknown are ignored. Ties sort by name, then id.
        """
        pet_by_medication = {
            str(medication.get(const.DATA_MEDICATION_INTERNAL_ID)): medication.get(
                const.DATA_MEDICATION_PET_ID
            )
            for medication in medications
        }

        logs_by_pet: dict[str, list[MedicationLogData]] = {}
        for log in logs:
            pet_id = pet_by_medication.get(str(log.get(const.DATA_LOG_MEDICATION_ID)))
            if pet_id is None:
                continue
            logs_by_pet.setdefault(str(pet_id), []).append(log)

        breakdown = []
        for pet in pets:
            pet_id = str(pet.get(const.DATA_PET_INTERNAL_ID))
            breakdown.append(
                PetAdherence(
                    pet_id=pet_id,
                    name=str(pet.get(const.DATA_PET_NAME, const.SENTINEL_EMPTY)),
                    summary=self.summarize_logs(logs_by_pet.get(pet_id, [])),
                )
            )

        breakdown.sort(key=lambda item: (item.adherence, item.name, item.pet_id))
        return breakdown

    def pet_history(
        self,
        pet_id: str,
        medications: Iterable[MedicationData],
        logs: Iterable[MedicationLogData],
    ) -> PetHistory:
        """Return every log for a pet, newest action first, with a summary."""
        medication_ids = {
            str(medication.get(const.DATA_MEDICATION_INTERNAL_ID))
            for medication in filter_medications(medications, pet_id)
        }
        pet_logs = [
            log
            for log in logs
            if str(log.get(const.DATA_LOG_MEDICATION_ID)) in medication_ids
        ]

        def _action_sort_key(log: MedicationLogData) -> datetime:
            action = dt_parse(log.get(const.DATA_LOG_ACTION_TIME), self._tz)
            if isinstance(action, datetime):
                return action
            return datetime.min.replace(tzinfo=UTC)

        pet_logs.sort(key=_action_sort_key, reverse=True)
        return PetHistory(
            pet_id=pet_id,
            logs=pet_logs,
            summary=self.summarize_logs(pet_logs),
        )

    # ────────────────────────────────────────────────────────────────
    # Period Buckets
    # ────────────────────────────────────────────────────────────────

    def get_period_keys(
        self, reference_date: date | datetime | None = None
    ) -> dict[str, str]:
        """Generate period keys for all time granularities.

        Args:
            reference_date: Date to generate keys for. Defaults to today (local).

        Returns:
            Dictionary with keys: "daily", "weekly", "monthly", "yearly"

        Example:
            >>> stats.get_period_keys(date(2024, 1, 5))
            {
                "daily": "2024-01-05",
                "weekly": "2024-W01",
                "monthly": "2024-01",
                "yearly": "2024"
            }
        """
        ref = self._resolve_day(reference_date)
        if ref is None:
            return {}
        return {
            period_type: ref.strftime(period_format)
            for period_type, period_format in const.PERIOD_FORMATS.items()
        }

    def period_breakdown(
        self,
        logs: Iterable[MedicationLogData],
        period_type: str = const.PERIOD_DAILY,
    ) -> dict[str, AdherenceSummary]:
        """Group logs into period buckets by scheduled day and summarize each.

        Args:
            logs: Medication logs to group
            period_type: One of const.PERIOD_DAILY/WEEKLY/MONTHLY/YEARLY

        Returns:
            Ordered mapping of period key to summary, oldest period first.
            Empty for an unknown period_type.
        """
        period_format = const.PERIOD_FORMATS.get(period_type)
        if period_format is None:
            const.LOGGER.warning(
                "StatisticsEngine: Unknown period type '%s'", period_type
            )
            return {}

        grouped: dict[str, list[MedicationLogData]] = {}
        for log in logs:
            day = self._log_day(log)
            if day is None:
                continue
            grouped.setdefault(day.strftime(period_format), []).append(log)

        return {
            period_key: self.summarize_logs(grouped[period_key])
            for period_key in sorted(grouped)
        }


# =============================================================================
# MODULE HELPERS
# =============================================================================


def filter_medications(
    medications: Iterable[MedicationData],
    pet_id: str | None = None,
) -> list[MedicationData]:
    """Return medications belonging to pet_id (all of them if pet_id is None)."""
    if pet_id is None:
        return list(medications)
    return [
        medication
        for medication in medications
        if medication.get(const.DATA_MEDICATION_PET_ID) == pet_id
    ]


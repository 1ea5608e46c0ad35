"""Schedule Engine for TailTimer.

Decides which calendar days a medication is active on and materializes its
reminder clock times into concrete dose occurrences:
- `RecurrenceEngine.is_active` answers the single-day question directly
  with day arithmetic (start weekday, day-count modulo interval)
- `RecurrenceEngine.get_occurrences` uses `dateutil.rrule` to list every
  active day across a window (calendar markers)
- `doses_on` expands the active medications of a day into ScheduledDose
  objects in a deterministic order

Scheduling fails closed: an invalid or unknown rule makes a medication
inactive, it never raises, so one bad record cannot hide a whole day.

IMPORTANT: This module must NOT import from helpers or data_builders.
Only import from const.py, type_defs.py, and utils.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import TYPE_CHECKING, Any, ClassVar

from dateutil.rrule import DAILY, WEEKLY, rrule

from .. import const
from ..utils.dt_utils import (
    as_utc,
    dt_days_between,
    dt_to_local_date,
    parse_reminder_times,
    resolve_dose_time,
)

if TYPE_CHECKING:
    from datetime import tzinfo

    from ..type_defs import MedicationData


# =============================================================================
# SCHEDULED DOSE DATA STRUCTURE
# =============================================================================


@dataclass(frozen=True, eq=False)
class ScheduledDose:
    """One concrete occurrence of a medication's reminder on one day.

    Never stored. Two doses are the same occurrence iff they share
    (medication id, scheduled_time); equality and hashing follow that key.

    Attributes:
        medication: The medication record this dose belongs to (not owned)
        reminder_time: The hour:minute reminder that produced this dose
        scheduled_time: Fully resolved, timezone-aware dose timestamp
    """

    medication: MedicationData
    reminder_time: time
    scheduled_time: datetime

    @property
    def medication_id(self) -> str:
        """Internal id of the owning medication."""
        return str(self.medication.get(const.DATA_MEDICATION_INTERNAL_ID, ""))

    @property
    def pet_id(self) -> str | None:
        """Internal id of the pet the medication belongs to, if linked."""
        return self.medication.get(const.DATA_MEDICATION_PET_ID)

    @property
    def key(self) -> tuple[str, datetime]:
        """Identity key shared with MedicationLog records.

        The time is normalized to UTC: a ZoneInfo time and a fixed-offset time
        for the same instant compare unequal on ambiguous or skipped hours.
        """
        return (self.medication_id, as_utc(self.scheduled_time))

    @property
    def dose_id(self) -> str:
        """String form of the identity key (stable list/row identifier)."""
        return f"{self.medication_id}-{self.scheduled_time.isoformat()}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ScheduledDose):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)


# =============================================================================
# RECURRENCE ENGINE
# =============================================================================


class RecurrenceEngine:
    """Evaluate one medication's frequency rule against calendar days.

    Handles all frequency types:
    - Daily: every day of the course
    - Weekly: the weekday the course started on
    - Custom Interval: every n days counted from the start date

    Invalid configuration (missing dates, interval < 1, no reminder times)
    makes the medication inactive on every day.
    """

    # Mapping from frequency tags to rrule frequency (interval supplied separately)
    FREQUENCY_TO_RRULE: ClassVar[dict[str, int]] = {
        const.FREQUENCY_DAILY: DAILY,
        const.FREQUENCY_WEEKLY: WEEKLY,
        const.FREQUENCY_CUSTOM_INTERVAL: DAILY,
    }

    def __init__(self, medication: MedicationData, tz: tzinfo | None = None) -> None:
        """Initialize the recurrence engine for a medication.

        Args:
            medication: Medication record. Dates may be date/datetime/ISO strings,
                reminder times may be time/datetime/"HH:MM" values.
            tz: Timezone used to strip datetimes to local days. Defaults to the
                dt_utils default timezone.
        """
        self._medication = medication
        self._tz = tz
        self._medication_id = medication.get(const.DATA_MEDICATION_INTERNAL_ID)
        self._frequency = medication.get(const.DATA_MEDICATION_FREQUENCY_TYPE)
        self._start_date = dt_to_local_date(
            medication.get(const.DATA_MEDICATION_START_DATE), tz
        )
        self._end_date = dt_to_local_date(
            medication.get(const.DATA_MEDICATION_END_DATE), tz
        )
        self._reminder_times = parse_reminder_times(
            medication.get(const.DATA_MEDICATION_REMINDER_TIMES), tz
        )
        self._interval = self._resolve_interval(
            medication.get(const.DATA_MEDICATION_CUSTOM_INTERVAL)
        )

    @property
    def medication(self) -> MedicationData:
        """The medication record being evaluated."""
        return self._medication

    @property
    def reminder_times(self) -> list[time]:
        """Parsed, sorted, distinct reminder clock times."""
        return list(self._reminder_times)

    @property
    def start_date(self) -> date | None:
        """First day of the course (local), or None if unparseable."""
        return self._start_date

    @property
    def end_date(self) -> date | None:
        """Last day of the course (local), or None if unparseable."""
        return self._end_date

    def _resolve_interval(self, raw_interval: Any) -> int | None:
        """Return the rrule interval for the frequency, or None if invalid.

        Weekly counts in weeks (always 1); Daily and Custom Interval count in days.
        """
        if self._frequency == const.FREQUENCY_DAILY:
            return 1
        if self._frequency == const.FREQUENCY_WEEKLY:
            return 1
        if self._frequency != const.FREQUENCY_CUSTOM_INTERVAL:
            return None
        if isinstance(raw_interval, bool) or not isinstance(raw_interval, int):
            return None
        if raw_interval < const.MIN_CUSTOM_INTERVAL:
            return None
        return raw_interval

    def is_valid(self) -> bool:
        """Return True if the medication can ever produce a dose."""
        if self._start_date is None or self._end_date is None:
            const.LOGGER.debug(
                "RecurrenceEngine: Medication %s has no usable start/end date",
                self._medication_id,
            )
            return False
        if not self._reminder_times:
            const.LOGGER.debug(
                "RecurrenceEngine: Medication %s has no reminder times",
                self._medication_id,
            )
            return False
        if self._frequency not in self.FREQUENCY_TO_RRULE:
            const.LOGGER.debug(
                "RecurrenceEngine: Unknown frequency '%s' for medication %s",
                self._frequency,
                self._medication_id,
            )
            return False
        if self._interval is None:
            const.LOGGER.debug(
                "RecurrenceEngine: Invalid custom interval for medication %s",
                self._medication_id,
            )
            return False
        return True

    def is_active(self, target_date: date | datetime | str | None) -> bool:
        """Return True if the medication has doses due on target_date.

        target_date is stripped to a local calendar day before comparing.
        """
        target = dt_to_local_date(target_date, self._tz)
        if target is None or not self.is_valid():
            return False

        # is_valid() guarantees both dates are set
        assert self._start_date is not None and self._end_date is not None

        if target < self._start_date or target > self._end_date:
            return False

        if self._frequency == const.FREQUENCY_DAILY:
            return True

        if self._frequency == const.FREQUENCY_WEEKLY:
            return target.weekday() == self._start_date.weekday()

        if self._frequency == const.FREQUENCY_CUSTOM_INTERVAL:
            days_since_start = dt_days_between(self._start_date, target)
            # Pre-start days are never active, whatever the modulo says
            if days_since_start < 0:
                return False
            assert self._interval is not None
            return days_since_start % self._interval == 0

        return False

    def get_occurrences(
        self,
        start: date | datetime | str,
        end: date | datetime | str,
        limit: int = const.MAX_OCCURRENCE_DAYS,
    ) -> list[date]:
        """List every active day in [start, end], clipped to the course.

        Args:
            start: Window start (inclusive)
            end: Window end (inclusive)
            limit: Maximum days to return (safety limit)

        Returns:
            Ascending list of local dates. Empty for invalid medications or
            windows that do not overlap the course.
        """
        window_start = dt_to_local_date(start, self._tz)
        window_end = dt_to_local_date(end, self._tz)
        if window_start is None or window_end is None or not self.is_valid():
            return []

        assert self._start_date is not None and self._end_date is not None

        first = max(window_start, self._start_date)
        last = min(window_end, self._end_date)
        if first > last:
            return []

        # Anchor on the course start so weekday and interval phase line up
        rule = rrule(
            self.FREQUENCY_TO_RRULE[self._frequency],  # type: ignore[index]
            interval=self._interval or 1,
            dtstart=datetime.combine(self._start_date, time.min),
            until=datetime.combine(last, time.min),
        )
        occurrences = rule.between(
            datetime.combine(first, time.min),
            datetime.combine(last, time.min),
            inc=True,
        )
        return [occurrence.date() for occurrence in occurrences[:limit]]

    def get_doses(self, target_date: date | datetime | str) -> list[ScheduledDose]:
        """Materialize this medication's doses for target_date.

        Returns:
            One ScheduledDose per reminder time (ascending), or an empty list
            if the medication is not active that day.
        """
        if not self.is_active(target_date):
            return []
        day = dt_to_local_date(target_date, self._tz)
        assert day is not None
        return [
            ScheduledDose(
                medication=self._medication,
                reminder_time=reminder_time,
                scheduled_time=resolve_dose_time(day, reminder_time, self._tz),
            )
            for reminder_time in self._reminder_times
        ]


# =============================================================================
# MODULE-LEVEL CONTRACTS
# =============================================================================


def _dose_sort_key(dose: ScheduledDose) -> tuple[datetime, str]:
    """Order by time, then medication id so equal times render stably."""
    return (dose.scheduled_time, dose.medication_id)


def is_medication_active(
    medication: MedicationData,
    target_date: date | datetime | str | None,
    tz: tzinfo | None = None,
) -> bool:
    """Return True if medication has doses due on target_date."""
    return RecurrenceEngine(medication, tz).is_active(target_date)


def doses_on(
    target_date: date | datetime | str | None,
    medications: Iterable[MedicationData],
    tz: tzinfo | None = None,
) -> list[ScheduledDose]:
    """Materialize every dose due on target_date across medications.

    Pure: the same inputs always give the same list in the same order.

    Args:
        target_date: Day to materialize (time-of-day is ignored)
        medications: All medication records to consider
        tz: Timezone override for day stripping and time resolution

    Returns:
        Doses sorted by scheduled_time, then medication id.
    """
    day = dt_to_local_date(target_date, tz)
    if day is None:
        return []

    doses: list[ScheduledDose] = []
    for medication in medications:
        doses.extend(RecurrenceEngine(medication, tz).get_doses(day))

    doses.sort(key=_dose_sort_key)
    return doses


def active_dates(
    medications: Iterable[MedicationData],
    start: date | datetime | str,
    end: date | datetime | str,
    tz: tzinfo | None = None,
) -> list[date]:
    """Return the sorted union of active days across medications in a window.

    Used for calendar markers ("something is due on this day").
    """
    dates: set[date] = set()
    for medication in medications:
        dates.update(RecurrenceEngine(medication, tz).get_occurrences(start, end))
    return sorted(dates)

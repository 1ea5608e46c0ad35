"""Dose Engine - Pure logic for matching dose occurrences to log records.

This engine provides stateless functions for:
- Identity keys for doses and logs: (medication id, scheduled time)
- First-match log lookup for a dose
- Pending/taken/missed status per dose
- Remaining/completed splits and the dashboard preview list

Matching is exact timestamp equality on UTC-normalized times. A log written
through data_builders.build_medication_log() shares resolve_dose_time() with
the schedule engine, so it always matches the dose it answers.

When several logs share a key, the first one in the supplied order wins and
the rest are ignored here; deduplication belongs to the storage layer.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from .. import const
from ..utils.dt_utils import as_utc, dt_parse

if TYPE_CHECKING:
    from datetime import tzinfo

    from ..type_defs import MedicationLogData
    from .schedule_engine import ScheduledDose

DoseKey = tuple[str, datetime]


# =============================================================================
# MATCHED DOSE DATA STRUCTURE
# =============================================================================


@dataclass(frozen=True, eq=False)
class MatchedDose:
    """A scheduled dose paired with the log that answers it, if any.

    Attributes:
        dose: The materialized dose occurrence
        log: First matching log record, or None while the dose is pending
    """

    dose: ScheduledDose
    log: MedicationLogData | None = None

    @property
    def status(self) -> str:
        """Return "pending", "taken" or "missed"."""
        if self.log is None:
            return const.DOSE_STATUS_PENDING
        status = self.log.get(const.DATA_LOG_STATUS)
        if status == const.LOG_STATUS_TAKEN:
            return const.LOG_STATUS_TAKEN
        if status == const.LOG_STATUS_MISSED:
            return const.LOG_STATUS_MISSED
        # Unknown status: answered, but counts as neither taken nor missed
        return str(status)

    @property
    def is_pending(self) -> bool:
        """True when no log answers this dose yet."""
        return self.log is None

    @property
    def is_completed(self) -> bool:
        """True when a log answers this dose."""
        return self.log is not None


# =============================================================================
# IDENTITY KEYS
# =============================================================================


def dose_key(dose: ScheduledDose) -> DoseKey:
    """Return the identity key of a dose (scheduled time in UTC)."""
    return dose.key


def log_key(log: MedicationLogData, tz: tzinfo | None = None) -> DoseKey | None:
    """Return the identity key of a log, or None if it cannot be matched.

    scheduled_time may be an aware datetime, a naive datetime (read as local
    time) or an ISO string. The key time is normalized to UTC.
    """
    medication_id = log.get(const.DATA_LOG_MEDICATION_ID)
    if not medication_id:
        return None

    scheduled = dt_parse(log.get(const.DATA_LOG_SCHEDULED_TIME), default_tzinfo=tz)
    if not isinstance(scheduled, datetime):
        const.LOGGER.debug(
            "DoseEngine: Log %s has unusable scheduled_time %r",
            log.get(const.DATA_LOG_INTERNAL_ID),
            log.get(const.DATA_LOG_SCHEDULED_TIME),
        )
        return None

    return (str(medication_id), as_utc(scheduled))


# =============================================================================
# LOOKUP
# =============================================================================


def index_logs(
    logs: Iterable[MedicationLogData],
    tz: tzinfo | None = None,
) -> dict[DoseKey, MedicationLogData]:
    """Index logs by identity key, keeping the first log seen for each key."""
    index: dict[DoseKey, MedicationLogData] = {}
    for log in logs:
        key = log_key(log, tz)
        if key is None:
            continue
        if key in index:
            const.LOGGER.debug(
                "DoseEngine: Ignoring duplicate log %s for medication %s at %s",
                log.get(const.DATA_LOG_INTERNAL_ID),
                key[0],
                key[1].isoformat(),
            )
            continue
        index[key] = log
    return index


def find_log(
    dose: ScheduledDose,
    logs: Iterable[MedicationLogData],
    tz: tzinfo | None = None,
) -> MedicationLogData | None:
    """Return the first log whose identity key equals the dose's, or None."""
    target = dose_key(dose)
    for log in logs:
        if log_key(log, tz) == target:
            return log
    return None


def match_doses(
    doses: Iterable[ScheduledDose],
    logs: Iterable[MedicationLogData],
    tz: tzinfo | None = None,
) -> list[MatchedDose]:
    """Attach log status to each dose, preserving dose order."""
    index = index_logs(logs, tz)
    return [MatchedDose(dose=dose, log=index.get(dose_key(dose))) for dose in doses]


# =============================================================================
# VIEWS
# =============================================================================


def split_by_completion(
    matched: Iterable[MatchedDose],
) -> tuple[list[MatchedDose], list[MatchedDose]]:
    """Split matched doses into (remaining, completed), keeping order."""
    remaining: list[MatchedDose] = []
    completed: list[MatchedDose] = []
    for item in matched:
        if item.is_pending:
            remaining.append(item)
        else:
            completed.append(item)
    return remaining, completed


def upcoming_and_recent(
    matched: Sequence[MatchedDose],
    limit: int = const.DEFAULT_UPCOMING_LIMIT,
) -> list[MatchedDose]:
    """Return a short preview: the next pending doses, topped up with recent ones.

    Takes the first `limit` remaining doses; if fewer than `limit` remain, the
    latest completed doses fill the gap. The result is ordered by scheduled time.

    Example:
        Remaining [09:00], completed [06:00, 07:00, 08:00], limit 3
        → [07:00, 08:00, 09:00]
    """
    if limit <= 0:
        return []
    remaining, completed = split_by_completion(matched)
    upcoming = remaining[:limit]
    needed = limit - len(upcoming)
    recent = completed[-needed:] if needed > 0 else []
    return sorted(
        upcoming + recent,
        key=lambda item: (item.dose.scheduled_time, item.dose.medication_id),
    )

"""Type definitions for TailTimer data structures.

Records are plain dicts keyed by the DATA_* constants in const.py. TypedDict
gives static checking for the fixed-key structures; nothing here is enforced at
runtime, so the engines still read records with .get() and treat
anything unparseable as absent.

Back-references are id fields rather than object links:
    - MedicationData.pet_id → PetData.internal_id
    - MedicationLogData.medication_id → MedicationData.internal_id
    - HealthNoteData.pet_id → PetData.internal_id

IMPORTANT: This file must NOT import from engines or helpers to avoid circular
dependencies. Only typing machinery and standard library types.
"""

from datetime import date, datetime, time
from typing import Any, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

PetId = str  # UUID string
MedicationId = str  # UUID string
LogId = str  # UUID string
ISODatetime = str  # ISO 8601 datetime string "2024-01-05T08:00:00+00:00"
ISODate = str  # ISO 8601 date string (no time) "2024-01-05"
HHMM = str  # Clock time string "08:00"


# =============================================================================
# Stored Records
# =============================================================================


class PetData(TypedDict):
    """Type definition for a pet record."""

    internal_id: PetId
    name: str
    species: str
    breed: str
    age: int
    gender: str


class MedicationData(TypedDict):
    """Type definition for a medication record.

    start_date/end_date are an inclusive range of calendar days.
    custom_interval is only meaningful for the "Custom Interval" frequency.
    reminder_times carry hour/minute only; the date comes from the day being
    materialized.
    """

    internal_id: MedicationId
    pet_id: PetId
    name: str
    dosage: str
    form: str
    notes: str
    start_date: date
    end_date: date
    frequency_type: str
    custom_interval: int | None
    reminder_times: list[time]


class MedicationLogData(TypedDict):
    """Type definition for a taken/missed record against one dose occurrence."""

    internal_id: LogId
    medication_id: MedicationId
    scheduled_time: datetime  # Resolved occurrence time (identity key half)
    action_time: datetime  # When the user acted
    status: str  # "taken" | "missed"


class HealthNoteData(TypedDict):
    """Type definition for a free-form health note attached to a pet."""

    internal_id: str
    pet_id: PetId
    title: str
    note: str
    date: datetime


# =============================================================================
# Notification Collaborator Contracts
# =============================================================================


class NotificationSettings(TypedDict):
    """Settings passed explicitly to the reminder request builders."""

    sound_enabled: bool
    snooze_minutes: int


class ReminderRequest(TypedDict):
    """One device reminder the notification collaborator should register.

    Repeating requests fire daily at hour:minute. One-shot (snooze) requests
    fire at fire_at and leave hour/minute as the fire time's clock values.
    """

    identifier: str
    title: str
    message: str
    hour: int
    minute: int
    repeats: bool
    sound: bool
    fire_at: NotRequired[datetime]


class ReminderUpdatePlan(TypedDict):
    """Result of comparing a medication before and after an edit."""

    cancel: list[str]
    schedule: list[ReminderRequest]


# =============================================================================
# Backup Collaborator Contracts
# =============================================================================


class BackupLog(TypedDict):
    """Log entry as written in the backup tree (no medication reference)."""

    internal_id: LogId
    scheduled_time: ISODatetime
    action_time: ISODatetime
    status: str


class BackupMedication(TypedDict):
    """Medication as written in the backup tree (no pet reference)."""

    internal_id: MedicationId
    name: str
    dosage: str
    form: str
    notes: str
    start_date: ISODate
    end_date: ISODate
    frequency_type: str
    custom_interval: int | None
    reminder_times: list[HHMM]
    history: list[BackupLog]


class BackupHealthNote(TypedDict):
    """Health note as written in the backup tree (no pet reference)."""

    internal_id: str
    title: str
    note: str
    date: ISODatetime


class BackupPet(TypedDict):
    """Top-level backup node; a backup is a list of these."""

    internal_id: PetId
    name: str
    species: str
    breed: str
    age: int
    gender: str
    medications: list[BackupMedication]
    health_notes: list[BackupHealthNote]


class RestoredData(TypedDict):
    """Flat, re-linked collections produced by a restore."""

    pets: list[PetData]
    medications: list[MedicationData]
    logs: list[MedicationLogData]
    health_notes: list[HealthNoteData]


# Loose record input accepted by builders (user input / form data)
UserInput = dict[str, Any]

"""Backup utilities for TailTimer.

Handles exporting records to the nested backup tree, validating a tree with
voluptuous, and restoring it into flat, re-linked record lists.

Tree shape (a JSON list):
    [
        {
            "internal_id": ..., "name": ..., ...pet fields,
            "medications": [
                {...medication fields, "history": [{...log fields}]}
            ],
            "health_notes": [{...note fields}]
        }
    ]

Back-reference ids (pet_id, medication_id) are never written to the tree;
restore rebuilds them from the nesting. File I/O belongs to the caller.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from datetime import date, datetime
import json
from typing import TYPE_CHECKING, Any
import uuid

import voluptuous as vol

from .. import const
from ..type_defs import (
    BackupHealthNote,
    BackupLog,
    BackupMedication,
    BackupPet,
    HealthNoteData,
    MedicationData,
    MedicationLogData,
    PetData,
    RestoredData,
)
from ..utils.dt_utils import (
    HELPER_RETURN_ISO_DATETIME,
    dt_parse,
    dt_parse_time,
    dt_to_local_date,
    format_reminder_time,
    parse_reminder_times,
)

if TYPE_CHECKING:
    from datetime import tzinfo


class BackupValidationError(Exception):
    """Raised when a backup tree or its JSON text cannot be restored."""


# ==============================================================================
# SCHEMA
# ==============================================================================

_OPTIONAL_TEXT = vol.Any(str, None)

BACKUP_LOG_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_LOG_INTERNAL_ID): str,
        vol.Required(const.DATA_LOG_SCHEDULED_TIME): str,
        vol.Required(const.DATA_LOG_ACTION_TIME): str,
        vol.Required(const.DATA_LOG_STATUS): vol.In(const.LOG_STATUS_OPTIONS),
    },
    extra=vol.REMOVE_EXTRA,
)

BACKUP_MEDICATION_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_MEDICATION_INTERNAL_ID): str,
        vol.Required(const.DATA_MEDICATION_NAME): str,
        vol.Optional(
            const.DATA_MEDICATION_DOSAGE, default=const.SENTINEL_EMPTY
        ): _OPTIONAL_TEXT,
        vol.Optional(
            const.DATA_MEDICATION_FORM, default=const.SENTINEL_EMPTY
        ): _OPTIONAL_TEXT,
        vol.Optional(
            const.DATA_MEDICATION_NOTES, default=const.SENTINEL_EMPTY
        ): _OPTIONAL_TEXT,
        vol.Required(const.DATA_MEDICATION_START_DATE): str,
        vol.Required(const.DATA_MEDICATION_END_DATE): str,
        vol.Required(const.DATA_MEDICATION_FREQUENCY_TYPE): vol.In(
            const.FREQUENCY_OPTIONS
        ),
        vol.Optional(const.DATA_MEDICATION_CUSTOM_INTERVAL, default=None): vol.Any(
            None, vol.All(int, vol.Range(min=const.MIN_CUSTOM_INTERVAL))
        ),
        vol.Required(const.DATA_MEDICATION_REMINDER_TIMES): [str],
        vol.Optional(const.BACKUP_MEDICATION_HISTORY, default=list): [
            BACKUP_LOG_SCHEMA
        ],
    },
    extra=vol.REMOVE_EXTRA,
)

BACKUP_HEALTH_NOTE_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_HEALTH_NOTE_INTERNAL_ID): str,
        vol.Required(const.DATA_HEALTH_NOTE_TITLE): str,
        vol.Optional(
            const.DATA_HEALTH_NOTE_NOTE, default=const.SENTINEL_EMPTY
        ): _OPTIONAL_TEXT,
        vol.Required(const.DATA_HEALTH_NOTE_DATE): str,
    },
    extra=vol.REMOVE_EXTRA,
)

BACKUP_PET_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_PET_INTERNAL_ID): str,
        vol.Required(const.DATA_PET_NAME): str,
        vol.Optional(const.DATA_PET_SPECIES, default=const.SENTINEL_EMPTY): _OPTIONAL_TEXT,
        vol.Optional(const.DATA_PET_BREED, default=const.SENTINEL_EMPTY): _OPTIONAL_TEXT,
        vol.Optional(const.DATA_PET_AGE, default=0): vol.All(int, vol.Range(min=0)),
        vol.Optional(const.DATA_PET_GENDER, default=const.SENTINEL_EMPTY): _OPTIONAL_TEXT,
        vol.Optional(const.BACKUP_PET_MEDICATIONS, default=list): [
            BACKUP_MEDICATION_SCHEMA
        ],
        vol.Optional(const.BACKUP_PET_HEALTH_NOTES, default=list): [
            BACKUP_HEALTH_NOTE_SCHEMA
        ],
    },
    extra=vol.REMOVE_EXTRA,
)

BACKUP_SCHEMA = vol.Schema([BACKUP_PET_SCHEMA])


# ==============================================================================
# EXPORT
# ==============================================================================


def _iso_datetime(value: Any) -> str:
    """Return an ISO datetime string, or "" if the value is unusable."""
    result = dt_parse(value, return_type=HELPER_RETURN_ISO_DATETIME)
    return result if isinstance(result, str) else const.SENTINEL_EMPTY


def _iso_date(value: Any) -> str:
    """Return an ISO date string, or "" if the value is unusable."""
    result = dt_to_local_date(value)
    return result.isoformat() if result else const.SENTINEL_EMPTY


def _export_log(log: MedicationLogData) -> BackupLog:
    return BackupLog(
        internal_id=str(log.get(const.DATA_LOG_INTERNAL_ID, "")),
        scheduled_time=_iso_datetime(log.get(const.DATA_LOG_SCHEDULED_TIME)),
        action_time=_iso_datetime(log.get(const.DATA_LOG_ACTION_TIME)),
        status=str(log.get(const.DATA_LOG_STATUS, "")),
    )


def _export_medication(
    medication: MedicationData, history: list[MedicationLogData]
) -> BackupMedication:
    return BackupMedication(
        internal_id=str(medication.get(const.DATA_MEDICATION_INTERNAL_ID, "")),
        name=medication.get(const.DATA_MEDICATION_NAME, ""),
        dosage=medication.get(const.DATA_MEDICATION_DOSAGE, ""),
        form=medication.get(const.DATA_MEDICATION_FORM, ""),
        notes=medication.get(const.DATA_MEDICATION_NOTES, ""),
        start_date=_iso_date(medication.get(const.DATA_MEDICATION_START_DATE)),
        end_date=_iso_date(medication.get(const.DATA_MEDICATION_END_DATE)),
        frequency_type=medication.get(const.DATA_MEDICATION_FREQUENCY_TYPE, ""),
        custom_interval=medication.get(const.DATA_MEDICATION_CUSTOM_INTERVAL),
        reminder_times=[
            format_reminder_time(reminder_time)
            for reminder_time in parse_reminder_times(
                medication.get(const.DATA_MEDICATION_REMINDER_TIMES)
            )
        ],
        history=[_export_log(log) for log in history],
    )


def _export_health_note(note: HealthNoteData) -> BackupHealthNote:
    return BackupHealthNote(
        internal_id=str(note.get(const.DATA_HEALTH_NOTE_INTERNAL_ID, "")),
        title=note.get(const.DATA_HEALTH_NOTE_TITLE, ""),
        note=note.get(const.DATA_HEALTH_NOTE_NOTE, ""),
        date=_iso_datetime(note.get(const.DATA_HEALTH_NOTE_DATE)),
    )


def export_backup(
    pets: Iterable[PetData],
    medications: Iterable[MedicationData],
    logs: Iterable[MedicationLogData],
    health_notes: Iterable[HealthNoteData] = (),
) -> list[BackupPet]:
    """Nest flat record lists into the backup tree.

    Records whose owner is not in the export (orphans) are left out and
    logged, since the tree has nowhere to put them.
    """
    logs_by_medication: dict[str, list[MedicationLogData]] = defaultdict(list)
    for log in logs:
        logs_by_medication[str(log.get(const.DATA_LOG_MEDICATION_ID))].append(log)

    medications_by_pet: dict[str, list[MedicationData]] = defaultdict(list)
    for medication in medications:
        medications_by_pet[str(medication.get(const.DATA_MEDICATION_PET_ID))].append(
            medication
        )

    notes_by_pet: dict[str, list[HealthNoteData]] = defaultdict(list)
    for note in health_notes:
        notes_by_pet[str(note.get(const.DATA_HEALTH_NOTE_PET_ID))].append(note)

    tree: list[BackupPet] = []
    exported_pets: set[str] = set()
    exported_medications: set[str] = set()
    for pet in pets:
        pet_id = str(pet.get(const.DATA_PET_INTERNAL_ID))
        exported_pets.add(pet_id)
        pet_medications = []
        for medication in medications_by_pet.get(pet_id, []):
            medication_id = str(medication.get(const.DATA_MEDICATION_INTERNAL_ID))
            exported_medications.add(medication_id)
            pet_medications.append(
                _export_medication(
                    medication, logs_by_medication.get(medication_id, [])
                )
            )
        tree.append(
            BackupPet(
                internal_id=pet_id,
                name=pet.get(const.DATA_PET_NAME, ""),
                species=pet.get(const.DATA_PET_SPECIES, ""),
                breed=pet.get(const.DATA_PET_BREED, ""),
                age=pet.get(const.DATA_PET_AGE, 0),
                gender=pet.get(const.DATA_PET_GENDER, ""),
                medications=pet_medications,
                health_notes=[
                    _export_health_note(note) for note in notes_by_pet.get(pet_id, [])
                ],
            )
        )

    orphan_medications = sum(
        len(items) for key, items in medications_by_pet.items() if key not in exported_pets
    )
    orphan_logs = sum(
        len(items)
        for key, items in logs_by_medication.items()
        if key not in exported_medications
    )
    if orphan_medications or orphan_logs:
        const.LOGGER.warning(
            "Backup: Skipped %d medication(s) and %d log(s) without an owner",
            orphan_medications,
            orphan_logs,
        )

    const.LOGGER.debug("Backup: Exported %d pet(s)", len(tree))
    return tree


# ==============================================================================
# RESTORE
# ==============================================================================


def _require_date(value: str, field: str, tz: tzinfo | None) -> date:
    parsed = dt_to_local_date(value, tz)
    if parsed is None:
        raise BackupValidationError(f"Invalid {field}: {value!r}")
    return parsed


def _require_datetime(value: str, field: str, tz: tzinfo | None) -> datetime:
    parsed = dt_parse(value, default_tzinfo=tz)
    if not isinstance(parsed, datetime):
        raise BackupValidationError(f"Invalid {field}: {value!r}")
    return parsed


def restore_backup(tree: Any, tz: tzinfo | None = None) -> RestoredData:
    """Validate a backup tree and flatten it into re-linked records.

    Every medication gets pet_id from the pet it is nested under, every log
    gets medication_id from its medication, every health note gets pet_id.
    Missing internal ids are regenerated.

    Raises:
        BackupValidationError: If the tree fails the schema or holds an
            unparseable date, time or reminder time
    """
    try:
        validated = BACKUP_SCHEMA(tree)
    except vol.Invalid as err:
        raise BackupValidationError(f"Invalid backup: {err}") from err

    restored = RestoredData(pets=[], medications=[], logs=[], health_notes=[])

    for pet_node in validated:
        pet_id = pet_node.get(const.DATA_PET_INTERNAL_ID) or str(uuid.uuid4())
        restored["pets"].append(
            PetData(
                internal_id=pet_id,
                name=pet_node[const.DATA_PET_NAME],
                species=pet_node[const.DATA_PET_SPECIES] or "",
                breed=pet_node[const.DATA_PET_BREED] or "",
                age=pet_node[const.DATA_PET_AGE],
                gender=pet_node[const.DATA_PET_GENDER] or "",
            )
        )

        for med_node in pet_node[const.BACKUP_PET_MEDICATIONS]:
            medication_id = med_node.get(const.DATA_MEDICATION_INTERNAL_ID) or str(
                uuid.uuid4()
            )
            raw_times = med_node[const.DATA_MEDICATION_REMINDER_TIMES]
            if any(dt_parse_time(raw) is None for raw in raw_times):
                raise BackupValidationError(
                    f"Invalid reminder_times for medication {medication_id}"
                )
            reminder_times = parse_reminder_times(raw_times, tz)
            restored["medications"].append(
                MedicationData(
                    internal_id=medication_id,
                    pet_id=pet_id,
                    name=med_node[const.DATA_MEDICATION_NAME],
                    dosage=med_node[const.DATA_MEDICATION_DOSAGE] or "",
                    form=med_node[const.DATA_MEDICATION_FORM] or "",
                    notes=med_node[const.DATA_MEDICATION_NOTES] or "",
                    start_date=_require_date(
                        med_node[const.DATA_MEDICATION_START_DATE], "start_date", tz
                    ),
                    end_date=_require_date(
                        med_node[const.DATA_MEDICATION_END_DATE], "end_date", tz
                    ),
                    frequency_type=med_node[const.DATA_MEDICATION_FREQUENCY_TYPE],
                    custom_interval=med_node[const.DATA_MEDICATION_CUSTOM_INTERVAL],
                    reminder_times=reminder_times,
                )
            )

            for log_node in med_node[const.BACKUP_MEDICATION_HISTORY]:
                restored["logs"].append(
                    MedicationLogData(
                        internal_id=log_node.get(const.DATA_LOG_INTERNAL_ID)
                        or str(uuid.uuid4()),
                        medication_id=medication_id,
                        scheduled_time=_require_datetime(
                            log_node[const.DATA_LOG_SCHEDULED_TIME],
                            "scheduled_time",
                            tz,
                        ),
                        action_time=_require_datetime(
                            log_node[const.DATA_LOG_ACTION_TIME], "action_time", tz
                        ),
                        status=log_node[const.DATA_LOG_STATUS],
                    )
                )

        for note_node in pet_node[const.BACKUP_PET_HEALTH_NOTES]:
            restored["health_notes"].append(
                HealthNoteData(
                    internal_id=note_node.get(const.DATA_HEALTH_NOTE_INTERNAL_ID)
                    or str(uuid.uuid4()),
                    pet_id=pet_id,
                    title=note_node[const.DATA_HEALTH_NOTE_TITLE],
                    note=note_node[const.DATA_HEALTH_NOTE_NOTE] or "",
                    date=_require_datetime(
                        note_node[const.DATA_HEALTH_NOTE_DATE], "date", tz
                    ),
                )
            )

    const.LOGGER.info(
        "Backup: Restored %d pet(s), %d medication(s), %d log(s), %d health note(s)",
        len(restored["pets"]),
        len(restored["medications"]),
        len(restored["logs"]),
        len(restored["health_notes"]),
    )
    return restored


# ==============================================================================
# JSON TEXT
# ==============================================================================


def encode_backup(
    pets: Iterable[PetData],
    medications: Iterable[MedicationData],
    logs: Iterable[MedicationLogData],
    health_notes: Iterable[HealthNoteData] = (),
) -> str:
    """Export records and serialize the tree as pretty-printed JSON text."""
    return json.dumps(
        export_backup(pets, medications, logs, health_notes),
        indent=2,
        ensure_ascii=False,
    )


def decode_backup(json_str: str, tz: tzinfo | None = None) -> RestoredData:
    """Parse backup JSON text and restore it.

    Raises:
        BackupValidationError: If the text is not JSON or the tree is invalid
    """
    try:
        tree = json.loads(json_str)
    except (json.JSONDecodeError, TypeError) as err:
        raise BackupValidationError(f"Backup is not valid JSON: {err}") from err
    return restore_backup(tree, tz)

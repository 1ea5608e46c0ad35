"""Record lifecycle helpers.

This module is the SINGLE SOURCE OF TRUTH for:
- Record field defaults
- Business logic validation
- Complete record structure building

### Build Functions
Each record type has a `build_<record>()` function that:
- Takes user_input with DATA_* keys
- Generates internal_id (UUID) for new records, preserves it on update
- Applies field defaults (user_input > existing > default)
- Returns a complete record dict ready for the caller to store

### Validation Functions
`validate_<record>_data()` functions return a dict of {field: error_key}
(empty if valid). Build functions raise EntityValidationError for the first
failing field.

### Log Writer
`build_medication_log()` is the write path for "mark taken/missed". It
resolves scheduled_time with dt_utils.resolve_dose_time(), the same function
the schedule engine uses, so the new log matches its dose exactly.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import TYPE_CHECKING, Any
import uuid

from . import const
from .type_defs import HealthNoteData, MedicationData, MedicationLogData, PetData
from .utils.dt_utils import (
    REMINDER_TIMES_SEPARATOR,
    dt_now_local,
    dt_parse,
    dt_to_local_date,
    parse_reminder_times,
    resolve_dose_time,
)

if TYPE_CHECKING:
    from datetime import tzinfo

    from .engines.schedule_engine import ScheduledDose
    from .type_defs import UserInput


# ==============================================================================
# EXCEPTIONS
# ==============================================================================


class EntityValidationError(Exception):
    """Validation error with field-specific information for form highlighting.

    Attributes:
        field: The DATA_* constant identifying the field that failed
        translation_key: The TRANS_KEY_* constant for the error message
        placeholders: Optional dict for translation string placeholders

    Example:
        raise EntityValidationError(
            field=const.DATA_MEDICATION_CUSTOM_INTERVAL,
            translation_key=const.TRANS_KEY_INVALID_CUSTOM_INTERVAL,
            placeholders={"value": "0"},
        )
    """

    def __init__(
        self,
        field: str,
        translation_key: str,
        placeholders: dict[str, str] | None = None,
    ) -> None:
        """Initialize EntityValidationError."""
        self.field = field
        self.translation_key = translation_key
        self.placeholders = placeholders or {}
        super().__init__(translation_key)


def _raise_first_error(errors: dict[str, str], data: dict[str, Any]) -> None:
    """Raise EntityValidationError for the first entry of an errors dict."""
    if not errors:
        return
    field, translation_key = next(iter(errors.items()))
    raise EntityValidationError(
        field=field,
        translation_key=translation_key,
        placeholders={"value": str(data.get(field, const.SENTINEL_EMPTY))},
    )


def _field_getter(user_input: UserInput, existing: dict[str, Any] | None):
    """Return a lookup with priority user_input > existing > default."""

    def get_field(data_key: str, default: Any) -> Any:
        if data_key in user_input:
            return user_input[data_key]
        if existing is not None:
            return existing.get(data_key, default)
        return default

    return get_field


def _new_or_existing_id(existing: dict[str, Any] | None, id_key: str) -> str:
    """Generate a UUID for create, preserve the existing id for update."""
    if existing is None:
        return str(uuid.uuid4())
    return str(existing.get(id_key) or uuid.uuid4())


# ==============================================================================
# PETS
# ==============================================================================


def validate_pet_data(data: UserInput, *, is_update: bool = False) -> dict[str, str]:
    """Validate pet business rules.

    Validation Rules:
        1. Name not empty (create) or not blank (update if provided)
        2. Age is a non-negative integer (if provided)
    """
    errors: dict[str, str] = {}

    name = data.get(const.DATA_PET_NAME, "")
    if isinstance(name, str):
        name = name.strip()
    if (not is_update or const.DATA_PET_NAME in data) and not name:
        errors[const.DATA_PET_NAME] = const.TRANS_KEY_INVALID_PET_NAME
        return errors

    if const.DATA_PET_AGE in data:
        age = data[const.DATA_PET_AGE]
        if isinstance(age, bool) or not isinstance(age, int) or age < 0:
            errors[const.DATA_PET_AGE] = const.TRANS_KEY_INVALID_PET_AGE

    return errors


def build_pet(user_input: UserInput, existing: PetData | None = None) -> PetData:
    """Build pet data for create or update operations.

    Raises:
        EntityValidationError: If the merged data fails validation
    """
    get_field = _field_getter(user_input, existing)  # type: ignore[arg-type]

    merged = {
        const.DATA_PET_NAME: get_field(const.DATA_PET_NAME, ""),
        const.DATA_PET_AGE: get_field(const.DATA_PET_AGE, 0),
    }
    _raise_first_error(validate_pet_data(merged), merged)

    return PetData(
        internal_id=_new_or_existing_id(existing, const.DATA_PET_INTERNAL_ID),  # type: ignore[arg-type]
        name=str(merged[const.DATA_PET_NAME]).strip(),
        species=str(get_field(const.DATA_PET_SPECIES, const.SENTINEL_EMPTY)),
        breed=str(get_field(const.DATA_PET_BREED, const.SENTINEL_EMPTY)),
        age=int(merged[const.DATA_PET_AGE]),
        gender=str(get_field(const.DATA_PET_GENDER, const.SENTINEL_EMPTY)),
    )


# ==============================================================================
# MEDICATIONS
# ==============================================================================


def validate_medication_data(
    data: UserInput,
    *,
    is_update: bool = False,
    tz: tzinfo | None = None,
) -> dict[str, str]:
    """Validate medication business rules - SINGLE SOURCE OF TRUTH.

    Works with DATA_* keys. On update, only fields present in data are checked
    (except the date ordering rule, which needs both dates).

    Validation Rules:
        1. Name not empty
        2. Pet reference present (create)
        3. Start and end dates parse; start <= end
        4. Frequency is a known tag
        5. Custom interval is an integer >= 1 for "Custom Interval"
        6. At least one valid reminder time; no invalid entries

    Returns:
        Dict of errors: {field: translation_key}. Empty dict means valid.
    """
    errors: dict[str, str] = {}

    def check(key: str) -> bool:
        return not is_update or key in data

    # === 1. Name ===
    if check(const.DATA_MEDICATION_NAME):
        name = data.get(const.DATA_MEDICATION_NAME, "")
        if not isinstance(name, str) or not name.strip():
            errors[const.DATA_MEDICATION_NAME] = const.TRANS_KEY_INVALID_MEDICATION_NAME

    # === 2. Pet reference ===
    if not is_update and not data.get(const.DATA_MEDICATION_PET_ID):
        errors[const.DATA_MEDICATION_PET_ID] = const.TRANS_KEY_INVALID_MEDICATION_PET

    # === 3. Dates ===
    start = end = None
    for key in (const.DATA_MEDICATION_START_DATE, const.DATA_MEDICATION_END_DATE):
        if not check(key):
            continue
        parsed = dt_to_local_date(data.get(key), tz)
        if parsed is None:
            errors[key] = const.TRANS_KEY_INVALID_DATE
        elif key == const.DATA_MEDICATION_START_DATE:
            start = parsed
        else:
            end = parsed
    if start is not None and end is not None and end < start:
        errors[const.DATA_MEDICATION_END_DATE] = const.TRANS_KEY_END_DATE_BEFORE_START

    # === 4/5. Frequency and interval ===
    if check(const.DATA_MEDICATION_FREQUENCY_TYPE):
        frequency = data.get(const.DATA_MEDICATION_FREQUENCY_TYPE)
        if frequency not in const.FREQUENCY_OPTIONS:
            errors[const.DATA_MEDICATION_FREQUENCY_TYPE] = (
                const.TRANS_KEY_INVALID_FREQUENCY
            )
        elif frequency == const.FREQUENCY_CUSTOM_INTERVAL:
            interval = data.get(const.DATA_MEDICATION_CUSTOM_INTERVAL)
            if (
                isinstance(interval, bool)
                or not isinstance(interval, int)
                or interval < const.MIN_CUSTOM_INTERVAL
            ):
                errors[const.DATA_MEDICATION_CUSTOM_INTERVAL] = (
                    const.TRANS_KEY_INVALID_CUSTOM_INTERVAL
                )

    # === 6. Reminder times ===
    if check(const.DATA_MEDICATION_REMINDER_TIMES):
        raw_times = data.get(const.DATA_MEDICATION_REMINDER_TIMES)
        if not raw_times:
            errors[const.DATA_MEDICATION_REMINDER_TIMES] = (
                const.TRANS_KEY_REMINDER_TIMES_REQUIRED
            )
        else:
            if isinstance(raw_times, str):
                raw_list = [
                    raw
                    for raw in raw_times.split(REMINDER_TIMES_SEPARATOR)
                    if raw.strip()
                ]
            elif isinstance(raw_times, (list, tuple, set)):
                raw_list = [raw for raw in raw_times if raw != ""]
            else:
                raw_list = []
            if not raw_list or len(parse_reminder_times(raw_list, tz)) == 0:
                errors[const.DATA_MEDICATION_REMINDER_TIMES] = (
                    const.TRANS_KEY_REMINDER_TIMES_REQUIRED
                )
            elif any(len(parse_reminder_times([raw], tz)) == 0 for raw in raw_list):
                errors[const.DATA_MEDICATION_REMINDER_TIMES] = (
                    const.TRANS_KEY_INVALID_REMINDER_TIME
                )

    return errors


def build_medication(
    user_input: UserInput,
    existing: MedicationData | None = None,
    tz: tzinfo | None = None,
) -> MedicationData:
    """Build medication data for create or update operations.

    One function handles both create (existing=None) and update
    (existing=MedicationData). Dates are stored as local calendar days and
    reminder times as sorted, distinct hour:minute values.

    Raises:
        EntityValidationError: If the merged data fails validation

    Examples:
        # CREATE mode
        med = build_medication({
            DATA_MEDICATION_PET_ID: pet["internal_id"],
            DATA_MEDICATION_NAME: "Apoquel",
            DATA_MEDICATION_START_DATE: "2024-01-01",
            DATA_MEDICATION_END_DATE: "2024-01-31",
            DATA_MEDICATION_FREQUENCY_TYPE: FREQUENCY_DAILY,
            DATA_MEDICATION_REMINDER_TIMES: ["08:00", "20:00"],
        })

        # UPDATE mode - preserves existing fields not in user_input
        med = build_medication({DATA_MEDICATION_DOSAGE: "5 mg"}, existing=med)
    """
    get_field = _field_getter(user_input, existing)  # type: ignore[arg-type]

    frequency = get_field(const.DATA_MEDICATION_FREQUENCY_TYPE, const.FREQUENCY_DAILY)
    merged: dict[str, Any] = {
        const.DATA_MEDICATION_NAME: get_field(const.DATA_MEDICATION_NAME, ""),
        const.DATA_MEDICATION_PET_ID: get_field(const.DATA_MEDICATION_PET_ID, None),
        const.DATA_MEDICATION_START_DATE: get_field(
            const.DATA_MEDICATION_START_DATE, None
        ),
        const.DATA_MEDICATION_END_DATE: get_field(const.DATA_MEDICATION_END_DATE, None),
        const.DATA_MEDICATION_FREQUENCY_TYPE: frequency,
        const.DATA_MEDICATION_CUSTOM_INTERVAL: get_field(
            const.DATA_MEDICATION_CUSTOM_INTERVAL, None
        ),
        const.DATA_MEDICATION_REMINDER_TIMES: get_field(
            const.DATA_MEDICATION_REMINDER_TIMES, []
        ),
    }
    _raise_first_error(validate_medication_data(merged, tz=tz), merged)

    return MedicationData(
        internal_id=_new_or_existing_id(existing, const.DATA_MEDICATION_INTERNAL_ID),  # type: ignore[arg-type]
        pet_id=str(merged[const.DATA_MEDICATION_PET_ID]),
        name=str(merged[const.DATA_MEDICATION_NAME]).strip(),
        dosage=str(get_field(const.DATA_MEDICATION_DOSAGE, const.SENTINEL_EMPTY)),
        form=str(get_field(const.DATA_MEDICATION_FORM, const.SENTINEL_EMPTY)),
        notes=str(get_field(const.DATA_MEDICATION_NOTES, const.SENTINEL_EMPTY)),
        start_date=dt_to_local_date(merged[const.DATA_MEDICATION_START_DATE], tz),  # type: ignore[typeddict-item]
        end_date=dt_to_local_date(merged[const.DATA_MEDICATION_END_DATE], tz),  # type: ignore[typeddict-item]
        frequency_type=frequency,
        # Interval only kept for the frequency that uses it
        custom_interval=(
            merged[const.DATA_MEDICATION_CUSTOM_INTERVAL]
            if frequency == const.FREQUENCY_CUSTOM_INTERVAL
            else None
        ),
        reminder_times=parse_reminder_times(
            merged[const.DATA_MEDICATION_REMINDER_TIMES], tz
        ),
    )


# ==============================================================================
# MEDICATION LOGS (log writer)
# ==============================================================================


def build_medication_log(
    medication_id: str,
    on_date: date | datetime | str,
    reminder_time: time | datetime | str,
    status: str,
    action_time: datetime | None = None,
    tz: tzinfo | None = None,
) -> MedicationLogData:
    """Build a taken/missed log for the dose at reminder_time on on_date.

    Args:
        medication_id: Internal id of the medication being answered
        on_date: Calendar day of the dose
        reminder_time: Reminder clock time of the dose
        status: const.LOG_STATUS_TAKEN or const.LOG_STATUS_MISSED
        action_time: When the user acted. Defaults to now (local).
        tz: Timezone override for resolving the dose time

    Raises:
        EntityValidationError: Unknown status, missing medication id, or an
            unparseable day/time
    """
    if status not in const.LOG_STATUS_OPTIONS:
        raise EntityValidationError(
            field=const.DATA_LOG_STATUS,
            translation_key=const.TRANS_KEY_INVALID_LOG_STATUS,
            placeholders={"value": str(status)},
        )
    if not medication_id:
        raise EntityValidationError(
            field=const.DATA_LOG_MEDICATION_ID,
            translation_key=const.TRANS_KEY_INVALID_LOG_MEDICATION,
        )

    day = dt_to_local_date(on_date, tz)
    if day is None:
        raise EntityValidationError(
            field=const.DATA_LOG_SCHEDULED_TIME,
            translation_key=const.TRANS_KEY_INVALID_DATE,
            placeholders={"value": str(on_date)},
        )
    parsed_times = parse_reminder_times([reminder_time], tz)
    if not parsed_times:
        raise EntityValidationError(
            field=const.DATA_LOG_SCHEDULED_TIME,
            translation_key=const.TRANS_KEY_INVALID_REMINDER_TIME,
            placeholders={"value": str(reminder_time)},
        )

    return MedicationLogData(
        internal_id=str(uuid.uuid4()),
        medication_id=str(medication_id),
        scheduled_time=resolve_dose_time(day, parsed_times[0], tz),
        action_time=action_time or dt_now_local(tz),
        status=status,
    )


def build_log_for_dose(
    dose: ScheduledDose,
    status: str,
    action_time: datetime | None = None,
) -> MedicationLogData:
    """Build a taken/missed log answering a materialized dose.

    Resolves in the dose's own timezone so the log key equals dose.key.
    """
    return build_medication_log(
        dose.medication_id,
        dose.scheduled_time.date(),
        dose.reminder_time,
        status,
        action_time=action_time,
        tz=dose.scheduled_time.tzinfo,
    )


# ==============================================================================
# HEALTH NOTES
# ==============================================================================


def build_health_note(
    user_input: UserInput,
    existing: HealthNoteData | None = None,
    tz: tzinfo | None = None,
) -> HealthNoteData:
    """Build health note data for create or update operations.

    Raises:
        EntityValidationError: If the title is empty
    """
    get_field = _field_getter(user_input, existing)  # type: ignore[arg-type]

    raw_title = get_field(const.DATA_HEALTH_NOTE_TITLE, "")
    title = str(raw_title).strip() if raw_title else ""
    if not title:
        raise EntityValidationError(
            field=const.DATA_HEALTH_NOTE_TITLE,
            translation_key=const.TRANS_KEY_INVALID_HEALTH_NOTE_TITLE,
        )

    note_date = dt_parse(get_field(const.DATA_HEALTH_NOTE_DATE, None), tz)
    if not isinstance(note_date, datetime):
        note_date = dt_now_local(tz)

    return HealthNoteData(
        internal_id=_new_or_existing_id(existing, const.DATA_HEALTH_NOTE_INTERNAL_ID),  # type: ignore[arg-type]
        pet_id=str(get_field(const.DATA_HEALTH_NOTE_PET_ID, const.SENTINEL_EMPTY)),
        title=title,
        note=str(get_field(const.DATA_HEALTH_NOTE_NOTE, const.SENTINEL_EMPTY)),
        date=note_date,
    )

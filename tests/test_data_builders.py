"""Tests for data_builders.py record builders, validation and the log writer."""

from datetime import date, time
from zoneinfo import ZoneInfo

from freezegun import freeze_time
import pytest

from tailtimer import const
from tailtimer.data_builders import (
    EntityValidationError,
    build_health_note,
    build_log_for_dose,
    build_medication,
    build_medication_log,
    build_pet,
    validate_medication_data,
    validate_pet_data,
)
from tailtimer.engines.schedule_engine import doses_on

from conftest import make_medication, utc


def medication_input(**overrides: object) -> dict:
    """Valid medication form input."""
    data = {
        const.DATA_MEDICATION_PET_ID: "pet-1",
        const.DATA_MEDICATION_NAME: "Apoquel",
        const.DATA_MEDICATION_DOSAGE: "5.4 mg",
        const.DATA_MEDICATION_START_DATE: "2024-01-01",
        const.DATA_MEDICATION_END_DATE: "2024-01-31",
        const.DATA_MEDICATION_FREQUENCY_TYPE: const.FREQUENCY_DAILY,
        const.DATA_MEDICATION_REMINDER_TIMES: ["20:00", "08:00"],
    }
    data.update(overrides)
    return data


# =============================================================================
# Pets
# =============================================================================


class TestPetBuilder:
    """Pet create/update."""

    def test_create_generates_id(self) -> None:
        """New pets get a UUID and defaults."""
        pet = build_pet({const.DATA_PET_NAME: "  Biscuit  "})

        assert pet[const.DATA_PET_NAME] == "Biscuit"
        assert len(pet[const.DATA_PET_INTERNAL_ID]) == 36
        assert pet[const.DATA_PET_AGE] == 0

    def test_update_preserves_existing(self) -> None:
        """Fields missing from user_input come from the existing record."""
        pet = build_pet({const.DATA_PET_NAME: "Biscuit", const.DATA_PET_AGE: 3})
        updated = build_pet({const.DATA_PET_AGE: 4}, existing=pet)

        assert updated[const.DATA_PET_INTERNAL_ID] == pet[const.DATA_PET_INTERNAL_ID]
        assert updated[const.DATA_PET_NAME] == "Biscuit"
        assert updated[const.DATA_PET_AGE] == 4

    def test_blank_name_rejected(self) -> None:
        """A whitespace name raises with the name field."""
        with pytest.raises(EntityValidationError) as err:
            build_pet({const.DATA_PET_NAME: "   "})

        assert err.value.field == const.DATA_PET_NAME
        assert err.value.translation_key == const.TRANS_KEY_INVALID_PET_NAME

    def test_validate_age(self) -> None:
        """Negative ages are reported."""
        errors = validate_pet_data({const.DATA_PET_NAME: "Rex", const.DATA_PET_AGE: -1})

        assert errors == {const.DATA_PET_AGE: const.TRANS_KEY_INVALID_PET_AGE}

    def test_validate_update_partial(self) -> None:
        """Update validation only checks the fields provided."""
        assert validate_pet_data({const.DATA_PET_AGE: 2}, is_update=True) == {}


# =============================================================================
# Medications
# =============================================================================


class TestValidateMedication:
    """Business rules for medication input."""

    def test_valid_input(self) -> None:
        """A complete form validates cleanly."""
        assert validate_medication_data(medication_input()) == {}

    def test_end_before_start(self) -> None:
        """end_date before start_date is reported on end_date."""
        errors = validate_medication_data(
            medication_input(**{const.DATA_MEDICATION_END_DATE: "2023-12-31"})
        )

        assert errors == {
            const.DATA_MEDICATION_END_DATE: const.TRANS_KEY_END_DATE_BEFORE_START
        }

    @pytest.mark.parametrize("interval", [0, -1, None, "2", True])
    def test_custom_interval_must_be_positive_int(self, interval: object) -> None:
        """Custom Interval needs an integer interval of at least 1."""
        errors = validate_medication_data(
            medication_input(
                **{
                    const.DATA_MEDICATION_FREQUENCY_TYPE: const.FREQUENCY_CUSTOM_INTERVAL,
                    const.DATA_MEDICATION_CUSTOM_INTERVAL: interval,
                }
            )
        )

        assert errors == {
            const.DATA_MEDICATION_CUSTOM_INTERVAL: const.TRANS_KEY_INVALID_CUSTOM_INTERVAL
        }

    def test_unknown_frequency(self) -> None:
        """Unknown frequency tags are rejected."""
        errors = validate_medication_data(
            medication_input(**{const.DATA_MEDICATION_FREQUENCY_TYPE: "Monthly"})
        )

        assert errors == {
            const.DATA_MEDICATION_FREQUENCY_TYPE: const.TRANS_KEY_INVALID_FREQUENCY
        }

    def test_reminder_times_required(self) -> None:
        """An empty reminder list is rejected."""
        errors = validate_medication_data(
            medication_input(**{const.DATA_MEDICATION_REMINDER_TIMES: []})
        )

        assert errors == {
            const.DATA_MEDICATION_REMINDER_TIMES: const.TRANS_KEY_REMINDER_TIMES_REQUIRED
        }

    def test_invalid_reminder_time_entry(self) -> None:
        """One bad entry among good ones is reported."""
        errors = validate_medication_data(
            medication_input(**{const.DATA_MEDICATION_REMINDER_TIMES: ["08:00", "25:00"]})
        )

        assert errors == {
            const.DATA_MEDICATION_REMINDER_TIMES: const.TRANS_KEY_INVALID_REMINDER_TIME
        }

    def test_missing_pet_and_name(self) -> None:
        """Create requires a pet reference and a name."""
        errors = validate_medication_data(
            medication_input(
                **{const.DATA_MEDICATION_PET_ID: None, const.DATA_MEDICATION_NAME: " "}
            )
        )

        assert errors == {
            const.DATA_MEDICATION_NAME: const.TRANS_KEY_INVALID_MEDICATION_NAME,
            const.DATA_MEDICATION_PET_ID: const.TRANS_KEY_INVALID_MEDICATION_PET,
        }


class TestMedicationBuilder:
    """Medication create/update."""

    def test_create_normalizes_fields(self) -> None:
        """Dates become date objects and times sorted time objects."""
        med = build_medication(medication_input())

        assert med[const.DATA_MEDICATION_START_DATE] == date(2024, 1, 1)
        assert med[const.DATA_MEDICATION_END_DATE] == date(2024, 1, 31)
        assert med[const.DATA_MEDICATION_REMINDER_TIMES] == [time(8, 0), time(20, 0)]
        assert med[const.DATA_MEDICATION_CUSTOM_INTERVAL] is None

    def test_update_keeps_id_and_merges(self) -> None:
        """Update changes only what user_input provides."""
        med = build_medication(medication_input())
        updated = build_medication(
            {const.DATA_MEDICATION_REMINDER_TIMES: "09:30"}, existing=med
        )

        assert updated[const.DATA_MEDICATION_INTERNAL_ID] == med[
            const.DATA_MEDICATION_INTERNAL_ID
        ]
        assert updated[const.DATA_MEDICATION_NAME] == "Apoquel"
        assert updated[const.DATA_MEDICATION_REMINDER_TIMES] == [time(9, 30)]

    def test_interval_dropped_for_daily(self) -> None:
        """custom_interval is only stored for Custom Interval courses."""
        med = build_medication(
            medication_input(**{const.DATA_MEDICATION_CUSTOM_INTERVAL: 3})
        )

        assert med[const.DATA_MEDICATION_CUSTOM_INTERVAL] is None

    def test_invalid_raises_first_error(self) -> None:
        """Invalid data raises EntityValidationError with placeholders."""
        with pytest.raises(EntityValidationError) as err:
            build_medication(
                medication_input(**{const.DATA_MEDICATION_FREQUENCY_TYPE: "Hourly"})
            )

        assert err.value.field == const.DATA_MEDICATION_FREQUENCY_TYPE
        assert err.value.placeholders == {"value": "Hourly"}


# =============================================================================
# Log writer
# =============================================================================


class TestMedicationLogBuilder:
    """The taken/missed write path."""

    def test_scheduled_time_resolved(self) -> None:
        """Scheduled time is the day plus the reminder time, seconds zeroed."""
        log = build_medication_log(
            "med-1", "2024-01-05", "08:00", const.LOG_STATUS_TAKEN, utc(2024, 1, 5, 8, 3)
        )

        assert log[const.DATA_LOG_SCHEDULED_TIME] == utc(2024, 1, 5, 8, 0)
        assert log[const.DATA_LOG_ACTION_TIME] == utc(2024, 1, 5, 8, 3)
        assert log[const.DATA_LOG_STATUS] == const.LOG_STATUS_TAKEN

    @freeze_time("2024-01-05 08:10:00")
    def test_action_time_defaults_to_now(self) -> None:
        """Without action_time the current time is recorded."""
        log = build_medication_log("med-1", date(2024, 1, 5), time(8, 0), "missed")

        assert log[const.DATA_LOG_ACTION_TIME] == utc(2024, 1, 5, 8, 10)

    def test_timezone_override(self) -> None:
        """Resolution honors an explicit timezone."""
        paris = ZoneInfo("Europe/Paris")
        log = build_medication_log(
            "med-1", date(2024, 7, 1), time(8, 0), const.LOG_STATUS_TAKEN, tz=paris
        )

        assert log[const.DATA_LOG_SCHEDULED_TIME] == utc(2024, 7, 1, 6, 0)

    @pytest.mark.parametrize(
        ("args", "field", "key"),
        [
            (("med-1", "2024-01-05", "08:00", "skipped"), const.DATA_LOG_STATUS, const.TRANS_KEY_INVALID_LOG_STATUS),
            (("", "2024-01-05", "08:00", "taken"), const.DATA_LOG_MEDICATION_ID, const.TRANS_KEY_INVALID_LOG_MEDICATION),
            (("med-1", "someday", "08:00", "taken"), const.DATA_LOG_SCHEDULED_TIME, const.TRANS_KEY_INVALID_DATE),
            (("med-1", "2024-01-05", "8 o'clock", "taken"), const.DATA_LOG_SCHEDULED_TIME, const.TRANS_KEY_INVALID_REMINDER_TIME),
        ],
    )
    def test_invalid_input(self, args: tuple, field: str, key: str) -> None:
        """Bad status, medication, day or time raise."""
        with pytest.raises(EntityValidationError) as err:
            build_medication_log(*args)

        assert err.value.field == field
        assert err.value.translation_key == key

    def test_log_for_dose(self) -> None:
        """build_log_for_dose stamps the dose's own scheduled time."""
        (dose,) = doses_on(date(2024, 1, 5), [make_medication(times=["18:45"])])

        log = build_log_for_dose(dose, const.LOG_STATUS_TAKEN)

        assert log[const.DATA_LOG_MEDICATION_ID] == "med-1"
        assert log[const.DATA_LOG_SCHEDULED_TIME] == dose.scheduled_time


# =============================================================================
# Health notes
# =============================================================================


class TestHealthNoteBuilder:
    """Health note create."""

    def test_create(self) -> None:
        """Title and date are stored; pet_id links the note."""
        note = build_health_note(
            {
                const.DATA_HEALTH_NOTE_PET_ID: "pet-1",
                const.DATA_HEALTH_NOTE_TITLE: "Vet visit",
                const.DATA_HEALTH_NOTE_DATE: "2024-01-05T10:00:00+00:00",
            }
        )

        assert note[const.DATA_HEALTH_NOTE_TITLE] == "Vet visit"
        assert note[const.DATA_HEALTH_NOTE_DATE] == utc(2024, 1, 5, 10)
        assert note[const.DATA_HEALTH_NOTE_NOTE] == ""

    def test_missing_title(self) -> None:
        """A note needs a title."""
        with pytest.raises(EntityValidationError):
            build_health_note({const.DATA_HEALTH_NOTE_TITLE: ""})

"""Shared fixtures for TailTimer tests."""

from collections.abc import Iterator
from datetime import UTC, date, datetime, time
from typing import Any
import uuid

import pytest

from tailtimer import const
from tailtimer.type_defs import MedicationData, MedicationLogData, PetData
from tailtimer.utils import dt_utils


@pytest.fixture(autouse=True)
def utc_default_timezone() -> Iterator[None]:
    """Pin the package default timezone to UTC for every test."""
    previous = dt_utils.get_default_timezone()
    dt_utils.set_default_timezone(UTC)
    yield
    dt_utils.set_default_timezone(previous)


# =============================================================================
# Record factories
# =============================================================================


def make_pet(name: str = "Biscuit", pet_id: str | None = None, **extra: Any) -> PetData:
    """Create a pet record."""
    pet: dict[str, Any] = {
        const.DATA_PET_INTERNAL_ID: pet_id or str(uuid.uuid4()),
        const.DATA_PET_NAME: name,
        const.DATA_PET_SPECIES: "Dog",
        const.DATA_PET_BREED: "Beagle",
        const.DATA_PET_AGE: 4,
        const.DATA_PET_GENDER: "Female",
    }
    pet.update(extra)
    return pet  # type: ignore[return-value]


def make_medication(
    pet_id: str = "pet-1",
    medication_id: str = "med-1",
    *,
    name: str = "Apoquel",
    start: date = date(2024, 1, 1),
    end: date = date(2024, 1, 31),
    frequency: str = const.FREQUENCY_DAILY,
    interval: Any = None,
    times: list[Any] | None = None,
    dosage: str = "5.4 mg",
) -> MedicationData:
    """Create a medication record (Daily 08:00 in January 2024 by default)."""
    return {  # type: ignore[return-value]
        const.DATA_MEDICATION_INTERNAL_ID: medication_id,
        const.DATA_MEDICATION_PET_ID: pet_id,
        const.DATA_MEDICATION_NAME: name,
        const.DATA_MEDICATION_DOSAGE: dosage,
        const.DATA_MEDICATION_FORM: "Tablet",
        const.DATA_MEDICATION_NOTES: "",
        const.DATA_MEDICATION_START_DATE: start,
        const.DATA_MEDICATION_END_DATE: end,
        const.DATA_MEDICATION_FREQUENCY_TYPE: frequency,
        const.DATA_MEDICATION_CUSTOM_INTERVAL: interval,
        const.DATA_MEDICATION_REMINDER_TIMES: (
            times if times is not None else [time(8, 0)]
        ),
    }


def make_log(
    medication_id: str,
    scheduled: datetime,
    status: str = const.LOG_STATUS_TAKEN,
    action: datetime | None = None,
    log_id: str | None = None,
) -> MedicationLogData:
    """Create a log record for an already-resolved scheduled time."""
    return {
        const.DATA_LOG_INTERNAL_ID: log_id or str(uuid.uuid4()),
        const.DATA_LOG_MEDICATION_ID: medication_id,
        const.DATA_LOG_SCHEDULED_TIME: scheduled,
        const.DATA_LOG_ACTION_TIME: action or scheduled,
        const.DATA_LOG_STATUS: status,
    }  # type: ignore[return-value]


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    """Create a UTC datetime."""
    return datetime(year, month, day, hour, minute, tzinfo=UTC)


@pytest.fixture
def pet() -> PetData:
    """Return a single pet with a fixed id."""
    return make_pet("Biscuit", pet_id="pet-1")


@pytest.fixture
def daily_medication() -> MedicationData:
    """Daily medication at 08:00 and 20:00 through January 2024."""
    return make_medication(times=[time(8, 0), time(20, 0)])

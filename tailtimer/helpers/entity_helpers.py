# File: helpers/entity_helpers.py
"""Record lookup and display-support helpers for TailTimer.

Pure functions over the flat record lists: id/name lookups, per-pet
filtering, active-course counts, and the display bands used by dashboards.
"""

from __future__ import annotations

from collections.abc import Iterable
import zlib
from typing import TYPE_CHECKING, Any

from .. import const
from ..engines.statistics_engine import filter_medications
from ..utils.dt_utils import dt_to_local_date, dt_today_local
from ..utils.math_utils import clamp

if TYPE_CHECKING:
    from datetime import date, datetime, tzinfo

    from ..type_defs import MedicationData, PetData


# ==============================================================================
# Lookups
# ==============================================================================


def get_item_by_id(
    items: Iterable[dict[str, Any]], item_id: str | None
) -> dict[str, Any] | None:
    """Return the first record whose internal_id equals item_id, or None."""
    if not item_id:
        return None
    for item in items:
        if item.get(const.DATA_INTERNAL_ID) == item_id:
            return item
    return None


def get_pet_id_by_name(pets: Iterable[PetData], pet_name: str) -> str | None:
    """Look up a pet's internal ID (UUID) by name.

    Returns:
        The internal ID of the first pet with that name, or None if not found.
    """
    for pet in pets:
        if pet.get(const.DATA_PET_NAME) == pet_name:
            return pet.get(const.DATA_PET_INTERNAL_ID)
    return None


def get_pet_name_by_id(pets: Iterable[PetData], pet_id: str | None) -> str | None:
    """Retrieve the pet name for a given pet_id, or None if not found."""
    pet_info = get_item_by_id(pets, pet_id)  # type: ignore[arg-type]
    if pet_info:
        return pet_info.get(const.DATA_PET_NAME)
    return None


def pet_names_by_id(pets: Iterable[PetData]) -> dict[str, str]:
    """Map pet internal_id → name (input for plan_reschedule_all)."""
    return {
        str(pet.get(const.DATA_PET_INTERNAL_ID)): pet.get(const.DATA_PET_NAME, "")
        for pet in pets
    }


# ==============================================================================
# Active Courses
# ==============================================================================


def active_medications(
    medications: Iterable[MedicationData],
    on_date: date | datetime | str | None = None,
    tz: tzinfo | None = None,
) -> list[MedicationData]:
    """Return medications whose course has not ended by on_date.

    This is the "active medications" count on a pet's profile: a course that
    starts in the future still counts. Whether a dose is due on a specific day
    is answered by schedule_engine.is_medication_active().

    Args:
        medications: Medication records
        on_date: Reference day. Defaults to today (local).
        tz: Timezone override
    """
    reference = dt_to_local_date(on_date, tz) if on_date else dt_today_local(tz)
    if reference is None:
        return []

    result: list[MedicationData] = []
    for medication in medications:
        end_date = dt_to_local_date(medication.get(const.DATA_MEDICATION_END_DATE), tz)
        if end_date is not None and end_date >= reference:
            result.append(medication)
    return result


def count_active_medications(
    medications: Iterable[MedicationData],
    pet_id: str | None = None,
    on_date: date | datetime | str | None = None,
    tz: tzinfo | None = None,
) -> int:
    """Count active courses, optionally for one pet."""
    if pet_id is not None:
        medications = filter_medications(medications, pet_id)
    return len(active_medications(medications, on_date, tz))


# ==============================================================================
# Display Support
# ==============================================================================


def pet_palette_index(pet_id: str) -> int:
    """Return a stable palette index for a pet.

    Derived from the pet's internal id (not its name), so renaming a pet keeps
    its color and two pets with the same name can still differ. crc32 is used
    because Python's str hash is salted per process.
    """
    return zlib.crc32(pet_id.encode("utf-8")) % len(const.PET_COLOR_PALETTE)


def pet_color(pet_id: str) -> str:
    """Return the palette color name for a pet."""
    return const.PET_COLOR_PALETTE[pet_palette_index(pet_id)]


def adherence_level(adherence: float, logged: int = 1) -> str:
    """Band an adherence percentage for display.

    Args:
        adherence: Percentage (values outside 0-100 are clamped)
        logged: Number of taken + missed logs behind the figure. Zero means
            there is no data, whatever the percentage says.

    Returns:
        One of const.ADHERENCE_LEVEL_* values.

    Examples:
        adherence_level(92.5) → "good"
        adherence_level(65.0) → "fair"
        adherence_level(10.0) → "poor"
        adherence_level(0.0, logged=0) → "none"
    """
    if logged <= 0:
        return const.ADHERENCE_LEVEL_NONE
    value = clamp(adherence, 0.0, 100.0)
    if value >= const.ADHERENCE_THRESHOLD_GOOD:
        return const.ADHERENCE_LEVEL_GOOD
    if value >= const.ADHERENCE_THRESHOLD_FAIR:
        return const.ADHERENCE_LEVEL_FAIR
    return const.ADHERENCE_LEVEL_POOR

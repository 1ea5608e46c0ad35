# File: notification_helper.py
"""Builds device reminder requests for the notification collaborator.

This module never talks to a notification service. It turns medication
records into plain request dicts (identifier, text, trigger fields) that the
platform layer registers, and tells that layer which identifiers to cancel
when a medication's schedule changes.

Settings (sound on/off, snooze minutes) are passed in explicitly on every
call and validated with voluptuous. Nothing is read from process-wide state.
All texts are referenced from constants.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, time, timedelta
from typing import TYPE_CHECKING, Any
import uuid

import voluptuous as vol

from . import const
from .type_defs import NotificationSettings, ReminderRequest, ReminderUpdatePlan
from .utils.dt_utils import (
    dt_now_local,
    dt_to_local_date,
    format_reminder_time,
    parse_reminder_times,
)

if TYPE_CHECKING:
    from datetime import tzinfo

    from .type_defs import MedicationData


# ==============================================================================
# SETTINGS
# ==============================================================================

NOTIFICATION_SETTINGS_SCHEMA = vol.Schema(
    {
        vol.Optional(
            const.CONF_SOUND_ENABLED, default=const.DEFAULT_SOUND_ENABLED
        ): vol.Boolean(),
        vol.Optional(
            const.CONF_SNOOZE_MINUTES, default=const.DEFAULT_SNOOZE_MINUTES
        ): vol.All(vol.Coerce(int), vol.Range(min=1)),
    }
)


def validate_notification_settings(
    settings: Mapping[str, Any] | None = None,
) -> NotificationSettings:
    """Validate settings and fill in defaults.

    Raises:
        vol.Invalid: If snooze_minutes is below 1 or a value has the wrong type
    """
    validated = NOTIFICATION_SETTINGS_SCHEMA(dict(settings or {}))
    return NotificationSettings(
        sound_enabled=validated[const.CONF_SOUND_ENABLED],
        snooze_minutes=validated[const.CONF_SNOOZE_MINUTES],
    )


# ==============================================================================
# IDENTIFIERS
# ==============================================================================


def reminder_identifier(medication_id: str, reminder_time: time) -> str:
    """Return the stable identifier of one repeating reminder.

    Example:
        reminder_identifier("abc", time(8, 0)) → "abc-08:00"
    """
    return f"{medication_id}-{format_reminder_time(reminder_time)}"


def reminder_identifiers(
    medication: MedicationData, tz: tzinfo | None = None
) -> list[str]:
    """Return the identifiers of every repeating reminder for a medication.

    Used to cancel reminders when a medication is edited or deleted.
    """
    medication_id = str(medication.get(const.DATA_MEDICATION_INTERNAL_ID, ""))
    return [
        reminder_identifier(medication_id, reminder_time)
        for reminder_time in parse_reminder_times(
            medication.get(const.DATA_MEDICATION_REMINDER_TIMES), tz
        )
    ]


# ==============================================================================
# REQUEST BUILDERS
# ==============================================================================


def _pet_name_or_placeholder(pet_name: str | None) -> str:
    return pet_name or const.DEFAULT_PET_NAME_PLACEHOLDER


def build_reminder_requests(
    medication: MedicationData,
    pet_name: str | None,
    settings: Mapping[str, Any] | None = None,
    tz: tzinfo | None = None,
) -> list[ReminderRequest]:
    """Build one repeating daily request per reminder time.

    The platform layer fires these every day at hour:minute. Whether a given
    day actually has a dose is answered by the schedule engine, not here.

    Args:
        medication: Medication record
        pet_name: Owning pet's name; "your pet" when unknown
        settings: Notification settings (validated, defaults filled)
        tz: Timezone used to read aware reminder datetimes

    Raises:
        vol.Invalid: If settings are invalid
    """
    validated = validate_notification_settings(settings)
    medication_id = str(medication.get(const.DATA_MEDICATION_INTERNAL_ID, ""))
    message = const.NOTIFICATION_MESSAGE_REMINDER.format(
        pet_name=_pet_name_or_placeholder(pet_name),
        medication_name=medication.get(const.DATA_MEDICATION_NAME, ""),
        dosage=medication.get(const.DATA_MEDICATION_DOSAGE, ""),
    )

    requests: list[ReminderRequest] = []
    for reminder_time in parse_reminder_times(
        medication.get(const.DATA_MEDICATION_REMINDER_TIMES), tz
    ):
        requests.append(
            ReminderRequest(
                identifier=reminder_identifier(medication_id, reminder_time),
                title=const.NOTIFICATION_TITLE_REMINDER,
                message=message,
                hour=reminder_time.hour,
                minute=reminder_time.minute,
                repeats=True,
                sound=validated[const.CONF_SOUND_ENABLED],  # type: ignore[literal-required]
            )
        )

    const.LOGGER.debug(
        "NotificationHelper: Built %d reminder request(s) for medication %s",
        len(requests),
        medication_id,
    )
    return requests


def build_snooze_request(
    medication: MedicationData,
    pet_name: str | None,
    settings: Mapping[str, Any] | None = None,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> ReminderRequest:
    """Build a one-shot request firing snooze_minutes after now.

    Snooze reminders always play a sound. Each snooze gets a fresh identifier
    so repeated snoozes do not replace each other.

    Raises:
        vol.Invalid: If settings are invalid
    """
    validated = validate_notification_settings(settings)
    medication_id = str(medication.get(const.DATA_MEDICATION_INTERNAL_ID, ""))
    fire_at = (now or dt_now_local(tz)) + timedelta(
        minutes=validated[const.CONF_SNOOZE_MINUTES]  # type: ignore[literal-required]
    )

    return ReminderRequest(
        identifier=f"{medication_id}-{const.REMINDER_SNOOZE_MARKER}-{uuid.uuid4()}",
        title=const.NOTIFICATION_TITLE_SNOOZE.format(
            medication_name=medication.get(const.DATA_MEDICATION_NAME, "")
        ),
        message=const.NOTIFICATION_MESSAGE_SNOOZE.format(
            pet_name=_pet_name_or_placeholder(pet_name)
        ),
        hour=fire_at.hour,
        minute=fire_at.minute,
        repeats=False,
        sound=True,
        fire_at=fire_at,
    )


# ==============================================================================
# CHANGE PLANNING
# ==============================================================================


def schedule_fields_changed(
    old: MedicationData,
    new: MedicationData,
    tz: tzinfo | None = None,
) -> bool:
    """Return True when reminder times, start date or end date differ.

    Values are compared after parsing, so "08:00" and time(8, 0) are equal.
    """
    if parse_reminder_times(
        old.get(const.DATA_MEDICATION_REMINDER_TIMES), tz
    ) != parse_reminder_times(new.get(const.DATA_MEDICATION_REMINDER_TIMES), tz):
        return True
    for key in (const.DATA_MEDICATION_START_DATE, const.DATA_MEDICATION_END_DATE):
        if dt_to_local_date(old.get(key), tz) != dt_to_local_date(new.get(key), tz):
            return True
    return False


def plan_reminder_update(
    old: MedicationData,
    new: MedicationData,
    pet_name: str | None,
    settings: Mapping[str, Any] | None = None,
    tz: tzinfo | None = None,
) -> ReminderUpdatePlan:
    """Work out which reminders to cancel and which to register after an edit.

    - Schedule fields changed: cancel every old identifier, register all new
      requests.
    - Only name or dosage changed: register all new requests (same identifiers
      replace the old text), cancel nothing.
    - Nothing relevant changed: empty plan.
    """
    if schedule_fields_changed(old, new, tz):
        const.LOGGER.debug(
            "NotificationHelper: Schedule changed for medication %s, rescheduling",
            new.get(const.DATA_MEDICATION_INTERNAL_ID),
        )
        return ReminderUpdatePlan(
            cancel=reminder_identifiers(old, tz),
            schedule=build_reminder_requests(new, pet_name, settings, tz),
        )

    text_changed = any(
        old.get(key) != new.get(key)
        for key in (const.DATA_MEDICATION_NAME, const.DATA_MEDICATION_DOSAGE)
    )
    if text_changed:
        return ReminderUpdatePlan(
            cancel=[],
            schedule=build_reminder_requests(new, pet_name, settings, tz),
        )

    return ReminderUpdatePlan(cancel=[], schedule=[])


def plan_reschedule_all(
    medications: Iterable[MedicationData],
    pet_names: Mapping[str, str],
    settings: Mapping[str, Any] | None = None,
    tz: tzinfo | None = None,
) -> ReminderUpdatePlan:
    """Cancel and re-register every medication's reminders.

    Used when notification settings change (e.g., sound toggled).

    Args:
        medications: All medication records
        pet_names: Mapping of pet internal_id → pet name
        settings: New notification settings
    """
    plan = ReminderUpdatePlan(cancel=[], schedule=[])
    for medication in medications:
        pet_name = pet_names.get(str(medication.get(const.DATA_MEDICATION_PET_ID)))
        plan["cancel"].extend(reminder_identifiers(medication, tz))
        plan["schedule"].extend(
            build_reminder_requests(medication, pet_name, settings, tz)
        )
    return plan

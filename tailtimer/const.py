# File: const.py
"""Constants for the TailTimer engine.

This file centralizes record keys, frequency tags, log statuses, defaults,
and the package logger for consistency across the engines and helpers.
"""

import logging
from typing import Final

# ------------------------------------------------------------------------------------------------
# General / Package Information
# ------------------------------------------------------------------------------------------------

# Logger
LOGGER = logging.getLogger(__package__)

# Sentinels
SENTINEL_EMPTY = ""

# ------------------------------------------------------------------------------------------------
# Frequency Types
# ------------------------------------------------------------------------------------------------
# Values match the stored/exported tags so backups restore without mapping.
FREQUENCY_DAILY = "Daily"
FREQUENCY_WEEKLY = "Weekly"
FREQUENCY_CUSTOM_INTERVAL = "Custom Interval"

FREQUENCY_OPTIONS = [
    FREQUENCY_DAILY,
    FREQUENCY_WEEKLY,
    FREQUENCY_CUSTOM_INTERVAL,
]

# Smallest meaningful custom interval (days)
MIN_CUSTOM_INTERVAL = 1

# ------------------------------------------------------------------------------------------------
# Dose / Log Status
# ------------------------------------------------------------------------------------------------
LOG_STATUS_TAKEN = "taken"
LOG_STATUS_MISSED = "missed"
DOSE_STATUS_PENDING = "pending"

LOG_STATUS_OPTIONS = [LOG_STATUS_TAKEN, LOG_STATUS_MISSED]

# ------------------------------------------------------------------------------------------------
# Record Keys
# ------------------------------------------------------------------------------------------------

# Shared by every record type
DATA_INTERNAL_ID = "internal_id"

# Pets
DATA_PET_INTERNAL_ID = DATA_INTERNAL_ID
DATA_PET_NAME = "name"
DATA_PET_SPECIES = "species"
DATA_PET_BREED = "breed"
DATA_PET_AGE = "age"
DATA_PET_GENDER = "gender"

# Medications
DATA_MEDICATION_INTERNAL_ID = DATA_INTERNAL_ID
DATA_MEDICATION_PET_ID = "pet_id"
DATA_MEDICATION_NAME = "name"
DATA_MEDICATION_DOSAGE = "dosage"
DATA_MEDICATION_FORM = "form"
DATA_MEDICATION_NOTES = "notes"
DATA_MEDICATION_START_DATE = "start_date"
DATA_MEDICATION_END_DATE = "end_date"
DATA_MEDICATION_FREQUENCY_TYPE = "frequency_type"
DATA_MEDICATION_CUSTOM_INTERVAL = "custom_interval"
DATA_MEDICATION_REMINDER_TIMES = "reminder_times"

# Medication Logs
DATA_LOG_INTERNAL_ID = DATA_INTERNAL_ID
DATA_LOG_MEDICATION_ID = "medication_id"
DATA_LOG_SCHEDULED_TIME = "scheduled_time"
DATA_LOG_ACTION_TIME = "action_time"
DATA_LOG_STATUS = "status"

# Health Notes
DATA_HEALTH_NOTE_INTERNAL_ID = DATA_INTERNAL_ID
DATA_HEALTH_NOTE_PET_ID = "pet_id"
DATA_HEALTH_NOTE_TITLE = "title"
DATA_HEALTH_NOTE_NOTE = "note"
DATA_HEALTH_NOTE_DATE = "date"

# ------------------------------------------------------------------------------------------------
# Backup Tree Keys
# ------------------------------------------------------------------------------------------------
# Nested containers; back-reference ids are never written to the tree.
BACKUP_PET_MEDICATIONS = "medications"
BACKUP_PET_HEALTH_NOTES = "health_notes"
BACKUP_MEDICATION_HISTORY = "history"

# ------------------------------------------------------------------------------------------------
# Notification Settings
# ------------------------------------------------------------------------------------------------
CONF_SOUND_ENABLED = "sound_enabled"
CONF_SNOOZE_MINUTES = "snooze_minutes"

DEFAULT_SOUND_ENABLED = True
DEFAULT_SNOOZE_MINUTES = 5

REMINDER_SNOOZE_MARKER = "SNOOZE"

NOTIFICATION_TITLE_REMINDER = "Pet Med Reminder 💊"
NOTIFICATION_MESSAGE_REMINDER = (
    "It's time for {pet_name} to take their {medication_name} ({dosage})."
)
NOTIFICATION_TITLE_SNOOZE = "SNOOZE: {medication_name}"
NOTIFICATION_MESSAGE_SNOOZE = "Time for {pet_name}'s dose."
DEFAULT_PET_NAME_PLACEHOLDER = "your pet"

# ------------------------------------------------------------------------------------------------
# Statistics
# ------------------------------------------------------------------------------------------------

# Adherence reported when nothing has been logged yet. Every aggregation uses this value.
DEFAULT_ADHERENCE_NO_DATA = 0.0

# Trailing window for the daily trend
DEFAULT_TREND_DAYS = 7

# Doses shown in the dashboard preview
DEFAULT_UPCOMING_LIMIT = 3

# Period types and key formats
PERIOD_DAILY = "daily"
PERIOD_WEEKLY = "weekly"
PERIOD_MONTHLY = "monthly"
PERIOD_YEARLY = "yearly"

PERIOD_FORMAT_DAILY = "%Y-%m-%d"
PERIOD_FORMAT_WEEKLY = "%G-W%V"
PERIOD_FORMAT_MONTHLY = "%Y-%m"
PERIOD_FORMAT_YEARLY = "%Y"

PERIOD_FORMATS: Final[dict[str, str]] = {
    PERIOD_DAILY: PERIOD_FORMAT_DAILY,
    PERIOD_WEEKLY: PERIOD_FORMAT_WEEKLY,
    PERIOD_MONTHLY: PERIOD_FORMAT_MONTHLY,
    PERIOD_YEARLY: PERIOD_FORMAT_YEARLY,
}

# Float precision for percentages
DATA_FLOAT_PRECISION = 2

# Safety limit for occurrence generation
MAX_OCCURRENCE_DAYS = 3660

# ------------------------------------------------------------------------------------------------
# Display Support
# ------------------------------------------------------------------------------------------------

# Pet palette (index is what callers store; names are for reference only)
PET_COLOR_PALETTE = [
    "blue",
    "cyan",
    "green",
    "orange",
    "pink",
    "purple",
    "red",
    "teal",
    "indigo",
    "yellow",
]

ADHERENCE_LEVEL_NONE = "none"
ADHERENCE_LEVEL_GOOD = "good"
ADHERENCE_LEVEL_FAIR = "fair"
ADHERENCE_LEVEL_POOR = "poor"

ADHERENCE_THRESHOLD_GOOD = 80.0
ADHERENCE_THRESHOLD_FAIR = 50.0

# ------------------------------------------------------------------------------------------------
# Validation Error Keys
# ------------------------------------------------------------------------------------------------
TRANS_KEY_INVALID_PET_NAME = "invalid_pet_name"
TRANS_KEY_INVALID_PET_AGE = "invalid_pet_age"
TRANS_KEY_INVALID_MEDICATION_NAME = "invalid_medication_name"
TRANS_KEY_INVALID_MEDICATION_PET = "invalid_medication_pet"
TRANS_KEY_INVALID_DATE = "invalid_date"
TRANS_KEY_END_DATE_BEFORE_START = "end_date_before_start"
TRANS_KEY_INVALID_FREQUENCY = "invalid_frequency"
TRANS_KEY_INVALID_CUSTOM_INTERVAL = "invalid_custom_interval"
TRANS_KEY_REMINDER_TIMES_REQUIRED = "reminder_times_required"
TRANS_KEY_INVALID_REMINDER_TIME = "invalid_reminder_time"
TRANS_KEY_INVALID_LOG_STATUS = "invalid_log_status"
TRANS_KEY_INVALID_LOG_MEDICATION = "invalid_log_medication"
TRANS_KEY_INVALID_HEALTH_NOTE_TITLE = "invalid_health_note_title"

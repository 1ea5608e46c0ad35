# File: helpers/__init__.py
"""Collaborator-facing helper functions for TailTimer.

These helpers sit between the engines and the outer layers (storage, screens,
backup files). They import from const, type_defs and utils, never the other
way round.

Submodules:
    - backup_helpers: Backup tree export, validation and re-linking restore
    - entity_helpers: Record lookups, active-course counts, display bands

Usage:
    from . import entity_helpers
    from .backup_helpers import restore_backup
"""

from . import backup_helpers, entity_helpers

__all__ = [
    "backup_helpers",
    "entity_helpers",
]

"""JSON Schema validation package for update-plus.

Usage:
    from update_plus.config.schemas import validate_settings

    validate_settings(raw_settings, "~/.openclaw/update-plus.json")
"""

from update_plus.config.schemas.validator import (
    SettingsValidator,
    validate_settings,
)

__all__ = ["SettingsValidator", "validate_settings"]

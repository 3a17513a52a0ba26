"""JSON Schema validation for the update-plus settings file."""

from pathlib import Path
from typing import Any

import orjson
from jsonschema import Draft7Validator, ValidationError
from jsonschema.exceptions import best_match

from update_plus.exceptions import ConfigurationError
from update_plus.logger import get_logger

logger = get_logger(__name__)

SCHEMA_DIR = Path(__file__).parent
SETTINGS_V1_SCHEMA_PATH = SCHEMA_DIR / "settings_v1.schema.json"


class SettingsValidator:
    """Validates settings dictionaries against the bundled schema."""

    def __init__(self, schema_path: Path = SETTINGS_V1_SCHEMA_PATH) -> None:
        """Initialize validator with the loaded schema.

        Args:
            schema_path: Path of the JSON schema file

        """
        with schema_path.open("rb") as f:
            self._validator = Draft7Validator(orjson.loads(f.read()))

    @staticmethod
    def _format_validation_error(error: ValidationError) -> str:
        """Turn a jsonschema error into a short message with its location."""
        path = (
            ".".join(str(p) for p in error.absolute_path)
            if error.absolute_path
            else "root"
        )

        message = error.message
        if error.validator == "required":
            missing = (
                error.message.split("'")[1]
                if "'" in error.message
                else "unknown"
            )
            message = f"Missing required field: '{missing}'"
        elif error.validator == "type":
            expected = error.validator_value
            if isinstance(expected, list):
                expected = " or ".join(expected)
            actual = type(error.instance).__name__
            message = f"Expected type '{expected}', got '{actual}'"

        return f"{message} (at '{path}')"

    def validate(
        self,
        settings: Any,  # noqa: ANN401
        source: str | None = None,
    ) -> None:
        """Validate a parsed settings file.

        Args:
            settings: Parsed JSON value
            source: Settings file path used in error messages

        Raises:
            ConfigurationError: If the value does not match the schema

        """
        errors = list(self._validator.iter_errors(settings))
        if errors:
            error = best_match(errors)
            raise ConfigurationError(
                self._format_validation_error(error), target=source
            )
        logger.debug("Settings validation passed: %s", source or "unknown")


_validator: SettingsValidator | None = None


def get_validator() -> SettingsValidator:
    """Get or create the shared validator instance."""
    global _validator  # noqa: PLW0603
    if _validator is None:
        _validator = SettingsValidator()
    return _validator


def validate_settings(
    settings: Any,  # noqa: ANN401
    source: str | None = None,
) -> None:
    """Validate a settings dictionary (convenience function).

    Raises:
        ConfigurationError: If validation fails

    """
    get_validator().validate(settings, source)

"""
Configuration Schema.

This module declares the [plugins] section of the hotplug config file.

Key features:
- Typed field definitions with defaults and descriptions
- Validation of loaded values against the schema
"""

from dataclasses import dataclass
from typing import Any


class SchemaError(Exception):
    """Base exception for schema-related errors."""

    pass


class ValidationError(SchemaError):
    """Raised when value validation fails."""

    pass


@dataclass
class ConfigField:
    """
    Represents a configuration field with type and constraints.

    Attributes:
        type_: The expected type of the field value
        default: Default value for the field
        description: Human-readable description
        min: Minimum length for strings (optional)
    """

    type_: type
    default: Any
    description: str = ""
    min: int | None = None

    def __post_init__(self):
        """Validate field definition."""
        if not isinstance(self.default, self.type_):
            raise SchemaError(
                f"Default value {self.default!r} does not match type {self.type_.__name__}"
            )
        if self.min is not None and self.type_ is not str:
            raise SchemaError(
                f"min constraint only supported for str. Got {self.type_.__name__}"
            )

    def validate(self, value: Any) -> None:
        """
        Validate a value against this field's constraints.

        Args:
            value: The value to validate

        Raises:
            ValidationError: If validation fails
        """
        if not isinstance(value, self.type_):
            raise ValidationError(
                f"Expected type {self.type_.__name__}, got {type(value).__name__}"
            )

        if self.min is not None and len(value) < self.min:
            raise ValidationError(
                f"String length {len(value)} is less than minimum {self.min}"
            )


PLUGINS_SCHEMA: dict[str, ConfigField] = {
    "dir": ConfigField(str, "plugins", "Distribution directory scanned for plugins", min=1),
    "expand_dir": ConfigField(
        str, "plugins-expand", "Staging directory plugins are extracted into", min=1
    ),
    "enabled_file": ConfigField(
        str, "enabled_plugins", "File listing the enabled plugins", min=1
    ),
    "archive_suffix": ConfigField(str, ".ez", "Suffix of plugin archive files", min=1),
}


def validate_config(config: dict[str, Any], schema: dict[str, ConfigField]) -> None:
    """
    Validate a configuration dictionary against a schema.

    Missing fields are allowed and take their defaults.

    Args:
        config: The configuration dictionary to validate
        schema: The schema dictionary (field_name -> ConfigField)

    Raises:
        ValidationError: If validation fails
    """
    for key in config:
        if key not in schema:
            raise ValidationError(f"Unknown configuration field: {key}")

    for field_name, value in config.items():
        try:
            schema[field_name].validate(value)
        except ValidationError as e:
            raise ValidationError(f"Field '{field_name}': {e}") from e


def generate_default_config(schema: dict[str, ConfigField]) -> dict[str, Any]:
    """
    Generate a default configuration from a schema.

    Args:
        schema: The schema dictionary (field_name -> ConfigField)

    Returns:
        A dictionary with default values for all fields
    """
    return {field_name: field.default for field_name, field in schema.items()}

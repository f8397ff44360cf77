"""Configuration classes for ABX decoding.

This module provides configuration objects for the decoder and the serializer,
with validation, presets and JSON round-tripping.
"""

import codecs
import json
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

_VALID_LOGGING_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
_VALID_ERROR_HANDLERS = ["strict", "replace", "ignore", "backslashreplace"]
_COMPONENTS = ["decoder", "serializer"]


@dataclass
class DecoderConfig:
    """Configuration for the token decoder and value codec."""

    string_encoding: str = "utf-8"
    encoding_errors: str = "replace"
    strict_end_tags: bool = False   # Mismatched END_TAG fails instead of warning
    render_hex_types: bool = False  # INT_HEX/LONG_HEX as hex digits, not decimal
    max_depth: Optional[int] = None  # Opt-in nesting limit; None accepts any depth

    def __post_init__(self) -> None:
        """Validate decoder configuration."""
        try:
            codecs.lookup(self.string_encoding)
        except LookupError:
            raise ValueError(
                f"string_encoding '{self.string_encoding}' is not a known codec"
            ) from None
        if self.encoding_errors not in _VALID_ERROR_HANDLERS:
            raise ValueError(f"encoding_errors must be one of {_VALID_ERROR_HANDLERS}")
        if self.max_depth is not None and self.max_depth <= 0:
            raise ValueError("max_depth must be > 0")


@dataclass
class SerializerConfig:
    """Configuration for XML text rendering."""

    indent: int = 0
    include_declaration: bool = False
    escape_special_chars: bool = False

    def __post_init__(self) -> None:
        """Validate serializer configuration."""
        if self.indent < 0:
            raise ValueError("indent must be >= 0")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class AbxConfig:
    """Complete configuration for decoding and rendering ABX documents.

    Immutable; use :meth:`override` to derive a changed copy.
    """

    decoder: DecoderConfig = field(default_factory=DecoderConfig)
    serializer: SerializerConfig = field(default_factory=SerializerConfig)
    logging_level: str = "WARNING"
    name: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete configuration."""
        try:
            self.decoder.__post_init__()
            self.serializer.__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

        if self.logging_level not in _VALID_LOGGING_LEVELS:
            raise ConfigValidationError(
                f"logging_level must be one of {_VALID_LOGGING_LEVELS}",
                field_name="logging_level",
            )

    @classmethod
    def default(cls) -> "AbxConfig":
        """Configuration matching the reference output format."""
        return cls(name="default")

    @classmethod
    def strict(cls) -> "AbxConfig":
        """Fail on mismatched end tags and escape reserved characters."""
        return cls(
            decoder=DecoderConfig(strict_end_tags=True, encoding_errors="strict"),
            serializer=SerializerConfig(escape_special_chars=True),
            name="strict",
        )

    @classmethod
    def lenient(cls) -> "AbxConfig":
        """Tolerate loose nesting and undecodable string bytes."""
        return cls(
            decoder=DecoderConfig(strict_end_tags=False, encoding_errors="replace"),
            name="lenient",
        )

    @classmethod
    def preset(cls, name: str) -> "AbxConfig":
        presets = {
            "default": cls.default,
            "strict": cls.strict,
            "lenient": cls.lenient,
        }
        if name not in presets:
            raise ConfigValidationError(
                f"Unknown preset '{name}'", suggestions=sorted(presets)
            )
        return presets[name]()

    def override(self, **kwargs: Any) -> "AbxConfig":
        """Create a new configuration with specific overrides.

        Nested fields use double-underscore notation.

        Example:
            >>> config = AbxConfig().override(
            ...     decoder__strict_end_tags=True,
            ...     serializer__indent=2,
            ... )
        """
        nested_overrides: Dict[str, Dict[str, Any]] = {}
        top_level: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                if component not in _COMPONENTS:
                    raise ConfigValidationError(
                        f"Unknown configuration component '{component}'",
                        field_name=key,
                        suggestions=_COMPONENTS,
                    )
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                top_level[key] = value

        new_fields: Dict[str, Any] = dict(top_level)
        try:
            for component, values in nested_overrides.items():
                new_fields[component] = replace(getattr(self, component), **values)
            return replace(self, **new_fields)
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e)) from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        def _dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, "__dataclass_fields__"):
                return {
                    name: _dataclass_to_dict(getattr(obj, name))
                    for name in obj.__dataclass_fields__
                }
            if isinstance(obj, Enum):
                return obj.name
            return obj

        return _dataclass_to_dict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AbxConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected so that typos in configuration files surface.
        """
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration data must be a mapping")

        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration keys: {sorted(unknown)}",
                suggestions=sorted(cls.__dataclass_fields__),
            )

        values: Dict[str, Any] = {}
        try:
            if "decoder" in data:
                values["decoder"] = DecoderConfig(**data["decoder"])
            if "serializer" in data:
                values["serializer"] = SerializerConfig(**data["serializer"])
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e)) from e

        for key in ("logging_level", "name"):
            if key in data:
                values[key] = data[key]

        return cls(**values)

    @classmethod
    def from_json(cls, json_str: str) -> "AbxConfig":
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "AbxConfig":
        """Load configuration from a JSON file."""
        config_path = Path(path)
        try:
            content = config_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Could not read configuration file {config_path}: {e}") from e
        return cls.from_json(content)

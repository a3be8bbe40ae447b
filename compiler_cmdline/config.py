#!/usr/bin/env python3
"""
Configuration for tool detection.

Settings are validated with Pydantic v2. For persistence, only values that
differ from the defaults are written, using the property keys of the settings
store (``vPattern`` and ``vPatternEnabled``).
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, Dict, Mapping

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .core_types import InvalidConfigurationError, PathLike

# a dot-separated numeric suffix, optionally prefixed with '-', e.g. gcc-4.8
DEFAULT_VERSION_PATTERN = r"-?\d+(\.\d+)*"

ATTR_PATTERN = "vPattern"
ATTR_PATTERN_ENABLED = "vPatternEnabled"


class ParserSettings(BaseModel):
    """Settings of the tool detection engine."""

    model_config = ConfigDict(
        extra="forbid", validate_assignment=True, str_strip_whitespace=True
    )

    version_pattern_enabled: bool = Field(
        default=False,
        description="Also detect tools with a version suffix, e.g. gcc-4.8 or gcc-4.8.exe",
    )
    version_pattern: str = Field(
        default=DEFAULT_VERSION_PATTERN,
        description="Regular expression matching the version suffix of a tool name",
    )
    match_backslash: bool = Field(
        default_factory=lambda: os.sep == "\\",
        description="Treat backslashes in command paths as path separators",
    )

    @field_validator("version_pattern")
    @classmethod
    def validate_version_pattern(cls, v: str) -> str:
        """Validate the version pattern; an empty pattern means the default."""
        if not v:
            return DEFAULT_VERSION_PATTERN
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid version pattern '{v}': {e}") from e
        return v

    @property
    def effective_version_pattern(self) -> str | None:
        """Get the version pattern to match with, or ``None`` if disabled."""
        return self.version_pattern if self.version_pattern_enabled else None

    @property
    def is_default_version_pattern(self) -> bool:
        return self.version_pattern == DEFAULT_VERSION_PATTERN

    def to_properties(self) -> Dict[str, str]:
        """
        Convert the settings to string properties for persistence.

        The version pattern is omitted if it is the default pattern.
        """
        properties = {ATTR_PATTERN_ENABLED: str(self.version_pattern_enabled).lower()}
        if not self.is_default_version_pattern:
            properties[ATTR_PATTERN] = self.version_pattern
        return properties

    @classmethod
    def from_properties(cls, properties: Mapping[str, Any]) -> ParserSettings:
        """Create settings from persisted string properties."""
        enabled = str(properties.get(ATTR_PATTERN_ENABLED, "false")).lower() == "true"
        pattern = properties.get(ATTR_PATTERN) or DEFAULT_VERSION_PATTERN
        try:
            return cls(version_pattern_enabled=enabled, version_pattern=pattern)
        except ValidationError as e:
            raise InvalidConfigurationError(
                f"Invalid detection settings: {e}",
                error_code="INVALID_SETTINGS",
                properties=dict(properties),
            ) from e


def load_settings(file_path: PathLike) -> ParserSettings:
    """
    Load detection settings from a JSON file.

    The file may hold either the model fields (``version_pattern_enabled``,
    ``version_pattern``, ``match_backslash``) or the persisted property keys.

    Raises:
        InvalidConfigurationError: If the file cannot be read or is invalid
    """
    path = Path(file_path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise InvalidConfigurationError(
            f"Failed to load settings from {path}: {e}",
            error_code="SETTINGS_READ_ERROR",
            file_path=str(path),
        ) from e

    if not isinstance(data, dict):
        raise InvalidConfigurationError(
            f"Settings file {path} must contain a JSON object",
            error_code="SETTINGS_FORMAT_ERROR",
            file_path=str(path),
        )

    if ATTR_PATTERN in data or ATTR_PATTERN_ENABLED in data:
        return ParserSettings.from_properties(data)
    try:
        settings = ParserSettings(**data)
    except ValidationError as e:
        raise InvalidConfigurationError(
            f"Invalid detection settings in {path}: {e}",
            error_code="INVALID_SETTINGS",
            file_path=str(path),
        ) from e
    logger.debug(f"Loaded detection settings from {path}")
    return settings

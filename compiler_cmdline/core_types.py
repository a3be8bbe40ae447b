#!/usr/bin/env python3
"""
Core types and data models for the compiler command-line analyzer.

This module provides the enums, immutable result records and exception
hierarchy shared by the tokenizer, tool detection and argument parsing layers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, TypeAlias, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from .detection import ToolSignature

# Type aliases for improved type hinting
PathLike: TypeAlias = Union[str, Path]


class DetectionStrategy(StrEnum):
    """The naming convention under which a tool signature matched a command."""

    BASENAME = "basename"  # gcc
    WITH_EXTENSION = "with_extension"  # gcc.exe
    WITH_VERSION = "with_version"  # gcc-4.8
    WITH_VERSION_EXTENSION = "with_version_extension"  # gcc-4.8.exe

    @property
    def uses_version(self) -> bool:
        """Check if this strategy needs the version pattern."""
        return self in {self.WITH_VERSION, self.WITH_VERSION_EXTENSION}

    @property
    def uses_extension(self) -> bool:
        """Check if this strategy needs an executable extension."""
        return self in {self.WITH_EXTENSION, self.WITH_VERSION_EXTENSION}


class SettingKind(StrEnum):
    """Kinds of language settings extracted from a command line."""

    INCLUDE_PATH = "include_path"
    MACRO = "macro"
    INCLUDE_FILE = "include_file"
    MACRO_FILE = "macro_file"


class BuiltinDetectionType(StrEnum):
    """How the built-in macros and include paths of a compiler are queried."""

    NONE = "none"
    GCC = "gcc"
    NVCC = "nvcc"
    ICC = "icc"
    MSVC = "msvc"
    ARMCC = "armcc"
    XLC = "xlc"


class DiagnosticKind(StrEnum):
    """Categories of per-record diagnostics."""

    STRUCTURAL = "structural"
    NO_MATCH = "no_match"


class CompileCommand(BaseModel):
    """One record of a build log, as found in ``compile_commands.json``."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    file: str = Field(min_length=1, description="Path of the compiled source file")
    command: str = Field(min_length=1, description="The full compiler invocation")
    directory: str = Field(description="Working directory of the compiler")

    @field_validator("command")
    @classmethod
    def validate_command(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("command must not be blank")
        return v


@dataclass(frozen=True, slots=True)
class MatchResult:
    """
    The result of matching a command-line string against a tool signature.

    ``command`` is the leading token of the command line with surrounding
    quotes removed, ``arguments`` everything after it, unparsed.
    """

    command: str
    arguments: str


@dataclass(frozen=True, slots=True)
class DetectionOutcome:
    """A successful tool detection: which signature matched, and how."""

    signature: ToolSignature
    strategy: DetectionStrategy
    match_result: MatchResult
    match_backslash: bool = False

    @property
    def tool_name(self) -> str:
        return self.signature.name

    @property
    def command(self) -> str:
        return self.match_result.command

    @property
    def arguments(self) -> str:
        return self.match_result.arguments


@dataclass(frozen=True, slots=True)
class SettingsEntry:
    """
    One structured fact extracted from a command line.

    Use the factory class methods rather than the constructor, they keep the
    kind-specific fields consistent.
    """

    kind: SettingKind
    name: str
    value: Optional[str] = None
    system: bool = False
    undefined: bool = False

    @classmethod
    def include_path(cls, path: str, system: bool = False) -> SettingsEntry:
        return cls(SettingKind.INCLUDE_PATH, path, system=system)

    @classmethod
    def macro(cls, name: str, value: str) -> SettingsEntry:
        return cls(SettingKind.MACRO, name, value)

    @classmethod
    def undefine(cls, name: str) -> SettingsEntry:
        return cls(SettingKind.MACRO, name, undefined=True)

    @classmethod
    def include_file(cls, path: str) -> SettingsEntry:
        return cls(SettingKind.INCLUDE_FILE, path)

    @classmethod
    def macro_file(cls, path: str) -> SettingsEntry:
        return cls(SettingKind.MACRO_FILE, path)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the entry to a dictionary."""
        result: Dict[str, Any] = {"kind": self.kind.value, "name": self.name}
        if self.value is not None:
            result["value"] = self.value
        if self.system:
            result["system"] = True
        if self.undefined:
            result["undefined"] = True
        return result


@dataclass(slots=True)
class ParseResult:
    """Ordered settings entries and built-in detection arguments of one command line."""

    entries: List[SettingsEntry] = field(default_factory=list)
    builtin_detection_args: List[str] = field(default_factory=list)

    def entries_of_kind(self, kind: SettingKind) -> List[SettingsEntry]:
        """Get all entries of the specified kind, in parse order."""
        return [entry for entry in self.entries if entry.kind == kind]

    @property
    def include_paths(self) -> List[SettingsEntry]:
        return self.entries_of_kind(SettingKind.INCLUDE_PATH)

    @property
    def macros(self) -> List[SettingsEntry]:
        return self.entries_of_kind(SettingKind.MACRO)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entries": [entry.to_dict() for entry in self.entries],
            "builtin_detection_args": list(self.builtin_detection_args),
        }


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """
    A non-fatal problem found while processing one build-log record.

    Diagnostics are data: they are collected and reported, never raised past
    the record boundary.
    """

    kind: DiagnosticKind
    message: str
    file: Optional[str] = None
    index: Optional[int] = None
    command: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"kind": self.kind.value, "message": self.message}
        if self.file is not None:
            result["file"] = self.file
        if self.index is not None:
            result["index"] = self.index
        if self.command is not None:
            result["command"] = self.command
        return result


# Custom exceptions with error context
class CompilerCmdlineException(Exception):
    """Base exception for command-line analysis errors."""

    def __init__(
        self, message: str, *, error_code: Optional[str] = None, **kwargs: Any
    ):
        super().__init__(message)
        self.error_code = error_code
        self.context = kwargs

        logger.bind(error_code=error_code, context=kwargs).debug(
            f"{type(self).__name__}: {message}"
        )


class StructuralError(CompilerCmdlineException):
    """Exception raised when a build-log record is not well-formed."""

    pass


class NoMatchError(CompilerCmdlineException):
    """Exception raised when no tool signature matches a command line."""

    pass


class ArgumentParseError(CompilerCmdlineException):
    """Exception raised by an argument parser on malformed option text."""

    pass


class InvalidConfigurationError(CompilerCmdlineException):
    """Exception raised when configuration is invalid."""

    pass

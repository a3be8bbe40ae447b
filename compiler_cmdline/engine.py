#!/usr/bin/env python3
"""
Tool detection engine.

The engine classifies build-log records one at a time. It remembers the last
tool signature that matched, together with the naming convention it matched
by, and retries it first: consecutive records of a build log nearly always
invoke the same compiler. An engine instance is meant for one caller at a
time; use one engine per worker for parallel processing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from loguru import logger
from pydantic import ValidationError

from .builtins_query import BuiltinsQuery
from .config import ParserSettings
from .core_types import (
    CompileCommand,
    DetectionOutcome,
    DetectionStrategy,
    Diagnostic,
    DiagnosticKind,
    NoMatchError,
    ParseResult,
    StructuralError,
)
from .detection import DEFAULT_SIGNATURES, ToolSignature, determine_detector
from .paths import ShortPathExpander, expand_short_path, resolve_path
from .tokenizer import trim_leading_ws

Record = Union[CompileCommand, Mapping[str, Any]]

WORKBENCH_WILL_NOT_KNOW_ALL_MSG = (
    "Include paths and preprocessor defines of this file will be incomplete."
)


@dataclass(slots=True)
class EntryResult:
    """The outcome of processing one build-log record."""

    file: Optional[str] = None
    directory: Optional[str] = None
    detection: Optional[DetectionOutcome] = None
    parse_result: Optional[ParseResult] = None
    builtins_query: Optional[BuiltinsQuery] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.detection is not None and not self.diagnostics

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"file": self.file, "directory": self.directory}
        if self.detection is not None:
            result["tool"] = self.detection.tool_name
            result["command"] = self.detection.command
            result["strategy"] = self.detection.strategy.value
            result["language_id"] = self.detection.signature.parser.language_id
        if self.parse_result is not None:
            result.update(self.parse_result.to_dict())
        if self.diagnostics:
            result["diagnostics"] = [d.to_dict() for d in self.diagnostics]
        return result


class ToolDetectionEngine:
    """
    Detects the tool of a command line and parses its arguments.

    Args:
        settings: Detection settings, defaults to ``ParserSettings()``
        signatures: The tool signature registry, in priority order
        expander: Expands NTFS short path names in commands
    """

    def __init__(
        self,
        settings: Optional[ParserSettings] = None,
        signatures: Sequence[ToolSignature] = DEFAULT_SIGNATURES,
        expander: Optional[ShortPathExpander] = expand_short_path,
    ) -> None:
        self.settings = settings or ParserSettings()
        self.signatures = tuple(signatures)
        self.expander = expander
        # last known working detector, to speed up detection
        self._last_detector: Optional[Tuple[ToolSignature, DetectionStrategy, bool]] = None
        self.cache_hits = 0
        self.cache_misses = 0
        self.full_scans = 0

    @property
    def last_detector(self) -> Optional[Tuple[ToolSignature, DetectionStrategy]]:
        """Get the cached ``(signature, strategy)`` pair, if any."""
        if self._last_detector is None:
            return None
        return self._last_detector[0], self._last_detector[1]

    def reset_cache(self) -> None:
        """Forget the last known working detector."""
        self._last_detector = None

    def _try_last_detector(self, line: str) -> Optional[DetectionOutcome]:
        signature, strategy, match_backslash = self._last_detector
        version_regex = self.settings.effective_version_pattern
        if strategy.uses_version and version_regex is None:
            return None
        result = signature.matches(strategy, line, match_backslash, version_regex)
        if result is None:
            return None
        return DetectionOutcome(signature, strategy, result, match_backslash)

    def fast_determine_detector(self, line: str) -> Optional[DetectionOutcome]:
        """
        Determine the tool signature that matches ``line``.

        Tries the last known working detector first and falls back to a scan
        of the whole registry. The cached detector is dropped on its first
        miss and replaced by the result of a successful scan.

        Returns:
            The detection outcome, or ``None`` if the tool is unknown
        """
        if self._last_detector is not None:
            outcome = self._try_last_detector(line)
            if outcome is not None:
                self.cache_hits += 1
                return outcome
            self.cache_misses += 1
            logger.debug(f"Cached detector {self._last_detector[0].name} did not match")
            self._last_detector = None

        self.full_scans += 1
        outcome = determine_detector(
            line,
            self.settings.effective_version_pattern,
            self.settings.match_backslash,
            self.signatures,
            self.expander,
        )
        if outcome is not None:
            self._last_detector = (
                outcome.signature,
                outcome.strategy,
                outcome.match_backslash,
            )
            logger.debug(f"Detected {outcome.tool_name} ({outcome.strategy}) in '{line[:80]}'")
        return outcome

    def parse_arguments(self, outcome: DetectionOutcome, cwd: str) -> ParseResult:
        """Parse the arguments of a detected command line."""
        parser = outcome.signature.parser
        return parser.process_args(cwd, trim_leading_ws(outcome.arguments))

    def process_command(
        self, command: str, directory: str = ""
    ) -> Tuple[DetectionOutcome, ParseResult]:
        """
        Detect the tool of ``command`` and parse its arguments.

        Raises:
            NoMatchError: If no tool signature matches the command
        """
        outcome = self.fast_determine_detector(command)
        if outcome is None:
            raise NoMatchError(
                f"No parser for command '{command}'",
                error_code="UNKNOWN_TOOL",
                command=command,
            )
        return outcome, self.parse_arguments(outcome, directory)

    @staticmethod
    def validate_record(record: Record) -> CompileCommand:
        """
        Validate a build-log record.

        Raises:
            StructuralError: If the record is not a mapping or lacks one of
                ``file``, ``command`` and ``directory``
        """
        if isinstance(record, CompileCommand):
            return record
        if not isinstance(record, Mapping):
            raise StructuralError(
                f"File format error: unexpected entry '{record}'",
                error_code="UNEXPECTED_ENTRY",
            )
        try:
            return CompileCommand.model_validate(dict(record))
        except ValidationError as e:
            raise StructuralError(
                "File format error: 'file', 'command' or 'directory' missing in JSON object",
                error_code="MISSING_FIELD",
                errors=e.errors(include_url=False),
            ) from e

    def process_entry(
        self, record: Record, index: Optional[int] = None, enabled: bool = True
    ) -> EntryResult:
        """
        Process one build-log record.

        Problems with the record are reported as diagnostics of the result,
        they are never raised.

        Args:
            record: The record, with ``file``, ``command`` and ``directory``
            index: Position of the record in the build log, for diagnostics
            enabled: Whether to parse the arguments; if ``False`` only the tool
                and its built-ins query are determined

        Returns:
            The processing result
        """
        result = EntryResult()
        try:
            entry = self.validate_record(record)
        except StructuralError as e:
            logger.warning(f"Skipping entry {index}: {e}. {WORKBENCH_WILL_NOT_KNOW_ALL_MSG}")
            result.diagnostics.append(
                Diagnostic(DiagnosticKind.STRUCTURAL, str(e), index=index)
            )
            return result

        result.file = resolve_path(entry.directory, entry.file)
        result.directory = entry.directory
        try:
            outcome = self.fast_determine_detector(entry.command)
            if outcome is None:
                raise NoMatchError(
                    f"No parser for command '{entry.command}'",
                    error_code="UNKNOWN_TOOL",
                    file=result.file,
                )
        except NoMatchError as e:
            logger.warning(f"{e}. {WORKBENCH_WILL_NOT_KNOW_ALL_MSG}")
            result.diagnostics.append(
                Diagnostic(
                    DiagnosticKind.NO_MATCH,
                    str(e),
                    file=result.file,
                    index=index,
                    command=entry.command,
                )
            )
            return result

        result.detection = outcome
        if enabled:
            result.parse_result = self.parse_arguments(outcome, entry.directory)
        result.builtins_query = BuiltinsQuery.from_detection(outcome, result.parse_result)
        return result

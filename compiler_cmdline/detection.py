#!/usr/bin/env python3
"""
Tool signatures and registry scanning.

A tool signature recognizes the invoked binary of a command line by the
basename of its leading token, under four naming conventions: the plain name
(``gcc``), the name with an executable extension (``gcc.exe``), the name with
a version suffix (``gcc-4.8``) and the name with version suffix and extension
(``gcc-4.8.exe``).
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from loguru import logger

from . import parser as parsers
from .core_types import DetectionOutcome, DetectionStrategy, MatchResult
from .parser import ToolArgumentParser
from .paths import ShortPathExpander, basename, has_short_segments
from .tokenizer import split_command

# probe order: the cheap exact-name probes of all signatures come first
STRATEGY_ORDER: Tuple[DetectionStrategy, ...] = (
    DetectionStrategy.BASENAME,
    DetectionStrategy.WITH_EXTENSION,
    DetectionStrategy.WITH_VERSION,
    DetectionStrategy.WITH_VERSION_EXTENSION,
)


@functools.lru_cache(maxsize=512)
def compile_basename_pattern(
    name_regex: str,
    extension: Optional[str] = None,
    version_regex: Optional[str] = None,
    ignore_case: bool = False,
) -> re.Pattern[str]:
    """
    Compile the pattern a command basename must match in full.

    Patterns are memoized per distinct argument combination, so a version
    pattern given at configuration time is compiled once per signature.
    """
    regex = name_regex
    if version_regex:
        regex += f"(?:{version_regex})"
    if extension:
        regex += r"\." + re.escape(extension)
    return re.compile(regex, re.IGNORECASE if ignore_case else 0)


@dataclass(frozen=True)
class ToolSignature:
    """
    Identity of a detectable tool.

    Args:
        name: The tool name, or a regular expression fragment if ``is_pattern``
            is set (e.g. ``.+-gcc`` for cross-toolchain compilers)
        parser: The parser for the tool-specific arguments
        extension: The executable extension, if the tool may carry one
        handles_ntfs_paths: Whether to also match paths with backslashes and
            NTFS short path names
        is_pattern: Whether ``name`` is a regular expression fragment
    """

    name: str
    parser: ToolArgumentParser
    extension: Optional[str] = None
    handles_ntfs_paths: bool = False
    is_pattern: bool = False

    def __post_init__(self) -> None:
        # compile the cheap matchers up front
        for ignore_case in (False, True):
            compile_basename_pattern(self.name_regex, None, None, ignore_case)
            if self.extension:
                compile_basename_pattern(self.name_regex, self.extension, None, ignore_case)

    @property
    def name_regex(self) -> str:
        return self.name if self.is_pattern else re.escape(self.name)

    def supports(self, strategy: DetectionStrategy) -> bool:
        """Check whether this signature takes part in the given strategy."""
        return self.extension is not None or not strategy.uses_extension

    def probe(
        self,
        strategy: DetectionStrategy,
        command: str,
        arguments: str,
        match_backslash: bool = False,
        version_regex: Optional[str] = None,
    ) -> Optional[MatchResult]:
        """
        Match an already split command line.

        Returns:
            A ``MatchResult`` if the basename of ``command`` matches, otherwise
            ``None``
        """
        if not self.supports(strategy):
            return None
        if strategy.uses_version and not version_regex:
            return None
        pattern = compile_basename_pattern(
            self.name_regex,
            self.extension if strategy.uses_extension else None,
            version_regex if strategy.uses_version else None,
            match_backslash,
        )
        if pattern.fullmatch(basename(command, match_backslash)):
            return MatchResult(command, arguments)
        return None

    def matches(
        self,
        strategy: DetectionStrategy,
        command_line: str,
        match_backslash: bool = False,
        version_regex: Optional[str] = None,
    ) -> Optional[MatchResult]:
        """Match a raw command line with the given strategy."""
        split = split_command(command_line)
        if split is None:
            return None
        return self.probe(strategy, split[0], split[1], match_backslash, version_regex)

    def basename_matches(
        self, command_line: str, match_backslash: bool = False
    ) -> Optional[MatchResult]:
        return self.matches(DetectionStrategy.BASENAME, command_line, match_backslash)

    def basename_with_extension_matches(
        self, command_line: str, match_backslash: bool = False
    ) -> Optional[MatchResult]:
        return self.matches(DetectionStrategy.WITH_EXTENSION, command_line, match_backslash)

    def basename_with_version_matches(
        self, command_line: str, match_backslash: bool, version_regex: str
    ) -> Optional[MatchResult]:
        return self.matches(
            DetectionStrategy.WITH_VERSION, command_line, match_backslash, version_regex
        )

    def basename_with_version_and_extension_matches(
        self, command_line: str, match_backslash: bool, version_regex: str
    ) -> Optional[MatchResult]:
        return self.matches(
            DetectionStrategy.WITH_VERSION_EXTENSION,
            command_line,
            match_backslash,
            version_regex,
        )


def _windows_tool(name: str, parser: ToolArgumentParser, is_pattern: bool = False) -> ToolSignature:
    return ToolSignature(
        name, parser, extension="exe", handles_ntfs_paths=True, is_pattern=is_pattern
    )


# known tools, in scan order
DEFAULT_SIGNATURES: Tuple[ToolSignature, ...] = (
    # GNU C compatible compilers
    _windows_tool("cc", parsers.GCC_C),
    _windows_tool("gcc", parsers.GCC_C),
    _windows_tool("clang", parsers.GCC_C),
    # GNU C++ compatible compilers
    _windows_tool("c++", parsers.GCC_CXX),
    _windows_tool("g++", parsers.GCC_CXX),
    _windows_tool("clang++", parsers.GCC_CXX),
    # NVidia CUDA
    _windows_tool("nvcc", parsers.NVCC),
    # Intel compilers
    ToolSignature("icc", parsers.ICC_C),
    ToolSignature("icpc", parsers.ICC_CXX),
    _windows_tool("icl", parsers.ICC_CXX),
    # Microsoft Visual C++
    _windows_tool("cl", parsers.MSVC_CXX),
    # ARM compilers
    _windows_tool("armcc", parsers.ARMCC_C),
    _windows_tool("armclang", parsers.ARMCC_C),
    # IBM XL compilers
    ToolSignature("xlc", parsers.XLC_C),
    ToolSignature("xlclang", parsers.XLC_C),
    ToolSignature("xlC", parsers.XLC_CXX),
    ToolSignature("xlc++", parsers.XLC_CXX),
    ToolSignature("xlclang++", parsers.XLC_CXX),
    # cross-toolchain compilers, e.g. arm-none-eabi-gcc
    _windows_tool(r".+-gcc", parsers.GCC_C, is_pattern=True),
    _windows_tool(r".+-clang", parsers.GCC_C, is_pattern=True),
    _windows_tool(r".+-g\+\+", parsers.GCC_CXX, is_pattern=True),
    _windows_tool(r".+-c\+\+", parsers.GCC_CXX, is_pattern=True),
    _windows_tool(r".+-clang\+\+", parsers.GCC_CXX, is_pattern=True),
)


def _scan(
    signatures: Iterable[ToolSignature],
    command: str,
    arguments: str,
    version_regex: Optional[str],
    match_backslash: bool,
) -> Optional[DetectionOutcome]:
    signatures = tuple(signatures)
    for strategy in STRATEGY_ORDER:
        if strategy.uses_version and not version_regex:
            continue
        for signature in signatures:
            result = signature.probe(
                strategy, command, arguments, match_backslash, version_regex
            )
            if result is not None:
                return DetectionOutcome(signature, strategy, result, match_backslash)
    return None


def determine_detector(
    command_line: str,
    version_regex: Optional[str] = None,
    match_backslash: bool = False,
    signatures: Sequence[ToolSignature] = DEFAULT_SIGNATURES,
    expander: Optional[ShortPathExpander] = None,
) -> Optional[DetectionOutcome]:
    """
    Determine the tool signature that matches the command of ``command_line``.

    All signatures are first tried with forward-slash paths. If
    ``match_backslash`` is set, signatures that handle NTFS paths are then
    tried with backslash paths and, if the command contains 8.3 short names
    and an ``expander`` is given, with the expanded long path.

    Args:
        command_line: The command line to match
        version_regex: Regular expression for version suffixes, or ``None`` to
            disable version matching
        match_backslash: Whether ``\\`` is a path separator on this platform
        signatures: The registry to scan, in priority order
        expander: Expands NTFS short path names

    Returns:
        The detection outcome, or ``None`` if no signature matched
    """
    split = split_command(command_line)
    if split is None:
        return None
    command, arguments = split

    outcome = _scan(signatures, command, arguments, version_regex, False)
    if outcome is not None or not match_backslash:
        return outcome

    ntfs_signatures = [s for s in signatures if s.handles_ntfs_paths]
    if not ntfs_signatures:
        return None
    outcome = _scan(ntfs_signatures, command, arguments, version_regex, True)
    if outcome is None and expander is not None and has_short_segments(command):
        expanded = expander(command)
        if expanded != command:
            logger.debug(f"Retrying detection with expanded path {expanded}")
            outcome = _scan(ntfs_signatures, expanded, arguments, version_regex, True)
    return outcome

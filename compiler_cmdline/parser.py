#!/usr/bin/env python3
"""
Argument parser chains for detected tools.

A ``ToolArgumentParser`` drains an argument string from left to right by
offering the unconsumed text to its arglets in declared order. Text that no
arglet claims is skipped one token at a time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from loguru import logger

from .arglets import GCC_ARGLETS, MSVC_ARGLETS, NVCC_ARGLETS, Arglet
from .core_types import (
    ArgumentParseError,
    BuiltinDetectionType,
    ParseResult,
    SettingsEntry,
)
from .tokenizer import leading_ws_length, token_length


class ParseContext:
    """Gathers the results of argument parsing for one command line."""

    def __init__(self) -> None:
        self.result = ParseResult()

    def add_setting_entry(self, entry: SettingsEntry) -> None:
        """Add a language setting to the result."""
        self.result.entries.append(entry)

    def add_builtin_detection_argument(self, argument: str) -> None:
        """
        Add a compiler argument that affects built-in detection to the result.

        For the GNU compilers, these are options like ``--sysroot`` and options
        that specify the language standard (``-std=c++17``).
        """
        self.result.builtin_detection_args.append(argument)


@dataclass(frozen=True)
class ToolArgumentParser:
    """Parses the arguments of one kind of tool into settings entries."""

    language_id: str
    builtin_detection_type: BuiltinDetectionType
    arglets: Tuple[Arglet, ...]

    def _offer(self, context: ParseContext, cwd: str, args_line: str) -> int:
        for arglet in self.arglets:
            try:
                consumed = arglet.process_argument(context, cwd, args_line)
            except ArgumentParseError as e:
                logger.debug(f"{type(arglet).__name__} declined '{args_line[:40]}': {e}")
                continue
            except Exception as e:
                # a failing arglet counts as declined
                logger.debug(
                    f"{type(arglet).__name__} failed on '{args_line[:40]}': "
                    f"{type(e).__name__}: {e}"
                )
                continue
            if consumed > 0:
                return consumed
        return 0

    def process_args(self, cwd: str, args_line: str) -> ParseResult:
        """
        Parse the arguments of a tool invocation.

        Args:
            cwd: The working directory of the compiler, in forward-slash notation
            args_line: The arguments, as they appear in the build log

        Returns:
            The settings entries and built-in detection arguments, in order
        """
        context = ParseContext()
        position = leading_ws_length(args_line)
        length = len(args_line)
        while position < length:
            remaining = args_line[position:]
            consumed = self._offer(context, cwd, remaining)
            if consumed <= 0:
                # unrecognized argument, skip it
                consumed = token_length(remaining)
            position += consumed
            position += leading_ws_length(args_line[position:])
        return context.result


def gcc_parser(
    language_id: str,
    detection_type: BuiltinDetectionType = BuiltinDetectionType.GCC,
) -> ToolArgumentParser:
    """Create a parser for a GCC compatible compiler."""
    return ToolArgumentParser(language_id, detection_type, GCC_ARGLETS)


GCC_C = gcc_parser("c")
GCC_CXX = gcc_parser("c++")
ICC_C = gcc_parser("c", BuiltinDetectionType.ICC)
ICC_CXX = gcc_parser("c++", BuiltinDetectionType.ICC)
ARMCC_C = gcc_parser("c", BuiltinDetectionType.ARMCC)
XLC_C = gcc_parser("c", BuiltinDetectionType.XLC)
XLC_CXX = gcc_parser("c++", BuiltinDetectionType.XLC)
NVCC = ToolArgumentParser("cuda", BuiltinDetectionType.NVCC, NVCC_ARGLETS)
MSVC_CXX = ToolArgumentParser("c++", BuiltinDetectionType.MSVC, MSVC_ARGLETS)

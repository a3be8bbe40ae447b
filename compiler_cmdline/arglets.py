#!/usr/bin/env python3
"""
Argument parsers ("arglets") for compiler command-line options.

Each arglet recognizes one category of compiler option at the start of the
remaining argument text, emits settings entries or built-in detection
arguments into a parse context, and reports how many characters it consumed.
Arglets are stateless and may be shared by any number of parser chains.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, FrozenSet, Optional, Protocol, Tuple

from .core_types import ArgumentParseError, SettingsEntry
from .paths import resolve_path
from .tokenizer import leading_ws_length, read_token

if TYPE_CHECKING:
    from .parser import ParseContext

_QUOTES = "\"'"
_MACRO_NAME = re.compile(r"^[A-Za-z_$][\w$]*(?:\([^)]*\))?$")
_MACHINE_OPTION = re.compile(r"-m[\w.,+=-]+(?=\s|$)")


class Arglet(Protocol):
    """Protocol defining interface for command-line argument parsers."""

    def process_argument(self, context: ParseContext, cwd: str, args_line: str) -> int:
        """
        Parse the next argument of ``args_line``.

        Args:
            context: Receives the detected settings entries
            cwd: The working directory of the compiler at its invocation
            args_line: The remaining arguments, without leading whitespace

        Returns:
            The number of characters processed, or zero if this arglet cannot
            process the first argument.
        """
        ...


def _read_value(text: str, whole: bool) -> Tuple[str, int]:
    if whole:
        return text, len(text)
    return read_token(text)


def match_option(
    args_line: str,
    names: Tuple[str, ...],
    *,
    joined: bool = True,
    separate: bool = True,
    equals: bool = False,
    _whole: bool = False,
) -> Optional[Tuple[str, int]]:
    """
    Match an option that takes a value at the start of ``args_line``.

    Args:
        args_line: The remaining arguments
        names: Option spellings to try, e.g. ``("-I",)``
        joined: Accept the value glued to the option (``-Ipath``)
        separate: Accept the value as the next token (``-I path``)
        equals: Accept ``--option=value``

    Returns:
        Tuple of (de-quoted value, characters consumed), or ``None``.
    """
    if not _whole and args_line[:1] in _QUOTES:
        # the whole option is quoted, e.g. "-I/path with spaces"
        token, consumed = read_token(args_line)
        found = match_option(
            token, names, joined=joined, separate=False, equals=equals, _whole=True
        )
        if found is None:
            return None
        return found[0], consumed

    for name in names:
        if not args_line.startswith(name):
            continue
        rest = args_line[len(name):]
        if equals and rest.startswith("="):
            value, used = _read_value(rest[1:], _whole)
            return value, len(name) + 1 + used
        if rest and not rest[0].isspace():
            if not joined:
                continue
            value, used = _read_value(rest, _whole)
            return value, len(name) + used
        if separate:
            ws = leading_ws_length(rest)
            if ws == len(rest):
                raise ArgumentParseError(
                    f"Option {name} lacks a value", error_code="MISSING_VALUE"
                )
            value, used = _read_value(rest[ws:], _whole)
            return value, len(name) + ws + used
    return None


@dataclass(frozen=True)
class OptionArglet(ABC):
    """Base class for arglets of options that take a value."""

    names: Tuple[str, ...]
    joined: bool = True
    separate: bool = True
    equals: bool = False

    def process_argument(self, context: ParseContext, cwd: str, args_line: str) -> int:
        found = match_option(
            args_line,
            self.names,
            joined=self.joined,
            separate=self.separate,
            equals=self.equals,
        )
        if found is None:
            return 0
        value, consumed = found
        if not value:
            raise ArgumentParseError(
                f"Empty value in '{args_line[:consumed]}'", error_code="EMPTY_VALUE"
            )
        self.apply(context, cwd, value, args_line[:consumed])
        return consumed

    @abstractmethod
    def apply(self, context: ParseContext, cwd: str, value: str, raw: str) -> None:
        """Record the value of a matched option; ``raw`` is the option text as written."""


@dataclass(frozen=True)
class IncludePathArglet(OptionArglet):
    """Include search path options such as ``-I`` and ``-isystem``."""

    system: bool = False

    def apply(self, context: ParseContext, cwd: str, value: str, raw: str) -> None:
        context.add_setting_entry(
            SettingsEntry.include_path(resolve_path(cwd, value), system=self.system)
        )


@dataclass(frozen=True)
class MacroDefineArglet(OptionArglet):
    """
    Macro definition options such as ``-DNAME=value``.

    ``-DNAME`` defines ``NAME`` as ``1``, like the preprocessor does. MSVC also
    accepts ``#`` as the separator (``/DNAME#value``).
    """

    separators: str = "="

    def apply(self, context: ParseContext, cwd: str, value: str, raw: str) -> None:
        positions = [value.find(s) for s in self.separators]
        cut = min((i for i in positions if i >= 0), default=-1)
        if cut < 0:
            name, definition = value, "1"
        else:
            name, definition = value[:cut], value[cut + 1:]
        if not _MACRO_NAME.match(name):
            raise ArgumentParseError(
                f"Invalid macro name '{name}'", error_code="INVALID_MACRO"
            )
        context.add_setting_entry(SettingsEntry.macro(name, definition))


@dataclass(frozen=True)
class MacroUndefineArglet(OptionArglet):
    """Macro cancellation options such as ``-UNAME``."""

    def apply(self, context: ParseContext, cwd: str, value: str, raw: str) -> None:
        if not _MACRO_NAME.match(value):
            raise ArgumentParseError(
                f"Invalid macro name '{value}'", error_code="INVALID_MACRO"
            )
        context.add_setting_entry(SettingsEntry.undefine(value))


@dataclass(frozen=True)
class IncludeFileArglet(OptionArglet):
    """Forced include options such as ``-include`` and MSVC ``/FI``."""

    def apply(self, context: ParseContext, cwd: str, value: str, raw: str) -> None:
        context.add_setting_entry(SettingsEntry.include_file(resolve_path(cwd, value)))


@dataclass(frozen=True)
class MacroFileArglet(OptionArglet):
    """The ``-imacros`` option."""

    def apply(self, context: ParseContext, cwd: str, value: str, raw: str) -> None:
        context.add_setting_entry(SettingsEntry.macro_file(resolve_path(cwd, value)))


@dataclass(frozen=True)
class BuiltinOptionArglet(OptionArglet):
    """
    Options with a value that change the compiler's built-in macros or paths,
    such as ``-std=c++17`` or ``--sysroot=/x``.

    The option text is handed on verbatim.
    """

    def apply(self, context: ParseContext, cwd: str, value: str, raw: str) -> None:
        context.add_builtin_detection_argument(raw)


@dataclass(frozen=True)
class BuiltinFlagArglet:
    """Value-less flags that change the compiler's built-in macros or paths."""

    flags: FrozenSet[str]

    def process_argument(self, context: ParseContext, cwd: str, args_line: str) -> int:
        end = next(
            (index for index, char in enumerate(args_line) if char.isspace()),
            len(args_line),
        )
        flag = args_line[:end]
        if flag in self.flags:
            context.add_builtin_detection_argument(flag)
            return end
        return 0


@dataclass(frozen=True)
class MachineOptionArglet:
    """GCC machine options (``-m32``, ``-march=armv7-a``, ...)."""

    def process_argument(self, context: ParseContext, cwd: str, args_line: str) -> int:
        if match := _MACHINE_OPTION.match(args_line):
            context.add_builtin_detection_argument(match.group())
            return match.end()
        return 0


GCC_BUILTIN_FLAGS = frozenset(
    {"-ansi", "-nostdinc", "-nostdinc++", "-undef", "-fopenmp", "-pthread"}
)

# argument parsers for GCC compatible compilers, most frequent options first
GCC_ARGLETS: Tuple[Arglet, ...] = (
    IncludePathArglet(("-I",)),
    MacroDefineArglet(("-D",)),
    MacroUndefineArglet(("-U",)),
    IncludePathArglet(("-isystem", "-idirafter"), system=True),
    IncludePathArglet(("-iquote",)),
    IncludeFileArglet(("-include",)),
    MacroFileArglet(("-imacros",)),
    BuiltinOptionArglet(("-std=",), separate=False),
    BuiltinOptionArglet(("--sysroot",), joined=False, equals=True),
    BuiltinOptionArglet(("-isysroot",)),
    BuiltinOptionArglet(("--target",), joined=False, separate=False, equals=True),
    BuiltinOptionArglet(("-target",), joined=False),
    BuiltinFlagArglet(GCC_BUILTIN_FLAGS),
    MachineOptionArglet(),
)

NVCC_ARGLETS: Tuple[Arglet, ...] = (
    IncludePathArglet(("--include-path",), joined=False, equals=True),
    IncludePathArglet(("-I",)),
    MacroDefineArglet(("--define-macro",), joined=False, equals=True),
    MacroDefineArglet(("-D",)),
    MacroUndefineArglet(("--undefine-macro",), joined=False, equals=True),
    MacroUndefineArglet(("-U",)),
    IncludePathArglet(("--system-include",), joined=False, equals=True, system=True),
    IncludePathArglet(("-isystem",), system=True),
    IncludeFileArglet(("--pre-include",), joined=False, equals=True),
    IncludeFileArglet(("-include",)),
    BuiltinOptionArglet(("--std", "-std"), joined=False, equals=True),
)

MSVC_ARGLETS: Tuple[Arglet, ...] = (
    IncludePathArglet(("/I", "-I")),
    MacroDefineArglet(("/D", "-D"), separators="=#"),
    MacroUndefineArglet(("/U", "-U")),
    IncludeFileArglet(("/FI", "-FI")),
    BuiltinOptionArglet(("/std:", "-std:"), separate=False),
)

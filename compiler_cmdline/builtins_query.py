#!/usr/bin/env python3
"""
Built-in settings queries.

Compilers report their built-in macros and include search paths when asked
to preprocess an empty source file with the right flags. This module decides
which compiler to query and with which arguments; running the query is left
to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .core_types import BuiltinDetectionType, DetectionOutcome, ParseResult
from .tokenizer import quote_if_needed, split_arguments

# flags that make the compiler print its built-in macros and include paths
QUERY_FLAGS: Dict[BuiltinDetectionType, Tuple[str, ...]] = {
    BuiltinDetectionType.GCC: ("-E", "-P", "-dM", "-Wp,-v"),
    BuiltinDetectionType.ICC: ("-EP", "-dM", "-v"),
    BuiltinDetectionType.NVCC: (
        "-E", "-Xcompiler", "-P", "-Xcompiler", "-dM", "-Xcompiler", "-v",
    ),
    BuiltinDetectionType.ARMCC: ("-E", "-P", "-dM"),
    BuiltinDetectionType.XLC: ("-E", "-P", "-qshowmacros"),
    BuiltinDetectionType.MSVC: ("/nologo", "/EP", "/PD"),
}

SPEC_FILE_NAMES = {"c": "spec.c", "c++": "spec.cpp", "cuda": "spec.cu"}


@dataclass(frozen=True, slots=True)
class BuiltinsQuery:
    """
    A compiler invocation that reports built-in macros and include paths.

    Queries are hashable: two source files compiled by the same compiler with
    the same built-in detection arguments need only one query.
    """

    command: str
    language_id: str
    detection_type: BuiltinDetectionType
    arguments: Tuple[str, ...] = ()

    @classmethod
    def from_detection(
        cls, outcome: DetectionOutcome, parse_result: Optional[ParseResult] = None
    ) -> BuiltinsQuery:
        """Create the query for a detected tool and its parsed arguments."""
        parser = outcome.signature.parser
        arguments = tuple(parse_result.builtin_detection_args) if parse_result else ()
        return cls(
            command=outcome.command,
            language_id=parser.language_id,
            detection_type=parser.builtin_detection_type,
            arguments=arguments,
        )

    @property
    def is_supported(self) -> bool:
        return self.detection_type in QUERY_FLAGS

    def spec_file_name(self) -> str:
        """Get the name of the empty source file to preprocess."""
        return SPEC_FILE_NAMES.get(self.language_id, "spec.c")

    def argv(self, spec_file: Optional[str] = None) -> List[str]:
        """
        Build the argument vector of the query.

        Args:
            spec_file: Path of the empty source file, defaults to
                ``spec_file_name()``

        Returns:
            The command and its arguments, or an empty list if the compiler
            has no known way to report its built-ins
        """
        if not self.is_supported:
            return []
        argv = [self.command]
        for argument in self.arguments:
            argv.extend(split_arguments(argument))
        argv.extend(QUERY_FLAGS[self.detection_type])
        argv.append(spec_file or self.spec_file_name())
        return argv

    def command_line(self, spec_file: Optional[str] = None) -> str:
        """Render ``argv()`` as a single command line, quoting tokens with spaces."""
        return " ".join(quote_if_needed(token) for token in self.argv(spec_file))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "command": self.command,
            "language_id": self.language_id,
            "detection_type": self.detection_type.value,
            "arguments": list(self.arguments),
            "argv": self.argv(),
            "command_line": self.command_line(),
        }

#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Compiler Command-Line Analyzer

This module identifies the compiler invoked by a build-log command line and
decomposes its arguments into structured build settings.

Features:
- Tool detection by basename, extension, version suffix and NTFS short paths
- Fast path through the last known working detector
- Argument parsing for GCC, Clang, NVCC, MSVC, Intel, ARM and IBM XL compilers
- Include paths, macro definitions and built-in detection arguments
- Built-ins query construction for compiler-specific macros and paths
- Per-record diagnostics instead of aborting on bad input
"""

import sys

from loguru import logger

from .api import (
    detect_tool,
    parse_command,
    process_compile_commands,
    detection_engine,  # singleton instance
)
from .builtins_query import BuiltinsQuery
from .config import DEFAULT_VERSION_PATTERN, ParserSettings, load_settings
from .core_types import (
    BuiltinDetectionType,
    CompileCommand,
    CompilerCmdlineException,
    DetectionOutcome,
    DetectionStrategy,
    Diagnostic,
    DiagnosticKind,
    InvalidConfigurationError,
    MatchResult,
    NoMatchError,
    ParseResult,
    SettingKind,
    SettingsEntry,
    StructuralError,
)
from .detection import DEFAULT_SIGNATURES, ToolSignature, determine_detector
from .engine import EntryResult, ToolDetectionEngine
from .parser import ParseContext, ToolArgumentParser
from .processor import CompileCommandsProcessor, ProcessingReport
from .cli import main

# Module metadata
__version__ = '0.1.0'
__license__ = "GPL-3.0-or-later"

# Configure default logging
logger.remove()  # Remove default handler
logger.add(
    sys.stderr,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level="INFO"
)


def get_tool_info() -> dict:
    """
    Return metadata about this tool for discovery by host applications.

    Returns:
        Dict containing tool metadata including name, version, description,
        available functions, requirements, and platform compatibility.
    """
    return {
        "name": "compiler_cmdline",
        "version": __version__,
        "description": "Compiler detection and argument parsing for compile_commands.json build logs",
        "license": __license__,
        "supported": True,
        "platform": ["windows", "linux", "macos"],
        "functions": [
            "detect_tool",
            "parse_command",
            "process_compile_commands",
        ],
        "requirements": ["loguru", "pydantic", "rich"],
        "capabilities": [
            "compiler_detection",
            "versioned_compiler_detection",
            "ntfs_short_path_detection",
            "include_path_extraction",
            "preprocessor_definitions",
            "builtin_detection_arguments",
        ],
        "classes": {
            "ToolDetectionEngine": "Tool detection with a last-detector cache and argument parsing",
            "ToolSignature": "Recognizes one compiler by the basename of its command",
            "ToolArgumentParser": "Chain of argument parsers for one kind of compiler",
            "CompileCommandsProcessor": "Processing of whole compile_commands.json files",
        },
    }


__all__ = [
    # Core types
    'BuiltinDetectionType',
    'CompileCommand',
    'DetectionOutcome',
    'DetectionStrategy',
    'Diagnostic',
    'DiagnosticKind',
    'MatchResult',
    'ParseResult',
    'SettingKind',
    'SettingsEntry',
    'CompilerCmdlineException',
    'StructuralError',
    'NoMatchError',
    'InvalidConfigurationError',

    # Configuration
    'ParserSettings',
    'DEFAULT_VERSION_PATTERN',
    'load_settings',

    # Classes
    'BuiltinsQuery',
    'ToolSignature',
    'ToolArgumentParser',
    'ParseContext',
    'ToolDetectionEngine',
    'EntryResult',
    'CompileCommandsProcessor',
    'ProcessingReport',
    'DEFAULT_SIGNATURES',

    # API functions
    'detect_tool',
    'parse_command',
    'process_compile_commands',
    'determine_detector',
    'get_tool_info',

    # Instances
    'detection_engine',

    'main'
]

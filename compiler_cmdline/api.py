#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
High-level API for the compiler command-line analyzer.
"""
from typing import Optional, Tuple

from .config import ParserSettings
from .core_types import DetectionOutcome, ParseResult, PathLike
from .engine import ToolDetectionEngine
from .processor import CompileCommandsProcessor, ProcessingReport


# Create a singleton engine for global use
detection_engine = ToolDetectionEngine()


def detect_tool(command_line: str) -> Optional[DetectionOutcome]:
    """
    Detect the tool invoked by a command line, or return None if it is unknown.
    """
    return detection_engine.fast_determine_detector(command_line)


def parse_command(command_line: str,
                  directory: str = "") -> Tuple[DetectionOutcome, ParseResult]:
    """
    Detect the tool of a command line and parse its arguments.
    """
    return detection_engine.process_command(command_line, directory)


def process_compile_commands(file_path: PathLike,
                             settings: Optional[ParserSettings] = None,
                             enabled: bool = True) -> ProcessingReport:
    """
    Process a compile_commands.json file.
    """
    processor = CompileCommandsProcessor(settings or detection_engine.settings)
    return processor.process_file(file_path, enabled=enabled)

#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Command-line interface for the compiler command-line analyzer.
"""
import sys
import argparse
import json
from pathlib import Path
from typing import List, Optional

from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import DEFAULT_VERSION_PATTERN, ParserSettings, load_settings
from .core_types import InvalidConfigurationError
from .processor import CompileCommandsProcessor, ProcessingReport


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="compiler-cmdline",
        description="Extract include paths, macros and built-in detection flags "
        "from compile_commands.json files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show the settings found in a build log
  compiler-cmdline build/compile_commands.json

  # Also recognize versioned compilers such as gcc-12 and write a JSON report
  compiler-cmdline build/compile_commands.json --enable-version-pattern -o report.json
""",
    )

    parser.add_argument(
        "build_logs", nargs="+", type=Path, help="compile_commands.json files to process"
    )

    detection_group = parser.add_argument_group("Detection options")
    detection_group.add_argument(
        "--settings", type=Path, help="Load detection settings from a JSON file"
    )
    detection_group.add_argument(
        "--enable-version-pattern",
        action="store_true",
        help="Also detect compilers with a version suffix (gcc-4.8, gcc-4.8.exe)",
    )
    detection_group.add_argument(
        "--version-pattern",
        help=f"Regular expression for version suffixes (default: {DEFAULT_VERSION_PATTERN})",
    )
    detection_group.add_argument(
        "--match-backslash",
        action="store_true",
        default=None,
        help="Treat backslashes in compiler paths as separators (default on Windows)",
    )
    detection_group.add_argument(
        "--no-parse",
        action="store_true",
        help="Only detect compilers and their built-ins queries, skip argument parsing",
    )

    output_group = parser.add_argument_group("Output options")
    output_group.add_argument("--output", "-o", type=Path, help="Write a JSON report")
    output_group.add_argument(
        "--stats", action="store_true", help="Print statistics of each build log"
    )
    output_group.add_argument(
        "--concurrency",
        type=int,
        default=4,
        help="Number of build logs processed concurrently (default: 4)",
    )
    output_group.add_argument(
        "--no-color", action="store_true", help="Disable colorized output"
    )
    output_group.add_argument(
        "--verbose", "-v", action="count", default=0, help="Increase verbosity"
    )
    output_group.add_argument(
        "--quiet", "-q", action="store_true", help="Suppress non-error output"
    )
    return parser


def resolve_settings(args: argparse.Namespace) -> ParserSettings:
    """Combine the settings file and command-line options."""
    settings = load_settings(args.settings) if args.settings else ParserSettings()
    updates = {}
    if args.enable_version_pattern:
        updates["version_pattern_enabled"] = True
    if args.version_pattern:
        updates["version_pattern"] = args.version_pattern
    if args.match_backslash is not None:
        updates["match_backslash"] = args.match_backslash
    if updates:
        # validate the merged values
        settings = ParserSettings(**{**settings.model_dump(), **updates})
    return settings


def print_report(console: Console, report: ProcessingReport, show_stats: bool) -> None:
    """Print the settings of a report as tables."""
    table = Table(title=report.source or "build log")
    table.add_column("File", style="cyan")
    table.add_column("Tool", style="green")
    table.add_column("Include paths")
    table.add_column("Macros")
    table.add_column("Built-in flags", style="magenta")
    for result in report.results:
        if result.detection is None:
            continue
        parse_result = result.parse_result
        includes = macros = flags = ""
        if parse_result is not None:
            includes = "\n".join(e.name for e in parse_result.include_paths)
            macros = "\n".join(
                f"-U{e.name}" if e.undefined else f"{e.name}={e.value}"
                for e in parse_result.macros
            )
            flags = " ".join(parse_result.builtin_detection_args)
        table.add_row(
            escape(result.file),
            escape(result.detection.tool_name),
            escape(includes),
            escape(macros),
            escape(flags),
        )
    console.print(table)

    for diagnostic in report.diagnostics:
        console.print(f"[yellow]{diagnostic.kind.value}[/yellow]: {escape(diagnostic.message)}")

    if show_stats:
        console.print_json(json.dumps(report.statistics()))


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function for command-line usage.
    """
    args = build_parser().parse_args(argv)

    # Configure logging based on verbosity
    logger.remove()
    if args.quiet:
        logger.add(sys.stderr, level="WARNING")
    elif args.verbose >= 2:
        logger.add(sys.stderr, level="DEBUG")
    elif args.verbose == 1:
        logger.add(sys.stderr, level="INFO")
    else:
        logger.add(sys.stderr, level="WARNING")

    try:
        settings = resolve_settings(args)
    except (InvalidConfigurationError, ValueError) as e:
        logger.error(f"Invalid detection settings: {e}")
        return 1

    processor = CompileCommandsProcessor(settings)
    reports = processor.process_files(
        args.build_logs, enabled=not args.no_parse, concurrency=args.concurrency
    )

    if not args.quiet:
        console = Console(no_color=args.no_color)
        for report in reports:
            print_report(console, report, args.stats)

    if args.output:
        data = [report.to_dict() for report in reports]
        try:
            with args.output.open("w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            logger.error(f"Failed to write report {args.output}: {e}")
            return 1
        logger.info(f"Report written to {args.output}")

    return 0

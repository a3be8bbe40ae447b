#!/usr/bin/env python3
"""
Processing of whole build logs.

This module runs the detection engine over the records of a
``compile_commands.json`` file and collects per-file settings, project-level
include paths, the distinct built-ins queries and diagnostics.
"""

from __future__ import annotations

import json
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from loguru import logger

from .builtins_query import BuiltinsQuery
from .config import ParserSettings
from .core_types import Diagnostic, DiagnosticKind, PathLike, SettingKind, SettingsEntry
from .engine import EntryResult, Record, ToolDetectionEngine


@dataclass
class ProcessingReport:
    """Everything learned from one build log."""

    source: Optional[str] = None
    results: List[EntryResult] = field(default_factory=list)
    file_entries: Dict[str, List[SettingsEntry]] = field(default_factory=dict)
    project_include_paths: Dict[str, List[SettingsEntry]] = field(default_factory=dict)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    tool_counts: Counter = field(default_factory=Counter)
    cache_hits: int = 0
    full_scans: int = 0
    _queries: Dict[BuiltinsQuery, None] = field(default_factory=dict)

    @property
    def builtins_queries(self) -> List[BuiltinsQuery]:
        """Get the distinct built-ins queries, in order of first appearance."""
        return list(self._queries)

    def add_result(self, result: EntryResult) -> None:
        """Merge the result of one record into the report."""
        self.results.append(result)
        self.diagnostics.extend(result.diagnostics)
        if result.detection is None:
            return

        self.tool_counts[result.detection.tool_name] += 1
        if result.builtins_query is not None:
            self._queries.setdefault(result.builtins_query, None)

        parse_result = result.parse_result
        if parse_result is None or not parse_result.entries:
            return
        # a file may be compiled more than once, keep all entries in order
        self.file_entries.setdefault(result.file, []).extend(parse_result.entries)

        # also record include paths at project level, without duplicates
        language_id = result.detection.signature.parser.language_id
        known = self.project_include_paths.setdefault(language_id, [])
        for entry in parse_result.entries:
            if entry.kind == SettingKind.INCLUDE_PATH and entry not in known:
                known.append(entry)

    def statistics(self) -> Dict[str, Any]:
        """Generate statistics about the processed records."""
        by_kind = Counter(d.kind.value for d in self.diagnostics)
        detections = self.cache_hits + self.full_scans
        return {
            "total_records": len(self.results),
            "detected": sum(1 for r in self.results if r.detection is not None),
            "rejected": by_kind.get(DiagnosticKind.STRUCTURAL.value, 0),
            "unknown_tools": by_kind.get(DiagnosticKind.NO_MATCH.value, 0),
            "by_tool": dict(self.tool_counts),
            "builtins_queries": len(self._queries),
            "cache_hit_ratio": (self.cache_hits / detections) if detections else 0.0,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "files": {
                file: [entry.to_dict() for entry in entries]
                for file, entries in self.file_entries.items()
            },
            "project_include_paths": {
                language: [entry.name for entry in entries]
                for language, entries in self.project_include_paths.items()
            },
            "builtins_queries": [query.to_dict() for query in self.builtins_queries],
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "statistics": self.statistics(),
        }


class CompileCommandsProcessor:
    """Processes build logs with a tool detection engine."""

    def __init__(
        self,
        settings: Optional[ParserSettings] = None,
        engine_factory: Optional[Callable[[ParserSettings], ToolDetectionEngine]] = None,
    ) -> None:
        self.settings = settings or ParserSettings()
        self.engine_factory = engine_factory or ToolDetectionEngine

    def process(
        self,
        records: Iterable[Record],
        enabled: bool = True,
        source: Optional[str] = None,
    ) -> ProcessingReport:
        """
        Process build-log records in order.

        Args:
            records: The records to process
            enabled: Whether to parse arguments or just determine built-ins queries
            source: Name of the build log, for the report

        Returns:
            The report; bad records show up as diagnostics
        """
        engine = self.engine_factory(self.settings)
        report = ProcessingReport(source=source)
        for index, record in enumerate(records):
            report.add_result(engine.process_entry(record, index=index, enabled=enabled))
        report.cache_hits = engine.cache_hits
        report.full_scans = engine.full_scans
        logger.info(
            f"Processed {len(report.results)} entries"
            f" with {len(report.diagnostics)} diagnostics"
        )
        return report

    def process_file(self, file_path: PathLike, enabled: bool = True) -> ProcessingReport:
        """Process a ``compile_commands.json`` file."""
        path = Path(file_path)
        logger.info(f"Processing file: {path}")

        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return self._failed(path, f"File '{path}' was not created in the build")
        except OSError as e:
            return self._failed(path, f"Failed to read file {path}: {e}")
        except json.JSONDecodeError:
            return self._failed(path, "File does not seem to be in JSON format")
        except UnicodeDecodeError as e:
            return self._failed(path, f"File {path} is not UTF-8 encoded: {e}")

        if not isinstance(data, list):
            return self._failed(path, "File does not seem to be in JSON format")
        return self.process(data, enabled=enabled, source=str(path))

    def process_files(
        self, file_paths: List[PathLike], enabled: bool = True, concurrency: int = 4
    ) -> List[ProcessingReport]:
        """
        Process several build logs concurrently.

        Each file gets an engine of its own, so no detection cache is shared
        between threads.
        """
        reports: Dict[str, ProcessingReport] = {}
        with ThreadPoolExecutor(max_workers=concurrency) as executor:
            futures = {
                executor.submit(self.process_file, file_path, enabled): str(file_path)
                for file_path in file_paths
            }
            for future in as_completed(futures):
                reports[futures[future]] = future.result()
        return [reports[str(file_path)] for file_path in file_paths]

    @staticmethod
    def _failed(path: Path, message: str) -> ProcessingReport:
        logger.error(message)
        report = ProcessingReport(source=str(path))
        report.diagnostics.append(
            Diagnostic(DiagnosticKind.STRUCTURAL, message, file=str(path))
        )
        return report

import pytest

from .arglets import IncludePathArglet
from .config import ParserSettings
from .core_types import (
    BuiltinDetectionType,
    CompileCommand,
    DetectionStrategy,
    DiagnosticKind,
    NoMatchError,
    SettingsEntry,
    StructuralError,
)
from .detection import ToolSignature, determine_detector
from .engine import ToolDetectionEngine
from .parser import ToolArgumentParser


@pytest.fixture
def engine():
    """Create an engine with forward-slash paths only."""
    return ToolDetectionEngine(ParserSettings(match_backslash=False))


@pytest.fixture
def scan_spy(mocker):
    """Count full registry scans of the engine."""
    return mocker.patch(
        "compiler_cmdline.engine.determine_detector", wraps=determine_detector
    )


# --- Tests for the last-detector cache ---


def test_cache_short_circuits_scan(engine, scan_spy):
    """Test that a repeated tool is detected without a registry scan."""
    first = engine.fast_determine_detector("/usr/bin/gcc -c a.c")
    second = engine.fast_determine_detector("/usr/bin/gcc -c b.c")

    assert scan_spy.call_count == 1
    assert engine.full_scans == 1
    assert engine.cache_hits == 1
    assert first.signature is second.signature
    assert second.arguments == " -c b.c"


def test_cached_outcome_equals_full_scan(engine):
    """Test that the cache gives the same outcome as a full scan."""
    engine.fast_determine_detector("/usr/bin/g++ -c a.cpp")
    line = "/opt/bin/g++ -DX -c b.cpp"

    cached = engine.fast_determine_detector(line)

    assert engine.cache_hits == 1
    assert cached == determine_detector(line, match_backslash=False)


def test_cache_miss_falls_back_to_scan(engine):
    """Test that a different tool replaces the cached detector."""
    engine.fast_determine_detector("/usr/bin/gcc -c a.c")
    outcome = engine.fast_determine_detector("/usr/bin/clang++ -c a.cpp")

    assert outcome.tool_name == "clang++"
    assert engine.cache_misses == 1
    assert engine.full_scans == 2
    signature, strategy = engine.last_detector
    assert signature.name == "clang++"
    assert strategy == DetectionStrategy.BASENAME


def test_unknown_tool_clears_cache(engine):
    """Test that a failed detection leaves no cached detector."""
    engine.fast_determine_detector("/usr/bin/gcc -c a.c")
    assert engine.fast_determine_detector("/usr/bin/ld a.o") is None
    assert engine.last_detector is None


def test_cached_version_strategy_respects_settings(engine):
    """Test that disabling version matching also disables the cached detector."""
    engine.settings.version_pattern_enabled = True
    outcome = engine.fast_determine_detector("gcc-4.8 -c a.c")
    assert outcome.strategy == DetectionStrategy.WITH_VERSION

    engine.settings.version_pattern_enabled = False
    assert engine.fast_determine_detector("gcc-4.8 -c b.c") is None
    assert engine.cache_hits == 0


def test_reset_cache(engine, scan_spy):
    """Test that resetting the cache forces a scan."""
    engine.fast_determine_detector("/usr/bin/gcc -c a.c")
    engine.reset_cache()
    engine.fast_determine_detector("/usr/bin/gcc -c b.c")
    assert scan_spy.call_count == 2


def test_engines_do_not_share_cache():
    """Test that each engine has a cache of its own."""
    first = ToolDetectionEngine(ParserSettings(match_backslash=False))
    second = ToolDetectionEngine(ParserSettings(match_backslash=False))
    first.fast_determine_detector("/usr/bin/gcc -c a.c")
    assert second.last_detector is None


def test_expanded_short_path_detection_is_cached(mocker):
    """Test that a detection by expanded path is retried like a full scan."""
    expander = mocker.Mock(return_value="C:\\MinGW\\bin\\gcc.exe")
    engine = ToolDetectionEngine(ParserSettings(match_backslash=True), expander=expander)

    engine.fast_determine_detector("C:\\MINGW~1\\bin\\GCC~1.EXE -c a.c")
    outcome = engine.fast_determine_detector("C:\\MinGW\\bin\\gcc.exe -c b.c")

    assert outcome.tool_name == "gcc"
    assert engine.cache_hits == 1


# --- Tests for process_command ---


def test_process_command(engine):
    """Test detection and parsing of a single command line."""
    outcome, result = engine.process_command(
        "/usr/bin/g++ -std=c++17 -DFOO=1 -I../inc main.cpp", "/build"
    )
    assert outcome.tool_name == "g++"
    assert result.macros == [SettingsEntry.macro("FOO", "1")]
    assert result.include_paths == [SettingsEntry.include_path("/inc")]
    assert result.builtin_detection_args == ["-std=c++17"]


def test_process_command_unknown_tool(engine):
    """Test that an unknown tool raises NoMatchError."""
    with pytest.raises(NoMatchError) as exc_info:
        engine.process_command("/usr/bin/ld -o app a.o")
    assert exc_info.value.error_code == "UNKNOWN_TOOL"


# --- Tests for process_entry ---


def test_process_entry_end_to_end(engine):
    """Test processing a complete build-log record."""
    record = {
        "file": "main.cpp",
        "command": "/usr/bin/g++ -std=c++17 -DFOO=1 -I../inc main.cpp",
        "directory": "/build",
    }

    result = engine.process_entry(record, index=0)

    assert result.success
    assert result.file == "/build/main.cpp"
    assert result.detection.tool_name == "g++"
    assert result.parse_result.macros == [SettingsEntry.macro("FOO", "1")]
    assert result.parse_result.include_paths == [SettingsEntry.include_path("/inc")]
    assert result.parse_result.builtin_detection_args == ["-std=c++17"]
    assert result.builtins_query.argv()[:2] == ["/usr/bin/g++", "-std=c++17"]
    assert result.builtins_query.language_id == "c++"


def test_process_entry_accepts_model(engine):
    """Test processing an already validated record."""
    record = CompileCommand(file="/src/a.c", command="gcc -DX -c a.c", directory="/src")
    result = engine.process_entry(record)
    assert result.parse_result.macros == [SettingsEntry.macro("X", "1")]


@pytest.mark.parametrize(
    "record",
    [
        {"file": "a.c", "command": "", "directory": "/b"},
        {"file": "a.c", "command": "   ", "directory": "/b"},
        {"file": "a.c", "command": "gcc -c a.c"},
        {"command": "gcc -c a.c", "directory": "/b"},
        "gcc -c a.c",
        None,
    ],
)
def test_process_entry_structural_errors(engine, scan_spy, record):
    """Test that malformed records are reported without matching."""
    result = engine.process_entry(record, index=3)

    assert not result.success
    assert result.detection is None
    assert [d.kind for d in result.diagnostics] == [DiagnosticKind.STRUCTURAL]
    assert result.diagnostics[0].index == 3
    scan_spy.assert_not_called()
    assert engine.full_scans == 0


def test_validate_record_raises_structural_error():
    """Test record validation errors."""
    with pytest.raises(StructuralError) as exc_info:
        ToolDetectionEngine.validate_record({"file": "a.c"})
    assert exc_info.value.error_code == "MISSING_FIELD"


def test_process_entry_unknown_tool(engine):
    """Test that an unknown tool gives a no-match diagnostic."""
    record = {"file": "a.o", "command": "/usr/bin/ld -o app a.o", "directory": "/b"}

    result = engine.process_entry(record, index=1)

    assert result.detection is None
    diagnostic = result.diagnostics[0]
    assert diagnostic.kind == DiagnosticKind.NO_MATCH
    assert diagnostic.file == "/b/a.o"
    assert diagnostic.command == "/usr/bin/ld -o app a.o"


def test_process_entry_disabled_parsing(engine):
    """Test that disabled parsing still determines the built-ins query."""
    record = {"file": "a.c", "command": "gcc -std=c11 -DX -c a.c", "directory": "/b"}

    result = engine.process_entry(record, enabled=False)

    assert result.parse_result is None
    assert result.builtins_query.command == "gcc"
    assert result.builtins_query.arguments == ()


def test_process_entry_survives_failing_arglet():
    """Test that an arglet raising a lookup error does not abort the record."""

    class LookupArglet:
        def process_argument(self, context, cwd, args_line):
            return {}["x"]

    parser = ToolArgumentParser(
        "c", BuiltinDetectionType.GCC, (LookupArglet(), IncludePathArglet(("-I",)))
    )
    engine = ToolDetectionEngine(
        ParserSettings(match_backslash=False),
        signatures=[ToolSignature("gcc", parser)],
    )

    result = engine.process_entry({"file": "a.c", "command": "gcc -Ia a.c", "directory": "/b"})

    assert result.success
    assert result.parse_result.include_paths == [SettingsEntry.include_path("/b/a")]

import pytest

from .arglets import (
    GCC_BUILTIN_FLAGS,
    BuiltinFlagArglet,
    BuiltinOptionArglet,
    IncludeFileArglet,
    IncludePathArglet,
    MachineOptionArglet,
    MacroDefineArglet,
    MacroFileArglet,
    MacroUndefineArglet,
    OptionArglet,
    match_option,
)
from .core_types import ArgumentParseError, SettingsEntry
from .parser import ParseContext


@pytest.fixture
def context():
    return ParseContext()


# --- Tests for match_option ---


@pytest.mark.parametrize(
    "args_line, expected",
    [
        ("-Iinc -c", ("inc", 5)),
        ("-I inc -c", ("inc", 6)),
        ('-I"/opt/my inc" -c', ("/opt/my inc", 15)),
        ('"-I/opt/my inc" -c', ("/opt/my inc", 15)),
        ("-c a.c", None),
    ],
)
def test_match_option_forms(args_line, expected):
    """Test joined, separate and quoted option values."""
    assert match_option(args_line, ("-I",)) == expected


def test_match_option_equals_form():
    """Test --option=value and --option value."""
    assert match_option("--sysroot=/x a.c", ("--sysroot",), joined=False, equals=True) == ("/x", 12)
    assert match_option("--sysroot /x", ("--sysroot",), joined=False, equals=True) == ("/x", 12)
    assert match_option("--sysrootx", ("--sysroot",), joined=False, equals=True) is None


def test_match_option_missing_value():
    """Test that a trailing option without value is an error."""
    with pytest.raises(ArgumentParseError):
        match_option("-I   ", ("-I",))


# --- Tests for settings arglets ---


def test_include_path_is_resolved(context):
    """Test that relative include paths are made absolute."""
    consumed = IncludePathArglet(("-I",)).process_argument(context, "/build", "-I../inc main.c")
    assert consumed == 8
    assert context.result.entries == [SettingsEntry.include_path("/inc")]


def test_system_include_path(context):
    """Test that -isystem paths are marked as system paths."""
    arglet = IncludePathArglet(("-isystem",), system=True)
    arglet.process_argument(context, "/build", "-isystem /usr/local/include")
    assert context.result.entries == [
        SettingsEntry.include_path("/usr/local/include", system=True)
    ]


@pytest.mark.parametrize(
    "args_line, name, value",
    [
        ("-DFOO", "FOO", "1"),
        ("-DFOO=", "FOO", ""),
        ("-DFOO=bar -c", "FOO", "bar"),
        ("-D FOO=bar", "FOO", "bar"),
        ('-D"MSG=hello world"', "MSG", "hello world"),
        ("-D'MAX(a,b)=a'", "MAX(a,b)", "a"),
        ("-DURL=http://x=y", "URL", "http://x=y"),
    ],
)
def test_macro_define(context, args_line, name, value):
    """Test macro definitions with and without values."""
    consumed = MacroDefineArglet(("-D",)).process_argument(context, "/build", args_line)
    assert consumed > 0
    assert context.result.entries == [SettingsEntry.macro(name, value)]


def test_msvc_macro_separator(context):
    """Test that MSVC accepts '#' between macro name and value."""
    arglet = MacroDefineArglet(("/D", "-D"), separators="=#")
    arglet.process_argument(context, "C:/build", "/DVER#2 /c")
    assert context.result.entries == [SettingsEntry.macro("VER", "2")]


@pytest.mark.parametrize("args_line", ["-D 1FOO", "-D=1", "-D"])
def test_macro_define_invalid(context, args_line):
    """Test that malformed macro definitions raise."""
    with pytest.raises(ArgumentParseError):
        MacroDefineArglet(("-D",)).process_argument(context, "/build", args_line)
    assert context.result.entries == []


def test_macro_undefine(context):
    """Test macro cancellation."""
    consumed = MacroUndefineArglet(("-U",)).process_argument(context, "/build", "-UNDEBUG -c")
    assert consumed == 8
    assert context.result.entries == [SettingsEntry.undefine("NDEBUG")]


def test_include_and_macro_files(context):
    """Test forced include and macro files."""
    IncludeFileArglet(("-include",)).process_argument(context, "/build", "-include config.h")
    MacroFileArglet(("-imacros",)).process_argument(context, "/build", "-imacros /x/m.h")
    assert context.result.entries == [
        SettingsEntry.include_file("/build/config.h"),
        SettingsEntry.macro_file("/x/m.h"),
    ]


# --- Tests for built-in detection arglets ---


@pytest.mark.parametrize(
    "arglet, args_line, expected",
    [
        (BuiltinOptionArglet(("-std=",), separate=False), "-std=c++17 -c", "-std=c++17"),
        (
            BuiltinOptionArglet(("--sysroot",), joined=False, equals=True),
            "--sysroot=/opt/root a.c",
            "--sysroot=/opt/root",
        ),
        (
            BuiltinOptionArglet(("--sysroot",), joined=False, equals=True),
            "--sysroot /opt/root a.c",
            "--sysroot /opt/root",
        ),
        (BuiltinOptionArglet(("-target",), joined=False), "-target armv7a-none-eabi", "-target armv7a-none-eabi"),
        (BuiltinFlagArglet(GCC_BUILTIN_FLAGS), "-nostdinc -c", "-nostdinc"),
        (MachineOptionArglet(), "-m32 -c", "-m32"),
        (MachineOptionArglet(), "-march=armv7-a", "-march=armv7-a"),
    ],
)
def test_builtin_arguments_are_verbatim(context, arglet, args_line, expected):
    """Test that built-in detection arguments keep their original text."""
    consumed = arglet.process_argument(context, "/build", args_line)
    assert consumed == len(expected)
    assert context.result.builtin_detection_args == [expected]
    assert context.result.entries == []


@pytest.mark.parametrize(
    "arglet, args_line",
    [
        (BuiltinOptionArglet(("-std=",), separate=False), "-std= -c"),
        (BuiltinOptionArglet(("-std=",), separate=False), "-std="),
        (BuiltinFlagArglet(GCC_BUILTIN_FLAGS), "-nostdincx"),
        (MachineOptionArglet(), "-MD"),
    ],
)
def test_builtin_arglets_decline(context, arglet, args_line):
    """Test that non-matching text is not consumed."""
    assert arglet.process_argument(context, "/build", args_line) == 0
    assert context.result.builtin_detection_args == []


def test_option_arglet_requires_apply():
    """Test that value-option arglets must define how to record their value."""
    with pytest.raises(TypeError):
        OptionArglet(("-X",))

    class IncompleteArglet(OptionArglet):
        pass

    with pytest.raises(TypeError):
        IncompleteArglet(("-X",))

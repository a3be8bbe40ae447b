import pytest

from .tokenizer import (
    quote_if_needed,
    read_token,
    split_arguments,
    split_command,
    token_length,
    trim_leading_ws,
)


# --- Tests for split_command ---


@pytest.mark.parametrize(
    "line, expected",
    [
        ("/usr/bin/gcc -c a.c", ("/usr/bin/gcc", " -c a.c")),
        ("gcc", ("gcc", "")),
        ("   gcc -c", ("gcc", " -c")),
        ("gcc\t-c", ("gcc", "\t-c")),
        ('"C:/Program Files/gcc.exe" -c a.c', ("C:/Program Files/gcc.exe", " -c a.c")),
        ('"/opt/my tools/g++"', ("/opt/my tools/g++", "")),
    ],
)
def test_split_command_valid(line, expected):
    """Test splitting of unquoted and quoted leading commands."""
    assert split_command(line) == expected


@pytest.mark.parametrize(
    "line",
    [
        "",
        "    ",
        '"C:/Program Files/gcc.exe -c a.c',  # unterminated quote
        '"C:/Program Files"/gcc.exe -c',  # quote does not end the token
        '"" -c',
    ],
)
def test_split_command_invalid(line):
    """Test that blank lines and malformed quoting are not split."""
    assert split_command(line) is None


@pytest.mark.parametrize(
    "line",
    [
        "/usr/bin/gcc -c a.c",
        "cc",
        "/opt/arm/bin/arm-none-eabi-gcc   -mcpu=cortex-m4 -c main.c  ",
    ],
)
def test_split_command_reconstructs_unquoted_line(line):
    """Test that command and rest concatenate to the original line."""
    command, rest = split_command(line)
    assert command + rest == line


def test_split_command_reconstructs_quoted_line():
    """Test that re-quoting the command reproduces a quoted line."""
    line = '"C:/Program Files/LLVM/bin/clang.exe" -DX -c a.c'
    command, rest = split_command(line)
    assert f'"{command}"{rest}' == line


def test_trim_leading_ws():
    """Test that only leading whitespace is removed."""
    assert trim_leading_ws(" \t -Ia  ") == "-Ia  "
    assert trim_leading_ws("-Ia") == "-Ia"
    assert trim_leading_ws("   ") == ""


# --- Tests for argument tokens ---


@pytest.mark.parametrize(
    "text, expected",
    [
        ("-c a.c", ("-c", 2)),
        ('-DFOO="a b" -c', ("-DFOO=a b", 11)),
        ("-I'x y' z", ("-Ix y", 7)),
        ('-DV=\\"1.0\\" -c', ('-DV="1.0"', 11)),
        ('"unterminated rest', ("unterminated rest", 18)),
        ("C:\\src\\a.c", ("C:\\src\\a.c", 10)),
    ],
)
def test_read_token(text, expected):
    """Test quote-aware reading of a single token."""
    assert read_token(text) == expected


def test_token_length_skips_quoted_groups():
    """Test that a quoted group counts as part of one token."""
    assert token_length("abc def") == 3
    assert token_length('"out -DFAKE.o" -DREAL') == 14


def test_split_arguments():
    """Test splitting of an argument string into de-quoted tokens."""
    assert split_arguments('--sysroot "/opt/my root"') == ["--sysroot", "/opt/my root"]
    assert split_arguments("  -std=c++17  ") == ["-std=c++17"]
    assert split_arguments("") == []


def test_quote_if_needed():
    """Test quoting of tokens with whitespace."""
    assert quote_if_needed("C:/Program Files/gcc.exe") == '"C:/Program Files/gcc.exe"'
    assert quote_if_needed("/usr/bin/gcc") == "/usr/bin/gcc"

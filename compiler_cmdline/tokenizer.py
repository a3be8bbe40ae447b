#!/usr/bin/env python3
"""
Shell-like tokenization of compiler command lines.

Build logs hold already-expanded command strings, so only a small subset of
shell quoting is understood: a leading command may be wrapped in one pair of
double quotes, and argument tokens may contain double- or single-quoted
groups. Shell variable expansion and nested quoting are not supported.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

QUOTE = '"'
_ARG_QUOTES = "\"'"


def trim_leading_ws(text: str) -> str:
    """Remove all leading whitespace, leaving the rest of ``text`` unmodified."""
    return text.lstrip()


def split_command(line: str) -> Optional[Tuple[str, str]]:
    """
    Split a command line into its leading command token and the remainder.

    Args:
        line: The raw command line

    Returns:
        A ``(command, rest)`` tuple where ``command`` has surrounding quotes
        removed and ``rest`` starts right after the command token, or ``None``
        if the line is blank or the command has an unterminated quote.
    """
    line = trim_leading_ws(line)
    if not line:
        return None

    if line[0] == QUOTE:
        end = line.find(QUOTE, 1)
        if end < 0:
            return None
        rest = line[end + 1:]
        if rest and not rest[0].isspace():
            # a quoted command must be a token of its own
            return None
        command = line[1:end]
        return (command, rest) if command else None

    for index, char in enumerate(line):
        if char.isspace():
            return line[:index], line[index:]
    return line, ""


def read_token(text: str) -> Tuple[str, int]:
    """
    Read the first whitespace-delimited token of ``text``.

    Quoted groups inside the token may contain whitespace; the quote characters
    themselves are removed from the value. Outside of quotes, ``\\"`` stands
    for a literal double quote. An unterminated quote extends the token to the
    end of the text.

    Args:
        text: Text that does not start with whitespace

    Returns:
        Tuple of (de-quoted token value, number of characters consumed)
    """
    value = []
    quote: Optional[str] = None
    index = 0
    length = len(text)
    while index < length:
        char = text[index]
        if quote:
            if char == quote:
                quote = None
            else:
                value.append(char)
        elif char == "\\" and index + 1 < length and text[index + 1] == QUOTE:
            value.append(QUOTE)
            index += 1
        elif char in _ARG_QUOTES:
            quote = char
        elif char.isspace():
            break
        else:
            value.append(char)
        index += 1
    return "".join(value), index


def token_length(text: str) -> int:
    """Get the length of the first quote-aware token of ``text``."""
    return read_token(text)[1]


def split_arguments(text: str) -> List[str]:
    """Split ``text`` into de-quoted argument tokens."""
    tokens = []
    text = trim_leading_ws(text)
    while text:
        value, consumed = read_token(text)
        tokens.append(value)
        text = trim_leading_ws(text[consumed:])
    return tokens


def leading_ws_length(text: str) -> int:
    """Get the number of leading whitespace characters of ``text``."""
    return len(text) - len(text.lstrip())


def quote_if_needed(token: str) -> str:
    """Wrap ``token`` in double quotes if it contains whitespace."""
    if any(char.isspace() for char in token):
        return f"{QUOTE}{token}{QUOTE}"
    return token

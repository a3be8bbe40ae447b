#!/usr/bin/env python3
"""
Path-form handling for command names and include paths.

Command paths in build logs may use ``/`` or, on Windows, ``\\`` separators,
and Windows tools sometimes show up under their NTFS 8.3 short names
(``C:\\PROGRA~1\\MINGW~1\\bin\\GCC~1.EXE``). Include paths are resolved
against the compiler's working directory without touching the filesystem.
"""

from __future__ import annotations

import platform
import posixpath
import re
from typing import Callable, Tuple, TypeAlias

from loguru import logger

ShortPathExpander: TypeAlias = Callable[[str], str]

# a path segment in 8.3 notation, e.g. PROGRA~1 or GCC~1.EXE
_SHORT_SEGMENT = re.compile(r"(?:^|[\\/])[^\\/~]{1,6}~\d+(?:\.[^\\/.]{1,3})?(?=$|[\\/])")
_WINDOWS_ABSOLUTE = re.compile(r"^(?:[A-Za-z]:[\\/]|\\\\)")
_DRIVE_PREFIX = re.compile(r"^[A-Za-z]:")


def split_basename(path: str, match_backslash: bool = False) -> Tuple[str, str]:
    """
    Split a command path into its directory prefix and its basename.

    Args:
        path: The command path
        match_backslash: Whether ``\\`` also separates path components

    Returns:
        Tuple of (prefix including the trailing separator, basename)
    """
    cut = path.rfind("/")
    if match_backslash:
        cut = max(cut, path.rfind("\\"))
    return path[: cut + 1], path[cut + 1:]


def basename(path: str, match_backslash: bool = False) -> str:
    """Get the trailing path component of ``path``."""
    return split_basename(path, match_backslash)[1]


def has_short_segments(path: str) -> bool:
    """Check whether ``path`` contains NTFS 8.3 short name segments."""
    return _SHORT_SEGMENT.search(path) is not None


def expand_short_path(path: str) -> str:
    """
    Expand NTFS 8.3 short path segments to their long form.

    Uses the Windows ``GetLongPathNameW`` API, which needs the path to exist.
    On other platforms, or if the path cannot be resolved, it is returned
    unchanged.
    """
    if platform.system() != "Windows" or not has_short_segments(path):
        return path

    import ctypes

    buffer = ctypes.create_unicode_buffer(1024)
    length = ctypes.windll.kernel32.GetLongPathNameW(path, buffer, len(buffer))
    if 0 < length <= len(buffer):
        logger.debug(f"Expanded short path {path} to {buffer.value}")
        return buffer.value
    logger.debug(f"Could not expand short path {path}")
    return path


def is_absolute(path: str) -> bool:
    """Check if ``path`` is absolute in either POSIX or Windows notation."""
    return path.startswith("/") or _WINDOWS_ABSOLUTE.match(path) is not None


def resolve_path(cwd: str, path: str) -> str:
    """
    Resolve ``path`` against the working directory ``cwd``.

    Absolute paths are returned unchanged. Relative paths are appended to
    ``cwd`` (forward-slash notation) and normalized, so ``/build`` and
    ``../inc`` give ``/inc``.
    """
    if not path or is_absolute(path):
        return path
    if _DRIVE_PREFIX.match(cwd):
        path = path.replace("\\", "/")
    if not cwd:
        return posixpath.normpath(path)
    return posixpath.normpath(posixpath.join(cwd, path))

# SPDX-License-Identifier: MIT
"""Path classification and relativization helpers."""

from __future__ import annotations

import os
import re
from pathlib import Path, PurePosixPath

SOURCE_SUFFIXES: frozenset[str] = frozenset(
    [".c", ".cc", ".cpp", ".cxx", ".c++", ".C", ".m", ".mm", ".s", ".S", ".asm"]
)
HEADER_SUFFIXES: frozenset[str] = frozenset(
    [".h", ".hh", ".hpp", ".hxx", ".h++", ".inc", ".def", ".inl"]
)
OBJECT_SUFFIXES: frozenset[str] = frozenset([".o", ".obj"])

_SHARED_RE = re.compile(r"\.so(\.[0-9]+)*$")


def suffix(path: str) -> str:
    return PurePosixPath(path).suffix


def is_source(path: str) -> bool:
    return suffix(path) in SOURCE_SUFFIXES


def is_header(path: str) -> bool:
    return suffix(path) in HEADER_SUFFIXES


def is_object(path: str) -> bool:
    return suffix(path) in OBJECT_SUFFIXES


def is_shared_library(path: str) -> bool:
    """Check for ``.so`` and versioned ``.so.N`` files."""
    return _SHARED_RE.search(PurePosixPath(path).name) is not None


def is_static_library(path: str) -> bool:
    return suffix(path) == ".a"


def is_library(path: str) -> bool:
    return is_static_library(path) or is_shared_library(path)


def library_stem(path: str | Path) -> str:
    """Return a library file name without its suffixes.

    Examples:
        >>> library_stem("src/util/libmesa_util.a")
        'libmesa_util'
        >>> library_stem("/usr/lib/libz.so.1")
        'libz'
    """
    name = PurePosixPath(path).name
    match = _SHARED_RE.search(name)
    if match:
        return name[: match.start()]
    return PurePosixPath(name).stem


def normalize(base: Path, path: str) -> Path:
    """Join a graph path onto ``base``, collapsing ``..`` without resolving links."""
    return Path(os.path.normpath(base / path))


def relative_to(path: Path, root: Path) -> str | None:
    """Return ``path`` relative to ``root`` as a POSIX string, or None if outside."""
    try:
        rel = path.relative_to(root)
    except ValueError:
        return None
    return rel.as_posix()

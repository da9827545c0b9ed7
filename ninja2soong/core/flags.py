# SPDX-License-Identifier: MIT
"""Flag handling utilities for ninja2soong.

Compiler and linker arguments recovered from a build graph are plain
shell tokens. Some flags take their argument as a separate token
(``-include config.h``, ``-Xclang -foo``); those are joined into a
single unit so that filtering and de-duplication treat the flag and its
argument together.

All merging is order-preserving: the first occurrence of a unit keeps
its position and later duplicates are dropped, matching the order in
which the closure resolver visits edges.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


# Flags understood by GCC and Clang that take their argument as the next token.
# Include and define flags (-I, -isystem, -D) are split out by the rule
# schemas before these are consulted.
GCC_SEPARATED_ARG_FLAGS: frozenset[str] = frozenset(
    [
        "-include",
        "-imacros",
        "-iquote",
        "-idirafter",
        "-isysroot",
        "-iprefix",
        "-x",
        "-arch",
        "-target",
        "--target",
        "-Xclang",
        "-Xlinker",
        "-Xpreprocessor",
        "-Xassembler",
        "-mllvm",
        "-MF",
        "-MT",
        "-MQ",
        "-o",
        "-T",
    ]
)


def is_separated_arg_flag(
    flag: str, separated_arg_flags: frozenset[str] | None = None
) -> bool:
    """Check if a flag takes its argument as a separate token.

    Examples:
        >>> is_separated_arg_flag("-include")
        True
        >>> is_separated_arg_flag("-O2")
        False
    """
    if separated_arg_flags is None:
        separated_arg_flags = GCC_SEPARATED_ARG_FLAGS
    return flag in separated_arg_flags


def join_separated_args(
    tokens: list[str], separated_arg_flags: frozenset[str] | None = None
) -> list[str]:
    """Join flags with separate arguments into single units.

    Examples:
        >>> join_separated_args(["-O2", "-include", "cfg.h", "-Wall"])
        ['-O2', '-include cfg.h', '-Wall']
    """
    result: list[str] = []
    i = 0
    while i < len(tokens):
        flag = tokens[i]
        if is_separated_arg_flag(flag, separated_arg_flags) and i + 1 < len(tokens):
            result.append(f"{flag} {tokens[i + 1]}")
            i += 2
        else:
            result.append(flag)
            i += 1
    return result


def deduplicate(items: Iterable[str]) -> list[str]:
    """De-duplicate items, first occurrence wins.

    Examples:
        >>> deduplicate(["-O2", "-Wall", "-O2", "-g"])
        ['-O2', '-Wall', '-g']
    """
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def merge_flags(existing: list[str], new: Iterable[str]) -> None:
    """Merge new items into an existing list, avoiding duplicates.

    This modifies ``existing`` in place, appending items from ``new``
    that aren't already present.

    Examples:
        >>> existing = ["-O2", "-DFOO"]
        >>> merge_flags(existing, ["-Wall", "-O2", "-DBAR"])
        >>> existing
        ['-O2', '-DFOO', '-Wall', '-DBAR']
    """
    present = set(existing)
    for item in new:
        if item not in present:
            present.add(item)
            existing.append(item)

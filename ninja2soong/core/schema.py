# SPDX-License-Identifier: MIT
"""Rule schemas: how each build generator encodes flags in its manifest.

A schema classifies rule names into kinds (phony, compile, link,
archive, custom) and extracts structured compile and link information
from an edge's variables:

- Meson puts all compiler arguments in ``ARGS`` and linker arguments
  in ``LINK_ARGS``;
- CMake splits them into ``FLAGS``, ``DEFINES``, ``INCLUDES``,
  ``LINK_FLAGS`` and ``LINK_LIBRARIES``;
- GN (and the generic schema) use ``cflags``, ``defines``,
  ``include_dirs``/``includes``, ``ldflags`` and ``libs``.

Arguments are tokenized with shlex; include and define flags are split
out of mixed argument strings, and library paths out of link arguments.
"""

from __future__ import annotations

import re
import shlex
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from ninja2soong.core.errors import ConfigError, ParseError
from ninja2soong.core.flags import join_separated_args
from ninja2soong.util.paths import is_library

if TYPE_CHECKING:
    from ninja2soong.core.graph import Edge


class RuleKind(Enum):
    PHONY = "phony"
    COMPILE = "compile"
    LINK = "link"
    ARCHIVE = "archive"
    CUSTOM = "custom"


@dataclass(frozen=True)
class EdgeFlags:
    """Structured flags of one edge.

    Attributes:
        cflags: Compiler flags, separated-argument flags joined with a space.
        defines: Preprocessor defines without the ``-D`` prefix.
        includes: Include directories as graph paths.
        link_flags: Linker flags other than libraries and search paths.
        libs: Library paths; ``-lfoo`` becomes ``libfoo.so``.
        whole_archive_libs: Libraries linked with ``--whole-archive``.
    """

    cflags: tuple[str, ...] = ()
    defines: tuple[str, ...] = ()
    includes: tuple[str, ...] = ()
    link_flags: tuple[str, ...] = ()
    libs: tuple[str, ...] = ()
    whole_archive_libs: tuple[str, ...] = ()


EMPTY_FLAGS = EdgeFlags()

_INCLUDE_FLAGS = ("-I", "-isystem")


def tokenize(edge: Edge, *names: str) -> list[str]:
    """Shell-split the concatenation of the named edge variables."""
    tokens: list[str] = []
    for name in names:
        value = edge.get(name)
        if not value:
            continue
        try:
            tokens.extend(shlex.split(value))
        except ValueError as e:
            raise ParseError(
                f"cannot split '{name}' of {edge.key}: {e}", edge.location
            ) from e
    return tokens


def split_compile_args(
    tokens: list[str],
) -> tuple[list[str], list[str], list[str]]:
    """Split compiler arguments into (flags, defines, includes).

    Examples:
        >>> split_compile_args(["-Isrc", "-DFOO=1", "-O2", "-isystem", "inc"])
        (['-O2'], ['FOO=1'], ['src', 'inc'])
    """
    flags: list[str] = []
    defines: list[str] = []
    includes: list[str] = []
    i = 0
    while i < len(tokens):
        token = tokens[i]
        has_next = i + 1 < len(tokens)
        if token in _INCLUDE_FLAGS and has_next:
            includes.append(tokens[i + 1])
            i += 2
            continue
        if token == "-D" and has_next:
            defines.append(tokens[i + 1])
            i += 2
            continue
        if token.startswith("-isystem") and len(token) > len("-isystem"):
            includes.append(token[len("-isystem") :])
        elif token.startswith("-I") and len(token) > 2:
            includes.append(token[2:])
        elif token.startswith("-D") and len(token) > 2:
            defines.append(token[2:])
        else:
            flags.append(token)
        i += 1
    return join_separated_args(flags), defines, includes


def split_link_args(
    tokens: list[str],
) -> tuple[list[str], list[str], list[str]]:
    """Split linker arguments into (flags, libs, whole_archive_libs).

    Examples:
        >>> split_link_args(["-Wl,--as-needed", "src/libfoo.a", "-lm", "-L/usr/lib"])
        (['-Wl,--as-needed'], ['src/libfoo.a', 'libm.so'], [])
    """
    flags: list[str] = []
    libs: list[str] = []
    whole: list[str] = []
    whole_archive = False
    i = 0
    while i < len(tokens):
        token = tokens[i]
        i += 1
        if token == "-Wl,--whole-archive":
            whole_archive = True
        elif token == "-Wl,--no-whole-archive":
            whole_archive = False
        elif token == "-L":
            i += 1
        elif token.startswith("-L"):
            pass
        elif token.startswith("-l") and len(token) > 2:
            name = token[2:]
            libs.append(name[1:] if name.startswith(":") else f"lib{name}.so")
        elif not token.startswith("-") and is_library(token):
            (whole if whole_archive else libs).append(token)
        else:
            flags.append(token)
    return join_separated_args(flags), libs, whole


class RuleSchema:
    """Base schema; subclasses fill in the rule patterns and variables.

    Attributes:
        name: Schema name used in configuration.
        patterns: Ordered (regex, kind) pairs matched against rule names.
    """

    name = "base"
    patterns: tuple[tuple[re.Pattern[str], RuleKind], ...] = ()

    def classify(self, rule: str) -> RuleKind | None:
        """Return the kind of ``rule``, or None if the schema does not know it."""
        if rule == "phony":
            return RuleKind.PHONY
        for pattern, kind in self.patterns:
            if pattern.fullmatch(rule):
                return kind
        return None

    def extract(self, edge: Edge, kind: RuleKind) -> EdgeFlags:
        """Extract structured flags from an edge of the given kind.

        Archive edges carry archiver options only (Meson's ``LINK_ARGS``
        is ``csrDT`` there), so they yield no flags.
        """
        if kind is RuleKind.COMPILE:
            return self.extract_compile(edge)
        if kind is RuleKind.LINK:
            return self.extract_link(edge)
        return EMPTY_FLAGS

    def extract_compile(self, edge: Edge) -> EdgeFlags:
        raise NotImplementedError

    def extract_link(self, edge: Edge) -> EdgeFlags:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"


def _rules(
    *pairs: tuple[str, RuleKind],
) -> tuple[tuple[re.Pattern[str], RuleKind], ...]:
    return tuple((re.compile(p), k) for p, k in pairs)


class GenericSchema(RuleSchema):
    """Schema for hand-written manifests and GN-like variable names."""

    name = "generic"
    patterns = _rules(
        (r"cc|cxx|objc|objcxx|asm|compile|c_compile|cxx_compile", RuleKind.COMPILE),
        (r"link|solink|solink_module|link_shared|link_executable", RuleKind.LINK),
        (r"alink|ar|archive", RuleKind.ARCHIVE),
        (r"stamp|copy|action|custom|generate", RuleKind.CUSTOM),
    )

    def extract_compile(self, edge: Edge) -> EdgeFlags:
        cflags = join_separated_args(
            tokenize(edge, "cflags", "cflags_c", "cflags_cc", "cflags_objc", "asmflags")
        )
        defines = [
            d[2:] if d.startswith("-D") else d for d in tokenize(edge, "defines")
        ]
        includes = [
            i[2:] if i.startswith("-I") else i
            for i in tokenize(edge, "includes", "include_dirs")
        ]
        return EdgeFlags(
            cflags=tuple(cflags), defines=tuple(defines), includes=tuple(includes)
        )

    def extract_link(self, edge: Edge) -> EdgeFlags:
        tokens = tokenize(edge, "ldflags", "libs", "solibs")
        flags, libs, whole = split_link_args(tokens)
        return EdgeFlags(
            link_flags=tuple(flags), libs=tuple(libs), whole_archive_libs=tuple(whole)
        )


class GnSchema(GenericSchema):
    """Schema for GN manifests: toolchain rules plus ``__*___rule`` actions."""

    name = "gn"
    patterns = GenericSchema.patterns + _rules((r"__.+___rule", RuleKind.CUSTOM))


class MesonSchema(RuleSchema):
    """Schema for Meson-generated manifests."""

    name = "meson"
    patterns = _rules(
        (r"(c|cpp|objc|objcpp|nasm)_COMPILER(_FOR_BUILD)?", RuleKind.COMPILE),
        (r"(c|cpp|objc|objcpp)_LINKER(_RSP)?(_FOR_BUILD)?", RuleKind.LINK),
        (r"STATIC_LINKER(_RSP)?(_FOR_BUILD)?", RuleKind.ARCHIVE),
        (
            r"CUSTOM_COMMAND(_DEP)?|COPY_FILE|SHSYM|REGENERATE_BUILD|CLEAN",
            RuleKind.CUSTOM,
        ),
    )

    def extract_compile(self, edge: Edge) -> EdgeFlags:
        flags, defines, includes = split_compile_args(tokenize(edge, "ARGS"))
        return EdgeFlags(
            cflags=tuple(flags), defines=tuple(defines), includes=tuple(includes)
        )

    def extract_link(self, edge: Edge) -> EdgeFlags:
        flags, libs, whole = split_link_args(tokenize(edge, "LINK_ARGS"))
        return EdgeFlags(
            link_flags=tuple(flags), libs=tuple(libs), whole_archive_libs=tuple(whole)
        )


class CMakeSchema(RuleSchema):
    """Schema for CMake-generated manifests."""

    name = "cmake"
    patterns = _rules(
        (r"(C|CXX|ASM|OBJC|OBJCXX)_COMPILER__.*", RuleKind.COMPILE),
        (
            r"(C|CXX|OBJC|OBJCXX)_(SHARED_LIBRARY|MODULE|EXECUTABLE)_LINKER__.*",
            RuleKind.LINK,
        ),
        (r"(C|CXX|OBJC|OBJCXX)_STATIC_LIBRARY_LINKER__.*", RuleKind.ARCHIVE),
        (r"CUSTOM_COMMAND|RERUN_CMAKE|CLEAN|HELP", RuleKind.CUSTOM),
    )

    def extract_compile(self, edge: Edge) -> EdgeFlags:
        flags, defines, includes = split_compile_args(
            tokenize(edge, "FLAGS", "DEFINES", "INCLUDES")
        )
        return EdgeFlags(
            cflags=tuple(flags), defines=tuple(defines), includes=tuple(includes)
        )

    def extract_link(self, edge: Edge) -> EdgeFlags:
        flags, libs, whole = split_link_args(
            tokenize(edge, "LINK_FLAGS", "LINK_LIBRARIES")
        )
        return EdgeFlags(
            link_flags=tuple(flags), libs=tuple(libs), whole_archive_libs=tuple(whole)
        )


SCHEMAS: dict[str, type[RuleSchema]] = {
    "generic": GenericSchema,
    "gn": GnSchema,
    "meson": MesonSchema,
    "cmake": CMakeSchema,
}


def get_schema(name: str) -> RuleSchema:
    """Instantiate a schema by name.

    Raises:
        ConfigError: If no schema has that name.
    """
    try:
        return SCHEMAS[name]()
    except KeyError:
        known = ", ".join(sorted(SCHEMAS))
        raise ConfigError(f"unknown schema '{name}' (known: {known})") from None

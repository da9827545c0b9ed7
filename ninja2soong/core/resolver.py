# SPDX-License-Identifier: MIT
"""Closure resolution: everything that went into one artifact.

The ClosureResolver walks the build graph depth-first, in pre-order,
from the edge producing a requested artifact and aggregates:

- sources (leaf inputs of compile edges),
- generated sources and headers (outputs of custom rules feeding
  compile edges),
- compile flags, defines and include directories of every compile
  edge reached,
- link flags and libraries of the artifact's own link edge, plus the
  libraries its inputs reference.

Rules of the walk:
1. Explicit then implicit inputs are followed; order-only inputs are
   never followed and never contribute flags or sources.
2. Phony edges are expanded in place.
3. Library outputs (link and archive edges below the artifact) are
   recorded as library references and not descended into: they are
   modules of their own.
4. Every list keeps the first occurrence of an item; later duplicates
   are dropped. With a stable pre-order walk this makes the result
   deterministic.
5. Each edge is visited at most once; reaching an edge that is still on
   the walk stack is a dependency cycle.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ninja2soong.core.errors import CyclicDependencyError, UnknownArtifactError
from ninja2soong.core.schema import RuleKind
from ninja2soong.util.paths import is_header, is_library, is_source

if TYPE_CHECKING:
    from ninja2soong.core.graph import Edge
    from ninja2soong.core.index import TargetIndex

logger = logging.getLogger(__name__)

_COMPILE = "compile"
_LINK = "link"


@dataclass(frozen=True)
class AggregatedUnit:
    """The computed closure of one requested artifact.

    All paths are build-graph paths until the stager rewrites the
    generated ones.

    Attributes:
        artifact: The requested output.
        kind: Rule kind of the edge producing the artifact.
        sources: Hand-written sources compiled into the artifact.
        generated_sources: Generated sources compiled into the artifact.
        generated_headers: Generated headers the compile edges depend on.
        cflags: Compiler flags (first occurrence wins).
        defines: Preprocessor defines, without ``-D``.
        includes: Include directories.
        link_flags: Linker flags of the artifact's link edge.
        libraries: Referenced library outputs or external library files.
        whole_static_libraries: Libraries linked as whole archives.
        edges: Keys of the non-phony edges visited, in visit order.
    """

    artifact: str
    kind: RuleKind
    sources: tuple[str, ...] = ()
    generated_sources: tuple[str, ...] = ()
    generated_headers: tuple[str, ...] = ()
    cflags: tuple[str, ...] = ()
    defines: tuple[str, ...] = ()
    includes: tuple[str, ...] = ()
    link_flags: tuple[str, ...] = ()
    libraries: tuple[str, ...] = ()
    whole_static_libraries: tuple[str, ...] = ()
    edges: tuple[str, ...] = ()


class _Accumulator:
    """Order-preserving unions, one per aggregated list."""

    def __init__(self) -> None:
        self.sources: dict[str, None] = {}
        self.generated_sources: dict[str, None] = {}
        self.generated_headers: dict[str, None] = {}
        self.cflags: dict[str, None] = {}
        self.defines: dict[str, None] = {}
        self.includes: dict[str, None] = {}
        self.link_flags: dict[str, None] = {}
        self.libraries: dict[str, None] = {}
        self.whole_static_libraries: dict[str, None] = {}
        self.edges: list[str] = []

    @staticmethod
    def add(target: dict[str, None], items: tuple[str, ...] | list[str]) -> None:
        for item in items:
            target.setdefault(item, None)

    def build(self, artifact: str, kind: RuleKind) -> AggregatedUnit:
        whole = tuple(self.whole_static_libraries)
        return AggregatedUnit(
            artifact=artifact,
            kind=kind,
            sources=tuple(self.sources),
            generated_sources=tuple(self.generated_sources),
            generated_headers=tuple(self.generated_headers),
            cflags=tuple(self.cflags),
            defines=tuple(self.defines),
            includes=tuple(self.includes),
            link_flags=tuple(self.link_flags),
            libraries=tuple(lib for lib in self.libraries if lib not in whole),
            whole_static_libraries=whole,
            edges=tuple(self.edges),
        )


class ClosureResolver:
    """Computes AggregatedUnits from a TargetIndex.

    The resolver holds no state between calls; the index is shared and
    read-only apart from its memoization caches.

    Example:
        resolver = ClosureResolver(index)
        unit = resolver.resolve("src/egl/libEGL_mesa.so")
    """

    def __init__(self, index: TargetIndex) -> None:
        self.index = index

    def resolve(self, artifact: str) -> AggregatedUnit:
        """Aggregate the closure of ``artifact``.

        Raises:
            UnknownArtifactError: If no edge produces the artifact.
            UnknownRuleSchemaError: If a reachable edge has an unknown rule.
            CyclicDependencyError: If the walk reaches an edge on its own stack.
        """
        root = self.index.edge_for(artifact)
        if root is None:
            raise UnknownArtifactError(artifact)
        kind = self.index.kind_of(root)
        acc = _Accumulator()

        if kind is RuleKind.CUSTOM:
            acc.edges.append(root.key)
            acc.add(acc.generated_sources, root.outputs)
            return acc.build(artifact, kind)

        if kind is RuleKind.LINK:
            flags = self.index.flags_of(root)
            acc.add(acc.link_flags, flags.link_flags)
            acc.add(acc.libraries, flags.libs)
            acc.add(acc.whole_static_libraries, flags.whole_archive_libs)

        self._walk(root, acc)
        unit = acc.build(artifact, kind)
        logger.debug(
            "Closure of %s: %d edges, %d sources, %d generated, %d libraries",
            artifact,
            len(unit.edges),
            len(unit.sources),
            len(unit.generated_sources) + len(unit.generated_headers),
            len(unit.libraries) + len(unit.whole_static_libraries),
        )
        return unit

    def _walk(self, root: Edge, acc: _Accumulator) -> None:
        visited: set[int] = set()
        on_stack: dict[int, int] = {}
        path: list[Edge] = []
        stack: list[tuple[Iterator[str], str]] = []

        def enter(edge: Edge, context: str) -> None:
            visited.add(id(edge))
            kind = self.index.kind_of(edge)
            # Phony edges are transparent: expanding one is the same as
            # listing its inputs directly.
            if kind is not RuleKind.PHONY:
                acc.edges.append(edge.key)
            if kind is RuleKind.COMPILE:
                flags = self.index.flags_of(edge)
                acc.add(acc.cflags, flags.cflags)
                acc.add(acc.defines, flags.defines)
                acc.add(acc.includes, flags.includes)
                self._collect_generated_headers(edge, acc)
                context = _COMPILE
            on_stack[id(edge)] = len(path)
            path.append(edge)
            stack.append((iter(edge.inputs + edge.implicit_inputs), context))

        enter(root, _COMPILE if self.index.kind_of(root) is RuleKind.COMPILE else _LINK)
        while stack:
            inputs, context = stack[-1]
            dep = next(inputs, None)
            if dep is None:
                stack.pop()
                finished = path.pop()
                del on_stack[id(finished)]
                continue
            edge = self.index.edge_for(dep)
            if edge is None:
                self._visit_leaf(dep, context, acc)
                continue
            if id(edge) in on_stack:
                start = on_stack[id(edge)]
                cycle = [e.key for e in path[start:]] + [edge.key]
                raise CyclicDependencyError(cycle, edge.location)
            kind = self.index.kind_of(edge)
            if kind is RuleKind.CUSTOM:
                if context == _COMPILE:
                    if is_source(dep):
                        acc.add(acc.generated_sources, [dep])
                    elif is_header(dep):
                        acc.add(acc.generated_headers, [dep])
                if id(edge) not in visited:
                    visited.add(id(edge))
                    acc.edges.append(edge.key)
                continue
            if kind in (RuleKind.LINK, RuleKind.ARCHIVE):
                acc.add(acc.libraries, [dep])
                if id(edge) not in visited:
                    visited.add(id(edge))
                    acc.edges.append(edge.key)
                continue
            if id(edge) not in visited:
                enter(edge, context)

    @staticmethod
    def _visit_leaf(path: str, context: str, acc: _Accumulator) -> None:
        if context == _COMPILE and is_source(path):
            acc.add(acc.sources, [path])
        elif is_library(path):
            acc.add(acc.libraries, [path])

    def _collect_generated_headers(self, edge: Edge, acc: _Accumulator) -> None:
        """Pick generated headers listed as implicit or order-only compile inputs.

        Only the headers themselves are recorded; the inputs are not
        followed, so order-only dependencies never add flags or sources.
        """
        for dep in edge.implicit_inputs + edge.order_only_inputs:
            if not is_header(dep):
                continue
            if self.index.is_generated(dep):
                acc.add(acc.generated_headers, [dep])

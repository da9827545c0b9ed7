# SPDX-License-Identifier: MIT
"""In-memory model of a parsed Ninja build graph.

An Edge is one build statement. The BuildGraph maps every output path
(explicit and implicit) to the Edge producing it; any path that is only
ever used as an input is a leaf (a hand-written source or an external
file).

Paths are kept exactly as written in the manifest, i.e. relative to the
build directory unless absolute.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from ninja2soong.core.errors import CyclicDependencyError, DuplicateOutputError
from ninja2soong.util.source_location import SourceLocation

logger = logging.getLogger(__name__)

PHONY_RULE = "phony"


@dataclass(frozen=True, eq=False)
class Edge:
    """A single build statement.

    Edges compare by identity: two statements are never the same edge.

    Attributes:
        outputs: Explicit outputs; the first one is the edge key.
        rule: Name of the rule invoked.
        inputs: Explicit inputs, in manifest order.
        implicit_inputs: Inputs listed after ``|``.
        order_only_inputs: Inputs listed after ``||``.
        implicit_outputs: Outputs listed after ``|`` on the output side.
        variables: Evaluated edge bindings merged with the rule bindings
            evaluated in the edge scope.
        location: Where the build statement was declared.
    """

    outputs: tuple[str, ...]
    rule: str
    inputs: tuple[str, ...] = ()
    implicit_inputs: tuple[str, ...] = ()
    order_only_inputs: tuple[str, ...] = ()
    implicit_outputs: tuple[str, ...] = ()
    variables: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    location: SourceLocation | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.variables, MappingProxyType):
            variables = MappingProxyType(dict(self.variables))
            object.__setattr__(self, "variables", variables)

    @property
    def key(self) -> str:
        return self.outputs[0] if self.outputs else self.implicit_outputs[0]

    @property
    def is_phony(self) -> bool:
        return self.rule == PHONY_RULE

    @property
    def all_outputs(self) -> tuple[str, ...]:
        return self.outputs + self.implicit_outputs

    def get(self, name: str, default: str = "") -> str:
        """Get an evaluated variable of this edge."""
        return self.variables.get(name, default)

    def __repr__(self) -> str:
        return f"Edge({self.key!r}, rule={self.rule!r})"


class BuildGraph:
    """Mapping from output path to producing Edge.

    Attributes:
        edges: All edges in declaration order.
        rules: Names of the rules declared in the manifest.
        pools: Pool name to depth.
        defaults: Targets listed in ``default`` statements.
    """

    def __init__(self) -> None:
        self.edges: list[Edge] = []
        self.rules: set[str] = {PHONY_RULE}
        self.pools: dict[str, int] = {}
        self.defaults: list[str] = []
        self._producers: dict[str, Edge] = {}

    def add_edge(self, edge: Edge) -> None:
        """Register an edge, rejecting outputs that already have a producer."""
        for output in edge.all_outputs:
            if output in self._producers:
                raise DuplicateOutputError(output, edge.location)
        for output in edge.all_outputs:
            self._producers[output] = edge
        self.edges.append(edge)

    def producer(self, path: str) -> Edge | None:
        """Return the edge producing ``path``, or None for a leaf."""
        return self._producers.get(path)

    def __contains__(self, path: str) -> bool:
        return path in self._producers

    def __getitem__(self, path: str) -> Edge:
        return self._producers[path]

    def __len__(self) -> int:
        return len(self._producers)

    def __iter__(self) -> Iterator[str]:
        return iter(self._producers)

    def outputs(self) -> list[str]:
        return list(self._producers)

    def check_acyclic(self) -> None:
        """Verify that no producing edge depends on itself.

        Follows explicit, implicit and order-only inputs alike: an
        order-only cycle is still unbuildable.

        Raises:
            CyclicDependencyError: With the cycle as a list of outputs.
        """
        done: set[int] = set()
        for root in self.edges:
            if id(root) in done:
                continue
            # Iterative DFS; each frame is (edge, iterator over its inputs).
            on_stack: dict[int, int] = {id(root): 0}
            path: list[Edge] = [root]
            stack: list[Iterator[str]] = [iter(_all_inputs(root))]
            while stack:
                dep = next(stack[-1], None)
                if dep is None:
                    finished = path.pop()
                    stack.pop()
                    del on_stack[id(finished)]
                    done.add(id(finished))
                    continue
                edge = self._producers.get(dep)
                if edge is None or id(edge) in done:
                    continue
                if id(edge) in on_stack:
                    start = on_stack[id(edge)]
                    cycle = [e.key for e in path[start:]] + [edge.key]
                    raise CyclicDependencyError(cycle, edge.location)
                on_stack[id(edge)] = len(path)
                path.append(edge)
                stack.append(iter(_all_inputs(edge)))
        logger.debug("Build graph of %d edges is acyclic", len(self.edges))


def _all_inputs(edge: Edge) -> tuple[str, ...]:
    return edge.inputs + edge.implicit_inputs + edge.order_only_inputs

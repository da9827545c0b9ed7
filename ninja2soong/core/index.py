# SPDX-License-Identifier: MIT
"""Queryable index over a parsed build graph.

The TargetIndex wraps a BuildGraph with lookup by output path and
memoizes, per edge, the rule kind and the flags extracted by the rule
schema. Edges are only classified when queried, so a rule the schema
does not understand is an error only if it is reachable from a
requested artifact.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ninja2soong.core.errors import UnknownRuleSchemaError
from ninja2soong.core.schema import RuleKind

if TYPE_CHECKING:
    from ninja2soong.core.graph import BuildGraph, Edge
    from ninja2soong.core.schema import EdgeFlags, RuleSchema

logger = logging.getLogger(__name__)


class TargetIndex:
    """Lookup and memoized flag extraction over a BuildGraph.

    Attributes:
        graph: The underlying graph (read-only).
        schema: Schema used to interpret rules.
    """

    def __init__(self, graph: BuildGraph, schema: RuleSchema) -> None:
        self.graph = graph
        self.schema = schema
        self._kinds: dict[int, RuleKind] = {}
        self._flags: dict[int, EdgeFlags] = {}

    def edge_for(self, path: str) -> Edge | None:
        """Return the edge producing ``path``, or None for a leaf."""
        return self.graph.producer(path)

    def __contains__(self, path: str) -> bool:
        return path in self.graph

    def kind_of(self, edge: Edge) -> RuleKind:
        """Classify an edge's rule.

        Raises:
            UnknownRuleSchemaError: If the schema does not know the rule.
        """
        kind = self._kinds.get(id(edge))
        if kind is None:
            kind = self.schema.classify(edge.rule)
            if kind is None:
                raise UnknownRuleSchemaError(
                    edge.rule, edge.key, self.schema.name, edge.location
                )
            self._kinds[id(edge)] = kind
        return kind

    def flags_of(self, edge: Edge) -> EdgeFlags:
        """Return the structured flags of an edge, extracting them once."""
        flags = self._flags.get(id(edge))
        if flags is None:
            flags = self.schema.extract(edge, self.kind_of(edge))
            self._flags[id(edge)] = flags
            logger.debug(
                "Flags of %s: %d cflags, %d defines, %d includes, %d libs",
                edge.key,
                len(flags.cflags),
                len(flags.defines),
                len(flags.includes),
                len(flags.libs),
            )
        return flags

    def is_generated(self, path: str) -> bool:
        """True if ``path`` is produced by a custom (code generation) rule."""
        edge = self.edge_for(path)
        return edge is not None and self.kind_of(edge) is RuleKind.CUSTOM

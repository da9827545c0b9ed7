# SPDX-License-Identifier: MIT
"""Variable evaluation for Ninja manifests.

Ninja strings are made of literal text and variable references
(``$name`` or ``${name}``). Escapes are resolved when the string is
read, so an EvalString only holds literal pieces and references.

Lookup follows Ninja's lexical scoping:
- a file Scope holds top-level bindings and may have a parent
  (``subninja`` creates a child scope, ``include`` reuses the scope);
- an edge is evaluated in an EdgeScope that sees ``$in``/``$out``,
  the edge's own bindings, then the rule's bindings evaluated
  in the edge scope, then the enclosing file scope.

Undefined variables expand to the empty string, as in Ninja.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from ninja2soong.core.errors import CircularReferenceError


@dataclass
class EvalString:
    """An unevaluated Ninja string.

    Attributes:
        parts: Sequence of (is_variable, text) pairs.
    """

    parts: list[tuple[bool, str]] = field(default_factory=list)

    def add_text(self, text: str) -> None:
        if not text:
            return
        if self.parts and not self.parts[-1][0]:
            self.parts[-1] = (False, self.parts[-1][1] + text)
        else:
            self.parts.append((False, text))

    def add_variable(self, name: str) -> None:
        self.parts.append((True, name))

    def is_empty(self) -> bool:
        return not self.parts

    def evaluate(self, scope: Scope | EdgeScope) -> str:
        """Expand all variable references using ``scope``."""
        out: list[str] = []
        for is_var, text in self.parts:
            out.append(scope.lookup(text) if is_var else text)
        return "".join(out)

    def unparse(self) -> str:
        """Return the string with references written as ``${name}``."""
        return "".join(
            f"${{{text}}}" if is_var else text for is_var, text in self.parts
        )


class Scope:
    """Hierarchical scope of evaluated variables."""

    def __init__(
        self,
        data: Mapping[str, str] | None = None,
        parent: Scope | None = None,
    ) -> None:
        self._data: dict[str, str] = dict(data) if data else {}
        self._parent = parent

    @property
    def parent(self) -> Scope | None:
        return self._parent

    def lookup(self, name: str) -> str:
        scope: Scope | None = self
        while scope is not None:
            if name in scope._data:
                return scope._data[name]
            scope = scope._parent
        return ""

    def local_bindings(self) -> dict[str, str]:
        """Bindings defined directly in this scope."""
        return dict(self._data)

    def __contains__(self, name: str) -> bool:
        scope: Scope | None = self
        while scope is not None:
            if name in scope._data:
                return True
            scope = scope._parent
        return False

    def __setitem__(self, name: str, value: str) -> None:
        self._data[name] = value

    def __getitem__(self, name: str) -> str:
        if name not in self:
            raise KeyError(name)
        return self.lookup(name)


class EdgeScope:
    """Scope used to evaluate a build statement's rule bindings.

    Attributes:
        bindings: Evaluated edge-level bindings.
        rule_bindings: Unevaluated bindings of the edge's rule.
        parent: The file scope enclosing the build statement.
    """

    def __init__(
        self,
        parent: Scope,
        bindings: Mapping[str, str] | None = None,
        rule_bindings: Mapping[str, EvalString] | None = None,
        inputs: list[str] | None = None,
        outputs: list[str] | None = None,
    ) -> None:
        self.parent = parent
        self.bindings: dict[str, str] = dict(bindings) if bindings else {}
        self.rule_bindings: Mapping[str, EvalString] = rule_bindings or {}
        self._inputs = inputs or []
        self._outputs = outputs or []
        self._evaluating: list[str] = []
        self._cache: dict[str, str] = {}

    def lookup(self, name: str) -> str:
        if name == "in":
            return " ".join(_shell_escape(p) for p in self._inputs)
        if name == "in_newline":
            return "\n".join(_shell_escape(p) for p in self._inputs)
        if name == "out":
            return " ".join(_shell_escape(p) for p in self._outputs)
        if name in self.bindings:
            return self.bindings[name]
        if name in self.rule_bindings:
            return self._evaluate_rule_binding(name)
        return self.parent.lookup(name)

    def _evaluate_rule_binding(self, name: str) -> str:
        if name in self._cache:
            return self._cache[name]
        if name in self._evaluating:
            chain = self._evaluating[self._evaluating.index(name) :] + [name]
            raise CircularReferenceError(chain)
        self._evaluating.append(name)
        try:
            value = self.rule_bindings[name].evaluate(self)
        finally:
            self._evaluating.pop()
        self._cache[name] = value
        return value

    def evaluate_all(self) -> dict[str, str]:
        """Evaluate every edge and rule binding.

        Edge bindings shadow rule bindings of the same name.
        """
        result: dict[str, str] = {}
        for name in self.rule_bindings:
            result[name] = self.lookup(name)
        result.update(self.bindings)
        return result


def _shell_escape(path: str) -> str:
    # Matches Ninja's POSIX behaviour for $in and $out.
    if path and all(c.isalnum() or c in "_+-./,:@%=" for c in path):
        return path
    return "'" + path.replace("'", "'\\''") + "'"

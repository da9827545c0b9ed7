# SPDX-License-Identifier: MIT
"""Parser for Ninja build manifests.

Reads ``build.ninja`` text into a BuildGraph. Supported statements:
top-level variables, ``rule``, ``build``, ``pool``, ``default``,
``include`` and ``subninja``. Supported escapes: ``$$``, ``$ ``,
``$:`` and ``$`` followed by a newline (line continuation).

Example:
    graph = parse_build_ninja(Path("out"))
    edge = graph.producer("src/libfoo.so")
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from ninja2soong.core.errors import CircularReferenceError, ParseError
from ninja2soong.core.graph import PHONY_RULE, BuildGraph, Edge
from ninja2soong.core.subst import EdgeScope, EvalString, Scope
from ninja2soong.util.source_location import SourceLocation

logger = logging.getLogger(__name__)

_IDENT_RE = re.compile(r"^[A-Za-z0-9_.\-]+$")
_SIMPLE_VAR_CHARS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_-"
)


class _FileScope(Scope):
    """A file-level scope, also holding the rules declared in it."""

    def __init__(self, parent: _FileScope | None = None) -> None:
        super().__init__(parent=parent)
        self.rules: dict[str, dict[str, EvalString]] = {}

    def find_rule(self, name: str) -> dict[str, EvalString] | None:
        scope: Scope | None = self
        while scope is not None:
            if isinstance(scope, _FileScope) and name in scope.rules:
                return scope.rules[name]
            scope = scope.parent
        return None


class _Line:
    """A logical line: continuations joined, escapes left in place."""

    __slots__ = ("lineno", "indent", "text")

    def __init__(self, lineno: int, indent: int, text: str) -> None:
        self.lineno = lineno
        self.indent = indent
        self.text = text


def _logical_lines(text: str) -> list[_Line]:
    """Split manifest text into logical lines, skipping comments and blanks."""
    lines: list[_Line] = []
    i = 0
    n = len(text)
    lineno = 1
    while i < n:
        start = lineno
        indent = 0
        while i < n and text[i] == " ":
            indent += 1
            i += 1
        if i < n and text[i] == "#":
            while i < n and text[i] != "\n":
                i += 1
            i += 1
            lineno += 1
            continue
        buf: list[str] = []
        while i < n:
            c = text[i]
            if c == "$" and i + 1 < n:
                nxt = text[i + 1]
                if nxt == "\n" or (nxt == "\r" and text[i + 2 : i + 3] == "\n"):
                    i += 3 if nxt == "\r" else 2
                    lineno += 1
                    while i < n and text[i] == " ":
                        i += 1
                    continue
                buf.append(c)
                buf.append(nxt)
                i += 2
                continue
            if c == "\n":
                i += 1
                lineno += 1
                break
            if c == "\r" and text[i + 1 : i + 2] == "\n":
                i += 1
                continue
            buf.append(c)
            i += 1
        content = "".join(buf)
        if content.strip():
            lines.append(_Line(start, indent, content.rstrip(" ")))
    return lines


def _read_eval(
    text: str, pos: int, path_mode: bool, where: SourceLocation
) -> tuple[EvalString, int]:
    """Read an EvalString starting at ``pos``.

    In path mode, reading stops at an unescaped space, ``:`` or ``|``.

    Returns:
        The EvalString and the position after it.
    """
    result = EvalString()
    literal: list[str] = []
    n = len(text)
    i = pos
    while i < n:
        c = text[i]
        if path_mode and c in " :|":
            break
        if c != "$":
            literal.append(c)
            i += 1
            continue
        if i + 1 >= n:
            raise ParseError("bad $-escape (literal $ must be written as $$)", where)
        nxt = text[i + 1]
        if nxt in "$ :":
            literal.append(nxt)
            i += 2
        elif nxt == "{":
            end = text.find("}", i + 2)
            name = text[i + 2 : end] if end >= 0 else ""
            if end < 0 or not _IDENT_RE.match(name):
                raise ParseError(
                    "bad $-escape (literal $ must be written as $$)", where
                )
            result.add_text("".join(literal))
            literal = []
            result.add_variable(name)
            i = end + 1
        elif nxt in _SIMPLE_VAR_CHARS:
            j = i + 1
            while j < n and text[j] in _SIMPLE_VAR_CHARS:
                j += 1
            result.add_text("".join(literal))
            literal = []
            result.add_variable(text[i + 1 : j])
            i = j
        else:
            raise ParseError("bad $-escape (literal $ must be written as $$)", where)
    result.add_text("".join(literal))
    return result, i


def _tokenize_paths(
    text: str, where: SourceLocation
) -> list[EvalString | str]:
    """Split a build line into paths and separators (``:``, ``|``, ``||``, ``|@``)."""
    tokens: list[EvalString | str] = []
    i = 0
    n = len(text)
    while i < n:
        c = text[i]
        if c == " ":
            i += 1
        elif c == ":":
            tokens.append(":")
            i += 1
        elif c == "|":
            if text.startswith("||", i):
                tokens.append("||")
                i += 2
            elif text.startswith("|@", i):
                tokens.append("|@")
                i += 2
            else:
                tokens.append("|")
                i += 1
        else:
            path, i = _read_eval(text, i, True, where)
            tokens.append(path)
    return tokens


def _split_binding(line: _Line, where: SourceLocation) -> tuple[str, EvalString]:
    name, sep, value = line.text.strip(" ").partition("=")
    name = name.strip(" ")
    if not sep:
        raise ParseError("expected '='", where)
    if not _IDENT_RE.match(name):
        raise ParseError(f"invalid variable name '{name}'", where)
    evaluated, _ = _read_eval(value.lstrip(" "), 0, False, where)
    return name, evaluated


class NinjaParser:
    """Parser producing a BuildGraph from Ninja manifests.

    Attributes:
        build_dir: Directory that ``include`` and ``subninja`` paths
            are relative to (Ninja's working directory).
        graph: The graph being populated.
    """

    def __init__(self, build_dir: Path | str = ".") -> None:
        self.build_dir = Path(build_dir)
        self.graph = BuildGraph()
        self._root = _FileScope()

    def parse_file(
        self, path: Path | str, scope: _FileScope | None = None
    ) -> BuildGraph:
        """Parse a manifest file into the graph."""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ParseError(f"loading '{path}': {e.strerror or e}") from e
        logger.debug("Parsing %s", path)
        return self.parse_text(text, str(path), scope)

    def parse_text(
        self,
        text: str,
        filename: str = "build.ninja",
        scope: _FileScope | None = None,
    ) -> BuildGraph:
        """Parse manifest text into the graph."""
        scope = scope or self._root
        lines = _logical_lines(text)
        i = 0
        while i < len(lines):
            line = lines[i]
            where = SourceLocation(filename, line.lineno, line.text.strip())
            if line.indent:
                raise ParseError("unexpected indent", where)
            block: list[_Line] = []
            i += 1
            while i < len(lines) and lines[i].indent:
                block.append(lines[i])
                i += 1
            keyword, _, rest = line.text.partition(" ")
            rest = rest.lstrip(" ")
            if keyword == "rule":
                self._parse_rule(rest, block, scope, filename, where)
            elif keyword == "build":
                self._parse_build(rest, block, scope, filename, where)
            elif keyword == "pool":
                self._parse_pool(rest, block, scope, filename, where)
            elif keyword == "default":
                self._parse_default(rest, block, scope, where)
            elif keyword in ("include", "subninja"):
                if block:
                    raise ParseError("unexpected indent", where)
                target, _ = _read_eval(rest, 0, True, where)
                child = scope if keyword == "include" else _FileScope(scope)
                include_path = self.build_dir / target.evaluate(scope)
                if not include_path.is_file():
                    raise ParseError(f"loading '{include_path}': file not found", where)
                self.parse_file(include_path, child)
            else:
                if block:
                    raise ParseError("unexpected indent", where)
                name, value = _split_binding(line, where)
                scope[name] = value.evaluate(scope)
        return self.graph

    def _parse_rule(
        self,
        rest: str,
        block: list[_Line],
        scope: _FileScope,
        filename: str,
        where: SourceLocation,
    ) -> None:
        name = rest.strip(" ")
        if not _IDENT_RE.match(name):
            raise ParseError("expected rule name", where)
        if name in scope.rules or name == PHONY_RULE:
            raise ParseError(f"duplicate rule '{name}'", where)
        bindings: dict[str, EvalString] = {}
        for line in block:
            key, value = _split_binding(
                line, SourceLocation(filename, line.lineno, line.text.strip())
            )
            bindings[key] = value
        if "command" not in bindings:
            raise ParseError("expected 'command =' line", where)
        scope.rules[name] = bindings
        self.graph.rules.add(name)

    def _parse_pool(
        self,
        rest: str,
        block: list[_Line],
        scope: _FileScope,
        filename: str,
        where: SourceLocation,
    ) -> None:
        name = rest.strip(" ")
        depth = None
        for line in block:
            loc = SourceLocation(filename, line.lineno, line.text.strip())
            key, value = _split_binding(line, loc)
            if key != "depth":
                raise ParseError(f"unexpected variable '{key}'", loc)
            try:
                depth = int(value.evaluate(scope))
            except ValueError:
                raise ParseError("invalid pool depth", loc) from None
        if depth is None:
            raise ParseError("expected 'depth =' line", where)
        self.graph.pools[name] = depth

    def _parse_default(
        self,
        rest: str,
        block: list[_Line],
        scope: _FileScope,
        where: SourceLocation,
    ) -> None:
        if block:
            raise ParseError("unexpected indent", where)
        if not rest.strip():
            raise ParseError("expected target name", where)
        for token in _tokenize_paths(rest, where):
            if isinstance(token, str):
                raise ParseError(f"unexpected '{token}'", where)
            self.graph.defaults.append(token.evaluate(scope))

    def _parse_build(
        self,
        rest: str,
        block: list[_Line],
        scope: _FileScope,
        filename: str,
        where: SourceLocation,
    ) -> None:
        tokens = _tokenize_paths(rest, where)
        if ":" not in tokens:
            raise ParseError("expected ':', got newline", where)
        colon = tokens.index(":")
        out_tokens, in_tokens = tokens[:colon], tokens[colon + 1 :]

        outs, implicit_outs = self._split_sections(out_tokens, ("|",), where)
        if not outs and not implicit_outs:
            raise ParseError("expected path", where)
        if not in_tokens or isinstance(in_tokens[0], str):
            raise ParseError("expected build command name", where)
        rule_token = in_tokens[0]
        if any(is_var for is_var, _ in rule_token.parts):
            raise ParseError("expected build command name", where)
        rule_name = rule_token.evaluate(scope)
        if rule_name == PHONY_RULE:
            rule: dict[str, EvalString] | None = {}
        else:
            rule = scope.find_rule(rule_name)
        if rule is None:
            raise ParseError(f"unknown build rule '{rule_name}'", where)
        ins, implicit, order_only, _validations = self._split_sections(
            in_tokens[1:], ("|", "||", "|@"), where
        )

        # Edge bindings are evaluated in order, each seeing the earlier ones.
        edge_env = Scope(parent=scope)
        for line in block:
            key, value = _split_binding(
                line, SourceLocation(filename, line.lineno, line.text.strip())
            )
            edge_env[key] = value.evaluate(edge_env)

        def evaluate(paths: list[EvalString]) -> tuple[str, ...]:
            result = []
            for p in paths:
                value = p.evaluate(edge_env)
                if not value:
                    raise ParseError("empty path", where)
                result.append(value)
            return tuple(result)

        out_paths = evaluate(outs)
        implicit_out_paths = evaluate(implicit_outs)
        in_paths = evaluate(ins)
        implicit_paths = evaluate(implicit)
        order_only_paths = evaluate(order_only)

        if rule_name == PHONY_RULE:
            own = set(out_paths) | set(implicit_out_paths)
            if own.intersection(in_paths + implicit_paths + order_only_paths):
                logger.debug(
                    "%s: phony edge %s depends on itself; ignoring", where, out_paths
                )
                in_paths = tuple(p for p in in_paths if p not in own)
                implicit_paths = tuple(p for p in implicit_paths if p not in own)
                order_only_paths = tuple(p for p in order_only_paths if p not in own)

        edge_scope = EdgeScope(
            scope,
            bindings=edge_env.local_bindings(),
            rule_bindings=rule,
            inputs=list(in_paths),
            outputs=list(out_paths),
        )
        try:
            variables = edge_scope.evaluate_all()
        except CircularReferenceError as e:
            raise CircularReferenceError(e.chain, where) from None

        self.graph.add_edge(
            Edge(
                outputs=out_paths,
                rule=rule_name,
                inputs=in_paths,
                implicit_inputs=implicit_paths,
                order_only_inputs=order_only_paths,
                implicit_outputs=implicit_out_paths,
                variables=variables,
                location=SourceLocation(filename, where.line),
            )
        )

    @staticmethod
    def _split_sections(
        tokens: list[EvalString | str],
        separators: tuple[str, ...],
        where: SourceLocation,
    ) -> list[list[EvalString]]:
        """Split path tokens at separators, which must appear in order."""
        sections: list[list[EvalString]] = [[] for _ in range(len(separators) + 1)]
        current = 0
        for token in tokens:
            if isinstance(token, str):
                if token not in separators:
                    raise ParseError(f"unexpected '{token}'", where)
                index = separators.index(token) + 1
                if index <= current:
                    raise ParseError(f"unexpected '{token}'", where)
                current = index
            else:
                sections[current].append(token)
        return sections


def parse_build_ninja(
    build_dir: Path | str,
    filename: str = "build.ninja",
    *,
    check_cycles: bool = True,
) -> BuildGraph:
    """Parse ``<build_dir>/<filename>`` into a BuildGraph.

    Args:
        build_dir: The Ninja build directory.
        filename: Manifest name inside ``build_dir``.
        check_cycles: Validate that the graph is acyclic.

    Raises:
        ParseError: On malformed input or duplicate outputs.
        CyclicDependencyError: If producing edges form a cycle.
    """
    parser = NinjaParser(build_dir)
    graph = parser.parse_file(Path(build_dir) / filename)
    if check_cycles:
        graph.check_acyclic()
    logger.info(
        "Parsed %s: %d edges, %d outputs",
        Path(build_dir) / filename,
        len(graph.edges),
        len(graph),
    )
    return graph

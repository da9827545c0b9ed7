# SPDX-License-Identifier: MIT
"""Custom exceptions for ninja2soong.

All ninja2soong exceptions inherit from Ninja2SoongError, which includes
optional source location information for better error messages.

Translation is fail-fast: none of these errors is recovered inside the
engine, they propagate to the caller of translate().
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ninja2soong.util.source_location import SourceLocation


class Ninja2SoongError(Exception):
    """Base class for all ninja2soong exceptions.

    Attributes:
        message: The error message.
        location: Optional source location where the error occurred.
    """

    def __init__(
        self,
        message: str,
        location: SourceLocation | None = None,
    ) -> None:
        self.message = message
        self.location = location
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.location:
            msg = f"{self.location}: {self.message}"
            if self.location.text is not None:
                msg += f"\n  {self.location.text}"
            return msg
        return self.message


class ConfigError(Ninja2SoongError):
    """Invalid configuration file or option."""


class ParseError(Ninja2SoongError):
    """Malformed build graph text.

    Raised with the file, line and text of the offending statement.
    """


class DuplicateOutputError(ParseError):
    """An output path is produced by more than one build statement.

    Attributes:
        path: The duplicated output.
    """

    def __init__(
        self,
        path: str,
        location: SourceLocation | None = None,
    ) -> None:
        self.path = path
        super().__init__(f"multiple rules generate {path}", location)


class CircularReferenceError(ParseError):
    """Circular variable reference detected.

    Attributes:
        chain: The chain of variables forming the cycle.
    """

    def __init__(
        self,
        chain: list[str],
        location: SourceLocation | None = None,
    ) -> None:
        self.chain = chain
        cycle_str = " -> ".join(chain)
        super().__init__(f"circular variable reference: {cycle_str}", location)


class CyclicDependencyError(Ninja2SoongError):
    """Circular dependency detected among producing edges.

    Attributes:
        cycle: The outputs forming the cycle, first and last are equal.
    """

    def __init__(
        self,
        cycle: list[str],
        location: SourceLocation | None = None,
    ) -> None:
        self.cycle = cycle
        cycle_str = " -> ".join(cycle)
        super().__init__(f"dependency cycle: {cycle_str}", location)


class UnknownRuleSchemaError(Ninja2SoongError):
    """A reachable edge uses a rule the schema cannot interpret.

    Attributes:
        rule: The rule name.
        output: The edge's first output.
    """

    def __init__(
        self,
        rule: str,
        output: str,
        schema: str,
        location: SourceLocation | None = None,
    ) -> None:
        self.rule = rule
        self.output = output
        self.schema = schema
        super().__init__(
            f"rule '{rule}' (building {output}) is unknown to the {schema} schema",
            location,
        )


class UnknownArtifactError(Ninja2SoongError):
    """A requested artifact has no producing edge in the graph.

    Attributes:
        artifact: The requested output path.
    """

    def __init__(self, artifact: str) -> None:
        self.artifact = artifact
        super().__init__(f"no build statement produces {artifact}")


class UnsupportedArtifactKindError(Ninja2SoongError):
    """A requested artifact cannot be mapped to a module kind.

    Attributes:
        artifact: The requested output path.
    """

    def __init__(self, artifact: str, reason: str) -> None:
        self.artifact = artifact
        super().__init__(f"cannot create a module for {artifact}: {reason}")


class StagingIOError(Ninja2SoongError):
    """Copying or cleaning generated files failed.

    Attributes:
        path: The generated file or directory involved.
        artifact: The artifact whose module needed the file, if known.
    """

    def __init__(self, path: str, reason: str, artifact: str | None = None) -> None:
        self.path = path
        self.artifact = artifact
        where = f" (needed by {artifact})" if artifact else ""
        super().__init__(f"cannot stage {path}{where}: {reason}")


class PropertyTypeMismatchError(Ninja2SoongError):
    """A property value or hook result has an incompatible type.

    Attributes:
        module: Name of the module being built, if known.
        prop: Name of the property or hook involved.
    """

    def __init__(self, module: str | None, prop: str, reason: str) -> None:
        self.module = module
        self.prop = prop
        where = f" of module '{module}'" if module else ""
        super().__init__(f"property '{prop}'{where}: {reason}")


class ModuleFrozenError(Ninja2SoongError):
    """A frozen module was mutated."""

    def __init__(self, module: str | None) -> None:
        self.module = module
        super().__init__(f"module '{module}' is frozen and cannot be modified")


class DuplicateModuleError(Ninja2SoongError):
    """A module name is used twice in one package.

    Attributes:
        name: The duplicated module name.
    """

    def __init__(self, name: str, detail: str = "") -> None:
        self.name = name
        msg = f"module '{name}' is defined more than once"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


class EmitIOError(Ninja2SoongError):
    """Writing the package description failed.

    Attributes:
        path: The file that could not be written.
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"cannot write {path}: {reason}")

# SPDX-License-Identifier: MIT
"""Soong module and package records.

A SoongModule is a typed property mapping: each value is a string, a
boolean or a list of strings, checked on every mutation. Modules are
created by the synthesizer, adjusted by the project's extension hook,
then frozen before emission.

A SoongPackage collects modules in insertion order, which is also the
order they are emitted in, plus the license/visibility boilerplate.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from enum import Enum
from typing import TYPE_CHECKING, Union

from ninja2soong.core.errors import (
    DuplicateModuleError,
    ModuleFrozenError,
    PropertyTypeMismatchError,
)
from ninja2soong.core.flags import merge_flags

if TYPE_CHECKING:
    from ninja2soong.core.project import LicenseInfo

PropValue = Union[str, bool, list[str]]


class ModuleKind(Enum):
    """Module types, valued by their Soong module type name."""

    SHARED_LIBRARY = "cc_library_shared"
    STATIC_LIBRARY = "cc_library_static"
    BINARY = "cc_binary"
    GENERATED_GROUP = "filegroup"
    DEFAULTS = "cc_defaults"
    HEADERS = "cc_library_headers"


def check_value(module: str | None, prop: str, value: object) -> PropValue:
    """Validate a property value and return a private copy of it.

    Raises:
        PropertyTypeMismatchError: If the value is not a str, bool or list of str.
    """
    if isinstance(value, (bool, str)):
        return value
    if isinstance(value, (list, tuple)):
        for item in value:
            if not isinstance(item, str):
                raise PropertyTypeMismatchError(
                    module, prop, f"list item {item!r} is not a string"
                )
        return list(value)
    raise PropertyTypeMismatchError(
        module, prop, f"unsupported value type {type(value).__name__}"
    )


class SoongModule:
    """A module of a Soong package.

    Mutators return the module so that calls can be chained:

        module.add_prop("soc_specific", True).extend_prop("cflags", ["-Wall"])

    Attributes:
        kind: The module type.
    """

    def __init__(self, kind: ModuleKind, name: str | None = None) -> None:
        self.kind = kind
        self._props: dict[str, PropValue] = {}
        self._frozen = False
        if name is not None:
            self.add_prop("name", name)

    @property
    def name(self) -> str | None:
        value = self._props.get("name")
        return value if isinstance(value, str) else None

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> SoongModule:
        """Forbid any further mutation."""
        self._frozen = True
        return self

    def _check_mutable(self) -> None:
        if self._frozen:
            raise ModuleFrozenError(self.name)

    def add_prop(self, prop: str, value: PropValue) -> SoongModule:
        """Set a property, replacing any previous value."""
        self._check_mutable()
        self._props[prop] = check_value(self.name, prop, value)
        return self

    def extend_prop(self, prop: str, values: Iterable[str]) -> SoongModule:
        """Append items to a list property, skipping duplicates.

        Raises:
            PropertyTypeMismatchError: If the property holds a str or bool.
        """
        self._check_mutable()
        new = check_value(self.name, prop, list(values))
        current = self._props.get(prop)
        if current is None:
            if new:
                self._props[prop] = new
            return self
        if not isinstance(current, list):
            raise PropertyTypeMismatchError(
                self.name, prop, f"cannot extend a {type(current).__name__} value"
            )
        merge_flags(current, new)  # type: ignore[arg-type]
        return self

    def remove_prop(self, prop: str) -> SoongModule:
        self._check_mutable()
        self._props.pop(prop, None)
        return self

    def get_prop(self, prop: str, default: PropValue | None = None) -> PropValue | None:
        value = self._props.get(prop, default)
        return list(value) if isinstance(value, list) else value

    def get_list(self, prop: str) -> list[str]:
        """Get a list property, empty if unset.

        Raises:
            PropertyTypeMismatchError: If the property is not a list.
        """
        value = self._props.get(prop, [])
        if not isinstance(value, list):
            raise PropertyTypeMismatchError(self.name, prop, "expected a list")
        return list(value)

    def props(self) -> list[tuple[str, PropValue]]:
        """All properties in insertion order."""
        return [
            (k, list(v) if isinstance(v, list) else v) for k, v in self._props.items()
        ]

    def __contains__(self, prop: str) -> bool:
        return prop in self._props

    def __repr__(self) -> str:
        return f"SoongModule({self.kind.value}, {self.name!r})"


class SoongPackage:
    """An ordered set of uniquely named modules plus boilerplate.

    Attributes:
        license: License and visibility boilerplate, or None.
        generated_files: Staged generated files, relative to the package.
    """

    def __init__(self, license: LicenseInfo | None = None) -> None:
        self.license = license
        self.generated_files: list[str] = []
        self._modules: dict[str, SoongModule] = {}

    def add_module(self, module: SoongModule) -> SoongPackage:
        """Append a module.

        Raises:
            PropertyTypeMismatchError: If the module has no string name.
            DuplicateModuleError: If the name is already used.
        """
        name = module.name
        if name is None:
            raise PropertyTypeMismatchError(None, "name", "module has no name")
        if name in self._modules:
            raise DuplicateModuleError(name)
        self._modules[name] = module
        return self

    def get_module(self, name: str) -> SoongModule | None:
        return self._modules.get(name)

    @property
    def modules(self) -> list[SoongModule]:
        return list(self._modules.values())

    def __contains__(self, name: str) -> bool:
        return name in self._modules

    def __iter__(self) -> Iterator[SoongModule]:
        return iter(list(self._modules.values()))

    def __len__(self) -> int:
        return len(self._modules)

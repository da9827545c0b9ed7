# SPDX-License-Identifier: MIT
"""Project plugin interface.

A Project supplies the per-project policy the translation engine needs:
where the sources and the build output live, which outputs to turn
into modules, which flags, defines, includes and libraries to keep, how
library outputs map to module names, and a final hook to adjust each
module.

Any object implementing the Project protocol can be passed to
translate(). BaseProject implements every operation with permissive
defaults so that a project only overrides what it needs.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from ninja2soong.core.errors import ConfigError
from ninja2soong.util.paths import library_stem

if TYPE_CHECKING:
    from ninja2soong.core.module import SoongModule, SoongPackage

_UNSAFE_NAME_RE = re.compile(r"[^A-Za-z0-9_.+-]")


@dataclass(frozen=True)
class LicenseInfo:
    """Package boilerplate emitted before the modules.

    Attributes:
        name: Name of the ``license`` module; None to omit it.
        kinds: SPDX license kinds.
        texts: License text files, relative to the package.
        visibility: Default visibility of the package's modules.
    """

    name: str | None = None
    kinds: tuple[str, ...] = ()
    texts: tuple[str, ...] = ()
    visibility: tuple[str, ...] = field(default=("//visibility:public",))


@runtime_checkable
class Project(Protocol):
    """Protocol for project plugins."""

    @property
    def name(self) -> str:
        """Project name (e.g., 'mesa3d-25xx')."""
        ...

    def resolve_source_root(self) -> Path:
        """Where the upstream project's source tree lives."""
        ...

    def resolve_output_root(self) -> Path:
        """Build directory holding the graph and the generated files."""
        ...

    def requested_artifacts(self) -> list[tuple[str, str]]:
        """Ordered (graph output path, module name) pairs to translate."""
        ...

    def filter_cflag(self, cflag: str) -> bool: ...

    def filter_define(self, define: str) -> bool: ...

    def filter_include(self, include: Path) -> bool: ...

    def filter_link_flag(self, flag: str) -> bool: ...

    def filter_generated_header(self, header: str) -> bool: ...

    def filter_library(self, library: str) -> bool: ...

    def filter_target(self, target: str) -> bool:
        """Whether a referenced local library is synthesized as its own module."""
        ...

    def map_library(self, library: str) -> str | None:
        """Module name for a library output, or None if it is not a dependency."""
        ...

    def module_name(self, target: str) -> str:
        """Module name of a library discovered through filter_target."""
        ...

    def extend_module(self, artifact: str, module: SoongModule) -> SoongModule:
        """Final, authoritative adjustment of a synthesized module."""
        ...

    def license(self) -> LicenseInfo: ...

    def finalize_package(self, package: SoongPackage) -> None:
        """Post-process the package after all modules are synthesized."""
        ...


class BaseProject:
    """Base class for projects with permissive defaults.

    Keeps every flag, define, include and library, maps libraries to
    their file stem and does not synthesize referenced libraries on its
    own.

    Subclasses may set ``schema`` and ``generated_dir`` class attributes
    to choose the rule schema and the generated-files directory.
    """

    def __init__(
        self,
        name: str,
        *,
        source_root: Path | str | None = None,
        build_root: Path | str | None = None,
        artifacts: list[tuple[str, str]] | None = None,
    ) -> None:
        """Initialize a project.

        Args:
            name: Project name.
            source_root: Upstream source tree.
            build_root: Build directory containing build.ninja.
            artifacts: Requested (output path, module name) pairs.
        """
        self._name = name
        self.source_root = Path(source_root) if source_root is not None else None
        self.build_root = Path(build_root) if build_root is not None else None
        self._artifacts = list(artifacts or [])

    @property
    def name(self) -> str:
        return self._name

    def resolve_source_root(self) -> Path:
        if self.source_root is None:
            raise ConfigError(f"project '{self.name}' has no source directory")
        return self.source_root

    def resolve_output_root(self) -> Path:
        if self.build_root is None:
            raise ConfigError(f"project '{self.name}' has no build directory")
        return self.build_root

    def requested_artifacts(self) -> list[tuple[str, str]]:
        return list(self._artifacts)

    def filter_cflag(self, cflag: str) -> bool:
        return True

    def filter_define(self, define: str) -> bool:
        return True

    def filter_include(self, include: Path) -> bool:
        return True

    def filter_link_flag(self, flag: str) -> bool:
        return True

    def filter_generated_header(self, header: str) -> bool:
        return True

    def filter_library(self, library: str) -> bool:
        return True

    def filter_target(self, target: str) -> bool:
        return False

    def map_library(self, library: str) -> str | None:
        return library_stem(library)

    def module_name(self, target: str) -> str:
        return f"{self.name}_" + _UNSAFE_NAME_RE.sub("_", target)

    def extend_module(self, artifact: str, module: SoongModule) -> SoongModule:
        return module

    def license(self) -> LicenseInfo:
        return LicenseInfo()

    def finalize_package(self, package: SoongPackage) -> None:
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"

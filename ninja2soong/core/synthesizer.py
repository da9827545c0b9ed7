# SPDX-License-Identifier: MIT
"""Module synthesis: from an aggregated unit to a Soong module.

Synthesis runs in a fixed order so that output is reproducible:

1. classify the module kind from the artifact's rule and suffix;
2. run the project's filters over each aggregated list;
3. resolve library references to module names;
4. assemble the properties;
5. hand the module to the project's extension hook, then freeze it.

Library references are resolved against the table of modules in the
package first. A local library the project wants as a module of its
own (Project.filter_target) is added to that table and queued; the
translator synthesizes queued libraries after the requested artifacts.
Everything else goes through Project.map_library.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

from ninja2soong.core.errors import (
    DuplicateModuleError,
    PropertyTypeMismatchError,
    UnsupportedArtifactKindError,
)
from ninja2soong.core.flags import deduplicate
from ninja2soong.core.module import ModuleKind, SoongModule
from ninja2soong.core.schema import RuleKind
from ninja2soong.util.paths import (
    is_shared_library,
    is_static_library,
    normalize,
    relative_to,
)

if TYPE_CHECKING:
    from ninja2soong.core.index import TargetIndex
    from ninja2soong.core.project import Project
    from ninja2soong.core.resolver import AggregatedUnit
    from ninja2soong.core.staging import GeneratedFileStager

logger = logging.getLogger(__name__)

_LIBRARY_KINDS = (RuleKind.LINK, RuleKind.ARCHIVE)


def classify(artifact: str, kind: RuleKind) -> ModuleKind:
    """Map an artifact and the kind of its rule to a module kind.

    Raises:
        UnsupportedArtifactKindError: For compile outputs, aliases and
            link outputs of unknown type.
    """
    if kind is RuleKind.CUSTOM:
        return ModuleKind.GENERATED_GROUP
    if kind in _LIBRARY_KINDS:
        if is_shared_library(artifact):
            return ModuleKind.SHARED_LIBRARY
        if is_static_library(artifact):
            return ModuleKind.STATIC_LIBRARY
        if kind is RuleKind.LINK:
            return ModuleKind.BINARY
    raise UnsupportedArtifactKindError(
        artifact, f"{kind.value} output is not a library, binary or generated file"
    )


class ModuleSynthesizer:
    """Builds SoongModules from AggregatedUnits.

    Attributes:
        index: Target index of the parsed graph.
        project: Project policy.
        stager: Stager receiving the generated files.
        source_root: Upstream source tree; sources are made relative to it.
        build_root: Build directory the graph paths are relative to.
        module_names: Artifact path -> module name for every module of
            the package, requested or discovered. Shared with the caller.
        discovered: Local libraries queued for synthesis, in discovery order.
    """

    def __init__(
        self,
        index: TargetIndex,
        project: Project,
        stager: GeneratedFileStager,
        source_root: Path,
        build_root: Path,
        module_names: dict[str, str] | None = None,
    ) -> None:
        self.index = index
        self.project = project
        self.stager = stager
        self.source_root = source_root
        self.build_root = build_root
        self.module_names: dict[str, str] = dict(module_names or {})
        self.discovered: list[str] = []

    # -- filters -----------------------------------------------------------

    def _keep(
        self,
        module: str,
        hook: str,
        predicate: Callable[[object], object],
        item: object,
    ) -> bool:
        result = predicate(item)
        if not isinstance(result, bool):
            raise PropertyTypeMismatchError(
                module,
                hook,
                f"returned {type(result).__name__} for {item!r}, expected bool",
            )
        return result

    def _filter(self, module: str, hook: str, items: tuple[str, ...]) -> list[str]:
        predicate = getattr(self.project, hook)
        return [item for item in items if self._keep(module, hook, predicate, item)]

    # -- libraries ---------------------------------------------------------

    def _library_name(self, module: str, library: str) -> str | None:
        name = self.module_names.get(library)
        if name is not None:
            return name
        edge = self.index.edge_for(library)
        if edge is not None and self.index.kind_of(edge) in _LIBRARY_KINDS:
            if self._keep(
                module, "filter_target", self.project.filter_target, library
            ):
                return self._discover(library)
        name = self.project.map_library(library)
        if name is not None and not isinstance(name, str):
            raise PropertyTypeMismatchError(
                module, "map_library", f"returned {type(name).__name__} for {library!r}"
            )
        return name

    def _discover(self, library: str) -> str:
        name = self.project.module_name(library)
        for other, taken in self.module_names.items():
            if taken == name:
                raise DuplicateModuleError(name, f"produced by {other} and {library}")
        self.module_names[library] = name
        self.discovered.append(library)
        logger.info("Discovered dependency %s as module %s", library, name)
        return name

    def resolve_libraries(
        self, module: str, unit: AggregatedUnit
    ) -> tuple[list[str], list[str], list[str]]:
        """Split the libraries into (shared, static, whole static) module names."""
        shared: list[str] = []
        static: list[str] = []
        whole: list[str] = []
        for libraries, whole_archive in (
            (unit.libraries, False),
            (unit.whole_static_libraries, True),
        ):
            for library in libraries:
                file_name = Path(library).name
                keep = self.project.filter_library
                if not self._keep(module, "filter_library", keep, file_name):
                    logger.debug("%s: library %s filtered out", module, library)
                    continue
                name = self._library_name(module, library)
                if name is None:
                    logger.debug("%s: library %s is not tracked", module, library)
                    continue
                if whole_archive:
                    target = whole
                elif is_static_library(library):
                    target = static
                else:
                    target = shared
                if name not in target:
                    target.append(name)
        return shared, static, whole

    # -- paths -------------------------------------------------------------

    def _is_build_output(self, path: Path) -> bool:
        """True if ``path`` was written into the build tree, not checked in.

        Paths under both roots are hand-written unless the build
        directory is nested inside the source tree.
        """
        if relative_to(path, self.build_root) is None:
            return False
        if relative_to(path, self.source_root) is None:
            return True
        return relative_to(self.build_root, self.source_root) not in (None, ".")

    def _split_sources(
        self, unit: AggregatedUnit
    ) -> tuple[list[str], tuple[str, ...]]:
        """Return (source-relative sources, build-dir leaves to stage)."""
        sources: list[str] = []
        build_leaves: list[str] = []
        for src in unit.sources:
            path = normalize(self.build_root, src)
            if self._is_build_output(path):
                # Written by the build generator at configure time.
                build_leaves.append(src)
                continue
            rel = relative_to(path, self.source_root)
            if rel is None:
                logger.warning(
                    "%s: dropping source outside the source tree: %s",
                    unit.artifact,
                    path,
                )
                continue
            sources.append(rel)
        return sources, tuple(build_leaves)

    def _include_dirs(self, module: str, unit: AggregatedUnit) -> list[str]:
        staged = unit.generated_sources + unit.generated_headers
        dirs: list[str] = []
        for include in unit.includes:
            path = normalize(self.build_root, include)
            if not self._keep(
                module, "filter_include", self.project.filter_include, path
            ):
                continue
            found: list[str] = []
            generated = self.stager.generated_include_dir(path)
            if generated is not None and self.stager.has_files_under(
                generated, staged
            ):
                found.append(generated)
            if self._is_build_output(path):
                if not found:
                    logger.debug("%s: no generated file under %s", module, path)
            else:
                rel = relative_to(path, self.source_root)
                if rel is None:
                    logger.warning(
                        "%s: dropping include outside the source tree: %s",
                        module,
                        path,
                    )
                else:
                    found.append(rel)
            for rel in found:
                if rel not in dirs:
                    dirs.append(rel)
        return dirs

    # -- synthesis ---------------------------------------------------------

    def synthesize(self, artifact: str, name: str, unit: AggregatedUnit) -> SoongModule:
        """Build, extend and freeze the module for one artifact.

        Raises:
            UnsupportedArtifactKindError: If the artifact has no module kind.
            PropertyTypeMismatchError: If a filter or hook returns a bad type.
            StagingIOError: If a generated file lies outside the build directory.
        """
        kind = classify(artifact, unit.kind)
        module = SoongModule(kind, name)

        if kind is ModuleKind.GENERATED_GROUP:
            unit = self.stager.rewrite(unit)
            module.extend_prop("srcs", unit.generated_sources)
            return self._finish(artifact, module)

        cflags = self._filter(name, "filter_cflag", unit.cflags)
        defines = self._filter(name, "filter_define", unit.defines)
        link_flags = self._filter(name, "filter_link_flag", unit.link_flags)
        headers = self._filter(name, "filter_generated_header", unit.generated_headers)

        sources, build_leaves = self._split_sources(unit)
        unit = replace(
            unit,
            generated_sources=unit.generated_sources + build_leaves,
            generated_headers=tuple(headers),
        )
        unit = self.stager.rewrite(unit)
        shared, static, whole = self.resolve_libraries(name, unit)

        module.extend_prop("srcs", sources + list(unit.generated_sources))
        cflags = deduplicate(cflags + [f"-D{d}" for d in defines])
        module.extend_prop("cflags", cflags)
        module.extend_prop("local_include_dirs", self._include_dirs(name, unit))
        if kind is not ModuleKind.STATIC_LIBRARY:
            module.extend_prop("ldflags", link_flags)
        module.extend_prop("shared_libs", shared)
        module.extend_prop("static_libs", static)
        module.extend_prop("whole_static_libs", whole)
        return self._finish(artifact, module)

    def _finish(self, artifact: str, module: SoongModule) -> SoongModule:
        name = module.name
        extended = self.project.extend_module(artifact, module)
        if not isinstance(extended, SoongModule):
            raise PropertyTypeMismatchError(
                name,
                "extend_module",
                f"returned {type(extended).__name__}, expected SoongModule",
            )
        # Other modules already refer to the module by its table name.
        if extended.name != name:
            raise PropertyTypeMismatchError(
                name,
                "extend_module",
                f"renamed the module to {extended.name!r}",
            )
        logger.debug("Synthesized %r for %s", extended, artifact)
        return extended.freeze()

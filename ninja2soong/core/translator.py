# SPDX-License-Identifier: MIT
"""Translation entry point.

translate() runs the whole pipeline for one project:

    parse -> index -> resolve -> synthesize -> stage -> finalize -> emit

It is fail-fast: any error propagates before Android.bp is written, so
a failed run never leaves a partial package description behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from ninja2soong.configure.config import TranslateConfig
from ninja2soong.core.errors import DuplicateModuleError
from ninja2soong.core.index import TargetIndex
from ninja2soong.core.module import SoongPackage
from ninja2soong.core.parser import parse_build_ninja
from ninja2soong.core.resolver import ClosureResolver
from ninja2soong.core.schema import get_schema
from ninja2soong.core.staging import GeneratedFileStager
from ninja2soong.core.synthesizer import ModuleSynthesizer
from ninja2soong.generators.blueprint import BlueprintGenerator

if TYPE_CHECKING:
    from ninja2soong.core.project import Project

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = "generic"
DEFAULT_GENERATED_DIR = "generated"


@dataclass
class TranslationResult:
    """Outcome of a successful translation.

    Attributes:
        package: The emitted package.
        output: Path of the written package description.
        staged_files: Generated files copied into the package.
    """

    package: SoongPackage
    output: Path
    staged_files: list[str] = field(default_factory=list)


def module_table(project: Project) -> dict[str, str]:
    """Map each requested artifact to its module name.

    Raises:
        DuplicateModuleError: If two artifacts share a module name.
    """
    names: dict[str, str] = {}
    owners: dict[str, str] = {}
    for artifact, name in project.requested_artifacts():
        if name in owners and owners[name] != artifact:
            raise DuplicateModuleError(
                name, f"requested for {owners[name]} and {artifact}"
            )
        owners[name] = artifact
        names[artifact] = name
    return names


def translate(
    project: Project, config: TranslateConfig | None = None
) -> TranslationResult:
    """Translate a project's build graph into a Soong package.

    Args:
        project: Project policy.
        config: Run options; directories set here override the project's.

    Returns:
        The package, the written Android.bp path and the staged files.

    Raises:
        Ninja2SoongError: Any failure; nothing is written in that case
            except possibly the generated directory.
    """
    config = config or TranslateConfig()
    source_root = config.source_dir or project.resolve_source_root()
    build_root = config.build_dir or project.resolve_output_root()
    package_dir = config.package_dir or source_root
    schema_name = config.schema or getattr(project, "schema", DEFAULT_SCHEMA)
    schema = get_schema(schema_name)
    generated_dir = config.generated_dir or getattr(
        project, "generated_dir", DEFAULT_GENERATED_DIR
    )
    logger.info(
        "Translating %s: source %s, build %s, schema %s",
        project.name,
        source_root,
        build_root,
        schema.name,
    )

    graph = parse_build_ninja(build_root, config.ninja_file)
    index = TargetIndex(graph, schema)
    resolver = ClosureResolver(index)
    stager = GeneratedFileStager(
        build_root, package_dir, generated_dir, config.stage_mode
    )
    requested = module_table(project)
    synthesizer = ModuleSynthesizer(
        index, project, stager, source_root, build_root, requested
    )

    package = SoongPackage(project.license())
    for artifact, name in requested.items():
        unit = resolver.resolve(artifact)
        package.add_module(synthesizer.synthesize(artifact, name, unit))

    # Libraries discovered while synthesizing; the queue grows as we go.
    done = 0
    while done < len(synthesizer.discovered):
        artifact = synthesizer.discovered[done]
        done += 1
        unit = resolver.resolve(artifact)
        name = synthesizer.module_names[artifact]
        package.add_module(synthesizer.synthesize(artifact, name, unit))

    package.generated_files = stager.stage()
    project.finalize_package(package)

    generator = BlueprintGenerator(config.blueprint_file)
    output = generator.generate(package, package_dir)
    logger.info("Wrote %d modules to %s", len(package), output)
    return TranslationResult(package, output, list(package.generated_files))

# SPDX-License-Identifier: MIT
"""Staging of generated files into the package.

Sources and headers produced by custom rules only exist in the build
directory. The stager rewrites their paths to a package-local
generated directory, preserving their layout relative to the build
directory, and later copies them there.

Staging is clean-then-copy: the generated directory is removed before
copying, so it always mirrors exactly the files the current modules
need. Running it twice with the same modules leaves identical files;
dropping an artifact drops its generated files on the next run.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Iterable
from dataclasses import replace
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from ninja2soong.core.errors import ConfigError, StagingIOError
from ninja2soong.util.paths import normalize, relative_to

if TYPE_CHECKING:
    from ninja2soong.core.resolver import AggregatedUnit

logger = logging.getLogger(__name__)

STAGE_MODES = ("copy", "symlink")


class GeneratedFileStager:
    """Rewrites and copies generated files for a package.

    Attributes:
        build_dir: Build directory the graph paths are relative to.
        package_dir: Root of the package being generated.
        generated_dir: Package-relative directory receiving the files.
        mode: "copy" or "symlink".
    """

    def __init__(
        self,
        build_dir: Path,
        package_dir: Path,
        generated_dir: str = "generated",
        mode: str = "copy",
    ) -> None:
        gen = PurePosixPath(generated_dir)
        # "." would make clean() remove the whole package directory.
        if not gen.parts or gen.is_absolute() or ".." in gen.parts:
            raise ConfigError(
                f"generated directory must be a relative path inside the package: "
                f"'{generated_dir}'"
            )
        if mode not in STAGE_MODES:
            raise ConfigError(f"unknown stage mode '{mode}'")
        self.build_dir = build_dir
        self.package_dir = package_dir
        self.generated_dir = gen.as_posix()
        self.mode = mode
        # staged path -> (file in the build directory, artifact needing it)
        self._pending: dict[str, tuple[Path, str]] = {}

    def staged_path(self, path: str) -> str:
        """Package-relative destination of a generated graph path.

        Raises:
            StagingIOError: If the file lies outside the build directory.
        """
        rel = relative_to(normalize(self.build_dir, path), self.build_dir)
        if rel is None:
            raise StagingIOError(path, "generated outside the build directory")
        return f"{self.generated_dir}/{rel}"

    def generated_include_dir(self, include: Path) -> str | None:
        """Map an include directory inside the build directory to its staged dir."""
        rel = relative_to(include, self.build_dir)
        if rel is None:
            return None
        return self.generated_dir if rel == "." else f"{self.generated_dir}/{rel}"

    def has_files_under(
        self, staged_dir: str, staged: Iterable[str] | None = None
    ) -> bool:
        """True if a staged file lives in ``staged_dir`` or below.

        ``staged`` restricts the check to those paths; by default every
        pending file counts.
        """
        prefix = staged_dir.rstrip("/") + "/"
        paths = self._pending if staged is None else staged
        return any(p.startswith(prefix) for p in paths)

    def rewrite(self, unit: AggregatedUnit) -> AggregatedUnit:
        """Return ``unit`` with generated paths rewritten to staged paths.

        The files are recorded for the next stage() call.
        """

        def stage_all(paths: tuple[str, ...]) -> tuple[str, ...]:
            staged = []
            for path in paths:
                dest = self.staged_path(path)
                source = normalize(self.build_dir, path)
                self._pending.setdefault(dest, (source, unit.artifact))
                staged.append(dest)
            return tuple(staged)

        return replace(
            unit,
            generated_sources=stage_all(unit.generated_sources),
            generated_headers=stage_all(unit.generated_headers),
        )

    @property
    def pending(self) -> list[str]:
        """Staged paths recorded so far, in recording order."""
        return list(self._pending)

    def stage(self) -> list[str]:
        """Clean the generated directory and copy every recorded file into it.

        Returns:
            The staged package-relative paths.

        Raises:
            StagingIOError: If a file is missing or an I/O operation fails.
        """
        target_root = self.package_dir / self.generated_dir
        self.clean()
        for dest_rel, (src, artifact) in self._pending.items():
            if not src.is_file():
                raise StagingIOError(str(src), "file not found", artifact)
            dest = self.package_dir / dest_rel
            try:
                dest.parent.mkdir(parents=True, exist_ok=True)
                if self.mode == "symlink":
                    dest.symlink_to(os.path.abspath(src))
                else:
                    shutil.copy2(src, dest)
            except OSError as e:
                raise StagingIOError(str(src), e.strerror or str(e), artifact) from e
        logger.info(
            "Staged %d generated files into %s", len(self._pending), target_root
        )
        return list(self._pending)

    def clean(self) -> None:
        """Remove the generated directory, if present."""
        target_root = self.package_dir / self.generated_dir
        try:
            if target_root.is_symlink() or target_root.is_file():
                target_root.unlink()
            elif target_root.exists():
                logger.debug("Removing stale generated directory %s", target_root)
                shutil.rmtree(target_root)
        except OSError as e:
            raise StagingIOError(str(target_root), e.strerror or str(e)) from e

# SPDX-License-Identifier: MIT
"""Bundled project policies.

Each entry maps a project name to a factory taking the run's
TranslateConfig. Projects outside this package can be passed to
translate() directly.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from ninja2soong.core.errors import ConfigError
from ninja2soong.projects.mesa3d import Mesa3DProject

if TYPE_CHECKING:
    from ninja2soong.configure.config import TranslateConfig
    from ninja2soong.core.project import Project

PROJECTS: dict[str, Callable[[TranslateConfig], Project]] = {
    Mesa3DProject.NAME: Mesa3DProject.from_config,
}


def get_project(name: str, config: TranslateConfig) -> Project:
    """Instantiate a bundled project.

    Raises:
        ConfigError: If no bundled project has that name.
    """
    try:
        factory = PROJECTS[name]
    except KeyError:
        known = ", ".join(sorted(PROJECTS))
        raise ConfigError(f"unknown project '{name}' (known: {known})") from None
    return factory(config)


__all__ = ["PROJECTS", "Mesa3DProject", "get_project"]

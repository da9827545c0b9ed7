# SPDX-License-Identifier: MIT
"""Translation configuration.

A TranslateConfig carries everything a run needs besides the project
policy: where the trees live, which files to read and write and how to
stage generated files. It can be built directly, loaded from the
``[ninja2soong]`` table of a TOML file, or filled from command-line
options.

Example ``ninja2soong.toml``:

    [ninja2soong]
    project = "mesa3d-25xx"
    source_dir = "external/mesa3d"
    build_dir = "/tmp/mesa3d-build"
    schema = "meson"
    generated_dir = "meson_generated"
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

from ninja2soong.core.errors import ConfigError
from ninja2soong.core.staging import STAGE_MODES

TABLE = "ninja2soong"

_PATH_FIELDS = ("source_dir", "build_dir", "package_dir")


@dataclass(frozen=True)
class TranslateConfig:
    """Options of one translation run.

    Directory options override the project's own roots when set.

    Attributes:
        project: Name of a bundled project, used by the command line.
        source_dir: Upstream source tree.
        build_dir: Build directory holding the Ninja file.
        package_dir: Where Android.bp and the generated directory are
            written; defaults to the source tree.
        ninja_file: Ninja file name inside the build directory.
        blueprint_file: Name of the written package description.
        generated_dir: Package-relative directory for generated files;
            None uses the project's directory.
        schema: Rule schema name; None uses the project's schema.
        stage_mode: "copy" or "symlink".
    """

    project: str | None = None
    source_dir: Path | None = None
    build_dir: Path | None = None
    package_dir: Path | None = None
    ninja_file: str = "build.ninja"
    blueprint_file: str = "Android.bp"
    generated_dir: str | None = None
    schema: str | None = None
    stage_mode: str = "copy"

    def __post_init__(self) -> None:
        if self.stage_mode not in STAGE_MODES:
            raise ConfigError(
                f"stage_mode must be one of {', '.join(STAGE_MODES)}, "
                f"not '{self.stage_mode}'"
            )
        for name in ("ninja_file", "blueprint_file", "generated_dir"):
            if getattr(self, name) == "":
                raise ConfigError(f"{name} must not be empty")

    def with_overrides(self, **overrides: Any) -> TranslateConfig:
        """Return a copy with the non-None overrides applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        for name in _PATH_FIELDS:
            if name in changes:
                changes[name] = Path(changes[name])
        return replace(self, **changes)


def config_from_dict(
    data: dict[str, Any], base_dir: Path | None = None
) -> TranslateConfig:
    """Build a TranslateConfig from a mapping, checking keys and types.

    Relative directories are resolved against ``base_dir`` when given.

    Raises:
        ConfigError: On unknown keys or values of the wrong type.
    """
    known = {f.name for f in fields(TranslateConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"unknown configuration keys: {', '.join(unknown)}")

    values: dict[str, Any] = {}
    for key, value in data.items():
        if not isinstance(value, str):
            raise ConfigError(
                f"configuration key '{key}' must be a string, "
                f"not {type(value).__name__}"
            )
        if key in _PATH_FIELDS:
            path = Path(value).expanduser()
            if base_dir is not None and not path.is_absolute():
                path = base_dir / path
            values[key] = path
        else:
            values[key] = value
    return TranslateConfig(**values)


def load_config(path: Path | str) -> TranslateConfig:
    """Load the ``[ninja2soong]`` table of a TOML file.

    Raises:
        ConfigError: If the file cannot be read or parsed, or holds bad values.
    """
    path = Path(path)
    try:
        with open(path, "rb") as f:
            document = tomllib.load(f)
    except OSError as e:
        raise ConfigError(f"cannot read {path}: {e.strerror or e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{path}: {e}") from e

    table = document.get(TABLE, {})
    if not isinstance(table, dict):
        raise ConfigError(f"{path}: '{TABLE}' must be a table")
    return config_from_dict(table, base_dir=path.parent)

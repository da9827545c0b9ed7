# SPDX-License-Identifier: MIT
"""Android.bp generator.

Writes a SoongPackage in Blueprint syntax: a header comment, the
``package`` and ``license`` boilerplate, then every module in the order
it was added to the package, with properties in insertion order.

Example output:

    package {
        default_visibility: ["//visibility:public"],
        default_applicable_licenses: ["mesa3d-25xx_licenses"],
    }

    cc_library_shared {
        name: "libEGL_mesa",
        srcs: [
            "src/egl/main/eglapi.c",
            "src/egl/main/eglarray.c",
        ],
        soc_specific: true,
    }
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from ninja2soong.core.errors import EmitIOError

if TYPE_CHECKING:
    from ninja2soong.core.module import PropValue, SoongModule, SoongPackage

logger = logging.getLogger(__name__)

HEADER = """\
//
// This file has been auto-generated by ninja2soong
//
// Do not edit: changes are lost when the package is regenerated.
//
"""

INDENT = "    "


def quote(value: str) -> str:
    """Quote a Blueprint string literal, escaping backslashes and quotes."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def format_value(value: PropValue, indent: str = INDENT) -> str:
    """Format a property value; multi-item lists span several lines."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return quote(value)
    if len(value) == 1:
        return f"[{quote(value[0])}]"
    lines = ["["]
    lines.extend(f"{indent}{INDENT}{quote(item)}," for item in value)
    lines.append(f"{indent}]")
    return "\n".join(lines)


def format_block(kind: str, props: list[tuple[str, PropValue]]) -> str:
    """Format one ``kind { ... }`` block, omitting empty lists."""
    lines = [f"{kind} {{"]
    for prop, value in props:
        if isinstance(value, list) and not value:
            continue
        lines.append(f"{INDENT}{prop}: {format_value(value)},")
    lines.append("}")
    return "\n".join(lines)


class BlueprintGenerator:
    """Writes a SoongPackage as an Android.bp file.

    Usage:
        generator = BlueprintGenerator()
        generator.generate(package, Path("external/mesa3d"))
        # Creates external/mesa3d/Android.bp
    """

    def __init__(self, output_filename: str = "Android.bp") -> None:
        """Initialize the Blueprint generator.

        Args:
            output_filename: Name of the output file.
        """
        self.name = "blueprint"
        self._output_filename = output_filename

    def render(self, package: SoongPackage) -> str:
        """Return the package description as text."""
        blocks = [HEADER.rstrip("\n")]
        blocks.extend(self._boilerplate(package))
        blocks.extend(self._module_block(module) for module in package)
        return "\n\n".join(blocks) + "\n"

    def generate(self, package: SoongPackage, output_dir: Path) -> Path:
        """Write Android.bp into ``output_dir``.

        Raises:
            EmitIOError: If the directory or the file cannot be written.
        """
        output_file = output_dir / self._output_filename
        text = self.render(package)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            with open(output_file, "w") as f:
                f.write(text)
        except OSError as e:
            raise EmitIOError(str(output_file), e.strerror or str(e)) from e
        logger.info("Generated %s", output_file)
        return output_file

    def _boilerplate(self, package: SoongPackage) -> list[str]:
        info = package.license
        if info is None:
            return []
        blocks = []
        package_props: list[tuple[str, PropValue]] = [
            ("default_visibility", list(info.visibility)),
        ]
        if info.name:
            package_props.append(("default_applicable_licenses", [info.name]))
        if info.visibility or info.name:
            blocks.append(format_block("package", package_props))
        if info.name:
            blocks.append(
                format_block(
                    "license",
                    [
                        ("name", info.name),
                        ("visibility", [":__subpackages__"]),
                        ("license_kinds", list(info.kinds)),
                        ("license_text", list(info.texts)),
                    ],
                )
            )
        return blocks

    def _module_block(self, module: SoongModule) -> str:
        return format_block(module.kind.value, module.props())

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._output_filename!r})"

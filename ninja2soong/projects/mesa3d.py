# SPDX-License-Identifier: MIT
"""Mesa 3D (25.x) for Android, with the panfrost/panvk drivers.

Mesa is configured with Meson against the NDK; the Meson schema reads
its build.ninja. The policy below keeps the EGL/GLES front ends, the
gallium DRI target, GBM and the panfrost Vulkan driver, turns every
local static library they link into a module of its own, and leaves
libdrm (vendored as a subproject) to the platform's copy.
"""

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from ninja2soong.core.module import ModuleKind, SoongModule
from ninja2soong.core.project import BaseProject, LicenseInfo
from ninja2soong.util.paths import is_object, library_stem

if TYPE_CHECKING:
    from ninja2soong.configure.config import TranslateConfig
    from ninja2soong.core.module import SoongPackage

logger = logging.getLogger(__name__)

DEFAULTS = "mesa3d-25xx-defaults"

ARTIFACTS = [
    ("src/egl/libEGL_mesa.so", "libEGL_mesa"),
    ("src/mapi/es1api/libGLESv1_CM_mesa.so", "libGLESv1_CM_mesa"),
    ("src/mapi/es2api/libGLESv2_mesa.so", "libGLESv2_mesa"),
    ("src/gbm/backends/dri/dri_gbm.so", "dri_gbm"),
    ("src/gallium/targets/dri/libgallium_dri.so", "libgallium_dri"),
    ("src/gbm/libgbm_mesa.so", "libgbm_mesa"),
    ("src/panfrost/vulkan/libvulkan_panfrost.so", "vulkan.panfrost"),
]

SOC_SPECIFIC = frozenset(PurePosixPath(path).name for path, _ in ARTIFACTS)

EGL_INSTALL = frozenset(
    ["libEGL_mesa.so", "libGLESv1_CM_mesa.so", "libGLESv2_mesa.so"]
)

# Static libraries including libdrm headers.
DRM_HEADER_USERS = frozenset(
    [
        "libdri.a",
        "libgallium.a",
        "libkmsrowinsys.a",
        "libloader.a",
        "libmesa_util.a",
        "libpipe_loader_dynamic.a",
        "libpipe_loader_static.a",
        "libswkmsdri.a",
        "libpanfrost_perf.a",
        "libpanfrost_midgard_disasm.a",
        "libpanfrost_midgard.a",
        "libpanfrost_shared.a",
        "libpanfrost_bifrost_disasm.a",
        "libpanfrost_bifrost.a",
        "libpanfrost_valhall_disasm.a",
        "libpanfrost_decode.a",
        "libpanfrost_lib.a",
        "libpanfrost_util.a",
        "libvulkan_instance.a",
        "libvulkan_lite_runtime.a",
        "libvulkan_runtime.a",
        "libvulkan_wsi.a",
    ]
)

COMMON_CFLAGS = [
    "-Wno-constant-conversion",
    "-Wno-enum-conversion",
    "-Wno-error",
    "-Wno-ignored-qualifiers",
    "-Wno-initializer-overrides",
    "-Wno-macro-redefined",
    "-Wno-non-virtual-dtor",
    "-Wno-pointer-arith",
    "-Wno-unused-parameter",
]

SYNC_USERS = frozenset(
    ["libdri.a", "libgallium.a", "libvulkan_lite_runtime.a", "libvulkan_wsi.a"]
)
UI_USERS = frozenset(
    ["libEGL_mesa.so", "libvulkan_panfrost.so", "lib_mesa_u_gralloc.a"]
)

KEPT_LINK_FLAGS = frozenset(["-Wl,--build-id=sha1", "-Wl,-Bsymbolic"])


class Mesa3DProject(BaseProject):
    """Mesa 3D translated with the panfrost Gallium and Vulkan drivers."""

    NAME = "mesa3d-25xx"
    schema = "meson"
    generated_dir = "meson_generated"

    def __init__(
        self,
        *,
        source_root: Path | str | None = None,
        build_root: Path | str | None = None,
    ) -> None:
        super().__init__(
            self.NAME,
            source_root=source_root,
            build_root=build_root,
            artifacts=ARTIFACTS,
        )

    @classmethod
    def from_config(cls, config: TranslateConfig) -> Mesa3DProject:
        return cls(source_root=config.source_dir, build_root=config.build_dir)

    def license(self) -> LicenseInfo:
        return LicenseInfo(
            name=f"{self.NAME}_licenses",
            kinds=(
                "SPDX-license-identifier-MIT",
                "SPDX-license-identifier-Apache-2.0",
                "SPDX-license-identifier-GPL-1.0-or-later",
                "SPDX-license-identifier-GPL-2.0-only",
            ),
            texts=(
                "licenses/MIT",
                "licenses/Apache-2.0",
                "licenses/GPL-1.0-or-later",
                "licenses/GPL-2.0-only",
            ),
        )

    # -- filters -----------------------------------------------------------

    def filter_cflag(self, cflag: str) -> bool:
        return not cflag.startswith("'") and cflag != "-fno-rtti"

    def filter_include(self, include: Path) -> bool:
        if include.name == "android_stub":
            return False
        if self.source_root is not None:
            subprojects = self.source_root / "subprojects"
            if include == subprojects or subprojects in include.parents:
                return False
        return True

    def filter_link_flag(self, flag: str) -> bool:
        return flag in KEPT_LINK_FLAGS

    def filter_generated_header(self, header: str) -> bool:
        # Subprojects are provided by the platform.
        return not header.startswith("subprojects/")

    def filter_target(self, target: str) -> bool:
        name = PurePosixPath(target).name
        return (
            not is_object(name)
            and not name.endswith(".def")
            and "libdrm" not in name
            and not target.startswith("src/android_stub")
        )

    def map_library(self, library: str) -> str | None:
        if library.startswith("src/android_stub") or not library.startswith("src"):
            return library_stem(library)
        return None

    # -- module extension --------------------------------------------------

    def extend_module(self, artifact: str, module: SoongModule) -> SoongModule:
        if module.kind is ModuleKind.GENERATED_GROUP:
            return module
        name = PurePosixPath(artifact).name

        if name in SOC_SPECIFIC:
            module.add_prop("soc_specific", True)
        if name in EGL_INSTALL:
            module.add_prop("relative_install_path", "egl")
        elif name == "libvulkan_panfrost.so":
            module.add_prop("relative_install_path", "hw")

        if name == "libvulkan_lite_runtime.a":
            module.add_prop("header_libs", ["hwvulkan_headers", "libdrm_headers"])
        elif name in DRM_HEADER_USERS:
            module.add_prop("header_libs", ["libdrm_headers"])
        elif name == "libEGL_mesa.so":
            module.add_prop("header_libs", ["libnativebase_headers"])

        if name == "libgbm_mesa.so":
            module.add_prop("export_include_dirs", ["src/gbm/main"])

        cflags = list(COMMON_CFLAGS)
        if name == "libnir.a":
            cflags.append("-Wno-bool-conversion")
        elif name == "libvulkan_lite_runtime.a":
            cflags.append("-Wno-unreachable-code-loop-increment")
        elif name == "lib_mesa_u_gralloc.a":
            cflags.append("-DUSE_IMAPPER4_METADATA_API")

        libs = []
        if name in SYNC_USERS:
            libs.append("libsync")
        if name == "libmesa_util.a":
            libs.append("libz")
        if (
            artifact.startswith("src/panfrost/vulkan")
            or name == "libvulkan_lite_runtime.a"
        ):
            libs.append("libnativewindow")
        if name in UI_USERS:
            libs.append("libui")

        srcs = []
        if name == "lib_mesa_u_gralloc.a":
            srcs.append("src/util/u_gralloc/u_gralloc_imapper5_api.cpp")

        return (
            module.add_prop("defaults", [DEFAULTS])
            .extend_prop("cflags", cflags)
            .extend_prop("shared_libs", libs)
            .extend_prop("srcs", srcs)
        )

    def finalize_package(self, package: SoongPackage) -> None:
        """Add the defaults module every module refers to.

        Its cflags are those of dri_gbm without ``-pthread``, which the
        other modules share.
        """
        dri_gbm = package.get_module("dri_gbm")
        cflags = dri_gbm.get_list("cflags") if dri_gbm is not None else []
        if dri_gbm is None:
            logger.warning(
                "dri_gbm is not in the package, %s has no cflags", DEFAULTS
            )
        defaults = SoongModule(ModuleKind.DEFAULTS, DEFAULTS)
        defaults.extend_prop("cflags", [f for f in cflags if f != "-pthread"])
        package.add_module(defaults.freeze())

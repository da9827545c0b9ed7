# SPDX-License-Identifier: MIT
"""Tests for the bundled Mesa 3D project policy."""

import logging
from pathlib import Path

import pytest

from ninja2soong.configure.config import TranslateConfig
from ninja2soong.core.errors import ConfigError
from ninja2soong.core.module import ModuleKind, SoongModule, SoongPackage
from ninja2soong.core.translator import translate
from ninja2soong.projects import PROJECTS, get_project
from ninja2soong.projects.mesa3d import (
    ARTIFACTS,
    COMMON_CFLAGS,
    DEFAULTS,
    Mesa3DProject,
)

SOURCE = Path("/work/mesa")


@pytest.fixture
def project():
    return Mesa3DProject(source_root=SOURCE, build_root="/work/build")


class TestRegistry:
    def test_get_project(self, tmp_path):
        config = TranslateConfig(source_dir=tmp_path / "mesa", build_dir=tmp_path)
        project = get_project("mesa3d-25xx", config)
        assert isinstance(project, Mesa3DProject)
        assert project.resolve_source_root() == tmp_path / "mesa"
        assert project.resolve_output_root() == tmp_path
        assert "mesa3d-25xx" in PROJECTS

    def test_unknown_project(self):
        with pytest.raises(ConfigError, match="unknown project 'gallium'"):
            get_project("gallium", TranslateConfig())


class TestPolicy:
    def test_requested_artifacts(self, project):
        assert project.requested_artifacts() == ARTIFACTS
        assert project.schema == "meson"

    def test_license(self, project):
        info = project.license()
        assert info.name == "mesa3d-25xx_licenses"
        assert "SPDX-license-identifier-MIT" in info.kinds
        assert len(info.kinds) == len(info.texts)

    def test_filter_cflag(self, project):
        assert project.filter_cflag("-O2")
        assert not project.filter_cflag("-fno-rtti")
        assert not project.filter_cflag("'-DVERSION=\"25\"'")

    def test_filter_include(self, project):
        assert project.filter_include(SOURCE / "src" / "util")
        assert not project.filter_include(SOURCE / "subprojects")
        assert not project.filter_include(SOURCE / "subprojects" / "libdrm")
        assert not project.filter_include(SOURCE / "include" / "android_stub")

    def test_filter_link_flag(self, project):
        assert project.filter_link_flag("-Wl,-Bsymbolic")
        assert project.filter_link_flag("-Wl,--build-id=sha1")
        assert not project.filter_link_flag("-Wl,--as-needed")

    def test_filter_generated_header(self, project):
        assert project.filter_generated_header("src/util/format/u_format_pack.h")
        assert not project.filter_generated_header("subprojects/libdrm/config.h")

    @pytest.mark.parametrize(
        "target,expected",
        [
            ("src/util/libmesa_util.a", True),
            ("src/compiler/nir/libnir.a", True),
            ("src/util/libmesa_util.a.p/u_math.c.o", False),
            ("src/mapi/es2api/glesv2.def", False),
            ("subprojects/libdrm/libdrm.so.2.4.0", False),
            ("src/android_stub/libbacktrace.so", False),
        ],
    )
    def test_filter_target(self, project, target, expected):
        assert project.filter_target(target) is expected

    @pytest.mark.parametrize(
        "library,expected",
        [
            ("src/android_stub/libcutils.so", "libcutils"),
            ("subprojects/expat/libexpat.so.1", "libexpat"),
            ("libm.so", "libm"),
            ("src/util/libmesa_util.a", None),
        ],
    )
    def test_map_library(self, project, library, expected):
        assert project.map_library(library) == expected


class TestExtendModule:
    def test_egl(self, project):
        module = SoongModule(ModuleKind.SHARED_LIBRARY, "libEGL_mesa")
        project.extend_module("src/egl/libEGL_mesa.so", module)
        assert module.get_prop("soc_specific") is True
        assert module.get_prop("relative_install_path") == "egl"
        assert module.get_list("header_libs") == ["libnativebase_headers"]
        assert module.get_list("defaults") == [DEFAULTS]
        assert module.get_list("cflags") == COMMON_CFLAGS
        assert module.get_list("shared_libs") == ["libui"]

    def test_vulkan_driver(self, project):
        module = SoongModule(ModuleKind.SHARED_LIBRARY, "vulkan.panfrost")
        project.extend_module("src/panfrost/vulkan/libvulkan_panfrost.so", module)
        assert module.get_prop("relative_install_path") == "hw"
        assert module.get_list("shared_libs") == ["libnativewindow", "libui"]

    def test_static_library(self, project):
        module = SoongModule(ModuleKind.STATIC_LIBRARY, "util")
        module.add_prop("cflags", ["-O2"])
        project.extend_module("src/util/libmesa_util.a", module)
        assert "soc_specific" not in module
        assert module.get_list("header_libs") == ["libdrm_headers"]
        assert module.get_list("cflags") == ["-O2"] + COMMON_CFLAGS
        assert module.get_list("shared_libs") == ["libz"]

    def test_gralloc(self, project):
        module = SoongModule(ModuleKind.STATIC_LIBRARY, "gralloc")
        project.extend_module("src/util/u_gralloc/lib_mesa_u_gralloc.a", module)
        assert "-DUSE_IMAPPER4_METADATA_API" in module.get_list("cflags")
        assert module.get_list("srcs") == [
            "src/util/u_gralloc/u_gralloc_imapper5_api.cpp"
        ]

    def test_filegroup_untouched(self, project):
        module = SoongModule(ModuleKind.GENERATED_GROUP, "tables")
        project.extend_module("src/util/format_table.c", module)
        assert module.props() == [("name", "tables")]


class TestFinalizePackage:
    def test_defaults_from_dri_gbm(self, project):
        package = SoongPackage()
        package.add_module(
            SoongModule(ModuleKind.SHARED_LIBRARY, "dri_gbm").add_prop(
                "cflags", ["-O2", "-pthread", "-DHAVE_X"]
            )
        )
        project.finalize_package(package)
        defaults = package.get_module(DEFAULTS)
        assert defaults.kind is ModuleKind.DEFAULTS
        assert defaults.frozen
        assert defaults.get_list("cflags") == ["-O2", "-DHAVE_X"]
        assert package.modules[-1] is defaults

    def test_missing_dri_gbm(self, project, caplog):
        package = SoongPackage()
        with caplog.at_level(logging.WARNING):
            project.finalize_package(package)
        assert "dri_gbm is not in the package" in caplog.text
        assert "cflags" not in package.get_module(DEFAULTS)


MANIFEST = """\
rule c_COMPILER
  command = cc $ARGS -o $out -c $in
rule c_LINKER
  command = cc $ARGS -o $out $in $LINK_ARGS
rule STATIC_LINKER
  command = rm -f $out && ar $LINK_ARGS $out $in
rule CUSTOM_COMMAND
  command = $COMMAND
build src/util/format_table.c: CUSTOM_COMMAND ../mesa/src/util/format_table.py
  COMMAND = python3 ../mesa/src/util/format_table.py src/util/format_table.c
build src/util/libmesa_util.a.p/u_math.c.o: c_COMPILER ../mesa/src/util/u_math.c
  ARGS = -Isrc/util -I../mesa/src/util -DHAVE_PTHREAD -O2 -pthread
build src/util/libmesa_util.a.p/format_table.c.o: c_COMPILER src/util/format_table.c
  ARGS = -Isrc/util -I../mesa/src/util -O2 -pthread
build src/util/libmesa_util.a: STATIC_LINKER $
    src/util/libmesa_util.a.p/u_math.c.o $
    src/util/libmesa_util.a.p/format_table.c.o
  LINK_ARGS = csrDT
build src/gbm/backends/dri/dri_gbm.so.p/gbm_dri.c.o: c_COMPILER $
    ../mesa/src/gbm/backends/dri/gbm_dri.c
  ARGS = -I../mesa/src/gbm/main -I../mesa/subprojects/libdrm -DHAVE_PTHREAD $
    -O2 -pthread -fno-rtti
build src/gbm/backends/dri/dri_gbm.so: c_LINKER $
    src/gbm/backends/dri/dri_gbm.so.p/gbm_dri.c.o | src/util/libmesa_util.a
  LINK_ARGS = -Wl,--as-needed -Wl,-Bsymbolic -shared -Wl,--start-group $
    src/util/libmesa_util.a subprojects/libdrm/libdrm.so.2.4.0 -lm -Wl,--end-group
"""

DRI_GBM = "src/gbm/backends/dri/dri_gbm.so"
UTIL = "mesa3d-25xx_src_util_libmesa_util.a"


class DriGbmOnly(Mesa3DProject):
    def requested_artifacts(self):
        return [(DRI_GBM, "dri_gbm")]


class TestTranslateMesa:
    @pytest.fixture
    def result(self, tmp_path):
        build = tmp_path / "build"
        (build / "src" / "util").mkdir(parents=True)
        (build / "src" / "util" / "format_table.c").write_text("/* tables */\n")
        (build / "build.ninja").write_text(MANIFEST)
        source = tmp_path / "mesa"
        source.mkdir()
        return translate(DriGbmOnly(source_root=source, build_root=build))

    def test_module_order(self, result):
        assert [m.name for m in result.package] == ["dri_gbm", UTIL, DEFAULTS]

    def test_dri_gbm(self, result):
        module = result.package.get_module("dri_gbm")
        assert module.kind is ModuleKind.SHARED_LIBRARY
        assert module.get_list("srcs") == ["src/gbm/backends/dri/gbm_dri.c"]
        assert module.get_list("cflags") == [
            "-O2",
            "-pthread",
            "-DHAVE_PTHREAD",
        ] + COMMON_CFLAGS
        assert module.get_list("local_include_dirs") == ["src/gbm/main"]
        assert module.get_list("ldflags") == ["-Wl,-Bsymbolic"]
        assert module.get_list("static_libs") == [UTIL]
        assert module.get_list("shared_libs") == ["libdrm", "libm"]
        assert module.get_prop("soc_specific") is True

    def test_discovered_static_library(self, result):
        module = result.package.get_module(UTIL)
        assert module.kind is ModuleKind.STATIC_LIBRARY
        assert module.get_list("srcs") == [
            "src/util/u_math.c",
            "meson_generated/src/util/format_table.c",
        ]
        assert module.get_list("local_include_dirs") == [
            "meson_generated/src/util",
            "src/util",
        ]
        assert module.get_list("header_libs") == ["libdrm_headers"]
        assert module.get_list("shared_libs") == ["libz"]
        assert "soc_specific" not in module

    def test_defaults(self, result):
        defaults = result.package.get_module(DEFAULTS)
        assert defaults.get_list("cflags") == ["-O2", "-DHAVE_PTHREAD"] + COMMON_CFLAGS

    def test_written_package(self, result, tmp_path):
        assert result.output == tmp_path / "mesa" / "Android.bp"
        assert result.staged_files == ["meson_generated/src/util/format_table.c"]
        text = result.output.read_text()
        assert 'cc_defaults {\n    name: "mesa3d-25xx-defaults",' in text
        assert 'license {\n    name: "mesa3d-25xx_licenses",' in text

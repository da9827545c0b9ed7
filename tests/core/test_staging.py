# SPDX-License-Identifier: MIT
"""Tests for ninja2soong.core.staging."""

import pytest

from ninja2soong.core.errors import ConfigError, StagingIOError
from ninja2soong.core.resolver import AggregatedUnit
from ninja2soong.core.schema import RuleKind
from ninja2soong.core.staging import GeneratedFileStager


@pytest.fixture
def dirs(tmp_path):
    build = tmp_path / "build"
    package = tmp_path / "src"
    (build / "gen").mkdir(parents=True)
    package.mkdir()
    (build / "gen" / "tables.c").write_text("int tables;\n")
    (build / "gen" / "version.h").write_text("#define VERSION 1\n")
    return build, package


def unit(**kwargs):
    return AggregatedUnit(artifact="lib.so", kind=RuleKind.LINK, **kwargs)


class TestConstruction:
    @pytest.mark.parametrize(
        "generated_dir", ["", ".", "./", "/abs/gen", "../outside", "a/../.."]
    )
    def test_rejects_bad_generated_dir(self, tmp_path, generated_dir):
        with pytest.raises(ConfigError):
            GeneratedFileStager(tmp_path, tmp_path, generated_dir)

    def test_rejects_bad_mode(self, tmp_path):
        with pytest.raises(ConfigError, match="stage mode"):
            GeneratedFileStager(tmp_path, tmp_path, mode="hardlink")


class TestRewrite:
    def test_paths_are_rewritten(self, dirs):
        build, package = dirs
        stager = GeneratedFileStager(build, package)
        rewritten = stager.rewrite(
            unit(
                sources=("../src/a.c",),
                generated_sources=("gen/tables.c",),
                generated_headers=("gen/version.h",),
            )
        )
        assert rewritten.sources == ("../src/a.c",)
        assert rewritten.generated_sources == ("generated/gen/tables.c",)
        assert rewritten.generated_headers == ("generated/gen/version.h",)
        assert stager.pending == ["generated/gen/tables.c", "generated/gen/version.h"]

    def test_custom_generated_dir(self, dirs):
        build, package = dirs
        stager = GeneratedFileStager(build, package, "out/gen")
        assert stager.staged_path("gen/tables.c") == "out/gen/gen/tables.c"

    def test_outside_build_dir(self, dirs):
        build, package = dirs
        stager = GeneratedFileStager(build, package)
        with pytest.raises(StagingIOError, match="outside the build directory"):
            stager.staged_path("../elsewhere/x.c")

    def test_shared_files_recorded_once(self, dirs):
        build, package = dirs
        stager = GeneratedFileStager(build, package)
        stager.rewrite(unit(generated_headers=("gen/version.h",)))
        stager.rewrite(unit(generated_headers=("gen/version.h",)))
        assert stager.pending == ["generated/gen/version.h"]

    def test_generated_include_dir(self, dirs):
        build, package = dirs
        stager = GeneratedFileStager(build, package)
        assert stager.generated_include_dir(build / "gen") == "generated/gen"
        assert stager.generated_include_dir(build) == "generated"
        assert stager.generated_include_dir(package / "include") is None

    def test_has_files_under(self, dirs):
        build, package = dirs
        stager = GeneratedFileStager(build, package)
        stager.rewrite(unit(generated_headers=("gen/version.h",)))
        assert stager.has_files_under("generated/gen")
        assert stager.has_files_under("generated")
        assert not stager.has_files_under("generated/ge")
        assert not stager.has_files_under("generated/other")
        assert not stager.has_files_under("generated/gen", ["generated/x.h"])


class TestStage:
    def test_copy(self, dirs):
        build, package = dirs
        stager = GeneratedFileStager(build, package)
        stager.rewrite(unit(generated_sources=("gen/tables.c",)))
        staged = stager.stage()
        assert staged == ["generated/gen/tables.c"]
        copied = package / "generated" / "gen" / "tables.c"
        assert copied.read_text() == "int tables;\n"
        assert not copied.is_symlink()

    def test_stale_files_removed(self, dirs):
        build, package = dirs
        stale = package / "generated" / "old" / "stale.h"
        stale.parent.mkdir(parents=True)
        stale.write_text("")
        stager = GeneratedFileStager(build, package)
        stager.rewrite(unit(generated_headers=("gen/version.h",)))
        stager.stage()
        assert not stale.exists()
        assert (package / "generated" / "gen" / "version.h").is_file()

    def test_exactly_the_needed_files(self, dirs):
        build, package = dirs
        stager = GeneratedFileStager(build, package)
        stager.rewrite(unit(generated_headers=("gen/version.h",)))
        stager.stage()
        files = sorted(
            p.relative_to(package).as_posix()
            for p in (package / "generated").rglob("*")
            if p.is_file()
        )
        assert files == ["generated/gen/version.h"]

    def test_idempotent(self, dirs):
        build, package = dirs
        for _ in range(2):
            stager = GeneratedFileStager(build, package)
            stager.rewrite(unit(generated_sources=("gen/tables.c",)))
            stager.stage()
        files = [p for p in (package / "generated").rglob("*") if p.is_file()]
        assert len(files) == 1
        assert files[0].read_text() == "int tables;\n"

    def test_nothing_pending_cleans(self, dirs):
        build, package = dirs
        (package / "generated").mkdir()
        assert GeneratedFileStager(build, package).stage() == []
        assert not (package / "generated").exists()

    def test_symlink(self, dirs):
        build, package = dirs
        stager = GeneratedFileStager(build, package, mode="symlink")
        stager.rewrite(unit(generated_sources=("gen/tables.c",)))
        stager.stage()
        link = package / "generated" / "gen" / "tables.c"
        assert link.is_symlink()
        assert link.resolve() == (build / "gen" / "tables.c").resolve()

    def test_missing_file(self, dirs):
        build, package = dirs
        stager = GeneratedFileStager(build, package)
        stager.rewrite(unit(generated_headers=("gen/missing.h",)))
        with pytest.raises(StagingIOError) as exc_info:
            stager.stage()
        assert exc_info.value.artifact == "lib.so"
        assert "missing.h" in exc_info.value.path

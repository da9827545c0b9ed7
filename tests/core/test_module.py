# SPDX-License-Identifier: MIT
"""Tests for ninja2soong.core.module."""

import pytest

from ninja2soong.core.errors import (
    DuplicateModuleError,
    ModuleFrozenError,
    PropertyTypeMismatchError,
)
from ninja2soong.core.module import ModuleKind, SoongModule, SoongPackage, check_value


class TestCheckValue:
    def test_accepted_values(self):
        assert check_value("m", "name", "x") == "x"
        assert check_value("m", "soc_specific", True) is True
        assert check_value("m", "srcs", ("a.c", "b.c")) == ["a.c", "b.c"]

    def test_list_is_copied(self):
        items = ["a.c"]
        result = check_value("m", "srcs", items)
        items.append("b.c")
        assert result == ["a.c"]

    @pytest.mark.parametrize("value", [1, None, {"a": "b"}, ["a", 2]])
    def test_rejected_values(self, value):
        with pytest.raises(PropertyTypeMismatchError) as exc_info:
            check_value("m", "srcs", value)
        assert exc_info.value.module == "m"
        assert exc_info.value.prop == "srcs"


class TestSoongModule:
    def test_name_and_kind(self):
        module = SoongModule(ModuleKind.SHARED_LIBRARY, "libfoo")
        assert module.name == "libfoo"
        assert module.kind.value == "cc_library_shared"
        assert repr(module) == "SoongModule(cc_library_shared, 'libfoo')"

    def test_props_keep_insertion_order(self):
        module = SoongModule(ModuleKind.BINARY, "app")
        module.add_prop("srcs", ["main.c"]).add_prop("soc_specific", True)
        assert [k for k, _ in module.props()] == ["name", "srcs", "soc_specific"]

    def test_extend_skips_duplicates(self):
        module = SoongModule(ModuleKind.BINARY, "app")
        module.extend_prop("cflags", ["-O2", "-Wall"])
        module.extend_prop("cflags", ["-Wall", "-g"])
        assert module.get_list("cflags") == ["-O2", "-Wall", "-g"]

    def test_extend_with_nothing_adds_nothing(self):
        module = SoongModule(ModuleKind.BINARY, "app").extend_prop("cflags", [])
        assert "cflags" not in module

    def test_extend_non_list(self):
        module = SoongModule(ModuleKind.BINARY, "app")
        module.add_prop("relative_install_path", "egl")
        with pytest.raises(PropertyTypeMismatchError, match="cannot extend a str"):
            module.extend_prop("relative_install_path", ["x"])

    def test_get_list_of_non_list(self):
        module = SoongModule(ModuleKind.BINARY, "app")
        with pytest.raises(PropertyTypeMismatchError):
            module.get_list("name")
        assert module.get_list("srcs") == []

    def test_returned_lists_are_copies(self):
        module = SoongModule(ModuleKind.BINARY, "app").add_prop("srcs", ["a.c"])
        module.get_prop("srcs").append("b.c")
        module.get_list("srcs").append("c.c")
        assert module.get_list("srcs") == ["a.c"]

    def test_remove_prop(self):
        module = SoongModule(ModuleKind.BINARY, "app").add_prop("srcs", ["a.c"])
        module.remove_prop("srcs").remove_prop("missing")
        assert "srcs" not in module

    def test_frozen(self):
        module = SoongModule(ModuleKind.BINARY, "app").freeze()
        assert module.frozen
        with pytest.raises(ModuleFrozenError):
            module.add_prop("srcs", ["a.c"])
        with pytest.raises(ModuleFrozenError):
            module.extend_prop("srcs", ["a.c"])
        with pytest.raises(ModuleFrozenError):
            module.remove_prop("name")


class TestSoongPackage:
    def test_insertion_order(self):
        package = SoongPackage()
        for name in ("b", "a", "c"):
            package.add_module(SoongModule(ModuleKind.BINARY, name))
        assert [m.name for m in package] == ["b", "a", "c"]
        assert len(package) == 3
        assert "a" in package
        assert package.get_module("a").name == "a"
        assert package.get_module("z") is None

    def test_duplicate_name(self):
        package = SoongPackage()
        package.add_module(SoongModule(ModuleKind.BINARY, "app"))
        with pytest.raises(DuplicateModuleError) as exc_info:
            package.add_module(SoongModule(ModuleKind.SHARED_LIBRARY, "app"))
        assert exc_info.value.name == "app"

    def test_unnamed_module(self):
        with pytest.raises(PropertyTypeMismatchError, match="no name"):
            SoongPackage().add_module(SoongModule(ModuleKind.BINARY))

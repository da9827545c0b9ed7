# SPDX-License-Identifier: MIT
"""Tests for ninja2soong.core.flags."""

from ninja2soong.core.flags import (
    deduplicate,
    is_separated_arg_flag,
    join_separated_args,
    merge_flags,
)


class TestIsSeparatedArgFlag:
    def test_known_flags(self):
        assert is_separated_arg_flag("-include")
        assert is_separated_arg_flag("-Xclang")
        assert is_separated_arg_flag("-target")

    def test_plain_flags(self):
        assert not is_separated_arg_flag("-O2")
        assert not is_separated_arg_flag("-Wall")
        assert not is_separated_arg_flag("-I")

    def test_custom_set(self):
        custom = frozenset(["--sysroot"])
        assert is_separated_arg_flag("--sysroot", custom)
        assert not is_separated_arg_flag("-include", custom)


class TestJoinSeparatedArgs:
    def test_pairs_are_joined(self):
        tokens = ["-O2", "-include", "config.h", "-Xclang", "-fno-pch", "-Wall"]
        assert join_separated_args(tokens) == [
            "-O2",
            "-include config.h",
            "-Xclang -fno-pch",
            "-Wall",
        ]

    def test_trailing_flag_kept(self):
        assert join_separated_args(["-O2", "-include"]) == ["-O2", "-include"]

    def test_empty(self):
        assert join_separated_args([]) == []


class TestDeduplicate:
    def test_first_occurrence_wins(self):
        assert deduplicate(["-O2", "-Wall", "-O2", "-g", "-Wall"]) == [
            "-O2",
            "-Wall",
            "-g",
        ]

    def test_idempotent(self):
        once = deduplicate(["b", "a", "b", "c", "a"])
        assert deduplicate(once) == once


class TestMergeFlags:
    def test_merge_in_place(self):
        existing = ["-O2", "-DFOO"]
        merge_flags(existing, ["-Wall", "-O2", "-DBAR", "-Wall"])
        assert existing == ["-O2", "-DFOO", "-Wall", "-DBAR"]

    def test_merge_empty(self):
        existing = ["-O2"]
        merge_flags(existing, [])
        assert existing == ["-O2"]

# SPDX-License-Identifier: MIT
"""Tests for ninja2soong.core.index."""

import pytest

from ninja2soong.core.errors import UnknownRuleSchemaError
from ninja2soong.core.index import TargetIndex
from ninja2soong.core.parser import NinjaParser
from ninja2soong.core.schema import GenericSchema, RuleKind

MANIFEST = """\
rule cc
  command = cc $cflags -c $in -o $out
rule gen
  command = python3 gen.py $out
rule mystery
  command = mystery $in
build config.h: gen
build foo.o: cc ../src/foo.c || config.h
  cflags = -O2 -Isrc
build odd: mystery foo.o
"""


@pytest.fixture
def index():
    graph = NinjaParser().parse_text(MANIFEST)
    return TargetIndex(graph, GenericSchema())


class TestTargetIndex:
    def test_edge_for(self, index):
        assert index.edge_for("foo.o").rule == "cc"
        assert index.edge_for("../src/foo.c") is None
        assert "foo.o" in index
        assert "../src/foo.c" not in index

    def test_kind_of(self, index):
        assert index.kind_of(index.edge_for("foo.o")) is RuleKind.COMPILE
        assert index.kind_of(index.edge_for("config.h")) is RuleKind.CUSTOM

    def test_unknown_rule_only_when_queried(self, index):
        edge = index.edge_for("odd")
        with pytest.raises(UnknownRuleSchemaError) as exc_info:
            index.kind_of(edge)
        assert exc_info.value.rule == "mystery"
        assert exc_info.value.output == "odd"
        assert exc_info.value.location.line == 10

    def test_flags_are_memoized(self, index):
        edge = index.edge_for("foo.o")
        first = index.flags_of(edge)
        assert first.cflags == ("-O2", "-Isrc")
        assert index.flags_of(edge) is first

    def test_is_generated(self, index):
        assert index.is_generated("config.h")
        assert not index.is_generated("foo.o")
        assert not index.is_generated("../src/foo.c")

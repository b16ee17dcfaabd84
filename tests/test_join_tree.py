"""Tests for join tree nodes."""
import pytest

from rdf_proptable.loader import PropertyTableLoader
from rdf_proptable.sparql.ast import Constant, PatternGroup, TriplePattern, Variable
from rdf_proptable.sparql.join_tree import NodeKind, PropertyTableNode, compute_node_data
from rdf_proptable.storage.duckdb import DuckDBEngine
from rdf_proptable.storage.triples import TripleTable


@pytest.fixture
def engine():
    with DuckDBEngine() as engine:
        TripleTable(engine).write_triples([
            ("<a>", "<knows>", "<b>"),
            ("<a>", "<knows>", "<c>"),
            ("<b>", "<knows>", "<c>"),
        ])
        yield engine


@pytest.fixture
def catalog(engine):
    return PropertyTableLoader(engine).load().catalog


@pytest.fixture
def node():
    group = PatternGroup.of(TriplePattern(Variable("s"), Constant("<knows>"), Variable("o")))
    return PropertyTableNode(group)


class TestPropertyTableNode:
    def test_kind(self, node):
        assert node.kind is NodeKind.PROPERTY_TABLE

    def test_compute_data(self, node, engine, catalog):
        frame = node.compute_data(engine, catalog)
        assert set(frame.rows()) == {("<a>", "<b>"), ("<a>", "<c>"), ("<b>", "<c>")}

    def test_dispatch(self, node, engine, catalog):
        frame = compute_node_data(node, engine, catalog)
        assert frame.height == 3

    def test_unknown_kind_rejected(self, engine, catalog):
        with pytest.raises(TypeError):
            compute_node_data(object(), engine, catalog)

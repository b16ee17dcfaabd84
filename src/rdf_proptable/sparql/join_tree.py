"""
Join tree nodes.

A query plan is a tree of nodes, each able to compute its partial result as
a frame. Nodes are a closed set of kinds distinguished by an explicit tag;
the property table node answers one star pattern group with one scan.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

import polars as pl

from rdf_proptable.config import TableConfig
from rdf_proptable.models import PredicateCatalog
from rdf_proptable.sparql.ast import PatternGroup
from rdf_proptable.sparql.translator import TriplePatternTranslator
from rdf_proptable.storage.duckdb import DuckDBEngine

logger = logging.getLogger(__name__)


class NodeKind(Enum):
    PROPERTY_TABLE = "property_table"


@dataclass(frozen=True)
class PropertyTableNode:
    """Leaf node answering a star pattern group from the property table."""
    group: PatternGroup
    tables: TableConfig = field(default_factory=TableConfig)
    kind: NodeKind = field(default=NodeKind.PROPERTY_TABLE, init=False)

    def compute_data(self, engine: DuckDBEngine, catalog: PredicateCatalog) -> pl.DataFrame:
        """Translate the group against the catalog and run it on the engine."""
        query = TriplePatternTranslator(catalog, self.tables).translate(self.group)
        frame = engine.query_frame(query.render())
        logger.debug(f"{self.kind.value} node {self.group} produced {len(frame)} row(s)")
        return frame


JoinTreeNode = PropertyTableNode


def compute_node_data(
    node: JoinTreeNode,
    engine: DuckDBEngine,
    catalog: PredicateCatalog,
) -> pl.DataFrame:
    """Compute a node's result by dispatching on its kind."""
    kind = getattr(node, "kind", None)
    if kind is NodeKind.PROPERTY_TABLE:
        return node.compute_data(engine, catalog)
    raise TypeError(f"Unknown join tree node kind: {kind!r}")

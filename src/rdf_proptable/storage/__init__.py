"""
Storage layer: the DuckDB engine boundary and the tables built on it.
"""

from rdf_proptable.storage.duckdb import (
    DuckDBEngine,
    SQLQueryResult,
    quote_identifier,
    quote_literal,
)
from rdf_proptable.storage.triples import TripleTable, IngestReport
from rdf_proptable.storage.classifier import (
    PredicateClassifier,
    build_catalog,
    resolve_case_collisions,
    sanitize_predicate,
)
from rdf_proptable.storage.aggregator import SubjectAggregator, SingleValueViolation
from rdf_proptable.storage.property_table import PropertyTableBuilder, BuildResult
from rdf_proptable.storage.dictionary import (
    read_predicate_dictionary,
    write_predicate_dictionary,
)

__all__ = [
    "DuckDBEngine",
    "SQLQueryResult",
    "quote_identifier",
    "quote_literal",
    "TripleTable",
    "IngestReport",
    "PredicateClassifier",
    "build_catalog",
    "resolve_case_collisions",
    "sanitize_predicate",
    "SubjectAggregator",
    "SingleValueViolation",
    "PropertyTableBuilder",
    "BuildResult",
    "read_predicate_dictionary",
    "write_predicate_dictionary",
]

"""
rdf-proptable: property tables for RDF triple data.

Turns a (subject, predicate, object) relation into a wide one-row-per-subject
table in DuckDB and answers star-shaped triple pattern queries from it.
"""

__version__ = "0.1.0"

from rdf_proptable.config import LoaderConfig, TableConfig, load_config
from rdf_proptable.errors import (
    PropertyTableError,
    ColumnNameCollisionError,
    TranslationError,
    PredicateNotFoundError,
    UnsupportedPatternError,
    QueryParseError,
    CatalogNotAvailableError,
)
from rdf_proptable.models import Triple, PredicateInfo, DroppedPredicate, PredicateCatalog
from rdf_proptable.loader import PropertyTableLoader, LoadResult
from rdf_proptable.store import PropertyTableStore
from rdf_proptable.sparql import parse_query, TriplePatternTranslator

__all__ = [
    "PropertyTableStore",
    "PropertyTableLoader",
    "LoadResult",
    "LoaderConfig",
    "TableConfig",
    "load_config",
    "Triple",
    "PredicateInfo",
    "DroppedPredicate",
    "PredicateCatalog",
    "parse_query",
    "TriplePatternTranslator",
    # Errors
    "PropertyTableError",
    "ColumnNameCollisionError",
    "TranslationError",
    "PredicateNotFoundError",
    "UnsupportedPatternError",
    "QueryParseError",
    "CatalogNotAvailableError",
]

"""
PropertyTableStore: one object for the whole load-then-query lifecycle.

Ingest triples, build the property table, then answer star-shaped basic
graph pattern queries from it:

    with PropertyTableStore() as store:
        store.load_ntriples("data.nt")
        store.build()
        frame = store.query("SELECT ?s ?o WHERE { ?s <http://example.org/knows> ?o }")

Ingesting replaces the triple relation but leaves the built table and
catalog untouched until the next build().

A store may be shared between threads. Queries run concurrently with each
other; ingestion and builds are exclusive, so a query sees either the old
table and catalog or the new ones, never a mix.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Optional, Union

import polars as pl

from rdf_proptable.config import LoaderConfig, load_config
from rdf_proptable.errors import (
    CatalogNotAvailableError,
    QueryParseError,
    UnsupportedPatternError,
)
from rdf_proptable.loader import LoadResult, PropertyTableLoader
from rdf_proptable.models import PredicateCatalog
from rdf_proptable.sparql.ast import PatternGroup
from rdf_proptable.sparql.builder import Query
from rdf_proptable.sparql.join_tree import PropertyTableNode, compute_node_data
from rdf_proptable.sparql.parser import parse_query
from rdf_proptable.sparql.translator import TriplePatternTranslator
from rdf_proptable.storage.classifier import PredicateClassifier
from rdf_proptable.storage.duckdb import DuckDBEngine
from rdf_proptable.storage.triples import IngestReport, TripleLike, TripleTable

logger = logging.getLogger(__name__)


class _ReadWriteLock:
    """
    Many concurrent readers or one writer.

    Waiting writers block new readers, so a build is not starved by a
    steady stream of queries.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._active_readers = 0
        self._waiting_writers = 0
        self._writing = False

    @contextmanager
    def read(self):
        with self._cond:
            while self._writing or self._waiting_writers:
                self._cond.wait()
            self._active_readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._active_readers -= 1
                if self._active_readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self):
        with self._cond:
            self._waiting_writers += 1
            try:
                while self._writing or self._active_readers:
                    self._cond.wait()
            finally:
                self._waiting_writers -= 1
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


class PropertyTableStore:
    """
    Triple ingestion, property table build and star query execution.

    Queries hold a shared lock. Ingestion, build() and open_catalog() hold
    it exclusively, so a table replace and its catalog are published
    together.
    """

    def __init__(
        self,
        config: Optional[LoaderConfig] = None,
        engine: Optional[DuckDBEngine] = None,
    ):
        self._config = config or LoaderConfig()
        self._config.validate()
        self._owns_engine = engine is None
        self._engine = engine or DuckDBEngine(
            self._config.database, threads=self._config.threads
        )
        self._triples = TripleTable(self._engine, self._config.tables)
        self._catalog: Optional[PredicateCatalog] = None
        self._lock = _ReadWriteLock()

    @classmethod
    def from_config_file(cls, path: Union[str, Path]) -> "PropertyTableStore":
        return cls(load_config(path))

    @property
    def config(self) -> LoaderConfig:
        return self._config

    @property
    def engine(self) -> DuckDBEngine:
        return self._engine

    @property
    def triples(self) -> TripleTable:
        return self._triples

    # =========================================================================
    # Ingestion
    # =========================================================================

    def add_triples(self, triples: Iterable[TripleLike]) -> IngestReport:
        """Replace the triple relation with Triple objects or 3-sequences."""
        with self._lock.write():
            return self._triples.write_triples(triples)

    def load_frame(self, frame: pl.DataFrame) -> IngestReport:
        """Replace the triple relation with the rows of a frame."""
        with self._lock.write():
            return self._triples.write_frame(frame)

    def load_ntriples(self, path: Union[str, Path]) -> IngestReport:
        """Replace the triple relation with the contents of an N-Triples file."""
        with self._lock.write():
            return self._triples.load_ntriples(path, chunk_size=self._config.batch_size)

    # =========================================================================
    # Build
    # =========================================================================

    def build(self) -> LoadResult:
        """
        Classify predicates and (re)build the property table.

        Raises:
            ColumnNameCollisionError: If two predicates share a column name
        """
        with self._lock.write():
            result = PropertyTableLoader(self._engine, self._config).load()
            self._catalog = result.catalog
            return result

    @property
    def catalog(self) -> PredicateCatalog:
        """
        The catalog of the current property table.

        Raises:
            CatalogNotAvailableError: Before build() or open_catalog()
        """
        catalog = self._catalog
        if catalog is None:
            raise CatalogNotAvailableError(
                "No predicate catalog; call build() or open_catalog() first"
            )
        return catalog

    def open_catalog(self) -> PredicateCatalog:
        """
        Load the catalog of a property table built earlier in this database.

        Raises:
            CatalogNotAvailableError: If the metadata table does not exist
        """
        tables = self._config.tables
        with self._lock.write():
            if not self._engine.table_exists(tables.metadata_table):
                raise CatalogNotAvailableError(
                    f"Predicate metadata table {tables.metadata_table} does not exist"
                )
            self._catalog = PredicateClassifier(self._engine, tables).load_metadata()
            logger.info(f"Opened catalog with {len(self._catalog)} predicate(s)")
            return self._catalog

    # =========================================================================
    # Queries
    # =========================================================================

    def translate(self, group: PatternGroup) -> Query:
        with self._lock.read():
            return TriplePatternTranslator(self.catalog, self._config.tables).translate(group)

    def execute_group(self, group: PatternGroup) -> pl.DataFrame:
        """Run one star pattern group against the property table."""
        with self._lock.read():
            return self._execute_group(group)

    def _execute_group(self, group: PatternGroup) -> pl.DataFrame:
        node = PropertyTableNode(group, self._config.tables)
        return compute_node_data(node, self._engine, self.catalog)

    def query(self, text: str) -> pl.DataFrame:
        """
        Execute a SELECT over a single star pattern group.

        Raises:
            QueryParseError: If the text cannot be parsed, or a projected
                variable does not occur in the pattern
            UnsupportedPatternError: If the pattern is not exactly one star
            PredicateNotFoundError: If a predicate has no column
        """
        parsed = parse_query(text)
        groups = parsed.groups
        if len(groups) != 1:
            raise UnsupportedPatternError(
                f"Expected exactly one star pattern group, got {len(groups)}"
            )

        with self._lock.read():
            frame = self._execute_group(groups[0])

        if not parsed.select_all:
            names = [variable.name for variable in parsed.projection]
            missing = [name for name in names if name not in frame.columns]
            if missing:
                raise QueryParseError(
                    f"Projected variable(s) not in the pattern: "
                    f"{', '.join('?' + name for name in missing)}"
                )
            frame = frame.select(names)

        if parsed.distinct:
            frame = frame.unique(maintain_order=True)
        return frame

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        if self._owns_engine:
            self._engine.close()

    def __enter__(self) -> "PropertyTableStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

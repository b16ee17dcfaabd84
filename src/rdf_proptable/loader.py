"""
Build phase pipeline.

    classify predicates -> write metadata table -> build property table
                        -> write predicate dictionary (when configured)

The catalog produced by classification is the one snapshot used by every
later step of the same load.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from rdf_proptable.config import LoaderConfig
from rdf_proptable.errors import PropertyTableError
from rdf_proptable.models import PredicateCatalog
from rdf_proptable.storage.classifier import PredicateClassifier
from rdf_proptable.storage.dictionary import write_predicate_dictionary
from rdf_proptable.storage.duckdb import DuckDBEngine
from rdf_proptable.storage.property_table import BuildResult, PropertyTableBuilder

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    """Outcome of a complete load."""
    catalog: PredicateCatalog
    build: BuildResult
    dictionary_file: Optional[str] = None
    elapsed_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table": self.build.table,
            "rows": self.build.row_count,
            "predicates": len(self.catalog),
            "multivalued": len(self.catalog.multivalued),
            "dropped": [d.predicate for d in self.catalog.dropped],
            "violations": len(self.build.violations),
            "triples_scanned": self.build.triples_scanned,
            "triples_ignored": self.build.triples_ignored,
            "dictionary_file": self.dictionary_file,
            "elapsed_ms": self.elapsed_ms,
        }


class PropertyTableLoader:
    """
    Runs the build phase against an engine that already holds the triple table.

    Example:
        loader = PropertyTableLoader(engine, LoaderConfig(dictionary_file="dict.csv"))
        result = loader.load()
    """

    def __init__(self, engine: DuckDBEngine, config: Optional[LoaderConfig] = None):
        self._engine = engine
        self._config = config or LoaderConfig()
        self._config.validate()

    @property
    def config(self) -> LoaderConfig:
        return self._config

    def load(self) -> LoadResult:
        """
        Build the metadata table, the property table and the dictionary file.

        Raises:
            PropertyTableError: If the triple table does not exist
            ColumnNameCollisionError: If two predicates share a column name
            OSError: If the dictionary file cannot be written
        """
        start = time.perf_counter()
        tables = self._config.tables

        if not self._engine.table_exists(tables.triple_table):
            raise PropertyTableError(
                f"Triple table {tables.triple_table} does not exist; load triples first"
            )

        classifier = PredicateClassifier(self._engine, tables)
        catalog = classifier.classify()
        classifier.write_metadata(catalog)

        builder = PropertyTableBuilder(
            self._engine, catalog, tables, batch_size=self._config.batch_size
        )
        build = builder.build()

        dictionary_file = self._config.dictionary_file
        if dictionary_file:
            write_predicate_dictionary(catalog, dictionary_file)

        elapsed = (time.perf_counter() - start) * 1000
        logger.info(
            f"Load finished in {elapsed:.1f} ms: {build.row_count} subject(s), "
            f"{len(catalog)} predicate column(s)"
        )
        return LoadResult(
            catalog=catalog,
            build=build,
            dictionary_file=dictionary_file,
            elapsed_ms=round(elapsed, 3),
        )

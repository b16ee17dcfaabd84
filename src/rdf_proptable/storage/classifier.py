"""
Predicate classification for the property table.

Scans the triple relation once per load and decides, for every predicate,
whether it is single-valued (no subject has more than one object for it) or
multi-valued (at least one subject has several). The result is a frozen
PredicateCatalog that fixes, for the lifetime of one build:
- which predicates become columns (one survivor per case-insensitive name)
- the sanitized column identifier of each predicate
- the slot position of each predicate in the subject aggregator
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from typing import Iterable, Mapping

from rdf_proptable.config import TableConfig
from rdf_proptable.errors import ColumnNameCollisionError
from rdf_proptable.models import DroppedPredicate, PredicateCatalog, PredicateInfo
from rdf_proptable.storage.duckdb import DuckDBEngine, quote_identifier

logger = logging.getLogger(__name__)

_NON_IDENTIFIER = re.compile(r"[^A-Za-z0-9_]")


def sanitize_predicate(predicate: str) -> str:
    """
    Column identifier for a predicate.

    Strips one pair of enclosing angle brackets from IRI-form predicates,
    then replaces every character outside [A-Za-z0-9_] with '_'.

    >>> sanitize_predicate("<http://example.org/name>")
    'http___example_org_name'
    """
    raw = predicate
    if raw.startswith("<") and raw.endswith(">") and len(raw) >= 2:
        raw = raw[1:-1]
    return _NON_IDENTIFIER.sub("_", raw) or "_"


def resolve_case_collisions(
    predicates: Iterable[str],
) -> tuple[list[str], list[DroppedPredicate]]:
    """
    Keep one predicate per case-insensitive spelling.

    The engine treats identifiers case-insensitively, so predicates that only
    differ in case cannot both become columns. The survivor is the
    lexicographically smallest original string.

    Returns:
        (sorted survivors, dropped predicates)
    """
    by_lower: dict[str, list[str]] = defaultdict(list)
    for predicate in set(predicates):
        by_lower[predicate.lower()].append(predicate)

    survivors: list[str] = []
    dropped: list[DroppedPredicate] = []
    for spellings in by_lower.values():
        spellings.sort()
        survivor = spellings[0]
        survivors.append(survivor)
        for other in spellings[1:]:
            dropped.append(DroppedPredicate(predicate=other, survivor=survivor))

    survivors.sort()
    dropped.sort(key=lambda entry: entry.predicate)
    return survivors, dropped


def build_catalog(
    multivalued: Mapping[str, bool],
    subject_column: str = "s",
) -> PredicateCatalog:
    """
    Build a PredicateCatalog from a predicate -> is_multivalued mapping.

    Raises:
        ColumnNameCollisionError: If two surviving predicates sanitize to the
            same identifier (case-insensitively), or one sanitizes to the
            subject column
    """
    survivors, dropped = resolve_case_collisions(multivalued)

    if dropped:
        logger.info(
            "The following predicates had to be removed from the list of predicates "
            "(case-insensitive equal to another predicate): "
            + ", ".join(f"{d.predicate} (kept {d.survivor})" for d in dropped)
        )

    owners: dict[str, str] = {subject_column.lower(): f"<subject column {subject_column}>"}
    infos: list[PredicateInfo] = []
    for position, predicate in enumerate(survivors):
        column = sanitize_predicate(predicate)
        key = column.lower()
        if key in owners:
            raise ColumnNameCollisionError(column, [owners[key], predicate])
        owners[key] = predicate
        infos.append(PredicateInfo(
            predicate=predicate,
            is_multivalued=multivalued[predicate],
            column_name=column,
            position=position,
        ))

    return PredicateCatalog(predicates=tuple(infos), dropped=tuple(dropped))


class PredicateClassifier:
    """
    Classifies the predicates of the triple relation.

    Example:
        classifier = PredicateClassifier(engine)
        catalog = classifier.classify()
        classifier.write_metadata(catalog)
    """

    def __init__(self, engine: DuckDBEngine, tables: TableConfig | None = None):
        self._engine = engine
        self._tables = tables or TableConfig()

    def multivalued_predicates(self) -> set[str]:
        """Predicates for which some subject has more than one object."""
        t = self._tables
        s, p = quote_identifier(t.subject_column), quote_identifier(t.predicate_column)
        result = self._engine.execute(
            f"SELECT DISTINCT {p} FROM ("
            f"SELECT {s}, {p}, COUNT(*) AS rc FROM {quote_identifier(t.triple_table)} "
            f"GROUP BY {s}, {p} HAVING COUNT(*) > 1) AS grouped"
        )
        return {row[0] for row in result.rows}

    def all_predicates(self) -> set[str]:
        t = self._tables
        p = quote_identifier(t.predicate_column)
        result = self._engine.execute(
            f"SELECT DISTINCT {p} FROM {quote_identifier(t.triple_table)}"
        )
        return {row[0] for row in result.rows}

    def classify(self) -> PredicateCatalog:
        """
        Classify every predicate of the triple relation.

        Raises:
            ColumnNameCollisionError: See build_catalog
        """
        multivalued = self.multivalued_predicates()
        all_predicates = self.all_predicates()
        single = all_predicates - multivalued

        logger.info(
            f"Found {len(all_predicates)} predicates: "
            f"{len(single)} single-valued, {len(multivalued)} multi-valued"
        )
        if multivalued:
            logger.debug(f"Multi-valued predicates: {sorted(multivalued)}")

        catalog = build_catalog(
            {predicate: predicate in multivalued for predicate in all_predicates},
            subject_column=self._tables.subject_column,
        )
        logger.info(f"Property table columns: {catalog.column_names}")
        return catalog

    def write_metadata(self, catalog: PredicateCatalog) -> int:
        """Replace the predicate metadata table with the catalog's rows."""
        rows = self._engine.replace_table(
            self._tables.metadata_table, catalog.to_metadata_frame()
        )
        logger.info(f"Wrote {rows} predicate(s) to {self._tables.metadata_table}")
        return rows

    def load_metadata(self) -> PredicateCatalog:
        """
        Rebuild the catalog from the predicate metadata table.

        Positions and column names are derived exactly as during the build.
        Dropped-predicate records are not persisted and come back empty.
        """
        t = self._tables
        result = self._engine.execute(
            f"SELECT predicate, is_complex FROM {quote_identifier(t.metadata_table)}"
        )
        return build_catalog(
            {row[0]: bool(row[1]) for row in result.rows},
            subject_column=t.subject_column,
        )

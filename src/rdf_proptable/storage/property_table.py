"""
Property table construction.

Given a frozen PredicateCatalog with predicates p0 ... pN-1, the table has
the schema (s: STRING, p0: STRING | LIST<STRING>, ..., pN-1: ...) with
exactly one row per subject. A single-valued predicate column holds the
subject's object (NULL when absent); a multi-valued predicate column holds
the list of all its objects (empty when absent).

The triple relation is scanned once, in record batches. Each batch is
grouped by (subject, slot) with Polars and folded into per-subject slot
arrays by the SubjectAggregator; partial arrays from successive batches
are merged. Every build fully replaces the previous table.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import polars as pl

from rdf_proptable.config import DEFAULT_BATCH_SIZE, TableConfig
from rdf_proptable.models import PredicateCatalog
from rdf_proptable.storage.aggregator import SingleValueViolation, Slots, SubjectAggregator
from rdf_proptable.storage.duckdb import DuckDBEngine, quote_identifier

logger = logging.getLogger(__name__)

# Violations echoed individually in the build log
MAX_LOGGED_VIOLATIONS = 5

_POSITION = "__slot"


@dataclass
class BuildResult:
    """Outcome of one property table build."""
    table: str
    row_count: int
    columns: List[str]
    triples_scanned: int = 0
    triples_ignored: int = 0
    violations: List[SingleValueViolation] = field(default_factory=list)
    elapsed_ms: float = 0.0


class PropertyTableBuilder:
    """
    Builds the wide property table from the triple relation.

    Example:
        builder = PropertyTableBuilder(engine, catalog)
        result = builder.build()
    """

    def __init__(
        self,
        engine: DuckDBEngine,
        catalog: PredicateCatalog,
        tables: Optional[TableConfig] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        self._engine = engine
        self._catalog = catalog
        self._tables = tables or TableConfig()
        self._batch_size = batch_size
        self._aggregator = SubjectAggregator(catalog)

    def schema(self) -> Dict[str, pl.DataType]:
        """Polars schema of the property table."""
        schema: Dict[str, pl.DataType] = {self._tables.subject_column: pl.Utf8}
        for info in self._catalog:
            schema[info.column_name] = pl.List(pl.Utf8) if info.is_multivalued else pl.Utf8
        return schema

    def aggregate(self) -> Tuple[Dict[str, Slots], int, int]:
        """
        Scan the triple relation once and fold it into slot arrays.

        Triples whose predicate has no slot (dropped as a case-insensitive
        duplicate) are ignored, but their subject still gets a row.

        Returns:
            (subject -> slots in first-seen order, triples scanned, triples ignored)
        """
        t = self._tables
        s_col, p_col, o_col = t.subject_column, t.predicate_column, t.object_column
        sql = (
            f"SELECT {quote_identifier(s_col)}, {quote_identifier(p_col)}, "
            f"{quote_identifier(o_col)} FROM {quote_identifier(t.triple_table)}"
        )
        positions = self._catalog.positions()
        if positions:
            slot = pl.col(p_col).replace_strict(positions, default=None, return_dtype=pl.Int64)
        else:
            slot = pl.lit(None, dtype=pl.Int64)
        agg = self._aggregator

        by_subject: Dict[str, Slots] = {}
        scanned = 0
        ignored = 0

        for batch in self._engine.iter_frames(sql, self._batch_size):
            if batch.is_empty():
                continue
            scanned += len(batch)
            grouped = (
                batch.with_columns(slot.alias(_POSITION))
                .group_by([s_col, _POSITION], maintain_order=True)
                .agg(pl.col(o_col))
            )

            partial: Dict[str, Slots] = {}
            for subject, position, objects in grouped.select(
                [s_col, _POSITION, o_col]
            ).iter_rows():
                slots = partial.get(subject)
                if slots is None:
                    slots = partial[subject] = agg.initial()
                if position is None:
                    ignored += len(objects)
                    continue
                agg.update(slots, position, objects)

            for subject, slots in partial.items():
                existing = by_subject.get(subject)
                by_subject[subject] = slots if existing is None else agg.merge(existing, slots)

        if ignored:
            logger.info(f"Ignored {ignored} triple(s) of predicates without a column")
        return by_subject, scanned, ignored

    def materialize(
        self,
        by_subject: Dict[str, Slots],
    ) -> Tuple[pl.DataFrame, List[SingleValueViolation]]:
        """Turn slot arrays into the property table frame."""
        agg = self._aggregator
        subjects = list(by_subject)
        columns: List[list] = [[] for _ in range(agg.width)]
        violations: List[SingleValueViolation] = []

        for subject in subjects:
            values, found = agg.finish(subject, by_subject[subject])
            violations.extend(found)
            for position, value in enumerate(values):
                columns[position].append(value)

        data = {self._tables.subject_column: subjects}
        for info in self._catalog:
            data[info.column_name] = columns[info.position]

        return pl.DataFrame(data, schema=self.schema()), violations

    def build(self) -> BuildResult:
        """
        Build and write the property table (full replace).

        Returns:
            BuildResult with row count, columns and single-value violations
        """
        start = time.perf_counter()
        table = self._tables.property_table
        logger.info(
            f"Building property table {table} with {len(self._catalog)} predicate column(s)"
        )

        by_subject, scanned, ignored = self.aggregate()
        frame, violations = self.materialize(by_subject)

        if violations:
            examples = "; ".join(
                f"{v.subject} {v.predicate} has {len(v.values)} values, kept {v.kept}"
                for v in violations[:MAX_LOGGED_VIOLATIONS]
            )
            logger.warning(
                f"{len(violations)} single-valued predicate value(s) had more than one "
                f"object; the first was kept: {examples}"
            )

        rows = self._engine.replace_table(table, frame)
        elapsed = (time.perf_counter() - start) * 1000
        logger.info(f"Created property table {table} with {rows} row(s)")

        return BuildResult(
            table=table,
            row_count=rows,
            columns=list(frame.columns),
            triples_scanned=scanned,
            triples_ignored=ignored,
            violations=violations,
            elapsed_ms=round(elapsed, 3),
        )

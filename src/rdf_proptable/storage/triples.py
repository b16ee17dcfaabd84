"""
The input triple relation.

Normalizes triples arriving as Python objects, Polars frames or N-Triples
files into one three-column string table in the engine. The relation is a
set: rows with a missing component are excluded (and logged), exact
duplicates are removed, and every write fully replaces the previous table.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple, Union

import polars as pl

from rdf_proptable.config import TableConfig
from rdf_proptable.formats.ntriples import NTriplesParser
from rdf_proptable.models import Triple
from rdf_proptable.storage.duckdb import DuckDBEngine, quote_identifier

logger = logging.getLogger(__name__)

TripleLike = Union[Triple, Sequence[str]]


@dataclass
class IngestReport:
    """Row accounting for one write of the triple relation."""
    rows_in: int = 0
    malformed: int = 0
    duplicates: int = 0
    rows_written: int = 0


class TripleTable:
    """
    Writer/reader for the triple relation table.

    Example:
        table = TripleTable(engine)
        report = table.write_triples([
            Triple("<s1>", "<p1>", "<o1>"),
            ("<s2>", "<p1>", "<o3>"),
        ])
    """

    def __init__(self, engine: DuckDBEngine, tables: Optional[TableConfig] = None):
        self._engine = engine
        self._tables = tables or TableConfig()

    @property
    def name(self) -> str:
        return self._tables.triple_table

    @property
    def columns(self) -> Tuple[str, str, str]:
        t = self._tables
        return (t.subject_column, t.predicate_column, t.object_column)

    def _empty_frame(self) -> pl.DataFrame:
        return pl.DataFrame(schema={column: pl.Utf8 for column in self.columns})

    def write_triples(self, triples: Iterable[TripleLike]) -> IngestReport:
        """Replace the relation with triples given as Triple objects or 3-sequences."""
        s_col, p_col, o_col = self.columns
        subjects, predicates, objects = [], [], []
        malformed = 0
        rows_in = 0

        for i, item in enumerate(triples):
            rows_in += 1
            if isinstance(item, Triple):
                parts = (item.subject, item.predicate, item.object)
            else:
                parts = tuple(item)
            if len(parts) != 3 or not all(isinstance(p, str) and p for p in parts):
                malformed += 1
                logger.warning(f"Skipping malformed triple #{i}: {item!r}")
                continue
            subjects.append(parts[0])
            predicates.append(parts[1])
            objects.append(parts[2])

        frame = pl.DataFrame(
            {s_col: subjects, p_col: predicates, o_col: objects},
            schema={s_col: pl.Utf8, p_col: pl.Utf8, o_col: pl.Utf8},
        )
        report = self._write(frame)
        report.rows_in = rows_in
        report.malformed += malformed
        return report

    def write_frame(self, frame: pl.DataFrame) -> IngestReport:
        """
        Replace the relation with the rows of a frame.

        The frame must contain the configured subject, predicate and object
        columns; other columns are ignored.
        """
        missing = [column for column in self.columns if column not in frame.columns]
        if missing:
            raise ValueError(f"Triple frame is missing column(s): {missing}")

        frame = frame.select(
            [pl.col(column).cast(pl.Utf8) for column in self.columns]
        )
        report = self._write(frame)
        report.rows_in = len(frame)
        return report

    def load_ntriples(
        self,
        path: Union[str, Path],
        chunk_size: int = 100_000,
    ) -> IngestReport:
        """
        Replace the relation with the triples of an N-Triples file.

        Unparsable lines are counted as malformed and skipped.
        """
        s_col, p_col, o_col = self.columns
        parser = NTriplesParser()
        chunks = list(parser.iter_chunks(
            path,
            chunk_size=chunk_size,
            subject_column=s_col,
            predicate_column=p_col,
            object_column=o_col,
        ))
        frame = pl.concat(chunks) if chunks else self._empty_frame()

        report = self._write(frame)
        report.rows_in = parser.report.triples + parser.report.skipped
        report.malformed += parser.report.skipped
        logger.info(
            f"Loaded {report.rows_written} triples from {path} "
            f"({report.malformed} malformed, {report.duplicates} duplicate)"
        )
        return report

    def _write(self, frame: pl.DataFrame) -> IngestReport:
        """Drop incomplete rows and duplicates, then replace the table."""
        report = IngestReport()

        complete = frame.filter(
            pl.all_horizontal(
                [
                    pl.col(column).is_not_null() & (pl.col(column).str.len_chars() > 0)
                    for column in self.columns
                ]
            )
        )
        report.malformed = len(frame) - len(complete)
        if report.malformed:
            logger.warning(
                f"Skipping {report.malformed} triple row(s) with a missing component"
            )

        unique = complete.unique(maintain_order=True)
        report.duplicates = len(complete) - len(unique)

        report.rows_written = self._engine.replace_table(self.name, unique)
        logger.info(f"Wrote {report.rows_written} triples to {self.name}")
        return report

    def read(self) -> pl.DataFrame:
        """Return the whole relation as a frame (in storage order)."""
        columns = ", ".join(quote_identifier(c) for c in self.columns)
        return self._engine.query_frame(
            f"SELECT {columns} FROM {quote_identifier(self.name)}"
        )

    def count(self) -> int:
        return self._engine.row_count(self.name)

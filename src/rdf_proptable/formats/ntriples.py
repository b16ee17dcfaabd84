"""
Streaming N-Triples reader.

Each line contains: subject predicate object .

Terms are kept in their N-Triples lexical form (IRIs with angle brackets,
literals with quotes and language tag or datatype, blank node labels), so
the stored relation and constants written in queries use the same strings.

Malformed lines are skipped one by one and logged; they never abort a load.

Reference: https://www.w3.org/TR/n-triples/
"""

from __future__ import annotations

import gzip
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Iterable, Iterator, List, Optional, Union

import polars as pl

from rdf_proptable.models import Triple

logger = logging.getLogger(__name__)

_IRI = r'<[^<>"{}|^`\\\s]*>'
_BNODE = r'_:[A-Za-z0-9_](?:[A-Za-z0-9_.\-]*[A-Za-z0-9_\-])?'
_LITERAL = (
    r'"(?:[^"\\\n\r]|\\.)*"'
    r'(?:@[A-Za-z]+(?:-[A-Za-z0-9]+)*|\^\^' + _IRI + r')?'
)

_TRIPLE_LINE = re.compile(
    rf'^\s*({_IRI}|{_BNODE})\s+({_IRI})\s+({_IRI}|{_BNODE}|{_LITERAL})\s*\.\s*(?:#.*)?$'
)

# Number of malformed lines echoed individually before only counting them
MAX_LOGGED_ERRORS = 20


@dataclass
class ParseReport:
    """Outcome of reading one N-Triples source."""
    lines_read: int = 0
    triples: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)

    def record_error(self, line_number: int, line: str) -> None:
        self.skipped += 1
        message = f"line {line_number}: malformed triple: {line[:200]}"
        if len(self.errors) < MAX_LOGGED_ERRORS:
            self.errors.append(message)
            logger.warning(f"Skipping {message}")


class NTriplesParser:
    """
    Line-oriented N-Triples parser.

    Example:
        parser = NTriplesParser()
        for triple in parser.parse_lines(open("data.nt")):
            ...
        print(parser.report.skipped)
    """

    def __init__(self):
        self.report = ParseReport()

    def parse_line(self, line: str) -> Optional[Triple]:
        """
        Parse a single line.

        Returns:
            The Triple, or None for blank and comment lines

        Raises:
            ValueError: If the line is not a valid triple
        """
        stripped = line.strip()
        if not stripped or stripped.startswith('#'):
            return None

        match = _TRIPLE_LINE.match(stripped)
        if match is None:
            raise ValueError(f"Not an N-Triples statement: {stripped[:200]}")

        subject, predicate, obj = match.groups()
        return Triple(subject=subject, predicate=predicate, object=obj)

    def parse_lines(self, lines: Iterable[str]) -> Iterator[Triple]:
        """
        Parse lines of N-Triples, skipping malformed ones.

        Args:
            lines: Iterable of N-Triples lines

        Yields:
            Triple objects
        """
        for i, line in enumerate(lines, start=1):
            self.report.lines_read += 1
            try:
                triple = self.parse_line(line)
            except ValueError:
                self.report.record_error(i, line.strip())
                continue
            if triple is not None:
                self.report.triples += 1
                yield triple

    def parse(self, source: Union[str, Path, IO[str]]) -> List[Triple]:
        """
        Parse N-Triples content fully.

        Args:
            source: N-Triples text, a file path, or an open text stream
        """
        if isinstance(source, Path):
            with open_ntriples(source) as handle:
                return list(self.parse_lines(handle))
        if isinstance(source, str):
            return list(self.parse_lines(source.splitlines()))
        return list(self.parse_lines(source))

    def iter_chunks(
        self,
        path: Union[str, Path],
        chunk_size: int = 100_000,
        subject_column: str = "s",
        predicate_column: str = "p",
        object_column: str = "o",
    ) -> Iterator[pl.DataFrame]:
        """
        Read a (possibly gzipped) N-Triples file as columnar chunks.

        Args:
            path: File to read
            chunk_size: Maximum triples per yielded frame

        Yields:
            Frames with subject/predicate/object string columns
        """
        subjects: List[str] = []
        predicates: List[str] = []
        objects: List[str] = []

        def flush() -> pl.DataFrame:
            frame = pl.DataFrame(
                {
                    subject_column: subjects,
                    predicate_column: predicates,
                    object_column: objects,
                },
                schema={
                    subject_column: pl.Utf8,
                    predicate_column: pl.Utf8,
                    object_column: pl.Utf8,
                },
            )
            subjects.clear()
            predicates.clear()
            objects.clear()
            return frame

        with open_ntriples(Path(path)) as handle:
            for triple in self.parse_lines(handle):
                subjects.append(triple.subject)
                predicates.append(triple.predicate)
                objects.append(triple.object)
                if len(subjects) >= chunk_size:
                    yield flush()

        if subjects:
            yield flush()

        if self.report.skipped:
            logger.warning(
                f"{path}: skipped {self.report.skipped} malformed line(s) "
                f"of {self.report.lines_read}"
            )


def open_ntriples(path: Path) -> IO[str]:
    """Open a plain or .gz N-Triples file as UTF-8 text."""
    if path.suffix == ".gz":
        return gzip.open(path, "rt", encoding="utf-8")
    return open(path, "r", encoding="utf-8")

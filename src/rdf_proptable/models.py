"""
Core data model for the property-table layer.

A triple relation is classified once per load into a PredicateCatalog: an
immutable, position-ordered snapshot of PredicateInfo records. The same
snapshot is handed to the table builder and to the query translator, so the
predicate -> column -> slot mapping cannot drift between the two phases.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional

import polars as pl

from rdf_proptable.errors import PredicateNotFoundError


@dataclass(frozen=True, slots=True)
class Triple:
    """
    An RDF statement.

    All term forms (IRIs, literals, blank nodes) are carried as opaque strings.
    """
    subject: str
    predicate: str
    object: str

    def __str__(self) -> str:
        return f"{self.subject} {self.predicate} {self.object} ."


@dataclass(frozen=True, slots=True)
class PredicateInfo:
    """
    Classification of one predicate.

    Attributes:
        predicate: Original predicate string as it appears in the triples
        is_multivalued: True if some subject has more than one object for it
        column_name: Sanitized identifier of its property-table column
        position: Zero-based slot index used by the subject aggregator
    """
    predicate: str
    is_multivalued: bool
    column_name: str
    position: int

    @property
    def is_complex(self) -> int:
        """0|1 flag as stored in the predicate metadata table."""
        return 1 if self.is_multivalued else 0


@dataclass(frozen=True, slots=True)
class DroppedPredicate:
    """A predicate removed because it case-insensitively equals another."""
    predicate: str
    survivor: str


@dataclass(frozen=True)
class PredicateCatalog:
    """
    Frozen set of PredicateInfo for one table build.

    Predicates are held in position order. Lookup is by exact (case-sensitive)
    match on the original predicate string; predicates dropped during
    case-insensitive deduplication never resolve.
    """
    predicates: tuple[PredicateInfo, ...] = ()
    dropped: tuple[DroppedPredicate, ...] = ()
    _by_predicate: dict = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        for expected, info in enumerate(self.predicates):
            if info.position != expected:
                raise ValueError(
                    f"Predicate {info.predicate!r} has position {info.position}, "
                    f"expected {expected}"
                )
        object.__setattr__(
            self, "_by_predicate", {info.predicate: info for info in self.predicates}
        )

    def __len__(self) -> int:
        return len(self.predicates)

    def __iter__(self) -> Iterator[PredicateInfo]:
        return iter(self.predicates)

    def __contains__(self, predicate: object) -> bool:
        return predicate in self._by_predicate

    def get(self, predicate: str) -> Optional[PredicateInfo]:
        return self._by_predicate.get(predicate)

    def resolve(self, predicate: str) -> PredicateInfo:
        """
        Return the PredicateInfo for a predicate or fail.

        Raises:
            PredicateNotFoundError: If the predicate has no column
        """
        info = self._by_predicate.get(predicate)
        if info is None:
            raise PredicateNotFoundError(predicate, self.replacement_for(predicate))
        return info

    def replacement_for(self, predicate: str) -> Optional[str]:
        """Survivor that replaced a dropped predicate, if it was dropped."""
        for entry in self.dropped:
            if entry.predicate == predicate:
                return entry.survivor
        return None

    @property
    def column_names(self) -> list[str]:
        return [info.column_name for info in self.predicates]

    @property
    def multivalued(self) -> list[PredicateInfo]:
        return [info for info in self.predicates if info.is_multivalued]

    def positions(self) -> dict[str, int]:
        """Predicate -> slot index mapping."""
        return {info.predicate: info.position for info in self.predicates}

    def to_metadata_frame(self) -> pl.DataFrame:
        """Rows of the predicate metadata table, in position order."""
        return pl.DataFrame(
            {
                "predicate": [info.predicate for info in self.predicates],
                "is_complex": [info.is_complex for info in self.predicates],
            },
            schema={"predicate": pl.Utf8, "is_complex": pl.Int32},
        )

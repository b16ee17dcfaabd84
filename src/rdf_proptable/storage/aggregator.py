"""
Combine-by-key reducer that folds a subject's (predicate, object) pairs
into a fixed-position slot array.

Slot i holds every object of predicate i seen for the subject, in arrival
order. Partial slot arrays built from separate scan batches are combined
with merge(); finish() turns the slots into the property-table row values.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from rdf_proptable.models import PredicateCatalog

Slots = List[List[str]]
RowValue = Union[Optional[str], List[str]]


@dataclass(frozen=True)
class SingleValueViolation:
    """A single-valued predicate observed with several objects for one subject."""
    subject: str
    predicate: str
    values: Tuple[str, ...]

    @property
    def kept(self) -> str:
        return self.values[0]


class SubjectAggregator:
    """
    Slot-array aggregator for one PredicateCatalog.

    Example:
        agg = SubjectAggregator(catalog)
        slots = agg.initial()
        agg.update(slots, 0, ["<o1>"])
        values, violations = agg.finish("<s1>", slots)
    """

    def __init__(self, catalog: PredicateCatalog):
        self._catalog = catalog
        self._multivalued: Tuple[bool, ...] = tuple(
            info.is_multivalued for info in catalog
        )
        self._predicates: Tuple[str, ...] = tuple(info.predicate for info in catalog)

    @property
    def width(self) -> int:
        return len(self._multivalued)

    def initial(self) -> Slots:
        """Empty slot array: one empty list per predicate."""
        return [[] for _ in range(self.width)]

    def update(self, slots: Slots, position: int, objects: Iterable[str]) -> Slots:
        """Append objects of the predicate at `position`."""
        slots[position].extend(objects)
        return slots

    def merge(self, left: Slots, right: Slots) -> Slots:
        """Combine two partial slot arrays of the same subject, left first."""
        for position, values in enumerate(right):
            if values:
                left[position].extend(values)
        return left

    def finish(
        self,
        subject: str,
        slots: Sequence[List[str]],
    ) -> Tuple[List[RowValue], List[SingleValueViolation]]:
        """
        Row values for a subject.

        Multi-valued predicates yield their full list (possibly empty).
        Single-valued predicates yield their first object, or None when the
        subject lacks the predicate. A single-valued slot holding several
        objects keeps the first and is reported as a violation.
        """
        values: List[RowValue] = []
        violations: List[SingleValueViolation] = []

        for position, objects in enumerate(slots):
            if self._multivalued[position]:
                values.append(list(objects))
                continue
            if not objects:
                values.append(None)
                continue
            if len(objects) > 1:
                violations.append(SingleValueViolation(
                    subject=subject,
                    predicate=self._predicates[position],
                    values=tuple(objects),
                ))
            values.append(objects[0])

        return values, violations

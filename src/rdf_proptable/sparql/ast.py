"""
Pattern nodes for star queries over the property table.

A TriplePattern has a Variable or a Constant in each position. Patterns that
share one subject term form a PatternGroup (a "star"), the unit that the
translator turns into a single property-table query.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, auto
from typing import Iterable, Iterator, Union

from rdf_proptable.models import PredicateCatalog


class ElementType(Enum):
    """Whether a pattern position is bound."""
    VARIABLE = auto()
    CONSTANT = auto()


@dataclass(frozen=True)
class Variable:
    """
    A query variable (e.g., ?name, $person).

    The name is stored without the leading ? or $.
    """
    name: str

    def __str__(self) -> str:
        return f"?{self.name}"


@dataclass(frozen=True)
class Constant:
    """
    A bound term, compared verbatim against stored strings.

    Values use the same lexical form as the loaded triples, e.g.
    "<http://example.org/name>" or '"Alice"@en'.
    """
    value: str

    def __str__(self) -> str:
        return self.value


Term = Union[Variable, Constant]


def element_type(term: Term) -> ElementType:
    return ElementType.VARIABLE if isinstance(term, Variable) else ElementType.CONSTANT


@dataclass(frozen=True)
class TriplePattern:
    """
    A triple pattern.

    is_complex mirrors PredicateInfo.is_multivalued of the bound predicate
    once the pattern has been bound to a catalog (see bind()).
    """
    subject: Term
    predicate: Term
    object: Term
    is_complex: bool = False

    def __str__(self) -> str:
        return f"{self.subject} {self.predicate} {self.object} ."

    @property
    def subject_type(self) -> ElementType:
        return element_type(self.subject)

    @property
    def predicate_type(self) -> ElementType:
        return element_type(self.predicate)

    @property
    def object_type(self) -> ElementType:
        return element_type(self.object)

    def get_variables(self) -> set[Variable]:
        """Return all variables in this pattern."""
        return {
            term for term in (self.subject, self.predicate, self.object)
            if isinstance(term, Variable)
        }

    def bind(self, catalog: PredicateCatalog) -> "TriplePattern":
        """Copy of this pattern with is_complex taken from the catalog."""
        if isinstance(self.predicate, Constant):
            info = catalog.get(self.predicate.value)
            if info is not None:
                return replace(self, is_complex=info.is_multivalued)
        return self


@dataclass(frozen=True)
class PatternGroup:
    """Non-empty set of patterns sharing one subject term."""
    patterns: tuple[TriplePattern, ...]

    def __post_init__(self) -> None:
        if not self.patterns:
            raise ValueError("A pattern group needs at least one pattern")
        subject = self.patterns[0].subject
        for pattern in self.patterns[1:]:
            if pattern.subject != subject:
                raise ValueError(
                    f"Patterns of a group must share one subject: {subject} != {pattern.subject}"
                )

    @classmethod
    def of(cls, *patterns: TriplePattern) -> "PatternGroup":
        return cls(tuple(patterns))

    def __len__(self) -> int:
        return len(self.patterns)

    def __iter__(self) -> Iterator[TriplePattern]:
        return iter(self.patterns)

    @property
    def subject(self) -> Term:
        return self.patterns[0].subject

    @property
    def first(self) -> TriplePattern:
        return self.patterns[0]

    @property
    def has_unbound_predicate(self) -> bool:
        """True for the single-pattern, variable-predicate shape."""
        return len(self.patterns) == 1 and self.first.predicate_type == ElementType.VARIABLE

    def get_variables(self) -> set[Variable]:
        variables: set[Variable] = set()
        for pattern in self.patterns:
            variables.update(pattern.get_variables())
        return variables

    def bind(self, catalog: PredicateCatalog) -> "PatternGroup":
        return PatternGroup(tuple(pattern.bind(catalog) for pattern in self.patterns))

    def __str__(self) -> str:
        return "{ " + " ".join(str(p) for p in self.patterns) + " }"


def group_by_subject(patterns: Iterable[TriplePattern]) -> list[PatternGroup]:
    """Partition patterns into star groups, in order of first appearance."""
    groups: dict[Term, list[TriplePattern]] = {}
    for pattern in patterns:
        groups.setdefault(pattern.subject, []).append(pattern)
    return [PatternGroup(tuple(members)) for members in groups.values()]

"""
Star pattern group -> property table query.

Two modes, chosen per group:

- Fixed-predicate mode: every pattern has a bound predicate. Each predicate
  resolves to its column; the subject, the object and the predicate's
  single/multi-valued flag decide how the pattern contributes to the select
  list, the lateral UNNEST clauses and the WHERE conditions.
- Unbound-predicate mode: a single pattern with a variable predicate. No
  column is named by a variable, so one fixed-mode query is built per known
  predicate (with the predicate bound as a constant) and the branches are
  combined with a duplicate-eliminating UNION.

Translation is a pure function of the group, the catalog and the table
names; the translator keeps no state between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from rdf_proptable.config import TableConfig
from rdf_proptable.errors import UnsupportedPatternError
from rdf_proptable.models import PredicateCatalog, PredicateInfo
from rdf_proptable.sparql.ast import Constant, PatternGroup, TriplePattern, Variable
from rdf_proptable.sparql.builder import (
    BooleanLiteral,
    ColumnRef,
    Condition,
    Equals,
    Expression,
    IsNotNull,
    ListContains,
    Never,
    NullString,
    Query,
    SelectItem,
    SelectQuery,
    StringLiteral,
    UnionQuery,
    Unnest,
)

logger = logging.getLogger(__name__)

TABLE_ALIAS = "pt"
MATCH_COLUMN = "_match"


@dataclass
class _Scope:
    """Select list, unnest clauses and conditions of one query under construction."""
    select: List[SelectItem] = field(default_factory=list)
    unnests: List[Unnest] = field(default_factory=list)
    where: List[Condition] = field(default_factory=list)
    bindings: Dict[str, Expression] = field(default_factory=dict)

    def bind(self, variable: Variable, expression: Expression) -> None:
        """Select a variable once; later occurrences become equality conditions."""
        bound = self.bindings.get(variable.name)
        if bound is None:
            self.bindings[variable.name] = expression
            self.select.append(SelectItem(expression, variable.name))
        else:
            self.where.append(Equals(bound, expression))


class TriplePatternTranslator:
    """
    Translates star pattern groups into queries on the property table.

    Example:
        translator = TriplePatternTranslator(catalog)
        query = translator.translate(group)
        sql = query.render()
    """

    def __init__(self, catalog: PredicateCatalog, tables: Optional[TableConfig] = None):
        self._catalog = catalog
        self._tables = tables or TableConfig()

    @property
    def catalog(self) -> PredicateCatalog:
        return self._catalog

    def translate(self, group: PatternGroup) -> Query:
        """
        Build the query for a pattern group.

        Raises:
            PredicateNotFoundError: If a bound predicate has no column
            UnsupportedPatternError: If a multi-pattern group has an unbound predicate
        """
        if group.has_unbound_predicate:
            query = self._translate_unbound_predicate(group)
        else:
            query = self._translate_fixed_predicates(group)
        logger.debug(f"Translated {group} into: {query.render()}")
        return query

    def to_sql(self, group: PatternGroup) -> str:
        return self.translate(group).render()

    def _translate_fixed_predicates(self, group: PatternGroup) -> SelectQuery:
        resolved: List[Tuple[TriplePattern, PredicateInfo]] = []
        for pattern in group:
            if not isinstance(pattern.predicate, Constant):
                raise UnsupportedPatternError(
                    f"Unbound predicate {pattern.predicate} in a group of {len(group)} "
                    "patterns; only single-pattern groups may leave the predicate unbound"
                )
            resolved.append((pattern, self._catalog.resolve(pattern.predicate.value)))
        return self._compose(group, resolved)

    def _translate_unbound_predicate(self, group: PatternGroup) -> Query:
        pattern = group.first
        predicate_var = pattern.predicate

        if len(self._catalog) == 0:
            return self._empty_result(pattern)

        branches = []
        for info in self._catalog:
            bound = TriplePattern(
                subject=pattern.subject,
                predicate=Constant(info.predicate),
                object=pattern.object,
                is_complex=info.is_multivalued,
            )
            branches.append(self._compose(group, [(bound, info)], predicate_var))
        return UnionQuery(tuple(branches))

    def _compose(
        self,
        group: PatternGroup,
        resolved: Sequence[Tuple[TriplePattern, PredicateInfo]],
        predicate_var: Optional[Variable] = None,
    ) -> SelectQuery:
        """One property-table scan for patterns with resolved predicates."""
        scope = _Scope()
        subject_column = ColumnRef(self._tables.subject_column, TABLE_ALIAS)

        subject = group.subject
        if isinstance(subject, Variable):
            scope.bind(subject, subject_column)
        else:
            scope.where.append(Equals(subject_column, StringLiteral(subject.value)))

        for index, (pattern, info) in enumerate(resolved):
            if predicate_var is not None:
                scope.bind(predicate_var, StringLiteral(info.predicate))

            column = ColumnRef(info.column_name, TABLE_ALIAS)
            obj = pattern.object

            if info.is_multivalued:
                if isinstance(obj, Constant):
                    scope.where.append(ListContains(column, StringLiteral(obj.value)))
                else:
                    unnest = Unnest(source=column, alias=f"u{index}")
                    scope.unnests.append(unnest)
                    scope.bind(obj, unnest.element_ref)
            else:
                if isinstance(obj, Constant):
                    scope.where.append(Equals(column, StringLiteral(obj.value)))
                else:
                    scope.where.append(IsNotNull(column))
                    scope.bind(obj, column)

        if not scope.select:
            scope.select.append(SelectItem(BooleanLiteral(True), MATCH_COLUMN))

        return SelectQuery(
            table=self._tables.property_table,
            select=tuple(scope.select),
            unnests=tuple(scope.unnests),
            where=tuple(scope.where),
            table_alias=TABLE_ALIAS,
        )

    def _empty_result(self, pattern: TriplePattern) -> SelectQuery:
        """Query with the pattern's columns that returns no rows."""
        scope = _Scope()
        if isinstance(pattern.subject, Variable):
            scope.bind(pattern.subject, ColumnRef(self._tables.subject_column, TABLE_ALIAS))
        for term in (pattern.predicate, pattern.object):
            if isinstance(term, Variable):
                scope.bind(term, NullString())
        if not scope.select:
            scope.select.append(SelectItem(BooleanLiteral(True), MATCH_COLUMN))
        return SelectQuery(
            table=self._tables.property_table,
            select=tuple(scope.select),
            where=(Never(),),
            table_alias=TABLE_ALIAS,
        )

"""
Typed SQL query model for property-table queries.

The translator assembles queries from these nodes (select list, base table,
lateral UNNEST clauses, AND-joined conditions, distinct UNION of branches);
text is produced only by render(), at the engine boundary. Every identifier
and string literal goes through the engine's quoting functions.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Union

from rdf_proptable.storage.duckdb import quote_identifier, quote_literal


# =============================================================================
# Expressions
# =============================================================================

@dataclass(frozen=True)
class ColumnRef:
    """A column, optionally qualified by a table or clause alias."""
    name: str
    qualifier: Optional[str] = None

    def render(self) -> str:
        if self.qualifier is None:
            return quote_identifier(self.name)
        return f"{quote_identifier(self.qualifier)}.{quote_identifier(self.name)}"


@dataclass(frozen=True)
class StringLiteral:
    value: str

    def render(self) -> str:
        return quote_literal(self.value)


@dataclass(frozen=True)
class BooleanLiteral:
    value: bool

    def render(self) -> str:
        return "TRUE" if self.value else "FALSE"


@dataclass(frozen=True)
class NullString:
    """A typed NULL string, used where a branch has no value to offer."""

    def render(self) -> str:
        return "CAST(NULL AS VARCHAR)"


Expression = Union[ColumnRef, StringLiteral, BooleanLiteral, NullString]


# =============================================================================
# Conditions
# =============================================================================

@dataclass(frozen=True)
class Equals:
    left: Expression
    right: Expression

    def render(self) -> str:
        return f"{self.left.render()} = {self.right.render()}"


@dataclass(frozen=True)
class IsNotNull:
    operand: Expression

    def render(self) -> str:
        return f"{self.operand.render()} IS NOT NULL"


@dataclass(frozen=True)
class ListContains:
    """Membership of a value in a list-valued column."""
    container: Expression
    element: Expression

    def render(self) -> str:
        return f"list_contains({self.container.render()}, {self.element.render()})"


@dataclass(frozen=True)
class Never:
    """A condition no row satisfies."""

    def render(self) -> str:
        return "FALSE"


Condition = Union[Equals, IsNotNull, ListContains, Never]


# =============================================================================
# Clauses and queries
# =============================================================================

@dataclass(frozen=True)
class SelectItem:
    expression: Expression
    alias: str

    def render(self) -> str:
        return f"{self.expression.render()} AS {quote_identifier(self.alias)}"


@dataclass(frozen=True)
class Unnest:
    """
    Correlated list expansion of a list column.

    Produces one row per element of `source` for each base-table row; rows
    whose list is empty or NULL produce nothing.
    """
    source: ColumnRef
    alias: str
    element: str = "v"

    @property
    def element_ref(self) -> ColumnRef:
        return ColumnRef(self.element, self.alias)

    def render(self) -> str:
        return (
            f"LATERAL (SELECT UNNEST({self.source.render()}) AS "
            f"{quote_identifier(self.element)}) AS {quote_identifier(self.alias)}"
        )


@dataclass(frozen=True)
class SelectQuery:
    """SELECT <items> FROM <table> [, <unnests>] [WHERE <conditions>]."""
    table: str
    select: tuple[SelectItem, ...]
    unnests: tuple[Unnest, ...] = ()
    where: tuple[Condition, ...] = ()
    table_alias: Optional[str] = None
    distinct: bool = False

    @property
    def columns(self) -> list[str]:
        return [item.alias for item in self.select]

    def render(self) -> str:
        if not self.select:
            raise ValueError("A select query needs at least one select item")

        sql = "SELECT DISTINCT " if self.distinct else "SELECT "
        sql += ", ".join(item.render() for item in self.select)
        sql += " FROM " + quote_identifier(self.table)
        if self.table_alias is not None:
            sql += " AS " + quote_identifier(self.table_alias)
        for unnest in self.unnests:
            sql += ", " + unnest.render()
        if self.where:
            sql += " WHERE " + " AND ".join(c.render() for c in self.where)
        return sql


@dataclass(frozen=True)
class UnionQuery:
    """Duplicate-eliminating UNION of select queries with aligned columns."""
    branches: tuple[SelectQuery, ...]

    def __post_init__(self) -> None:
        if not self.branches:
            raise ValueError("A union needs at least one branch")
        width = len(self.branches[0].select)
        for branch in self.branches[1:]:
            if len(branch.select) != width:
                raise ValueError("Union branches must select the same number of columns")

    @property
    def columns(self) -> list[str]:
        return self.branches[0].columns

    def render(self) -> str:
        if len(self.branches) == 1:
            return replace(self.branches[0], distinct=True).render()
        return "\nUNION\n".join(branch.render() for branch in self.branches)


Query = Union[SelectQuery, UnionQuery]

"""
Exception hierarchy for rdf-proptable.

Build-time failures (column name collisions) and query-time failures
(unresolvable predicates, unsupported pattern shapes) are raised to the
caller unchanged; nothing in the package retries or swallows them.
"""

from __future__ import annotations

from typing import Optional, Sequence


class PropertyTableError(Exception):
    """Base class for all rdf-proptable errors."""
    pass


class ColumnNameCollisionError(PropertyTableError):
    """
    Two distinct predicates map to the same property-table column.

    Raised while building the predicate catalog. Writing both would make the
    later predicate silently overwrite the earlier column.
    """

    def __init__(self, column: str, predicates: Sequence[str]):
        self.column = column
        self.predicates = tuple(predicates)
        super().__init__(
            f"Column name collision on '{column}': predicates "
            f"{', '.join(repr(p) for p in self.predicates)} sanitize to the same identifier"
        )


class TranslationError(PropertyTableError):
    """A pattern group could not be translated into a query."""
    pass


class PredicateNotFoundError(TranslationError):
    """A bound predicate of a pattern group has no property-table column."""

    def __init__(self, predicate: str, replaced_by: Optional[str] = None):
        self.predicate = predicate
        self.replaced_by = replaced_by
        message = f"Predicate not found in the property table: {predicate}"
        if replaced_by is not None:
            message += (
                f" (dropped as a case-insensitive duplicate of {replaced_by})"
            )
        super().__init__(message)


class UnsupportedPatternError(TranslationError):
    """The pattern shape is outside what a single property-table scan answers."""
    pass


class QueryParseError(PropertyTableError):
    """The query text is not a supported basic graph pattern query."""
    pass


class CatalogNotAvailableError(PropertyTableError):
    """No predicate catalog has been built or loaded yet."""
    pass

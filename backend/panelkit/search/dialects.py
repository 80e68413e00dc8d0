"""
panelkit/search/dialects.py

Dialect dispatch for global search predicates.

Each SQLAlchemy dialect name maps to its case-insensitive "contains" operator
and to the expression that turns a structured (JSON) column into text. Adding
a dialect is one table entry. Unknown dialects get the default entry instead
of an error.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict

from sqlalchemy import Text, cast, func
from sqlalchemy.sql.elements import ColumnElement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchDialect:
    """
    Attributes:
        name: dialect name as reported by SQLAlchemy
        operator: "ilike" or "like"; "like" is applied to lower()ed operands
        structured_text: converts a structured column into a text expression
    """

    name: str
    operator: str
    structured_text: Callable[[ColumnElement], ColumnElement]

    def contains(self, column: ColumnElement, pattern: str) -> ColumnElement:
        """Case-insensitive ``column LIKE pattern`` for a plain column"""
        if self.operator == "ilike":
            return column.ilike(pattern)
        return func.lower(column).like(func.lower(pattern))

    def structured_contains(self, column: ColumnElement, pattern: str) -> ColumnElement:
        """``lower(<column as text>) <op> lower(pattern)`` for translatable columns"""
        text_column = func.lower(self.structured_text(column))
        if self.operator == "ilike":
            return text_column.ilike(func.lower(pattern))
        return text_column.like(func.lower(pattern))


POSTGRESQL = SearchDialect(
    name="postgresql",
    operator="ilike",
    structured_text=lambda column: cast(column, Text),
)

DEFAULT = SearchDialect(
    name="default",
    operator="like",
    structured_text=lambda column: func.json_extract(column, "$"),
)

SEARCH_DIALECTS: Dict[str, SearchDialect] = {
    POSTGRESQL.name: POSTGRESQL,
}


def get_search_dialect(dialect_name: str) -> SearchDialect:
    """Dialect entry for ``dialect_name``, the default entry when unknown"""
    dialect = SEARCH_DIALECTS.get(dialect_name)
    if dialect is None:
        logger.debug(f"No search dialect registered for '{dialect_name}', using default LIKE semantics")
        return DEFAULT
    return dialect


def register_search_dialect(dialect: SearchDialect) -> None:
    SEARCH_DIALECTS[dialect.name] = dialect


__all__ = [
    "SearchDialect",
    "POSTGRESQL",
    "DEFAULT",
    "SEARCH_DIALECTS",
    "get_search_dialect",
    "register_search_dialect",
]

"""
panelkit/search/global_search.py

Global search query assembly.

For every word of the search text one group of OR'ed "contains" predicates is
AND'ed onto the query, one predicate per searchable attribute:

    "alice bob" over [name, email]
    => (name ~ %alice% OR email ~ %alice%) AND (name ~ %bob% OR email ~ %bob%)

Attributes come in three shapes:
- translatable: the model's is_translatable_attribute(name) says so; the
  stored structure is matched as text
- dotted ("author.name"): matched on the related record through the
  relationship path before the last dot
- plain: matched on the column directly
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from sqlalchemy import or_
from sqlalchemy.orm import Query
from sqlalchemy.sql.elements import ColumnElement

from panelkit.exceptions import ConfigurationError
from panelkit.search.dialects import SearchDialect, get_search_dialect

logger = logging.getLogger(__name__)

SearchableAttribute = Union[str, Sequence[str]]


@dataclass(frozen=True)
class GlobalSearchAction:
    """A shortcut shown next to a search result"""

    name: str
    label: str
    url: Optional[str] = None


@dataclass(frozen=True)
class GlobalSearchResult:
    title: str
    url: str
    details: Dict[str, str] = field(default_factory=dict)
    actions: List[GlobalSearchAction] = field(default_factory=list)


@dataclass(frozen=True)
class GlobalSearchResultGroup:
    """Results of one resource, labelled with its plural model label"""

    label: str
    results: List[GlobalSearchResult] = field(default_factory=list)


def split_search_words(search: str) -> List[str]:
    """Whitespace tokens; repeated or surrounding spaces yield no empty words"""
    return search.split()


def wrap_attributes(attributes: SearchableAttribute) -> List[str]:
    if isinstance(attributes, str):
        return [attributes]
    return list(attributes)


def is_translatable(model: type, attribute: str) -> bool:
    checker = getattr(model, "is_translatable_attribute", None)
    return callable(checker) and bool(checker(attribute))


def _model_attribute(model: type, name: str) -> Any:
    try:
        return getattr(model, name)
    except AttributeError:
        raise ConfigurationError(f"{model.__name__} has no searchable attribute '{name}'") from None


def relation_clause(model: type, relation_path: Sequence[str], column: str, build) -> ColumnElement:
    """
    Predicate on ``column`` of the record reached through ``relation_path``.

    Collections use ``any()``, scalar relationships ``has()``; nested paths
    recurse from the innermost relationship outwards.
    """
    relationship = _model_attribute(model, relation_path[0])
    prop = getattr(relationship, "property", None)
    if prop is None or not hasattr(prop, "mapper"):
        raise ConfigurationError(f"{model.__name__}.{relation_path[0]} is not a relationship")

    target = prop.mapper.class_
    if len(relation_path) > 1:
        inner = relation_clause(target, relation_path[1:], column, build)
    else:
        inner = build(_model_attribute(target, column))

    return relationship.any(inner) if prop.uselist else relationship.has(inner)


def attribute_search_clause(model: type, attribute: str, word: str, dialect: SearchDialect) -> ColumnElement:
    """Case-insensitive "contains ``word``" predicate for one searchable attribute"""
    pattern = f"%{word}%"

    if is_translatable(model, attribute):
        return dialect.structured_contains(_model_attribute(model, attribute), pattern)

    if "." in attribute:
        relation, column = attribute.rsplit(".", 1)
        return relation_clause(
            model,
            relation.split("."),
            column,
            lambda target_column: dialect.contains(target_column, pattern),
        )

    return dialect.contains(_model_attribute(model, attribute), pattern)


def build_search_clauses(
    model: type,
    words: Iterable[str],
    attributes: Sequence[SearchableAttribute],
    dialect: SearchDialect,
) -> List[ColumnElement]:
    """One OR group per word; the caller ANDs the groups together"""
    groups = []
    for word in words:
        predicates = [
            attribute_search_clause(model, attribute, word, dialect)
            for entry in attributes
            for attribute in wrap_attributes(entry)
        ]
        if predicates:
            groups.append(or_(*predicates))
    return groups


def query_dialect_name(query: Query) -> str:
    return query.session.get_bind().dialect.name


def query_model(query: Query) -> type:
    return query.column_descriptions[0]["entity"]


def apply_global_search_constraints(
    query: Query,
    search: str,
    attributes: Sequence[SearchableAttribute],
) -> Query:
    """AND one OR group per word of ``search`` onto ``query``"""
    dialect = get_search_dialect(query_dialect_name(query))
    model = query_model(query)

    clauses = build_search_clauses(model, split_search_words(search), attributes, dialect)
    logger.debug(f"Global search on {model.__name__} ({dialect.name}): {len(clauses)} word groups")

    for clause in clauses:
        query = query.filter(clause)

    return query


__all__ = [
    "SearchableAttribute",
    "GlobalSearchAction",
    "GlobalSearchResult",
    "GlobalSearchResultGroup",
    "split_search_words",
    "wrap_attributes",
    "is_translatable",
    "relation_clause",
    "attribute_search_clause",
    "build_search_clauses",
    "apply_global_search_constraints",
]

"""
panelkit/search - global search query assembly and dialect dispatch
"""
from panelkit.search.dialects import SearchDialect, get_search_dialect, register_search_dialect
from panelkit.search.global_search import (
    GlobalSearchAction,
    GlobalSearchResult,
    GlobalSearchResultGroup,
    apply_global_search_constraints,
    build_search_clauses,
    split_search_words,
)

__all__ = [
    "SearchDialect",
    "get_search_dialect",
    "register_search_dialect",
    "GlobalSearchAction",
    "GlobalSearchResult",
    "GlobalSearchResultGroup",
    "apply_global_search_constraints",
    "build_search_clauses",
    "split_search_words",
]

"""Search ranking engine: relevance scoring, filtering, sorting, suggestions.

Pure functions over postings supplied by the caller. Nothing here performs I/O.
"""

from jobboard.utils.highlighting import highlight_search_terms

from .engine import filter_postings, saved_search_to_filters, search_postings, sort_postings
from .models import RelevanceResult, SearchFilters, SearchResponse, SortField, SortOrder
from .scoring import FIELD_WEIGHTS, calculate_relevance_score, extract_search_terms
from .suggestions import get_search_suggestions

__all__ = [
    "calculate_relevance_score",
    "extract_search_terms",
    "filter_postings",
    "sort_postings",
    "search_postings",
    "get_search_suggestions",
    "highlight_search_terms",
    "saved_search_to_filters",
    "FIELD_WEIGHTS",
    "RelevanceResult",
    "SearchFilters",
    "SearchResponse",
    "SortField",
    "SortOrder",
]

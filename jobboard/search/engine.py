"""Filtering, sorting and the combined search entry point.

Everything here is pure: postings come in, new lists go out, and the input
list is never reordered in place.
"""

from datetime import date, datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from jobboard.domain.models import JobCategory, Posting, SavedSearch

from .models import RelevanceResult, SearchFilters, SearchResponse, SortField, SortOrder
from .scoring import calculate_relevance_score, extract_search_terms

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _passes_filters(posting: Posting, filters: SearchFilters) -> bool:
    if filters.department and posting.department != filters.department:
        return False

    if filters.category and JobCategory.parse(posting.category) != JobCategory.parse(filters.category):
        return False

    # Postings without a deadline are never excluded by the deadline window
    deadline = posting.application_deadline
    if deadline is not None:
        if filters.deadline_from and deadline < filters.deadline_from:
            return False
        if filters.deadline_to and deadline > filters.deadline_to:
            return False

    if filters.has_compensation and not (posting.compensation or "").strip():
        return False

    return True


def filter_postings(postings: Iterable[Posting], filters: SearchFilters) -> List[Posting]:
    """Keep postings that satisfy every active filter.

    A posting is dropped when the query matches none of its fields, when the
    department or category differ, when its deadline lies outside
    ``[deadline_from, deadline_to]``, or when compensation is required but
    missing.

    A category filter given as a string is compared the way stored
    categories are read, so an unrecognized value selects OTHER postings.

    Args:
        postings: Postings to filter
        filters: Active filters; unset fields exclude nothing

    Returns:
        The matching postings in input order
    """
    terms = extract_search_terms(filters.query or "")
    kept = []
    for posting in postings:
        if terms and calculate_relevance_score(posting, terms).score == 0:
            continue
        if _passes_filters(posting, filters):
            kept.append(posting)
    return kept


def _sort_key(sort_by: SortField, scores: Dict[str, float]):
    if sort_by == SortField.TITLE:
        return lambda p: (p.title or "").casefold()
    if sort_by == SortField.DEPARTMENT:
        return lambda p: (p.department or "").casefold()
    if sort_by == SortField.COMPENSATION:
        # Lexicographic on purpose: compensation is free text like "$15/hour"
        return lambda p: (p.compensation or "").casefold()
    if sort_by == SortField.DEADLINE:
        # Missing deadline means "never", i.e. after every real date
        return lambda p: (
            p.application_deadline is None,
            p.application_deadline or date.max,
        )
    if sort_by == SortField.RELEVANCE:
        return lambda p: scores.get(p.id, 0.0)
    return lambda p: p.created_at or _EPOCH


def sort_postings(
    postings: Sequence[Posting],
    sort_by: SortField = SortField.CREATED_AT,
    sort_order: SortOrder = SortOrder.DESC,
    results: Optional[Sequence[RelevanceResult]] = None,
) -> List[Posting]:
    """Return a new list ordered by ``sort_by``.

    Descending order reverses the natural order of the key: newest first for
    creation time, highest first for relevance. Postings missing from
    ``results`` count as score 0 when sorting by relevance. Ties keep their
    input order in both directions, so sorting twice gives the same list.

    Args:
        postings: Postings to order
        sort_by: Field to sort on
        sort_order: Ascending or descending
        results: Relevance results used when sorting by relevance

    Returns:
        A new sorted list
    """
    sort_by = SortField(sort_by)
    scores = {result.posting.id: result.score for result in results or ()}
    return sorted(
        postings,
        key=_sort_key(sort_by, scores),
        reverse=SortOrder(sort_order) == SortOrder.DESC,
    )


def search_postings(postings: Sequence[Posting], filters: SearchFilters) -> SearchResponse:
    """Score, filter and sort postings in one call.

    Args:
        postings: Candidate postings
        filters: Query, filters and sort preference

    Returns:
        SearchResponse with the ordered postings and their relevance results
    """
    terms = extract_search_terms(filters.query or "")
    results = [calculate_relevance_score(posting, terms) for posting in postings]

    kept = [
        result
        for result in results
        if (not terms or result.score > 0) and _passes_filters(result.posting, filters)
    ]

    ordered = sort_postings(
        [result.posting for result in kept],
        sort_by=filters.sort_by,
        sort_order=filters.sort_order,
        results=kept,
    )
    by_id = {result.posting.id: result for result in kept}
    return SearchResponse(
        postings=ordered,
        results=[by_id[posting.id] for posting in ordered],
        terms=terms,
    )


def saved_search_to_filters(saved_search: SavedSearch) -> SearchFilters:
    """Turn a saved search's stored criteria into search filters."""
    criteria = saved_search.criteria
    return SearchFilters(
        query=criteria.query,
        department=criteria.department,
        category=criteria.category,
        deadline_from=criteria.deadline_from,
        deadline_to=criteria.deadline_to,
        sort_by=SortField.parse(criteria.sort_by),
        sort_order=SortOrder.parse(criteria.sort_order),
    )

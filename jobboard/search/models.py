"""Data models for the search ranking engine."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional, Union

from jobboard.domain.models import JobCategory, Posting


class SortField(str, Enum):
    """Attributes a result list can be ordered by."""

    CREATED_AT = "created_at"
    TITLE = "title"
    DEADLINE = "deadline"
    DEPARTMENT = "department"
    COMPENSATION = "compensation"
    RELEVANCE = "relevance"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortField":
        """Resolve a user-supplied sort key, defaulting to creation time."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.CREATED_AT


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortOrder":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.DESC


@dataclass
class RelevanceResult:
    """Score of one posting against a list of search terms.

    Attributes:
        posting: The posting that was scored
        score: Sum of weighted field matches; 0 means nothing matched
        matched_fields: Field names that matched, in first-match order, no repeats
    """

    posting: Posting
    score: float
    matched_fields: List[str] = field(default_factory=list)

    @property
    def is_match(self) -> bool:
        return self.score > 0


@dataclass
class SearchFilters:
    """Closed set of filters a search can apply.

    Every filter is optional and all active filters are AND-combined.
    """

    query: Optional[str] = None
    department: Optional[str] = None
    category: Optional[Union[JobCategory, str]] = None
    deadline_from: Optional[date] = None
    deadline_to: Optional[date] = None
    has_compensation: Optional[bool] = None
    sort_by: SortField = SortField.CREATED_AT
    sort_order: SortOrder = SortOrder.DESC


@dataclass
class SearchResponse:
    """Outcome of ``search_postings``.

    Attributes:
        postings: Filtered postings in the requested order
        results: Relevance results for the returned postings, same order
        terms: Search terms extracted from the query
    """

    postings: List[Posting]
    results: List[RelevanceResult]
    terms: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.postings)

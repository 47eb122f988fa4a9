"""Relevance scoring of postings against search terms.

Each searchable field carries a fixed weight. For every term and every field
whose lowercased value contains the term, the posting earns:

- 2x the weight when the whole field equals the term
- 1.5x the weight when the term appears as a whole word
- 1x the weight for any other substring match

Points accumulate across terms and fields. A score of zero means no field
matched any term.
"""

import re
from enum import Enum
from typing import Dict, List, Sequence

from jobboard.domain.models import Posting

from .models import RelevanceResult

# Field order is the order matched_fields are reported in
FIELD_WEIGHTS: Dict[str, float] = {
    "title": 3.0,
    "description": 2.0,
    "requirements": 2.0,
    "department": 1.5,
    "category": 1.0,
    "compensation": 1.0,
}

EXACT_MATCH_MULTIPLIER = 2.0
WORD_MATCH_MULTIPLIER = 1.5
PARTIAL_MATCH_MULTIPLIER = 1.0

NEUTRAL_SCORE = 1.0


def extract_search_terms(query: str) -> List[str]:
    """Split a free-text query on whitespace into lowercase terms.

    Example:
        >>> extract_search_terms("  Research   Biology ")
        ['research', 'biology']
    """
    if not query or not query.strip():
        return []
    return [term.lower() for term in query.split()]


def field_value(posting: Posting, field_name: str) -> str:
    """Lowercased value of a searchable field; missing values become ''."""
    value = getattr(posting, field_name, None)
    if value is None:
        return ""
    if isinstance(value, Enum):
        value = value.value
    return str(value).lower()


def calculate_relevance_score(posting: Posting, search_terms: Sequence[str]) -> RelevanceResult:
    """Score a posting against search terms.

    An empty term list yields the neutral score of 1 with no matched fields,
    meaning "no relevance filtering requested".
    """
    terms = [term.lower() for term in search_terms if term and term.strip()]
    if not terms:
        return RelevanceResult(posting=posting, score=NEUTRAL_SCORE, matched_fields=[])

    values = {name: field_value(posting, name) for name in FIELD_WEIGHTS}
    score = 0.0
    matched_fields: List[str] = []

    for term in terms:
        word_pattern = re.compile(rf"\b{re.escape(term)}\b")
        for name, weight in FIELD_WEIGHTS.items():
            value = values[name]
            if term not in value:
                continue

            if value == term:
                score += weight * EXACT_MATCH_MULTIPLIER
            elif word_pattern.search(value):
                score += weight * WORD_MATCH_MULTIPLIER
            else:
                score += weight * PARTIAL_MATCH_MULTIPLIER

            if name not in matched_fields:
                matched_fields.append(name)

    return RelevanceResult(posting=posting, score=score, matched_fields=matched_fields)

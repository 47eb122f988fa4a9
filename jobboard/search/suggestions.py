"""Query completion from words already present in postings."""

import re
from typing import Iterable, List

from jobboard.domain.models import Posting

from .scoring import field_value

MAX_SUGGESTIONS = 5
MIN_TOKEN_LENGTH = 3

_NON_WORD = re.compile(r"[^\w]")


def _tokens(posting: Posting) -> List[str]:
    return [
        *field_value(posting, "title").split(),
        *field_value(posting, "department").split(),
        *field_value(posting, "category").split("_"),
        *field_value(posting, "description").split(),
    ]


def get_search_suggestions(
    postings: Iterable[Posting], current_query: str, limit: int = MAX_SUGGESTIONS
) -> List[str]:
    """Suggest up to ``limit`` words that start with the typed query.

    Words come from titles, departments, categories and descriptions, are
    lowercased and stripped of punctuation. Words shorter than three
    characters and the query itself are never suggested.

    Example:
        >>> get_search_suggestions(postings, "res")
        ['research', 'resonance']
    """
    query = (current_query or "").strip().lower()
    if not query:
        return []

    suggestions: List[str] = []
    for posting in postings:
        for word in _tokens(posting):
            clean = _NON_WORD.sub("", word)
            if (
                len(clean) >= MIN_TOKEN_LENGTH
                and clean.startswith(query)
                and clean != query
                and clean not in suggestions
            ):
                suggestions.append(clean)
                if len(suggestions) >= limit:
                    return suggestions
    return suggestions

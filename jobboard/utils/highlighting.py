"""Search-term highlighting and text shortening helpers.

Used by the search layer to mark matched terms in result text and by the
notification layer to bound the size of logged message bodies.
"""

import re
from typing import Iterable


def highlight_search_terms(
    text: str,
    terms: Iterable[str],
    marker_start: str = "<mark>",
    marker_end: str = "</mark>",
) -> str:
    """Wrap every case-insensitive occurrence of a search term in markers.

    Terms are matched as plain substrings (regex metacharacters are escaped)
    and the original casing of the text is preserved. Longer terms win when
    terms overlap, so ``["research", "res"]`` marks ``Research`` once.

    Args:
        text: Text to highlight terms in
        terms: Search terms (typically from ``extract_search_terms``)
        marker_start: Marker inserted before each match
        marker_end: Marker inserted after each match

    Returns:
        Text with matches wrapped in markers, or the text unchanged when there
        is nothing to highlight

    Example:
        >>> highlight_search_terms("Research Assistant", ["research"])
        '<mark>Research</mark> Assistant'
    """
    if not text:
        return text

    unique_terms = sorted({term for term in terms if term and term.strip()}, key=len, reverse=True)
    if not unique_terms:
        return text

    pattern = re.compile("|".join(re.escape(term) for term in unique_terms), re.IGNORECASE)
    return pattern.sub(lambda match: f"{marker_start}{match.group(0)}{marker_end}", text)


def truncate_text(text: str, max_length: int = 500, suffix: str = "...") -> str:
    """Truncate text to maximum length, adding suffix if truncated.

    Tries to break at word boundaries for cleaner truncation.

    Args:
        text: Text to truncate
        max_length: Maximum length (including suffix)
        suffix: Suffix to add if truncated (default: ...)

    Returns:
        Truncated text with suffix if needed

    Example:
        >>> truncate_text("This is a very long text that needs truncating", max_length=30)
        'This is a very long text...'
    """
    if not text or len(text) <= max_length:
        return text

    truncate_at = max_length - len(suffix)

    if truncate_at <= 0:
        return suffix[:max_length]

    truncated = text[:truncate_at]

    # Only break on a space that isn't too far back
    last_space = truncated.rfind(" ")
    if last_space > truncate_at * 0.8:
        truncated = truncated[:last_space]

    return truncated.rstrip() + suffix


def humanize_label(value: str) -> str:
    """Turn a snake_case enum value into a display label.

    Example:
        >>> humanize_label("research_assistant")
        'Research Assistant'
    """
    if not value:
        return ""
    return " ".join(part.capitalize() for part in value.replace("-", "_").split("_") if part)

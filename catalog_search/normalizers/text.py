"""
Text normalization and tokenization for search.
Pure functions; every input maps to a comparable string form.
"""
import re
from typing import List, Optional

# Fuzzy matching is O(field length) per token, so it is bounded on both sides
FUZZY_FIELD_MAX_LENGTH = 120
FUZZY_TOKEN_MIN_LENGTH = 3

_WHITESPACE = re.compile(r"\s+")
_NON_ALNUM = re.compile(r"[^a-z0-9]")
_HTML_TAG = re.compile(r"<[^>]*>")


def normalize(text: Optional[str]) -> str:
    """Lowercase, trim and collapse whitespace. None becomes ''."""
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text.lower().strip())


def normalize_fuzzy(text: Optional[str]) -> str:
    """Normalized form reduced to [a-z0-9]."""
    return _NON_ALNUM.sub("", normalize(text))


def strip_alnum(token: str) -> str:
    return _NON_ALNUM.sub("", token)


def tokenize(query: Optional[str]) -> List[str]:
    """Split a query into normalized, non-empty tokens."""
    return [token for token in _WHITESPACE.split(normalize(query)) if token]


def strip_html(html: Optional[str]) -> str:
    """Replace every tag with a space and collapse whitespace."""
    if not html:
        return ""
    return _WHITESPACE.sub(" ", _HTML_TAG.sub(" ", html)).strip()


def is_subsequence(needle: str, haystack: str) -> bool:
    """True when needle's characters appear in haystack in order."""
    if not needle:
        return False
    remaining = iter(haystack)
    return all(char in remaining for char in needle)

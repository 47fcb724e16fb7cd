"""
In-memory search engine for catalog products.

Filters shrink the candidate set, a weighted field scorer ranks what is
left, and the sort engine applies any explicit ordering. Every function
here is pure: the same inputs always give the same ordered output.
"""
import unicodedata
from datetime import datetime, timezone
from functools import lru_cache
from typing import Dict, List, Optional, Sequence, Tuple

from catalog_search.errors import SearchError
from catalog_search.logger import logger
from catalog_search.models.product import Product
from catalog_search.models.search import (
    Page,
    PriceRange,
    SearchFilters,
    SearchOptions,
    SearchResult,
    SortOption,
)
from catalog_search.normalizers.text import (
    FUZZY_FIELD_MAX_LENGTH,
    FUZZY_TOKEN_MIN_LENGTH,
    is_subsequence,
    normalize,
    normalize_fuzzy,
    strip_alnum,
    strip_html,
    tokenize,
)

FIELD_WEIGHTS: Dict[str, float] = {
    "title": 3.0,
    "vendor": 2.0,
    "description": 1.0,
    "tags": 0.5,
}

MINIMUM_SCORE = 0.1
MAX_SUGGESTIONS = 6

# Ladder multipliers, strongest match first
EXACT_MATCH = 10
PREFIX_MATCH = 5
WORD_MATCH = 4
SUBSTRING_MATCH = 2
FUZZY_MATCH = 1


def score_field(tokens: Sequence[str], field: Optional[str], weight: float = 1.0) -> float:
    """
    Score one field against the query tokens.

    Each token earns the first rung of the ladder it reaches:
    exact > prefix > whole word > substring > fuzzy subsequence.
    Token scores are summed.
    """
    if not field or not tokens:
        return 0.0

    normalized = normalize(field)
    fuzzy_field = normalize_fuzzy(field) if len(normalized) <= FUZZY_FIELD_MAX_LENGTH else ""
    score = 0.0

    for token in tokens:
        fuzzy_token = strip_alnum(token) if len(token) >= FUZZY_TOKEN_MIN_LENGTH else ""

        if normalized == token:
            score += EXACT_MATCH * weight
        elif normalized.startswith(token):
            score += PREFIX_MATCH * weight
        elif (
            f" {token} " in normalized
            or normalized.startswith(f"{token} ")
            or normalized.endswith(f" {token}")
        ):
            score += WORD_MATCH * weight
        elif token in normalized:
            score += SUBSTRING_MATCH * weight
        elif fuzzy_field and fuzzy_token and is_subsequence(fuzzy_token, fuzzy_field):
            score += FUZZY_MATCH * weight

    return score


def _description_text(product: Product) -> str:
    return strip_html(product.searchable_description)


def calculate_score(product: Product, tokens: Sequence[str]) -> float:
    """Weighted relevance of a product across title, vendor, description and tags."""
    if not tokens:
        return 0.0

    return (
        score_field(tokens, product.title, FIELD_WEIGHTS["title"])
        + score_field(tokens, product.vendor, FIELD_WEIGHTS["vendor"])
        + score_field(tokens, _description_text(product), FIELD_WEIGHTS["description"])
        + score_field(tokens, " ".join(product.tags), FIELD_WEIGHTS["tags"])
    )


def get_matches(product: Product, tokens: Sequence[str]) -> Tuple[str, ...]:
    """
    Names of fields containing any token as a substring.
    Fuzzy-only hits score but are not listed here.
    """
    matched = []

    title = normalize(product.title)
    if any(token in title for token in tokens):
        matched.append("title")

    vendor = normalize(product.vendor)
    if any(token in vendor for token in tokens):
        matched.append("vendor")

    description = normalize(_description_text(product))
    if any(token in description for token in tokens):
        matched.append("description")

    tags = [normalize(tag) for tag in product.tags]
    if any(token in tag for token in tokens for tag in tags):
        matched.append("tags")

    return tuple(matched)


def apply_filters(products: Sequence[Product], filters: Optional[SearchFilters] = None) -> List[Product]:
    """Keep products passing every active predicate, in input order."""
    if filters is None:
        return list(products)

    filtered = products

    if filters.vendors:
        filtered = [p for p in filtered if p.vendor in filters.vendors]

    if filters.price_range is not None:
        price_range = filters.price_range
        filtered = [p for p in filtered if price_range.contains(p.price.amount)]

    if filters.in_stock:
        filtered = [p for p in filtered if p.inventory > 0]

    return list(filtered)


@lru_cache(maxsize=65536)
def _created_timestamp(created_at: str) -> Optional[float]:
    if not created_at:
        return None
    try:
        parsed = datetime.fromisoformat(created_at.strip())
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def _recency_key(result: SearchResult) -> Tuple[bool, float]:
    timestamp = _created_timestamp(result.product.created_at)
    # Undated products sort after every dated one
    return (timestamp is not None, timestamp or 0.0)


def collation_key(text: str) -> Tuple[str, str]:
    """Accent- and case-insensitive primary key, raw text as tie-break."""
    decomposed = unicodedata.normalize("NFKD", text or "")
    folded = "".join(char for char in decomposed if not unicodedata.combining(char))
    return (folded.casefold(), text or "")


def _vendor_key(result: SearchResult) -> Tuple[str, str]:
    return collation_key(result.product.vendor)


def sort_results(results: Sequence[SearchResult], sort_by=SortOption.RECENT_DESC) -> List[SearchResult]:
    """
    Return a new list ordered by the named criterion.
    Unknown names sort newest first. Equal keys keep their input order.
    """
    option = SortOption.parse(sort_by)

    if option is SortOption.PRICE_ASC:
        return sorted(results, key=lambda r: r.product.price.amount)
    if option is SortOption.PRICE_DESC:
        return sorted(results, key=lambda r: r.product.price.amount, reverse=True)
    if option is SortOption.RATING_DESC:
        return sorted(results, key=lambda r: r.product.rating or 0.0, reverse=True)
    if option is SortOption.VENDOR_ASC:
        return sorted(results, key=_vendor_key)
    if option is SortOption.VENDOR_DESC:
        return sorted(results, key=_vendor_key, reverse=True)
    return sorted(results, key=_recency_key, reverse=True)


def _truncate(results: List[SearchResult], limit: Optional[int]) -> List[SearchResult]:
    if limit is None:
        return results
    if limit < 0:
        raise SearchError(f"limit must be non-negative, got {limit}")
    return results[:limit]


def search_products(products: Sequence[Product], options: SearchOptions) -> List[SearchResult]:
    """
    Filter, score and order products for one query.

    Without a query every filtered product is returned unscored, sorted by
    the requested order or vendor name. With a query only products scoring
    at least MINIMUM_SCORE are returned, in relevance order unless an
    explicit sort overrides it.
    """
    filtered = apply_filters(products, options.filters)
    query = options.query or ""

    if not query.strip():
        results = [SearchResult(product=p) for p in filtered]
        ordered = sort_results(results, options.sort_by or SortOption.VENDOR_ASC)
        return _truncate(ordered, options.limit)

    tokens = tokenize(query)
    if not tokens:
        return []

    scored = []
    for product in filtered:
        score = calculate_score(product, tokens)
        if score >= MINIMUM_SCORE:
            scored.append(SearchResult(
                product=product,
                relevance_score=score,
                matched_fields=get_matches(product, tokens),
            ))

    scored.sort(key=lambda r: r.relevance_score, reverse=True)

    logger.debug(
        f"Query {query!r} matched {len(scored)} of {len(filtered)} filtered products"
    )

    if not options.sort_by:
        return _truncate(scored, options.limit)

    return _truncate(sort_results(scored, options.sort_by), options.limit)


def paginate(results: Sequence[SearchResult], page: int = 1, page_size: int = 24) -> Page:
    """Slice one page out of an ordered result list (1-based)."""
    if page < 1 or page_size < 1:
        raise SearchError(f"page and page_size must be positive, got {page}/{page_size}")

    start = (page - 1) * page_size
    return Page(
        items=list(results[start:start + page_size]),
        page=page,
        page_size=page_size,
        total=len(results),
    )


def get_suggestions(query: str, results: Sequence[SearchResult], limit: int = MAX_SUGGESTIONS) -> List[str]:
    """Distinct titles and vendors from the results that contain the query."""
    needle = (query or "").strip().lower()
    if len(needle) < 2:
        return []

    seen = set()
    suggestions = []

    for result in results:
        for candidate in (result.product.title, result.product.vendor):
            text = (candidate or "").strip()
            if text and needle in text.lower() and text not in seen:
                seen.add(text)
                suggestions.append(text)

        if len(suggestions) >= limit:
            break

    return suggestions[:limit]


def get_unique_vendors(products: Sequence[Product]) -> List[str]:
    """Distinct non-empty vendor names, sorted."""
    return sorted({p.vendor for p in products if p.vendor}, key=collation_key)


def get_price_range(products: Sequence[Product]) -> PriceRange:
    """Lowest and highest price in the collection; (0, 0) when empty."""
    if not products:
        return PriceRange(min=0.0, max=0.0)

    prices = [p.price.amount for p in products]
    return PriceRange(min=min(prices), max=max(prices))

"""
Services package initialization.
Centralizes service imports.
"""

from catalog_search.services.csv_parser import (
    ParseCache,
    load_catalog,
    parse_catalog,
    parse_catalog_file,
)
from catalog_search.services.search_engine import (
    apply_filters,
    calculate_score,
    get_matches,
    get_price_range,
    get_suggestions,
    get_unique_vendors,
    paginate,
    score_field,
    search_products,
    sort_results,
)

__all__ = [
    'ParseCache',
    'load_catalog',
    'parse_catalog',
    'parse_catalog_file',
    'apply_filters',
    'calculate_score',
    'get_matches',
    'get_price_range',
    'get_suggestions',
    'get_unique_vendors',
    'paginate',
    'score_field',
    'search_products',
    'sort_results',
]

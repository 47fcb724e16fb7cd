from catalog_search.models.product import Money, Product, ProductImage, ProductStatus
from catalog_search.models.search import (
    Page,
    ParseResult,
    ParseStats,
    PriceRange,
    SearchFilters,
    SearchOptions,
    SearchResult,
    SortOption,
)

__all__ = [
    'Money',
    'Product',
    'ProductImage',
    'ProductStatus',
    'Page',
    'ParseResult',
    'ParseStats',
    'PriceRange',
    'SearchFilters',
    'SearchOptions',
    'SearchResult',
    'SortOption',
]

"""
Test search orchestration, filters, sorting and result helpers.
"""
from unittest.mock import patch

import pytest

from catalog_search.errors import SearchError
from catalog_search.models.product import Money, Product
from catalog_search.models.search import (
    PriceRange,
    SearchFilters,
    SearchOptions,
    SearchResult,
    SortOption,
)
from catalog_search.services.search_engine import (
    MINIMUM_SCORE,
    apply_filters,
    get_price_range,
    get_suggestions,
    get_unique_vendors,
    paginate,
    search_products,
    sort_results,
)


def make_product(id, title="Product", vendor="Acme", price=10.0, **overrides) -> Product:
    return Product(id=id, title=title, vendor=vendor, price=Money(amount=price), **overrides)


@pytest.fixture
def supplements():
    return [
        make_product(
            "1",
            title="Transparent Labs Whey Protein",
            vendor="Transparent Labs",
            price=40.0,
            description="High quality protein",
            tags=("protein", "whey"),
            inventory=10,
        ),
        make_product(
            "2",
            title="Another Brand Supplement",
            vendor="Generic Brand",
            price=20.0,
            description="Contains Transparent Labs formula",
            tags=("mix",),
            inventory=5,
        ),
    ]


@pytest.fixture
def catalog():
    return [
        make_product("a", title="Whey Isolate", vendor="beta", price=30.0, rating=4.0,
                     inventory=0, created_at="2024-03-01T10:00:00Z"),
        make_product("b", title="Vegan Protein", vendor="Alpha", price=15.0, rating=None,
                     inventory=3, created_at="2024-06-01T10:00:00Z"),
        make_product("c", title="Whey Concentrate", vendor="Écho", price=25.0, rating=4.8,
                     inventory=7, created_at=""),
        make_product("d", title="Creatine", vendor="delta", price=15.0, rating=3.5,
                     inventory=1, created_at="2023-12-31T23:59:59+00:00"),
    ]


def test_brand_query_ranks_title_and_vendor_match_first(supplements):
    results = search_products(supplements, SearchOptions(query="Transparent Labs"))

    assert [r.id for r in results] == ["1", "2"]
    assert results[0].relevance_score > results[1].relevance_score
    assert results[0].vendor == "Transparent Labs"


def test_description_only_match_is_disclosed(supplements):
    results = search_products(supplements, SearchOptions(query="formula"))

    assert [r.id for r in results] == ["2"]
    assert "description" in results[0].matched_fields


def test_empty_query_with_price_sort(supplements):
    results = search_products(supplements, SearchOptions(query="", sort_by="price-asc"))

    assert [r.price.amount for r in results] == [20.0, 40.0]
    assert all(r.relevance_score == 0 for r in results)
    assert all(r.matched_fields == () for r in results)


def test_empty_query_defaults_to_vendor_order(catalog):
    results = search_products(catalog, SearchOptions(query="   "))
    assert [r.vendor for r in results] == ["Alpha", "beta", "delta", "Écho"]


def test_query_results_respect_threshold(catalog):
    results = search_products(catalog, SearchOptions(query="whey protein"))

    assert results
    assert all(r.relevance_score >= MINIMUM_SCORE for r in results)
    assert "d" not in [r.id for r in results]


def test_relevance_order_without_sort(catalog):
    results = search_products(catalog, SearchOptions(query="whey"))
    scores = [r.relevance_score for r in results]
    assert scores == sorted(scores, reverse=True)


def test_explicit_sort_overrides_relevance(catalog):
    results = search_products(catalog, SearchOptions(query="whey", sort_by=SortOption.PRICE_ASC))

    assert [r.id for r in results] == ["c", "a"]
    assert all(r.relevance_score > 0 for r in results)


def test_limit_truncates(catalog):
    assert len(search_products(catalog, SearchOptions(query="", limit=2))) == 2
    assert len(search_products(catalog, SearchOptions(query="whey", limit=1))) == 1
    assert search_products(catalog, SearchOptions(query="whey", limit=0)) == []


def test_negative_limit_is_rejected(catalog):
    with pytest.raises(SearchError):
        search_products(catalog, SearchOptions(query="whey", limit=-1))


def test_zero_tokens_returns_nothing(catalog):
    with patch("catalog_search.services.search_engine.tokenize", return_value=[]):
        assert search_products(catalog, SearchOptions(query="whey")) == []


def test_search_is_idempotent(catalog):
    options = SearchOptions(query="whey protein", sort_by="rating-desc", limit=3)
    assert search_products(catalog, options) == search_products(catalog, options)


def test_search_does_not_mutate_input(catalog):
    before = list(catalog)
    search_products(catalog, SearchOptions(query="whey", sort_by="price-desc"))
    assert catalog == before


def test_filters_applied_before_scoring(catalog):
    filters = SearchFilters.build(in_stock=True)
    results = search_products(catalog, SearchOptions(query="whey", filters=filters))
    assert [r.id for r in results] == ["c"]


def test_vendor_filter_is_case_sensitive(catalog):
    assert [p.id for p in apply_filters(catalog, SearchFilters.build(vendors=["Alpha"]))] == ["b"]
    assert apply_filters(catalog, SearchFilters.build(vendors=["alpha"])) == []


def test_price_filter_is_inclusive(catalog):
    filters = SearchFilters.build(price_range=PriceRange(min=15.0, max=25.0))
    assert [p.id for p in apply_filters(catalog, filters)] == ["b", "c", "d"]


def test_filters_compose_conjunctively(catalog):
    filters = SearchFilters.build(
        vendors=["beta", "Alpha", "delta"],
        price_range=PriceRange(min=10.0, max=20.0),
        in_stock=True,
    )
    assert [p.id for p in apply_filters(catalog, filters)] == ["b", "d"]


def test_empty_filters_are_identity(catalog):
    filters = SearchFilters(vendors=frozenset(), price_range=PriceRange(0, float("inf")), in_stock=False)
    assert apply_filters(catalog, filters) == catalog
    assert apply_filters(catalog, None) == catalog


def test_empty_filters_normalize_to_none():
    assert SearchFilters.normalized(SearchFilters.build()) is None
    assert SearchFilters.normalized(None) is None
    active = SearchFilters.build(in_stock=True)
    assert SearchFilters.normalized(active) is active


@pytest.mark.parametrize("sort_by, key, descending", [
    ("price-asc", lambda r: r.price.amount, False),
    ("price-desc", lambda r: r.price.amount, True),
    ("rating-desc", lambda r: r.rating or 0, True),
])
def test_numeric_sorts_are_ordered(catalog, sort_by, key, descending):
    results = sort_results([SearchResult(product=p) for p in catalog], sort_by)
    keys = [key(r) for r in results]
    assert keys == sorted(keys, reverse=descending)


def test_recent_sort_puts_undated_last(catalog):
    results = sort_results([SearchResult(product=p) for p in catalog], "recent-desc")
    assert [r.id for r in results] == ["b", "a", "d", "c"]


def test_vendor_sorts_are_locale_aware(catalog):
    results = [SearchResult(product=p) for p in catalog]
    assert [r.vendor for r in sort_results(results, "vendor-asc")] == ["Alpha", "beta", "delta", "Écho"]
    assert [r.vendor for r in sort_results(results, "vendor-desc")] == ["Écho", "delta", "beta", "Alpha"]


def test_sort_is_stable_for_equal_keys(catalog):
    results = [SearchResult(product=p) for p in catalog]
    assert [r.id for r in sort_results(results, "price-asc")] == ["b", "d", "c", "a"]
    assert [r.id for r in sort_results(results, "price-desc")] == ["a", "c", "b", "d"]


def test_unknown_sort_falls_back_to_recent(catalog):
    results = [SearchResult(product=p) for p in catalog]
    assert sort_results(results, "bogus") == sort_results(results, SortOption.RECENT_DESC)
    assert SortOption.parse(None) is SortOption.RECENT_DESC


def test_paginate():
    results = [SearchResult(product=make_product(str(i))) for i in range(5)]

    first = paginate(results, page=1, page_size=2)
    assert [r.id for r in first.items] == ["0", "1"]
    assert first.total == 5
    assert first.has_more

    last = paginate(results, page=3, page_size=2)
    assert [r.id for r in last.items] == ["4"]
    assert not last.has_more

    with pytest.raises(SearchError):
        paginate(results, page=0, page_size=2)


def test_suggestions_collect_titles_and_vendors(catalog):
    results = search_products(catalog, SearchOptions(query="whey"))
    assert get_suggestions("whey", results) == ["Whey Isolate", "Whey Concentrate"]
    assert get_suggestions("w", results) == []


def test_suggestions_are_capped():
    results = [SearchResult(product=make_product(str(i), title=f"Whey {i}", vendor=f"Whey Co {i}"))
               for i in range(10)]
    suggestions = get_suggestions("WHEY", results)
    assert len(suggestions) == 6
    assert suggestions[:2] == ["Whey 0", "Whey Co 0"]


def test_unique_vendors_sorted(catalog):
    assert get_unique_vendors(catalog + [make_product("x", vendor="")]) == ["Alpha", "beta", "delta", "Écho"]


def test_price_range(catalog):
    bounds = get_price_range(catalog)
    assert (bounds.min, bounds.max) == (15.0, 30.0)
    empty = get_price_range([])
    assert (empty.min, empty.max) == (0.0, 0.0)

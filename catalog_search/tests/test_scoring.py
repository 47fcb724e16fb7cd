"""
Test field scoring and relevance aggregation.
"""
import pytest

from catalog_search.models.product import Money, Product
from catalog_search.services.search_engine import (
    FIELD_WEIGHTS,
    calculate_score,
    get_matches,
    score_field,
)


def make_product(**overrides) -> Product:
    fields = {
        "id": "1",
        "title": "Tablet",
        "vendor": "Acme",
        "price": Money(amount=10.0),
    }
    fields.update(overrides)
    return Product(**fields)


@pytest.mark.parametrize("field, expected", [
    ("Whey", 10),               # exact
    ("Whey Protein", 5),        # prefix
    ("Pure Whey Protein", 4),   # separate word
    ("Pure Whey", 4),           # word at end
    ("Prowheyx", 2),            # substring
    ("W-h-e-y Blend", 1),       # fuzzy subsequence
    ("Creatine", 0),            # no match
])
def test_score_ladder(field, expected):
    assert score_field(["whey"], field) == expected


def test_score_ladder_is_strictly_monotonic():
    ladder = ["Whey", "Whey Protein", "Pure Whey Protein", "Prowheyx", "W-h-e-y Blend"]
    scores = [score_field(["whey"], field, 2.0) for field in ladder]
    assert scores == sorted(scores, reverse=True)
    assert len(set(scores)) == len(scores)


def test_weight_multiplies_score():
    assert score_field(["whey"], "Whey", 3.0) == 30
    assert score_field(["whey"], "Whey", 0.5) == 5


def test_tokens_are_additive():
    # prefix (5) + word at end (4)
    assert score_field(["whey", "protein"], "Whey Protein") == 9


def test_fuzzy_requires_three_characters():
    assert score_field(["wh"], "w-h") == 0


def test_fuzzy_skipped_for_long_fields():
    field = "w-h-e-y " + "x" * 130
    assert score_field(["whey"], field) == 0


def test_empty_field_or_tokens_score_zero():
    assert score_field([], "Whey") == 0
    assert score_field(["whey"], None) == 0
    assert score_field(["whey"], "") == 0


def test_weight_ordering_across_fields():
    title_hit = make_product(title="Zinc")
    vendor_hit = make_product(vendor="Zinc")
    description_hit = make_product(description="Zinc")
    tags_hit = make_product(tags=("zinc",))

    scores = [calculate_score(p, ["zinc"]) for p in (title_hit, vendor_hit, description_hit, tags_hit)]

    assert scores == [
        10 * FIELD_WEIGHTS["title"],
        10 * FIELD_WEIGHTS["vendor"],
        10 * FIELD_WEIGHTS["description"],
        10 * FIELD_WEIGHTS["tags"],
    ]
    assert scores[0] > scores[1] > scores[2] > scores[3]


def test_description_falls_back_to_stripped_body_html():
    product = make_product(body_html="<p>Grass-fed <b>collagen</b></p>")
    assert calculate_score(product, ["collagen"]) == 4 * FIELD_WEIGHTS["description"]


def test_calculate_score_without_tokens():
    assert calculate_score(make_product(title="Zinc"), []) == 0


def test_get_matches_lists_fields_in_order():
    product = make_product(
        title="Magnesium Glycinate",
        vendor="Mag Co",
        description="Chelated magnesium",
        tags=("minerals", "magnesium"),
    )
    assert get_matches(product, ["mag"]) == ("title", "vendor", "description", "tags")


def test_get_matches_uses_substring_not_ladder():
    # Fuzzy-only hit scores but is not disclosed as a match
    product = make_product(title="W-h-e-y Blend")
    assert calculate_score(product, ["whey"]) == FIELD_WEIGHTS["title"]
    assert "title" not in get_matches(product, ["whey"])


def test_get_matches_checks_tags_individually():
    product = make_product(tags=("vegan", "protein"))
    assert get_matches(product, ["vegan"]) == ("tags",)
    # Joined text would contain "n p", single tags do not
    assert get_matches(product, ["n p"]) == ()

"""
Explicit normalization layer.
Converts Shopify product-export rows into the internal Product model.

Each embedded JSON column has its own total extractor: malformed JSON
yields the documented default, never an exception.
"""
import json
import math
import re
from typing import Dict, Any, Optional, Tuple

from catalog_search.errors import NormalizationError
from catalog_search.models.product import Money, Product, ProductImage, ProductStatus

DEFAULT_CURRENCY = "GBP"
DEFAULT_TITLE = "Untitled Product"
DEFAULT_VENDOR = "Unknown"

RATING_METAFIELD = "yotpo_reviews_average"
REVIEW_COUNT_METAFIELD = "yotpo_reviews_count"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


class ShopifyNormalizer:
    """
    Normalizes one header-keyed CSV row into a Product.
    Missing columns fall back to defaults; they never fail a row.
    """

    @staticmethod
    def normalize_row(row: Dict[str, str]) -> Product:
        """
        Convert a raw export row to the internal model.

        Returns:
            Normalized Product (not yet checked against the retention rule)

        Raises:
            NormalizationError: If the row cannot be normalized
        """
        try:
            return Product(
                id=row.get("ID") or "",
                title=row.get("TITLE") or DEFAULT_TITLE,
                handle=row.get("HANDLE") or "",
                vendor=row.get("VENDOR") or DEFAULT_VENDOR,
                product_type=row.get("PRODUCT_TYPE") or "",
                description=row.get("DESCRIPTION") or "",
                body_html=row.get("BODY_HTML") or "",
                tags=ShopifyNormalizer._parse_tags(row.get("TAGS")),
                status=ProductStatus.parse(row.get("STATUS")),
                created_at=row.get("CREATED_AT") or "",
                updated_at=row.get("UPDATED_AT") or "",
                price=ShopifyNormalizer._extract_price(row.get("PRICE_RANGE_V2")),
                compare_at_price=ShopifyNormalizer._extract_compare_at_price(
                    row.get("COMPARE_AT_PRICE_RANGE")
                ),
                inventory=ShopifyNormalizer._parse_inventory(row.get("TOTAL_INVENTORY")),
                images=ShopifyNormalizer._extract_images(row.get("FEATURED_IMAGE")),
                **ShopifyNormalizer._extract_rating(row.get("METAFIELDS")),
            )
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise NormalizationError(
                f"Failed to normalize row: {str(e)}. "
                f"Row id: {row.get('ID', 'unknown')}"
            ) from e

    @staticmethod
    def _safe_json(raw: Optional[str]) -> Any:
        """Parse JSON, returning None for empty or malformed input."""
        if not raw:
            return None
        try:
            return json.loads(raw)
        except (ValueError, TypeError):
            return None

    @staticmethod
    def _to_float(value: Any) -> float:
        """Numeric coercion; anything unparsable becomes 0."""
        if isinstance(value, bool):
            return 0.0
        try:
            amount = float(value if isinstance(value, (int, float)) else str(value).strip())
        except (ValueError, TypeError):
            return 0.0
        return amount if math.isfinite(amount) else 0.0

    @staticmethod
    def _extract_money(raw: Optional[str], key: str) -> Money:
        price_range = ShopifyNormalizer._safe_json(raw)
        if not isinstance(price_range, dict):
            return Money(amount=0.0, currency=DEFAULT_CURRENCY)

        variant_price = price_range.get(key)
        if not isinstance(variant_price, dict):
            return Money(amount=0.0, currency=DEFAULT_CURRENCY)

        return Money(
            amount=ShopifyNormalizer._to_float(variant_price.get("amount")),
            currency=variant_price.get("currency_code") or DEFAULT_CURRENCY,
        )

    @staticmethod
    def _extract_price(raw: Optional[str]) -> Money:
        """Minimum variant price; amount 0 / GBP when absent."""
        return ShopifyNormalizer._extract_money(raw, "min_variant_price")

    @staticmethod
    def _extract_compare_at_price(raw: Optional[str]) -> Optional[Money]:
        """Maximum compare-at price, or None when absent or zero."""
        money = ShopifyNormalizer._extract_money(raw, "max_variant_price")
        return money if money.amount > 0 else None

    @staticmethod
    def _extract_images(featured_raw: Optional[str]) -> Tuple[ProductImage, ...]:
        """The featured image becomes the only image entry."""
        featured = ShopifyNormalizer._safe_json(featured_raw)
        if not isinstance(featured, dict) or not featured.get("url"):
            return ()

        return (
            ProductImage(
                id=str(featured.get("id") or "featured"),
                url=str(featured["url"]),
                alt_text=featured.get("alt_text") or None,
                width=ShopifyNormalizer._optional_int(featured.get("width")),
                height=ShopifyNormalizer._optional_int(featured.get("height")),
            ),
        )

    @staticmethod
    def _optional_int(value: Any) -> Optional[int]:
        if isinstance(value, bool) or value is None:
            return None
        try:
            return int(value)
        except (ValueError, TypeError):
            return None

    @staticmethod
    def _metafield_value(metafields: Dict[str, Any], key: str) -> str:
        entry = metafields.get(key)
        if isinstance(entry, dict):
            value = entry.get("value")
            return "" if value is None else str(value)
        return ""

    @staticmethod
    def _extract_rating(metafields_raw: Optional[str]) -> Dict[str, Any]:
        """Rating and review count; zero or unparsable means absent."""
        metafields = ShopifyNormalizer._safe_json(metafields_raw)
        if not isinstance(metafields, dict):
            return {"rating": None, "review_count": None}

        rating = None
        match = _LEADING_FLOAT.match(
            ShopifyNormalizer._metafield_value(metafields, RATING_METAFIELD)
        )
        if match:
            value = float(match.group(1))
            rating = value if value > 0 else None

        review_count = None
        match = _LEADING_INT.match(
            ShopifyNormalizer._metafield_value(metafields, REVIEW_COUNT_METAFIELD)
        )
        if match:
            value = int(match.group(1))
            review_count = value if value > 0 else None

        return {"rating": rating, "review_count": review_count}

    @staticmethod
    def _parse_tags(tags_raw: Optional[str]) -> Tuple[str, ...]:
        """Comma-separated tags, trimmed, empties dropped."""
        if not tags_raw:
            return ()
        return tuple(tag.strip() for tag in tags_raw.split(",") if tag.strip())

    @staticmethod
    def _parse_inventory(raw: Optional[str]) -> int:
        """Leading integer of the inventory column, 0 when absent."""
        match = _LEADING_INT.match(raw or "")
        return int(match.group(1)) if match else 0


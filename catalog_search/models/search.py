"""
Search-side contracts: filters, options, sort criteria, scored results,
ingestion statistics.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Tuple, FrozenSet, Iterable, Union, Dict, Any

from catalog_search.models.product import Product


class SortOption(str, Enum):
    """Total orders the sort engine understands."""
    RECENT_DESC = "recent-desc"
    PRICE_ASC = "price-asc"
    PRICE_DESC = "price-desc"
    RATING_DESC = "rating-desc"
    VENDOR_ASC = "vendor-asc"
    VENDOR_DESC = "vendor-desc"

    @classmethod
    def parse(cls, raw: Union["SortOption", str, None]) -> "SortOption":
        """Unknown or missing names fall back to RECENT_DESC."""
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.RECENT_DESC


@dataclass(frozen=True)
class PriceRange:
    """Closed price interval."""
    min: float
    max: float

    def contains(self, amount: float) -> bool:
        return self.min <= amount <= self.max


@dataclass(frozen=True)
class SearchFilters:
    """Structured predicate applied before ranking."""
    vendors: Optional[FrozenSet[str]] = None
    price_range: Optional[PriceRange] = None
    in_stock: bool = False

    @classmethod
    def build(
        cls,
        vendors: Optional[Iterable[str]] = None,
        price_range: Optional[PriceRange] = None,
        in_stock: bool = False,
    ) -> "SearchFilters":
        return cls(
            vendors=frozenset(vendors) if vendors else None,
            price_range=price_range,
            in_stock=bool(in_stock),
        )

    @property
    def is_empty(self) -> bool:
        return not self.vendors and self.price_range is None and not self.in_stock

    @staticmethod
    def normalized(filters: Optional["SearchFilters"]) -> Optional["SearchFilters"]:
        """Collapse an all-empty filters value to None."""
        if filters is None or filters.is_empty:
            return None
        return filters


@dataclass(frozen=True)
class SearchOptions:
    """Inputs of one search call."""
    query: str = ""
    filters: Optional[SearchFilters] = None
    sort_by: Optional[Union[SortOption, str]] = None
    limit: Optional[int] = None


@dataclass(frozen=True)
class SearchResult:
    """
    A product plus its per-query relevance data.
    Attribute access falls through to the wrapped product.
    """
    product: Product
    relevance_score: float = 0.0
    matched_fields: Tuple[str, ...] = ()

    def __getattr__(self, name: str):
        # Only reached for names not defined on SearchResult itself
        if name == "product":
            raise AttributeError(name)
        return getattr(self.product, name)

    def to_dict(self) -> Dict[str, Any]:
        data = self.product.to_dict()
        data["relevance_score"] = self.relevance_score
        data["matched_fields"] = list(self.matched_fields)
        return data


@dataclass
class ParseStats:
    """Ingestion statistics surfaced to the caller."""
    total_rows: int = 0
    parsed_products: int = 0
    skipped_rows: int = 0
    errors: int = 0
    parse_time: float = 0.0

    def snapshot(self) -> "ParseStats":
        return ParseStats(
            total_rows=self.total_rows,
            parsed_products=self.parsed_products,
            skipped_rows=self.skipped_rows,
            errors=self.errors,
            parse_time=self.parse_time,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_rows": self.total_rows,
            "parsed_products": self.parsed_products,
            "skipped_rows": self.skipped_rows,
            "errors": self.errors,
            "parse_time": self.parse_time,
        }


@dataclass(frozen=True)
class ParseResult:
    """Products retained by one parse, with its statistics."""
    products: List[Product] = field(default_factory=list)
    stats: ParseStats = field(default_factory=ParseStats)


@dataclass(frozen=True)
class Page:
    """One slice of an ordered result list."""
    items: List[SearchResult]
    page: int
    page_size: int
    total: int

    @property
    def has_more(self) -> bool:
        return self.page * self.page_size < self.total

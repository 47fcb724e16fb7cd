"""
Canonical internal data contract.
Parser, search engine and HTTP layer all depend on this shape.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Dict, Any


class ProductStatus(str, Enum):
    """Lifecycle status of a catalog product."""
    ACTIVE = "ACTIVE"
    DRAFT = "DRAFT"
    ARCHIVED = "ARCHIVED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "ProductStatus":
        """Missing status means ACTIVE; anything else must match exactly or is UNKNOWN."""
        if raw is None or not str(raw).strip():
            return cls.ACTIVE
        try:
            return cls(str(raw).strip())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class Money:
    """Amount plus ISO currency code."""
    amount: float
    currency: str = "GBP"


@dataclass(frozen=True)
class ProductImage:
    """Product image contract."""
    id: str
    url: str
    alt_text: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None


@dataclass(frozen=True)
class Product:
    """
    Canonical internal model for catalog products.
    Only ACTIVE products with a positive price are ever built by the parser.
    """
    # Identity
    id: str
    title: str
    vendor: str
    price: Money

    # Descriptive text
    handle: str = ""
    product_type: str = ""
    description: str = ""
    body_html: str = ""
    tags: Tuple[str, ...] = ()

    # Lifecycle
    status: ProductStatus = ProductStatus.ACTIVE
    created_at: str = ""
    updated_at: str = ""

    # Commerce
    compare_at_price: Optional[Money] = None
    inventory: int = 0
    images: Tuple[ProductImage, ...] = ()

    # Reviews (None when absent, never zero)
    rating: Optional[float] = None
    review_count: Optional[int] = None

    @property
    def in_stock(self) -> bool:
        return self.inventory > 0

    @property
    def is_sellable(self) -> bool:
        """Retention rule applied at ingestion."""
        return self.status is ProductStatus.ACTIVE and self.price.amount > 0

    @property
    def searchable_description(self) -> str:
        """Description text used for scoring, falling back to the HTML body."""
        return self.description or self.body_html or ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "title": self.title,
            "handle": self.handle,
            "vendor": self.vendor,
            "product_type": self.product_type,
            "description": self.description,
            "tags": list(self.tags),
            "status": self.status.value,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "price": {"amount": self.price.amount, "currency": self.price.currency},
            "compare_at_price": (
                {"amount": self.compare_at_price.amount, "currency": self.compare_at_price.currency}
                if self.compare_at_price else None
            ),
            "inventory": self.inventory,
            "images": [
                {
                    "id": image.id,
                    "url": image.url,
                    "alt_text": image.alt_text,
                    "width": image.width,
                    "height": image.height,
                }
                for image in self.images
            ],
            "rating": self.rating,
            "review_count": self.review_count,
        }

"""Data models for storefront entities."""

import math
import re
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Leading numeric prefix, so "19.90 BRL" reads as 19.90 and "abc" reads as nothing.
_DECIMAL_PREFIX = re.compile(r"^\s*([+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)")
_INTEGER_PREFIX = re.compile(r"^\s*([+-]?\d+)")

# Largest price magnitude read from a feed (10**15); anything above becomes 0.
MAX_PRICE_EXPONENT = 15


def coerce_price(value: Any) -> Decimal:
    """
    Normalize any price input to a finite, non-negative Decimal.

    Values that cannot be read as a number, and negative or non-finite
    numbers, become 0. So do values too large to price anything.
    """
    if value is None or isinstance(value, bool):
        return Decimal("0")

    if isinstance(value, Decimal):
        price = value
    elif isinstance(value, (int, float)):
        price = Decimal(str(value))
    elif isinstance(value, str):
        match = _DECIMAL_PREFIX.match(value)
        if not match:
            return Decimal("0")
        try:
            price = Decimal(match.group(1))
        except InvalidOperation:
            return Decimal("0")
    else:
        return Decimal("0")

    if not price.is_finite() or price < 0:
        return Decimal("0")
    if price and price.adjusted() > MAX_PRICE_EXPONENT:
        return Decimal("0")
    return price


def coerce_stock(value: Any) -> int:
    """Normalize any stock/quantity input to a non-negative int (0 on failure)."""
    if value is None or isinstance(value, bool):
        return 0

    if isinstance(value, int):
        stock = value
    elif isinstance(value, float):
        stock = int(value) if math.isfinite(value) else 0
    elif isinstance(value, Decimal):
        stock = int(value) if value.is_finite() else 0
    elif isinstance(value, str):
        match = _INTEGER_PREFIX.match(value)
        if not match:
            return 0
        try:
            stock = int(match.group(1))
        except ValueError:
            # More digits than int() accepts from a string
            return 0
    else:
        return 0

    return max(stock, 0)


class DisplayMode(str, Enum):
    """Catalog layout preference."""

    GRID = "grid"
    LIST = "list"


class Theme(str, Enum):
    """Persisted colour theme preference."""

    LIGHT = "light"
    DARK = "dark"


class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class StockStatus(str, Enum):
    """Availability badge derived from a stock count."""

    OUT = "out"
    LOW = "low"
    HIGH = "high"


class ViewRegion(str, Enum):
    """Parts of the presentation that may need a redraw after an intent."""

    CATALOG = "catalog"
    CART = "cart"
    DETAIL = "detail"


class Product(BaseModel):
    """Represents a product parsed from the feed."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(min_length=1, description="Session-unique product ID")
    name: str = Field(min_length=1, description="Product name")
    description: str = Field(default="", description="Product description")
    price: Decimal = Field(default=Decimal("0"), ge=0, description="Unit price")
    stock: int = Field(default=0, ge=0, description="Units available")
    images: list[str] = Field(default_factory=list, description="Image URLs in display order")

    @field_validator("description", mode="before")
    @classmethod
    def _normalize_description(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("price", mode="before")
    @classmethod
    def _normalize_price(cls, value: Any) -> Decimal:
        return coerce_price(value)

    @field_validator("stock", mode="before")
    @classmethod
    def _normalize_stock(cls, value: Any) -> int:
        return coerce_stock(value)

    @field_validator("images", mode="before")
    @classmethod
    def _normalize_images(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = value.split(",")
        if not isinstance(value, (list, tuple)):
            return []
        return [url.strip() for url in value if isinstance(url, str) and url.strip()]

    @property
    def first_image(self) -> Optional[str]:
        return self.images[0] if self.images else None

    @property
    def in_stock(self) -> bool:
        return self.stock > 0


class CartLine(BaseModel):
    """Represents one product/quantity pairing in the cart."""

    product: Product
    quantity: int = Field(ge=1, description="Units of the product in the cart")

    @field_validator("quantity", mode="before")
    @classmethod
    def _normalize_quantity(cls, value: Any) -> int:
        return coerce_stock(value)

    @property
    def subtotal(self) -> Decimal:
        return self.product.price * self.quantity


class CartTotals(BaseModel):
    """Derived cart figures, recomputed on every request."""

    total_items: int = Field(default=0, description="Sum of line quantities")
    total_price: Decimal = Field(default=Decimal("0"), description="Sum of price x quantity")


class Notification(BaseModel):
    """Outcome of a core operation, delivered to the presentation layer."""

    kind: NotificationKind
    message: str
    product_id: Optional[str] = Field(None, description="Product the outcome refers to")
    quantity: Optional[int] = Field(None, description="Resulting cart quantity, when relevant")


class ImageNavigation(BaseModel):
    """State of the detail-view image slider controls."""

    index: int = 0
    count: int = 0
    current_image: Optional[str] = None
    prev_visible: bool = False
    next_visible: bool = False
    prev_enabled: bool = False
    next_enabled: bool = False


class ClearRequest(BaseModel):
    """Pending confirmation for emptying the cart."""

    token: str = Field(description="Token the caller must echo back to confirm")

"""In-memory product catalog."""

from typing import Iterable, Iterator, Optional

from .models import Product, StockStatus

LOW_STOCK_THRESHOLD = 5


def stock_status(stock: int) -> StockStatus:
    """Availability badge for a stock count."""
    if stock <= 0:
        return StockStatus.OUT
    if stock <= LOW_STOCK_THRESHOLD:
        return StockStatus.LOW
    return StockStatus.HIGH


class ProductCatalog:
    """Holds the full product set and answers text queries."""

    def __init__(self, products: Optional[Iterable[Product]] = None) -> None:
        self._products: list[Product] = list(products or [])

    def __len__(self) -> int:
        return len(self._products)

    def __iter__(self) -> Iterator[Product]:
        return iter(self._products)

    @property
    def products(self) -> list[Product]:
        return list(self._products)

    def replace(self, products: Iterable[Product]) -> None:
        """Swap in a freshly loaded product set."""
        self._products = list(products)

    def get(self, product_id: str) -> Optional[Product]:
        for product in self._products:
            if product.id == product_id:
                return product
        return None

    def filter(self, query: str = "") -> list[Product]:
        """
        Products whose name or description contains the query.

        Matching is case-insensitive; an empty query matches everything.
        """
        term = (query or "").lower()
        if not term:
            return list(self._products)
        return [
            product
            for product in self._products
            if term in product.name.lower() or term in product.description.lower()
        ]

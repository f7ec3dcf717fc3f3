"""Shopping cart state, stock rules and persistence."""

import json
import logging
import uuid
from decimal import Decimal
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from .models import CartLine, CartTotals, ClearRequest, Product, coerce_stock
from .notifier import Notifier
from .storage import StateStore

logger = logging.getLogger(__name__)


class Cart:
    """
    Owns the cart lines.

    Every mutating operation runs to completion in one call, in a fixed order:
    validate, mutate or reject, persist (only when something changed), notify.
    """

    def __init__(
        self,
        notifier: Optional[Notifier] = None,
        store: Optional[StateStore] = None,
        lines: Optional[Iterable[CartLine]] = None,
    ) -> None:
        """
        Initialize the cart.

        Args:
            notifier: Channel for operation outcomes
            store: Durable storage; the cart is saved after every mutation
            lines: Initial lines (one per product id, first one wins)
        """
        self.notifier = notifier or Notifier()
        self.store = store
        self._lines: dict[str, CartLine] = {}
        self._pending_clear: Optional[str] = None
        for line in lines or []:
            self._lines.setdefault(line.product.id, line)

    def __len__(self) -> int:
        return len(self._lines)

    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def get_line(self, product_id: str) -> Optional[CartLine]:
        return self._lines.get(product_id)

    def quantity_of(self, product_id: str) -> int:
        line = self._lines.get(product_id)
        return line.quantity if line else 0

    def totals(self) -> CartTotals:
        """Item count and price total, computed from the current lines."""
        total_items = 0
        total_price = Decimal("0")
        for line in self._lines.values():
            total_items += line.quantity
            total_price += line.subtotal
        return CartTotals(total_items=total_items, total_price=total_price)

    def _persist(self) -> None:
        if self.store is not None:
            self.store.save_cart(self.serialize())

    def add(self, product: Product) -> bool:
        """
        Add one unit of a product.

        Returns:
            False (with an error notification) when the cart already holds
            all available stock, True otherwise
        """
        line = self._lines.get(product.id)
        current = line.quantity if line else 0

        if current + 1 > product.stock:
            logger.info(f"Stock limit for {product.id}: {current}/{product.stock}")
            self.notifier.error(
                f"No more stock of {product.name}.", product_id=product.id, quantity=current
            )
            return False

        if line:
            line.quantity += 1
            message = f"{product.name} +1 in cart!"
        else:
            line = CartLine(product=product, quantity=1)
            self._lines[product.id] = line
            message = f"{product.name} added to cart!"

        self._persist()
        self.notifier.success(message, product_id=product.id, quantity=line.quantity)
        return True

    def set_quantity(self, product_id: str, delta: int) -> bool:
        """
        Step a line's quantity up or down by one.

        Dropping to zero removes the line. Going past stock is rejected with
        an error notification. Unknown product ids are ignored.

        Args:
            product_id: Product whose line changes
            delta: +1 or -1

        Returns:
            True if the cart changed

        Raises:
            ValueError: If delta is not +1 or -1
        """
        if delta not in (1, -1):
            raise ValueError(f"Quantity can only change by +1 or -1, got {delta}")

        line = self._lines.get(product_id)
        if line is None:
            return False

        product = line.product
        new_quantity = line.quantity + delta

        if new_quantity > product.stock:
            self.notifier.error(
                f"You reached the stock limit for {product.name}.",
                product_id=product_id,
                quantity=line.quantity,
            )
            return False

        if new_quantity <= 0:
            del self._lines[product_id]
            self._persist()
            self.notifier.success(
                f"{product.name} removed from cart.", product_id=product_id, quantity=0
            )
            return True

        line.quantity = new_quantity
        self._persist()
        self.notifier.success(
            f"Quantity of {product.name} updated to {new_quantity}.",
            product_id=product_id,
            quantity=new_quantity,
        )
        return True

    def remove(self, product_id: str) -> bool:
        """Remove a line. Returns False if the product was not in the cart."""
        line = self._lines.pop(product_id, None)
        if line is None:
            return False
        self._persist()
        self.notifier.success(
            f"{line.product.name} removed from cart.", product_id=product_id, quantity=0
        )
        return True

    def request_clear(self) -> ClearRequest:
        """Start the two-step clear; the caller must confirm with the token."""
        self._pending_clear = uuid.uuid4().hex
        return ClearRequest(token=self._pending_clear)

    def resolve_clear(self, token: str, confirmed: bool) -> bool:
        """
        Finish a pending clear request.

        An answer carrying the pending token consumes the request, whether
        confirmed or not. The cart is emptied only when it was confirmed.
        """
        if self._pending_clear is None or token != self._pending_clear:
            logger.info("Ignoring unknown or stale clear confirmation")
            return False

        self._pending_clear = None
        if not confirmed:
            return False

        self.clear()
        return True

    def clear(self) -> None:
        """Empty the cart unconditionally."""
        self._lines.clear()
        self._persist()
        self.notifier.success("Cart cleared!")

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready view of the lines and their totals."""
        totals = self.totals()
        return {
            "lines": [
                {**line.model_dump(mode="json"), "subtotal": str(line.subtotal)}
                for line in self._lines.values()
            ],
            "total_items": totals.total_items,
            "total_price": str(totals.total_price),
        }

    def serialize(self) -> str:
        """Durable form: a JSON array of product snapshots with quantities."""
        return json.dumps([line.model_dump(mode="json") for line in self._lines.values()])

    @classmethod
    def restore(
        cls,
        data: Any,
        notifier: Optional[Notifier] = None,
        store: Optional[StateStore] = None,
    ) -> "Cart":
        """
        Rebuild a cart from its durable form.

        Never raises: undecodable data yields an empty cart, and lines whose
        product is unusable are dropped.
        """
        if data is None:
            return cls(notifier=notifier, store=store)

        if isinstance(data, (str, bytes)):
            try:
                data = json.loads(data)
            except ValueError as e:
                logger.warning(f"Discarding stored cart: {e}")
                return cls(notifier=notifier, store=store)

        if not isinstance(data, list):
            logger.warning("Discarding stored cart: expected a list of lines")
            return cls(notifier=notifier, store=store)

        lines = [line for line in map(cls._restore_line, data) if line is not None]
        cart = cls(notifier=notifier, store=store, lines=lines)
        logger.info(f"Restored cart with {len(cart)} line(s)")
        return cart

    @staticmethod
    def _restore_line(entry: Any) -> Optional[CartLine]:
        if not isinstance(entry, dict):
            return None

        try:
            product = Product.model_validate(entry.get("product"))
        except ValidationError:
            return None

        quantity = min(coerce_stock(entry.get("quantity")), product.stock)
        if quantity < 1:
            return None
        return CartLine(product=product, quantity=quantity)

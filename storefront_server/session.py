"""Storefront session: the single owner of catalog, cart and view state."""

import logging
from typing import Callable, Optional

from .cart import Cart
from .catalog import ProductCatalog
from .config import StorefrontConfig
from .feed_client import FeedClient, FeedFetchError
from .feed_parser import IdGenerator, ProductIdGenerator, parse
from .models import ClearRequest, DisplayMode, Product, Theme, ViewRegion
from .notifier import Notifier
from .storage import StateStore
from .view_state import ViewState

logger = logging.getLogger(__name__)

RedrawListener = Callable[[set[ViewRegion]], None]

FEED_ERROR_MESSAGE = "Could not load products. Check the feed URL and its permissions."
INVALID_PRODUCT_MESSAGE = "Product out of stock or invalid!"


class StorefrontSession:
    """
    Wires the storefront components together.

    The presentation layer creates one session at startup, sends it intents,
    and listens for notifications and redraw requests. Call ``aclose()`` at
    shutdown.
    """

    def __init__(
        self,
        config: Optional[StorefrontConfig] = None,
        store: Optional[StateStore] = None,
        feed_client: Optional[FeedClient] = None,
        notifier: Optional[Notifier] = None,
        id_generator: Optional[IdGenerator] = None,
    ) -> None:
        self.config = config or StorefrontConfig()
        self.store = store or StateStore(self.config.state_file)
        self.feed_client = feed_client or FeedClient(self.config.feed_url, timeout=self.config.timeout)
        self.notifier = notifier or Notifier()
        self.id_generator = id_generator or ProductIdGenerator()

        self.catalog = ProductCatalog()
        self.cart = Cart.restore(self.store.load_cart(), notifier=self.notifier, store=self.store)
        self.view = ViewState(self.store)
        self.theme = self.store.load_theme()

        self._loading = False
        self._redraw_listeners: list[RedrawListener] = []

    def subscribe_redraw(self, listener: RedrawListener) -> None:
        self._redraw_listeners.append(listener)

    def _redraw(self, *regions: ViewRegion) -> None:
        for listener in list(self._redraw_listeners):
            listener(set(regions))

    @property
    def is_loading(self) -> bool:
        return self._loading

    async def load_feed(self) -> bool:
        """
        Fetch and parse the product feed into the catalog.

        Only one fetch may be in flight; a call made while another is running
        returns False without issuing a request. On failure the catalog is
        left empty and one error notification is emitted.
        """
        if self._loading:
            logger.info("Feed load already in progress")
            return False

        self._loading = True
        try:
            raw_text = await self.feed_client.fetch()
        except FeedFetchError as e:
            logger.error(f"Failed to load products: {e}")
            self.catalog.replace([])
            self.notifier.error(FEED_ERROR_MESSAGE)
            self._redraw(ViewRegion.CATALOG)
            return False
        finally:
            self._loading = False

        self.catalog.replace(parse(raw_text, self.id_generator))
        logger.info(f"Catalog loaded with {len(self.catalog)} product(s)")
        self._redraw(ViewRegion.CATALOG)
        return True

    def visible_products(self) -> list[Product]:
        """Catalog filtered by the active query."""
        return self.catalog.filter(self.view.query)

    def search(self, query: str) -> list[Product]:
        self.view.set_query(query)
        self._redraw(ViewRegion.CATALOG)
        return self.visible_products()

    def set_display_mode(self, mode: DisplayMode) -> list[Product]:
        """Switch display mode and re-run the active query."""
        self.view.set_display_mode(mode)
        return self.search(self.view.query)

    def set_theme(self, theme: Theme) -> Theme:
        self.theme = Theme(theme)
        self.store.save_theme(self.theme)
        return self.theme

    def toggle_theme(self) -> Theme:
        return self.set_theme(Theme.DARK if self.theme == Theme.LIGHT else Theme.LIGHT)

    def find_product(self, product_id: str) -> Optional[Product]:
        """Look a product up in the catalog, then among restored cart lines."""
        product = self.catalog.get(product_id)
        if product is None:
            line = self.cart.get_line(product_id)
            product = line.product if line else None
        return product

    @property
    def selected_product(self) -> Optional[Product]:
        if self.view.selected_product_id is None:
            return None
        return self.find_product(self.view.selected_product_id)

    def open_product(self, product_id: str) -> Optional[Product]:
        product = self.find_product(product_id)
        if product is None:
            return None
        self.view.open_product(product)
        self._redraw(ViewRegion.DETAIL)
        return product

    def close_product(self) -> None:
        self.view.close()
        self._redraw(ViewRegion.DETAIL)

    def next_image(self) -> bool:
        moved = self.view.next_image()
        if moved:
            self._redraw(ViewRegion.DETAIL)
        return moved

    def prev_image(self) -> bool:
        moved = self.view.prev_image()
        if moved:
            self._redraw(ViewRegion.DETAIL)
        return moved

    def add_to_cart(self, product_id: str) -> bool:
        product = self.find_product(product_id)
        if product is None:
            self.notifier.error(INVALID_PRODUCT_MESSAGE, product_id=product_id)
            return False

        added = self.cart.add(product)
        if added:
            self._redraw(ViewRegion.CART)
        return added

    def add_selected_to_cart(self) -> bool:
        """Add the product open in the detail view, closing the view on success."""
        product = self.selected_product
        if product is None or not product.in_stock:
            self.notifier.error(INVALID_PRODUCT_MESSAGE)
            return False

        added = self.cart.add(product)
        if added:
            self.view.close()
            self._redraw(ViewRegion.CART, ViewRegion.DETAIL)
        return added

    def update_quantity(self, product_id: str, delta: int) -> bool:
        changed = self.cart.set_quantity(product_id, delta)
        if changed:
            self._redraw(ViewRegion.CART)
        return changed

    def remove_from_cart(self, product_id: str) -> bool:
        removed = self.cart.remove(product_id)
        if removed:
            self._redraw(ViewRegion.CART)
        return removed

    def request_clear_cart(self) -> ClearRequest:
        return self.cart.request_clear()

    def resolve_clear_cart(self, token: str, confirmed: bool) -> bool:
        cleared = self.cart.resolve_clear(token, confirmed)
        if cleared:
            self._redraw(ViewRegion.CART)
        return cleared

    async def aclose(self) -> None:
        await self.feed_client.aclose()

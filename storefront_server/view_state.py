"""Transient UI selection exposed by the core."""

import logging
from typing import Optional

from .models import DisplayMode, ImageNavigation, Product
from .storage import StateStore

logger = logging.getLogger(__name__)


class ViewState:
    """Detail-view selection, image cursor, display mode and active query."""

    def __init__(self, store: Optional[StateStore] = None) -> None:
        self.store = store
        self.selected_product_id: Optional[str] = None
        self.image_index = 0
        self.query = ""
        self.display_mode = store.load_display_mode() if store else DisplayMode.GRID
        self._images: list[str] = []

    @property
    def has_selection(self) -> bool:
        return self.selected_product_id is not None

    @property
    def current_image(self) -> Optional[str]:
        if not self.has_selection or not self._images:
            return None
        return self._images[self.image_index]

    def open_product(self, product: Product) -> None:
        """Select a product for the detail view, starting at its first image."""
        self.selected_product_id = product.id
        self._images = list(product.images)
        self.image_index = 0

    def close(self) -> None:
        self.selected_product_id = None
        self._images = []
        self.image_index = 0

    def _move(self, step: int) -> bool:
        new_index = self.image_index + step
        if not self.has_selection or not 0 <= new_index < len(self._images):
            return False
        self.image_index = new_index
        return True

    def next_image(self) -> bool:
        """Advance the image cursor. Returns False at the last image."""
        return self._move(1)

    def prev_image(self) -> bool:
        """Move the image cursor back. Returns False at the first image."""
        return self._move(-1)

    def navigation(self) -> ImageNavigation:
        """
        Slider control state.

        With one image or fewer both controls are hidden; otherwise they are
        shown and disabled at the matching end of the sequence.
        """
        count = len(self._images) if self.has_selection else 0
        visible = count > 1
        return ImageNavigation(
            index=self.image_index,
            count=count,
            current_image=self.current_image,
            prev_visible=visible,
            next_visible=visible,
            prev_enabled=visible and self.image_index > 0,
            next_enabled=visible and self.image_index < count - 1,
        )

    def set_query(self, query: str) -> None:
        self.query = query or ""

    def set_display_mode(self, mode: DisplayMode) -> None:
        """Switch the display mode and persist it."""
        self.display_mode = DisplayMode(mode)
        if self.store is not None:
            self.store.save_display_mode(self.display_mode)
        logger.info(f"Display mode set to {self.display_mode.value}")

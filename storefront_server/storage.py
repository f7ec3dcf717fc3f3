"""Durable storage for cart contents and display preferences."""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from .models import DisplayMode, Theme

logger = logging.getLogger(__name__)

CART_KEY = "storefront_cart"
DISPLAY_MODE_KEY = "storefront_display_mode"
THEME_KEY = "storefront_theme"


class StateStore:
    """Key/value state persisted to a JSON file."""

    def __init__(self, state_file: Optional[str] = None) -> None:
        """
        Initialize the state store.

        Args:
            state_file: Path to the state file (default: ~/.storefront_state.json)
        """
        if state_file is None:
            state_file = str(Path.home() / ".storefront_state.json")
        self.state_file = state_file
        self.values: dict[str, Any] = self._load_state()

    def _load_state(self) -> dict[str, Any]:
        """Load saved state from file, falling back to empty state."""
        if not os.path.exists(self.state_file):
            return {}

        try:
            with open(self.state_file) as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not load state from {self.state_file}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring state file {self.state_file}: expected a JSON object")
            return {}

        logger.info(f"Loaded state from {self.state_file}")
        return data

    def _save_state(self) -> None:
        """Write all values to the state file."""
        try:
            with open(self.state_file, "w") as f:
                json.dump(self.values, f, indent=2)
        except OSError as e:
            logger.error(f"Could not save state: {e}")

    def get(self, key: str) -> Any:
        return self.values.get(key)

    def set(self, key: str, value: Any) -> None:
        self.values[key] = value
        self._save_state()

    def load_cart(self) -> Optional[str]:
        """Serialized cart, or None if nothing usable was stored."""
        value = self.get(CART_KEY)
        return value if isinstance(value, str) else None

    def save_cart(self, serialized: str) -> None:
        self.set(CART_KEY, serialized)

    def load_display_mode(self) -> DisplayMode:
        try:
            return DisplayMode(self.get(DISPLAY_MODE_KEY) or DisplayMode.GRID)
        except ValueError:
            logger.warning(f"Unknown display mode in state file, using {DisplayMode.GRID.value}")
            return DisplayMode.GRID

    def save_display_mode(self, mode: DisplayMode) -> None:
        self.set(DISPLAY_MODE_KEY, mode.value)

    def load_theme(self) -> Theme:
        try:
            return Theme(self.get(THEME_KEY) or Theme.LIGHT)
        except ValueError:
            logger.warning(f"Unknown theme in state file, using {Theme.LIGHT.value}")
            return Theme.LIGHT

    def save_theme(self, theme: Theme) -> None:
        self.set(THEME_KEY, theme.value)

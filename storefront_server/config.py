"""Runtime configuration."""

import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class StorefrontConfig(BaseModel):
    """Settings shared by the MCP and HTTP servers."""

    feed_url: Optional[str] = Field(None, description="URL of the published CSV product feed")
    state_file: str = Field(
        default_factory=lambda: str(Path.home() / ".storefront_state.json"),
        description="Where the cart and preferences are stored",
    )
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Feed request timeout in seconds")
    log_level: str = Field(default="INFO", description="Logging level name")

    @classmethod
    def from_env(cls, **overrides) -> "StorefrontConfig":
        """
        Build configuration from environment variables.

        Reads STOREFRONT_FEED_URL, STOREFRONT_STATE_FILE, STOREFRONT_TIMEOUT and
        STOREFRONT_LOG_LEVEL. Keyword overrides that are not None win.
        """
        values = {}

        feed_url = os.environ.get("STOREFRONT_FEED_URL")
        if feed_url:
            values["feed_url"] = feed_url

        state_file = os.environ.get("STOREFRONT_STATE_FILE")
        if state_file:
            values["state_file"] = state_file

        timeout = os.environ.get("STOREFRONT_TIMEOUT")
        if timeout:
            try:
                values["timeout"] = float(timeout)
                if not values["timeout"] > 0:
                    raise ValueError("timeout must be positive")
            except ValueError:
                logger.warning(f"Invalid STOREFRONT_TIMEOUT={timeout!r}, using {DEFAULT_TIMEOUT}")
                values["timeout"] = DEFAULT_TIMEOUT

        log_level = os.environ.get("STOREFRONT_LOG_LEVEL")
        if log_level:
            values["log_level"] = log_level.upper()

        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    def to_env(self) -> dict[str, str]:
        """Environment variables that make from_env() rebuild this configuration."""
        env = {
            "STOREFRONT_STATE_FILE": self.state_file,
            "STOREFRONT_TIMEOUT": str(self.timeout),
            "STOREFRONT_LOG_LEVEL": self.log_level,
        }
        if self.feed_url:
            env["STOREFRONT_FEED_URL"] = self.feed_url
        return env

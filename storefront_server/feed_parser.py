"""Product feed parsing."""

import logging
import random
import re
import string
import time
from typing import Callable, Optional

from .models import Product

logger = logging.getLogger(__name__)

IdGenerator = Callable[[], str]

FEED_COLUMNS = 5
DELIMITER = ","
QUOTE = '"'

_LINE_BREAK = re.compile(r"\r?\n")
_BASE36 = string.digits + string.ascii_lowercase


class ProductIdGenerator:
    """
    Issues ``product-<epoch ms>-<random>`` identifiers.

    Every issued id is remembered so that an id is never handed out twice
    during the lifetime of the generator.
    """

    def __init__(self, prefix: str = "product") -> None:
        self.prefix = prefix
        self._issued: set[str] = set()

    def __call__(self) -> str:
        while True:
            suffix = "".join(random.choices(_BASE36, k=9))
            product_id = f"{self.prefix}-{int(time.time() * 1000)}-{suffix}"
            if product_id not in self._issued:
                self._issued.add(product_id)
                return product_id


class SequentialIdGenerator:
    """Deterministic ids (``product-1``, ``product-2``, ...)."""

    def __init__(self, prefix: str = "product", start: int = 1) -> None:
        self.prefix = prefix
        self._next = start

    def __call__(self) -> str:
        product_id = f"{self.prefix}-{self._next}"
        self._next += 1
        return product_id


def split_row(row: str) -> list[str]:
    """
    Split a feed row into trimmed fields.

    A quote character toggles quoted mode, in which the delimiter is kept as
    text. Quotes are dropped from the output and never un-escaped.
    """
    fields = []
    current = []
    in_quote = False

    for char in row:
        if char == QUOTE:
            in_quote = not in_quote
        elif char == DELIMITER and not in_quote:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)

    fields.append("".join(current).strip())
    return fields


def parse_row(row: str, id_generator: IdGenerator) -> Optional[Product]:
    """Build a product from one feed row, or None when the row is rejected."""
    values = split_row(row)
    if len(values) < FEED_COLUMNS or not values[0]:
        return None

    name, description, price, stock, images = values[:FEED_COLUMNS]

    return Product(
        id=id_generator(),
        name=name,
        description=description,
        # Feed prices use a decimal comma ("19,90")
        price=price.replace(",", ".", 1),
        stock=stock,
        images=images.split(DELIMITER),
    )


def parse(raw_text: str, id_generator: Optional[IdGenerator] = None) -> list[Product]:
    """
    Parse raw feed text into products.

    Args:
        raw_text: Feed contents; the first line is a header and is skipped
        id_generator: Source of product ids (default: ProductIdGenerator)

    Returns:
        Products in feed order. Malformed rows are skipped silently.
    """
    if id_generator is None:
        id_generator = ProductIdGenerator()

    rows = _LINE_BREAK.split(raw_text)[1:]
    products = []
    for row in rows:
        product = parse_row(row, id_generator)
        if product is not None:
            products.append(product)

    logger.debug(f"Parsed {len(products)} product(s) from {len(rows)} row(s)")
    return products

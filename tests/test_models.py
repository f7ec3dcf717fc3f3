from decimal import Decimal

import pytest
from pydantic import ValidationError

from storefront_server.models import CartLine, Product, coerce_price, coerce_stock


@pytest.mark.parametrize(
    "value, expected",
    [
        ("19.90", Decimal("19.90")),
        ("19.90 BRL", Decimal("19.90")),
        (".5", Decimal("0.5")),
        ("1e2", Decimal("100")),
        (7, Decimal("7")),
        (2.5, Decimal("2.5")),
        ("abc", Decimal("0")),
        ("", Decimal("0")),
        (None, Decimal("0")),
        (True, Decimal("0")),
        (-3, Decimal("0")),
        (float("nan"), Decimal("0")),
        (float("inf"), Decimal("0")),
        ([1], Decimal("0")),
        ("1e999999", Decimal("0")),
        ("9" * 40, Decimal("0")),
        (1e300, Decimal("0")),
        ("999999999999999", Decimal("999999999999999")),
    ],
)
def test_coerce_price(value, expected):
    assert coerce_price(value) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("3", 3),
        ("3.7", 3),
        (" 12 units", 12),
        (4.9, 4),
        (Decimal("2"), 2),
        ("-1", 0),
        ("x", 0),
        (None, 0),
        (float("nan"), 0),
        ("9" * 5000, 0),
    ],
)
def test_coerce_stock(value, expected):
    assert coerce_stock(value) == expected


def test_product_normalizes_loose_input():
    product = Product(
        id=" p-1 ",
        name=" Lamp ",
        description=None,
        price="oops",
        stock="many",
        images="http://x/1.png, ,http://x/2.png",
    )

    assert product.id == "p-1"
    assert product.name == "Lamp"
    assert product.description == ""
    assert product.price == Decimal("0")
    assert product.stock == 0
    assert product.images == ["http://x/1.png", "http://x/2.png"]
    assert product.first_image == "http://x/1.png"
    assert not product.in_stock


def test_product_requires_id_and_name():
    with pytest.raises(ValidationError):
        Product(id="", name="Lamp")
    with pytest.raises(ValidationError):
        Product(id="p-1", name="  ")


def test_cart_line_subtotal(make_product):
    line = CartLine(product=make_product(price="2.50"), quantity=3)

    assert line.subtotal == Decimal("7.50")


def test_cart_line_rejects_zero_quantity(make_product):
    with pytest.raises(ValidationError):
        CartLine(product=make_product(), quantity="none")

import json
from decimal import Decimal

import pytest

from storefront_server.cart import Cart
from storefront_server.models import NotificationKind

from conftest import DummyStore


@pytest.fixture
def dummy_store():
    return DummyStore()


@pytest.fixture
def cart(notifier, dummy_store):
    return Cart(notifier=notifier, store=dummy_store)


def expected_total(cart):
    return sum((line.product.price * line.quantity for line in cart.lines), Decimal("0"))


def test_add_up_to_stock_then_reject(cart, received, dummy_store, make_product):
    product = make_product(stock=3)

    results = [cart.add(product) for _ in range(3)]
    assert results == [True, True, True]
    assert cart.quantity_of(product.id) == 3
    assert len(dummy_store.saves) == 3

    assert cart.add(product) is False
    assert cart.quantity_of(product.id) == 3
    assert len(dummy_store.saves) == 3
    assert received[-1].kind == NotificationKind.ERROR
    assert received[-1].message == "No more stock of Widget."


def test_single_stock_product_added_twice(cart, make_product):
    product = make_product(stock=1)

    assert cart.add(product) is True
    assert cart.add(product) is False

    assert len(cart) == 1
    assert cart.lines[0].quantity == 1


def test_out_of_stock_product_is_never_added(cart, received, make_product):
    assert cart.add(make_product(stock=0)) is False

    assert cart.is_empty
    assert received[-1].kind == NotificationKind.ERROR


def test_add_notifies_with_name_and_resulting_quantity(cart, received, make_product):
    product = make_product(name="Lamp", stock=5)

    cart.add(product)
    cart.add(product)

    assert [n.message for n in received] == ["Lamp added to cart!", "Lamp +1 in cart!"]
    assert received[-1].kind == NotificationKind.SUCCESS
    assert received[-1].product_id == product.id
    assert received[-1].quantity == 2


def test_persist_happens_before_notify(dummy_store, make_product):
    seen_saves = []
    cart = Cart(store=dummy_store)
    cart.notifier.subscribe(lambda n: seen_saves.append(len(dummy_store.saves)))

    cart.add(make_product())

    assert seen_saves == [1]


def test_decrement_last_unit_removes_line(cart, received, dummy_store, make_product):
    product = make_product()
    cart.add(product)

    assert cart.set_quantity(product.id, -1) is True

    assert cart.get_line(product.id) is None
    assert received[-1].kind == NotificationKind.SUCCESS
    assert received[-1].message == "Widget removed from cart."
    assert len(dummy_store.saves) == 2

    assert cart.remove(product.id) is False
    assert len(dummy_store.saves) == 2


def test_increment_past_stock_is_rejected_without_persisting(cart, received, dummy_store, make_product):
    product = make_product(stock=2)
    cart.add(product)

    assert cart.set_quantity(product.id, 1) is True
    assert cart.set_quantity(product.id, 1) is False

    assert cart.quantity_of(product.id) == 2
    assert len(dummy_store.saves) == 2
    assert received[-1].message == "You reached the stock limit for Widget."
    assert received[-1].kind == NotificationKind.ERROR


def test_quantity_step_must_be_one(cart, make_product):
    product = make_product()
    cart.add(product)

    with pytest.raises(ValueError):
        cart.set_quantity(product.id, 2)


def test_unknown_product_is_a_no_op(cart, received, dummy_store):
    assert cart.set_quantity("missing", 1) is False
    assert cart.remove("missing") is False

    assert received == []
    assert dummy_store.saves == []


def test_totals_follow_every_mutation(cart, make_product):
    lamp = make_product(product_id="lamp", price="19.90", stock=4)
    mug = make_product(product_id="mug", price="5", stock=2)

    steps = [
        lambda: cart.add(lamp),
        lambda: cart.add(mug),
        lambda: cart.add(lamp),
        lambda: cart.set_quantity("mug", 1),
        lambda: cart.set_quantity("lamp", -1),
        lambda: cart.remove("mug"),
        lambda: cart.add(mug),
    ]
    for step in steps:
        step()
        totals = cart.totals()
        assert totals.total_items == sum(line.quantity for line in cart.lines)
        assert totals.total_price == expected_total(cart)

    assert cart.totals().total_items == 2
    assert cart.totals().total_price == Decimal("24.90")


def test_clear_needs_matching_confirmed_token(cart, received, make_product):
    cart.add(make_product())

    request = cart.request_clear()
    assert cart.resolve_clear("wrong", True) is False
    assert cart.resolve_clear(request.token, False) is False
    assert cart.resolve_clear(request.token, True) is False
    assert not cart.is_empty

    request = cart.request_clear()
    assert cart.resolve_clear(request.token, True) is True
    assert cart.is_empty
    assert received[-1].message == "Cart cleared!"


def test_serialize_restore_round_trip(cart, make_product):
    cart.add(make_product(product_id="a", stock=3))
    cart.add(make_product(product_id="a", stock=3))
    cart.add(make_product(product_id="b", price="4.25", images=["http://x/b.png"]))

    restored = Cart.restore(cart.serialize())

    assert {(l.product.id, l.quantity) for l in restored.lines} == {("a", 2), ("b", 1)}
    assert restored.get_line("b").product.price == Decimal("4.25")
    assert restored.get_line("b").product.images == ["http://x/b.png"]
    assert restored.totals() == cart.totals()


@pytest.mark.parametrize("data", ["not json{", "{}", '"text"', b"\xff\xfe", None, 42])
def test_restore_corrupted_data_gives_empty_cart(data):
    assert Cart.restore(data).is_empty


def test_restore_coerces_and_drops_unusable_lines():
    stored = json.dumps(
        [
            {"product": {"id": "a", "name": "A", "price": "abc", "stock": "5"}, "quantity": "2"},
            {"product": {"name": "No id", "price": 1, "stock": 1}, "quantity": 1},
            {"product": {"id": "", "name": "Blank id", "stock": 1}, "quantity": 1},
            {"product": {"id": "b", "name": "B", "price": 3, "stock": 2}, "quantity": 9},
            {"product": {"id": "c", "name": "C", "price": 3, "stock": 0}, "quantity": 1},
            {"product": {"id": "d", "name": "D", "price": 3, "stock": 2}, "quantity": 0},
            {"product": {"id": "a", "name": "A again", "stock": 5}, "quantity": 1},
            "garbage",
        ]
    )

    cart = Cart.restore(stored)

    assert [(l.product.id, l.quantity) for l in cart.lines] == [("a", 2), ("b", 2)]
    line = cart.get_line("a")
    assert line.product.price == Decimal("0")
    assert line.product.stock == 5
    assert line.product.name == "A"


def test_restored_cart_persists_next_mutation(dummy_store, make_product):
    original = Cart()
    original.add(make_product(stock=2))

    restored = Cart.restore(original.serialize(), store=dummy_store)
    restored.set_quantity("p-1", 1)

    assert json.loads(dummy_store.saves[-1])[0]["quantity"] == 2


def test_to_dict_reports_lines_and_totals(cart, make_product):
    cart.add(make_product(price="2.50"))
    cart.add(make_product(price="2.50"))

    data = cart.to_dict()

    assert data["total_items"] == 2
    assert Decimal(data["total_price"]) == Decimal("5")
    assert data["lines"][0]["quantity"] == 2
    assert Decimal(data["lines"][0]["subtotal"]) == Decimal("5")


def test_remove_persists_then_notifies(cart, received, dummy_store, make_product):
    product = make_product(stock=2)
    cart.add(product)
    cart.add(product)

    assert cart.remove(product.id) is True

    assert cart.is_empty
    assert len(dummy_store.saves) == 3
    assert received[-1].kind == NotificationKind.SUCCESS
    assert received[-1].message == "Widget removed from cart."
    assert received[-1].quantity == 0


def test_totals_stay_finite_for_oversized_feed_price(cart, make_product):
    product = make_product(price="1e999999", stock=20)

    for _ in range(20):
        cart.add(product)

    totals = cart.totals()
    assert totals.total_items == 20
    assert totals.total_price == Decimal("0")
    assert cart.to_dict()["total_price"] == "0"

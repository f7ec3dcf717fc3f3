"""Shared fixtures for storefront tests."""

import pytest

from storefront_server.models import Product
from storefront_server.notifier import Notifier
from storefront_server.storage import StateStore

FEED = (
    "Name,Description,Price,Stock,Images\n"
    '"Widget A","A nice widget","19,90",3,"http://x/1.png,http://x/2.png"\n'
    '"Gadget","Handy tool","5,00",1,""\n'
    '"Gizmo","Shiny thing","7",0,http://x/3.png\n'
)


class DummyStore:
    """Records saves instead of touching the filesystem."""

    def __init__(self, cart=None):
        self.cart = cart
        self.saves = []

    def load_cart(self):
        return self.cart

    def save_cart(self, serialized):
        self.cart = serialized
        self.saves.append(serialized)


@pytest.fixture
def store(tmp_path):
    return StateStore(str(tmp_path / "state.json"))


@pytest.fixture
def received():
    return []


@pytest.fixture
def notifier(received):
    return Notifier(received.append)


@pytest.fixture
def make_product():
    def factory(product_id="p-1", name="Widget", price="10", stock=3, images=None, description=""):
        return Product(
            id=product_id,
            name=name,
            description=description,
            price=price,
            stock=stock,
            images=images or [],
        )

    return factory

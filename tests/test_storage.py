import json

from storefront_server.models import DisplayMode, Theme
from storefront_server.storage import CART_KEY, DISPLAY_MODE_KEY, THEME_KEY, StateStore


def test_missing_file_gives_defaults(tmp_path):
    store = StateStore(str(tmp_path / "state.json"))

    assert store.load_cart() is None
    assert store.load_display_mode() == DisplayMode.GRID
    assert store.load_theme() == Theme.LIGHT


def test_values_survive_reload(tmp_path):
    path = str(tmp_path / "state.json")
    store = StateStore(path)
    store.save_cart("[]")
    store.save_display_mode(DisplayMode.LIST)
    store.save_theme(Theme.DARK)

    reloaded = StateStore(path)

    assert reloaded.load_cart() == "[]"
    assert reloaded.load_display_mode() == DisplayMode.LIST
    assert reloaded.load_theme() == Theme.DARK
    with open(path) as f:
        assert set(json.load(f)) == {CART_KEY, DISPLAY_MODE_KEY, THEME_KEY}


def test_corrupt_file_degrades_to_defaults(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("{not json")

    store = StateStore(str(path))

    assert store.values == {}
    assert store.load_display_mode() == DisplayMode.GRID


def test_non_object_file_degrades_to_defaults(tmp_path):
    path = tmp_path / "state.json"
    path.write_text("[1, 2, 3]")

    assert StateStore(str(path)).values == {}


def test_unknown_or_mistyped_values_degrade(tmp_path):
    path = tmp_path / "state.json"
    path.write_text(json.dumps({CART_KEY: [1], DISPLAY_MODE_KEY: "carousel", THEME_KEY: 7}))

    store = StateStore(str(path))

    assert store.load_cart() is None
    assert store.load_display_mode() == DisplayMode.GRID
    assert store.load_theme() == Theme.LIGHT


def test_write_failure_is_not_raised(tmp_path):
    store = StateStore(str(tmp_path / "missing-dir" / "state.json"))

    store.save_cart("[]")

    assert store.load_cart() == "[]"

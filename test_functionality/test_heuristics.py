"""Defaults derived from item names: category, price, threshold, SKU."""
import pytest

from application.heuristics import (
    guess_category,
    guess_price,
    guess_sku,
    guess_threshold,
    normalize_category,
    packing_sku_from_name,
    unique_sku,
)


@pytest.mark.parametrize("name, category", [
    ("Black T-Shirt", "Apparel"),
    ("Packing materials bundle", "Packing Materials"),
    ("Poly mailers", "Packing Materials"),
    ("DTF film roll", "Materials"),
    ("Ink cartridge", "Materials"),
    ("Pink hoodie", "Apparel"),
    ("Thinking cap", "Headwear"),
    ("Chat mug", "Drinkware"),
    ("Holo sticker", "Stickers"),
    ("Widget", "General"),
])
def test_guess_category(name, category):
    assert guess_category(name) == category


@pytest.mark.parametrize("name, price", [
    ("Zip hoodie", 35.0),
    ("Black T-Shirt", 15.0),
    ("Blank shirt", 5.0),
    ("Travel mug", 12.0),
    ("Widget", 9.99),
])
def test_guess_price(name, price):
    assert guess_price(name) == price


@pytest.mark.parametrize("stock, threshold", [
    (0, 5), (10, 3), (100, 10), (1000, 25),
])
def test_guess_threshold(stock, threshold):
    assert guess_threshold(stock) == threshold


def test_guess_sku_uses_category_code_and_first_three_words():
    assert guess_sku("Black T-Shirt", suffix=lambda: "ABCD") == "APP-BLACK-T-SHIRT-ABCD"
    assert guess_sku("Large poly mailer bag", "Packing Materials", suffix=lambda: "0000") \
        == "PKG-LARGE-POLY-MAILER-0000"


def test_unique_sku_appends_counter_on_collision():
    assert unique_sku("mug", []) == "MUG"
    assert unique_sku("MUG", ["mug"]) == "MUG-001"
    assert unique_sku("MUG", ["MUG", "MUG-001"]) == "MUG-002"


def test_normalize_category():
    assert normalize_category("raw materials") == "Materials"
    assert normalize_category("packaging") == "Packing Materials"
    assert normalize_category("stickers") == "Stickers"
    assert normalize_category("") == "General"


def test_packing_sku_from_name():
    assert packing_sku_from_name("Poly Mailer 10x13") == "PKG-POLY-MAILER-10X13"

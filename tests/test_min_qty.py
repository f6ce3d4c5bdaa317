import pytest

from app.models import Combination, Product
from app.services.min_qty import (
    can_purchase,
    format_min_qty_message,
    get_effective_min_qty,
    round_to_valid_multiple,
    validate_min_qty_rules,
    validate_quantity,
)


def product(**kw) -> Product:
    data = {"title": "P", "min_order_qty_retail": 2, "min_order_qty_wholesale": 10}
    data.update(kw)
    return Product(**data)


def test_effective_min_uses_purchase_mode():
    p = product()
    assert get_effective_min_qty(p, None, "piece") == 2
    assert get_effective_min_qty(p, None, "quantity") == 10


def test_combination_override_wins():
    combo = Combination(id="c", min_order_qty_retail=3, min_order_qty_wholesale=None)
    p = product()
    assert get_effective_min_qty(p, combo, "piece") == 3
    assert get_effective_min_qty(p, combo, "quantity") == 10


def test_invalid_overrides_fall_back():
    combo = Combination(id="c", min_order_qty_retail=0)
    assert get_effective_min_qty(product(min_order_qty_retail=0), combo, "piece") == 1
    assert get_effective_min_qty(None, None, "piece") == 1


@pytest.mark.parametrize("requested", [0, 1, 4])
def test_below_minimum_suggests_minimum(requested):
    check = validate_quantity(requested, 5, None)
    assert not check.valid
    assert check.suggested_qty == 5


def test_over_stock_suggests_stock():
    check = validate_quantity(8, 2, 6)
    assert not check.valid
    assert check.suggested_qty == 6


def test_stock_below_minimum_cannot_be_ordered():
    check = validate_quantity(5, 5, 3)
    assert not check.valid
    assert check.suggested_qty is None
    assert "minimum order is 5" in check.message


def test_unlimited_stock_never_blocks():
    assert validate_quantity(10_000, 1, None).valid


def test_lot_multiple():
    check = validate_quantity(7, 5, None, lot_multiple=True)
    assert not check.valid
    assert check.suggested_qty == 10

    capped = validate_quantity(20, 5, 12, lot_multiple=True)
    assert capped.suggested_qty == 10

    assert validate_quantity(7, 5, None).valid


def test_min_qty_rules():
    assert validate_min_qty_rules("piece", 1, 0).valid
    both = validate_min_qty_rules("both", 0, 0)
    assert not both.valid
    assert len(both.errors) == 2
    assert not validate_min_qty_rules("quantity", 5, 0).valid


def test_round_to_valid_multiple():
    assert round_to_valid_multiple(3, 5) == 5
    assert round_to_valid_multiple(11, 5) == 15
    assert round_to_valid_multiple(11, 5, round_up=False) == 10
    assert round_to_valid_multiple(10, 5) == 10


def test_can_purchase_and_message():
    assert can_purchase(5, None)
    assert not can_purchase(5, 3)
    assert format_min_qty_message(1, "piece") == ""
    assert format_min_qty_message(6, "quantity") == "Commande minimum: 6 unités (gros). Vendu par lots de 6."

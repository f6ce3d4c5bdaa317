import pytest

from app.errors import InsufficientStock, ProductNotFound
from app.models import Combination, Product
from app.services.catalog import parse_combinations
from app.services.stock import (
    StockLine,
    aggregate_lines,
    check_item_stock,
    consume_stock_for_items,
    restore_stock_for_items,
)


def test_check_item_stock():
    p = Product(title="P", available_quantity=4)
    assert check_item_stock(p, None, 4).valid
    over = check_item_stock(p, None, 5)
    assert not over.valid
    assert over.available == 4

    combo = Combination(id="c", stock=2)
    assert check_item_stock(p, combo, 3).available == 2

    assert not check_item_stock(Product(title="P", in_stock=False), None, 1).valid
    assert check_item_stock(None, None, 1).message == "Product not found"
    assert check_item_stock(Product(title="P"), None, 500).valid


def test_aggregate_lines():
    merged = aggregate_lines([StockLine(1, 2, "a"), StockLine(1, 3, "a"), StockLine(1, 1)])
    assert {l.combination_id: l.quantity for l in merged} == {None: 1, "a": 5}


def test_consume_and_restore_combination_stock(session, make_product):
    p = make_product(
        available_quantity=8,
        combinations=[{"id": "red", "stock": 5}, {"id": "blue", "stock": 3}],
    )

    consume_stock_for_items(session, [StockLine(p.id, 2, "red")])
    session.commit()
    session.refresh(p)
    stocks = {c.id: c.stock for c in parse_combinations(p.combinations)}
    assert stocks == {"red": 3, "blue": 3}
    assert p.available_quantity == 6

    restore_stock_for_items(session, [StockLine(p.id, 2, "red")])
    session.commit()
    session.refresh(p)
    assert p.available_quantity == 8


def test_consume_product_stock(session, make_product):
    p = make_product(available_quantity=2)
    consume_stock_for_items(session, [StockLine(p.id, 1), StockLine(p.id, 1)])
    session.commit()
    session.refresh(p)
    assert p.available_quantity == 0
    assert p.in_stock is False


def test_consume_raises_when_insufficient(session, make_product):
    p = make_product(available_quantity=1)
    with pytest.raises(InsufficientStock):
        consume_stock_for_items(session, [StockLine(p.id, 2)])

    with pytest.raises(ProductNotFound):
        consume_stock_for_items(session, [StockLine(9999, 1)])


def test_invalid_combinations_are_skipped():
    parsed = parse_combinations([{"id": "ok", "pricePiece": 3}, {"options": {}}, "junk"])
    assert [c.id for c in parsed] == ["ok"]
    assert parsed[0].price_piece == 3


def test_unlimited_combination_is_never_decremented(session, make_product):
    p = make_product(combinations=[{"id": "c1", "stock": None}])

    consume_stock_for_items(session, [StockLine(p.id, 50, "c1")])
    session.commit()
    session.refresh(p)
    assert parse_combinations(p.combinations)[0].stock is None
    assert p.available_quantity is None

    restore_stock_for_items(session, [StockLine(p.id, 50, "c1")])
    session.commit()
    session.refresh(p)
    assert parse_combinations(p.combinations)[0].stock is None


def test_unlimited_sibling_keeps_product_unlimited(session, make_product):
    p = make_product(combinations=[{"id": "c1", "stock": None}, {"id": "c2", "stock": 3}])

    consume_stock_for_items(session, [StockLine(p.id, 1, "c2")])
    session.commit()
    session.refresh(p)

    stocks = {c.id: c.stock for c in parse_combinations(p.combinations)}
    assert stocks == {"c1": None, "c2": 2}
    assert p.available_quantity is None
    assert p.in_stock is True

    unlimited = parse_combinations(p.combinations)[0]
    assert check_item_stock(p, unlimited, 5).valid

# app/services/stock.py
"""
Contrôle et mouvements de stock.

- check_item_stock : vérification avant ajout / mise à jour panier
- consume_stock_for_items : appelé UNIQUEMENT à la création de commande
- restore_stock_for_items : appelé à l'annulation / au retour
"""
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm.attributes import flag_modified
from sqlmodel import Session, select

from app.errors import InsufficientStock, ProductNotFound
from app.models.product import Combination, Product
from app.services.catalog import dump_combinations, parse_combinations

log = logging.getLogger("uvicorn.error")


@dataclass(frozen=True)
class StockCheck:
    valid: bool
    available: Optional[int] = None
    message: Optional[str] = None


@dataclass
class StockLine:
    product_id: int
    quantity: int
    combination_id: Optional[str] = None


def get_item_stock(product: Product, combination: Optional[Combination]) -> Optional[int]:
    """Stock de la combinaison si défini, sinon celui du produit. None = illimité."""
    if combination is not None and combination.stock is not None:
        return max(0, int(combination.stock))
    if product.available_quantity is not None:
        return max(0, int(product.available_quantity))
    return None


def check_item_stock(
    product: Optional[Product],
    combination: Optional[Combination],
    requested: int,
) -> StockCheck:
    if product is None:
        return StockCheck(valid=False, message="Product not found")

    if not product.in_stock:
        return StockCheck(valid=False, message="Product out of stock")

    if combination is not None and combination.stock is not None:
        available = max(0, int(combination.stock))
        if requested > available:
            return StockCheck(valid=False, available=available, message=f"Only {available} units available")

    if product.available_quantity is not None:
        available = max(0, int(product.available_quantity))
        if requested > available:
            return StockCheck(valid=False, available=available, message=f"Only {available} units available")

    return StockCheck(valid=True)


def aggregate_lines(lines: Iterable[StockLine]) -> List[StockLine]:
    """Regroupe les lignes par (produit, combinaison)."""
    merged: Dict[Tuple[int, str], StockLine] = {}
    for line in lines:
        qty = max(1, int(line.quantity or 0))
        key = (line.product_id, line.combination_id or "main")
        if key in merged:
            merged[key].quantity += qty
        else:
            merged[key] = StockLine(line.product_id, qty, line.combination_id)
    return list(merged.values())


def _lock_product(session: Session, product_id: int) -> Optional[Product]:
    stmt = select(Product).where(Product.id == product_id).with_for_update()
    return session.exec(stmt).first()


def _apply_combination_delta(product: Product, combination_id: str, delta: int) -> bool:
    """
    Modifie le stock d'une combinaison et recalcule available_quantity comme
    la somme des stocks des combinaisons (None dès qu'une combinaison est
    illimitée). Retourne False si la combinaison n'existe pas.
    """
    combos = parse_combinations(product.combinations, product.id)
    target = next((c for c in combos if c.id == str(combination_id)), None)
    if target is None:
        return False

    # stock illimité : rien à décompter
    if target.stock is None:
        return True

    current = int(target.stock)
    if delta < 0 and current < -delta:
        raise InsufficientStock(product.id, combination_id)
    target.stock = current + delta

    product.combinations = dump_combinations(combos)
    flag_modified(product, "combinations")

    if any(c.stock is None for c in combos):
        product.available_quantity = None
        product.in_stock = True
    else:
        total = sum(max(0, int(c.stock)) for c in combos)
        product.available_quantity = total
        product.in_stock = total > 0
    return True


def consume_stock_for_items(session: Session, lines: Iterable[StockLine]) -> None:
    """À appeler dans la transaction de création de commande (pas de commit ici)."""
    for line in aggregate_lines(lines):
        product = _lock_product(session, line.product_id)
        if product is None:
            raise ProductNotFound(line.product_id)

        if line.combination_id and _apply_combination_delta(product, line.combination_id, -line.quantity):
            session.add(product)
            continue

        current = int(product.available_quantity or 0)
        if product.available_quantity is not None:
            if current < line.quantity:
                raise InsufficientStock(product.id)
            product.available_quantity = current - line.quantity
            product.in_stock = product.available_quantity > 0
        session.add(product)


def restore_stock_for_items(session: Session, lines: Iterable[StockLine]) -> None:
    for line in aggregate_lines(lines):
        product = _lock_product(session, line.product_id)
        if product is None:
            log.warning("restore stock: product %s no longer exists, skipped", line.product_id)
            continue

        if line.combination_id and _apply_combination_delta(product, line.combination_id, line.quantity):
            session.add(product)
            continue

        if product.available_quantity is not None:
            product.available_quantity = int(product.available_quantity) + line.quantity
            product.in_stock = True
        session.add(product)

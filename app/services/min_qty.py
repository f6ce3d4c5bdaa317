# app/services/min_qty.py
"""
Règles de quantité minimum de commande (détail / gros) et contrôle de la
quantité demandée face au stock disponible.
"""
import math
from dataclasses import dataclass, field
from typing import List, Optional

from app.models.product import Combination, Product


@dataclass(frozen=True)
class QuantityCheck:
    valid: bool
    message: Optional[str] = None
    suggested_qty: Optional[int] = None


@dataclass
class MinQtyRulesCheck:
    valid: bool
    errors: List[str] = field(default_factory=list)


def _valid_min(value: Optional[int]) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool) and value >= 1:
        return value
    return None


def get_effective_min_qty(
    product: Optional[Product],
    combination: Optional[Combination],
    purchase_mode: str,
) -> int:
    if product is None:
        return 1

    wholesale = purchase_mode == "quantity"

    if combination is not None:
        override = combination.min_order_qty_wholesale if wholesale else combination.min_order_qty_retail
        if _valid_min(override):
            return override

    product_min = product.min_order_qty_wholesale if wholesale else product.min_order_qty_retail
    return _valid_min(product_min) or 1


def validate_quantity(
    requested: int,
    min_qty: int,
    stock: Optional[int] = None,
    lot_multiple: bool = False,
) -> QuantityCheck:
    """
    - requested < min            -> invalide, suggestion = min
    - requested > stock (fini)   -> invalide, suggestion = stock
                                    (aucune si stock < min)
    - stock None                 -> pas de borne haute
    Avec lot_multiple, la quantité doit aussi être un multiple de min.
    """
    effective_min = max(1, min_qty)

    if requested < effective_min:
        return QuantityCheck(
            valid=False,
            message=f"Minimum order is {effective_min} units. Please choose at least {effective_min}.",
            suggested_qty=effective_min,
        )

    if lot_multiple and requested % effective_min != 0:
        next_multiple = round_to_valid_multiple(requested, effective_min, round_up=True)
        return QuantityCheck(
            valid=False,
            message=f"Quantity must be a multiple of {effective_min}.",
            suggested_qty=next_multiple,
        )

    if stock is not None and stock >= 0 and requested > stock:
        if stock < effective_min:
            return QuantityCheck(
                valid=False,
                message=f"Insufficient stock. Only {stock} available, but minimum order is {effective_min}.",
            )

        suggested = stock
        if lot_multiple:
            suggested = (stock // effective_min) * effective_min
        return QuantityCheck(
            valid=False,
            message=f"Only {stock} units available. Maximum you can order is {suggested}.",
            suggested_qty=suggested,
        )

    return QuantityCheck(valid=True)


def validate_min_qty_rules(
    sale_type: Optional[str],
    min_retail: Optional[int],
    min_wholesale: Optional[int],
) -> MinQtyRulesCheck:
    errors: List[str] = []
    normalized = (sale_type or "piece").lower()

    retail = min_retail if isinstance(min_retail, int) else 1
    wholesale = min_wholesale if isinstance(min_wholesale, int) else 1

    if normalized in ("piece", "both") and retail < 1:
        errors.append("Minimum retail quantity must be at least 1")

    if normalized in ("quantity", "both") and wholesale < 1:
        errors.append("Minimum wholesale quantity must be at least 1")

    return MinQtyRulesCheck(valid=not errors, errors=errors)


def round_to_valid_multiple(quantity: int, min_qty: int, round_up: bool = True) -> int:
    effective_min = max(1, min_qty)

    if quantity < effective_min:
        return effective_min
    if quantity % effective_min == 0:
        return quantity
    if round_up:
        return math.ceil(quantity / effective_min) * effective_min
    return (quantity // effective_min) * effective_min


def can_purchase(min_qty: int, stock: Optional[int]) -> bool:
    if stock is None:
        return True
    return stock >= max(1, min_qty)


def format_min_qty_message(min_qty: int, purchase_mode: str) -> str:
    if min_qty <= 1:
        return ""
    label = "gros" if purchase_mode == "quantity" else "détail"
    return f"Commande minimum: {min_qty} unités ({label}). Vendu par lots de {min_qty}."

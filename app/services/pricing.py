# app/services/pricing.py
"""
Résolution du prix unitaire d'un produit (ou d'une combinaison) pour un
mode d'achat donné, vente flash comprise.

Fonctions pures : aucun accès DB, l'horloge est injectable via `now`.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from app.models.product import Combination, Product
from app.services.catalog import as_utc


@dataclass(frozen=True)
class PriceResolution:
    base_price: float
    price: float
    flash_applied: bool


def _first_set(*values: Optional[float]) -> Optional[float]:
    for v in values:
        if v is not None:
            return float(v)
    return None


def pick_base_price(product: Product, combination: Optional[Combination], purchase_unit: str) -> float:
    """
    Prix de la combinaison d'abord (colonne du mode demandé, puis l'autre),
    sinon celui du produit, de la même façon. 0 si rien n'est renseigné.
    """
    wholesale = purchase_unit == "quantity"

    if combination is not None:
        if wholesale:
            price = _first_set(combination.price_quantity, combination.price_piece)
        else:
            price = _first_set(combination.price_piece, combination.price_quantity)
        if price:
            return price

    if wholesale:
        price = _first_set(product.price_quantity, product.price_piece)
    else:
        price = _first_set(product.price_piece, product.price_quantity)
    return price or 0.0


def is_flash_active_now(product: Product, now: Optional[datetime] = None) -> bool:
    if not product.vente_flash_active:
        return False

    now = now or datetime.now(timezone.utc)

    start = as_utc(product.flash_start_at)
    if start is not None and start > now:
        return False

    end = as_utc(product.flash_end_at)
    if end is not None and end < now:
        return False

    return True


def is_combination_flash_eligible(product: Product, combination_id: Optional[str]) -> bool:
    if not combination_id:
        return False
    if (product.flash_apply_target or "product") != "combinations":
        return False
    if product.flash_apply_all_combinations is not False:
        return True
    eligible = {str(i) for i in (product.flash_combination_ids or [])}
    return str(combination_id) in eligible


def flash_targets(product: Product, combination_id: Optional[str]) -> bool:
    target = product.flash_apply_target or "product"
    if target == "product":
        return True
    if target == "combinations":
        return is_combination_flash_eligible(product, combination_id)
    return False


def flash_discount_value(product: Product) -> Optional[float]:
    discount_type = product.flash_discount_type or "percent"
    if discount_type == "percent":
        return _first_set(product.vente_flash_percentage, product.flash_discount_value)
    return _first_set(product.flash_discount_value)


def apply_flash_discount(base_price: float, discount_type: str, value: Optional[float]) -> float:
    if value is None or value <= 0:
        return base_price

    if discount_type == "fixed":
        return max(0.0, round(base_price - value, 3))
    return max(0.0, round(base_price - base_price * value / 100, 3))


def resolve_price(
    product: Product,
    combination: Optional[Combination],
    purchase_unit: str,
    now: Optional[datetime] = None,
) -> PriceResolution:
    base_price = pick_base_price(product, combination, purchase_unit)
    combination_id = combination.id if combination is not None else None

    if base_price > 0 and is_flash_active_now(product, now) and flash_targets(product, combination_id):
        price = apply_flash_discount(
            base_price,
            product.flash_discount_type or "percent",
            flash_discount_value(product),
        )
        return PriceResolution(base_price=base_price, price=price, flash_applied=price != base_price)

    return PriceResolution(base_price=base_price, price=base_price, flash_applied=False)

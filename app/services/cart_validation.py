# app/services/cart_validation.py
"""
Revalidation d'un panier contre les données produit actuelles.
Seule source de vérité avant la création d'une commande : le panier
client n'est jamais cru sur parole.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from app import config
from app.models.product import Product
from app.models.shop_settings import ShopSettings
from app.services.catalog import find_combination, is_product_public, primary_image
from app.services.min_qty import get_effective_min_qty, round_to_valid_multiple
from app.services.pricing import resolve_price
from app.services.stock import get_item_stock


@dataclass
class CartLine:
    product_id: int
    quantity: int
    unit_type: str = "piece"
    combination_id: Optional[str] = None


@dataclass
class ValidatedItem:
    product_id: int
    combination_id: Optional[str]
    quantity: int
    original_quantity: int
    unit_type: str
    unit_price: float
    original_price: Optional[float]
    subtotal: float
    title: str
    image: Optional[str]
    variant_label: Optional[str]
    min_qty: int
    max_qty: Optional[int]


@dataclass
class CartIssue:
    type: str  # removed | quantity_adjusted | price_changed | out_of_stock | invalid_combination
    product_id: int
    message: str
    combination_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


@dataclass
class CartTotals:
    items_total: float
    shipping: float
    grand_total: float
    free_shipping_threshold: float
    is_free_shipping: bool


@dataclass
class CartValidation:
    valid: bool
    items: List[ValidatedItem] = field(default_factory=list)
    totals: Optional[CartTotals] = None
    issues: List[CartIssue] = field(default_factory=list)
    removed_product_ids: List[int] = field(default_factory=list)


NON_BLOCKING_ISSUES = ("quantity_adjusted", "price_changed")


def shipping_settings(session: Session) -> Dict[str, float]:
    row = session.exec(select(ShopSettings)).first()
    fee = row.default_shipping_fee if row and row.default_shipping_fee is not None else config.DEFAULT_SHIPPING_FEE
    threshold = (
        row.free_shipping_threshold
        if row and row.free_shipping_threshold is not None
        else config.FREE_SHIPPING_THRESHOLD
    )
    return {"shipping_fee": float(fee), "free_shipping_threshold": float(threshold)}


def validate_cart(session: Session, lines: List[CartLine], now: Optional[datetime] = None) -> CartValidation:
    items: List[ValidatedItem] = []
    issues: List[CartIssue] = []
    removed: List[int] = []

    product_ids = sorted({line.product_id for line in lines})
    products: Dict[int, Product] = {}
    if product_ids:
        for p in session.exec(select(Product).where(Product.id.in_(product_ids))).all():
            products[p.id] = p

    def drop(line: CartLine, kind: str, message: str) -> None:
        issues.append(CartIssue(kind, line.product_id, message, line.combination_id))
        removed.append(line.product_id)

    for line in lines:
        product = products.get(line.product_id)
        if product is None:
            drop(line, "removed", "Ce produit n'existe plus.")
            continue

        if not is_product_public(product, now):
            drop(line, "removed", "Ce produit n'est plus disponible.")
            continue

        combination = None
        if line.combination_id:
            combination = find_combination(product, line.combination_id)
            if combination is None:
                drop(line, "invalid_combination", "Cette variante n'existe plus.")
                continue

        pricing = resolve_price(product, combination, line.unit_type, now)

        stock = get_item_stock(product, combination)
        if product.in_stock is False or (stock is not None and stock <= 0):
            drop(line, "out_of_stock", "Ce produit est en rupture de stock.")
            continue

        min_qty = get_effective_min_qty(product, combination, line.unit_type)
        original_qty = line.quantity
        qty = original_qty

        if qty < min_qty:
            qty = min_qty
            issues.append(CartIssue(
                "quantity_adjusted", line.product_id,
                f"Quantité minimum: {min_qty}. Ajusté de {original_qty} à {qty}.",
                line.combination_id, {"from": original_qty, "to": qty, "reason": "min_qty"},
            ))

        if qty % min_qty != 0:
            qty = round_to_valid_multiple(qty, min_qty, round_up=True)
            issues.append(CartIssue(
                "quantity_adjusted", line.product_id,
                f"Quantité ajustée à {qty} (multiple de {min_qty}).",
                line.combination_id, {"from": original_qty, "to": qty, "reason": "multiple"},
            ))

        if stock is not None and qty > stock:
            max_valid = (stock // min_qty) * min_qty
            if max_valid < min_qty:
                drop(line, "out_of_stock", f"Stock insuffisant. Disponible: {stock}, minimum: {min_qty}.")
                continue
            qty = max_valid
            issues.append(CartIssue(
                "quantity_adjusted", line.product_id,
                f"Stock limité. Quantité ajustée de {original_qty} à {qty}.",
                line.combination_id, {"from": original_qty, "to": qty, "reason": "stock", "available": stock},
            ))

        items.append(ValidatedItem(
            product_id=line.product_id,
            combination_id=line.combination_id or None,
            quantity=qty,
            original_quantity=original_qty,
            unit_type=line.unit_type,
            unit_price=pricing.price,
            original_price=pricing.base_price if pricing.flash_applied else None,
            subtotal=round(pricing.price * qty, 2),
            title=product.title,
            image=primary_image(product),
            variant_label=combination.label() if combination else None,
            min_qty=min_qty,
            max_qty=stock,
        ))

    shipping_cfg = shipping_settings(session)
    items_total = round(sum(i.subtotal for i in items), 2)
    is_free = items_total >= shipping_cfg["free_shipping_threshold"]
    shipping = 0.0 if is_free else shipping_cfg["shipping_fee"]

    totals = CartTotals(
        items_total=items_total,
        shipping=shipping,
        grand_total=round(items_total + shipping, 2),
        free_shipping_threshold=shipping_cfg["free_shipping_threshold"],
        is_free_shipping=is_free,
    )

    return CartValidation(
        valid=all(i.type in NON_BLOCKING_ISSUES for i in issues),
        items=items,
        totals=totals,
        issues=issues,
        removed_product_ids=removed,
    )


def detect_price_changes(client_prices: List[Dict[str, Any]], validated: List[ValidatedItem]) -> List[CartIssue]:
    """client_prices: [{"product_id", "combination_id", "unit_price"}, ...]"""
    changes: List[CartIssue] = []
    for entry in client_prices:
        product_id = entry.get("product_id")
        combination_id = entry.get("combination_id") or None
        old_price = float(entry.get("unit_price") or 0)

        match = next(
            (v for v in validated if v.product_id == product_id and v.combination_id == combination_id),
            None,
        )
        if match is not None and abs(match.unit_price - old_price) > 0.01:
            changes.append(CartIssue(
                "price_changed", product_id,
                f"Prix mis à jour: {old_price} DT → {match.unit_price} DT",
                combination_id, {"old_price": old_price, "new_price": match.unit_price},
            ))
    return changes

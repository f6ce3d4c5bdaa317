# app/services/cart.py
"""
Panier par utilisateur (clé : clerk_id).

Les règles métier (produit introuvable, stock, quantité minimum) ne lèvent
pas d'exception : elles sont renvoyées dans un CartMutation que la route
traduit en réponse HTTP.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlmodel import Session, select

from app.models.cart import AddCartItem, Cart, CartItem
from app.models.client import Client
from app.models.product import Combination, Product
from app.services.catalog import find_combination, primary_image
from app.services.min_qty import get_effective_min_qty, validate_quantity
from app.services.pricing import resolve_price
from app.services.stock import check_item_stock, get_item_stock

log = logging.getLogger("uvicorn.error")


@dataclass
class CartMutation:
    item: Optional[CartItem] = None
    error: Optional[str] = None
    status_code: int = 200
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def fail(cls, status_code: int, error: str, **details: Any) -> "CartMutation":
        return cls(error=error, status_code=status_code, details={k: v for k, v in details.items() if v is not None})


def _now() -> datetime:
    return datetime.now(timezone.utc)


def get_or_create_cart(session: Session, clerk_id: str) -> Cart:
    cart = session.exec(select(Cart).where(Cart.clerk_id == clerk_id)).first()
    if cart is None:
        cart = Cart(clerk_id=clerk_id)
        session.add(cart)
        session.commit()
        session.refresh(cart)
    return cart


def get_cart(session: Session, clerk_id: str) -> Optional[Cart]:
    return session.exec(select(Cart).where(Cart.clerk_id == clerk_id)).first()


def list_items(session: Session, cart_id: int) -> List[CartItem]:
    stmt = (
        select(CartItem)
        .where(CartItem.cart_id == cart_id)
        .order_by(CartItem.created_at.desc(), CartItem.id.desc())
    )
    return list(session.exec(stmt).all())


def get_with_items(session: Session, clerk_id: str) -> Tuple[Optional[Cart], List[CartItem]]:
    cart = get_cart(session, clerk_id)
    if cart is None:
        return None, []
    return cart, list_items(session, cart.id)


def purchase_unit_for(session: Session, clerk_id: str, requested: Optional[str] = None) -> str:
    """Mode demandé explicitement, sinon celui du client, sinon "piece"."""
    if requested in ("piece", "quantity"):
        return requested
    client = session.exec(select(Client).where(Client.clerk_id == clerk_id)).first()
    if client is not None and client.purchase_unit in ("piece", "quantity"):
        return client.purchase_unit
    return "piece"


def _check_quantity(
    product: Product,
    combination: Optional[Combination],
    unit_type: str,
    quantity: int,
) -> Tuple[Optional[CartMutation], int, Optional[int]]:
    """Retourne (échec éventuel, min effectif, stock)."""
    stock_check = check_item_stock(product, combination, quantity)
    if not stock_check.valid:
        return CartMutation.fail(400, stock_check.message or "Insufficient stock", available=stock_check.available), 1, None

    min_qty = get_effective_min_qty(product, combination, unit_type)
    stock = get_item_stock(product, combination)
    qty_check = validate_quantity(quantity, min_qty, stock)
    if not qty_check.valid:
        return (
            CartMutation.fail(400, qty_check.message or "Invalid quantity", suggested_qty=qty_check.suggested_qty, min_qty=min_qty),
            min_qty,
            stock,
        )
    return None, min_qty, stock


def add_or_update_item(session: Session, clerk_id: str, payload: AddCartItem) -> CartMutation:
    product = session.get(Product, payload.product_id)
    if product is None:
        return CartMutation.fail(404, "Product not found")

    unit_type = purchase_unit_for(session, clerk_id, payload.unit_type)

    combination = find_combination(product, payload.combination_id)
    if payload.combination_id and combination is None:
        log.warning("[Cart] combination %s not found on product %s", payload.combination_id, product.id)

    # Prix fourni par le client accepté tel quel quand il est positif.
    if payload.price_from_client is not None and payload.price_from_client > 0:
        price = float(payload.price_from_client)
        log.info("[Cart] using client-provided price %s for product %s", price, product.id)
    else:
        resolution = resolve_price(product, combination, unit_type)
        price = resolution.price
        if price == 0:
            log.warning("[Cart] price is 0 for product %s (combination=%s, unit=%s)", product.id, payload.combination_id, unit_type)

    cart = get_or_create_cart(session, clerk_id)
    existing = session.exec(
        select(CartItem).where(
            CartItem.cart_id == cart.id,
            CartItem.product_id == product.id,
            CartItem.combination_id == (payload.combination_id or None),
            CartItem.unit_type == unit_type,
        )
    ).first()

    target_qty = payload.quantity + (existing.quantity if existing else 0)
    failure, min_qty, stock = _check_quantity(product, combination, unit_type, target_qty)
    if failure is not None:
        return failure

    max_qty = stock if stock is not None and stock > 0 else None
    variant_label = payload.variant_label or (combination.label() if combination else None)
    options = dict(combination.options) if combination and combination.options else None

    item = existing or CartItem(
        cart_id=cart.id,
        product_id=product.id,
        combination_id=payload.combination_id or None,
        quantity=0,
        unit_type=unit_type,
        price_at_add=price,
        title_at_add=product.title,
    )
    item.quantity = target_qty
    item.price_at_add = price
    item.title_at_add = product.title
    item.image_at_add = primary_image(product)
    item.variant_label = variant_label
    item.options_at_add = options
    item.min_qty = min_qty
    item.max_qty = max_qty
    item.updated_at = _now()

    cart.updated_at = _now()
    session.add(item)
    session.add(cart)
    session.commit()
    session.refresh(item)
    return CartMutation(item=item)


def _owned_item(session: Session, clerk_id: str, item_id: int) -> Optional[CartItem]:
    item = session.get(CartItem, item_id)
    if item is None:
        return None
    cart = session.get(Cart, item.cart_id)
    if cart is None or cart.clerk_id != clerk_id:
        return None
    return item


def update_quantity(session: Session, clerk_id: str, item_id: int, quantity: int) -> CartMutation:
    """Revalide contre l'état actuel du produit, pas contre le snapshot."""
    item = _owned_item(session, clerk_id, item_id)
    if item is None:
        return CartMutation.fail(404, "Cart item not found")

    product = session.get(Product, item.product_id)
    if product is None:
        return CartMutation.fail(404, "Product not found")

    combination = find_combination(product, item.combination_id)
    failure, min_qty, stock = _check_quantity(product, combination, item.unit_type, quantity)
    if failure is not None:
        return failure

    item.quantity = quantity
    item.min_qty = min_qty
    item.max_qty = stock if stock is not None and stock > 0 else None
    item.updated_at = _now()
    session.add(item)
    session.commit()
    session.refresh(item)
    return CartMutation(item=item)


def remove_item(session: Session, clerk_id: str, item_id: int) -> CartMutation:
    item = _owned_item(session, clerk_id, item_id)
    if item is None:
        return CartMutation.fail(404, "Cart item not found")

    session.delete(item)
    session.commit()
    return CartMutation()


def clear(session: Session, clerk_id: str) -> int:
    cart = get_cart(session, clerk_id)
    if cart is None:
        return 0

    items = list_items(session, cart.id)
    for item in items:
        session.delete(item)
    session.commit()
    return len(items)

# app/routes/cart.py
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.auth import AuthUser, require_user
from app.db.session import get_session
from app.errors import ApiError
from app.models.cart import (
    AddCartItem, Cart, CartItem, CartItemRead, CartRead, UpdateCartItem, ValidateCartRequest,
)
from app.services import cart as cart_service
from app.services.cart import CartMutation
from app.services.cart_validation import CartLine, detect_price_changes, validate_cart

router = APIRouter(
    prefix="/api/cart",
    tags=["cart"],
)

SessionDep = Depends(get_session)
UserDep = Depends(require_user)


def raise_for_mutation(result: CartMutation) -> None:
    if not result.ok:
        raise ApiError(result.status_code, result.error, **result.details)


def _cart_read(cart: Optional[Cart], items: List[CartItem]) -> CartRead:
    if cart is None:
        return CartRead(items=[])
    return CartRead(
        id=cart.id,
        clerk_id=cart.clerk_id,
        items=[CartItemRead.model_validate(i, from_attributes=True) for i in items],
    )


def _current_cart(session: Session, user: AuthUser) -> CartRead:
    cart, items = cart_service.get_with_items(session, user.user_id)
    return _cart_read(cart, items)


@router.get("", summary="Panier de l'utilisateur courant")
def get_cart(session: Session = SessionDep, user: AuthUser = UserDep) -> Dict[str, Any]:
    return {"cart": _current_cart(session, user)}


@router.post("/items", summary="Ajouter un article (fusionné si déjà présent)")
def add_item(payload: AddCartItem, session: Session = SessionDep, user: AuthUser = UserDep) -> Dict[str, Any]:
    result = cart_service.add_or_update_item(session, user.user_id, payload)
    raise_for_mutation(result)
    return {
        "item": CartItemRead.model_validate(result.item, from_attributes=True),
        "cart": _current_cart(session, user),
    }


@router.patch("/items/{item_id}", summary="Modifier la quantité d'un article")
def update_item(
    item_id: int,
    payload: UpdateCartItem,
    session: Session = SessionDep,
    user: AuthUser = UserDep,
) -> Dict[str, Any]:
    result = cart_service.update_quantity(session, user.user_id, item_id, payload.quantity)
    raise_for_mutation(result)
    return {
        "item": CartItemRead.model_validate(result.item, from_attributes=True),
        "cart": _current_cart(session, user),
    }


@router.delete("/items/{item_id}", summary="Retirer un article")
def remove_item(item_id: int, session: Session = SessionDep, user: AuthUser = UserDep) -> Dict[str, Any]:
    raise_for_mutation(cart_service.remove_item(session, user.user_id, item_id))
    return {"success": True, "cart": _current_cart(session, user)}


@router.delete("/clear", summary="Vider le panier")
def clear_cart(session: Session = SessionDep, user: AuthUser = UserDep) -> Dict[str, Any]:
    cart_service.clear(session, user.user_id)
    return {"success": True, "cart": {"items": []}}


@router.post("/validate", summary="Revalider le panier contre les données produit")
def validate_current_cart(
    payload: Optional[ValidateCartRequest] = None,
    session: Session = SessionDep,
    user: AuthUser = UserDep,
) -> Dict[str, Any]:
    """
    `client_prices` (optionnel) : prix affichés par le client. Chaque écart
    de plus de 0.01 ajoute une alerte `price_changed` (non bloquante).
    """
    _, items = cart_service.get_with_items(session, user.user_id)
    if not items:
        raise ApiError(400, "Cart is empty")

    lines = [CartLine(i.product_id, i.quantity, i.unit_type, i.combination_id) for i in items]
    result = validate_cart(session, lines)

    if payload is not None and payload.client_prices:
        client_prices = [p.model_dump() for p in payload.client_prices]
        result.issues.extend(detect_price_changes(client_prices, result.items))

    return asdict(result)

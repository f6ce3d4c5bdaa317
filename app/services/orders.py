# app/services/orders.py
"""
Création de commande depuis le panier serveur et changements de statut.
Le stock est consommé à la création (tous modes de paiement) et restitué
une seule fois lors d'une annulation / d'un retour.
"""
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from app import config
from app.errors import DomainError
from app.models.order import CheckoutRequest, Order, OrderItem
from app.services import cart as cart_service
from app.services.cart_validation import CartLine, validate_cart
from app.services.notifications import new_order_notification
from app.services.stock import StockLine, consume_stock_for_items, restore_stock_for_items

log = logging.getLogger("uvicorn.error")

RESTOCK_STATUSES = ("cancelled", "canceled", "returned")


@dataclass
class OrderOutcome:
    order: Optional[Order] = None
    error: Optional[str] = None
    status_code: int = 201
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None


def _now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_status(value: Any) -> str:
    return value.strip().lower() if isinstance(value, str) else ""


def create_order_from_cart(session: Session, clerk_id: str, request: CheckoutRequest) -> OrderOutcome:
    cart, items = cart_service.get_with_items(session, clerk_id)
    if cart is None or not items:
        return OrderOutcome(error="Cart is empty", status_code=400)

    lines = [CartLine(i.product_id, i.quantity, i.unit_type, i.combination_id) for i in items]
    validation = validate_cart(session, lines)

    if not validation.valid or validation.removed_product_ids:
        log.warning("checkout: stale cart for %s (%d issues)", clerk_id, len(validation.issues))
        return OrderOutcome(
            error="Cart has changed",
            status_code=409,
            details={
                "message": "Votre panier a été modifié. Veuillez vérifier les changements avant de continuer.",
                "validation": asdict(validation),
            },
        )

    server_total = validation.totals.grand_total
    if request.total is not None and abs(float(request.total) - server_total) > config.ORDER_TOTAL_TOLERANCE:
        log.warning("checkout: total mismatch client=%s server=%s", request.total, server_total)
        return OrderOutcome(
            error="Total mismatch",
            status_code=409,
            details={
                "message": "Le total a changé. Veuillez actualiser votre panier.",
                "expected_total": server_total,
                "provided_total": request.total,
            },
        )

    payment_method = "paymee_card" if request.payment_method == "card" else (request.payment_method or "cod")
    initial_status = "pending_payment" if payment_method == "paymee_card" else "pending"

    try:
        consume_stock_for_items(
            session,
            [StockLine(v.product_id, v.quantity, v.combination_id) for v in validation.items],
        )

        order = Order(
            clerk_id=clerk_id,
            name=request.name,
            email=request.email,
            phone=request.phone,
            address=request.address,
            region=request.region,
            total=server_total,
            shipping=validation.totals.shipping,
            payment_method=payment_method,
            payment_status=initial_status,
            status=initial_status,
            stock_consumed=True,
        )
        session.add(order)
        session.flush()

        for v in validation.items:
            session.add(OrderItem(
                order_id=order.id,
                product_id=v.product_id,
                combination_id=v.combination_id,
                title=v.title,
                unit_type=v.unit_type,
                price=v.unit_price,
                quantity=v.quantity,
                attributes={"combination_id": v.combination_id, "variant": v.variant_label} if v.combination_id else None,
            ))
        session.commit()
    except DomainError as e:
        session.rollback()
        return OrderOutcome(error=str(e), status_code=e.status_code)

    session.refresh(order)
    session.add(new_order_notification(session, order))
    session.commit()

    cart_service.clear(session, clerk_id)
    log.info("order #%s created for %s (total=%s, status=%s)", order.id, clerk_id, order.total, order.status)
    return OrderOutcome(order=order)


def order_items(session: Session, order_id: int) -> List[OrderItem]:
    return list(session.exec(select(OrderItem).where(OrderItem.order_id == order_id)).all())


def list_orders(session: Session, include_payment_pending: bool = False) -> List[Order]:
    stmt = select(Order)
    if not include_payment_pending:
        stmt = stmt.where(Order.payment_status != "pending_payment")
    return list(session.exec(stmt.order_by(Order.id.desc())).all())


def list_orders_for_user(session: Session, clerk_id: str) -> List[Order]:
    stmt = select(Order).where(Order.clerk_id == clerk_id).order_by(Order.created_at.desc(), Order.id.desc())
    return list(session.exec(stmt).all())


def update_status(
    session: Session,
    order: Order,
    new_status: str,
    actor: Optional[str] = None,
    reason: Optional[str] = None,
) -> Order:
    target = normalize_status(new_status)

    if target in RESTOCK_STATUSES and order.stock_consumed:
        restore_stock_for_items(
            session,
            [StockLine(i.product_id, i.quantity, i.combination_id) for i in order_items(session, order.id)],
        )
        order.stock_consumed = False

    if target in ("cancelled", "canceled"):
        order.canceled_at = _now()
        order.canceled_by = actor
        order.cancel_reason = reason

    order.status = target
    order.updated_at = _now()
    session.add(order)
    session.commit()
    session.refresh(order)
    return order

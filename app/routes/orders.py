# app/routes/orders.py
from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.auth import AuthUser, require_admin, require_role, require_user
from app.db.session import get_session
from app.errors import ApiError
from app.models.employee import Employee, Role
from app.models.order import CheckoutRequest, Order, OrderItemRead, OrderRead, OrderStatusUpdate
from app.services import orders as order_service

router = APIRouter(
    prefix="/api/orders",
    tags=["orders"],
)

SessionDep = Depends(get_session)


def _order_read(session: Session, order: Order) -> OrderRead:
    data = order.model_dump()
    data["items"] = [
        OrderItemRead.model_validate(i, from_attributes=True)
        for i in order_service.order_items(session, order.id)
    ]
    return OrderRead.model_validate(data)


@router.post("", response_model=OrderRead, status_code=201, summary="Passer commande depuis le panier")
def checkout(
    payload: CheckoutRequest,
    session: Session = SessionDep,
    user: AuthUser = Depends(require_user),
) -> OrderRead:
    result = order_service.create_order_from_cart(session, user.user_id, payload)
    if not result.ok:
        raise ApiError(result.status_code, result.error, **result.details)
    return _order_read(session, result.order)


@router.get("/me", response_model=List[OrderRead], summary="Mes commandes")
def my_orders(session: Session = SessionDep, user: AuthUser = Depends(require_user)) -> List[OrderRead]:
    return [_order_read(session, o) for o in order_service.list_orders_for_user(session, user.user_id)]


@router.get("", response_model=List[OrderRead], summary="Toutes les commandes (admin)")
def list_orders(
    include_payment_pending: bool = False,
    session: Session = SessionDep,
    _: Employee = Depends(require_admin),
) -> List[OrderRead]:
    """Les commandes en attente de paiement carte sont masquées par défaut."""
    return [_order_read(session, o) for o in order_service.list_orders(session, include_payment_pending)]


@router.patch("/{order_id}/status", response_model=OrderRead, summary="Changer le statut d'une commande")
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    session: Session = SessionDep,
    employee: Employee = Depends(require_role(Role.ADMIN, Role.ORDER_MANAGER)),
) -> OrderRead:
    order = session.get(Order, order_id)
    if order is None:
        raise ApiError(404, "Order not found")
    if not order_service.normalize_status(payload.status):
        raise ApiError(400, "Invalid status")

    order = order_service.update_status(
        session, order, payload.status, actor=employee.email, reason=payload.cancel_reason,
    )
    return _order_read(session, order)

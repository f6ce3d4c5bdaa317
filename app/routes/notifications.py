# app/routes/notifications.py
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from app.auth import require_admin
from app.db.session import get_session
from app.errors import ApiError
from app.models.notification import Notification, NotificationRead, OrderCreatedNotice
from app.models.order import Order
from app.services import notifications as notification_service

router = APIRouter(
    prefix="/notifications",
    tags=["notifications"],
    dependencies=[Depends(require_admin)],
)

SessionDep = Depends(get_session)


@router.get("", response_model=List[NotificationRead], summary="Lister les notifications")
def list_notifications(unread: bool = False, session: Session = SessionDep) -> List[Notification]:
    """
    Génère d'abord (best-effort) les notifications "en retard" et
    "nouvelle commande", puis retourne les 200 plus récentes.
    """
    notification_service.refresh_order_notifications(session)
    return notification_service.list_notifications(session, unread_only=unread)


@router.get("/orders", response_model=List[NotificationRead], summary="Notifications liées aux commandes")
def list_order_notifications(session: Session = SessionDep) -> List[Notification]:
    return notification_service.list_notifications(session, orders_only=True)


@router.post(
    "/order-created",
    response_model=NotificationRead,
    status_code=status.HTTP_201_CREATED,
    summary="Créer la notification d'une nouvelle commande",
)
def order_created(payload: OrderCreatedNotice, session: Session = SessionDep) -> Notification:
    order = session.get(Order, payload.order_id)
    if order is None:
        raise ApiError(404, "Order not found")

    notif = notification_service.new_order_notification(session, order, recipient=payload.recipient)
    session.add(notif)
    session.commit()
    session.refresh(notif)
    return notif


@router.post("/mark-all-read", summary="Tout marquer comme lu")
def mark_all_read(recipient: Optional[str] = None, session: Session = SessionDep) -> Dict[str, int]:
    return {"updated_count": notification_service.mark_all_read(session, recipient)}


@router.post("/orders/{order_id}/mark-read", summary="Marquer lues les notifications d'une commande")
def mark_order_read(order_id: int, session: Session = SessionDep) -> Dict[str, int]:
    return {"updated_count": notification_service.mark_order_read(session, order_id)}


@router.post("/{notification_id}/read", response_model=NotificationRead, summary="Marquer une notification lue")
def mark_read(notification_id: int, session: Session = SessionDep) -> Notification:
    notif = notification_service.mark_read(session, notification_id)
    if notif is None:
        raise ApiError(404, "Notification not found")
    return notif

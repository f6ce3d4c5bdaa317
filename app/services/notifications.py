# app/services/notifications.py
"""
Notifications admin liées aux commandes.

Les notifications "commande en retard" (> 48 h) et "nouvelle commande"
(< 24 h) sont synthétisées à la lecture de GET /notifications : au plus une
par commande et par type, dédoublonnée sur le titre ou le marqueur du payload.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from app.models.notification import Notification
from app.models.order import Order, OrderItem
from app.services.catalog import as_utc

log = logging.getLogger("uvicorn.error")

OVERDUE_THRESHOLD = timedelta(hours=48)
NEW_ORDER_THRESHOLD = timedelta(hours=24)

OVERDUE_TITLE_MARKER = "pending for over 48"
NEW_ORDER_TITLE_MARKER = "new order"

MAX_LISTED = 200


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _order_item_count(session: Session, order_id: int) -> int:
    stmt = select(func.count()).select_from(OrderItem).where(OrderItem.order_id == order_id)
    return int(session.exec(stmt).one())


def _order_notifications(session: Session, order_id: int) -> List[Notification]:
    return list(session.exec(select(Notification).where(Notification.order_id == order_id)).all())


def _has_overdue_notice(session: Session, order_id: int) -> bool:
    for n in _order_notifications(session, order_id):
        if OVERDUE_TITLE_MARKER in (n.title or "").lower():
            return True
        if (n.payload or {}).get("overdue") is True:
            return True
    return False


def _has_new_order_notice(session: Session, order_id: int) -> bool:
    return any(NEW_ORDER_TITLE_MARKER in (n.title or "").lower() for n in _order_notifications(session, order_id))


def new_order_notification(session: Session, order: Order, recipient: str = "admin") -> Notification:
    created = as_utc(order.created_at)
    return Notification(
        type="ORDER",
        title=f"New order #{order.id} from {order.name or 'Customer'}",
        message=f"Total {float(order.total or 0):.2f} - {_order_item_count(session, order.id)} items",
        payload={"order_id": order.id, "created_at": created.isoformat() if created else None},
        read=False,
        recipient=recipient,
        order_id=order.id,
    )


def ensure_overdue_notifications(
    session: Session,
    threshold: timedelta = OVERDUE_THRESHOLD,
    now: Optional[datetime] = None,
) -> int:
    cutoff = (now or _now()) - threshold
    orders = session.exec(
        select(Order).where(Order.status == "pending", Order.created_at < cutoff)
    ).all()

    created = 0
    for order in orders:
        if _has_overdue_notice(session, order.id):
            continue

        placed = as_utc(order.created_at)
        session.add(Notification(
            type="ORDER",
            title=f"Order #{order.id} - Pending for over 48 h",
            message=f"Order #{order.id} placed on {placed.isoformat()} is still pending.",
            payload={"order_id": order.id, "overdue": True, "created_at": placed.isoformat()},
            read=False,
            recipient="admin",
            order_id=order.id,
        ))
        session.commit()
        created += 1

    return created


def ensure_new_order_notifications(
    session: Session,
    threshold: timedelta = NEW_ORDER_THRESHOLD,
    now: Optional[datetime] = None,
) -> int:
    cutoff = (now or _now()) - threshold
    orders = session.exec(
        select(Order).where(Order.status == "pending", Order.created_at >= cutoff)
    ).all()

    created = 0
    for order in orders:
        if _has_new_order_notice(session, order.id):
            continue
        session.add(new_order_notification(session, order))
        session.commit()
        created += 1

    return created


def refresh_order_notifications(session: Session, now: Optional[datetime] = None) -> None:
    """Best-effort : un échec ici ne doit jamais empêcher de lister les notifications."""
    try:
        ensure_overdue_notifications(session, now=now)
    except Exception:
        session.rollback()
        log.warning("ensure_overdue_notifications failed", exc_info=True)

    try:
        ensure_new_order_notifications(session, now=now)
    except Exception:
        session.rollback()
        log.warning("ensure_new_order_notifications failed", exc_info=True)


def list_notifications(session: Session, unread_only: bool = False, orders_only: bool = False) -> List[Notification]:
    stmt = select(Notification)
    if unread_only:
        stmt = stmt.where(Notification.read == False)  # noqa: E712
    if orders_only:
        stmt = stmt.where(Notification.order_id.is_not(None))
    stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(MAX_LISTED)
    return list(session.exec(stmt).all())


def mark_read(session: Session, notification_id: int) -> Optional[Notification]:
    notif = session.get(Notification, notification_id)
    if notif is None:
        return None
    notif.read = True
    notif.updated_at = _now()
    session.add(notif)
    session.commit()
    session.refresh(notif)
    return notif


def _mark_all(session: Session, stmt) -> int:
    rows = session.exec(stmt).all()
    for n in rows:
        n.read = True
        n.updated_at = _now()
        session.add(n)
    session.commit()
    return len(rows)


def mark_all_read(session: Session, recipient: Optional[str] = None) -> int:
    stmt = select(Notification).where(Notification.read == False)  # noqa: E712
    if recipient:
        stmt = stmt.where(Notification.recipient == recipient)
    return _mark_all(session, stmt)


def mark_order_read(session: Session, order_id: int) -> int:
    return _mark_all(session, select(Notification).where(Notification.order_id == order_id))

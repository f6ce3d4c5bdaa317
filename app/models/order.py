from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class Order(SQLModel, table=True):
    __tablename__ = "orders"

    id: Optional[int] = Field(default=None, primary_key=True)
    clerk_id: Optional[str] = Field(default=None, index=True)
    name: Optional[str] = None
    email: Optional[str] = Field(default=None, index=True)
    phone: Optional[str] = None
    address: Optional[str] = None
    region: Optional[str] = None

    total: float = 0.0
    shipping: float = 0.0
    payment_method: str = "cod"
    payment_status: str = "pending"
    status: str = Field(default="pending", index=True)
    stock_consumed: bool = False

    cancel_reason: Optional[str] = None
    canceled_at: Optional[datetime] = None
    canceled_by: Optional[str] = None

    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class OrderItem(SQLModel, table=True):
    __tablename__ = "order_item"

    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(index=True, foreign_key="orders.id")
    product_id: int = Field(index=True)
    combination_id: Optional[str] = None
    title: str
    unit_type: str = "piece"
    price: float
    quantity: int
    attributes: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))


class OrderItemRead(SQLModel):
    id: int
    product_id: int
    combination_id: Optional[str] = None
    title: str
    unit_type: str
    price: float
    quantity: int


class OrderRead(SQLModel):
    id: int
    clerk_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    region: Optional[str] = None
    total: float
    shipping: float
    payment_method: str
    payment_status: str
    status: str
    stock_consumed: bool
    created_at: datetime
    items: List[OrderItemRead] = Field(default_factory=list)


class CheckoutRequest(SQLModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    region: Optional[str] = None
    payment_method: str = "cod"  # cod | card
    total: Optional[float] = None


class OrderStatusUpdate(SQLModel):
    status: str
    cancel_reason: Optional[str] = None

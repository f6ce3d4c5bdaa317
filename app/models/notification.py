from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class Notification(SQLModel, table=True):
    __tablename__ = "notification"

    id: Optional[int] = Field(default=None, primary_key=True)
    type: str = Field(default="ORDER")  # ORDER | SYSTEM | INFO
    title: str
    message: Optional[str] = None
    payload: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    read: bool = Field(default=False, index=True)
    recipient: Optional[str] = Field(default=None, index=True)
    order_id: Optional[int] = Field(default=None, index=True, foreign_key="orders.id")

    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc)


class NotificationRead(SQLModel):
    id: int
    type: str
    title: str
    message: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None
    read: bool
    recipient: Optional[str] = None
    order_id: Optional[int] = None
    created_at: datetime


class OrderCreatedNotice(SQLModel):
    order_id: int
    recipient: str = "admin"

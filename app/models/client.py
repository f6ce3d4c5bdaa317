from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel

from .product import PurchaseUnit


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class Client(SQLModel, table=True):
    __tablename__ = "client"

    id: Optional[int] = Field(default=None, primary_key=True)
    clerk_id: Optional[str] = Field(default=None, index=True, unique=True)
    name: Optional[str] = None
    email: Optional[str] = Field(default=None, index=True)
    phone: Optional[str] = None
    purchase_unit: str = Field(default="piece")  # piece | quantity

    created_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)


class ClientRead(SQLModel):
    id: int
    clerk_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    purchase_unit: PurchaseUnit = "piece"
    created_at: datetime
    updated_at: datetime


class ClientCreate(SQLModel):
    email: str = Field(min_length=3, max_length=255)
    name: Optional[str] = None
    phone: Optional[str] = None
    purchase_unit: PurchaseUnit = "piece"
    clerk_id: Optional[str] = None


class ClientUpdate(SQLModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    purchase_unit: Optional[PurchaseUnit] = None
    clerk_id: Optional[str] = None


class ClientSync(SQLModel):
    """Infos de profil envoyées par le front après connexion Clerk."""

    email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None

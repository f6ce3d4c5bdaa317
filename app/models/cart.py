from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from .product import PurchaseUnit


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class Cart(SQLModel, table=True):
    """Un panier par utilisateur Clerk."""

    __tablename__ = "cart"

    id: Optional[int] = Field(default=None, primary_key=True)
    clerk_id: str = Field(index=True, unique=True)

    created_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)


class CartItem(SQLModel, table=True):
    """
    Ligne de panier. price/title/image sont des snapshots pris à l'ajout :
    ils ne suivent pas les modifications du produit.
    """

    __tablename__ = "cart_item"

    id: Optional[int] = Field(default=None, primary_key=True)
    cart_id: int = Field(index=True, foreign_key="cart.id")
    product_id: int = Field(index=True)
    combination_id: Optional[str] = None
    quantity: int
    unit_type: str = "piece"

    price_at_add: float
    title_at_add: str
    image_at_add: Optional[str] = None
    variant_label: Optional[str] = None
    options_at_add: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    min_qty: Optional[int] = None
    max_qty: Optional[int] = None

    created_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)


class CartItemRead(SQLModel):
    id: int
    product_id: int
    combination_id: Optional[str] = None
    quantity: int
    unit_type: str
    price_at_add: float
    title_at_add: str
    image_at_add: Optional[str] = None
    variant_label: Optional[str] = None
    options_at_add: Optional[Dict[str, Any]] = None
    min_qty: Optional[int] = None
    max_qty: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class CartRead(SQLModel):
    id: Optional[int] = None
    clerk_id: Optional[str] = None
    items: List[CartItemRead] = Field(default_factory=list)


class AddCartItem(SQLModel):
    product_id: int = Field(gt=0)
    quantity: int = Field(ge=1, le=999)
    combination_id: Optional[str] = Field(default=None, max_length=100)
    unit_type: Optional[PurchaseUnit] = None
    variant_label: Optional[str] = Field(default=None, max_length=200)
    price_from_client: Optional[float] = None


class UpdateCartItem(SQLModel):
    quantity: int = Field(ge=1, le=999)


class ClientPrice(SQLModel):
    product_id: int
    combination_id: Optional[str] = None
    unit_price: float


class ValidateCartRequest(SQLModel):
    """Prix affichés côté client, pour signaler les changements de prix."""

    client_prices: List[ClientPrice] = Field(default_factory=list)

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class ShopSettings(SQLModel, table=True):
    """Ligne unique (id = 1) : frais de livraison et seuil de gratuité."""

    __tablename__ = "shop_settings"

    id: Optional[int] = Field(default=None, primary_key=True)
    default_shipping_fee: Optional[float] = None
    free_shipping_threshold: Optional[float] = None
    updated_at: datetime = Field(default_factory=now_utc)


class ShopSettingsRead(SQLModel):
    default_shipping_fee: float
    free_shipping_threshold: float
    updated_at: Optional[datetime] = None


class ShopSettingsUpdate(SQLModel):
    default_shipping_fee: float = Field(ge=0)
    free_shipping_threshold: float = Field(ge=0)

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import field_validator
from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

PurchaseUnit = Literal["piece", "quantity"]
SaleType = Literal["piece", "quantity", "both"]
FlashTarget = Literal["product", "combinations"]
DiscountType = Literal["percent", "fixed"]


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class Combination(SQLModel):
    """Variante d'un produit (ex: couleur + taille), stockée en JSON sur Product."""

    id: str
    options: Dict[str, str] = Field(default_factory=dict)
    price_piece: Optional[float] = None
    price_quantity: Optional[float] = None
    stock: Optional[int] = None
    min_order_qty_retail: Optional[int] = None
    min_order_qty_wholesale: Optional[int] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, v: Any) -> str:
        if v is None or str(v).strip() == "":
            raise ValueError("combination id is required")
        return str(v).strip()

    @field_validator("options", mode="before")
    @classmethod
    def _options_as_str(cls, v: Any) -> Dict[str, str]:
        if v is None:
            return {}
        if not isinstance(v, dict):
            raise ValueError("combination options must be an object")
        return {str(k): str(val) for k, val in v.items()}

    def label(self) -> Optional[str]:
        if not self.options:
            return None
        return ", ".join(f"{k}: {v}" for k, v in self.options.items())


class ProductBase(SQLModel):
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None

    price_piece: Optional[float] = None
    price_quantity: Optional[float] = None
    sale_type: str = "piece"

    available_quantity: Optional[int] = None  # None = illimité
    in_stock: bool = True
    min_order_qty_retail: int = 1
    min_order_qty_wholesale: int = 1

    visible: bool = True
    status: str = "Active"
    publish_at: Optional[datetime] = None

    vente_flash_active: bool = False
    vente_flash_percentage: Optional[float] = None
    flash_apply_target: str = "product"
    flash_apply_all_combinations: bool = True
    flash_discount_type: str = "percent"
    flash_discount_value: Optional[float] = None
    flash_start_at: Optional[datetime] = None
    flash_end_at: Optional[datetime] = None


class Product(ProductBase, table=True):
    __tablename__ = "product"

    id: Optional[int] = Field(default=None, primary_key=True)
    images: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    combinations: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON))
    flash_combination_ids: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)


class ProductCreate(ProductBase):
    sale_type: SaleType = "piece"
    flash_apply_target: FlashTarget = "product"
    flash_discount_type: DiscountType = "percent"
    images: List[str] = Field(default_factory=list)
    combinations: List[Combination] = Field(default_factory=list)
    flash_combination_ids: List[str] = Field(default_factory=list)


class ProductRead(ProductBase):
    id: int
    images: List[str] = Field(default_factory=list)
    combinations: List[Dict[str, Any]] = Field(default_factory=list)
    flash_combination_ids: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class ProductUpdate(SQLModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    price_piece: Optional[float] = None
    price_quantity: Optional[float] = None
    sale_type: Optional[SaleType] = None
    available_quantity: Optional[int] = None
    in_stock: Optional[bool] = None
    min_order_qty_retail: Optional[int] = None
    min_order_qty_wholesale: Optional[int] = None
    visible: Optional[bool] = None
    status: Optional[str] = None
    publish_at: Optional[datetime] = None
    images: Optional[List[str]] = None
    combinations: Optional[List[Combination]] = None
    vente_flash_active: Optional[bool] = None
    vente_flash_percentage: Optional[float] = None
    flash_apply_target: Optional[FlashTarget] = None
    flash_apply_all_combinations: Optional[bool] = None
    flash_combination_ids: Optional[List[str]] = None
    flash_discount_type: Optional[DiscountType] = None
    flash_discount_value: Optional[float] = None
    flash_start_at: Optional[datetime] = None
    flash_end_at: Optional[datetime] = None


class PriceQuote(SQLModel):
    product_id: int
    combination_id: Optional[str] = None
    unit: PurchaseUnit
    base_price: float
    price: float
    flash_applied: bool
    min_qty: int
    stock: Optional[int] = None
    can_purchase: bool
    min_qty_message: str = ""

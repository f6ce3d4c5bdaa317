from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import Field, SQLModel


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    ADMIN = "ADMIN"
    PRODUCT_MANAGER = "PRODUCT_MANAGER"
    ORDER_MANAGER = "ORDER_MANAGER"
    CUSTOMER = "CUSTOMER"


ADMIN_ROLES = (Role.ADMIN, Role.PRODUCT_MANAGER, Role.ORDER_MANAGER)


class Employee(SQLModel, table=True):
    __tablename__ = "employee"

    id: Optional[int] = Field(default=None, primary_key=True)
    full_name: str
    email: Optional[str] = Field(default=None, index=True, unique=True)
    phone: Optional[str] = None
    role: Role = Field(default=Role.CUSTOMER)
    is_active: bool = True

    created_at: datetime = Field(default_factory=now_utc)
    updated_at: datetime = Field(default_factory=now_utc)


class RoleRead(SQLModel):
    role: Optional[Role] = None
    is_active: bool = True
    id: Optional[int] = None
    full_name: Optional[str] = None


class EmployeeRead(SQLModel):
    id: int
    full_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Role
    is_active: bool
    created_at: datetime
    updated_at: datetime


class EmployeeCreate(SQLModel):
    full_name: str = Field(min_length=1, max_length=200)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    role: Role


class EmployeeUpdate(SQLModel):
    full_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    email: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=50)
    role: Optional[Role] = None
    is_active: Optional[bool] = None

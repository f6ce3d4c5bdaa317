from .product import (
    Combination, PriceQuote, Product, ProductCreate, ProductRead, ProductUpdate, PurchaseUnit,
)
from .client import Client, ClientCreate, ClientRead, ClientSync, ClientUpdate
from .cart import (
    AddCartItem, Cart, CartItem, CartItemRead, CartRead, ClientPrice, UpdateCartItem, ValidateCartRequest,
)
from .order import CheckoutRequest, Order, OrderItem, OrderItemRead, OrderRead, OrderStatusUpdate
from .notification import Notification, NotificationRead, OrderCreatedNotice
from .employee import ADMIN_ROLES, Employee, EmployeeCreate, EmployeeRead, EmployeeUpdate, Role, RoleRead
from .shop_settings import ShopSettings, ShopSettingsRead, ShopSettingsUpdate

__all__ = [
    "Combination", "PriceQuote", "Product", "ProductCreate", "ProductRead", "ProductUpdate", "PurchaseUnit",
    "Client", "ClientCreate", "ClientRead", "ClientSync", "ClientUpdate",
    "AddCartItem", "Cart", "CartItem", "CartItemRead", "CartRead", "ClientPrice", "UpdateCartItem",
    "ValidateCartRequest",
    "CheckoutRequest", "Order", "OrderItem", "OrderItemRead", "OrderRead", "OrderStatusUpdate",
    "Notification", "NotificationRead", "OrderCreatedNotice",
    "ADMIN_ROLES", "Employee", "EmployeeCreate", "EmployeeRead", "EmployeeUpdate", "Role", "RoleRead",
    "ShopSettings", "ShopSettingsRead", "ShopSettingsUpdate",
]

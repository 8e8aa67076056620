"""
Request schemas for the hotel management API

Each entity lives in its own MongoDB collection:
- User -> user
- Table -> table
- Menu -> menu
- Food -> food
- Order -> order
- OrderItem -> orderitem
- Invoice -> invoice

Create bodies carry the required fields; update bodies make everything
optional, and only fields the client actually sends (non-empty) are applied.
Identifiers, timestamps and computed fields are always set by the server.
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Dict, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class Schema(BaseModel):
    model_config = ConfigDict(use_enum_values=True, str_strip_whitespace=True)


class TableStatus(str, Enum):
    NOT_RESERVED = "Not Reserved"
    RESERVED = "Reserved"


class OrderStatus(str, Enum):
    PENDING = "Order Pending"
    PLACED = "Order Placed"
    CONFIRMED = "Order Confirmed"
    PREPARING = "Preparing Order"
    SERVED = "Order Served"
    PAID = "Order Paid"
    CANCELLED = "Order Cancelled"
    REJECTED = "Order Rejected"


# an order in one of these states no longer occupies its table
TERMINAL_ORDER_STATUSES = (
    OrderStatus.PAID.value,
    OrderStatus.CANCELLED.value,
    OrderStatus.REJECTED.value,
)


class PaymentMethod(str, Enum):
    CARD = "CARD"
    CASH = "CASH"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"


# ---------- Users ----------
class SignupBody(Schema):
    first_name: str = Field(..., min_length=2, max_length=100)
    last_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    phone: Optional[str] = Field(None, min_length=7, max_length=20)


class LoginBody(Schema):
    email: EmailStr
    password: str = Field(..., min_length=1)


# ---------- Tables ----------
class TableCreate(Schema):
    number_of_guests: int = Field(..., ge=1)
    table_number: Optional[int] = Field(None, ge=1, description="Unique when assigned")


class TableUpdate(Schema):
    number_of_guests: Optional[int] = Field(None, ge=1)
    table_number: Optional[int] = Field(None, ge=1)


# ---------- Menus ----------
class MenuCreate(Schema):
    name: str = Field(..., min_length=2, max_length=100)
    category: str = Field(..., min_length=2, max_length=50)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class MenuUpdate(Schema):
    name: Optional[str] = Field(None, max_length=100)
    category: Optional[str] = Field(None, max_length=50)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


# ---------- Foods ----------
class FoodCreate(Schema):
    name: str = Field(..., min_length=2, max_length=100)
    price: float = Field(..., gt=0)
    food_image: Optional[str] = None
    menu_id: str = Field(..., min_length=1)


class FoodUpdate(Schema):
    name: Optional[str] = Field(None, max_length=100)
    price: Optional[float] = Field(None, gt=0)
    food_image: Optional[str] = None
    menu_id: Optional[str] = None


# ---------- Orders ----------
class OrderCreate(Schema):
    table_id: str = Field(..., min_length=1)
    user_id: Optional[str] = Field(None, description="Defaults to the authenticated user")
    status: Optional[OrderStatus] = None
    order_date: Optional[datetime] = None


class OrderUpdate(Schema):
    table_id: Optional[str] = None
    order_date: Optional[datetime] = None


class OrderStatusUpdate(Schema):
    status: OrderStatus


# ---------- Order items ----------
Quantity = Annotated[int, Field(ge=1)]


class OrderItemCreate(Schema):
    order_id: str = Field(..., min_length=1)
    table_id: str = Field(..., min_length=1)
    items: Dict[str, Quantity] = Field(..., min_length=1, description="food_id -> quantity")


class OrderItemUpdate(Schema):
    items: Dict[str, Quantity] = Field(..., min_length=1, description="food_id -> quantity")


# ---------- Invoices ----------
class InvoiceCreate(Schema):
    order_id: str = Field(..., min_length=1)
    user_id: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    payment_status: Optional[PaymentStatus] = None
    payment_date: Optional[datetime] = None
    # accepted for compatibility; the total is always computed from the order items
    total_price: Optional[float] = None


class InvoiceUpdate(Schema):
    payment_method: Optional[PaymentMethod] = None
    payment_status: Optional[PaymentStatus] = None
    payment_date: Optional[datetime] = None

"""
Request models for the storefront API.

Documents are persisted with the same camelCase keys the JSON bodies use,
so every model dumps with ``by_alias=True``.
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


# Catalog

class ProductIn(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    discount_price: Optional[float] = Field(None, ge=0)
    category: str = Field(..., min_length=1)
    images: List[str] = Field(..., min_length=1)
    stock: int = Field(0, ge=0)
    sizes: List[str] = []
    colors: List[str] = []
    featured: bool = False

    @model_validator(mode="after")
    def check_discount(self):
        if self.discount_price is not None and self.discount_price >= self.price:
            raise ValueError("discountPrice must be less than price")
        return self


class ProductUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0)
    discount_price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = Field(None, min_length=1)
    images: Optional[List[str]] = Field(None, min_length=1)
    stock: Optional[int] = Field(None, ge=0)
    sizes: Optional[List[str]] = None
    colors: Optional[List[str]] = None
    featured: Optional[bool] = None

    @field_validator(
        "name", "description", "price", "category", "images", "stock", "sizes", "colors", "featured", mode="before"
    )
    @classmethod
    def reject_null(cls, value):
        # Omit a field to keep it; only discountPrice may be cleared with null.
        if value is None:
            raise ValueError("must not be null")
        return value


class CategoryIn(CamelModel):
    name: str = Field(..., min_length=1, max_length=80)
    description: Optional[str] = None
    image: Optional[str] = None


# Orders

class ShippingAddress(CamelModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    pincode: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_not_blank(self):
        for field, value in self.model_dump().items():
            if not value.strip():
                raise ValueError(f"{field} must not be blank")
        return self


class OrderItemIn(CamelModel):
    product_id: str
    quantity: int = Field(..., ge=1)
    # Accepted for compatibility; the catalog price is what gets charged.
    price: Optional[float] = Field(None, ge=0)
    size: Optional[str] = None
    color: Optional[str] = None


class OrderCreate(CamelModel):
    items: List[OrderItemIn] = Field(..., min_length=1)
    shipping_address: ShippingAddress
    gateway_order_id: Optional[str] = None


class OrderStatusUpdate(CamelModel):
    order_status: OrderStatus


# Payments

class PaymentIntentIn(CamelModel):
    amount: Optional[float] = Field(None, gt=0)
    order_id: Optional[str] = None

    @model_validator(mode="after")
    def check_amount_or_order(self):
        if self.amount is None and not self.order_id:
            raise ValueError("amount or orderId is required")
        return self


class PaymentVerifyIn(CamelModel):
    gateway_order_id: str = Field(..., min_length=1)
    gateway_payment_id: str = Field(..., min_length=1)
    signature: str = Field(..., min_length=1)
    order_id: str = Field(..., min_length=1)


class PaymentFailureIn(CamelModel):
    order_id: str = Field(..., min_length=1)
    gateway_order_id: Optional[str] = None
    reason: Optional[str] = None

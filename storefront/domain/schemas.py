# storefront/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, PlainSerializer, field_validator
from pydantic.alias_generators import to_camel

from storefront.domain.enums import OrderStatus, Role

T = TypeVar("T")

#Decimal in Python, JSON number on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python; both accepted on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# auth

class RegisterIn(ApiModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=64)
    name: Optional[str] = Field(None, max_length=100)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class LoginIn(ApiModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=64)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UserOut(ApiModel):
    id: int
    email: str
    name: Optional[str] = None
    role: Role
    created_at: Optional[datetime] = None


class UserRef(ApiModel):
    """Public identity of an order owner (admin view)."""

    id: int
    email: str


class LoginOut(ApiModel):
    access_token: str
    user: UserOut


# pagination

class PageMeta(ApiModel):
    total: int
    page: int
    limit: int
    total_pages: int


class Page(ApiModel, Generic[T]):
    data: List[T]
    meta: PageMeta


# categories

class CategoryCreate(ApiModel):
    name: str = Field(..., min_length=3, max_length=100)
    description: Optional[str] = None


class CategoryUpdate(ApiModel):
    name: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = None


class CategoryOut(ApiModel):
    id: int
    name: str
    description: Optional[str] = None
    created_at: datetime
    product_count: Optional[int] = None


class CategoryProductOut(ApiModel):
    id: int
    name: str
    price: Money
    stock: int
    images: List[str] = []


class CategoryDetailOut(CategoryOut):
    products: List[CategoryProductOut] = []


# products

class ProductCreate(ApiModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(..., ge=0)
    images: List[str] = []
    category_id: int = Field(..., gt=0)


class ProductUpdate(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    stock: Optional[int] = Field(None, ge=0)
    images: Optional[List[str]] = None
    category_id: Optional[int] = Field(None, gt=0)


class CategoryRef(ApiModel):
    id: int
    name: str


class ProductOut(ApiModel):
    id: int
    name: str
    description: str
    price: Money
    stock: int
    images: List[str] = []
    category_id: int
    category: Optional[CategoryRef] = None
    created_at: datetime
    updated_at: datetime


class ImageUploadOut(ApiModel):
    url: str


# cart

class AddToCartIn(ApiModel):
    """Schema for adding a product to the cart."""

    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., ge=1)


class CartProductOut(ApiModel):
    id: int
    name: str
    price: Money
    stock: int
    images: List[str] = []


class CartItemOut(ApiModel):
    id: int
    cart_id: int
    product_id: int
    quantity: int
    product: CartProductOut


class CartOut(ApiModel):
    """Cart with live prices; id is absent when the user has no cart yet."""

    id: Optional[int] = None
    user_id: Optional[int] = None
    items: List[CartItemOut]
    total: Money
    created_at: Optional[datetime] = None


class RemovedCartItemOut(ApiModel):
    id: int
    cart_id: int
    product_id: int
    quantity: int


class ClearCartOut(ApiModel):
    count: int


# orders

class OrderItemOut(ApiModel):
    product_id: Optional[int] = None
    product_name: str
    quantity: int
    price: Money


class OrderOut(ApiModel):
    id: int
    user_id: int
    status: OrderStatus
    total: Money
    idempotency_key: Optional[str] = None
    items: List[OrderItemOut]
    created_at: datetime


class AdminOrderOut(OrderOut):
    user: UserRef


class UpdateOrderStatusIn(ApiModel):
    status: OrderStatus


class AdminStatsOut(ApiModel):
    total_revenue: Money
    total_orders: int
    total_products: int



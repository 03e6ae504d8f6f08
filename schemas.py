"""
Database Schemas for the Jewelry Storefront

Each Pydantic model represents a MongoDB collection. The collection name is the
lowercased class name (e.g., Category -> "category"). Field names travel in
camelCase on the wire and in stored documents (in_stock <-> "inStock").
Unknown fields are rejected rather than silently dropped.
"""

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from database import is_object_id

OrderStatus = Literal["pending", "processing", "completed", "cancelled"]
ORDER_STATUSES = ("pending", "processing", "completed", "cancelled")

ImageField = Union[str, List[str]]


def check_image(value):
    """Accept one URL string or a non-empty list of URL strings."""
    if isinstance(value, str):
        if value.strip():
            return value.strip()
    elif isinstance(value, list) and value and all(isinstance(i, str) and i.strip() for i in value):
        return [i.strip() for i in value]
    raise ValueError("Image must be a valid URL string or array of URL strings")


class StoreModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="forbid",
    )


class Admin(StoreModel):
    """
    Admin collection schema
    Exactly one record exists; it is created by `seed.py admin`.
    """
    name: str = Field(..., min_length=1, description="Display name")
    email: EmailStr = Field(..., description="Login email, stored lowercase")
    password: str = Field(..., description="bcrypt hash, never the plain password")

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class Category(StoreModel):
    """Categories collection schema. Names are unique ignoring case."""
    name: str = Field(..., min_length=1, max_length=50, description="Category name")
    description: Optional[str] = Field(None, max_length=200)
    image: Optional[str] = Field(None, description="Cover image URL")


class Product(StoreModel):
    """Products collection schema"""
    name: str = Field(..., min_length=1, max_length=100, description="Product name")
    category: str = Field(..., description="Category id")
    price: float = Field(..., ge=0)
    image: ImageField = Field(..., description="Image URL or list of URLs")
    description: Optional[str] = Field(None, max_length=500)
    in_stock: Optional[bool] = Field(None, description="Defaults to true on create")

    @field_validator("category")
    @classmethod
    def category_is_id(cls, v: str) -> str:
        if not is_object_id(v):
            raise ValueError("Invalid category ID")
        return v

    @field_validator("image", mode="before")
    @classmethod
    def image_urls(cls, v):
        return check_image(v)


class CartItem(StoreModel):
    """Snapshot of a product at checkout time. Not linked to the live product."""
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    image: ImageField
    description: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)

    @field_validator("image", mode="before")
    @classmethod
    def image_urls(cls, v):
        return check_image(v)


class OrderCreate(StoreModel):
    """What a storefront client submits at checkout."""
    items: List[CartItem]
    total: float = Field(..., ge=0)
    customer_name: str = Field(..., min_length=1)
    email: EmailStr
    contact_number: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)

    @field_validator("items")
    @classmethod
    def has_items(cls, v: List[CartItem]) -> List[CartItem]:
        if not v:
            raise ValueError("Order must have at least one item")
        return v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class Order(OrderCreate):
    """Orders collection schema"""
    status: OrderStatus = Field("pending")

# backend/wims/schemas.py
#
# Request/response shapes. Requests are validated here, before any
# transaction is opened.

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wims.models.movement_log import MovementType
from wims.models.order import OrderStatus


def _strip_required(v: str) -> str:
    v = (v or "").strip()
    if not v:
        raise ValueError("must not be blank")
    return v


def _clean_location(v: Optional[str]) -> Optional[str]:
    # blank and missing mean the same thing: no location
    if v is None:
        return None
    return v.strip() or None


# ---------- PRODUCTS ----------

class ProductCreate(BaseModel):
    sku: str = Field(max_length=50)
    name: str = Field(max_length=100)
    quantity: int = Field(ge=0)

    reorder_point: int = Field(default=10, ge=0)
    location: Optional[str] = Field(default=None, max_length=100)
    category: Optional[str] = Field(default=None, max_length=50)
    unit_cost: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    expiration_date: Optional[date] = None
    description: Optional[str] = None

    @field_validator("sku", "name")
    @classmethod
    def _not_blank(cls, v):
        return _strip_required(v)

    @field_validator("location")
    @classmethod
    def _location(cls, v):
        return _clean_location(v)


class ProductUpdate(BaseModel):
    # sku is immutable: sending it is an error, not a silent no-op
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, max_length=100)
    quantity: Optional[int] = Field(default=None, ge=0)
    reorder_point: Optional[int] = Field(default=None, ge=0)
    location: Optional[str] = Field(default=None, max_length=100)
    category: Optional[str] = Field(default=None, max_length=50)
    unit_cost: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    expiration_date: Optional[date] = None
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v):
        return None if v is None else _strip_required(v)

    @field_validator("location")
    @classmethod
    def _location(cls, v):
        return _clean_location(v)


class ProductOut(BaseModel):
    id: int
    sku: str
    name: str
    quantity: int
    reorder_point: int
    location: Optional[str] = None
    category: Optional[str] = None
    unit_cost: Optional[Decimal] = None
    expiration_date: Optional[date] = None
    description: Optional[str] = None
    is_low_stock: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---------- ORDERS ----------

class OrderItemIn(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)
    unit_cost: Decimal = Field(ge=0, max_digits=10, decimal_places=2)


class OrderCreate(BaseModel):
    supplier_id: int
    expected_delivery: Optional[date] = None
    notes: Optional[str] = None
    items: List[OrderItemIn] = Field(min_length=1)


class OrderItemOut(BaseModel):
    id: int
    product_id: int
    quantity: int
    unit_cost: Decimal
    subtotal: Decimal

    class Config:
        from_attributes = True


class OrderOut(BaseModel):
    id: int
    supplier_id: int
    user_id: int
    status: OrderStatus
    total_cost: Decimal
    order_date: Optional[date] = None
    expected_delivery: Optional[date] = None
    notes: Optional[str] = None
    received_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    items: List[OrderItemOut] = []

    class Config:
        from_attributes = True


# ---------- REPORTS ----------

class MovementOut(BaseModel):
    id: int
    product_id: int
    product_sku: Optional[str] = None
    product_name: Optional[str] = None
    user_id: Optional[int] = None
    user_name: Optional[str] = None
    movement_type: MovementType
    quantity_change: int
    from_location: Optional[str] = None
    to_location: Optional[str] = None
    notes: Optional[str] = None
    timestamp: datetime


class LocationSummary(BaseModel):
    location: Optional[str] = None
    item_count: int
    total_quantity: int


class AuditLogOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    action: str
    details: Optional[str] = None
    ip_address: Optional[str] = None
    timestamp: datetime

    class Config:
        from_attributes = True


class DriftOut(BaseModel):
    product_id: int
    sku: str
    quantity: int
    ledger_quantity: int

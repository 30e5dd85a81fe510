"""Pydantic v2 schemas for orders, line items and supplier settlement groups."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from bfood.models.enums import DeliveryOption, OrderItemStatus

# ---------------------------------------------------------------------------
# Core records
# ---------------------------------------------------------------------------


class LineItem(BaseModel):
    """One product entry of a cart or of a persisted order."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: uuid.UUID | None = None
    order_id: uuid.UUID | None = None
    product_id: uuid.UUID
    supplier_id: uuid.UUID
    quantity: int = Field(..., ge=0)
    unit_price: Decimal
    delivery_fee: Decimal = Decimal("0")
    status: OrderItemStatus = OrderItemStatus.PENDING
    product_name: str | None = None
    unit: str | None = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


class ProfileSummary(BaseModel):
    """Display profile of a restaurant or supplier; never used in totals."""

    model_config = ConfigDict(from_attributes=True)

    user_id: uuid.UUID
    business_name: str
    phone: str | None = None
    city: str | None = None
    bank_name: str | None = None
    bank_account_name: str | None = None
    bank_iban: str | None = None
    delivery_option: DeliveryOption | None = None
    minimum_order_amount: Decimal | None = None
    default_delivery_fee: Decimal | None = None


class PaymentNotification(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID | None = None
    order_id: uuid.UUID | None = None
    supplier_id: uuid.UUID
    restaurant_id: uuid.UUID
    is_paid: bool = False
    receipt_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SettlementGroup(BaseModel):
    """Per-supplier rollup of one order's (or one cart's) line items."""

    supplier_id: uuid.UUID
    order_id: uuid.UUID | None = None
    supplier_profile: ProfileSummary | None = None
    delivery_fee: Decimal = Decimal("0")
    items_total: Decimal = Decimal("0")
    items_count: int = 0
    is_paid: bool = False
    receipt_url: str | None = None
    items: list[LineItem] = Field(default_factory=list)


class OrderTotals(BaseModel):
    subtotal: Decimal
    delivery_fee: Decimal
    total_amount: Decimal


class StatusProvenance(BaseModel):
    """Where the order-level status came from.

    The order status mirrors the latest bulk transition one supplier applied
    to its own items; it is not a consensus across suppliers.
    """

    advisory: bool = True
    supplier_id: uuid.UUID | None = None
    updated_at: datetime | None = None


class OrderView(BaseModel):
    """An order enriched with profiles and per-supplier settlement groups."""

    id: uuid.UUID
    restaurant_id: uuid.UUID
    total_amount: Decimal
    delivery_fee: Decimal
    status: OrderItemStatus
    status_provenance: StatusProvenance = Field(default_factory=StatusProvenance)
    is_pickup: bool | None = None
    branch_id: uuid.UUID | None = None
    delivery_address: str | None = None
    notes: str | None = None
    created_at: datetime | None = None
    restaurant_profile: ProfileSummary | None = None
    suppliers: list[SettlementGroup] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CartItemInput(BaseModel):
    product_id: uuid.UUID
    quantity: int = Field(..., ge=1)


class OrderCreate(BaseModel):
    items: list[CartItemInput] = Field(..., min_length=1)
    delivery_address: str | None = Field(None, max_length=500)
    notes: str | None = Field(None, max_length=2000)
    branch_id: uuid.UUID | None = None
    pickup_supplier_ids: list[uuid.UUID] = Field(default_factory=list)


class CartPreviewRequest(BaseModel):
    items: list[CartItemInput] = Field(..., min_length=1)
    pickup_supplier_ids: list[uuid.UUID] = Field(default_factory=list)


class ItemStatusUpdate(BaseModel):
    new_status: OrderItemStatus


class SupplierStatusUpdate(BaseModel):
    new_status: OrderItemStatus


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class CartPreviewResponse(BaseModel):
    totals: OrderTotals
    suppliers: list[SettlementGroup]


class OrderListResponse(BaseModel):
    items: list[OrderView]
    total: int
    limit: int
    offset: int

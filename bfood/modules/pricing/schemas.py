"""Pydantic schemas for price tiers, tier bands and quotes."""

from __future__ import annotations

import uuid
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class PriceTier(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: uuid.UUID | None = None
    product_id: uuid.UUID | None = None
    min_quantity: int
    price_per_unit: Decimal


class PriceTierInput(BaseModel):
    min_quantity: int = Field(..., ge=1)
    price_per_unit: Decimal = Field(..., gt=0, decimal_places=2)


class PriceTiersReplace(BaseModel):
    tiers: list[PriceTierInput] = Field(default_factory=list)


class TierBand(BaseModel):
    """One row of the quantity-discount table shown on a product page."""

    min_quantity: int
    max_quantity: int | None = None
    price_per_unit: Decimal
    savings_percent: int = 0
    is_base: bool = False
    is_active: bool = False


class PriceQuote(BaseModel):
    product_id: uuid.UUID
    quantity: int
    unit: str
    base_price: Decimal
    unit_price: Decimal
    line_total: Decimal
    savings_percent: int
    applied_tier: PriceTier | None = None
    bands: list[TierBand] = Field(default_factory=list)


class PriceTierListResponse(BaseModel):
    product_id: uuid.UUID
    tiers: list[PriceTier]

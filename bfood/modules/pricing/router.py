"""Product pricing API router — tier reads, supplier tier replacement, quotes."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from bfood.cache import QueryCache, get_cache
from bfood.database.session import get_db
from bfood.modules.auth.auth import AuthenticatedUser, get_current_user
from bfood.modules.auth.permissions import require_supplier
from bfood.modules.pricing.schemas import (
    PriceQuote,
    PriceTierListResponse,
    PriceTiersReplace,
)
from bfood.modules.pricing.service import PriceTierService

router = APIRouter(prefix="/products", tags=["pricing"])


@router.get("/price-tiers/products", response_model=list[uuid.UUID])
async def list_products_with_tiers(
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    """Ids of every product that has at least one price tier."""
    return await PriceTierService(db, cache).list_products_with_tiers()


@router.get("/{product_id}/price-tiers", response_model=PriceTierListResponse)
async def get_price_tiers(
    product_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    tiers = await PriceTierService(db, cache).list_tiers(product_id)
    return PriceTierListResponse(product_id=product_id, tiers=tiers)


@router.put("/{product_id}/price-tiers", response_model=PriceTierListResponse)
async def replace_price_tiers(
    product_id: uuid.UUID,
    body: PriceTiersReplace,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    """Replace the product's whole tier set (owning supplier only)."""
    require_supplier(user)
    tiers = await PriceTierService(db, cache).replace_tiers(
        product_id=product_id,
        supplier_id=user.effective_id,
        tiers=body.tiers,
    )
    return PriceTierListResponse(product_id=product_id, tiers=tiers)


@router.get("/{product_id}/quote", response_model=PriceQuote)
async def quote_product(
    product_id: uuid.UUID,
    quantity: int = Query(1, ge=1),
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    """Unit price, savings and tier table for a quantity."""
    return await PriceTierService(db, cache).quote(product_id, quantity)

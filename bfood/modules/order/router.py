"""Order API router — checkout, restaurant/supplier/admin views, status updates."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from bfood.cache import QueryCache, get_cache
from bfood.database.session import get_db
from bfood.exceptions import ForbiddenException
from bfood.models.enums import UserRole
from bfood.modules.auth.auth import AuthenticatedUser, get_current_user
from bfood.modules.auth.permissions import (
    PERM_CREATE_ORDERS,
    PERM_VIEW_ORDERS,
    has_permission,
    require_admin,
    require_permission,
    require_restaurant,
    require_supplier,
)
from bfood.modules.order.schemas import (
    CartPreviewRequest,
    CartPreviewResponse,
    ItemStatusUpdate,
    LineItem,
    OrderCreate,
    OrderListResponse,
    OrderView,
    SupplierStatusUpdate,
)
from bfood.modules.order.service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _verify_order_access(order: OrderView, user: AuthenticatedUser) -> None:
    """Admins see every order; restaurants their own; suppliers those they supply.

    Restaurant sub-users also need the view-orders permission.
    """
    if user.role == UserRole.ADMIN:
        return
    if user.role == UserRole.RESTAURANT and order.restaurant_id == user.effective_id:
        if not has_permission(user, PERM_VIEW_ORDERS):
            raise ForbiddenException(f"Permission denied: {PERM_VIEW_ORDERS}")
        return
    if user.role == UserRole.SUPPLIER and any(
        group.supplier_id == user.effective_id for group in order.suppliers
    ):
        return
    raise ForbiddenException("You do not have access to this order")


# ---------------------------------------------------------------------------
# Restaurant
# ---------------------------------------------------------------------------


@router.post("/preview", response_model=CartPreviewResponse)
async def preview_cart(
    body: CartPreviewRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    """Price a cart and group it by supplier without placing an order."""
    require_restaurant(user)
    return await OrderService(db, cache).preview_cart(body.items, body.pickup_supplier_ids)


@router.post("/", response_model=OrderView, status_code=201)
async def create_order(
    body: OrderCreate,
    user: AuthenticatedUser = Depends(require_permission(PERM_CREATE_ORDERS)),
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    require_restaurant(user)
    return await OrderService(db, cache).create_from_cart(
        restaurant_id=user.effective_id,
        items=body.items,
        delivery_address=body.delivery_address,
        notes=body.notes,
        branch_id=body.branch_id,
        pickup_supplier_ids=body.pickup_supplier_ids,
    )


@router.get("/", response_model=OrderListResponse)
async def list_orders(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: AuthenticatedUser = Depends(require_permission(PERM_VIEW_ORDERS)),
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    """List the calling restaurant's orders with per-supplier settlement groups."""
    require_restaurant(user)
    items, total = await OrderService(db, cache).list_restaurant_orders(
        restaurant_id=user.effective_id, limit=limit, offset=offset
    )
    return OrderListResponse(items=items, total=total, limit=limit, offset=offset)


# ---------------------------------------------------------------------------
# Supplier
# ---------------------------------------------------------------------------


@router.get("/supplier/items", response_model=list[LineItem])
async def list_supplier_items(
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    require_supplier(user)
    return await OrderService(db, cache).list_supplier_order_items(user.effective_id)


@router.patch("/items/{item_id}/status", response_model=LineItem)
async def update_item_status(
    item_id: uuid.UUID,
    body: ItemStatusUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    require_supplier(user)
    return await OrderService(db, cache).update_item_status(
        item_id, user.effective_id, body.new_status
    )


@router.patch("/{order_id}/supplier-status", response_model=OrderView)
async def update_supplier_status(
    order_id: uuid.UUID,
    body: SupplierStatusUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    """Move all of the calling supplier's items in the order to a new status."""
    require_supplier(user)
    return await OrderService(db, cache).update_supplier_order_status(
        order_id, user.effective_id, body.new_status
    )


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@router.get("/admin/delivery", response_model=list[OrderView])
async def list_delivery_orders(
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    require_admin(user)
    return await OrderService(db, cache).list_admin_delivery_orders()


# Registered last so the literal paths above take precedence
@router.get("/{order_id}", response_model=OrderView)
async def get_order(
    order_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    order = await OrderService(db, cache).get_order_view(order_id)
    _verify_order_access(order, user)
    return order

"""Payment notification API router."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bfood.cache import QueryCache, get_cache
from bfood.database.session import get_db
from bfood.exceptions import NotFoundException
from bfood.modules.auth.auth import AuthenticatedUser, get_current_user
from bfood.modules.auth.permissions import (
    PERM_MANAGE_PAYMENTS,
    require_permission,
    require_restaurant,
    require_supplier,
)
from bfood.modules.order.schemas import PaymentNotification
from bfood.modules.payment.schemas import PaymentListResponse, PaymentNotifyRequest
from bfood.modules.payment.service import PaymentNotificationService

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("/", response_model=PaymentNotification, status_code=201)
async def notify_payment(
    body: PaymentNotifyRequest,
    user: AuthenticatedUser = Depends(require_permission(PERM_MANAGE_PAYMENTS)),
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    """Report having paid a supplier, for one order or for the relationship."""
    require_restaurant(user)
    return await PaymentNotificationService(db, cache).notify_payment(
        restaurant_id=user.effective_id,
        supplier_id=body.supplier_id,
        order_id=body.order_id,
        receipt_url=body.receipt_url,
    )


@router.get("/restaurant", response_model=PaymentListResponse)
async def list_restaurant_payments(
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    require_restaurant(user)
    items = await PaymentNotificationService(db, cache).list_for_restaurant(user.effective_id)
    return PaymentListResponse(items=items)


@router.get("/supplier", response_model=PaymentListResponse)
async def list_supplier_payments(
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    require_supplier(user)
    items = await PaymentNotificationService(db, cache).list_for_supplier(user.effective_id)
    return PaymentListResponse(items=items)


@router.get("/orders/{order_id}", response_model=PaymentNotification)
async def get_order_payment(
    order_id: uuid.UUID,
    user: AuthenticatedUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    cache: QueryCache = Depends(get_cache),
):
    """The calling supplier's payment notice for an order."""
    require_supplier(user)
    payment = await PaymentNotificationService(db, cache).get_for_order(order_id, user.effective_id)
    if payment is None:
        raise NotFoundException(f"No payment reported for order {order_id}")
    return payment

"""Payment notification service — restaurants report paying a supplier."""

from __future__ import annotations

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bfood.cache import QueryCache
from bfood.exceptions import BusinessRuleException, ForbiddenException, NotFoundException
from bfood.models.enums import NotificationType
from bfood.models.order import Order
from bfood.models.order_item import OrderItem
from bfood.models.order_payment import OrderPayment
from bfood.modules.notification.service import NotificationService
from bfood.modules.order.constants import RESTAURANT_ORDERS_CACHE_KEY
from bfood.modules.order.schemas import PaymentNotification

logger = logging.getLogger(__name__)


class PaymentNotificationService:
    """A notification of intent to pay, not a confirmed settlement."""

    def __init__(self, db: AsyncSession, cache: QueryCache):
        self.db = db
        self.cache = cache

    async def _find(
        self,
        restaurant_id: uuid.UUID,
        supplier_id: uuid.UUID,
        order_id: uuid.UUID | None,
    ) -> OrderPayment | None:
        query = select(OrderPayment).where(OrderPayment.supplier_id == supplier_id)
        if order_id is None:
            query = query.where(
                OrderPayment.order_id.is_(None),
                OrderPayment.restaurant_id == restaurant_id,
            )
        else:
            query = query.where(OrderPayment.order_id == order_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def notify_payment(
        self,
        restaurant_id: uuid.UUID,
        supplier_id: uuid.UUID,
        order_id: uuid.UUID | None = None,
        receipt_url: str | None = None,
    ) -> PaymentNotification:
        """Create or update the single notice for (order, supplier) and mark it paid.

        Without an order the notice covers the restaurant/supplier relationship.
        """
        if order_id is not None:
            order_result = await self.db.execute(select(Order).where(Order.id == order_id))
            order = order_result.scalar_one_or_none()
            if order is None:
                raise NotFoundException(f"Order {order_id} not found")
            if order.restaurant_id != restaurant_id:
                raise ForbiddenException("Only the ordering restaurant can report payment")

            items_result = await self.db.execute(
                select(OrderItem.id)
                .where(OrderItem.order_id == order_id, OrderItem.supplier_id == supplier_id)
                .limit(1)
            )
            if items_result.scalar_one_or_none() is None:
                raise BusinessRuleException(
                    f"Order {order_id} has no items from supplier {supplier_id}"
                )

        payment = await self._find(restaurant_id, supplier_id, order_id)
        if payment is None:
            payment = OrderPayment(
                order_id=order_id,
                supplier_id=supplier_id,
                restaurant_id=restaurant_id,
            )
            self.db.add(payment)
        payment.is_paid = True
        if receipt_url is not None:
            payment.receipt_url = receipt_url
        await self.db.flush()
        await self.db.refresh(payment)

        await NotificationService(self.db).notify(
            supplier_id,
            title="Payment reported",
            message="A restaurant reported a payment to you",
            type=NotificationType.PAYMENT,
            order_id=order_id,
        )
        await self.cache.invalidate_prefix(
            RESTAURANT_ORDERS_CACHE_KEY.format(restaurant_id=restaurant_id)
        )

        logger.info(
            "Restaurant %s reported payment to supplier %s (order %s)",
            restaurant_id, supplier_id, order_id,
        )
        return PaymentNotification.model_validate(payment)

    async def get_for_order(
        self, order_id: uuid.UUID, supplier_id: uuid.UUID
    ) -> PaymentNotification | None:
        result = await self.db.execute(
            select(OrderPayment).where(
                OrderPayment.order_id == order_id,
                OrderPayment.supplier_id == supplier_id,
            )
        )
        payment = result.scalar_one_or_none()
        return PaymentNotification.model_validate(payment) if payment else None

    async def list_for_supplier(self, supplier_id: uuid.UUID) -> list[PaymentNotification]:
        result = await self.db.execute(
            select(OrderPayment)
            .where(OrderPayment.supplier_id == supplier_id)
            .order_by(OrderPayment.created_at.desc())
        )
        return [PaymentNotification.model_validate(p) for p in result.scalars().all()]

    async def list_for_restaurant(self, restaurant_id: uuid.UUID) -> list[PaymentNotification]:
        result = await self.db.execute(
            select(OrderPayment)
            .where(OrderPayment.restaurant_id == restaurant_id)
            .order_by(OrderPayment.created_at.desc())
        )
        return [PaymentNotification.model_validate(p) for p in result.scalars().all()]

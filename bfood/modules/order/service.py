"""Order lifecycle service — cart checkout, settlement views, supplier status updates."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bfood.cache import QueryCache
from bfood.config import settings
from bfood.exceptions import BusinessRuleException, ForbiddenException, NotFoundException
from bfood.models.enums import NotificationType, OrderItemStatus
from bfood.models.order import Order
from bfood.models.order_item import OrderItem
from bfood.models.order_payment import OrderPayment
from bfood.models.product import Product
from bfood.models.profile import Profile
from bfood.modules.notification.service import NotificationService
from bfood.modules.order.aggregation import (
    apply_pickup_selection,
    build_order_totals,
    check_delivery_eligibility,
    filter_delivery_orders,
    group_by_supplier,
    merge_payment_status,
)
from bfood.modules.order.constants import (
    NEW_ORDER_MESSAGE,
    NEW_ORDER_TITLE,
    RESTAURANT_ORDERS_CACHE_KEY,
    STATUS_LABELS,
    STATUS_UPDATE_MESSAGE,
    STATUS_UPDATE_TITLE,
    can_transition,
)
from bfood.modules.order.schemas import (
    CartItemInput,
    CartPreviewResponse,
    LineItem,
    OrderView,
    PaymentNotification,
    ProfileSummary,
    StatusProvenance,
)
from bfood.modules.pricing.resolver import resolve_unit_price
from bfood.modules.pricing.service import PriceTierService

logger = logging.getLogger(__name__)


class OrderService:
    def __init__(self, db: AsyncSession, cache: QueryCache):
        self.db = db
        self.cache = cache

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def _load_profiles(self, user_ids: set[uuid.UUID]) -> dict[uuid.UUID, ProfileSummary]:
        if not user_ids:
            return {}
        result = await self.db.execute(select(Profile).where(Profile.user_id.in_(user_ids)))
        return {
            row.user_id: ProfileSummary.model_validate(row) for row in result.scalars().all()
        }

    async def _load_payments(self, order_ids: list[uuid.UUID]) -> list[PaymentNotification] | None:
        """Payment notices for the orders, or None when the lookup fails.

        A failed lookup degrades to "not paid" so orders stay visible.
        """
        if not order_ids:
            return []
        try:
            async with self.db.begin_nested():
                result = await self.db.execute(
                    select(OrderPayment).where(OrderPayment.order_id.in_(order_ids))
                )
                rows = list(result.scalars().all())
        except SQLAlchemyError:
            logger.warning(
                "Payment lookup failed for %d orders; showing them as unpaid",
                len(order_ids),
                exc_info=True,
            )
            return None
        return [PaymentNotification.model_validate(row) for row in rows]

    @staticmethod
    def _to_line_item(item: OrderItem) -> LineItem:
        product = item.product
        return LineItem(
            id=item.id,
            order_id=item.order_id,
            product_id=item.product_id,
            supplier_id=item.supplier_id,
            quantity=item.quantity,
            unit_price=item.unit_price,
            delivery_fee=item.delivery_fee,
            status=item.status,
            product_name=product.name if product else None,
            unit=product.unit if product else None,
        )

    async def _build_views(self, orders: list[Order]) -> list[OrderView]:
        """Enrich orders with profiles and per-supplier settlement groups.

        All side collections are fetched first, then each order is assembled
        from in-memory indexes.
        """
        line_items = {order.id: [self._to_line_item(i) for i in order.items] for order in orders}
        user_ids = {order.restaurant_id for order in orders}
        user_ids.update(item.supplier_id for items in line_items.values() for item in items)
        profiles = await self._load_profiles(user_ids)
        payments = await self._load_payments([order.id for order in orders])

        views: list[OrderView] = []
        for order in orders:
            groups = merge_payment_status(
                group_by_supplier(line_items[order.id], profiles), payments
            )
            views.append(
                OrderView(
                    id=order.id,
                    restaurant_id=order.restaurant_id,
                    total_amount=order.total_amount,
                    delivery_fee=order.delivery_fee,
                    status=order.status,
                    status_provenance=StatusProvenance(
                        supplier_id=order.status_source_supplier_id,
                        updated_at=order.status_updated_at,
                    ),
                    is_pickup=order.is_pickup,
                    branch_id=order.branch_id,
                    delivery_address=order.delivery_address,
                    notes=order.notes,
                    created_at=order.created_at,
                    restaurant_profile=profiles.get(order.restaurant_id),
                    suppliers=list(groups.values()),
                )
            )
        return views

    def _order_query(self):
        return select(Order).options(
            selectinload(Order.items).selectinload(OrderItem.product)
        )

    async def _get_order(self, order_id: uuid.UUID) -> Order:
        result = await self.db.execute(
            self._order_query()
            .where(Order.id == order_id)
            .execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundException(f"Order {order_id} not found")
        return order

    # ------------------------------------------------------------------
    # Cart pricing
    # ------------------------------------------------------------------

    async def _price_cart(
        self,
        items: list[CartItemInput],
        pickup_supplier_ids: list[uuid.UUID],
    ) -> tuple[list[LineItem], dict[uuid.UUID, ProfileSummary]]:
        """Price cart lines at their quantities and apply per-supplier pickup."""
        quantities: dict[uuid.UUID, int] = {}
        for entry in items:
            quantities[entry.product_id] = quantities.get(entry.product_id, 0) + entry.quantity

        result = await self.db.execute(select(Product).where(Product.id.in_(list(quantities))))
        products = {p.id: p for p in result.scalars().all()}
        missing = [str(pid) for pid in quantities if pid not in products]
        if missing:
            raise NotFoundException(f"Products not found: {', '.join(missing)}")
        unavailable = [p.name for p in products.values() if not p.is_available]
        if unavailable:
            raise BusinessRuleException(
                f"Products no longer available: {', '.join(unavailable)}"
            )

        tiers = await PriceTierService(self.db, self.cache).list_tiers_for_products(
            list(quantities)
        )
        profiles = await self._load_profiles({p.supplier_id for p in products.values()})

        line_items: list[LineItem] = []
        for product_id, quantity in quantities.items():
            product = products[product_id]
            profile = profiles.get(product.supplier_id)
            fee = product.delivery_fee
            if fee is None:
                fee = profile.default_delivery_fee if profile else None
            line_items.append(
                LineItem(
                    product_id=product_id,
                    supplier_id=product.supplier_id,
                    quantity=quantity,
                    unit_price=resolve_unit_price(quantity, product.price, tiers[product_id]),
                    delivery_fee=fee or 0,
                    product_name=product.name,
                    unit=product.unit,
                )
            )

        pickup = set(pickup_supplier_ids)
        for supplier_id, group in group_by_supplier(line_items, profiles).items():
            if supplier_id in pickup:
                continue
            if not check_delivery_eligibility(group.supplier_profile, group.items_total):
                name = group.supplier_profile.business_name if group.supplier_profile else supplier_id
                raise BusinessRuleException(
                    f"Supplier '{name}' does not deliver this order; choose pickup"
                )

        return apply_pickup_selection(line_items, pickup), profiles

    async def preview_cart(
        self,
        items: list[CartItemInput],
        pickup_supplier_ids: list[uuid.UUID],
    ) -> CartPreviewResponse:
        """Totals and supplier groups for a cart, without placing an order."""
        line_items, profiles = await self._price_cart(items, pickup_supplier_ids)
        return CartPreviewResponse(
            totals=build_order_totals(line_items),
            suppliers=list(group_by_supplier(line_items, profiles).values()),
        )

    # ------------------------------------------------------------------
    # Create order from cart
    # ------------------------------------------------------------------

    async def create_from_cart(
        self,
        restaurant_id: uuid.UUID,
        items: list[CartItemInput],
        delivery_address: str | None = None,
        notes: str | None = None,
        branch_id: uuid.UUID | None = None,
        pickup_supplier_ids: list[uuid.UUID] | None = None,
    ) -> OrderView:
        """Place one order spanning every supplier in the cart.

        Unit prices and delivery fees are snapshotted here and never
        recomputed from the catalog afterwards.
        """
        pickup_supplier_ids = pickup_supplier_ids or []
        line_items, _ = await self._price_cart(items, pickup_supplier_ids)
        totals = build_order_totals(line_items)

        supplier_ids = list(dict.fromkeys(item.supplier_id for item in line_items))
        all_pickup = set(supplier_ids) <= set(pickup_supplier_ids)

        order = Order(
            restaurant_id=restaurant_id,
            total_amount=totals.total_amount,
            delivery_fee=totals.delivery_fee,
            status=OrderItemStatus.PENDING,
            is_pickup=all_pickup,
            branch_id=None if all_pickup else branch_id,
            delivery_address=None if all_pickup else delivery_address,
            notes=notes,
        )
        self.db.add(order)
        await self.db.flush()

        self.db.add_all(
            [
                OrderItem(
                    order_id=order.id,
                    product_id=item.product_id,
                    supplier_id=item.supplier_id,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    delivery_fee=item.delivery_fee,
                    status=OrderItemStatus.PENDING,
                )
                for item in line_items
            ]
        )
        await self.db.flush()

        restaurant = (await self._load_profiles({restaurant_id})).get(restaurant_id)
        await NotificationService(self.db).notify_many(
            supplier_ids,
            title=NEW_ORDER_TITLE,
            message=NEW_ORDER_MESSAGE.format(
                restaurant_name=restaurant.business_name if restaurant else "a restaurant"
            ),
            type=NotificationType.ORDER,
            order_id=order.id,
        )
        await self.cache.invalidate_prefix(
            RESTAURANT_ORDERS_CACHE_KEY.format(restaurant_id=restaurant_id)
        )

        logger.info(
            "Created order %s for restaurant %s: %d items, %d suppliers, total %s",
            order.id, restaurant_id, len(line_items), len(supplier_ids), totals.total_amount,
        )
        return await self.get_order_view(order.id)

    # ------------------------------------------------------------------
    # Read views
    # ------------------------------------------------------------------

    async def get_order_view(self, order_id: uuid.UUID) -> OrderView:
        order = await self._get_order(order_id)
        return (await self._build_views([order]))[0]

    async def list_restaurant_orders(
        self,
        restaurant_id: uuid.UUID,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[OrderView], int]:
        """Restaurant's orders, newest first, with settlement groups (cached briefly)."""

        async def _load() -> dict:
            total_result = await self.db.execute(
                select(func.count()).select_from(Order).where(Order.restaurant_id == restaurant_id)
            )
            total = total_result.scalar() or 0
            result = await self.db.execute(
                self._order_query()
                .where(Order.restaurant_id == restaurant_id)
                .order_by(Order.created_at.desc())
                .offset(offset)
                .limit(limit)
            )
            views = await self._build_views(list(result.scalars().all()))
            return {"items": [v.model_dump(mode="json") for v in views], "total": total}

        key = RESTAURANT_ORDERS_CACHE_KEY.format(restaurant_id=restaurant_id)
        cached = await self.cache.get_or_set(
            f"{key}:{limit}:{offset}", _load, ttl=settings.orders_cache_ttl
        )
        return [OrderView.model_validate(v) for v in cached["items"]], cached["total"]

    async def list_supplier_order_items(self, supplier_id: uuid.UUID) -> list[LineItem]:
        result = await self.db.execute(
            select(OrderItem)
            .options(selectinload(OrderItem.product))
            .where(OrderItem.supplier_id == supplier_id)
            .order_by(OrderItem.created_at.desc())
        )
        return [self._to_line_item(item) for item in result.scalars().all()]

    async def list_admin_delivery_orders(self) -> list[OrderView]:
        """Delivery orders (not pickup) with supplier groups, for admin oversight."""
        result = await self.db.execute(
            self._order_query()
            .where(or_(Order.is_pickup.is_(False), Order.is_pickup.is_(None)))
            .order_by(Order.created_at.desc())
        )
        orders = list(result.scalars().all())
        if not orders:
            return []
        return filter_delivery_orders(await self._build_views(orders))

    # ------------------------------------------------------------------
    # Supplier status transitions
    # ------------------------------------------------------------------

    async def update_item_status(
        self,
        item_id: uuid.UUID,
        supplier_id: uuid.UUID,
        new_status: OrderItemStatus,
    ) -> LineItem:
        """Advance one line item; only its supplier may do so."""
        result = await self.db.execute(
            select(OrderItem)
            .options(selectinload(OrderItem.product))
            .where(OrderItem.id == item_id)
        )
        item = result.scalar_one_or_none()
        if item is None:
            raise NotFoundException(f"Order item {item_id} not found")
        if item.supplier_id != supplier_id:
            raise ForbiddenException("Only the item's supplier can change its status")

        if not can_transition(item.status, new_status):
            raise BusinessRuleException(
                f"Cannot transition order item from '{item.status.value}' "
                f"to '{new_status.value}'"
            )

        old_status = item.status
        item.status = new_status
        await self.db.flush()

        restaurant_result = await self.db.execute(
            select(Order.restaurant_id).where(Order.id == item.order_id)
        )
        restaurant_id = restaurant_result.scalar_one()
        await self.cache.invalidate_prefix(
            RESTAURANT_ORDERS_CACHE_KEY.format(restaurant_id=restaurant_id)
        )

        logger.info("Order item %s transitioned %s -> %s", item_id, old_status.value, new_status.value)
        return self._to_line_item(item)

    async def update_supplier_order_status(
        self,
        order_id: uuid.UUID,
        supplier_id: uuid.UUID,
        new_status: OrderItemStatus,
    ) -> OrderView:
        """Move all of one supplier's items in an order to ``new_status``.

        The order-level status is overwritten with ``new_status`` and tagged
        with this supplier as its source. Other suppliers' items are untouched,
        so on multi-supplier orders the order status is advisory only.
        """
        order = await self._get_order(order_id)
        items = [item for item in order.items if item.supplier_id == supplier_id]
        if not items:
            raise NotFoundException(f"Order {order_id} has no items from this supplier")

        for item in items:
            if item.status != new_status and not can_transition(item.status, new_status):
                raise BusinessRuleException(
                    f"Cannot transition order item {item.id} from '{item.status.value}' "
                    f"to '{new_status.value}'"
                )

        for item in items:
            item.status = new_status
        order.status = new_status
        order.status_source_supplier_id = supplier_id
        order.status_updated_at = datetime.now(UTC)
        await self.db.flush()

        supplier = (await self._load_profiles({supplier_id})).get(supplier_id)
        await NotificationService(self.db).notify(
            order.restaurant_id,
            title=STATUS_UPDATE_TITLE,
            message=STATUS_UPDATE_MESSAGE.format(
                supplier_name=supplier.business_name if supplier else "The supplier",
                status_label=STATUS_LABELS[new_status],
            ),
            type=NotificationType.STATUS_UPDATE,
            order_id=order_id,
        )
        await self.cache.invalidate_prefix(
            RESTAURANT_ORDERS_CACHE_KEY.format(restaurant_id=order.restaurant_id)
        )

        logger.info(
            "Supplier %s moved %d items of order %s to %s",
            supplier_id, len(items), order_id, new_status.value,
        )
        return (await self._build_views([order]))[0]

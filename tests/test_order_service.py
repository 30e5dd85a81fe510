"""Tests for OrderService — checkout, settlement views and supplier status updates."""

import uuid
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from bfood.exceptions import BusinessRuleException, ForbiddenException, NotFoundException
from bfood.models.enums import DeliveryOption, NotificationType, OrderItemStatus, UserRole
from bfood.models.notification import Notification
from bfood.models.order_payment import OrderPayment
from bfood.modules.order.constants import RESTAURANT_ORDERS_CACHE_KEY
from bfood.modules.order.schemas import CartItemInput
from bfood.modules.order.service import OrderService


async def _two_supplier_cart(make_profile, make_product):
    """Cart with two S1 items (one tiered) and one S2 item."""
    s1, s2 = uuid.uuid4(), uuid.uuid4()
    await make_profile(s1, business_name="Riyadh Wholesale")
    await make_profile(s2, business_name="Jeddah Dairy")
    p1 = await make_product(
        s1, price=Decimal("10.00"), delivery_fee=Decimal("15.00"), tiers=[(50, Decimal("8.00"))]
    )
    p2 = await make_product(s1, price=Decimal("5.00"), name="Salt 1kg", delivery_fee=Decimal("15.00"))
    p3 = await make_product(s2, price=Decimal("20.00"), name="Laban 2L", delivery_fee=Decimal("25.00"))
    items = [
        CartItemInput(product_id=p1.id, quantity=60),
        CartItemInput(product_id=p2.id, quantity=1),
        CartItemInput(product_id=p3.id, quantity=2),
    ]
    return s1, s2, items


async def _notifications(session, user_id: uuid.UUID) -> list[Notification]:
    result = await session.execute(select(Notification).where(Notification.user_id == user_id))
    return list(result.scalars().all())


class TestPreviewCart:
    @pytest.mark.asyncio
    async def test_totals_and_groups(self, async_session, cache, make_profile, make_product) -> None:
        s1, s2, items = await _two_supplier_cart(make_profile, make_product)

        preview = await OrderService(async_session, cache).preview_cart(items, [])

        assert preview.totals.subtotal == Decimal("525")
        assert preview.totals.delivery_fee == Decimal("40")
        assert preview.totals.total_amount == Decimal("565")
        groups = {g.supplier_id: g for g in preview.suppliers}
        assert groups[s1].items_total == Decimal("485")
        assert groups[s1].items_count == 2
        assert groups[s1].supplier_profile.business_name == "Riyadh Wholesale"
        assert groups[s2].items_total == Decimal("40")

    @pytest.mark.asyncio
    async def test_duplicate_lines_are_merged(self, async_session, cache, make_product) -> None:
        product = await make_product(
            uuid.uuid4(), price=Decimal("10.00"), tiers=[(50, Decimal("8.00"))]
        )
        items = [
            CartItemInput(product_id=product.id, quantity=30),
            CartItemInput(product_id=product.id, quantity=30),
        ]

        preview = await OrderService(async_session, cache).preview_cart(items, [])

        line = preview.suppliers[0].items[0]
        assert line.quantity == 60
        assert line.unit_price == Decimal("8.00")

    @pytest.mark.asyncio
    async def test_pickup_supplier_fee_waived(
        self, async_session, cache, make_profile, make_product
    ) -> None:
        s1, _, items = await _two_supplier_cart(make_profile, make_product)

        preview = await OrderService(async_session, cache).preview_cart(items, [s1])

        assert preview.totals.delivery_fee == Decimal("25")
        assert preview.totals.total_amount == Decimal("550")

    @pytest.mark.asyncio
    async def test_fee_falls_back_to_supplier_default(
        self, async_session, cache, make_profile, make_product
    ) -> None:
        supplier_id = uuid.uuid4()
        await make_profile(supplier_id, default_delivery_fee=Decimal("12.00"))
        product = await make_product(supplier_id, delivery_fee=None)

        preview = await OrderService(async_session, cache).preview_cart(
            [CartItemInput(product_id=product.id, quantity=1)], []
        )

        assert preview.totals.delivery_fee == Decimal("12.00")

    @pytest.mark.asyncio
    async def test_unknown_product(self, async_session, cache) -> None:
        with pytest.raises(NotFoundException, match="Products not found"):
            await OrderService(async_session, cache).preview_cart(
                [CartItemInput(product_id=uuid.uuid4(), quantity=1)], []
            )

    @pytest.mark.asyncio
    async def test_unavailable_product(self, async_session, cache, make_product) -> None:
        product = await make_product(uuid.uuid4(), is_available=False)
        with pytest.raises(BusinessRuleException, match="no longer available"):
            await OrderService(async_session, cache).preview_cart(
                [CartItemInput(product_id=product.id, quantity=1)], []
            )

    @pytest.mark.asyncio
    async def test_below_minimum_requires_pickup(
        self, async_session, cache, make_profile, make_product
    ) -> None:
        supplier_id = uuid.uuid4()
        await make_profile(
            supplier_id,
            delivery_option=DeliveryOption.MINIMUM_ONLY,
            minimum_order_amount=Decimal("200.00"),
        )
        product = await make_product(supplier_id, price=Decimal("10.00"))
        items = [CartItemInput(product_id=product.id, quantity=5)]
        service = OrderService(async_session, cache)

        with pytest.raises(BusinessRuleException, match="choose pickup"):
            await service.preview_cart(items, [])

        preview = await service.preview_cart(items, [supplier_id])
        assert preview.totals.total_amount == Decimal("50.00")


class TestCreateFromCart:
    @pytest.mark.asyncio
    async def test_snapshots_prices_and_totals(
        self, async_session, cache, make_profile, make_product
    ) -> None:
        s1, s2, items = await _two_supplier_cart(make_profile, make_product)
        restaurant_id = uuid.uuid4()
        await make_profile(restaurant_id, role=UserRole.RESTAURANT, business_name="Najd Grill")

        view = await OrderService(async_session, cache).create_from_cart(
            restaurant_id, items, delivery_address="King Fahd Rd"
        )

        assert view.total_amount == Decimal("565")
        assert view.delivery_fee == Decimal("40")
        assert view.status == OrderItemStatus.PENDING
        assert view.is_pickup is False
        assert view.delivery_address == "King Fahd Rd"
        assert view.restaurant_profile.business_name == "Najd Grill"
        assert {g.supplier_id for g in view.suppliers} == {s1, s2}
        assert all(g.order_id == view.id for g in view.suppliers)
        assert not any(g.is_paid for g in view.suppliers)

    @pytest.mark.asyncio
    async def test_notifies_each_supplier_once(
        self, async_session, cache, make_profile, make_product
    ) -> None:
        s1, s2, items = await _two_supplier_cart(make_profile, make_product)

        view = await OrderService(async_session, cache).create_from_cart(uuid.uuid4(), items)

        for supplier_id in (s1, s2):
            notifications = await _notifications(async_session, supplier_id)
            assert len(notifications) == 1
            assert notifications[0].type == NotificationType.ORDER
            assert notifications[0].order_id == view.id

    @pytest.mark.asyncio
    async def test_all_pickup_clears_address(
        self, async_session, cache, make_profile, make_product
    ) -> None:
        s1, s2, items = await _two_supplier_cart(make_profile, make_product)

        view = await OrderService(async_session, cache).create_from_cart(
            uuid.uuid4(),
            items,
            delivery_address="King Fahd Rd",
            branch_id=uuid.uuid4(),
            pickup_supplier_ids=[s1, s2],
        )

        assert view.is_pickup is True
        assert view.delivery_address is None
        assert view.branch_id is None
        assert view.delivery_fee == Decimal("0")

    @pytest.mark.asyncio
    async def test_partial_pickup_is_delivery_order(
        self, async_session, cache, make_profile, make_product
    ) -> None:
        s1, _, items = await _two_supplier_cart(make_profile, make_product)

        view = await OrderService(async_session, cache).create_from_cart(
            uuid.uuid4(), items, pickup_supplier_ids=[s1]
        )

        assert view.is_pickup is False
        assert view.delivery_fee == Decimal("25")

    @pytest.mark.asyncio
    async def test_invalidates_restaurant_listing(
        self, async_session, cache, make_profile, make_product
    ) -> None:
        _, _, items = await _two_supplier_cart(make_profile, make_product)
        restaurant_id = uuid.uuid4()
        key = RESTAURANT_ORDERS_CACHE_KEY.format(restaurant_id=restaurant_id)
        await cache.set(f"{key}:20:0", {"items": [], "total": 0})

        await OrderService(async_session, cache).create_from_cart(restaurant_id, items)

        assert await cache.get(f"{key}:20:0") is None


class TestReadViews:
    @pytest.mark.asyncio
    async def test_payment_merged_per_supplier(
        self, async_session, cache, make_profile, make_product
    ) -> None:
        s1, s2, items = await _two_supplier_cart(make_profile, make_product)
        restaurant_id = uuid.uuid4()
        service = OrderService(async_session, cache)
        created = await service.create_from_cart(restaurant_id, items)
        async_session.add(
            OrderPayment(
                order_id=created.id,
                supplier_id=s1,
                restaurant_id=restaurant_id,
                is_paid=True,
                receipt_url="https://files.example/r1.pdf",
            )
        )
        await async_session.flush()

        view = await service.get_order_view(created.id)

        groups = {g.supplier_id: g for g in view.suppliers}
        assert groups[s1].is_paid is True
        assert groups[s1].receipt_url == "https://files.example/r1.pdf"
        assert groups[s2].is_paid is False
        assert groups[s2].receipt_url is None

    @pytest.mark.asyncio
    async def test_missing_order(self, async_session, cache) -> None:
        with pytest.raises(NotFoundException):
            await OrderService(async_session, cache).get_order_view(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_restaurant_listing_paginates(
        self, async_session, cache, make_profile, make_product
    ) -> None:
        _, _, items = await _two_supplier_cart(make_profile, make_product)
        restaurant_id = uuid.uuid4()
        service = OrderService(async_session, cache)
        await service.create_from_cart(restaurant_id, items)
        await service.create_from_cart(restaurant_id, items)
        await service.create_from_cart(uuid.uuid4(), items)

        page, total = await service.list_restaurant_orders(restaurant_id, limit=1, offset=0)

        assert total == 2
        assert len(page) == 1
        assert page[0].restaurant_id == restaurant_id

    @pytest.mark.asyncio
    async def test_restaurant_listing_cached(
        self, async_session, cache, make_profile, make_product
    ) -> None:
        _, _, items = await _two_supplier_cart(make_profile, make_product)
        restaurant_id = uuid.uuid4()
        service = OrderService(async_session, cache)
        await service.create_from_cart(restaurant_id, items)

        first, _ = await service.list_restaurant_orders(restaurant_id)
        key = RESTAURANT_ORDERS_CACHE_KEY.format(restaurant_id=restaurant_id)
        cached = await cache.get(f"{key}:20:0")

        assert cached["total"] == 1
        assert cached["items"][0]["id"] == str(first[0].id)

    @pytest.mark.asyncio
    async def test_supplier_sees_only_own_items(
        self, async_session, cache, make_profile, make_product
    ) -> None:
        s1, _, items = await _two_supplier_cart(make_profile, make_product)
        await OrderService(async_session, cache).create_from_cart(uuid.uuid4(), items)

        lines = await OrderService(async_session, cache).list_supplier_order_items(s1)

        assert len(lines) == 2
        assert all(line.supplier_id == s1 for line in lines)
        assert {line.product_name for line in lines} == {"Basmati Rice 5kg", "Salt 1kg"}

    @pytest.mark.asyncio
    async def test_admin_delivery_view_excludes_pickup(
        self, async_session, cache, make_profile, make_product
    ) -> None:
        s1, s2, items = await _two_supplier_cart(make_profile, make_product)
        service = OrderService(async_session, cache)
        delivery = await service.create_from_cart(uuid.uuid4(), items)
        await service.create_from_cart(uuid.uuid4(), items, pickup_supplier_ids=[s1, s2])

        orders = await service.list_admin_delivery_orders()

        assert [o.id for o in orders] == [delivery.id]

    @pytest.mark.asyncio
    async def test_admin_delivery_view_empty(self, async_session, cache) -> None:
        assert await OrderService(async_session, cache).list_admin_delivery_orders() == []


class TestLoadPayments:
    @pytest.mark.asyncio
    async def test_lookup_failure_degrades_to_none(self, cache) -> None:
        db = AsyncMock()
        savepoint = MagicMock()
        savepoint.__aenter__ = AsyncMock(return_value=savepoint)
        savepoint.__aexit__ = AsyncMock(return_value=False)
        db.begin_nested = MagicMock(return_value=savepoint)
        db.execute.side_effect = OperationalError("SELECT", {}, Exception("connection reset"))

        assert await OrderService(db, cache)._load_payments([uuid.uuid4()]) is None

    @pytest.mark.asyncio
    async def test_no_orders_skips_query(self, cache) -> None:
        db = AsyncMock()
        assert await OrderService(db, cache)._load_payments([]) == []
        db.execute.assert_not_awaited()


class TestItemStatus:
    @pytest.mark.asyncio
    async def test_supplier_advances_item(
        self, async_session, cache, make_profile, make_product
    ) -> None:
        s1, _, items = await _two_supplier_cart(make_profile, make_product)
        service = OrderService(async_session, cache)
        view = await service.create_from_cart(uuid.uuid4(), items)
        item = next(g for g in view.suppliers if g.supplier_id == s1).items[0]

        updated = await service.update_item_status(item.id, s1, OrderItemStatus.CONFIRMED)

        assert updated.status == OrderItemStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_restaurant_listing_reflects_item_update(
        self, async_session, cache, make_profile, make_product
    ) -> None:
        s1, _, items = await _two_supplier_cart(make_profile, make_product)
        restaurant_id = uuid.uuid4()
        service = OrderService(async_session, cache)
        view = await service.create_from_cart(restaurant_id, items)
        item = next(g for g in view.suppliers if g.supplier_id == s1).items[0]
        await service.list_restaurant_orders(restaurant_id)

        await service.update_item_status(item.id, s1, OrderItemStatus.CONFIRMED)

        orders, _ = await service.list_restaurant_orders(restaurant_id)
        lines = {line.id: line for g in orders[0].suppliers for line in g.items}
        assert lines[item.id].status == OrderItemStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_other_supplier_forbidden(
        self, async_session, cache, make_profile, make_product
    ) -> None:
        s1, s2, items = await _two_supplier_cart(make_profile, make_product)
        service = OrderService(async_session, cache)
        view = await service.create_from_cart(uuid.uuid4(), items)
        item = next(g for g in view.suppliers if g.supplier_id == s1).items[0]

        with pytest.raises(ForbiddenException):
            await service.update_item_status(item.id, s2, OrderItemStatus.CONFIRMED)

    @pytest.mark.asyncio
    async def test_invalid_transition(
        self, async_session, cache, make_profile, make_product
    ) -> None:
        s1, _, items = await _two_supplier_cart(make_profile, make_product)
        service = OrderService(async_session, cache)
        view = await service.create_from_cart(uuid.uuid4(), items)
        item = next(g for g in view.suppliers if g.supplier_id == s1).items[0]

        with pytest.raises(BusinessRuleException, match="Cannot transition"):
            await service.update_item_status(item.id, s1, OrderItemStatus.DELIVERED)

    @pytest.mark.asyncio
    async def test_missing_item(self, async_session, cache) -> None:
        with pytest.raises(NotFoundException):
            await OrderService(async_session, cache).update_item_status(
                uuid.uuid4(), uuid.uuid4(), OrderItemStatus.CONFIRMED
            )


class TestSupplierOrderStatus:
    @pytest.mark.asyncio
    async def test_only_that_suppliers_items_move(
        self, async_session, cache, make_profile, make_product
    ) -> None:
        s1, s2, items = await _two_supplier_cart(make_profile, make_product)
        service = OrderService(async_session, cache)
        created = await service.create_from_cart(uuid.uuid4(), items)

        view = await service.update_supplier_order_status(
            created.id, s1, OrderItemStatus.CONFIRMED
        )

        groups = {g.supplier_id: g for g in view.suppliers}
        assert all(i.status == OrderItemStatus.CONFIRMED for i in groups[s1].items)
        assert all(i.status == OrderItemStatus.PENDING for i in groups[s2].items)

    @pytest.mark.asyncio
    async def test_order_status_is_advisory_last_writer(
        self, async_session, cache, make_profile, make_product
    ) -> None:
        s1, s2, items = await _two_supplier_cart(make_profile, make_product)
        service = OrderService(async_session, cache)
        created = await service.create_from_cart(uuid.uuid4(), items)

        await service.update_supplier_order_status(created.id, s1, OrderItemStatus.CONFIRMED)
        view = await service.update_supplier_order_status(
            created.id, s2, OrderItemStatus.CANCELLED
        )

        assert view.status == OrderItemStatus.CANCELLED
        assert view.status_provenance.advisory is True
        assert view.status_provenance.supplier_id == s2
        assert view.status_provenance.updated_at is not None
        groups = {g.supplier_id: g for g in view.suppliers}
        assert groups[s1].items[0].status == OrderItemStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_notifies_restaurant(
        self, async_session, cache, make_profile, make_product
    ) -> None:
        s1, _, items = await _two_supplier_cart(make_profile, make_product)
        restaurant_id = uuid.uuid4()
        service = OrderService(async_session, cache)
        created = await service.create_from_cart(restaurant_id, items)

        await service.update_supplier_order_status(created.id, s1, OrderItemStatus.CONFIRMED)

        notifications = await _notifications(async_session, restaurant_id)
        assert len(notifications) == 1
        assert notifications[0].type == NotificationType.STATUS_UPDATE
        assert notifications[0].message == "Riyadh Wholesale updated your order to: Confirmed"

    @pytest.mark.asyncio
    async def test_invalid_transition_changes_nothing(
        self, async_session, cache, make_profile, make_product
    ) -> None:
        s1, _, items = await _two_supplier_cart(make_profile, make_product)
        service = OrderService(async_session, cache)
        created = await service.create_from_cart(uuid.uuid4(), items)

        with pytest.raises(BusinessRuleException):
            await service.update_supplier_order_status(
                created.id, s1, OrderItemStatus.SHIPPED
            )

        view = await service.get_order_view(created.id)
        assert view.status == OrderItemStatus.PENDING
        assert view.status_provenance.supplier_id is None

    @pytest.mark.asyncio
    async def test_supplier_not_in_order(
        self, async_session, cache, make_profile, make_product
    ) -> None:
        _, _, items = await _two_supplier_cart(make_profile, make_product)
        service = OrderService(async_session, cache)
        created = await service.create_from_cart(uuid.uuid4(), items)

        with pytest.raises(NotFoundException, match="no items from this supplier"):
            await service.update_supplier_order_status(
                created.id, uuid.uuid4(), OrderItemStatus.CONFIRMED
            )

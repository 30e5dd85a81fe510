"""Order aggregation — supplier settlement groups, totals and delivery views.

Pure functions over collections the caller has already fetched. Each one
builds its lookup indexes once and walks the line items a single time.

Delivery fees are a flat per-supplier charge that every line item from that
supplier repeats, so within one supplier they combine with ``max``, never
``sum`` and never "first seen".
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from decimal import Decimal

from bfood.models.enums import DeliveryOption
from bfood.modules.order.schemas import (
    LineItem,
    OrderTotals,
    OrderView,
    PaymentNotification,
    ProfileSummary,
    SettlementGroup,
)

_ZERO = Decimal("0")


def group_by_supplier(
    line_items: Iterable[LineItem],
    profiles: Mapping[uuid.UUID, ProfileSummary] | None = None,
) -> dict[uuid.UUID, SettlementGroup]:
    """Group line items by supplier, keyed by supplier id.

    A supplier with no entry in ``profiles`` still gets a group, with
    ``supplier_profile=None``.
    """
    profiles = profiles or {}
    accumulators: dict[uuid.UUID, dict] = {}

    for item in line_items:
        acc = accumulators.get(item.supplier_id)
        if acc is None:
            accumulators[item.supplier_id] = {
                "order_id": item.order_id,
                "delivery_fee": item.delivery_fee,
                "items_total": item.line_total,
                "items": [item],
            }
            continue
        acc["delivery_fee"] = max(acc["delivery_fee"], item.delivery_fee)
        acc["items_total"] += item.line_total
        acc["items"].append(item)

    return {
        supplier_id: SettlementGroup(
            supplier_id=supplier_id,
            order_id=acc["order_id"],
            supplier_profile=profiles.get(supplier_id),
            delivery_fee=acc["delivery_fee"],
            items_total=acc["items_total"],
            items_count=len(acc["items"]),
            items=acc["items"],
        )
        for supplier_id, acc in accumulators.items()
    }


def merge_payment_status(
    groups: Mapping[uuid.UUID, SettlementGroup],
    payments: Iterable[PaymentNotification] | None,
) -> dict[uuid.UUID, SettlementGroup]:
    """Attach payment state to each group, matched on (order id, supplier id).

    A group without a matching record is "not yet notified": ``is_paid=False``
    and ``receipt_url=None``. No group is ever dropped.
    """
    by_key: dict[tuple[uuid.UUID | None, uuid.UUID], PaymentNotification] = {
        (p.order_id, p.supplier_id): p for p in (payments or [])
    }

    merged: dict[uuid.UUID, SettlementGroup] = {}
    for supplier_id, group in groups.items():
        payment = by_key.get((group.order_id, supplier_id))
        merged[supplier_id] = group.model_copy(
            update={
                "is_paid": payment.is_paid if payment else False,
                "receipt_url": payment.receipt_url if payment else None,
            }
        )
    return merged


def supplier_delivery_fees(line_items: Iterable[LineItem]) -> dict[uuid.UUID, Decimal]:
    """Effective delivery fee per supplier (max of its items' declared fees)."""
    fees: dict[uuid.UUID, Decimal] = {}
    for item in line_items:
        current = fees.get(item.supplier_id)
        fees[item.supplier_id] = item.delivery_fee if current is None else max(current, item.delivery_fee)
    return fees


def build_order_totals(line_items: Iterable[LineItem]) -> OrderTotals:
    """Snapshot totals for a new order.

    ``delivery_fee`` is the sum over suppliers of each supplier's max fee;
    ``total_amount = subtotal + delivery_fee``.
    """
    items = list(line_items)
    subtotal = sum((item.line_total for item in items), _ZERO)
    delivery_fee = sum(supplier_delivery_fees(items).values(), _ZERO)
    return OrderTotals(
        subtotal=subtotal,
        delivery_fee=delivery_fee,
        total_amount=subtotal + delivery_fee,
    )


def filter_delivery_orders(orders: Iterable[OrderView]) -> list[OrderView]:
    """Delivery orders only (``is_pickup`` false or unset) that still have suppliers."""
    return [order for order in orders if not order.is_pickup and order.suppliers]


def check_delivery_eligibility(
    profile: ProfileSummary | None, supplier_subtotal: Decimal
) -> bool:
    """Whether a supplier will deliver an order of ``supplier_subtotal``.

    ``minimum_only`` suppliers deliver once the subtotal reaches their minimum
    order amount; ``no_delivery`` suppliers are pickup only. An unknown
    supplier profile is treated as ``with_fee``.
    """
    if profile is None or profile.delivery_option in (None, DeliveryOption.WITH_FEE):
        return True
    if profile.delivery_option == DeliveryOption.NO_DELIVERY:
        return False
    minimum = profile.minimum_order_amount or _ZERO
    return supplier_subtotal >= minimum


def apply_pickup_selection(
    line_items: Iterable[LineItem], pickup_supplier_ids: Iterable[uuid.UUID]
) -> list[LineItem]:
    """Zero the delivery fee on items from suppliers the restaurant collects from."""
    pickup = set(pickup_supplier_ids)
    return [
        item.model_copy(update={"delivery_fee": _ZERO}) if item.supplier_id in pickup else item
        for item in line_items
    ]

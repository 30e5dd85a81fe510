"""Line item status transitions, terminal states and notification texts."""

from __future__ import annotations

from bfood.models.enums import OrderItemStatus

# ---------------------------------------------------------------------------
# Valid status transitions: current_status -> set of allowed next statuses
# ---------------------------------------------------------------------------

ORDER_ITEM_TRANSITIONS: dict[OrderItemStatus, set[OrderItemStatus]] = {
    OrderItemStatus.PENDING: {
        OrderItemStatus.CONFIRMED,
        OrderItemStatus.CANCELLED,
    },
    OrderItemStatus.CONFIRMED: {
        OrderItemStatus.PREPARING,
        OrderItemStatus.CANCELLED,
    },
    OrderItemStatus.PREPARING: {
        OrderItemStatus.SHIPPED,
        OrderItemStatus.CANCELLED,
    },
    OrderItemStatus.SHIPPED: {
        OrderItemStatus.DELIVERED,
        OrderItemStatus.CANCELLED,
    },
}

ORDER_ITEM_TERMINAL_STATUSES: set[OrderItemStatus] = {
    OrderItemStatus.DELIVERED,
    OrderItemStatus.CANCELLED,
}

STATUS_LABELS: dict[OrderItemStatus, str] = {
    OrderItemStatus.PENDING: "Pending",
    OrderItemStatus.CONFIRMED: "Confirmed",
    OrderItemStatus.PREPARING: "Preparing",
    OrderItemStatus.SHIPPED: "Shipped",
    OrderItemStatus.DELIVERED: "Delivered",
    OrderItemStatus.CANCELLED: "Cancelled",
}

# ---------------------------------------------------------------------------
# Notification texts
# ---------------------------------------------------------------------------

NEW_ORDER_TITLE = "New order"
NEW_ORDER_MESSAGE = "You have a new order from {restaurant_name}"
STATUS_UPDATE_TITLE = "Order status update"
STATUS_UPDATE_MESSAGE = "{supplier_name} updated your order to: {status_label}"

ORDERS_CACHE_PREFIX = "orders:"
RESTAURANT_ORDERS_CACHE_KEY = "orders:restaurant:{restaurant_id}"


def can_transition(current: OrderItemStatus, new: OrderItemStatus) -> bool:
    return new in ORDER_ITEM_TRANSITIONS.get(current, set())

# Import all models so SQLAlchemy metadata is populated for Alembic autogenerate
from bfood.models.enums import DeliveryOption, NotificationType, OrderItemStatus, UserRole
from bfood.models.notification import Notification
from bfood.models.order import Order
from bfood.models.order_item import OrderItem
from bfood.models.order_payment import OrderPayment
from bfood.models.price_tier import ProductPriceTier
from bfood.models.product import Product
from bfood.models.profile import Profile

__all__ = [
    "DeliveryOption",
    "Notification",
    "NotificationType",
    "Order",
    "OrderItem",
    "OrderItemStatus",
    "OrderPayment",
    "Product",
    "ProductPriceTier",
    "Profile",
    "UserRole",
]

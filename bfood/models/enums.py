import enum


class UserRole(str, enum.Enum):
    RESTAURANT = "restaurant"
    SUPPLIER = "supplier"
    ADMIN = "admin"


class OrderItemStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class DeliveryOption(str, enum.Enum):
    WITH_FEE = "with_fee"
    MINIMUM_ONLY = "minimum_only"
    NO_DELIVERY = "no_delivery"


class NotificationType(str, enum.Enum):
    ORDER = "order"
    STATUS_UPDATE = "status_update"
    PAYMENT = "payment"

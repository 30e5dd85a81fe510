"""OrderItem model — one product line of an order, owned by one supplier."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, Integer, Numeric, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bfood.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from bfood.models.enums import OrderItemStatus

if TYPE_CHECKING:
    from bfood.models.order import Order
    from bfood.models.product import Product


class OrderItem(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "order_items"

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False,
    )
    supplier_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    # Snapshot at order creation; never re-derived from the catalog
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    delivery_fee: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )
    status: Mapped[OrderItemStatus] = mapped_column(
        nullable=False, default=OrderItemStatus.PENDING
    )

    order: Mapped[Order] = relationship("Order", back_populates="items", lazy="noload")
    product: Mapped[Product] = relationship("Product", lazy="noload")

    __table_args__ = (
        Index("ix_order_items_order_id", "order_id"),
        Index("ix_order_items_supplier_id", "supplier_id"),
    )

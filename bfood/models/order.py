"""Order model — a restaurant's purchase spanning one or more suppliers."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bfood.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from bfood.models.enums import OrderItemStatus

if TYPE_CHECKING:
    from bfood.models.order_item import OrderItem


class Order(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "orders"

    restaurant_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    delivery_fee: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )

    # Advisory: mirrors the most recent supplier bulk transition, not a consensus
    status: Mapped[OrderItemStatus] = mapped_column(
        nullable=False, default=OrderItemStatus.PENDING
    )
    status_source_supplier_id: Mapped[uuid.UUID | None] = mapped_column(Uuid)
    status_updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    is_pickup: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    branch_id: Mapped[uuid.UUID | None] = mapped_column(Uuid)
    delivery_address: Mapped[str | None] = mapped_column(String(500))
    notes: Mapped[str | None] = mapped_column(Text)

    items: Mapped[list[OrderItem]] = relationship(
        "OrderItem", back_populates="order", lazy="noload", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_orders_restaurant_id", "restaurant_id"),
        Index("ix_orders_is_pickup", "is_pickup"),
    )

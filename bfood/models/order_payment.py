"""OrderPayment model — a restaurant's notice of having paid a supplier."""

from __future__ import annotations

import uuid

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from bfood.database.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class OrderPayment(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "order_payments"

    order_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("orders.id", ondelete="CASCADE")
    )
    supplier_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    restaurant_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    receipt_url: Mapped[str | None] = mapped_column(String(1000))

    __table_args__ = (
        UniqueConstraint("order_id", "supplier_id", name="uq_order_payments_order_supplier"),
        Index("ix_order_payments_supplier_id", "supplier_id"),
        Index("ix_order_payments_restaurant_id", "restaurant_id"),
    )
